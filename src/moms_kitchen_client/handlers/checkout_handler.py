"""Checkout flow: turns the cart into an order.

Cash-on-delivery orders are final once the server accepts them. Online
orders go through three more steps: the server issues a payment intent, the
payment sheet confirms it on the device, and the server verifies it. A
failed or cancelled payment sheet is reported back to the server before the
user sees the error, so the order is never left pending.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from moms_kitchen_client.adapters.base_adapter import PaymentSheetAdapter, PaymentSheetResult, PaymentSheetStatus
from moms_kitchen_client.exceptions import ApiError, extract_server_message
from moms_kitchen_client.models.order_models import OrderPayload, OrderSummary, PaymentMethod
from moms_kitchen_client.models.result_models import CheckoutResult, Notice
from moms_kitchen_client.observability import traced
from moms_kitchen_client.observability.metrics import record_cart_cleared, record_checkout
from moms_kitchen_client.services.cart_store import CartStore
from moms_kitchen_client.services.order_service import OrderService
from moms_kitchen_client.services.ordering_gate import OrderingGate
from moms_kitchen_client.services.scheduler import DEFAULT_INTERVAL_SECONDS, PeriodicTask

logger = logging.getLogger(__name__)

ORDER_FAILED_MESSAGE = "Failed to place order. Please try again."
SUCCESS_SCREEN = "Success"


class CheckoutHandler:
    """Submits the cart as a single order and reconciles the outcome."""

    def __init__(
        self,
        cart_store: CartStore,
        order_service: OrderService,
        payment_adapter: PaymentSheetAdapter | None = None,
        ordering_gate: OrderingGate | None = None,
        clock: Callable[[], datetime] = datetime.now,
        poll_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the checkout flow.

        Args:
            cart_store: Cart to submit and clear on success
            order_service: Client for order and payment endpoints
            payment_adapter: Payment sheet for online checkout; online
                checkout is unavailable without one
            ordering_gate: Gate that must be open for checkout to start
            clock: Returns the current local wall-clock time
            poll_interval_seconds: Seconds between gate refreshes while mounted
        """
        self.cart_store = cart_store
        self.order_service = order_service
        self.payment_adapter = payment_adapter
        self.ordering_gate = ordering_gate
        self.clock = clock
        self.poll_interval_seconds = poll_interval_seconds
        self.loading = False
        self._poller: PeriodicTask | None = None

    def summary(self) -> OrderSummary:
        return OrderSummary.from_cart(self.cart_store.items)

    def confirmation_prompt(self, payment_method: PaymentMethod) -> Notice:
        """Prompt shown before the order is placed."""
        total = self.summary().total
        return Notice(
            title="Confirm Your Order",
            message=f"Proceed to {payment_method.label} for INR {total:.2f}?",
        )

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and self._poller.is_running

    def mount(self) -> None:
        """Refresh the gate now and every poll interval until unmounted."""
        if self.ordering_gate is None or self.is_polling:
            return
        self._poller = PeriodicTask(
            self.refresh_gate,
            interval_seconds=self.poll_interval_seconds,
            name="checkout-gate",
        ).start()

    async def unmount(self) -> None:
        if self._poller is not None:
            await self._poller.wait_stopped()
            self._poller = None

    def refresh_gate(self) -> bool | None:
        """Re-evaluate the gate for the current time against the last loaded windows."""
        if self.ordering_gate is None:
            return None
        return self.ordering_gate.refresh(self.clock())

    def gate_allows(self) -> bool:
        """Whether checkout may start right now. No gate means no restriction."""
        if self.ordering_gate is None:
            return True
        self.refresh_gate()
        return self.ordering_gate.allows

    @traced("checkout")
    async def checkout(
        self,
        payment_method: PaymentMethod,
        delivery_address_id: str | None,
        special_instructions: str = "",
    ) -> CheckoutResult:
        """Place an order for the current cart.

        Preconditions are checked in order and short-circuit without any
        request: a delivery address, a non-empty cart, an open ordering gate
        and no checkout already in flight.

        Args:
            payment_method: Cash on delivery or online payment
            delivery_address_id: Selected delivery address
            special_instructions: Free-text delivery instructions

        Returns:
            CheckoutResult describing the outcome and the notice to show
        """
        if not delivery_address_id:
            return CheckoutResult.failed("Missing Address", "Please select a delivery address.")
        if self.cart_store.is_empty():
            return CheckoutResult.failed("Cart is Empty", "Please add items to your cart.")
        if not self.gate_allows():
            return CheckoutResult.failed("Kitchen is Closed", "Orders can only be placed during ordering hours.")
        if self.loading:
            return CheckoutResult.failed("Please Wait", "Your order is already being placed.")
        if payment_method is PaymentMethod.ONLINE and self.payment_adapter is None:
            return CheckoutResult.failed("Error", "Online payment is not available.")

        payload = OrderPayload.from_cart(self.cart_store.items, delivery_address_id, special_instructions)

        self.loading = True
        try:
            if payment_method is PaymentMethod.ONLINE:
                return await self._pay_online(payload)
            return await self._place_cash_order(payload)
        finally:
            self.loading = False

    async def _place_cash_order(self, payload: OrderPayload) -> CheckoutResult:
        try:
            body = await self.order_service.create_order(payload)
        except ApiError as e:
            logger.error(f"Order creation failed: {e}")
            record_checkout(PaymentMethod.CASH_ON_DELIVERY.value, "rejected")
            return CheckoutResult.from_error(e, "Error", ORDER_FAILED_MESSAGE, request_sent=True)

        if body.get("status") != "success":
            record_checkout(PaymentMethod.CASH_ON_DELIVERY.value, "rejected")
            return CheckoutResult.failed(
                "Error", extract_server_message(body) or ORDER_FAILED_MESSAGE, request_sent=True
            )

        self._clear_cart()
        record_checkout(PaymentMethod.CASH_ON_DELIVERY.value, "confirmed")
        return CheckoutResult(
            success=True,
            notice=Notice("Order Confirmed", "Your COD order has been placed successfully!"),
            navigate_to=SUCCESS_SCREEN,
            request_sent=True,
        )

    async def _pay_online(self, payload: OrderPayload) -> CheckoutResult:
        method = PaymentMethod.ONLINE.value
        try:
            body = await self.order_service.create_order(payload)
        except ApiError as e:
            logger.error(f"Order creation failed: {e}")
            record_checkout(method, "rejected")
            return CheckoutResult.from_error(e, "Error", "Unable to process payment.", request_sent=True)

        handle = OrderService.payment_handle(body)
        if not handle.client_secret or not handle.payment_intent_id:
            record_checkout(method, "rejected")
            return CheckoutResult.failed(
                "Error",
                "Payment details were not received. Please try again.",
                request_sent=True,
                payment_intent_id=handle.payment_intent_id,
            )

        sheet = await self._present_payment_sheet(handle.client_secret)
        if not sheet.succeeded:
            logger.info(f"Payment {handle.payment_intent_id} ended with status {sheet.status.value}")
            await self._report_failed_payment(handle.payment_intent_id)
            record_checkout(method, "payment_failed")
            return CheckoutResult.failed(
                "Payment Failed",
                sheet.error_message or "Payment was not completed.",
                request_sent=True,
                payment_intent_id=handle.payment_intent_id,
            )

        try:
            verified = await self.order_service.verify_payment(handle.payment_intent_id)
        except ApiError as e:
            logger.error(f"Payment verification failed for {handle.payment_intent_id}: {e}")
            verified = False

        if not verified:
            record_checkout(method, "unverified")
            return CheckoutResult.failed(
                "Verification Failed",
                "Please contact support.",
                request_sent=True,
                payment_intent_id=handle.payment_intent_id,
            )

        self._clear_cart()
        record_checkout(method, "confirmed")
        return CheckoutResult(
            success=True,
            notice=Notice("Payment Successful", "Your order has been confirmed!"),
            navigate_to=SUCCESS_SCREEN,
            request_sent=True,
            payment_intent_id=handle.payment_intent_id,
        )

    async def _present_payment_sheet(self, client_secret: str) -> PaymentSheetResult:
        try:
            return await self.payment_adapter.confirm_payment(client_secret)
        except Exception as e:
            logger.error(f"Payment sheet raised: {e}")
            return PaymentSheetResult(status=PaymentSheetStatus.FAILED, error_message=str(e) or None)

    async def _report_failed_payment(self, payment_intent_id: str) -> None:
        try:
            await self.order_service.fail_payment(payment_intent_id)
        except ApiError as e:
            logger.error(f"Could not report failed payment {payment_intent_id}: {e}")

    def _clear_cart(self) -> None:
        self.cart_store.clear_cart()
        record_cart_cleared("checkout")
