"""Orders screen: order history and cancellation."""

import logging
from collections.abc import Callable
from datetime import datetime

from moms_kitchen_client.exceptions import ApiError
from moms_kitchen_client.handlers.base_handler import GatedScreenHandler, NoticeListener
from moms_kitchen_client.models.order_models import AppSettings, Order, OrderingWindow
from moms_kitchen_client.models.result_models import ActionResult, Notice
from moms_kitchen_client.services.order_service import OrderService
from moms_kitchen_client.services.ordering_gate import OrderingGate
from moms_kitchen_client.services.scheduler import DEFAULT_INTERVAL_SECONDS
from moms_kitchen_client.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

CANCELLATION_CLOSED_MESSAGE = "Cancellations are only allowed during ordering hours."


class OrdersHandler(GatedScreenHandler):
    """Lists orders and cancels them while the cancellation gate is open."""

    def __init__(
        self,
        order_service: OrderService,
        settings_service: SettingsService,
        clock: Callable[[], datetime] = datetime.now,
        poll_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        on_notice: NoticeListener | None = None,
    ) -> None:
        super().__init__(settings_service, OrderingGate("cancellation"), clock, poll_interval_seconds, on_notice)
        self.order_service = order_service
        self.orders: list[Order] = []

    @property
    def can_cancel(self) -> bool:
        return self.gate.allows

    def windows_for(self, settings: AppSettings) -> list[OrderingWindow] | None:
        return settings.effective_cancellation_windows

    async def mount(self) -> ActionResult:
        """Load orders and settings, then start polling the gate."""
        result = await self.load_orders()
        await self.load_settings()
        self.start_polling()
        return result

    async def load_orders(self, limit: int = 50) -> ActionResult:
        try:
            self.orders = await self.order_service.list_orders(limit=limit)
        except ApiError as e:
            logger.error(f"Order load failed: {e}")
            return ActionResult.from_error(e, "Error", "Failed to load orders")
        return ActionResult(success=True, data=self.orders)

    def request_cancel(self, order: Order) -> ActionResult:
        """Build the confirmation prompt for cancelling an order.

        Paid orders include the estimated refund breakdown.
        """
        if not self.can_cancel:
            return ActionResult.failed("Cancel Order", CANCELLATION_CLOSED_MESSAGE)

        message = "Are you sure you want to cancel this order?"
        if order.is_paid:
            message += "\n\n" + order.refund_breakdown().describe()

        return ActionResult(success=True, notice=Notice(title="Cancel Order", message=message), data=order)

    async def cancel_order(self, order_id: str) -> ActionResult:
        """Cancel an order and mark it cancelled locally."""
        if not self.can_cancel:
            return ActionResult.failed("Cancel Order", CANCELLATION_CLOSED_MESSAGE)

        try:
            updated = await self.order_service.cancel_order(order_id)
        except ApiError as e:
            logger.error(f"Cancel order {order_id} failed: {e}")
            return ActionResult.from_error(e, "Error", "Failed to cancel order")

        cancelled: Order | None = None
        for i, order in enumerate(self.orders):
            if order.id == order_id:
                merged = {**order.model_dump(), **updated, "id": order_id, "status": "cancelled"}
                merged.pop("_id", None)
                cancelled = Order.model_validate(merged)
                self.orders[i] = cancelled

        logger.info(f"Order {order_id} cancelled")
        return ActionResult(
            success=True,
            notice=Notice(title="Order Cancelled", message="Order cancelled successfully"),
            data=cancelled,
        )
