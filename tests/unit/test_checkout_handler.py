"""Unit tests for CheckoutHandler."""

import asyncio
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from moms_kitchen_client.adapters.base_adapter import PaymentSheetAdapter, PaymentSheetResult, PaymentSheetStatus
from moms_kitchen_client.exceptions import ApiError
from moms_kitchen_client.handlers.dashboard_handler import DashboardHandler
from moms_kitchen_client.handlers.checkout_handler import CheckoutHandler
from moms_kitchen_client.models.cart_models import CartItem
from moms_kitchen_client.models.menu_models import MenuItem
from moms_kitchen_client.models.order_models import AppSettings, OrderingWindow, PaymentMethod
from moms_kitchen_client.services.cart_store import CartStore
from moms_kitchen_client.services.menu_service import MenuService
from moms_kitchen_client.services.order_service import OrderService
from moms_kitchen_client.services.ordering_gate import OrderingGate
from moms_kitchen_client.services.settings_service import SettingsService
from moms_kitchen_client.services.user_service import UserService


class ScriptedPaymentSheet(PaymentSheetAdapter):
    """Payment sheet that returns a preset outcome."""

    def __init__(self, result: PaymentSheetResult | Exception) -> None:
        super().__init__()
        self.result = result
        self.client_secrets: list[str] = []

    async def confirm_payment(self, client_secret: str) -> PaymentSheetResult:
        self.client_secrets.append(client_secret)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.mark.unit
class TestCheckoutHandler:
    """Test suite for CheckoutHandler."""

    @pytest.fixture
    def open_gate(self) -> OrderingGate:
        """Ordering gate in the open state."""
        gate = OrderingGate()
        gate.is_open = True
        return gate

    @pytest.fixture
    def mock_order_service(self) -> MagicMock:
        """Create a mock order service."""
        service = MagicMock(spec=OrderService)
        service.create_order = AsyncMock(return_value={"status": "success", "data": {"_id": "o1"}})
        service.verify_payment = AsyncMock(return_value=True)
        service.fail_payment = AsyncMock()
        return service

    @pytest.fixture
    def filled_cart(self, cart_store: CartStore, thali: CartItem, biryani: CartItem) -> CartStore:
        """Cart holding two lines."""
        cart_store.add_to_cart(thali, 2)
        cart_store.add_to_cart(biryani, 1)
        return cart_store

    def make_handler(
        self,
        cart: CartStore,
        order_service: MagicMock,
        gate: OrderingGate | None,
        sheet: PaymentSheetAdapter | None = None,
    ) -> CheckoutHandler:
        return CheckoutHandler(cart, order_service, payment_adapter=sheet, ordering_gate=gate)

    def online_body(self) -> dict[str, Any]:
        return {"status": "success", "clientSecret": "pi_1_secret", "paymentIntentId": "pi_1"}

    @pytest.mark.asyncio
    async def test_missing_address_sends_nothing(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test checkout without an address makes no request."""
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, None)

        assert result.success is False
        assert result.notice.title == "Missing Address"
        assert result.message == "Please select a delivery address."
        assert result.request_sent is False
        mock_order_service.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_cart_sends_nothing(
        self, cart_store: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test checkout with an empty cart makes no request."""
        handler = self.make_handler(cart_store, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.notice.title == "Cart is Empty"
        mock_order_service.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", [None, False])
    async def test_closed_or_unknown_gate_sends_nothing(
        self, filled_cart: CartStore, mock_order_service: MagicMock, state: bool | None
    ) -> None:
        """Test checkout is blocked until the gate is known to be open."""
        gate = OrderingGate()
        gate.is_open = state
        handler = self.make_handler(filled_cart, mock_order_service, gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.notice.title == "Kitchen is Closed"
        mock_order_service.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_online_without_payment_sheet(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test online checkout is refused when no payment sheet is configured."""
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        assert result.success is False
        mock_order_service.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cash_order_success(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a confirmed cash order clears the cart and navigates to success."""
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1", "Ring the bell")

        payload = mock_order_service.create_order.call_args.args[0]
        assert payload.model_dump() == {
            "orders": [{"menu_id": "m1", "items": 2}, {"menu_id": "m2", "items": 1}],
            "delivery_address_id": "a1",
            "special_instructions": "Ring the bell",
        }
        assert result.success is True
        assert result.notice.title == "Order Confirmed"
        assert result.navigate_to == "Success"
        assert filled_cart.is_empty()
        assert handler.loading is False

    @pytest.mark.asyncio
    async def test_cash_order_rejected_keeps_cart(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a non-success status shows the server message and keeps the cart."""
        mock_order_service.create_order.return_value = {"status": "error", "message": "Kitchen overloaded"}
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.success is False
        assert result.message == "Kitchen overloaded"
        assert result.request_sent is True
        assert filled_cart.get_cart_item_count() == 3

    @pytest.mark.asyncio
    async def test_cash_order_server_error_message_verbatim(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a rejected request surfaces the server's message unchanged."""
        mock_order_service.create_order.side_effect = ApiError(
            "Only 1 portions of Chicken Biryani left",
            status_code=400,
            payload={"success": False, "message": "Only 1 portions of Chicken Biryani left"},
        )
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.message == "Only 1 portions of Chicken Biryani left"
        assert filled_cart.get_cart_item_count() == 3
        assert handler.loading is False

    @pytest.mark.asyncio
    async def test_cash_order_network_error_falls_back(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a failure without a server message uses the generic text."""
        mock_order_service.create_order.side_effect = ApiError("Unable to reach the server.")
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.message == "Failed to place order. Please try again."

    @pytest.mark.asyncio
    async def test_checkout_in_flight_is_rejected(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a second checkout while one is in flight sends nothing."""
        release = asyncio.Event()

        async def slow_create(payload: Any) -> dict[str, Any]:
            await release.wait()
            return {"status": "success"}

        mock_order_service.create_order.side_effect = slow_create
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        first = asyncio.create_task(handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1"))
        while not handler.loading:
            await asyncio.sleep(0)
        second = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")
        release.set()
        first_result = await first

        assert second.notice.title == "Please Wait"
        assert first_result.success is True
        assert mock_order_service.create_order.await_count == 1

    @pytest.mark.asyncio
    async def test_online_payment_success(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a completed and verified payment confirms the order."""
        mock_order_service.create_order.return_value = self.online_body()
        sheet = ScriptedPaymentSheet(PaymentSheetResult(PaymentSheetStatus.COMPLETED))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        assert sheet.client_secrets == ["pi_1_secret"]
        mock_order_service.verify_payment.assert_awaited_once_with("pi_1")
        mock_order_service.fail_payment.assert_not_awaited()
        assert result.success is True
        assert result.notice.title == "Payment Successful"
        assert result.payment_intent_id == "pi_1"
        assert filled_cart.is_empty()

    @pytest.mark.asyncio
    async def test_online_payment_handle_under_data(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test the payment handle may be nested under data."""
        mock_order_service.create_order.return_value = {"data": {"clientSecret": "s", "paymentIntentId": "pi_2"}}
        sheet = ScriptedPaymentSheet(PaymentSheetResult(PaymentSheetStatus.COMPLETED))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        assert result.success is True
        mock_order_service.verify_payment.assert_awaited_once_with("pi_2")

    @pytest.mark.asyncio
    async def test_online_payment_cancelled_reports_failure(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a cancelled sheet is reported to the server and keeps the cart."""
        mock_order_service.create_order.return_value = self.online_body()
        sheet = ScriptedPaymentSheet(PaymentSheetResult(PaymentSheetStatus.CANCELED, "The payment was canceled"))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        mock_order_service.fail_payment.assert_awaited_once_with("pi_1")
        mock_order_service.verify_payment.assert_not_awaited()
        assert result.notice.title == "Payment Failed"
        assert result.message == "The payment was canceled"
        assert filled_cart.get_cart_item_count() == 3

    @pytest.mark.asyncio
    async def test_online_payment_sheet_exception(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a crashing payment sheet is treated as a failed payment."""
        mock_order_service.create_order.return_value = self.online_body()
        sheet = ScriptedPaymentSheet(RuntimeError("SDK not initialized"))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        mock_order_service.fail_payment.assert_awaited_once_with("pi_1")
        assert result.success is False
        assert result.message == "SDK not initialized"
        assert handler.loading is False

    @pytest.mark.asyncio
    async def test_fail_payment_error_still_reports_to_user(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test an error while reporting the failure does not mask it."""
        mock_order_service.create_order.return_value = self.online_body()
        mock_order_service.fail_payment.side_effect = ApiError("Server error", status_code=500)
        sheet = ScriptedPaymentSheet(PaymentSheetResult(PaymentSheetStatus.FAILED))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        assert result.notice.title == "Payment Failed"
        assert result.message == "Payment was not completed."

    @pytest.mark.asyncio
    async def test_online_missing_payment_details(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test a response without a payment handle never opens the sheet."""
        mock_order_service.create_order.return_value = {"status": "success"}
        sheet = ScriptedPaymentSheet(PaymentSheetResult(PaymentSheetStatus.COMPLETED))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        assert result.message == "Payment details were not received. Please try again."
        assert sheet.client_secrets == []

    @pytest.mark.asyncio
    async def test_online_verification_failed(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test an unverified payment asks the user to contact support."""
        mock_order_service.create_order.return_value = self.online_body()
        mock_order_service.verify_payment.side_effect = ApiError("Server error", status_code=500)
        sheet = ScriptedPaymentSheet(PaymentSheetResult(PaymentSheetStatus.COMPLETED))
        handler = self.make_handler(filled_cart, mock_order_service, open_gate, sheet)

        result = await handler.checkout(PaymentMethod.ONLINE, "a1")

        assert result.notice.title == "Verification Failed"
        assert result.message == "Please contact support."
        assert filled_cart.get_cart_item_count() == 3

    def test_summary_and_prompt(
        self, filled_cart: CartStore, mock_order_service: MagicMock, open_gate: OrderingGate
    ) -> None:
        """Test the pre-checkout summary and confirmation prompt."""
        handler = self.make_handler(filled_cart, mock_order_service, open_gate)

        summary = handler.summary()
        prompt = handler.confirmation_prompt(PaymentMethod.CASH_ON_DELIVERY)

        assert summary.subtotal == 380
        assert summary.total == 380 + 30 + 57
        assert prompt.message == "Proceed to Cash on Delivery for INR 467.00?"


class SettableClock:
    """Wall clock that tests move by hand."""

    def __init__(self, hour: int, minute: int) -> None:
        self.now = datetime(2024, 5, 1, hour, minute)

    def set(self, hour: int, minute: int) -> None:
        self.now = self.now.replace(hour=hour, minute=minute)

    def __call__(self) -> datetime:
        return self.now


@pytest.mark.unit
class TestCheckoutGateRefresh:
    """Test suite for checkout keeping the shared ordering gate current."""

    @pytest.fixture
    def clock(self) -> SettableClock:
        """Clock one minute before the lunch window ends."""
        return SettableClock(11, 59)

    @pytest.fixture
    def gate(self) -> OrderingGate:
        """Gate shared by the dashboard and checkout."""
        return OrderingGate("ordering")

    @pytest.fixture
    def dashboard(
        self, cart_store: CartStore, gate: OrderingGate, clock: SettableClock, sample_windows: list[OrderingWindow]
    ) -> DashboardHandler:
        """Dashboard with mocked services sharing the gate and clock."""
        menu_service = MagicMock(spec=MenuService)
        menu_service.list_menus = AsyncMock(
            return_value=[MenuItem(id="m1", name="Veg Thali", total_cost=100, remaining_orders=5)]
        )
        user_service = MagicMock(spec=UserService)
        user_service.get_addresses = AsyncMock(return_value=[])
        settings_service = MagicMock(spec=SettingsService)
        settings_service.get_settings = AsyncMock(return_value=AppSettings(ordering_windows=sample_windows))
        return DashboardHandler(
            cart_store,
            menu_service,
            user_service,
            settings_service,
            gate=gate,
            clock=clock,
            poll_interval_seconds=0.01,
        )

    @pytest.fixture
    def mock_order_service(self) -> MagicMock:
        """Create a mock order service."""
        service = MagicMock(spec=OrderService)
        service.create_order = AsyncMock(return_value={"status": "success"})
        return service

    @pytest.mark.asyncio
    async def test_closed_window_blocks_checkout_after_dashboard_unmounts(
        self,
        dashboard: DashboardHandler,
        cart_store: CartStore,
        thali: CartItem,
        gate: OrderingGate,
        clock: SettableClock,
        mock_order_service: MagicMock,
    ) -> None:
        """Test checkout re-evaluates the gate instead of trusting a stale open state."""
        await dashboard.mount()
        assert dashboard.can_order is True
        await dashboard.unmount()

        cart_store.add_to_cart(thali, 1)
        clock.set(14, 30)
        handler = CheckoutHandler(cart_store, mock_order_service, ordering_gate=gate, clock=clock)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.success is False
        assert result.notice.title == "Kitchen is Closed"
        assert result.request_sent is False
        mock_order_service.create_order.assert_not_awaited()
        assert gate.is_open is False

    @pytest.mark.asyncio
    async def test_checkout_inside_window_after_dashboard_unmounts(
        self,
        dashboard: DashboardHandler,
        cart_store: CartStore,
        thali: CartItem,
        gate: OrderingGate,
        clock: SettableClock,
        mock_order_service: MagicMock,
    ) -> None:
        """Test a refreshed gate that is still open lets the order through."""
        await dashboard.mount()
        await dashboard.unmount()

        cart_store.add_to_cart(thali, 1)
        clock.set(17, 30)
        handler = CheckoutHandler(cart_store, mock_order_service, ordering_gate=gate, clock=clock)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.success is True
        mock_order_service.create_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_gate_stays_unknown_without_loaded_windows(
        self, filled_cart_store: CartStore, gate: OrderingGate, clock: SettableClock, mock_order_service: MagicMock
    ) -> None:
        """Test checkout stays blocked when no screen has loaded ordering windows."""
        handler = CheckoutHandler(filled_cart_store, mock_order_service, ordering_gate=gate, clock=clock)

        result = await handler.checkout(PaymentMethod.CASH_ON_DELIVERY, "a1")

        assert result.notice.title == "Kitchen is Closed"
        assert gate.is_open is None
        mock_order_service.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mounted_checkout_polls_the_gate(
        self,
        cart_store: CartStore,
        gate: OrderingGate,
        clock: SettableClock,
        sample_windows: list[OrderingWindow],
        mock_order_service: MagicMock,
    ) -> None:
        """Test a mounted checkout screen closes the gate on its own when hours end."""
        gate.evaluate(clock(), sample_windows)
        handler = CheckoutHandler(
            cart_store, mock_order_service, ordering_gate=gate, clock=clock, poll_interval_seconds=0.01
        )

        handler.mount()
        assert handler.is_polling is True
        clock.set(12, 1)
        for _ in range(100):
            if gate.is_open is False:
                break
            await asyncio.sleep(0.01)

        assert gate.is_open is False
        await handler.unmount()
        assert handler.is_polling is False

    @pytest.fixture
    def filled_cart_store(self, cart_store: CartStore, thali: CartItem) -> CartStore:
        """Cart holding one line."""
        cart_store.add_to_cart(thali, 1)
        return cart_store
