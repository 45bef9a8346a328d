"""Dashboard screen: menus on offer and the ordering gate."""

import logging
from collections.abc import Callable
from datetime import datetime

from moms_kitchen_client.exceptions import ApiError
from moms_kitchen_client.handlers.base_handler import GatedScreenHandler, NoticeListener
from moms_kitchen_client.models.menu_models import MenuItem
from moms_kitchen_client.models.order_models import AppSettings, OrderingWindow
from moms_kitchen_client.models.result_models import ActionResult, Notice
from moms_kitchen_client.models.session_models import Address
from moms_kitchen_client.observability.metrics import record_cart_cleared
from moms_kitchen_client.services.cart_store import CartStore
from moms_kitchen_client.services.menu_service import MenuService
from moms_kitchen_client.services.ordering_gate import OrderingGate
from moms_kitchen_client.services.scheduler import DEFAULT_INTERVAL_SECONDS
from moms_kitchen_client.services.settings_service import SettingsService
from moms_kitchen_client.services.user_service import UserService

logger = logging.getLogger(__name__)

KITCHEN_CLOSED_NOTICE = Notice(
    title="Kitchen is Closed",
    message="Ordering hours have ended, so the items in your cart have been removed.",
)


class DashboardHandler(GatedScreenHandler):
    """Loads menus and keeps the ordering gate current.

    When the gate closes while the cart holds items, the cart is emptied and
    a notice is raised, once per closing.
    """

    def __init__(
        self,
        cart_store: CartStore,
        menu_service: MenuService,
        user_service: UserService,
        settings_service: SettingsService,
        gate: OrderingGate | None = None,
        clock: Callable[[], datetime] = datetime.now,
        poll_interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        on_notice: NoticeListener | None = None,
    ) -> None:
        """Initialize the dashboard.

        Args:
            cart_store: Cart cleared when the kitchen closes
            menu_service: Source of menus
            user_service: Source of delivery addresses
            settings_service: Source of ordering windows
            gate: Ordering gate, shared with checkout; created when omitted
            clock: Returns the current local wall-clock time
            poll_interval_seconds: Seconds between gate evaluations
            on_notice: Called with every notice raised by the screen
        """
        gate = gate or OrderingGate("ordering")
        super().__init__(settings_service, gate, clock, poll_interval_seconds, on_notice)
        gate.on_close = self._on_kitchen_closed

        self.cart_store = cart_store
        self.menu_service = menu_service
        self.user_service = user_service
        self.menus: list[MenuItem] = []
        self.addresses: list[Address] = []

    @property
    def can_order(self) -> bool:
        return self.gate.allows

    def windows_for(self, settings: AppSettings) -> list[OrderingWindow] | None:
        return settings.ordering_windows

    async def mount(self) -> ActionResult:
        """Load menus and settings, then start polling the gate."""
        result = await self.load_menus()
        await self.load_settings()
        self.start_polling()
        return result

    async def load_menus(self, limit: int = 20) -> ActionResult:
        """Fetch menus and addresses, and fit the cart to current inventory."""
        try:
            self.menus = await self.menu_service.list_menus(limit=limit)
            self.addresses = await self.user_service.get_addresses()
        except ApiError as e:
            logger.error(f"Menu load failed: {e}")
            return ActionResult.from_error(e, "Error", "Failed to load menus")

        adjusted = self.cart_store.reconcile_inventory(self.menus)
        if adjusted:
            self.notify(
                Notice(
                    title="Cart Updated",
                    message=f"Availability changed for: {', '.join(adjusted)}. Your cart has been updated.",
                )
            )
        return ActionResult(success=True, data=self.menus)

    def _on_kitchen_closed(self) -> None:
        if self.cart_store.is_empty():
            return
        logger.info("Ordering window closed with items in the cart, clearing it")
        self.cart_store.clear_cart()
        record_cart_cleared("kitchen_closed")
        self.notify(KITCHEN_CLOSED_NOTICE)
