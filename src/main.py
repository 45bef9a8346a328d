"""Main entry point for the Mom's Kitchen client.

This module reads configuration from the environment and wires the stores,
services and screen handlers into a single KitchenClient. Nothing is created
at import time; callers construct a client explicitly and own its lifetime.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime

import httpx

from moms_kitchen_client.adapters.base_adapter import PaymentSheetAdapter
from moms_kitchen_client.auth.session_store import SessionStore
from moms_kitchen_client.handlers.auth_handler import AuthHandler
from moms_kitchen_client.handlers.checkout_handler import CheckoutHandler
from moms_kitchen_client.handlers.dashboard_handler import DashboardHandler
from moms_kitchen_client.handlers.menu_detail_handler import MenuDetailHandler
from moms_kitchen_client.handlers.orders_handler import OrdersHandler
from moms_kitchen_client.handlers.profile_handler import ProfileHandler
from moms_kitchen_client.models.menu_models import MenuItem
from moms_kitchen_client.observability import configure_logging, setup_observability
from moms_kitchen_client.repositories.local_storage import LocalStorage
from moms_kitchen_client.services.api_client import DEFAULT_ROLE, ApiClient
from moms_kitchen_client.services.auth_service import AuthService
from moms_kitchen_client.services.cart_store import CartStore
from moms_kitchen_client.services.menu_service import MenuService
from moms_kitchen_client.services.order_service import OrderService
from moms_kitchen_client.services.ordering_gate import OrderingGate, is_within_window
from moms_kitchen_client.services.scheduler import DEFAULT_INTERVAL_SECONDS
from moms_kitchen_client.services.settings_service import SettingsService
from moms_kitchen_client.services.user_service import UserService

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://localhost:8000"
DEFAULT_STORAGE_DIR = "~/.moms_kitchen"


def get_backend_url() -> str:
    """Resolve the backend base URL.

    Returns:
        MOMS_KITCHEN_BACKEND_URL trimmed and without a trailing slash, or the
        local development server
    """
    env_url = os.getenv("MOMS_KITCHEN_BACKEND_URL", "")
    if env_url.strip():
        return env_url.strip().rstrip("/")
    return DEFAULT_BACKEND_URL


@dataclass
class KitchenClient:
    """Every component of a running client, wired together.

    The session and cart stores are owned here and injected everywhere they
    are needed; there are no module-level singletons.
    """

    session_store: SessionStore
    cart_store: CartStore
    api_client: ApiClient
    auth_service: AuthService
    user_service: UserService
    menu_service: MenuService
    settings_service: SettingsService
    order_service: OrderService
    ordering_gate: OrderingGate
    auth: AuthHandler
    profile: ProfileHandler
    dashboard: DashboardHandler
    orders: OrdersHandler
    checkout: CheckoutHandler

    def load_state(self) -> None:
        """Rehydrate the session and cart persisted by a previous run."""
        self.session_store.load()
        self.cart_store.load()
        logger.info(
            f"State restored - authenticated: {self.session_store.is_authenticated}, "
            f"cart items: {self.cart_store.get_cart_item_count()}"
        )

    def menu_detail(self, menu: MenuItem) -> MenuDetailHandler:
        return MenuDetailHandler(self.cart_store, menu)

    async def aclose(self) -> None:
        """Stop background polling started by any screen."""
        await self.dashboard.unmount()
        await self.orders.unmount()


def create_client(
    payment_adapter: PaymentSheetAdapter | None = None,
    http_client: httpx.AsyncClient | None = None,
    storage_dir: str | None = None,
) -> KitchenClient:
    """Create and wire a client from environment configuration.

    This factory function:
    1. Resolves the backend URL and storage location
    2. Creates the session and cart stores
    3. Creates the API client and backend services
    4. Creates the screen handlers, sharing one ordering gate between the
       dashboard and checkout

    Args:
        payment_adapter: Payment sheet used for online checkout
        http_client: Optional shared httpx client (must carry the base URL)
        storage_dir: Overrides MOMS_KITCHEN_STORAGE_DIR

    Returns:
        A KitchenClient; call ``load_state()`` before use
    """
    backend_url = get_backend_url()
    storage = LocalStorage(storage_dir or os.getenv("MOMS_KITCHEN_STORAGE_DIR", DEFAULT_STORAGE_DIR))
    poll_interval = float(os.getenv("ORDERING_GATE_INTERVAL_SECONDS", str(DEFAULT_INTERVAL_SECONDS)))
    role = os.getenv("MOMS_KITCHEN_ROLE", DEFAULT_ROLE)

    session_store = SessionStore(storage)
    cart_store = CartStore(storage)

    api_client = ApiClient(backend_url, session_store, role=role, http_client=http_client)
    logger.info(f"API client configured - URL: {backend_url}")

    auth_service = AuthService(api_client, session_store)
    user_service = UserService(api_client, session_store)
    menu_service = MenuService(api_client)
    settings_service = SettingsService(api_client)
    order_service = OrderService(api_client)

    ordering_gate = OrderingGate("ordering")
    dashboard = DashboardHandler(
        cart_store,
        menu_service,
        user_service,
        settings_service,
        gate=ordering_gate,
        poll_interval_seconds=poll_interval,
    )
    orders = OrdersHandler(order_service, settings_service, poll_interval_seconds=poll_interval)
    checkout = CheckoutHandler(
        cart_store,
        order_service,
        payment_adapter=payment_adapter,
        ordering_gate=ordering_gate,
        poll_interval_seconds=poll_interval,
    )

    logger.info("Mom's Kitchen client initialized")

    return KitchenClient(
        session_store=session_store,
        cart_store=cart_store,
        api_client=api_client,
        auth_service=auth_service,
        user_service=user_service,
        menu_service=menu_service,
        settings_service=settings_service,
        order_service=order_service,
        ordering_gate=ordering_gate,
        auth=AuthHandler(auth_service),
        profile=ProfileHandler(user_service),
        dashboard=dashboard,
        orders=orders,
        checkout=checkout,
    )


async def report_status() -> int:
    """Print whether the kitchen is taking orders right now.

    Returns:
        Process exit code
    """
    client = create_client()
    client.load_state()

    settings = await client.settings_service.get_settings()
    now = datetime.now()
    windows = settings.ordering_windows or []
    is_open = is_within_window(now, windows)

    hours = ", ".join(f"{w.start}-{w.end}" for w in windows) or "not configured"
    print(f"Ordering hours: {hours}")
    print(f"Kitchen is {'open' if is_open else 'closed'} at {now:%H:%M}")
    print(f"Cart: {client.cart_store.get_cart_item_count()} item(s), total ₹{client.cart_store.get_cart_total()}")
    return 0


if __name__ == "__main__":
    """Report kitchen status when executed directly."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_observability()

    raise SystemExit(asyncio.run(report_status()))
