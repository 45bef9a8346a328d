"""Shared pytest fixtures and configuration for all tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from moms_kitchen_client.auth.session_store import SessionStore
from moms_kitchen_client.models.cart_models import CartItem
from moms_kitchen_client.models.order_models import OrderingWindow
from moms_kitchen_client.repositories.local_storage import LocalStorage
from moms_kitchen_client.services.cart_store import CartStore


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    """Fixture providing storage in a per-test temporary directory."""
    return LocalStorage(tmp_path / "storage")


@pytest.fixture
def session_store(storage: LocalStorage) -> SessionStore:
    """Fixture providing an empty, logged out session store."""
    return SessionStore(storage)


@pytest.fixture
def cart_store(storage: LocalStorage) -> CartStore:
    """Fixture providing a loaded, empty cart store."""
    store = CartStore(storage)
    store.load()
    return store


@pytest.fixture
def thali() -> CartItem:
    """Fixture providing a menu snapshot with inventory left."""
    return CartItem(id="m1", name="Veg Thali", price="₹100", image=None, remaining_orders=5)


@pytest.fixture
def biryani() -> CartItem:
    """Fixture providing a second menu snapshot."""
    return CartItem(id="m2", name="Chicken Biryani", price="₹180", image="biryani.png", remaining_orders=3)


@pytest.fixture
def sample_windows() -> list[OrderingWindow]:
    """Fixture providing a lunch and a dinner ordering window."""
    return [
        OrderingWindow(start="09:00", end="12:00"),
        OrderingWindow(start="17:00", end="20:00"),
    ]


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Fixture providing a factory for mocked httpx responses."""

    def _make(status_code: int = 200, body: Any = None) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = {} if body is None else body
        return response

    return _make
