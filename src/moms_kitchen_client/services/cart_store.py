"""Cart store for locally accumulated order lines."""

import logging
from collections.abc import Callable, Iterable
from decimal import Decimal

from pydantic import ValidationError

from moms_kitchen_client.models.cart_models import CartItem, CartLine, OrderLimitCheck
from moms_kitchen_client.models.menu_models import MenuItem
from moms_kitchen_client.repositories.local_storage import LocalStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "@mom_user_app_cart"

CartListener = Callable[[list[CartLine]], None]


class CartStore:
    """Ordered set of cart lines keyed by menu id.

    Mutations update the in-memory lines first and then persist them, so
    readers always see the latest state even if the write fails. Nothing is
    persisted until ``load()`` has run, which keeps an empty initial cart
    from overwriting the one saved by a previous run.
    """

    def __init__(self, storage: LocalStorage) -> None:
        """Initialize an empty, not yet loaded cart.

        Args:
            storage: LocalStorage used to persist the cart
        """
        self.storage = storage
        self.loaded = False
        self._lines: list[CartLine] = []
        self._listeners: list[CartListener] = []

    @property
    def items(self) -> list[CartLine]:
        return [line.model_copy() for line in self._lines]

    def is_empty(self) -> bool:
        return not self._lines

    def load(self) -> list[CartLine]:
        """Restore the cart saved by a previous run.

        Malformed lines are skipped. The cart is marked loaded even when the
        read fails so later mutations are still persisted.

        Returns:
            The restored lines
        """
        try:
            stored = self.storage.get_item(CART_STORAGE_KEY)
            if isinstance(stored, list):
                lines: list[CartLine] = []
                for record in stored:
                    try:
                        line = CartLine.model_validate(record)
                    except ValidationError as e:
                        logger.warning(f"Skipping malformed cart line: {e}")
                        continue
                    if self._index_of(line.id, lines) is None:
                        lines.append(line)
                self._lines = lines
        finally:
            self.loaded = True

        self._notify()
        return self.items

    def add_to_cart(self, item: CartItem, quantity: int = 1) -> CartLine:
        """Add portions of a menu, merging with an existing line.

        Args:
            item: Menu snapshot to add
            quantity: Portions to add, at least 1

        Returns:
            The resulting cart line

        Raises:
            ValueError: If quantity is less than 1
        """
        if quantity < 1:
            raise ValueError("quantity must be at least 1")

        index = self._index_of(item.id)
        if index is not None:
            existing = self._lines[index]
            line = existing.model_copy(update={"quantity": existing.quantity + quantity})
            self._lines[index] = line
        else:
            line = CartLine(**item.model_dump(exclude={"quantity"}), quantity=quantity)
            self._lines.append(line)

        self._commit()
        return line

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove_from_cart(item_id)
            return

        index = self._index_of(item_id)
        if index is None:
            return

        self._lines[index] = self._lines[index].model_copy(update={"quantity": quantity})
        self._commit()

    def remove_from_cart(self, item_id: str) -> None:
        lines = [line for line in self._lines if line.id != item_id]
        if len(lines) != len(self._lines):
            self._lines = lines
            self._commit()

    def clear_cart(self) -> None:
        self._lines = []
        self._commit()

    def quantity_of(self, item_id: str) -> int:
        index = self._index_of(item_id)
        return self._lines[index].quantity if index is not None else 0

    def get_cart_item_count(self) -> int:
        """Total portions across all lines."""
        return sum(line.quantity for line in self._lines)

    def get_cart_total(self) -> Decimal:
        """Sum of unit price times quantity across all lines."""
        return sum((line.line_total for line in self._lines), Decimal("0"))

    def check_order_limit(self, item: CartItem, quantity: int) -> OrderLimitCheck:
        """Check an addition against the menu's remaining inventory.

        Advisory only: the server decides whether the order is accepted.
        """
        in_cart = self.quantity_of(item.id)
        available = item.remaining_orders - in_cart
        if in_cart + quantity > item.remaining_orders:
            return OrderLimitCheck(
                allowed=False,
                in_cart=in_cart,
                available=max(available, 0),
                message=(
                    f"You can only order up to {item.remaining_orders} items. "
                    f"Currently {available} available."
                ),
            )
        return OrderLimitCheck(allowed=True, in_cart=in_cart, available=available)

    def reconcile_inventory(self, menus: Iterable[MenuItem]) -> list[str]:
        """Bring cart lines in line with freshly fetched inventory.

        Lines whose menu is listed get their ``remaining_orders`` snapshot
        refreshed; quantities above it are clamped, and lines with nothing
        left are removed. Menus missing from the listing are left alone.

        Args:
            menus: Menus from the latest listing

        Returns:
            Names of the lines whose quantity was reduced or removed
        """
        remaining = {menu.id: menu.remaining_orders for menu in menus}
        adjusted: list[str] = []
        changed = False
        lines: list[CartLine] = []

        for line in self._lines:
            if line.id not in remaining:
                lines.append(line)
                continue

            left = remaining[line.id]
            if left <= 0:
                adjusted.append(line.name)
                changed = True
                continue

            update: dict[str, int] = {}
            if line.remaining_orders != left:
                update["remaining_orders"] = left
            if line.quantity > left:
                update["quantity"] = left
                adjusted.append(line.name)
            if update:
                changed = True
                line = line.model_copy(update=update)
            lines.append(line)

        if changed:
            self._lines = lines
            self._commit()
        if adjusted:
            logger.info(f"Cart adjusted to current inventory: {', '.join(adjusted)}")
        return adjusted

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener called with the lines after every change.

        Returns:
            A function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _index_of(self, item_id: str, lines: list[CartLine] | None = None) -> int | None:
        for i, line in enumerate(self._lines if lines is None else lines):
            if line.id == item_id:
                return i
        return None

    def _commit(self) -> None:
        if self.loaded:
            records = [line.to_storage() for line in self._lines]
            if not self.storage.set_item(CART_STORAGE_KEY, records):
                logger.warning("Cart was not persisted and will not survive a restart")
        self._notify()

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)
