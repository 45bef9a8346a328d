"""Menu detail screen: pick a quantity and add it to the cart."""

from moms_kitchen_client.models.menu_models import MenuItem
from moms_kitchen_client.models.result_models import ActionResult, Notice
from moms_kitchen_client.services.cart_store import CartStore


class MenuDetailHandler:
    """Quantity stepper bounded by remaining inventory, plus add-to-cart."""

    def __init__(self, cart_store: CartStore, menu: MenuItem) -> None:
        self.cart_store = cart_store
        self.menu = menu
        self.quantity = 1

    def increment(self) -> int:
        if self.quantity < self.menu.remaining_orders:
            self.quantity += 1
        return self.quantity

    def decrement(self) -> int:
        if self.quantity > 1:
            self.quantity -= 1
        return self.quantity

    def add_to_cart(self) -> ActionResult:
        """Add the chosen quantity, unless it would exceed remaining inventory."""
        item = self.menu.to_cart_item()
        check = self.cart_store.check_order_limit(item, self.quantity)
        if not check.allowed:
            return ActionResult.failed("Order Limit Exceeded", check.message)

        line = self.cart_store.add_to_cart(item, self.quantity)
        return ActionResult(
            success=True,
            notice=Notice(title="Added to Cart", message=f"{self.quantity} x {self.menu.name} added to cart"),
            data=line,
        )
