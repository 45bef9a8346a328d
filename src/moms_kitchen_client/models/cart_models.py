"""Cart line models.

Prices are kept as the display strings the menu supplied (e.g. ``"₹120"``),
the same snapshot the cart was built from. Numeric values are derived on
demand.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, Field

_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_price(price: str | int | float | Decimal) -> Decimal:
    """Extract the numeric amount from a currency-prefixed price.

    Args:
        price: Price such as ``"₹120"``, ``"INR 120.00"`` or a plain number

    Returns:
        The amount as a Decimal, ``Decimal("0")`` when nothing numeric remains
    """
    cleaned = _NON_NUMERIC.sub("", str(price))
    try:
        return Decimal(cleaned) if cleaned else Decimal("0")
    except InvalidOperation:
        return Decimal("0")


class CartItem(BaseModel):
    """Menu snapshot added to the cart."""

    id: str = Field(..., description="Menu identifier")
    name: str = Field(..., description="Menu name")
    price: str = Field(..., description="Currency-prefixed price string")
    image: str | None = Field(None, description="Image reference")
    remaining_orders: int = Field(default=0, description="Inventory left when the snapshot was taken", ge=0)

    @property
    def unit_price(self) -> Decimal:
        return parse_price(self.price)


class CartLine(CartItem):
    """One distinct menu item and its accumulated quantity."""

    quantity: int = Field(..., description="Number of portions", ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump()


@dataclass
class OrderLimitCheck:
    """Outcome of the advisory inventory check before adding to the cart.

    Attributes:
        allowed: Whether the addition fits within ``remaining_orders``
        in_cart: Quantity of this menu already in the cart
        available: How many more portions may still be added
        message: User-facing explanation when not allowed
    """

    allowed: bool
    in_cart: int
    available: int
    message: str | None = None
