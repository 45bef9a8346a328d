"""Menu data models.

These models represent menus as returned by ``GET /api/menus``. The backend
is loose about field names, so fallbacks are resolved here once rather than
in every screen flow.
"""

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from moms_kitchen_client.models.cart_models import CartItem, parse_price


class MenuItem(BaseModel):
    """Menu offered by a home kitchen."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"), description="Menu identifier")
    name: str = Field(default="Special Menu", description="Menu name")
    description: str = Field(default="Delicious homemade food.", description="Menu description")
    mom_name: str = Field(default="Unknown Mom", description="Cook's name")
    total_cost: Decimal = Field(default=Decimal("0"), description="Price per portion", ge=0)
    price: str | None = Field(None, description="Display price, derived from total_cost when absent")
    remaining_orders: int = Field(default=0, description="Portions still available", ge=0)
    image: str | None = Field(None, description="Image reference")
    items: list[Any] = Field(default_factory=list, description="Dishes included in the menu")

    @model_validator(mode="before")
    @classmethod
    def resolve_fallbacks(cls, data: Any) -> Any:
        """Fill fields the backend may send under alternate names."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        mom = data.get("mom_id")
        if not data.get("mom_name") and isinstance(mom, dict) and mom.get("name"):
            data["mom_name"] = mom["name"]

        if not data.get("remaining_orders"):
            data["remaining_orders"] = data.get("max_orders") or 0

        if not data.get("total_cost") and data.get("price"):
            data["total_cost"] = parse_price(data["price"])

        for key in ("name", "description", "mom_name"):
            if not data.get(key):
                data.pop(key, None)

        if data.get("image") is None and isinstance(data.get("menuImage"), str):
            data["image"] = data["menuImage"]

        return data

    @property
    def display_price(self) -> str:
        return self.price or f"₹{self.total_cost}"

    def to_cart_item(self) -> CartItem:
        """Snapshot this menu for the cart."""
        return CartItem(
            id=self.id,
            name=self.name,
            price=f"₹{self.total_cost}",
            image=self.image,
            remaining_orders=self.remaining_orders,
        )
