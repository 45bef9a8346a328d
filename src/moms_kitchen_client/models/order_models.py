"""Order, payment and runtime settings models."""

import re
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from moms_kitchen_client.models.cart_models import CartLine

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DELIVERY_FEE = Decimal("30")
TAX_RATE = Decimal("0.15")


class PaymentMethod(str, Enum):
    """Checkout payment methods."""

    CASH_ON_DELIVERY = "cod"
    ONLINE = "online"

    @property
    def label(self) -> str:
        if self is PaymentMethod.ONLINE:
            return "Online Payment"
        return "Cash on Delivery"


class OrderingWindow(BaseModel):
    """Time-of-day interval during which ordering is permitted.

    Times are zero-padded 24-hour ``HH:MM`` strings and compare correctly as
    strings. Windows never wrap past midnight.
    """

    start: str = Field(..., description="Window start, HH:MM")
    end: str = Field(..., description="Window end, HH:MM")

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        """Validate zero-padded 24-hour format."""
        if not _HHMM.match(v):
            raise ValueError(f"time must be zero-padded HH:MM, got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "OrderingWindow":
        if self.start > self.end:
            raise ValueError("window start must not be after its end")
        return self

    def contains(self, hhmm: str) -> bool:
        return self.start <= hhmm <= self.end


class AppSettings(BaseModel):
    """Runtime configuration served by ``GET /api/settings``.

    ``None`` window lists mean the server did not configure them, which is
    distinct from an explicitly empty list only for logging purposes.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ordering_windows: list[OrderingWindow] | None = Field(
        None, validation_alias=AliasChoices("orderingWindows", "ordering_windows")
    )
    cancellation_windows: list[OrderingWindow] | None = Field(
        None, validation_alias=AliasChoices("cancellationWindows", "cancellation_windows")
    )

    @property
    def effective_cancellation_windows(self) -> list[OrderingWindow] | None:
        """Cancellation windows, falling back to ordering windows."""
        if self.cancellation_windows:
            return self.cancellation_windows
        return self.ordering_windows


class OrderLine(BaseModel):
    """One line of the checkout payload."""

    menu_id: str
    items: int = Field(..., ge=1, description="Quantity ordered")


class OrderPayload(BaseModel):
    """Body of ``POST /api/orders``."""

    orders: list[OrderLine]
    delivery_address_id: str
    special_instructions: str = ""

    @classmethod
    def from_cart(
        cls, lines: list[CartLine], delivery_address_id: str, special_instructions: str = ""
    ) -> "OrderPayload":
        """Build the payload from a cart snapshot, one line per distinct menu."""
        return cls(
            orders=[OrderLine(menu_id=line.id, items=line.quantity) for line in lines],
            delivery_address_id=delivery_address_id,
            special_instructions=special_instructions,
        )


class PaymentHandle(BaseModel):
    """Payment intent issued by the server for online checkout."""

    model_config = ConfigDict(populate_by_name=True)

    client_secret: str | None = Field(None, validation_alias=AliasChoices("clientSecret", "client_secret"))
    payment_intent_id: str | None = Field(
        None, validation_alias=AliasChoices("paymentIntentId", "payment_intent_id")
    )


class RefundBreakdown(BaseModel):
    """Estimated refund for cancelling a paid order.

    Display only: the server computes the actual refund after admin approval.
    """

    total_amount: Decimal
    penalty: Decimal
    refund: Decimal

    def describe(self) -> str:
        return (
            "Refund Breakdown:\n"
            f"• Total Amount: ₹{self.total_amount}\n"
            f"• Cancellation Penalty (Delivery + Tax): -₹{self.penalty}\n"
            f"• Estimated Refund: ₹{self.refund}\n\n"
            "The refund will be processed after admin approval."
        )


class Order(BaseModel):
    """Order as listed by ``GET /api/orders``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    status: str = "pending"
    payment_status: str | None = None
    total_amount: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    refund_amount: Decimal | None = None
    delivery_address: dict[str, Any] | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    def refund_breakdown(self) -> RefundBreakdown:
        """Estimate the refund: the total minus delivery fee and tax."""
        penalty = self.delivery_fee + self.tax
        return RefundBreakdown(
            total_amount=self.total_amount,
            penalty=penalty,
            refund=self.total_amount - penalty,
        )


class OrderSummary(BaseModel):
    """Price summary shown before checkout."""

    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal

    @classmethod
    def from_cart(cls, lines: list[CartLine]) -> "OrderSummary":
        subtotal = sum((line.line_total for line in lines), Decimal("0"))
        tax = subtotal * TAX_RATE
        return cls(
            subtotal=subtotal,
            delivery_fee=DELIVERY_FEE,
            tax=tax,
            total=subtotal + DELIVERY_FEE + tax,
        )
