"""Base adapter for payment confirmation UIs.

The payment sheet itself belongs to the payment provider's SDK. The checkout
flow only needs to hand it a client secret and learn how the user left it,
so concrete adapters wrap whichever SDK the host application embeds.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class PaymentSheetStatus(str, Enum):
    """How the payment confirmation step ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass
class PaymentSheetResult:
    """Outcome of presenting the payment sheet.

    Attributes:
        status: How the step ended
        error_message: Provider message for failures and cancellations
    """

    status: PaymentSheetStatus
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is PaymentSheetStatus.COMPLETED


class PaymentSheetAdapter(ABC):
    """Abstract payment confirmation step.

    Implementations report failures through PaymentSheetResult rather than
    raising, so the checkout flow can notify the server before surfacing the
    error. Exceptions are reserved for unexpected errors.
    """

    def __init__(self, merchant_display_name: str = "Mom's Kitchen") -> None:
        """Initialize the adapter.

        Args:
            merchant_display_name: Merchant name shown on the sheet
        """
        self.merchant_display_name = merchant_display_name

    @abstractmethod
    async def confirm_payment(self, client_secret: str) -> PaymentSheetResult:
        """Initialize and present the payment sheet for a payment intent.

        Args:
            client_secret: Client secret issued with the order's payment intent

        Returns:
            PaymentSheetResult describing how the user left the sheet
        """
        pass
