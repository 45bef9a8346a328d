"""Result objects returned by screen flows."""

from dataclasses import dataclass
from typing import Any, Self

from moms_kitchen_client.exceptions import ApiError, AuthenticationError, KitchenClientError


@dataclass(frozen=True)
class Notice:
    """User-visible alert.

    Attributes:
        title: Short alert title
        message: Alert body
    """

    title: str
    message: str


@dataclass
class ActionResult:
    """Outcome of a user action on a screen.

    Attributes:
        success: Whether the action completed
        notice: Alert to show the user, if any
        data: Payload for the screen (e.g. loaded menus), if any
        navigate_to: Screen to move to on success, None to stay
    """

    success: bool
    notice: Notice | None = None
    data: Any = None
    navigate_to: str | None = None

    @property
    def message(self) -> str | None:
        return self.notice.message if self.notice else None

    @classmethod
    def failed(cls, title: str, message: str, **kwargs: Any) -> Self:
        return cls(success=False, notice=Notice(title=title, message=message), **kwargs)

    @classmethod
    def from_error(cls, error: KitchenClientError, title: str, fallback: str, **kwargs: Any) -> Self:
        """Translate a client error into a failed result.

        Validation messages are shown as-is, server messages are passed
        through verbatim, and anything else falls back to a generic message.
        An expired session sends the user back to login.
        """
        if isinstance(error, AuthenticationError):
            return cls(
                success=False,
                notice=Notice(title="Session Expired", message="Please log in again."),
                navigate_to="Login",
                **kwargs,
            )
        if isinstance(error, ApiError):
            return cls.failed(title, error.server_message or fallback, **kwargs)
        return cls.failed(title, error.message, **kwargs)


@dataclass
class CheckoutResult(ActionResult):
    """Outcome of a checkout attempt.

    Attributes:
        request_sent: Whether an order request reached the network
        payment_intent_id: Payment handle for online checkouts
    """

    request_sent: bool = False
    payment_intent_id: str | None = None
