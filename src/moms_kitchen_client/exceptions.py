"""Exception types raised by the Mom's Kitchen client.

Services raise these for failures the calling screen flow has to report.
Handlers translate them into user-facing result objects.
"""

from typing import Any

GENERIC_NETWORK_MESSAGE = "Unable to reach the server. Please check your connection."


class KitchenClientError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(KitchenClientError):
    """Client-side validation failed; no request was sent."""


class ApiError(KitchenClientError):
    """A backend request failed.

    Attributes:
        message: Server-provided message when available, otherwise a generic one
        status_code: HTTP status code, None for transport failures
        payload: Decoded response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def server_message(self) -> str | None:
        """The backend's own ``message`` field, if the response carried one."""
        return extract_server_message(self.payload)


class AuthenticationError(ApiError):
    """Credentials are invalid and could not be refreshed.

    Raised after the session has been cleared.
    """


def extract_server_message(payload: Any) -> str | None:
    """Return the ``message`` string from a decoded error body, if present."""
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None
