"""Session and user profile models.

The backend identifies documents with a Mongo-style ``_id`` field, so the
models accept either ``_id`` or ``id`` on input and expose ``id``.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Address(BaseModel):
    """Delivery address belonging to the current user."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"), description="Address identifier")
    address_line: str = Field(..., description="Street address")
    city: str = Field(..., description="City")
    state: str = Field(..., description="State")
    pincode: str = Field(..., description="6-digit postal code")
    is_default: bool = Field(default=False, description="Whether this is the default delivery address")

    def one_line(self) -> str:
        """Format the address the way the checkout screen shows it."""
        return f"{self.address_line}, {self.city}, {self.state} - {self.pincode}"


class UserProfile(BaseModel):
    """Profile returned by ``GET /api/users/me``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = Field(None, validation_alias=AliasChoices("_id", "id"))
    name: str | None = None
    phone_number: str | None = None
    email: str | None = None
    role: str | None = None
    is_active: bool | None = None
    addresses: list[Address] = Field(default_factory=list)
    preferences: dict[str, Any] | None = None

    @property
    def default_address(self) -> Address | None:
        """The address flagged as default, if any."""
        for address in self.addresses:
            if address.is_default:
                return address
        return None


class Session(BaseModel):
    """Credentials and profile for the signed-in user.

    An empty session (all fields None) means logged out.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    user: UserProfile | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def to_storage(self) -> dict[str, Any]:
        """Convert to the plain record persisted in local storage."""
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user": self.user.model_dump(mode="json") if self.user is not None else None,
        }

    @classmethod
    def from_storage(cls, record: dict[str, Any]) -> "Session":
        """Rebuild a session from a persisted record."""
        user_data = record.get("user")
        return cls(
            access_token=record.get("access_token"),
            refresh_token=record.get("refresh_token"),
            user=UserProfile.model_validate(user_data) if user_data else None,
        )
