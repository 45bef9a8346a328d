"""User profile, address and preference operations."""

import logging
from typing import Any

from moms_kitchen_client.auth.session_store import SessionStore
from moms_kitchen_client.auth.validators import validate_address_fields, validate_preferences
from moms_kitchen_client.models.session_models import Address, UserProfile
from moms_kitchen_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)


class UserService:
    """Client for the ``/api/users`` endpoints."""

    def __init__(self, api_client: ApiClient, session_store: SessionStore) -> None:
        """Initialize the UserService.

        Args:
            api_client: Client for backend calls
            session_store: Store receiving the fetched profile
        """
        self.api_client = api_client
        self.session_store = session_store

    async def get_profile(self) -> UserProfile:
        """Fetch the profile with addresses and preferences and store it.

        The server nests the user record under ``data.user`` with addresses
        and preferences alongside it; they are merged into one profile.
        """
        body = await self.api_client.get("/api/users/me")
        data = body.get("data") or {}
        user_data = dict(data["user"]) if isinstance(data.get("user"), dict) else dict(data)
        for key in ("addresses", "preferences"):
            if key in data and key not in user_data:
                user_data[key] = data[key]

        profile = UserProfile.model_validate(user_data)
        self.session_store.set_user(profile)
        return profile

    async def update_profile(self, **fields: Any) -> dict[str, Any]:
        """Update profile fields such as name or email."""
        return await self.api_client.put("/api/users/me", json=fields)

    async def get_addresses(self) -> list[Address]:
        profile = await self.get_profile()
        return profile.addresses

    async def get_default_address(self) -> Address | None:
        """The address checkout delivers to, if one is flagged default."""
        profile = await self.get_profile()
        return profile.default_address

    async def add_address(self, address_line: str, city: str, state: str, pincode: str) -> dict[str, Any]:
        """Validate and add a delivery address.

        Raises:
            InputValidationError: If a field is missing or the pincode is not six digits
        """
        payload = validate_address_fields(address_line, city, state, pincode)
        body = await self.api_client.post("/api/users/addresses", json=payload)
        logger.info("Address added")
        return body.get("data") or {}

    async def update_address(self, address_id: str, address_line: str, city: str, state: str, pincode: str) -> dict[str, Any]:
        payload = validate_address_fields(address_line, city, state, pincode)
        body = await self.api_client.put(f"/api/users/addresses/{address_id}", json=payload)
        return body.get("data") or {}

    async def toggle_default_address(self, address_id: str) -> dict[str, Any]:
        """Flip the default flag of an address."""
        body = await self.api_client.patch(f"/api/users/addresses/{address_id}")
        return body.get("data") or {}

    async def delete_address(self, address_id: str) -> None:
        await self.api_client.delete(f"/api/users/addresses/{address_id}")
        logger.info(f"Address {address_id} deleted")

    async def save_preferences(self, veg_pref: str, authenticity: str, fav_dishes: str | None = None) -> None:
        """Validate and save dietary preferences."""
        payload = validate_preferences(veg_pref, authenticity, fav_dishes)
        await self.api_client.post("/api/users/preferences", json=payload)
