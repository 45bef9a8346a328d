"""Profile, address and preference screens."""

import logging

from moms_kitchen_client.exceptions import KitchenClientError
from moms_kitchen_client.models.result_models import ActionResult, Notice
from moms_kitchen_client.services.user_service import UserService

logger = logging.getLogger(__name__)


class ProfileHandler:
    """Screen actions for the user's profile, addresses and preferences."""

    def __init__(self, user_service: UserService) -> None:
        self.user_service = user_service

    async def load_profile(self) -> ActionResult:
        try:
            profile = await self.user_service.get_profile()
        except KitchenClientError as e:
            logger.error(f"Profile load failed: {e}")
            return ActionResult.failed("Error", "Failed to load profile")
        return ActionResult(success=True, data=profile)

    async def update_profile(self, name: str, authenticity: str, food_type: str) -> ActionResult:
        try:
            await self.user_service.update_profile(
                name=name,
                preferences={"authenticity": authenticity, "food_type": food_type},
            )
        except KitchenClientError as e:
            logger.error(f"Profile update failed: {e}")
            return ActionResult.failed("Error", "Failed to update profile")
        return ActionResult(success=True, notice=Notice(title="Success", message="Profile updated successfully"))

    async def add_address(self, address_line: str, city: str, state: str, pincode: str) -> ActionResult:
        try:
            address = await self.user_service.add_address(address_line, city, state, pincode)
        except KitchenClientError as e:
            return ActionResult.from_error(e, "Address", "Failed to save address")
        return ActionResult(success=True, data=address, navigate_to="Success")

    async def toggle_default_address(self, address_id: str) -> ActionResult:
        try:
            address = await self.user_service.toggle_default_address(address_id)
        except KitchenClientError as e:
            return ActionResult.from_error(e, "Address", "Failed to update address")
        return ActionResult(success=True, data=address)

    async def delete_address(self, address_id: str) -> ActionResult:
        try:
            await self.user_service.delete_address(address_id)
        except KitchenClientError as e:
            return ActionResult.from_error(e, "Address", "Failed to delete address")
        return ActionResult(success=True)

    async def save_preferences(self, veg_pref: str, authenticity: str, fav_dishes: str | None = None) -> ActionResult:
        """Save preferences and continue to address entry."""
        try:
            await self.user_service.save_preferences(veg_pref, authenticity, fav_dishes)
        except KitchenClientError as e:
            return ActionResult.from_error(e, "Preferences", "Failed to save")
        return ActionResult(success=True, navigate_to="Address")
