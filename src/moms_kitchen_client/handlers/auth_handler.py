"""Login, OTP, signup and logout screens."""

import logging

from moms_kitchen_client.exceptions import KitchenClientError
from moms_kitchen_client.models.result_models import ActionResult
from moms_kitchen_client.services.auth_service import AuthService

logger = logging.getLogger(__name__)


class AuthHandler:
    """Screen actions for authentication.

    Errors are shown inline, so results carry the message under the
    ``"Error"`` title.
    """

    def __init__(self, auth_service: AuthService) -> None:
        self.auth_service = auth_service

    async def send_otp(self, phone_number: str) -> ActionResult:
        try:
            await self.auth_service.send_otp(phone_number)
        except KitchenClientError as e:
            return ActionResult.from_error(e, "Error", "Failed to send OTP")
        return ActionResult(success=True, navigate_to="Otp", data={"phone": phone_number})

    async def verify_otp(self, phone_number: str, code: str) -> ActionResult:
        """Verify the OTP and route new users to the preferences screen."""
        try:
            user = await self.auth_service.login(phone_number, code)
        except KitchenClientError as e:
            logger.error(f"OTP verification failed: {e}")
            return ActionResult.from_error(e, "Error", "Failed to verify OTP")

        next_screen = "Main" if user is not None and user.is_active else "Preferences"
        return ActionResult(success=True, navigate_to=next_screen, data=user)

    async def signup(self, name: str, phone_number: str) -> ActionResult:
        try:
            await self.auth_service.signup(name, phone_number)
        except KitchenClientError as e:
            return ActionResult.from_error(e, "Error", "Failed to sign up")
        return ActionResult(success=True, navigate_to="Otp", data={"phone": phone_number})

    async def logout(self) -> ActionResult:
        await self.auth_service.logout()
        return ActionResult(success=True, navigate_to="Login")
