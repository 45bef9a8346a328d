"""Authentication service: OTP login, signup and logout."""

import logging

from pydantic import ValidationError

from moms_kitchen_client.auth.session_store import SessionStore
from moms_kitchen_client.auth.validators import validate_name, validate_otp, validate_phone_number
from moms_kitchen_client.exceptions import ApiError
from moms_kitchen_client.models.session_models import UserProfile
from moms_kitchen_client.services.api_client import ApiClient

logger = logging.getLogger(__name__)


class AuthService:
    """Drives the OTP login flow and keeps the session store in sync.

    Validation errors are raised as InputValidationError before any request
    is sent; backend failures surface as ApiError.
    """

    def __init__(self, api_client: ApiClient, session_store: SessionStore) -> None:
        """Initialize the AuthService.

        Args:
            api_client: Client for backend calls
            session_store: Store receiving tokens on login
        """
        self.api_client = api_client
        self.session_store = session_store

    async def send_otp(self, phone_number: str) -> None:
        """Request an OTP for a phone number."""
        phone_number = validate_phone_number(phone_number)
        await self.api_client.post("/api/auth/send-otp", json={"phone_number": phone_number})
        logger.info("OTP requested")

    async def login(self, phone_number: str, otp: str) -> UserProfile | None:
        """Verify an OTP and start a session.

        Args:
            phone_number: Phone number the OTP was sent to
            otp: 6-digit code

        Returns:
            The user profile returned by the server, or None when it is
            missing or malformed

        Raises:
            InputValidationError: If the code is not six digits
            ApiError: If the server rejects the code or omits tokens
        """
        phone_number = validate_phone_number(phone_number)
        otp = validate_otp(otp)

        body = await self.api_client.post("/api/auth/login", json={"phone_number": phone_number, "otp": otp})
        data = body.get("data") or {}
        access_token = data.get("accessToken")
        refresh_token = data.get("refreshToken")
        if not access_token or not refresh_token:
            raise ApiError("Login response did not include tokens", payload=body)

        user = None
        if data.get("user"):
            try:
                user = UserProfile.model_validate(data["user"])
            except ValidationError as e:
                logger.warning(f"Ignoring malformed user profile in login response: {e}")
        self.session_store.login(access_token, refresh_token, user)
        return user

    async def signup(self, name: str, phone_number: str) -> None:
        """Create a customer account."""
        payload = {
            "name": validate_name(name),
            "phone_number": validate_phone_number(phone_number),
            "role": "customer",
        }
        await self.api_client.post("/api/auth/signup", json=payload)
        logger.info("Account created")

    async def logout(self) -> None:
        """End the session on the server, then clear it locally.

        The local session is cleared even if the server call fails.
        """
        try:
            if self.session_store.is_authenticated:
                await self.api_client.post("/api/auth/logout")
        except ApiError as e:
            logger.warning(f"Server logout failed, clearing local session anyway: {e}")
        finally:
            self.session_store.logout()
