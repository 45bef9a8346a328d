"""Unit tests for AuthService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from moms_kitchen_client.auth.session_store import SessionStore
from moms_kitchen_client.exceptions import ApiError, InputValidationError
from moms_kitchen_client.services.api_client import ApiClient
from moms_kitchen_client.services.auth_service import AuthService


@pytest.mark.unit
class TestAuthService:
    """Test suite for AuthService."""

    @pytest.fixture
    def mock_api_client(self) -> MagicMock:
        """Create a mock API client."""
        client = MagicMock(spec=ApiClient)
        client.post = AsyncMock(return_value={"success": True})
        return client

    @pytest.fixture
    def service(self, mock_api_client: MagicMock, session_store: SessionStore) -> AuthService:
        """Create an AuthService with a mock API client."""
        return AuthService(mock_api_client, session_store)

    @pytest.mark.asyncio
    async def test_send_otp(self, service: AuthService, mock_api_client: MagicMock) -> None:
        """Test requesting an OTP posts the trimmed phone number."""
        await service.send_otp(" 9876543210 ")

        mock_api_client.post.assert_awaited_once_with("/api/auth/send-otp", json={"phone_number": "9876543210"})

    @pytest.mark.asyncio
    async def test_send_otp_requires_phone(self, service: AuthService, mock_api_client: MagicMock) -> None:
        """Test no request is sent without a phone number."""
        with pytest.raises(InputValidationError):
            await service.send_otp("")

        mock_api_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_starts_session(
        self, service: AuthService, mock_api_client: MagicMock, session_store: SessionStore
    ) -> None:
        """Test a verified OTP stores both tokens and the user."""
        mock_api_client.post.return_value = {
            "success": True,
            "data": {
                "accessToken": "access-1",
                "refreshToken": "refresh-1",
                "user": {"_id": "u1", "name": "Asha", "is_active": True},
            },
        }

        user = await service.login("9876543210", "123456")

        mock_api_client.post.assert_awaited_once_with(
            "/api/auth/login", json={"phone_number": "9876543210", "otp": "123456"}
        )
        assert user.id == "u1"
        assert user.is_active is True
        assert session_store.get_access_token() == "access-1"
        assert session_store.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_login_rejects_short_otp(self, service: AuthService, mock_api_client: MagicMock) -> None:
        """Test malformed codes never reach the server."""
        with pytest.raises(InputValidationError, match="6-digit OTP"):
            await service.login("9876543210", "1234")

        mock_api_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_without_tokens(
        self, service: AuthService, mock_api_client: MagicMock, session_store: SessionStore
    ) -> None:
        """Test a response missing tokens does not start a session."""
        mock_api_client.post.return_value = {"success": True, "data": {"accessToken": "access-1"}}

        with pytest.raises(ApiError):
            await service.login("9876543210", "123456")

        assert session_store.is_authenticated is False

    @pytest.mark.asyncio
    async def test_login_keeps_tokens_when_user_is_malformed(
        self, service: AuthService, mock_api_client: MagicMock, session_store: SessionStore
    ) -> None:
        """Test a bad user record still signs in, without a profile."""
        mock_api_client.post.return_value = {
            "success": True,
            "data": {
                "accessToken": "access-1",
                "refreshToken": "refresh-1",
                "user": {"_id": "u1", "addresses": "12 MG Road", "is_active": "sometimes"},
            },
        }

        user = await service.login("9876543210", "123456")

        assert user is None
        assert session_store.is_authenticated is True
        assert session_store.get_access_token() == "access-1"
        assert session_store.refresh_token == "refresh-1"
        assert session_store.user is None

    @pytest.mark.asyncio
    async def test_signup(self, service: AuthService, mock_api_client: MagicMock) -> None:
        """Test signup registers a customer."""
        await service.signup("Asha", "9876543210")

        mock_api_client.post.assert_awaited_once_with(
            "/api/auth/signup", json={"name": "Asha", "phone_number": "9876543210", "role": "customer"}
        )

    @pytest.mark.asyncio
    async def test_logout(
        self, service: AuthService, mock_api_client: MagicMock, session_store: SessionStore
    ) -> None:
        """Test logout notifies the server and clears the session."""
        session_store.login("access-1", "refresh-1", None)

        await service.logout()

        mock_api_client.post.assert_awaited_once_with("/api/auth/logout")
        assert session_store.is_authenticated is False

    @pytest.mark.asyncio
    async def test_logout_clears_session_when_server_fails(
        self, service: AuthService, mock_api_client: MagicMock, session_store: SessionStore
    ) -> None:
        """Test the local session is cleared even if the server call fails."""
        session_store.login("access-1", "refresh-1", None)
        mock_api_client.post.side_effect = ApiError("Server error", status_code=500)

        await service.logout()

        assert session_store.is_authenticated is False

    @pytest.mark.asyncio
    async def test_logout_when_logged_out(self, service: AuthService, mock_api_client: MagicMock) -> None:
        """Test no server call is made without a session."""
        await service.logout()

        mock_api_client.post.assert_not_awaited()
