"""HTTP client for the Mom's Kitchen backend.

Every request carries the bearer token from the session store and the role
marker header. A 401 triggers one token refresh shared by all requests that
fail while it is in flight; those requests wait in a FIFO queue and are
replayed with the new token once the refresh settles.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from moms_kitchen_client.auth.session_store import SessionStore
from moms_kitchen_client.exceptions import (
    GENERIC_NETWORK_MESSAGE,
    ApiError,
    AuthenticationError,
    extract_server_message,
)
from moms_kitchen_client.observability import traced
from moms_kitchen_client.observability.metrics import record_api_call, record_token_refresh

logger = logging.getLogger(__name__)

REFRESH_PATH = "/api/auth/refresh"
ROLE_HEADER = "x-user-role"
DEFAULT_ROLE = "customer"


class ApiClient:
    """Backend client with transparent, single-flighted token refresh."""

    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        role: str = DEFAULT_ROLE,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the API client.

        Args:
            base_url: Backend base URL (e.g., "http://localhost:8000")
            session_store: Source of tokens, updated on refresh and logout
            role: Value sent in the role marker header
            http_client: Optional shared client; when omitted a client is
                opened per request
        """
        self.base_url = base_url.rstrip("/")
        self.session_store = session_store
        self.role = role
        self._http_client = http_client
        self._refreshing = False
        self._waiters: deque[asyncio.Future[str]] = deque()

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending_waiters(self) -> int:
        return len(self._waiters)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> dict[str, Any]:
        return await self.request("DELETE", path)

    @traced("api_request")
    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send an authenticated request and decode its JSON body.

        Args:
            method: HTTP method
            path: Path relative to the base URL (e.g., "/api/menus")
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded response body (empty dict for empty bodies)

        Raises:
            AuthenticationError: If the request is unauthorized and the
                session could not be refreshed
            ApiError: For any other failed request
        """
        return await self._send(method, path, json=json, params=params, retried=False)

    async def _send(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None,
        params: dict[str, Any] | None,
        retried: bool,
    ) -> dict[str, Any]:
        response = await self._transport(method, path, json=json, params=params, headers=self._build_headers())
        payload = self._decode(response)

        if response.status_code == 401 and not retried:
            return await self._handle_unauthorized(method, path, json, params, payload)

        if response.status_code >= 400:
            message = extract_server_message(payload) or f"Request failed with status {response.status_code}"
            error_cls = AuthenticationError if response.status_code == 401 else ApiError
            raise error_cls(message, status_code=response.status_code, payload=payload)

        return payload

    async def _handle_unauthorized(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None,
        params: dict[str, Any] | None,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        refresh_token = self.session_store.refresh_token
        message = extract_server_message(payload) or "Unauthorized"

        if not refresh_token:
            logger.warning("Unauthorized with no refresh token, logging out")
            self.session_store.logout()
            raise AuthenticationError(message, status_code=401, payload=payload)

        if self._refreshing:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            await waiter
            return await self._send(method, path, json=json, params=params, retried=True)

        self._refreshing = True
        try:
            new_token = await self._refresh_access_token(refresh_token)
        except Exception as e:
            logger.error(f"Token refresh failed, logging out: {e}")
            record_token_refresh("failure")
            error = e if isinstance(e, AuthenticationError) else AuthenticationError(
                "Your session has expired. Please log in again.", status_code=401
            )
            self._settle_waiters(error=error)
            self.session_store.logout()
            if error is e:
                raise
            raise error from e
        else:
            record_token_refresh("success")
            self.session_store.set_access_token(new_token)
            self._settle_waiters(token=new_token)
        finally:
            self._refreshing = False
            if self._waiters:
                # Refresh was interrupted before it could settle the queue
                self._settle_waiters(error=AuthenticationError("Token refresh was interrupted", status_code=401))

        return await self._send(method, path, json=json, params=params, retried=True)

    async def _refresh_access_token(self, refresh_token: str) -> str:
        """Exchange the refresh token for a new access token.

        Sent without the bearer header and never itself refreshed.

        Raises:
            AuthenticationError: If the server rejects the refresh token
            ApiError: If the server fails or the response lacks a token
        """
        response = await self._transport(
            "POST",
            REFRESH_PATH,
            json={"refresh_token": refresh_token},
            params=None,
            headers={ROLE_HEADER: self.role},
        )
        payload = self._decode(response)

        if response.status_code >= 400:
            message = extract_server_message(payload) or "Your session has expired. Please log in again."
            raise AuthenticationError(message, status_code=response.status_code, payload=payload)

        data = payload.get("data") or {}
        access_token = data.get("accessToken") if isinstance(data, dict) else None
        if not access_token:
            raise ApiError("Refresh response did not include an access token", status_code=response.status_code)

        logger.info("Access token refreshed")
        return access_token

    def _settle_waiters(self, token: str | None = None, error: Exception | None = None) -> None:
        """Resolve or reject every queued waiter in the order they arrived."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token)

    def _build_headers(self) -> dict[str, str]:
        headers = {ROLE_HEADER: self.role}
        access_token = self.session_store.get_access_token()
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    @asynccontextmanager
    async def _open_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(base_url=self.base_url) as client:
                yield client

    async def _transport(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None,
        params: dict[str, Any] | None,
        headers: dict[str, str],
    ) -> httpx.Response:
        started = time.perf_counter()
        try:
            async with self._open_client() as client:
                return await client.request(method, path, json=json, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(GENERIC_NETWORK_MESSAGE) from e
        finally:
            record_api_call(method, path, time.perf_counter() - started)

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {"data": payload}
