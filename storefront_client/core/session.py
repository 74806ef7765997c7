"""
Session management for the storefront client

The Session holds the signed-in user's access token. The SessionCoordinator
is the only code that sends authenticated requests or mutates the Session:
when calls fail with 401 it runs a single refresh and replays every parked
call, in arrival order, with the new token.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from commerce.errors import AuthorizationError, CommerceError, SessionExpiredError, TransientError

from .config import ClientSettings, get_client_settings

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Signed-in user state"""
    access_token: Optional[str] = None
    user: Optional[dict] = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def clear(self) -> None:
        self.access_token = None
        self.user = None


@dataclass
class PendingCall:
    """An API call, kept so it can be replayed after a refresh"""
    method: str
    path: str
    json: Any = None
    params: Optional[dict] = None
    future: Optional[asyncio.Future] = field(default=None, repr=False)


class SessionCoordinator:
    """
    Sends API calls with the current access token and refreshes it on 401.

    At most one refresh is in flight. Calls that fail while it runs are
    parked in arrival order; after a successful refresh each is retried
    exactly once, one after another. A failed refresh fails every parked
    call and clears the session. A retried call that gets another 401 fails
    with AuthorizationError instead of being parked again.

    Usage:
        coordinator = SessionCoordinator()
        await coordinator.login("demo@storefront.test", "demo-password")
        response = await coordinator.request("GET", "/api/cart")
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        session: Optional[Session] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_client_settings()
        self.session = session or Session()
        self._http_client = httpx.AsyncClient(
            base_url=self.settings.api_base_url.rstrip("/"),
            timeout=self.settings.request_timeout,
            transport=transport,
        )
        self._refreshing = False
        self._waiters: deque[PendingCall] = deque()
        self._refresh_task: Optional[asyncio.Task] = None
        self.refresh_count = 0

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending_calls(self) -> int:
        """Calls parked until the running refresh settles"""
        return len(self._waiters)

    # ==================== Transport ====================

    async def _send(self, call: PendingCall, token: Optional[str]) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            return await self._http_client.request(
                call.method,
                call.path,
                json=call.json,
                params=call.params,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise TransientError(f"{call.method} {call.path} timed out") from e
        except httpx.TransportError as e:
            raise TransientError(f"{call.method} {call.path} failed: {e}") from e

    # ==================== Authenticated calls ====================

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> httpx.Response:
        """
        Send an authenticated call.

        Returns the response of the first attempt or of the single retry.
        Status codes other than 401 are returned as-is.

        Raises:
            TransientError: timeout or network failure
            AuthorizationError: the call was rejected again after a refresh
            SessionExpiredError: the refresh failed
        """
        call = PendingCall(method=method, path=path, json=json, params=params)
        token = self.session.access_token

        response = await self._send(call, token)
        if response.status_code != 401:
            return response

        if not self._refreshing and token is not None and token != self.session.access_token:
            # A refresh finished while this call was in flight
            if not self.session.is_authenticated:
                raise SessionExpiredError("Session expired, please sign in again")
            return self._check_retry(call, await self._send(call, self.session.access_token))

        call.future = asyncio.get_running_loop().create_future()
        self._waiters.append(call)

        if not self._refreshing:
            self._refreshing = True
            self._refresh_task = asyncio.create_task(self._refresh_and_release())

        # A parked call resolves or fails together with the refresh
        try:
            return await asyncio.shield(call.future)
        except asyncio.CancelledError:
            # Caller went away: withdraw the call so it is neither replayed nor failed
            call.future.cancel()
            raise

    def _check_retry(self, call: PendingCall, response: httpx.Response) -> httpx.Response:
        if response.status_code == 401:
            logger.warning(f"{call.method} {call.path} rejected again after token refresh")
            raise AuthorizationError(f"{call.method} {call.path} is not authorized")
        return response

    async def _refresh_and_release(self) -> None:
        try:
            try:
                await self.refresh()
            except CommerceError as e:
                self._fail_waiters(e)
                return
            except Exception as e:
                logger.exception("Token refresh crashed")
                self.session.clear()
                expired = SessionExpiredError("Session expired, please sign in again")
                expired.__cause__ = e
                self._fail_waiters(expired)
                return

            while self._waiters:
                call = self._waiters.popleft()
                if call.future.done():
                    continue
                try:
                    response = self._check_retry(
                        call, await self._send(call, self.session.access_token)
                    )
                except Exception as e:
                    if not call.future.done():
                        call.future.set_exception(e)
                else:
                    if not call.future.done():
                        call.future.set_result(response)
        finally:
            self._refreshing = False
            # Nothing parked may be left waiting once the cycle ends
            self._fail_waiters(TransientError("Call could not be replayed after token refresh"))

    def _fail_waiters(self, error: CommerceError) -> None:
        while self._waiters:
            call = self._waiters.popleft()
            if not call.future.done():
                call.future.set_exception(error)

    # ==================== Session lifecycle ====================

    async def refresh(self) -> str:
        """
        Exchange the refresh cookie for a new access token.

        Clears the session when the refresh is rejected or cannot be sent.
        """
        self.refresh_count += 1
        try:
            response = await self._http_client.post(self.settings.refresh_path)
        except httpx.HTTPError as e:
            logger.warning(f"Token refresh failed: {e}")
            self.session.clear()
            raise TransientError("Token refresh could not be completed") from e

        token = None
        if response.status_code == 200:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("accessToken"), str):
                token = body["accessToken"]
            else:
                logger.warning("Token refresh returned no access token")

        if not token:
            logger.warning(f"Token refresh rejected: {response.status_code}")
            self.session.clear()
            raise SessionExpiredError("Session expired, please sign in again")

        self.session.access_token = token
        logger.info("Access token refreshed")
        return self.session.access_token

    async def login(self, email: str, password: str) -> Session:
        """Sign in; the refresh cookie is kept by the HTTP client"""
        try:
            response = await self._http_client.post(
                self.settings.login_path,
                json={"email": email, "password": password},
            )
        except httpx.HTTPError as e:
            raise TransientError(f"Login failed: {e}") from e

        if response.status_code != 200:
            raise AuthorizationError("Invalid email or password")

        data = response.json()
        self.session.access_token = data["accessToken"]
        self.session.user = data.get("user")
        logger.info(f"Signed in as {email}")
        return self.session

    async def logout(self) -> None:
        """Sign out and forget the session"""
        try:
            await self._http_client.post(self.settings.logout_path)
        except httpx.HTTPError as e:
            logger.warning(f"Logout request failed: {e}")
        finally:
            self.session.clear()
            self._http_client.cookies.clear()
