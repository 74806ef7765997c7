"""Session coordinator: single-flight token refresh with ordered replay"""

import asyncio
import gc
from typing import Optional

import httpx
import pytest

from commerce.errors import AuthorizationError, SessionExpiredError, TransientError
from storefront_client.core.config import ClientSettings
from storefront_client.core.session import Session, SessionCoordinator


class FakeAuthServer:
    """Accepts only the token issued by the latest refresh"""

    def __init__(self, refresh_status: int = 200, reject_refreshed: bool = False):
        self.valid_token: Optional[str] = None
        self.refresh_status = refresh_status
        self.reject_refreshed = reject_refreshed
        self.refresh_calls = 0
        self.served: list[tuple[str, str]] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0)

        if request.url.path == "/api/auth/refresh-token":
            self.refresh_calls += 1
            await asyncio.sleep(0.01)
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"detail": "Invalid refresh token"})
            self.valid_token = f"fresh-{self.refresh_calls}"
            return httpx.Response(200, json={"accessToken": self.valid_token})

        if request.url.path == "/api/auth/login":
            self.valid_token = "login-token"
            return httpx.Response(200, json={"accessToken": self.valid_token, "user": {"id": "user-001"}})

        if request.url.path == "/api/auth/logout":
            return httpx.Response(200, json={"message": "Logged out"})

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token != self.valid_token or self.reject_refreshed:
            return httpx.Response(401, json={"detail": "Invalid or expired access token"})

        self.served.append((request.url.params["n"], token))
        return httpx.Response(200, json={"n": request.url.params["n"]})


def make_coordinator(handler, token: Optional[str] = "expired") -> SessionCoordinator:
    return SessionCoordinator(
        settings=ClientSettings(api_base_url="http://storefront.test"),
        session=Session(access_token=token),
        transport=httpx.MockTransport(handler),
    )


async def fire(coordinator: SessionCoordinator, count: int = 5):
    return await asyncio.gather(
        *[coordinator.request("GET", "/api/orders", params={"n": str(i)}) for i in range(count)],
        return_exceptions=True,
    )


async def until(predicate, limit: int = 1000):
    for _ in range(limit):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class TestConcurrentRefresh:
    async def test_one_refresh_for_concurrent_401s(self):
        server = FakeAuthServer()
        coordinator = make_coordinator(server)

        results = await fire(coordinator)

        assert server.refresh_calls == 1
        assert [r.status_code for r in results] == [200] * 5
        assert server.served == [(str(i), "fresh-1") for i in range(5)]
        assert coordinator.session.access_token == "fresh-1"
        assert not coordinator.is_refreshing
        await coordinator.close()

    async def test_refresh_failure_fails_every_call(self):
        server = FakeAuthServer(refresh_status=401)
        coordinator = make_coordinator(server)

        results = await fire(coordinator)

        assert server.refresh_calls == 1
        assert all(isinstance(r, SessionExpiredError) for r in results)
        assert not coordinator.session.is_authenticated
        assert server.served == []
        await coordinator.close()

    async def test_second_401_is_not_requeued(self):
        server = FakeAuthServer(reject_refreshed=True)
        coordinator = make_coordinator(server)

        results = await fire(coordinator, count=3)

        assert server.refresh_calls == 1
        assert all(isinstance(r, AuthorizationError) for r in results)
        assert not any(isinstance(r, SessionExpiredError) for r in results)
        await coordinator.close()

    async def test_later_calls_use_refreshed_token(self):
        server = FakeAuthServer()
        coordinator = make_coordinator(server)

        await fire(coordinator, count=2)
        response = await coordinator.request("GET", "/api/orders", params={"n": "late"})

        assert response.status_code == 200
        assert server.refresh_calls == 1
        assert server.served[-1] == ("late", "fresh-1")
        await coordinator.close()

    async def test_refresh_with_malformed_body_expires_session(self):
        server = FakeAuthServer()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/auth/refresh-token":
                server.refresh_calls += 1
                return httpx.Response(200, json=["not", "an", "object"])
            return await server(request)

        coordinator = make_coordinator(handler, token="old")

        results = await fire(coordinator, count=3)

        assert server.refresh_calls == 1
        assert all(isinstance(r, SessionExpiredError) for r in results)
        assert not coordinator.session.is_authenticated
        assert not coordinator.is_refreshing
        await coordinator.close()

    async def test_unexpected_refresh_error_expires_session(self):
        server = FakeAuthServer()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/auth/refresh-token":
                raise RuntimeError("refresh endpoint blew up")
            return await server(request)

        coordinator = make_coordinator(handler)

        results = await fire(coordinator, count=3)

        assert all(isinstance(r, SessionExpiredError) for r in results)
        assert isinstance(results[0].__cause__, RuntimeError)
        assert not coordinator.session.is_authenticated
        assert coordinator.pending_calls == 0
        await coordinator.close()

    # ========================================================================
    # Calls rejected while a refresh cycle is already running
    # ========================================================================

    async def test_call_rejected_mid_refresh_is_replayed_last(self):
        server = FakeAuthServer()
        release_refresh = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/auth/refresh-token":
                await release_refresh.wait()
            return await server(request)

        coordinator = make_coordinator(handler)
        first_wave = asyncio.ensure_future(fire(coordinator))
        await until(lambda: coordinator.pending_calls == 5)

        late = asyncio.ensure_future(
            coordinator.request("GET", "/api/orders", params={"n": "5"})
        )
        await until(lambda: coordinator.pending_calls == 6)
        assert coordinator.is_refreshing

        release_refresh.set()
        results = await first_wave
        late_response = await late

        assert server.refresh_calls == 1
        assert [r.status_code for r in results] == [200] * 5
        assert late_response.json() == {"n": "5"}
        assert server.served == [(str(i), "fresh-1") for i in range(6)]
        await coordinator.close()

    async def test_call_rejected_during_replay_is_replayed_once(self):
        server = FakeAuthServer()
        replaying = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.headers.get("Authorization") == "Bearer fresh-1":
                replaying.set()
            elif request.url.params.get("n") == "slow":
                # Old-token rejection held back until replay has begun
                await replaying.wait()
            return await server(request)

        coordinator = make_coordinator(handler)

        results = await asyncio.gather(
            fire(coordinator, count=3),
            coordinator.request("GET", "/api/orders", params={"n": "slow"}),
        )

        assert server.refresh_calls == 1
        assert [r.status_code for r in results[0]] == [200] * 3
        assert results[1].json() == {"n": "slow"}
        assert server.served == [("0", "fresh-1"), ("1", "fresh-1"), ("2", "fresh-1"), ("slow", "fresh-1")]
        await coordinator.close()

    # ========================================================================
    # Callers that give up while parked
    # ========================================================================

    async def test_cancelled_caller_is_not_replayed(self):
        server = FakeAuthServer()
        release_refresh = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/auth/refresh-token":
                await release_refresh.wait()
            return await server(request)

        coordinator = make_coordinator(handler)
        abandoned = asyncio.ensure_future(coordinator.request("GET", "/api/orders", params={"n": "0"}))
        kept = asyncio.ensure_future(coordinator.request("GET", "/api/orders", params={"n": "1"}))
        await until(lambda: coordinator.pending_calls == 2)

        abandoned.cancel()
        release_refresh.set()
        response = await kept

        assert response.status_code == 200
        assert abandoned.cancelled()
        assert server.served == [("1", "fresh-1")]
        await coordinator.close()

    async def test_cancelled_caller_leaves_no_unretrieved_error(self):
        server = FakeAuthServer(refresh_status=401)
        release_refresh = asyncio.Event()
        unhandled = []

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/auth/refresh-token":
                await release_refresh.wait()
            return await server(request)

        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda loop, context: unhandled.append(context))
        try:
            coordinator = make_coordinator(handler)
            abandoned = asyncio.ensure_future(coordinator.request("GET", "/api/orders", params={"n": "0"}))
            kept = asyncio.ensure_future(coordinator.request("GET", "/api/orders", params={"n": "1"}))
            await until(lambda: coordinator.pending_calls == 2)

            abandoned.cancel()
            release_refresh.set()
            with pytest.raises(SessionExpiredError):
                await kept
            await until(lambda: not coordinator.is_refreshing)

            del abandoned
            gc.collect()
            assert unhandled == []
            await coordinator.close()
        finally:
            loop.set_exception_handler(None)


class TestSingleCalls:
    async def test_authorized_call_passes_through(self):
        server = FakeAuthServer()
        server.valid_token = "good"
        coordinator = make_coordinator(server, token="good")

        response = await coordinator.request("GET", "/api/orders", params={"n": "1"})

        assert response.json() == {"n": "1"}
        assert server.refresh_calls == 0
        await coordinator.close()

    async def test_non_auth_errors_returned_as_is(self):
        coordinator = make_coordinator(
            lambda request: httpx.Response(404, json={"detail": "Order not found"}), token="good"
        )
        response = await coordinator.request("GET", "/api/orders/missing")
        assert response.status_code == 404
        assert coordinator.refresh_count == 0
        await coordinator.close()

    async def test_refresh_completed_while_in_flight(self):
        server = FakeAuthServer()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.headers["Authorization"] == "Bearer old":
                # Another call refreshed the session while this one was on the wire
                server.valid_token = "newer"
                coordinator.session.access_token = "newer"
            return await server(request)

        coordinator = make_coordinator(handler, token="old")

        response = await coordinator.request("GET", "/api/orders", params={"n": "1"})

        assert response.status_code == 200
        assert server.refresh_calls == 0
        assert server.served == [("1", "newer")]
        await coordinator.close()

    async def test_timeout_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        coordinator = make_coordinator(handler)
        with pytest.raises(TransientError):
            await coordinator.request("GET", "/api/cart")
        await coordinator.close()


class TestLogin:
    async def test_login_and_logout(self):
        server = FakeAuthServer()
        coordinator = make_coordinator(server, token=None)

        session = await coordinator.login("demo@storefront.test", "demo-password")
        assert session.access_token == "login-token"
        assert session.user == {"id": "user-001"}

        await coordinator.logout()
        assert not coordinator.session.is_authenticated
        await coordinator.close()

    async def test_bad_credentials(self):
        coordinator = make_coordinator(lambda request: httpx.Response(401, json={"detail": "no"}), token=None)
        with pytest.raises(AuthorizationError):
            await coordinator.login("demo@storefront.test", "wrong")
        await coordinator.close()
