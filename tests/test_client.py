"""Tests for the async API client and its refresh-and-retry behaviour."""

import asyncio
from collections import Counter

import httpx
import pytest

from client import ApiClient, SessionExpired
from tests.conftest import TEST_EMAIL, TEST_PASSWORD

BASE_URL = "http://testserver"


def flask_transport(flask_app, calls: Counter) -> httpx.MockTransport:
    """Route httpx requests into the Flask test client.

    The Flask client keeps no cookies of its own; the httpx jar is the only one.
    """
    flask_client = flask_app.test_client(use_cookies=False)

    def handler(request: httpx.Request) -> httpx.Response:
        calls[(request.method, request.url.path)] += 1
        headers = [
            (k, v) for k, v in request.headers.multi_items() if k.lower() not in ("host", "content-length")
        ]
        resp = flask_client.open(
            request.url.path,
            method=request.method,
            headers=headers,
            data=request.content,
        )
        return httpx.Response(resp.status_code, headers=resp.headers.to_wsgi_list(), content=resp.get_data())

    return httpx.MockTransport(handler)


class FakeServer:
    """Minimal server: /data needs cookie accessToken=fresh, /auth/refresh hands it out."""

    def __init__(self, refresh_status: int = 200, refresh_delay: float = 0.05, data_always_401: bool = False):
        self.calls = Counter()
        self.refresh_status = refresh_status
        self.refresh_delay = refresh_delay
        self.data_always_401 = data_always_401

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        if path == "/auth/refresh":
            await asyncio.sleep(self.refresh_delay)
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"message": "Invalid refresh token"})
            return httpx.Response(
                200, json={"message": "Token refreshed"}, headers={"Set-Cookie": "accessToken=fresh; Path=/"}
            )
        if path == "/auth/login":
            return httpx.Response(401, json={"message": "Invalid credentials"})
        if path == "/data":
            if not self.data_always_401 and "accessToken=fresh" in request.headers.get("cookie", ""):
                return httpx.Response(200, json={"ok": True})
            return httpx.Response(401, json={"message": "Authentication required"})
        return httpx.Response(404)

    def client(self, **kwargs) -> ApiClient:
        return ApiClient(BASE_URL, transport=httpx.MockTransport(self.handler), **kwargs)


class TestRetryAgainstApp:
    """Full flow against the Flask app."""

    @pytest.mark.asyncio
    async def test_expired_access_token_is_refreshed_and_retried(self, app, user_id):
        calls = Counter()
        async with ApiClient(BASE_URL, transport=flask_transport(app, calls)) as api:
            response = await api.login(TEST_EMAIL, TEST_PASSWORD)
            assert response.status_code == 200

            # The browser drops the access cookie once its Max-Age passes
            api.cookies.delete("accessToken")
            response = await api.get("/users/me")

        assert response.status_code == 200
        assert response.json()["user"]["email"] == TEST_EMAIL
        assert calls[("POST", "/auth/refresh")] == 1
        assert calls[("GET", "/users/me")] == 2

    @pytest.mark.asyncio
    async def test_logged_out_client_gets_session_expired(self, app, user_id):
        calls = Counter()
        expired = []
        async with ApiClient(
            BASE_URL, transport=flask_transport(app, calls), on_session_expired=lambda: expired.append(True)
        ) as api:
            await api.login(TEST_EMAIL, TEST_PASSWORD)
            await api.logout()

            with pytest.raises(SessionExpired):
                await api.get("/users/me")
            assert await api.me() is None

        assert expired == [True, True]

    @pytest.mark.asyncio
    async def test_failed_login_is_not_retried(self, app, user_id):
        calls = Counter()
        async with ApiClient(BASE_URL, transport=flask_transport(app, calls)) as api:
            response = await api.login(TEST_EMAIL, "wrong-password")

        assert response.status_code == 401
        assert calls[("POST", "/auth/refresh")] == 0


class TestRefreshCoalescing:
    @pytest.mark.asyncio
    async def test_concurrent_401s_share_one_refresh(self):
        server = FakeServer()
        async with server.client() as api:
            responses = await asyncio.gather(*(api.get("/data") for _ in range(3)))

        assert [r.status_code for r in responses] == [200, 200, 200]
        assert server.calls["/auth/refresh"] == 1
        assert server.calls["/data"] == 6

    @pytest.mark.asyncio
    async def test_refresh_slot_is_released(self):
        server = FakeServer()
        async with server.client() as api:
            await api.get("/data")
            assert not api.refreshing
            api.cookies.delete("accessToken")
            await api.get("/data")

        assert server.calls["/auth/refresh"] == 2

    @pytest.mark.asyncio
    async def test_failed_refresh_expires_session_once(self):
        server = FakeServer(refresh_status=401)
        expired = []
        async with server.client(on_session_expired=lambda: expired.append(True)) as api:
            results = await asyncio.gather(*(api.get("/data") for _ in range(2)), return_exceptions=True)

        assert all(isinstance(r, SessionExpired) for r in results)
        assert isinstance(results[0].__cause__, httpx.HTTPStatusError)
        assert server.calls["/auth/refresh"] == 1
        assert server.calls["/data"] == 2
        assert expired == [True]

    @pytest.mark.asyncio
    async def test_async_session_expired_callback(self):
        server = FakeServer(refresh_status=401)
        expired = []

        async def on_expired():
            expired.append(True)

        async with server.client(on_session_expired=on_expired) as api:
            with pytest.raises(SessionExpired):
                await api.get("/data")

        assert expired == [True]

    @pytest.mark.asyncio
    async def test_request_is_retried_at_most_once(self):
        server = FakeServer(data_always_401=True)
        async with server.client() as api:
            response = await api.get("/data")

        assert response.status_code == 401
        assert server.calls["/auth/refresh"] == 1
        assert server.calls["/data"] == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_refresh(self):
        server = FakeServer(refresh_delay=0.1)
        async with server.client() as api:
            first = asyncio.ensure_future(api.get("/data"))
            second = asyncio.ensure_future(api.get("/data"))
            await asyncio.sleep(0.02)
            first.cancel()
            response = await second

        assert response.status_code == 200
        assert server.calls["/auth/refresh"] == 1
