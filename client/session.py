"""Async API client with transparent session refresh.

The server keeps the session in HttpOnly cookies, so the client only has to
hold a cookie jar. When a request comes back 401 the client refreshes the
session once and replays the request. Concurrent 401s share the same
in-flight refresh.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"


class SessionExpired(Exception):
    """The session could not be refreshed; the user has to log in again."""


class ApiClient:
    """HTTP client for the Real Estate API.

    `on_session_expired` is called (sync or async) when a refresh fails, before
    `SessionExpired` is raised. A UI would send the user to its login screen there.
    """

    def __init__(
        self,
        base_url: str,
        *,
        on_session_expired: Callable[[], Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | httpx.Timeout = 10.0,
        login_path: str = LOGIN_PATH,
        refresh_path: str = REFRESH_PATH,
        logout_path: str = LOGOUT_PATH,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._on_session_expired = on_session_expired
        self._refresh_task: asyncio.Task | None = None
        self.login_path = login_path
        self.refresh_path = refresh_path
        self.logout_path = logout_path

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._http.cookies

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None

    def _is_auth_endpoint(self, url: str) -> bool:
        path = httpx.URL(url).path
        return path in (self.login_path, self.refresh_path)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request; on 401 refresh the session and replay it once."""
        response = await self._http.request(method, url, **kwargs)
        if response.status_code != 401 or self._is_auth_endpoint(url):
            return response

        await self.refresh()
        logger.debug("Retrying %s %s after session refresh", method, url)
        return await self._http.request(method, url, **kwargs)

    async def refresh(self) -> None:
        """Refresh the session, joining the in-flight refresh if there is one."""
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._run_refresh())
        try:
            # shield: a cancelled caller must not cancel the refresh others wait on
            await asyncio.shield(self._refresh_task)
        except httpx.HTTPError as exc:
            raise SessionExpired("Session expired, please log in again") from exc

    async def _run_refresh(self) -> None:
        try:
            response = await self._http.post(self.refresh_path)
            response.raise_for_status()
        except httpx.HTTPError:
            logger.info("Session refresh failed")
            await self._session_expired()
            raise
        finally:
            self._refresh_task = None

    async def _session_expired(self) -> None:
        if self._on_session_expired is None:
            return
        result = self._on_session_expired()
        if asyncio.iscoroutine(result):
            await result

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def login(self, email: str, password: str) -> httpx.Response:
        return await self.post(self.login_path, json={"email": email, "password": password})

    async def logout(self) -> httpx.Response:
        return await self.post(self.logout_path)

    async def me(self) -> dict | None:
        """Current user, or None when there is no valid session."""
        try:
            response = await self.get("/users/me")
        except SessionExpired:
            return None
        if response.status_code != 200:
            return None
        return response.json().get("user")
