from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from vrc_group_tracker.configs.logging_config import get_logger
from vrc_group_tracker.errors import RemoteApiError
from vrc_group_tracker.utils.cancellation import CancellationToken

log = get_logger(__name__)


def basic_auth(username: str, password: str) -> httpx.BasicAuth:
    # The platform expects both halves URL-encoded before base64.
    return httpx.BasicAuth(quote(username, safe=""), quote(password, safe=""))


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return resp.reason_phrase


class SessionHttpClient:
    """
    Cookie-session HTTP client for the remote API.

    The session cookie set by the login call is kept in the httpx cookie jar
    and sent with every later request.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        token: CancellationToken,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.token = token
        self.session = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.session.headers["User-Agent"] = user_agent

    async def request(self, method: str, url: str, **kwargs) -> Any:
        self.token.raise_if_cancelled()
        log.debug("http.request method=%s url=%s", method, url)
        try:
            resp = await self.session.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            log.error("http.transport_error method=%s url=%s error=%s", method, url, str(exc))
            raise RemoteApiError(f"{method} {url} failed: {exc}", error_code=0) from exc
        self.token.raise_if_cancelled()

        if resp.is_error:
            message = _error_message(resp)
            log.error(
                "http.error method=%s url=%s status=%s message=%s",
                method,
                url,
                resp.status_code,
                message,
            )
            raise RemoteApiError(message, error_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteApiError(
                f"{method} {url} returned a non-JSON body", error_code=resp.status_code
            ) from exc

    async def get(self, url: str, **kwargs) -> Any:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> Any:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        await self.session.aclose()
