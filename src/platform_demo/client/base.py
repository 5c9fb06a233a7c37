"""Synchronous HTTP transport for the platform's v2 API.

All services share one :class:`PlatformClient`. Requests authenticate with
``Authorization: Token <token>``; :meth:`PlatformClient.with_token` derives
a client that reuses the same connection pool under another token, which
is how query, task and write calls run with a matched authorization.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from platform_demo.client.errors import (
    PlatformAPIError,
    PlatformAuthError,
    PlatformConflictError,
    PlatformNotFoundError,
    PlatformTimeoutError,
)

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_USER_AGENT = "platform-demo"


def _error_message(resp: httpx.Response) -> str:
    body = resp.text
    message = body[:200] if body else f"HTTP {resp.status_code}"
    try:
        payload = resp.json()
    except ValueError:
        return message
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or message)
    return message


def raise_for_status(resp: httpx.Response) -> None:
    """Map an error response onto the PlatformAPIError hierarchy."""
    if resp.status_code < 400:
        return

    message = _error_message(resp)
    body = resp.text
    if resp.status_code in (401, 403):
        raise PlatformAuthError(resp.status_code, message, response_body=body)
    if resp.status_code == 404:
        raise PlatformNotFoundError(message, response_body=body)
    if resp.status_code == 409:
        raise PlatformConflictError(409, message, response_body=body)
    raise PlatformAPIError(resp.status_code, message, response_body=body)


class PlatformClient:
    """Token-authenticated client for one platform endpoint.

    Parameters
    ----------
    addr:
        Base URL of the API server, e.g. ``http://localhost:9999``.
    token:
        Token sent on every request.
    http_client:
        Optional pre-built ``httpx.Client`` (tests pass one with a
        ``MockTransport``). A private client is created otherwise.
    timeout_seconds:
        Per-request timeout.
    user_agent:
        Value of the ``User-Agent`` header.
    """

    def __init__(
        self,
        addr: str,
        token: str,
        *,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        if not addr:
            raise ValueError("addr is required")
        if not token:
            raise ValueError("token is required")

        self._addr = addr.rstrip("/")
        self._token = token
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client()
        self._timeout = float(timeout_seconds)
        self._user_agent = user_agent

    @property
    def addr(self) -> str:
        return self._addr

    def with_token(self, token: str) -> PlatformClient:
        """Return a client for the same endpoint that sends *token* instead."""
        return PlatformClient(
            self._addr,
            token,
            http_client=self._client,
            timeout_seconds=self._timeout,
            user_agent=self._user_agent,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> PlatformClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Token {self._token}",
            "User-Agent": self._user_agent,
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
        content: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request and return the response, raising on error status."""
        url = f"{self._addr}{path}"
        try:
            resp = self._client.request(
                method,
                url,
                headers=self._headers(headers),
                json=json,
                params=params,
                content=content,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise PlatformTimeoutError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise PlatformAPIError(0, str(exc)) from exc

        logger.debug("%s %s -> %d", method, path, resp.status_code)
        raise_for_status(resp)
        return resp

    def get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        return self.request("GET", path, params=params).json()

    def post_json(self, path: str, payload: Any) -> Any:
        return self.request("POST", path, json=payload).json()

    def delete(self, path: str) -> None:
        self.request("DELETE", path)
