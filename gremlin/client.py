"""Async HTTP client for a Gremlin handler.

Uses httpx.AsyncClient directly. Error envelopes come back as
``GremlinError`` with the server's code and message.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from .errors import ErrorCode, GremlinError, code_for_status
from .handler import DEFAULT_BASE_PATH, normalize_base_path

logger = logging.getLogger(__name__)


def _parse_error_envelope(payload: Any) -> tuple[str | None, str | None]:
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None, None
    code = error.get("code")
    message = error.get("message")
    return (
        code if isinstance(code, str) else None,
        message if isinstance(message, str) else None,
    )


class GremlinClient:
    """Calls ``/session`` and ``/rpc`` on a remote Gremlin handler.

    Args:
        base_url: Site origin, e.g. ``https://cms.example.com``.
        token: Bearer token sent as ``Authorization``.
        base_path: Where the handler is mounted.
        http_client: Override for testing; the client is not closed by us.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        base_path: str = DEFAULT_BASE_PATH,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_path = normalize_base_path(base_path)
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(30.0),
        )
        self._headers = headers
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the underlying HTTP client if we own it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> GremlinClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- Public API ----------------------------------------------------------

    async def rpc(self, procedure: str, input: Any = None) -> Any:
        """Call one procedure and return its decoded result."""
        if not procedure.strip():
            raise GremlinError(ErrorCode.VALIDATION, "Procedure name is required.")

        body: dict[str, Any] = {"procedure": procedure}
        if input is not None:
            body["input"] = input
        return await self._request("POST", "/rpc", json=body)

    async def get_session(self) -> Any:
        return await self._request("GET", "/session")

    # -- Internals -----------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{'' if self._base_path == '/' else self._base_path}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Gremlin %s %s failed: %s", method, url, exc)
            raise GremlinError(
                ErrorCode.INTERNAL, f"Network request to {url} failed.", exc
            ) from exc

        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise GremlinError(
                    ErrorCode.INTERNAL, f"Invalid JSON response from {url}.", exc
                ) from exc

        if response.is_success:
            return payload

        code, message = _parse_error_envelope(payload)
        try:
            error_code = ErrorCode(code) if code else code_for_status(response.status_code)
        except ValueError:
            error_code = code_for_status(response.status_code)
        raise GremlinError(
            error_code,
            message or f"Request failed with HTTP status {response.status_code}.",
            payload,
        )
