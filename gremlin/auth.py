"""Session contract consumed by the dispatch core, plus an API-key provider.

The core only calls ``SessionProvider.get_session`` (never raises; returns a
session with ``user=None`` when unauthenticated). Procedures enforce auth
themselves via ``require_user`` / ``require_role`` on the handler context.
"""

from __future__ import annotations

import hmac
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from typing import Any, Mapping

from pydantic import BaseModel, Field, model_serializer
from starlette.requests import Request

from .errors import ErrorCode, GremlinError

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None
    image: str | None = None
    roles: list[str] = Field(default_factory=list)

    @model_serializer(mode="wrap")
    def _omit_missing(self, handler):
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


class GremlinSession(BaseModel):
    """Resolved session. ``user`` is None for anonymous requests."""

    user: SessionUser | None = None
    expires: str


def _expires_at(ttl_seconds: int) -> str:
    expires = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
    return expires.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def anonymous_session(ttl_seconds: int = 86400) -> GremlinSession:
    return GremlinSession(user=None, expires=_expires_at(ttl_seconds))


class SessionProvider(ABC):
    """Resolves the caller's session from an inbound request."""

    @abstractmethod
    async def get_session(self, request: Request) -> GremlinSession:
        """Return the session for ``request``. Must not raise for anonymous callers."""

    async def require_session(self, request: Request) -> GremlinSession:
        """Return the session, raising UNAUTHORIZED when no user is present."""
        session = await self.get_session(request)
        if session.user is None:
            raise GremlinError(ErrorCode.UNAUTHORIZED, "Session required.")
        return session


class ApiKeySessionProvider(SessionProvider):
    """Grants a fixed user's session to requests carrying the shared API key.

    The key is read from ``Authorization: Bearer <key>`` or ``X-API-Key``.
    An empty ``api_key`` disables authentication (every request is anonymous).
    """

    def __init__(self, api_key: str, user: SessionUser, *, ttl_seconds: int = 86400) -> None:
        self._api_key = api_key
        self._user = user
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def _extract_token(request: Request) -> str:
        authorization = request.headers.get("authorization", "")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
        return request.headers.get("x-api-key", "").strip()

    async def get_session(self, request: Request) -> GremlinSession:
        token = self._extract_token(request)
        if self._api_key and token and hmac.compare_digest(
            token.encode(), self._api_key.encode()
        ):
            return GremlinSession(user=self._user, expires=_expires_at(self._ttl_seconds))

        if token:
            logger.info("Rejected API key on %s", request.url.path)
        return anonymous_session(self._ttl_seconds)


def _coerce_session(session: Any) -> GremlinSession | None:
    if isinstance(session, GremlinSession):
        return session
    if isinstance(session, Mapping):
        return GremlinSession.model_validate(session)
    return None


def require_user(ctx: Mapping[str, Any]) -> SessionUser:
    """Return the signed-in user from a handler context, or raise UNAUTHORIZED."""
    session = _coerce_session(ctx.get("session"))
    if session is None or session.user is None:
        raise GremlinError(ErrorCode.UNAUTHORIZED, "Session required.")
    return session.user


def require_role(ctx: Mapping[str, Any], *roles: str) -> SessionUser:
    """Return the signed-in user if they hold any of ``roles``, else raise FORBIDDEN."""
    user = require_user(ctx)
    if roles and not set(roles).intersection(user.roles):
        raise GremlinError(
            ErrorCode.FORBIDDEN,
            f"Requires one of roles: {', '.join(roles)}.",
        )
    return user
