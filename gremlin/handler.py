"""Hybrid REST + RPC HTTP handler.

Routes (relative to ``base_path``, default ``/api/gremlin``):

    GET  /session   -> 200 with the caller's session
    POST /rpc       -> {"procedure": str, "input"?: any} dispatched to the router
    anything else   -> 404 NOT_FOUND

This is the single catch boundary: every exception is normalized to a
``GremlinError``, passed to ``callbacks.on_error`` and returned as
``{"error": {"code", "message"}}`` with the status from ``ERROR_STATUS_MAP``.
The procedure name and any error code are left on ``request.state``
(``gremlin_procedure``, ``gremlin_error``) for access logging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from fastapi.encoders import jsonable_encoder
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .adapters.interface import ContentResourceAdapter
from .auth import SessionProvider
from .errors import ErrorCode, GremlinError, error_response, normalize_error
from .executor import ExecutionContext, execute_procedure
from .router.types import Router

logger = logging.getLogger(__name__)

DEFAULT_BASE_PATH = "/api/gremlin"

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

HttpHandler = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class GremlinAdapters:
    content: ContentResourceAdapter


@dataclass(frozen=True)
class GremlinCallbacks:
    # Invoked with every normalized error before the response is written.
    on_error: Callable[[GremlinError], Any] | None = None


@dataclass(frozen=True)
class GremlinConfig:
    """Everything the handler needs, injected once at construction."""

    adapters: GremlinAdapters
    auth: SessionProvider
    base_path: str = DEFAULT_BASE_PATH
    router: Router | None = None
    callbacks: GremlinCallbacks = field(default_factory=GremlinCallbacks)


@dataclass(frozen=True)
class RpcRequestBody:
    procedure: str
    input: Any = None


def _strip_trailing_slashes(path: str) -> str:
    if len(path) <= 1:
        return path
    return path.rstrip("/") or "/"


def normalize_base_path(base_path: str) -> str:
    """Ensure a leading slash and drop trailing slashes (``"api/x/"`` -> ``"/api/x"``)."""
    if not base_path.startswith("/"):
        base_path = f"/{base_path}"
    return _strip_trailing_slashes(base_path)


def resolve_relative_path(pathname: str, base_path: str) -> str | None:
    """Return ``pathname`` relative to ``base_path`` ("/" for the base itself), or None."""
    path = _strip_trailing_slashes(pathname)
    base = _strip_trailing_slashes(base_path)

    if path == base:
        return "/"
    if base == "/":
        return path
    if path.startswith(f"{base}/"):
        return path[len(base):]
    return None


def json_response(body: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=jsonable_encoder(body), status_code=status_code)


async def parse_rpc_request_body(request: Request) -> RpcRequestBody:
    try:
        parsed = await request.json()
    except (ValueError, RecursionError) as exc:
        raise GremlinError(ErrorCode.VALIDATION, "Request body must be valid JSON.", exc) from exc

    if not isinstance(parsed, dict):
        raise GremlinError(ErrorCode.VALIDATION, "RPC body must be an object.")

    procedure_name = parsed.get("procedure")
    if not isinstance(procedure_name, str) or not procedure_name:
        raise GremlinError(ErrorCode.VALIDATION, "RPC body must include a procedure.")

    return RpcRequestBody(procedure=procedure_name, input=parsed.get("input"))


def create_http_handler(config: GremlinConfig) -> HttpHandler:
    """Build the request function for ``config``.

    The returned coroutine function is stateless and safe to call
    concurrently; ``config`` is captured read-only.
    """
    base_path = normalize_base_path(config.base_path or DEFAULT_BASE_PATH)
    router: Router = config.router if config.router is not None else {}
    on_error = config.callbacks.on_error if config.callbacks else None

    async def dispatch(request: Request) -> Response:
        pathname = request.url.path
        relative_path = resolve_relative_path(pathname, base_path)
        if relative_path is None:
            raise GremlinError(ErrorCode.NOT_FOUND, f"Route not found: {pathname}")

        if request.method == "GET" and relative_path == "/session":
            session = await config.auth.get_session(request)
            return json_response(session)

        if request.method == "POST" and relative_path == "/rpc":
            body = await parse_rpc_request_body(request)
            request.state.gremlin_procedure = body.procedure

            procedure = router.get(body.procedure)
            if procedure is None:
                raise GremlinError(
                    ErrorCode.NOT_FOUND, f"Procedure not found: {body.procedure}"
                )

            session = await config.auth.get_session(request)
            result = await execute_procedure(
                procedure,
                body.input,
                ExecutionContext(request=request, session=session, headers=request.headers),
            )
            return json_response(result)

        raise GremlinError(
            ErrorCode.NOT_FOUND, f"Route not found: {request.method} {relative_path}"
        )

    def report(error: GremlinError, request: Request) -> None:
        if error.code is ErrorCode.INTERNAL:
            cause = error.cause if isinstance(error.cause, BaseException) else None
            logger.error(
                "Internal error on %s %s: %s",
                request.method,
                request.url.path,
                error.message,
                exc_info=(type(cause), cause, cause.__traceback__) if cause else None,
            )
        else:
            logger.info(
                "%s on %s %s: %s",
                error.code.value,
                request.method,
                request.url.path,
                error.message,
            )

        if on_error is None:
            return
        try:
            on_error(error)
        except Exception:
            logger.exception("on_error callback failed")

    async def handle(request: Request) -> Response:
        try:
            return await dispatch(request)
        except Exception as exc:
            error = normalize_error(exc)
            request.state.gremlin_error = error.code.value
            report(error, request)
            return json_response(
                error_response(error.code, error.message),
                status_code=error.status_code,
            )

    return handle


def create_asgi_app(config: GremlinConfig) -> Starlette:
    """Wrap the handler in a Starlette app that sends every path to it."""
    handler = create_http_handler(config)
    return Starlette(routes=[Route("/{path:path}", handler, methods=HTTP_METHODS)])


def mount_gremlin(app: Starlette, config: GremlinConfig) -> HttpHandler:
    """Register the handler on an existing Starlette/FastAPI app under ``base_path``."""
    handler = create_http_handler(config)
    base_path = normalize_base_path(config.base_path or DEFAULT_BASE_PATH)
    prefix = "" if base_path == "/" else base_path

    app.router.routes.append(Route(base_path, handler, methods=HTTP_METHODS))
    app.router.routes.append(Route(f"{prefix}/{{path:path}}", handler, methods=HTTP_METHODS))
    return handler
