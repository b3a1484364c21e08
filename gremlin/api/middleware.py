"""Pure ASGI middleware for the Gremlin application.

Raw ASGI (NOT BaseHTTPMiddleware) so the RPC handler reads the request body
itself. Every response these classes produce on their own uses the same
``{"error": {"code", "message"}}`` envelope as the handler.
"""

import json
import logging
import time
import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gremlin.config import get_settings
from gremlin.errors import ERROR_STATUS_MAP, ErrorCode, error_response

logger = logging.getLogger(__name__)

access_logger = logging.getLogger("gremlin.access")


def configure_access_logging() -> None:
    """Send access records to stderr as bare JSON lines (idempotent)."""
    if access_logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    access_logger.addHandler(handler)
    access_logger.setLevel(logging.INFO)
    access_logger.propagate = False


async def _send_envelope(
    send: Send, code: ErrorCode, message: str, status: int | None = None
) -> None:
    payload = json.dumps(error_response(code, message)).encode()
    await send(
        {
            "type": "http.response.start",
            "status": status or ERROR_STATUS_MAP[code],
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(payload)).encode()),
            ],
        }
    )
    await send({"type": "http.response.body", "body": payload})


def _access_level(status: int | None) -> int:
    if status is None or status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware:
    """One JSON access record per request, tagged with the RPC dispatch outcome.

    The Gremlin handler leaves ``gremlin_procedure`` and ``gremlin_error`` on
    ``request.state``; they are read back from the ASGI scope once the
    response is done. Responses carry X-Request-ID and X-Response-Time-Ms.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope.setdefault("state", {})
        request_id = Headers(scope=scope).get("x-request-id") or uuid.uuid4().hex[:8]
        started = time.monotonic()
        status: int | None = None

        async def send_with_ids(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                headers = MutableHeaders(scope=message)
                headers.append("x-request-id", request_id)
                headers.append(
                    "x-response-time-ms", f"{(time.monotonic() - started) * 1000:.1f}"
                )
            await send(message)

        try:
            await self.app(scope, receive, send_with_ids)
        finally:
            state = scope["state"]
            record = {
                "request_id": request_id,
                "method": scope["method"],
                "path": scope["path"],
                "status": status,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            }
            if "gremlin_procedure" in state:
                record["procedure"] = state["gremlin_procedure"]
            if "gremlin_error" in state:
                record["error_code"] = state["gremlin_error"]
            access_logger.log(_access_level(status), json.dumps(record))


class ErrorHandlingMiddleware:
    """Last-resort boundary: anything escaping the app becomes the INTERNAL envelope.

    The Gremlin handler converts its own errors; this covers the health
    endpoints and the middleware stack around them.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def tracking_send(message: Message) -> None:
            nonlocal started
            started = started or message["type"] == "http.response.start"
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception:
            logger.exception("Unhandled exception on %s %s", scope["method"], scope["path"])
            if started:
                raise
            await _send_envelope(send, ErrorCode.INTERNAL, "Internal server error.")


class SecurityHeadersMiddleware:
    """Mark every response as non-sniffable, non-framable and non-cacheable.

    RPC results are per-session, so ``no-store`` applies to all of them.
    """

    HEADERS = {
        "x-content-type-options": "nosniff",
        "x-frame-options": "DENY",
        "referrer-policy": "strict-origin-when-cross-origin",
        "cache-control": "no-store",
    }

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.HEADERS.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)


class RequestBodyLimitMiddleware:
    """Reject request bodies larger than MAX_REQUEST_BODY_SIZE with 413.

    A declared Content-Length is checked up front. Bodies without one
    (chunked transfer) are read into memory up to the limit before the app
    runs, then replayed to it unchanged.
    """

    def __init__(self, app: ASGIApp, max_body_size: int | None = None) -> None:
        self.app = app
        self.max_body_size = (
            max_body_size if max_body_size is not None else get_settings().MAX_REQUEST_BODY_SIZE
        )

    async def _reject(self, scope: Scope, send: Send, size: int) -> None:
        logger.warning(
            "Rejected %d-byte body on %s (limit %d)", size, scope["path"], self.max_body_size
        )
        await _send_envelope(
            send, ErrorCode.VALIDATION, "Request body too large.", status=413
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                await _send_envelope(
                    send, ErrorCode.VALIDATION, "Invalid Content-Length header."
                )
                return
            if declared > self.max_body_size:
                await self._reject(scope, send, declared)
                return
            await self.app(scope, receive, send)
            return

        buffered: list[Message] = []
        received = 0
        while True:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > self.max_body_size:
                await self._reject(scope, send, received)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)
