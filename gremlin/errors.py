"""Closed error taxonomy for Gremlin procedures and the HTTP dispatch layer.

Every failure that reaches a client is a ``GremlinError`` whose ``code`` is
one of ``ErrorCode``. The HTTP status for a code is fixed by
``ERROR_STATUS_MAP``; clients should switch on ``error.code``.

Usage::

    from gremlin.errors import ErrorCode, GremlinError

    raise GremlinError(ErrorCode.CONFLICT, "Resource was modified.")
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Canonical error codes carried in the ``error.code`` response field."""

    VALIDATION = "VALIDATION"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"


ERROR_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INTERNAL: 500,
}

_STATUS_CODES: dict[int, ErrorCode] = {
    status: code for code, status in ERROR_STATUS_MAP.items()
}


class GremlinError(Exception):
    """Domain error raised by validation, lookup, or business logic.

    Args:
        code: An ``ErrorCode`` (or its string value).
        message: Human-readable description, returned to the client.
        cause: Optional diagnostic payload (underlying exception, validator
            detail, raw value). Opaque; used for logging only.
    """

    def __init__(self, code: ErrorCode | str, message: str, cause: Any = None) -> None:
        super().__init__(message)
        self.code = ErrorCode(code)
        self.message = message
        self.cause = cause

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_MAP.get(self.code, 500)

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"GremlinError(code={self.code.value!r}, message={self.message!r})"


def error_response(code: ErrorCode | str, message: str) -> dict:
    """Build a structured error response body.

    Args:
        code: One of the ``ErrorCode`` enum values.
        message: Human-readable error description.

    Returns:
        Dict with ``error`` object containing ``code`` and ``message``.
    """
    return {"error": {"code": ErrorCode(code).value, "message": message}}


def normalize_error(error: BaseException) -> GremlinError:
    """Return ``error`` unchanged if it is a ``GremlinError``, else wrap it as INTERNAL."""
    if isinstance(error, GremlinError):
        return error
    return GremlinError(ErrorCode.INTERNAL, "Internal server error.", error)


def code_for_status(status: int) -> ErrorCode:
    """Map an HTTP status back to an error code (unknown statuses are INTERNAL)."""
    return _STATUS_CODES.get(status, ErrorCode.INTERNAL)
