"""Procedure executor: validate input, run middleware, run the handler.

Errors raised by middleware or the handler propagate unchanged; the only
error created here is the VALIDATION error for rejected input (plus INTERNAL
for a schema that cannot validate). Normalizing foreign exceptions is the
HTTP handler's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from starlette.datastructures import Headers
from starlette.requests import Request

from .deferred import resolve_result
from .errors import ErrorCode, GremlinError
from .router.middleware import run_middleware
from .router.types import Procedure
from .validation import as_parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionContext:
    """Ambient per-request data seeding the middleware context."""

    request: Request | None
    session: Any
    headers: Headers

    def seed(self) -> dict[str, Any]:
        return {
            "request": self.request,
            "session": self.session,
            "headers": self.headers,
        }


def validate_input(procedure: Procedure, raw_input: Any) -> Any:
    """Return the parsed input, or ``raw_input`` unchanged when there is no schema."""
    if procedure.input is None:
        return raw_input

    parser = as_parser(procedure.input)
    if parser is None:
        raise GremlinError(
            ErrorCode.INTERNAL,
            "Procedure input schema must provide safe_parse.",
            procedure.input,
        )

    result = parser.safe_parse(raw_input)
    if not result.success:
        raise GremlinError(ErrorCode.VALIDATION, "Input validation failed.", result.error)
    return result.data


async def execute_procedure(
    procedure: Procedure,
    raw_input: Any,
    context: ExecutionContext,
) -> Any:
    """Run one procedure to completion.

    Args:
        procedure: The built procedure.
        raw_input: Unvalidated input from the caller.
        context: Request, session and headers seeding the handler context.

    Returns:
        The handler's resolved output.

    Raises:
        GremlinError: VALIDATION when the input schema rejects ``raw_input``.
        Exception: Anything raised by middleware or the handler, unchanged.
    """
    validated_input = validate_input(procedure, raw_input)

    ctx = await run_middleware(procedure.middlewares, validated_input, context.seed())
    logger.debug(
        "Executing handler %r after %d middleware",
        procedure.handler,
        len(procedure.middlewares),
    )

    return await resolve_result(procedure.handler(input=validated_input, ctx=ctx))
