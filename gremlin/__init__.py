"""Gremlin: typed procedures, middleware and a hybrid REST + RPC HTTP handler.

Example::

    from pydantic import BaseModel

    from gremlin import create_router, procedure

    class DoubleInput(BaseModel):
        value: int

    router = create_router(
        double=procedure.input(DoubleInput).handler(
            lambda input, ctx: {"doubled": input.value * 2}
        ),
    )
"""

from .auth import (
    ApiKeySessionProvider,
    GremlinSession,
    SessionProvider,
    SessionUser,
    anonymous_session,
    require_role,
    require_user,
)
from .deferred import (
    Deferred,
    DeferredRuntime,
    EffectRuntime,
    get_effect_runtime,
    resolve_result,
    set_effect_runtime,
)
from .errors import ERROR_STATUS_MAP, ErrorCode, GremlinError, error_response, normalize_error
from .executor import ExecutionContext, execute_procedure
from .handler import (
    GremlinAdapters,
    GremlinCallbacks,
    GremlinConfig,
    create_asgi_app,
    create_http_handler,
    mount_gremlin,
)
from .pagination import Page, PaginationParams
from .router import (
    Procedure,
    ProcedureBuilder,
    Router,
    compose_middleware,
    create_context_middleware,
    create_router,
    procedure,
)
from .validation import ParseResult, SafeParser

__all__ = [
    "ERROR_STATUS_MAP",
    "ApiKeySessionProvider",
    "Deferred",
    "DeferredRuntime",
    "EffectRuntime",
    "ErrorCode",
    "ExecutionContext",
    "GremlinAdapters",
    "GremlinCallbacks",
    "GremlinConfig",
    "GremlinError",
    "GremlinSession",
    "Page",
    "PaginationParams",
    "ParseResult",
    "Procedure",
    "ProcedureBuilder",
    "Router",
    "SafeParser",
    "SessionProvider",
    "SessionUser",
    "anonymous_session",
    "compose_middleware",
    "create_asgi_app",
    "create_context_middleware",
    "create_http_handler",
    "create_router",
    "error_response",
    "execute_procedure",
    "get_effect_runtime",
    "mount_gremlin",
    "normalize_error",
    "procedure",
    "require_role",
    "require_user",
    "resolve_result",
    "set_effect_runtime",
]
