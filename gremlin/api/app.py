"""FastAPI application hosting the Gremlin handler.

Uses a lifespan context manager for logging setup and pure ASGI middleware
(no BaseHTTPMiddleware). The handler itself is framework-agnostic; this
module is only wiring.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gremlin.adapters import InMemoryContentResourceAdapter
from gremlin.auth import ApiKeySessionProvider, SessionUser
from gremlin.config import Settings, get_settings
from gremlin.handler import GremlinAdapters, GremlinConfig, mount_gremlin, normalize_base_path
from gremlin.procedures import create_content_router

from .middleware import (
    ErrorHandlingMiddleware,
    RequestBodyLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_access_logging,
)
from .models import HealthResponse, LiveResponse

# Note: settings are accessed via get_settings() at call sites rather than
# frozen at module level so test monkeypatching works.
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging on startup."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    configure_access_logging()
    config: GremlinConfig = app.state.gremlin_config
    logger.info(
        "Gremlin handler serving %d procedures at %s",
        len(config.router or {}),
        normalize_base_path(config.base_path),
    )
    app.state.ready = True
    yield
    app.state.ready = False
    logger.info("Application shutdown complete.")


def build_default_config(settings: Settings | None = None) -> GremlinConfig:
    """In-memory content adapter, API-key sessions and the content procedures."""
    settings = settings or get_settings()
    adapter = InMemoryContentResourceAdapter(
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
    )
    auth = ApiKeySessionProvider(
        settings.API_KEY.get_secret_value(),
        SessionUser(id=settings.API_USER_ID, roles=settings.API_USER_ROLES),
        ttl_seconds=settings.SESSION_TTL_SECONDS,
    )
    return GremlinConfig(
        adapters=GremlinAdapters(content=adapter),
        auth=auth,
        base_path=settings.BASE_PATH,
        router=create_content_router(adapter),
    )


def create_app(config: GremlinConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    config = config or build_default_config(settings)

    app = FastAPI(
        title="Gremlin CMS API",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.gremlin_config = config

    # CORS: origins from ALLOWED_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID", "X-API-Key"],
    )

    # Starlette executes middleware in REVERSE add order: BodyLimit runs
    # first (outermost), Security last (innermost).
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestBodyLimitMiddleware)

    @app.get("/live", response_model=LiveResponse)
    async def liveness():
        return LiveResponse()

    @app.get("/health", response_model=HealthResponse)
    async def health():
        current = get_settings()
        return HealthResponse(
            status="healthy",
            version=current.VERSION,
            environment=current.ENVIRONMENT,
            base_path=normalize_base_path(config.base_path),
            procedure_count=len(config.router or {}),
        )

    mount_gremlin(app, config)
    return app
