"""FastAPI application wiring for the Gremlin handler."""

from .app import build_default_config, create_app

__all__ = ["build_default_config", "create_app"]
