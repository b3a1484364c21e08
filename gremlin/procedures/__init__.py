"""Application procedures built on the router."""

from .content import create_content_router

__all__ = ["create_content_router"]
