"""Persistence contract for content resources.

Procedures registered in a router call the adapter; the dispatch core never
does. Implementations own their storage, cursor encoding and any retry
policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from gremlin.pagination import Page
from gremlin.schemas import (
    ContentResource,
    ContentResourceResource,
    ContentResourceWithResources,
    NewContentResource,
    NewContentResourceResource,
    UpdateContentResource,
)


class ContentResourceAdapter(ABC):
    """Abstract CRUD + pagination + relationship operations for content resources."""

    @abstractmethod
    async def get_content_resource(
        self, id_or_slug: str, *, depth: int = 0
    ) -> ContentResourceWithResources | None:
        """Get one resource by ID or slug, with ``depth`` levels of children.

        Soft-deleted resources are not returned.
        """

    @abstractmethod
    async def list_content_resources(
        self,
        *,
        type: str | None = None,
        created_by_id: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
        offset: int | None = None,
        depth: int = 0,
    ) -> Page[ContentResourceWithResources]:
        """List non-deleted resources, one page at a time.

        ``cursor`` continues a previous page and wins over ``offset``.
        """

    @abstractmethod
    async def create_content_resource(self, data: NewContentResource) -> ContentResource: ...

    @abstractmethod
    async def update_content_resource(
        self, id: str, data: UpdateContentResource
    ) -> ContentResource:
        """Apply a partial update. Raises NOT_FOUND when the resource does not exist."""

    @abstractmethod
    async def delete_content_resource(self, id: str) -> bool:
        """Soft delete. Returns False when the resource does not exist."""

    @abstractmethod
    async def add_resource_to_resource(
        self,
        resource_of_id: str,
        resource_id: str,
        data: NewContentResourceResource | None = None,
    ) -> ContentResourceResource:
        """Link ``resource_id`` into ``resource_of_id``; position defaults to the end."""

    @abstractmethod
    async def remove_resource_from_resource(self, resource_of_id: str, resource_id: str) -> bool:
        """Soft delete the link. Returns False when no such link exists."""

    @abstractmethod
    async def reorder_resource(
        self, resource_of_id: str, resource_id: str, new_position: float
    ) -> ContentResourceResource:
        """Move a link to ``new_position``. Raises NOT_FOUND when the link does not exist."""
