"""In-memory content adapter.

Per-process, suitable for tests, local development and single-instance
deployments. Resources are kept in creation order; deletes are soft.
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import UTC, datetime, timedelta

from gremlin.errors import ErrorCode, GremlinError
from gremlin.pagination import Page
from gremlin.schemas import (
    ContentResource,
    ContentResourceResource,
    ContentResourceWithResources,
    NestedContentResource,
    NewContentResource,
    NewContentResourceResource,
    UpdateContentResource,
    new_resource_id,
)

from .interface import ContentResourceAdapter
from .position import get_position_at_end

logger = logging.getLogger(__name__)

_CURSOR_PREFIX = "offset:"


def _now() -> datetime:
    return datetime.now(UTC)


def _later_than(previous: datetime) -> datetime:
    now = _now()
    return now if now > previous else previous + timedelta(microseconds=1)


def encode_cursor(offset: int) -> str:
    raw = f"{_CURSOR_PREFIX}{offset}".encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(cursor: str) -> int:
    """Decode a cursor issued by this adapter. Raises VALIDATION for anything else."""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        raw = base64.urlsafe_b64decode(padded.encode()).decode()
        if not raw.startswith(_CURSOR_PREFIX):
            raise ValueError(raw)
        offset = int(raw[len(_CURSOR_PREFIX):])
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise GremlinError(ErrorCode.VALIDATION, "Invalid cursor.", exc) from exc
    if offset < 0:
        raise GremlinError(ErrorCode.VALIDATION, "Invalid cursor.", cursor)
    return offset


class InMemoryContentResourceAdapter(ContentResourceAdapter):
    """Dict-backed ``ContentResourceAdapter``."""

    def __init__(self, *, default_page_size: int = 50, max_page_size: int = 100) -> None:
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self._resources: dict[str, ContentResource] = {}
        self._links: dict[tuple[str, str], ContentResourceResource] = {}

    # -- Lookup helpers ------------------------------------------------------

    def _find(self, id_or_slug: str) -> ContentResource | None:
        resource = self._resources.get(id_or_slug)
        if resource is None:
            resource = next(
                (
                    r
                    for r in self._resources.values()
                    if r.deleted_at is None and r.fields.get("slug") == id_or_slug
                ),
                None,
            )
        if resource is None or resource.deleted_at is not None:
            return None
        return resource

    def _active_links(self, resource_of_id: str) -> list[ContentResourceResource]:
        links = [
            link
            for (parent_id, _), link in self._links.items()
            if parent_id == resource_of_id and link.deleted_at is None
        ]
        return sorted(links, key=lambda link: link.position)

    def _with_resources(
        self, resource: ContentResource, depth: int
    ) -> ContentResourceWithResources:
        loaded = ContentResourceWithResources(**resource.model_dump())
        if depth <= 0:
            return loaded

        children: list[NestedContentResource] = []
        for link in self._active_links(resource.id):
            child = self._find(link.resource_id)
            if child is None:
                continue
            children.append(
                NestedContentResource(
                    **link.model_dump(),
                    resource=self._with_resources(child, depth - 1),
                )
            )
        loaded.resources = children
        return loaded

    def _get_link(self, resource_of_id: str, resource_id: str) -> ContentResourceResource:
        link = self._links.get((resource_of_id, resource_id))
        if link is None or link.deleted_at is not None:
            raise GremlinError(
                ErrorCode.NOT_FOUND,
                f"Relationship not found: {resource_of_id} -> {resource_id}",
            )
        return link

    # -- Resources -----------------------------------------------------------

    async def get_content_resource(
        self, id_or_slug: str, *, depth: int = 0
    ) -> ContentResourceWithResources | None:
        resource = self._find(id_or_slug)
        if resource is None:
            return None
        return self._with_resources(resource, depth)

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
        page_size = min(limit or self.default_page_size, self.max_page_size)
        offset = decode_cursor(cursor) if cursor else (offset or 0)

        matches = [
            r
            for r in self._resources.values()
            if r.deleted_at is None
            and (type is None or r.type == type)
            and (created_by_id is None or r.created_by_id == created_by_id)
        ]
        window = matches[offset : offset + page_size]
        has_more = offset + page_size < len(matches)

        return Page[ContentResourceWithResources](
            items=[self._with_resources(r, depth) for r in window],
            cursor=encode_cursor(offset + page_size) if has_more else None,
            has_more=has_more,
        )

    async def create_content_resource(self, data: NewContentResource) -> ContentResource:
        resource_id = data.id or new_resource_id()
        if resource_id in self._resources:
            raise GremlinError(
                ErrorCode.CONFLICT, f"Content resource already exists: {resource_id}"
            )

        now = _now()
        resource = ContentResource(
            id=resource_id,
            type=data.type,
            created_by_id=data.created_by_id,
            fields=dict(data.fields),
            created_at=now,
            updated_at=now,
            deleted_at=None,
        )
        self._resources[resource_id] = resource
        logger.debug("Created content resource %s (%s)", resource_id, data.type)
        return resource

    async def update_content_resource(
        self, id: str, data: UpdateContentResource
    ) -> ContentResource:
        existing = self._find(id)
        if existing is None:
            raise GremlinError(ErrorCode.NOT_FOUND, f"Content resource not found: {id}")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = _later_than(existing.updated_at)
        updated = existing.model_copy(update=changes)
        self._resources[existing.id] = updated
        return updated

    async def delete_content_resource(self, id: str) -> bool:
        existing = self._find(id)
        if existing is None:
            return False
        now = _later_than(existing.updated_at)
        self._resources[existing.id] = existing.model_copy(
            update={"deleted_at": now, "updated_at": now}
        )
        return True

    # -- Relationships -------------------------------------------------------

    async def add_resource_to_resource(
        self,
        resource_of_id: str,
        resource_id: str,
        data: NewContentResourceResource | None = None,
    ) -> ContentResourceResource:
        if resource_of_id == resource_id:
            raise GremlinError(
                ErrorCode.VALIDATION, f"A content resource cannot contain itself: {resource_id}"
            )
        for required in (resource_of_id, resource_id):
            if self._find(required) is None:
                raise GremlinError(
                    ErrorCode.NOT_FOUND, f"Content resource not found: {required}"
                )

        key = (resource_of_id, resource_id)
        existing = self._links.get(key)
        if existing is not None and existing.deleted_at is None:
            raise GremlinError(
                ErrorCode.CONFLICT,
                f"Relationship already exists: {resource_of_id} -> {resource_id}",
            )

        data = data or NewContentResourceResource()
        position = data.position
        if position is None:
            position = get_position_at_end(
                link.position for link in self._active_links(resource_of_id)
            )

        now = _now()
        link = ContentResourceResource(
            resource_of_id=resource_of_id,
            resource_id=resource_id,
            position=position,
            metadata=dict(data.metadata or {}),
            created_at=now,
            updated_at=now,
            deleted_at=None,
        )
        self._links[key] = link
        return link

    async def remove_resource_from_resource(self, resource_of_id: str, resource_id: str) -> bool:
        link = self._links.get((resource_of_id, resource_id))
        if link is None or link.deleted_at is not None:
            return False
        now = _later_than(link.updated_at)
        self._links[(resource_of_id, resource_id)] = link.model_copy(
            update={"deleted_at": now, "updated_at": now}
        )
        return True

    async def reorder_resource(
        self, resource_of_id: str, resource_id: str, new_position: float
    ) -> ContentResourceResource:
        link = self._get_link(resource_of_id, resource_id)
        updated = link.model_copy(
            update={"position": float(new_position), "updated_at": _later_than(link.updated_at)}
        )
        self._links[(resource_of_id, resource_id)] = updated
        return updated
