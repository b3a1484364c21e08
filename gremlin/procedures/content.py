"""Content resource procedures.

``create_content_router(adapter)`` exposes the content adapter over RPC.
Reads are public; writes need a signed-in user (optionally with one of
``write_roles``). The adapter reaches handlers through context middleware
as ``ctx["content"]``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import Field

from gremlin.adapters.interface import ContentResourceAdapter
from gremlin.auth import SessionUser, require_role, require_user
from gremlin.errors import ErrorCode, GremlinError
from gremlin.pagination import PaginationParams
from gremlin.router import Router, create_context_middleware, create_router, procedure
from gremlin.schemas import (
    ContentFields,
    NewContentResource,
    NewContentResourceResource,
    UpdateContentResource,
    WireModel,
    build_slug,
    new_resource_id,
)

logger = logging.getLogger(__name__)

MAX_DEPTH = 5


class GetContentResourceInput(WireModel):
    id_or_slug: str = Field(..., min_length=1)
    depth: int = Field(default=0, ge=0, le=MAX_DEPTH)


class ListContentResourcesInput(PaginationParams, WireModel):
    type: str | None = None
    created_by_id: str | None = None
    depth: int = Field(default=0, ge=0, le=MAX_DEPTH)


class CreateContentResourceInput(WireModel):
    id: str | None = None
    type: str = Field(..., min_length=1)
    fields: ContentFields = Field(default_factory=ContentFields)


class UpdateContentResourceInput(WireModel):
    id: str = Field(..., min_length=1)
    type: str | None = Field(default=None, min_length=1)
    fields: dict[str, Any] | None = None


class DeleteContentResourceInput(WireModel):
    id: str = Field(..., min_length=1)


class AddResourceToResourceInput(WireModel):
    resource_of_id: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)
    position: float | None = None
    metadata: dict[str, Any] | None = None


class RemoveResourceFromResourceInput(WireModel):
    resource_of_id: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)


class ReorderResourceInput(WireModel):
    resource_of_id: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)
    new_position: float


def create_content_router(
    adapter: ContentResourceAdapter,
    *,
    write_roles: Iterable[str] | None = None,
) -> Router:
    """Build the content procedures around ``adapter``.

    Args:
        adapter: Content persistence implementation.
        write_roles: When given, mutating procedures require one of these roles.

    Returns:
        Router with ``getContentResource``, ``listContentResources``,
        ``createContentResource``, ``updateContentResource``,
        ``deleteContentResource``, ``addResourceToResource``,
        ``removeResourceFromResource`` and ``reorderResource``.
    """
    roles = tuple(write_roles or ())
    with_content = procedure.use(create_context_middleware(lambda: {"content": adapter}))

    def authorize(ctx: Mapping[str, Any]) -> SessionUser:
        return require_role(ctx, *roles) if roles else require_user(ctx)

    async def get_content_resource(*, input: GetContentResourceInput, ctx):
        resource = await ctx["content"].get_content_resource(input.id_or_slug, depth=input.depth)
        if resource is None:
            raise GremlinError(
                ErrorCode.NOT_FOUND, f"Content resource not found: {input.id_or_slug}"
            )
        return resource

    async def list_content_resources(*, input: ListContentResourcesInput | None, ctx):
        filters = input or ListContentResourcesInput()
        return await ctx["content"].list_content_resources(
            type=filters.type,
            created_by_id=filters.created_by_id,
            limit=filters.limit,
            cursor=filters.cursor,
            offset=filters.offset,
            depth=filters.depth,
        )

    async def create_content_resource(*, input: CreateContentResourceInput, ctx):
        user = authorize(ctx)
        resource_id = input.id or new_resource_id()
        fields = input.fields.model_dump(exclude_none=True)
        if fields.get("title") and not fields.get("slug"):
            fields["slug"] = build_slug(fields["title"], resource_id)

        resource = await ctx["content"].create_content_resource(
            NewContentResource(
                id=resource_id,
                type=input.type,
                created_by_id=user.id,
                fields=fields,
            )
        )
        logger.info("User %s created %s %s", user.id, resource.type, resource.id)
        return resource

    async def update_content_resource(*, input: UpdateContentResourceInput, ctx):
        authorize(ctx)
        changes = UpdateContentResource(type=input.type, fields=input.fields)
        return await ctx["content"].update_content_resource(input.id, changes)

    async def delete_content_resource(*, input: DeleteContentResourceInput, ctx):
        user = authorize(ctx)
        deleted = await ctx["content"].delete_content_resource(input.id)
        if deleted:
            logger.info("User %s deleted %s", user.id, input.id)
        return deleted

    async def add_resource_to_resource(*, input: AddResourceToResourceInput, ctx):
        authorize(ctx)
        return await ctx["content"].add_resource_to_resource(
            input.resource_of_id,
            input.resource_id,
            NewContentResourceResource(position=input.position, metadata=input.metadata),
        )

    async def remove_resource_from_resource(*, input: RemoveResourceFromResourceInput, ctx):
        authorize(ctx)
        return await ctx["content"].remove_resource_from_resource(
            input.resource_of_id, input.resource_id
        )

    async def reorder_resource(*, input: ReorderResourceInput, ctx):
        authorize(ctx)
        return await ctx["content"].reorder_resource(
            input.resource_of_id, input.resource_id, input.new_position
        )

    return create_router(
        getContentResource=with_content.input(GetContentResourceInput).handler(
            get_content_resource
        ),
        listContentResources=with_content.input(ListContentResourcesInput | None).handler(
            list_content_resources
        ),
        createContentResource=with_content.input(CreateContentResourceInput).handler(
            create_content_resource
        ),
        updateContentResource=with_content.input(UpdateContentResourceInput).handler(
            update_content_resource
        ),
        deleteContentResource=with_content.input(DeleteContentResourceInput).handler(
            delete_content_resource
        ),
        addResourceToResource=with_content.input(AddResourceToResourceInput).handler(
            add_resource_to_resource
        ),
        removeResourceFromResource=with_content.input(RemoveResourceFromResourceInput).handler(
            remove_resource_from_resource
        ),
        reorderResource=with_content.input(ReorderResourceInput).handler(reorder_resource),
    )
