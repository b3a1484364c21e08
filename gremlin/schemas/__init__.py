"""Content models shared by adapters and procedures."""

from .content_resource import (
    ContentFields,
    ContentResource,
    ContentResourceResource,
    ContentResourceWithResources,
    NestedContentResource,
    NewContentResource,
    NewContentResourceResource,
    UpdateContentResource,
    WireModel,
    build_slug,
    new_resource_id,
    slugify,
)

__all__ = [
    "ContentFields",
    "ContentResource",
    "ContentResourceResource",
    "ContentResourceWithResources",
    "NestedContentResource",
    "NewContentResource",
    "NewContentResourceResource",
    "UpdateContentResource",
    "WireModel",
    "build_slug",
    "new_resource_id",
    "slugify",
]
