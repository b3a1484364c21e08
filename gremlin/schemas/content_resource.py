"""Pydantic v2 models for content resources and their relationships.

Content is a flexible tree: any resource can contain others (course ->
module -> lesson) through ``ContentResourceResource`` join rows ordered by a
fractional ``position``. Wire format is camelCase; Python attributes are
snake_case and both spellings are accepted on input.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RESOURCE_ID_PREFIX = "cr_"
SLUG_SEPARATOR = "~"


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentFields(BaseModel):
    """Common content fields; additional keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    slug: str | None = None
    description: str | None = None
    body: str | None = None
    state: str | None = None


class ContentResource(WireModel):
    id: str
    type: str
    created_by_id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


class NewContentResource(WireModel):
    """Data for creating a resource; ``id`` is generated when omitted."""

    id: str | None = None
    type: str = Field(..., min_length=1)
    created_by_id: str = Field(..., min_length=1)
    fields: dict[str, Any] = Field(default_factory=dict)


class UpdateContentResource(WireModel):
    """Partial update; ``fields`` replaces the stored fields wholesale."""

    type: str | None = Field(default=None, min_length=1)
    fields: dict[str, Any] | None = None


class ContentResourceResource(WireModel):
    """Join row: ``resource_id`` is contained in ``resource_of_id`` at ``position``."""

    resource_of_id: str
    resource_id: str
    position: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


class NewContentResourceResource(WireModel):
    position: float | None = None
    metadata: dict[str, Any] | None = None


class NestedContentResource(ContentResourceResource):
    resource: ContentResourceWithResources


class ContentResourceWithResources(ContentResource):
    """A resource with its children loaded (only when requested with ``depth`` > 0)."""

    resources: list[NestedContentResource] | None = None


NestedContentResource.model_rebuild()


def new_resource_id() -> str:
    return f"{RESOURCE_ID_PREFIX}{uuid.uuid4().hex}"


def slugify(title: str) -> str:
    """Lowercase ``title`` and collapse runs of non-alphanumerics into single hyphens."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def build_slug(title: str, resource_id: str) -> str:
    """Build the unique ``{slugified-title}~{id}`` slug."""
    return f"{slugify(title)}{SLUG_SEPARATOR}{resource_id}"
