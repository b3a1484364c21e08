"""Behavioural tests for the in-memory content adapter (adapters/memory.py)."""

from datetime import UTC, datetime

import pytest

from gremlin.adapters import InMemoryContentResourceAdapter
from gremlin.adapters.memory import decode_cursor, encode_cursor
from gremlin.errors import ErrorCode, GremlinError
from gremlin.schemas import (
    ContentResource,
    NewContentResource,
    NewContentResourceResource,
    UpdateContentResource,
)


@pytest.fixture
def adapter():
    return InMemoryContentResourceAdapter()


def _new(id: str | None = None, type: str = "lesson", **fields) -> NewContentResource:
    return NewContentResource(id=id, type=type, created_by_id="user_xyz", fields=fields)


class TestCursor:
    def test_encode_decode(self):
        assert decode_cursor(encode_cursor(40)) == 40

    def test_cursor_is_opaque(self):
        assert "40" not in encode_cursor(40)

    @pytest.mark.parametrize("cursor", ["garbage!", "bm9wZQ", encode_cursor(-1)])
    def test_invalid_cursor(self, cursor):
        with pytest.raises(GremlinError) as exc_info:
            decode_cursor(cursor)
        assert exc_info.value.code is ErrorCode.VALIDATION
        assert exc_info.value.message == "Invalid cursor."


class TestCreateContentResource:
    @pytest.mark.asyncio
    async def test_creates_with_provided_id(self, adapter):
        result = await adapter.create_content_resource(_new("cr_test123", title="Test Lesson"))
        assert result.id == "cr_test123"
        assert result.type == "lesson"
        assert result.fields == {"title": "Test Lesson"}

    @pytest.mark.asyncio
    async def test_generates_id(self, adapter):
        result = await adapter.create_content_resource(_new())
        assert result.id.startswith("cr_")

    @pytest.mark.asyncio
    async def test_sets_timestamps(self, adapter):
        result = await adapter.create_content_resource(_new("cr_1"))
        assert isinstance(result.created_at, datetime)
        assert isinstance(result.updated_at, datetime)
        assert result.deleted_at is None

    @pytest.mark.asyncio
    async def test_duplicate_id_conflicts(self, adapter):
        await adapter.create_content_resource(_new("cr_1"))
        with pytest.raises(GremlinError) as exc_info:
            await adapter.create_content_resource(_new("cr_1"))
        assert exc_info.value.code is ErrorCode.CONFLICT


class TestGetContentResource:
    @pytest.mark.asyncio
    async def test_by_id(self, adapter):
        created = await adapter.create_content_resource(_new("cr_1", title="One"))
        result = await adapter.get_content_resource("cr_1")
        assert result.model_dump(exclude={"resources"}) == created.model_dump()
        assert result.resources is None

    @pytest.mark.asyncio
    async def test_by_slug(self, adapter):
        created = await adapter.create_content_resource(_new(slug="intro~cr_abc"))
        result = await adapter.get_content_resource("intro~cr_abc")
        assert result.id == created.id

    @pytest.mark.asyncio
    async def test_missing_returns_none(self, adapter):
        assert await adapter.get_content_resource("cr_nope") is None

    @pytest.mark.asyncio
    async def test_deleted_returns_none(self, adapter):
        await adapter.create_content_resource(_new("cr_1"))
        await adapter.delete_content_resource("cr_1")
        assert await adapter.get_content_resource("cr_1") is None

    @pytest.mark.asyncio
    async def test_slug_skips_deleted_resource(self, adapter):
        """A reused slug resolves to the live resource, not the deleted one."""
        await adapter.create_content_resource(_new("cr_old", slug="intro~shared"))
        await adapter.delete_content_resource("cr_old")
        await adapter.create_content_resource(_new("cr_new", slug="intro~shared"))

        result = await adapter.get_content_resource("intro~shared")
        assert result.id == "cr_new"

    @pytest.mark.asyncio
    async def test_slug_of_deleted_resource_returns_none(self, adapter):
        await adapter.create_content_resource(_new("cr_old", slug="intro~gone"))
        await adapter.delete_content_resource("cr_old")
        assert await adapter.get_content_resource("intro~gone") is None

    @pytest.mark.asyncio
    async def test_depth_loads_children_in_position_order(self, adapter):
        for rid in ("cr_course", "cr_module", "cr_lesson_a", "cr_lesson_b"):
            await adapter.create_content_resource(_new(rid))
        await adapter.add_resource_to_resource("cr_course", "cr_module")
        await adapter.add_resource_to_resource(
            "cr_module", "cr_lesson_b", NewContentResourceResource(position=2.0)
        )
        await adapter.add_resource_to_resource(
            "cr_module", "cr_lesson_a", NewContentResourceResource(position=1.0)
        )

        shallow = await adapter.get_content_resource("cr_course", depth=1)
        assert [c.resource_id for c in shallow.resources] == ["cr_module"]
        assert shallow.resources[0].resource.resources is None

        deep = await adapter.get_content_resource("cr_course", depth=2)
        lessons = deep.resources[0].resource.resources
        assert [c.resource.id for c in lessons] == ["cr_lesson_a", "cr_lesson_b"]


class TestListContentResources:
    @pytest.mark.asyncio
    async def test_filters_by_type(self, adapter):
        await adapter.create_content_resource(_new("cr_1", type="lesson"))
        await adapter.create_content_resource(_new("cr_2", type="lesson"))
        await adapter.create_content_resource(_new("cr_3", type="course"))
        page = await adapter.list_content_resources(type="lesson")
        assert len(page.items) == 2

    @pytest.mark.asyncio
    async def test_excludes_deleted(self, adapter):
        await adapter.create_content_resource(_new("cr_active"))
        await adapter.create_content_resource(_new("cr_deleted"))
        await adapter.delete_content_resource("cr_deleted")
        page = await adapter.list_content_resources()
        assert [r.id for r in page.items] == ["cr_active"]

    @pytest.mark.asyncio
    async def test_cursor_pagination(self, adapter):
        for i in range(5):
            await adapter.create_content_resource(_new(f"cr_{i}"))

        page1 = await adapter.list_content_resources(limit=2)
        page2 = await adapter.list_content_resources(limit=2, cursor=page1.cursor)
        page3 = await adapter.list_content_resources(limit=2, cursor=page2.cursor)

        assert page1.has_more and page1.cursor
        assert len(page1.items) == 2
        assert len(page2.items) == 2
        assert page1.items[0].id != page2.items[0].id
        assert page2.has_more
        assert len(page3.items) == 1
        assert page3.has_more is False
        assert page3.cursor is None

    @pytest.mark.asyncio
    async def test_offset_skips_leading_items(self, adapter):
        for i in range(5):
            await adapter.create_content_resource(_new(f"cr_{i}"))
        page = await adapter.list_content_resources(limit=2, offset=3)
        assert [r.id for r in page.items] == ["cr_3", "cr_4"]
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_cursor_wins_over_offset(self, adapter):
        for i in range(5):
            await adapter.create_content_resource(_new(f"cr_{i}"))
        page = await adapter.list_content_resources(
            limit=2, offset=4, cursor=encode_cursor(1)
        )
        assert [r.id for r in page.items] == ["cr_1", "cr_2"]
        assert page.has_more

    @pytest.mark.asyncio
    async def test_default_page_size_is_50(self, adapter):
        for i in range(55):
            await adapter.create_content_resource(_new(f"cr_default_{i}"))
        page = await adapter.list_content_resources()
        assert len(page.items) == 50
        assert page.has_more

    @pytest.mark.asyncio
    async def test_limit_capped_at_max_page_size(self):
        adapter = InMemoryContentResourceAdapter(default_page_size=2, max_page_size=3)
        for i in range(5):
            await adapter.create_content_resource(_new(f"cr_{i}"))
        page = await adapter.list_content_resources(limit=10)
        assert len(page.items) == 3

    @pytest.mark.asyncio
    async def test_invalid_cursor(self, adapter):
        with pytest.raises(GremlinError) as exc_info:
            await adapter.list_content_resources(cursor="not-a-cursor")
        assert exc_info.value.code is ErrorCode.VALIDATION


class TestUpdateContentResource:
    @pytest.mark.asyncio
    async def test_replaces_fields(self, adapter):
        await adapter.create_content_resource(_new("cr_1", title="Original", body="x"))
        updated = await adapter.update_content_resource(
            "cr_1", UpdateContentResource(fields={"title": "Updated"})
        )
        assert updated.fields == {"title": "Updated"}

    @pytest.mark.asyncio
    async def test_bumps_updated_at(self, adapter):
        created = await adapter.create_content_resource(_new("cr_1"))
        updated = await adapter.update_content_resource(
            "cr_1", UpdateContentResource(type="module")
        )
        assert updated.updated_at > created.updated_at
        assert updated.created_at == created.created_at
        assert updated.type == "module"

    @pytest.mark.asyncio
    async def test_missing_is_not_found(self, adapter):
        with pytest.raises(GremlinError) as exc_info:
            await adapter.update_content_resource("cr_nope", UpdateContentResource())
        assert exc_info.value.code is ErrorCode.NOT_FOUND


class TestDeleteContentResource:
    @pytest.mark.asyncio
    async def test_soft_deletes(self, adapter):
        await adapter.create_content_resource(_new("cr_1"))
        assert await adapter.delete_content_resource("cr_1") is True
        assert await adapter.get_content_resource("cr_1") is None

    @pytest.mark.asyncio
    async def test_missing_returns_false(self, adapter):
        assert await adapter.delete_content_resource("cr_nope") is False


class TestRelationships:
    @pytest.fixture
    def parent_and_child(self):
        """Adapter pre-seeded with cr_parent, cr_child and cr_child2."""
        adapter = InMemoryContentResourceAdapter()
        now = datetime.now(UTC)
        for rid in ("cr_parent", "cr_child", "cr_child2"):
            adapter._resources[rid] = ContentResource(
                id=rid,
                type="lesson",
                created_by_id="user_xyz",
                created_at=now,
                updated_at=now,
            )
        return adapter

    @pytest.mark.asyncio
    async def test_add(self, parent_and_child):
        link = await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        assert link.resource_of_id == "cr_parent"
        assert link.resource_id == "cr_child"
        assert link.position == 1.0

    @pytest.mark.asyncio
    async def test_add_appends_at_end(self, parent_and_child):
        await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        link = await parent_and_child.add_resource_to_resource("cr_parent", "cr_child2")
        assert link.position == 2.0

    @pytest.mark.asyncio
    async def test_add_with_position_and_metadata(self, parent_and_child):
        link = await parent_and_child.add_resource_to_resource(
            "cr_parent",
            "cr_child",
            NewContentResourceResource(position=5.5, metadata={"tier": "free", "order": 1}),
        )
        assert link.position == 5.5
        assert link.metadata == {"tier": "free", "order": 1}

    @pytest.mark.asyncio
    async def test_add_missing_resource(self, parent_and_child):
        with pytest.raises(GremlinError) as exc_info:
            await parent_and_child.add_resource_to_resource("cr_parent", "cr_ghost")
        assert exc_info.value.code is ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_add_twice_conflicts(self, parent_and_child):
        await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        with pytest.raises(GremlinError) as exc_info:
            await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        assert exc_info.value.code is ErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_add_to_itself_rejected(self, parent_and_child):
        with pytest.raises(GremlinError) as exc_info:
            await parent_and_child.add_resource_to_resource("cr_parent", "cr_parent")
        assert exc_info.value.code is ErrorCode.VALIDATION
        assert parent_and_child._links == {}

    @pytest.mark.asyncio
    async def test_remove(self, parent_and_child):
        await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        assert await parent_and_child.remove_resource_from_resource("cr_parent", "cr_child") is True
        loaded = await parent_and_child.get_content_resource("cr_parent", depth=1)
        assert loaded.resources == []

    @pytest.mark.asyncio
    async def test_remove_missing_returns_false(self, parent_and_child):
        assert (
            await parent_and_child.remove_resource_from_resource("cr_parent", "cr_child") is False
        )

    @pytest.mark.asyncio
    async def test_re_add_after_remove(self, parent_and_child):
        await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        await parent_and_child.remove_resource_from_resource("cr_parent", "cr_child")
        link = await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        assert link.deleted_at is None

    @pytest.mark.asyncio
    async def test_reorder(self, parent_and_child):
        await parent_and_child.add_resource_to_resource("cr_parent", "cr_child")
        updated = await parent_and_child.reorder_resource("cr_parent", "cr_child", 2.5)
        assert updated.position == 2.5

    @pytest.mark.asyncio
    async def test_reorder_missing_relationship(self, parent_and_child):
        with pytest.raises(GremlinError) as exc_info:
            await parent_and_child.reorder_resource("cr_parent", "cr_child", 2.5)
        assert exc_info.value.code is ErrorCode.NOT_FOUND
        assert exc_info.value.message == "Relationship not found: cr_parent -> cr_child"
