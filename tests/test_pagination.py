"""Tests for the pagination contract (pagination.py)."""

import pytest
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from gremlin.pagination import Page, PaginationParams


class TestPage:
    def test_last_page(self):
        page = Page[int](items=[1, 2])
        assert page.has_more is False
        assert page.cursor is None

    def test_more_pages(self):
        page = Page[int](items=[1], cursor="abc", has_more=True)
        assert page.cursor == "abc"

    def test_wire_alias_accepted(self):
        page = Page[int].model_validate({"items": [], "cursor": "c", "hasMore": True})
        assert page.has_more is True

    def test_has_more_requires_cursor(self):
        with pytest.raises(ValidationError):
            Page[int](items=[1], has_more=True)

    def test_empty_cursor_rejected(self):
        with pytest.raises(ValidationError):
            Page[int](items=[1], cursor="", has_more=True)

    def test_cursor_without_more_rejected(self):
        with pytest.raises(ValidationError):
            Page[int](items=[1], cursor="abc", has_more=False)

    def test_items_are_validated(self):
        with pytest.raises(ValidationError):
            Page[int](items=["not a number"])

    def test_wire_shape_omits_absent_cursor(self):
        assert jsonable_encoder(Page[int](items=[1])) == {"items": [1], "hasMore": False}

    def test_wire_shape_with_cursor(self):
        page = Page[int](items=[1], cursor="next", has_more=True)
        assert jsonable_encoder(page) == {"items": [1], "cursor": "next", "hasMore": True}


class TestPaginationParams:
    def test_all_optional(self):
        params = PaginationParams()
        assert params.cursor is None
        assert params.limit is None
        assert params.offset is None

    def test_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            PaginationParams(limit=0)

    def test_offset_non_negative(self):
        assert PaginationParams(offset=0).offset == 0
        with pytest.raises(ValidationError):
            PaginationParams(offset=-1)
