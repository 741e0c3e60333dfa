"""Unit tests for parameter conversion, binding and row scanning."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from row_entity.core.exceptions import ColumnMismatchError
from row_entity.core.params import (
    build_entity,
    entity_params,
    fetch_rows,
    normalize_params,
    scan_row,
)
from row_entity.schema.fields import db_field, embedded
from row_entity.schema.metadata import resolve_metadata


@dataclass
class Audit:
    created_by: str = db_field("created_by", default="")
    updated_by: str = db_field("updated_by", default="")


@dataclass
class Post:
    __tablename__ = "posts"

    id: int = db_field("id,primaryKey", default=0)
    title: str = db_field("title", default="")
    audit: Audit | None = embedded(default=None)


@dataclass
class Strict:
    __tablename__ = "strict"

    id: int = db_field("id,primaryKey")
    secret: str


class TestNormalizeParams:
    def test_named_passthrough(self) -> None:
        sql = "SELECT * FROM users WHERE id = :user_id AND name LIKE 'a%'"
        assert normalize_params(sql, "named") == sql

    @pytest.mark.parametrize(
        ("sql", "expected"),
        [
            ("SELECT 1", "SELECT 1"),
            (
                "DELETE FROM users WHERE id = :user_id",
                "DELETE FROM users WHERE id = %(user_id)s",
            ),
            (
                "SELECT * FROM t WHERE a = :val OR b = :val",
                "SELECT * FROM t WHERE a = %(val)s OR b = %(val)s",
            ),
            (
                "SELECT value::integer FROM t WHERE id = :id",
                "SELECT value::integer FROM t WHERE id = %(id)s",
            ),
            (
                "SELECT * FROM t WHERE col = ':not_a_param' AND id = :id",
                "SELECT * FROM t WHERE col = ':not_a_param' AND id = %(id)s",
            ),
            (
                "SELECT * FROM t WHERE note = 'it\\'s :x' AND id = :id",
                "SELECT * FROM t WHERE note = 'it\\'s :x' AND id = %(id)s",
            ),
        ],
    )
    def test_pyformat(self, sql: str, expected: str) -> None:
        assert normalize_params(sql, "pyformat") == expected

    def test_percent_is_escaped(self) -> None:
        sql = "SELECT * FROM t WHERE name LIKE 'a%' AND score % 2 = :rem"
        expected = "SELECT * FROM t WHERE name LIKE 'a%%' AND score %% 2 = %(rem)s"
        assert normalize_params(sql, "pyformat") == expected


class _Cursor:
    def __init__(self, description, rows) -> None:  # type: ignore[no-untyped-def]
        self.description = description
        self._rows = rows

    async def fetchall(self):  # type: ignore[no-untyped-def]
        return self._rows


class TestEntityBinding:
    def test_params_by_column_name(self) -> None:
        post = Post(id=3, title="hello", audit=Audit(created_by="ann"))
        assert entity_params(resolve_metadata(Post), post) == {
            "id": 3,
            "title": "hello",
            "created_by": "ann",
            "updated_by": "",
        }

    def test_missing_embedded_binds_none(self) -> None:
        params = entity_params(resolve_metadata(Post), Post(id=1))
        assert params["created_by"] is None

    def test_scan_row_assigns_values(self) -> None:
        post = Post(id=1)
        scan_row(resolve_metadata(Post), post, {"title": "t", "unknown": 1})
        assert post.title == "t"

    def test_scan_row_creates_embedded(self) -> None:
        post = Post(id=1)
        scan_row(resolve_metadata(Post), post, {"created_by": "bob"})
        assert post.audit == Audit(created_by="bob")

    def test_build_entity(self) -> None:
        post = build_entity(
            resolve_metadata(Post),
            {"id": 2, "title": "x", "created_by": "a", "updated_by": "b"},
        )
        assert post == Post(id=2, title="x", audit=Audit(created_by="a", updated_by="b"))

    def test_build_entity_mismatch(self) -> None:
        with pytest.raises(ColumnMismatchError):
            build_entity(resolve_metadata(Strict), {"id": 1})


class TestFetchRows:
    async def test_tuple_rows(self) -> None:
        cursor = _Cursor([("id",), ("name",)], [(1, "a"), (2, "b")])
        assert await fetch_rows(cursor) == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]

    async def test_dict_rows(self) -> None:
        cursor = _Cursor([("id",)], [{"id": 1}])
        assert await fetch_rows(cursor) == [{"id": 1}]

    async def test_no_result_set(self) -> None:
        assert await fetch_rows(_Cursor(None, [])) == []
