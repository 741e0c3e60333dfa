"""Unit tests for tag parsing and the column model."""

from __future__ import annotations

import pytest

from row_entity.schema.column import Column, parse_tag


class TestParseTag:
    def test_plain_name(self) -> None:
        tag = parse_tag("name")
        assert tag is not None
        assert tag.db_field == "name"
        assert not tag.primary_key

    def test_flags(self) -> None:
        tag = parse_tag("id,primaryKey,autoIncrement")
        assert tag is not None
        assert tag.primary_key
        assert tag.auto_increment

    def test_snake_case_tokens(self) -> None:
        tag = parse_tag("created_at, refuse_update")
        assert tag is not None
        assert tag.db_field == "created_at"
        assert tag.refuse_update

    def test_returning_sets_both(self) -> None:
        tag = parse_tag("version,returning")
        assert tag is not None
        assert tag.returning_insert
        assert tag.returning_update

    @pytest.mark.parametrize("raw", ["ignore", "-", " ignore "])
    def test_ignored(self, raw: str) -> None:
        assert parse_tag(raw) is None

    def test_deprecated(self) -> None:
        tag = parse_tag("old,deprecated")
        assert tag is not None
        assert tag.deprecated

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty column name"):
            parse_tag(",primaryKey")

    def test_unknown_token_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown token"):
            parse_tag("id,primary")


class TestColumnFromTag:
    @pytest.mark.parametrize(
        "raw",
        ["id,primaryKey", "id,autoIncrement", "v,returningUpdate", "v,returning", "c,refuseUpdate"],
    )
    def test_refuse_update_implied(self, raw: str) -> None:
        tag = parse_tag(raw)
        assert tag is not None
        assert Column.from_tag(("x",), tag).refuse_update

    def test_returning_insert_alone_stays_updatable(self) -> None:
        tag = parse_tag("v,returningInsert")
        assert tag is not None
        col = Column.from_tag(("v",), tag)
        assert col.returning_insert
        assert not col.refuse_update

    def test_attribute_path(self) -> None:
        tag = parse_tag("created_at")
        assert tag is not None
        col = Column.from_tag(("audit", "created_at"), tag)
        assert col.attribute == "audit.created_at"
        assert str(col) == "created_at"
