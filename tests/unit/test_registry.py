"""Unit tests for SchemaRegistry."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import pytest

from row_entity.core.enums import Command, Dialect
from row_entity.core.exceptions import InvalidMappingError
from row_entity.core.registry import SchemaRegistry
from row_entity.schema.fields import db_field


@dataclass
class User:
    __tablename__ = "users"

    id: int = db_field("id,primaryKey,autoIncrement", default=0)
    name: str = db_field("name", default="")


@dataclass
class Broken:
    __tablename__ = "broken"

    name: str = db_field("name", default="")


class TestSchemaRegistry:
    def test_starts_empty(self) -> None:
        registry = SchemaRegistry()
        assert len(registry) == 0
        assert User not in registry

    def test_eager_registration(self) -> None:
        registry = SchemaRegistry(User)
        assert User in registry
        assert len(registry) == 1

    def test_eager_registration_validates(self) -> None:
        with pytest.raises(InvalidMappingError):
            SchemaRegistry(User, Broken)

    def test_metadata_from_instance_or_type(self) -> None:
        registry = SchemaRegistry()
        assert registry.metadata(User(id=1)) is registry.metadata(User)

    def test_statement_cached(self) -> None:
        registry = SchemaRegistry()
        md = registry.metadata(User)
        first = registry.statement(Command.SELECT, md, Dialect.MYSQL)
        assert registry.statement(Command.SELECT, md, Dialect.MYSQL) is first

    def test_statement_per_dialect(self) -> None:
        registry = SchemaRegistry()
        md = registry.metadata(User)
        mysql = registry.statement(Command.DELETE, md, Dialect.MYSQL)
        postgres = registry.statement(Command.DELETE, md, Dialect.POSTGRES)
        assert mysql == "DELETE FROM `users` WHERE `id` = :id"
        assert postgres == 'DELETE FROM "users" WHERE "id" = :id'

    def test_upsert_rejected_every_time(self) -> None:
        registry = SchemaRegistry()
        md = registry.metadata(User)
        for _ in range(2):
            with pytest.raises(InvalidMappingError):
                registry.statement(Command.UPSERT, md, Dialect.POSTGRES)

    def test_registries_are_independent(self) -> None:
        first, second = SchemaRegistry(User), SchemaRegistry()
        assert User in first
        assert User not in second

    def test_concurrent_callers_share_one_object(self) -> None:
        registry = SchemaRegistry()
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: registry.metadata(User), range(32)))
        assert all(md is results[0] for md in results)
