"""Unit tests for the CRUD executor against a recording fake database."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from conftest import FakeDatabase

from row_entity.core.enums import Command
from row_entity.core.exceptions import (
    AdapterError,
    ConflictError,
    DriverError,
    InvalidMappingError,
    NotFoundError,
)
from row_entity.core.executor import Executor
from row_entity.core.registry import SchemaRegistry
from row_entity.schema.fields import db_field


@dataclass
class User:
    __tablename__ = "users"

    id: int = db_field("id,primaryKey,autoIncrement", default=0)
    email: str = db_field("email", default="")
    name: str = db_field("name", default="")


@dataclass
class Document:
    __tablename__ = "documents"

    id: int = db_field("id,primaryKey,autoIncrement", default=0)
    body: str = db_field("body", default="")
    version: int = db_field("version,returning", default=0)


@dataclass
class Setting:
    __tablename__ = "settings"

    key: str = db_field("key,primaryKey", default="")
    value: str = db_field("value", default="")


@dataclass
class Tag:
    __tablename__ = "tags"

    name: str = db_field("name,primaryKey", default="")
    created: str = db_field("created,returning", default="")


@pytest.fixture
def executor() -> Executor:
    return Executor(SchemaRegistry())


class TestLoad:
    async def test_scans_row(self, executor: Executor, fake_db: FakeDatabase) -> None:
        fake_db.rows = [{"id": 7, "email": "a@b.c", "name": "Ann"}]
        user = User(id=7)
        await executor.load(user, fake_db)
        assert user.name == "Ann"
        assert fake_db.calls == [
            (
                "query",
                'SELECT "id", "email", "name" FROM "users" WHERE "id" = :id LIMIT 1',
                {"id": 7, "email": "", "name": ""},
            )
        ]

    async def test_not_found(self, executor: Executor, fake_db: FakeDatabase) -> None:
        with pytest.raises(NotFoundError):
            await executor.load(User(id=1), fake_db)

    async def test_driver_error_wrapped(self, executor: Executor, fake_db: FakeDatabase) -> None:
        cause = RuntimeError("connection reset")
        fake_db.error = cause
        with pytest.raises(DriverError) as info:
            await executor.load(User(id=1), fake_db)
        assert info.value.__cause__ is cause
        assert info.value.command == "select"

    async def test_duplicate_text_on_read_is_not_conflict(
        self, executor: Executor, fake_db: FakeDatabase
    ) -> None:
        fake_db.error = RuntimeError("UNIQUE constraint failed: users.email")
        with pytest.raises(DriverError):
            await executor.load(User(id=1), fake_db)


class TestInsert:
    async def test_returns_last_insert_id(self, executor: Executor, fake_db: FakeDatabase) -> None:
        fake_db.lastrowid = 42
        assert await executor.insert(User(email="x"), fake_db) == 42
        kind, sql, params = fake_db.calls[0]
        assert kind == "execute"
        assert sql == 'INSERT INTO "users" ("email", "name") VALUES (:email, :name)'

    async def test_postgres_returns_none(self, executor: Executor) -> None:
        db = FakeDatabase("postgres")
        db.lastrowid = 42
        assert await executor.insert(User(email="x"), db) is None

    async def test_returning_scans_back(self, executor: Executor) -> None:
        db = FakeDatabase("postgres")
        db.rows = [{"version": 1}]
        doc = Document(body="text")
        assert await executor.insert(doc, db) is None
        assert doc.version == 1
        assert [kind for kind, _, _ in db.calls] == ["query"]

    async def test_returning_without_rows(self, executor: Executor) -> None:
        db = FakeDatabase("postgres")
        with pytest.raises(NotFoundError):
            await executor.insert(Document(body="text"), db)

    async def test_conflict(self, executor: Executor) -> None:
        db = FakeDatabase("postgres")
        cause = RuntimeError('duplicate key value violates unique constraint "users_email_key"')
        db.error = cause
        with pytest.raises(ConflictError) as info:
            await executor.insert(User(email="x"), db)
        assert info.value.__cause__ is cause
        assert info.value.table == "users"

    async def test_other_dialect_text_is_driver_error(self, executor: Executor) -> None:
        db = FakeDatabase("mysql")
        db.error = RuntimeError('duplicate key value violates unique constraint "k"')
        with pytest.raises(DriverError):
            await executor.insert(User(email="x"), db)

    async def test_library_errors_not_rewrapped(
        self, executor: Executor, fake_db: FakeDatabase
    ) -> None:
        fake_db.error = AdapterError("pool exhausted")
        with pytest.raises(AdapterError):
            await executor.insert(User(email="x"), fake_db)


class TestUpdate:
    async def test_updates(self, executor: Executor, fake_db: FakeDatabase) -> None:
        await executor.update(User(id=1, email="e", name="n"), fake_db)
        assert fake_db.sql == [
            'UPDATE "users" SET "email" = :email, "name" = :name WHERE "id" = :id'
        ]

    async def test_zero_rows_affected(self, executor: Executor, fake_db: FakeDatabase) -> None:
        fake_db.rowcount = 0
        with pytest.raises(NotFoundError):
            await executor.update(User(id=1), fake_db)

    async def test_returning(self, executor: Executor) -> None:
        db = FakeDatabase("postgres")
        db.rows = [{"version": 5}]
        doc = Document(id=1, body="b")
        await executor.update(doc, db)
        assert doc.version == 5

    async def test_returning_zero_rows(self, executor: Executor) -> None:
        db = FakeDatabase("postgres")
        with pytest.raises(NotFoundError):
            await executor.update(Document(id=1), db)


class TestUpsert:
    async def test_executes(self, executor: Executor, fake_db: FakeDatabase) -> None:
        fake_db.rowcount = 0
        await executor.upsert(Setting(key="k", value="v"), fake_db)
        assert fake_db.sql == [
            'INSERT INTO "settings" ("key", "value") VALUES (:key, :value) '
            'ON CONFLICT ("key") DO UPDATE SET "value" = EXCLUDED."value"'
        ]

    async def test_returning_scans_row(self) -> None:
        db = FakeDatabase("postgres")
        db.rows = [{"created": "2024-01-01"}]
        tag = Tag(name="python")
        await Executor(SchemaRegistry()).upsert(tag, db)

        assert tag.created == "2024-01-01"
        assert db.calls == [
            (
                "query",
                'INSERT INTO "tags" ("name") VALUES (:name) '
                'ON CONFLICT ("name") DO UPDATE SET "name" = EXCLUDED."name" '
                'RETURNING "created"',
                {"name": "python", "created": ""},
            )
        ]

    async def test_returning_zero_rows(self, executor: Executor) -> None:
        with pytest.raises(NotFoundError):
            await executor.upsert(Tag(name="python"), FakeDatabase("postgres"))

    async def test_auto_increment_key_rejected_before_sql(
        self, executor: Executor, fake_db: FakeDatabase
    ) -> None:
        with pytest.raises(InvalidMappingError):
            await executor.upsert(User(id=1), fake_db)
        assert fake_db.calls == []


class TestDelete:
    async def test_zero_rows_is_not_an_error(
        self, executor: Executor, fake_db: FakeDatabase
    ) -> None:
        fake_db.rowcount = 0
        await executor.delete(User(id=1), fake_db)
        assert fake_db.sql == ['DELETE FROM "users" WHERE "id" = :id']


class TestPrepare:
    async def test_prepare_insert(self, executor: Executor, fake_db: FakeDatabase) -> None:
        md, _, handle = await executor.prepare(Command.INSERT, User, fake_db)
        assert md.table_name == "users"
        assert fake_db.calls[0][0] == "prepare"
        await handle.close()

    async def test_prepare_delete_rejected(
        self, executor: Executor, fake_db: FakeDatabase
    ) -> None:
        with pytest.raises(InvalidMappingError):
            await executor.prepare(Command.DELETE, User, fake_db)
