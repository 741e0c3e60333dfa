"""CRUD executor.

Resolves metadata, fetches the cached statement, binds the entity as named
parameters, runs exactly one statement and scans RETURNING rows back onto
the entity. Driver failures are classified into ConflictError (writes
only) or DriverError; zero matched rows become NotFoundError.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

from row_entity.core.dialect import ConflictClassifier, is_conflict_error, resolve_dialect
from row_entity.core.enums import Command, Dialect
from row_entity.core.exceptions import (
    ConflictError,
    DriverError,
    EntityError,
    InvalidMappingError,
    NotFoundError,
)
from row_entity.core.params import entity_params, scan_row
from row_entity.core.protocol import Database, NamedStatement, PreparedStatement
from row_entity.core.registry import SchemaRegistry
from row_entity.core.statements import check_upsert
from row_entity.schema.metadata import Metadata

R = TypeVar("R")

_WRITE_COMMANDS = frozenset({Command.INSERT, Command.UPDATE, Command.UPSERT})


class Executor:
    """Runs single-entity CRUD statements against a Database.

    Args:
        registry: Metadata and statement cache.
        classifiers: Per-dialect conflict classifiers; defaults to
            structured error codes with error-text fallback.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        classifiers: Mapping[Dialect, ConflictClassifier] | None = None,
    ) -> None:
        self._registry = registry
        self._classifiers = classifiers

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    def _statement(
        self, command: Command, entity: Any, db: Database
    ) -> tuple[Metadata, Dialect, NamedStatement]:
        md = self._registry.metadata(entity)
        dialect = resolve_dialect(db.driver_name)
        sql = self._registry.statement(command, md, dialect)
        return md, dialect, NamedStatement(db, sql)

    async def _run(
        self,
        command: Command,
        md: Metadata,
        dialect: Dialect,
        call: Awaitable[R],
    ) -> R:
        try:
            return await call
        except EntityError:
            raise
        except Exception as e:
            if command in _WRITE_COMMANDS and is_conflict_error(e, dialect, self._classifiers):
                raise ConflictError(command.value, md.table_name) from e
            raise DriverError(command.value, str(e)) from e

    async def _query_one(
        self,
        command: Command,
        md: Metadata,
        dialect: Dialect,
        stmt: PreparedStatement,
        entity: Any,
    ) -> None:
        rows = await self._run(command, md, dialect, stmt.query(entity_params(md, entity)))
        if not rows:
            raise NotFoundError(command.value, md.table_name)
        scan_row(md, entity, rows[0])

    # --- verbs ---

    async def load(self, entity: Any, db: Database) -> None:
        """Load *entity* by primary key.

        Raises:
            NotFoundError: No row matched.
        """
        md, dialect, stmt = self._statement(Command.SELECT, entity, db)
        await self._query_one(Command.SELECT, md, dialect, stmt, entity)

    async def insert(self, entity: Any, db: Database) -> int | None:
        """Insert *entity*; return the generated id where the dialect reports one."""
        md, dialect, stmt = self._statement(Command.INSERT, entity, db)
        return await self.insert_with(stmt, md, dialect, entity)

    async def insert_with(
        self, stmt: PreparedStatement, md: Metadata, dialect: Dialect, entity: Any
    ) -> int | None:
        if md.has_returning_insert:
            await self._query_one(Command.INSERT, md, dialect, stmt, entity)
            return None

        result = await self._run(Command.INSERT, md, dialect, stmt.execute(entity_params(md, entity)))
        if not dialect.supports_last_insert_id:
            return None
        return result.lastrowid

    async def update(self, entity: Any, db: Database) -> None:
        """Update *entity* by primary key.

        Raises:
            NotFoundError: No row matched (zero RETURNING rows or zero
                affected rows).
        """
        md, dialect, stmt = self._statement(Command.UPDATE, entity, db)
        await self.update_with(stmt, md, dialect, entity)

    async def update_with(
        self, stmt: PreparedStatement, md: Metadata, dialect: Dialect, entity: Any
    ) -> None:
        if md.has_returning_update:
            await self._query_one(Command.UPDATE, md, dialect, stmt, entity)
            return

        result = await self._run(Command.UPDATE, md, dialect, stmt.execute(entity_params(md, entity)))
        if result.rowcount < 1:
            raise NotFoundError(Command.UPDATE.value, md.table_name)

    async def upsert(self, entity: Any, db: Database) -> None:
        """Insert or update *entity* keyed by its primary key(s).

        Raises:
            InvalidMappingError: A primary key is auto-increment.
            NotFoundError: RETURNING columns exist but no row came back.
        """
        check_upsert(self._registry.metadata(entity))
        md, dialect, stmt = self._statement(Command.UPSERT, entity, db)
        if md.has_returning_upsert:
            await self._query_one(Command.UPSERT, md, dialect, stmt, entity)
            return
        await self._run(Command.UPSERT, md, dialect, stmt.execute(entity_params(md, entity)))

    async def delete(self, entity: Any, db: Database) -> None:
        """Delete *entity* by primary key. Zero matched rows is not an error."""
        md, dialect, stmt = self._statement(Command.DELETE, entity, db)
        await self._run(Command.DELETE, md, dialect, stmt.execute(entity_params(md, entity)))

    async def prepare(
        self, command: Command, entity_type: type, db: Database
    ) -> tuple[Metadata, Dialect, PreparedStatement]:
        """Prepare *command* for *entity_type* on *db*.

        The caller owns the returned handle and must close it.
        """
        if command not in (Command.INSERT, Command.UPDATE):
            raise InvalidMappingError(str(entity_type), f"cannot prepare {command.value}")
        md = self._registry.metadata(entity_type)
        dialect = resolve_dialect(db.driver_name)
        sql = self._registry.statement(command, md, dialect)
        handle = await self._run(command, md, dialect, db.prepare(sql))
        return md, dialect, handle
