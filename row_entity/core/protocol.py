"""Database collaborator protocol.

The executor never owns connections: it borrows an object implementing
:class:`Database` per call. :class:`row_entity.core.engine.AsyncEngine` and
:class:`row_entity.core.transaction.AsyncTransactionManager` implement it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from row_entity.core.exceptions import AdapterError


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a non row-returning statement."""

    rowcount: int
    lastrowid: int | None = None


@runtime_checkable
class PreparedStatement(Protocol):
    """A statement prepared once and executed many times."""

    async def execute(self, params: dict[str, Any]) -> ExecResult: ...

    async def query(self, params: dict[str, Any]) -> list[dict[str, Any]]: ...

    async def close(self) -> None: ...


@runtime_checkable
class Database(Protocol):
    """Named-parameter execution capability."""

    @property
    def driver_name(self) -> str:
        """Driver name, used to select the SQL dialect."""
        ...

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> ExecResult:
        """Execute a statement; return affected rows and last generated id."""
        ...

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a statement that returns rows."""
        ...

    async def prepare(self, sql: str) -> PreparedStatement:
        """Prepare *sql* for repeated execution."""
        ...


class NamedStatement:
    """PreparedStatement bound to a Database and fixed SQL text.

    DB-API drivers prepare implicitly, so this only pins the statement and
    refuses use after close().
    """

    def __init__(self, db: Database, sql: str) -> None:
        self._db = db
        self._sql = sql
        self._closed = False

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def closed(self) -> bool:
        return self._closed

    async def execute(self, params: dict[str, Any]) -> ExecResult:
        self._check_open()
        return await self._db.execute(self._sql, params)

    async def query(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        self._check_open()
        return await self._db.query(self._sql, params)

    async def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise AdapterError("prepared statement is closed")
