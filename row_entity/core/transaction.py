"""Transactions over a single pinned connection.

``async with engine.transaction() as tx`` commits when the block exits
cleanly and rolls back when it raises. A transaction is itself a Database,
so entity operations run inside it unchanged.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from row_entity.core.exceptions import TransactionError, TransactionStateError
from row_entity.core.protocol import Database, ExecResult, NamedStatement

if TYPE_CHECKING:
    from row_entity.core.connection import AsyncConnectionManager

T = TypeVar("T")

_SAVEPOINT_NAME = re.compile(r"^[0-9a-zA-Z_]+$")


class TxState(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class AsyncTransactionManager:
    def __init__(self, connections: AsyncConnectionManager) -> None:
        self._connections = connections
        self._conn: Any = None
        self.state = TxState.PENDING

    @property
    def driver_name(self) -> str:
        return self._connections.config.driver

    async def __aenter__(self) -> AsyncTransactionManager:
        if self.state is not TxState.PENDING:
            raise TransactionStateError(self.state.value, "begin")
        self._conn = await self._connections.acquire()
        self.state = TxState.ACTIVE
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        conn, self._conn = self._conn, None
        try:
            if self.state is TxState.ACTIVE:
                if exc_type is None:
                    await self._commit_or_roll_back(conn)
                else:
                    await conn.rollback()
                    self.state = TxState.ROLLED_BACK
        finally:
            await self._connections.release(conn)

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> ExecResult:
        return await self._connections.execute(self._active("execute"), sql, params)

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self._connections.query(self._active("query"), sql, params)

    async def prepare(self, sql: str) -> NamedStatement:
        self._active("prepare")
        return NamedStatement(self, sql)

    async def commit(self) -> None:
        await self._commit_or_roll_back(self._active("commit"))

    async def rollback(self) -> None:
        await self._active("rollback").rollback()
        self.state = TxState.ROLLED_BACK

    async def _commit_or_roll_back(self, conn: Any) -> None:
        try:
            await conn.commit()
        except BaseException:
            await conn.rollback()
            self.state = TxState.ROLLED_BACK
            raise
        self.state = TxState.COMMITTED

    def _active(self, operation: str) -> Any:
        if self.state is not TxState.ACTIVE:
            raise TransactionStateError(self.state.value, operation)
        return self._conn


async def run_in_transaction(db: Any, fn: Callable[[Database], Awaitable[T]]) -> T:
    """Run *fn* inside a transaction.

    If *db* already is a transaction, *fn* runs in it directly; if it can
    open one (has ``transaction()``), a new transaction wraps the call.

    Raises:
        TransactionError: If *db* is neither.
    """
    if isinstance(db, AsyncTransactionManager):
        return await fn(db)
    begin = getattr(db, "transaction", None)
    if callable(begin):
        async with begin() as tx:
            return await fn(tx)
    raise TransactionError(
        f"{type(db).__name__} is neither a transaction nor a transaction initiator"
    )


@asynccontextmanager
async def savepoint(tx: Any, name: str) -> AsyncIterator[None]:
    """Run a block under ``SAVEPOINT name``.

    Released on success; on error the transaction rolls back to the
    savepoint and the error propagates.

    Raises:
        TransactionError: On an invalid name or when *tx* is not a transaction.
    """
    if not _SAVEPOINT_NAME.match(name):
        raise TransactionError(f"Invalid savepoint name: {name!r}")
    if not isinstance(tx, AsyncTransactionManager):
        raise TransactionError("Savepoints require an active transaction")

    await tx.execute(f"SAVEPOINT {name}")
    try:
        yield
    except BaseException:
        await tx.execute(f"ROLLBACK TO SAVEPOINT {name}")
        raise
    await tx.execute(f"RELEASE SAVEPOINT {name}")
