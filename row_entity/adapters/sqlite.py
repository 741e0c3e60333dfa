"""SQLite adapter - async via aiosqlite."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

from row_entity.adapters.pool import ConnectionPool
from row_entity.core.connection import ConnectionConfig

MEMORY_DATABASE = ":memory:"


def _close(conn: Any) -> Awaitable[None] | None:
    return conn.close()


class SqliteAsyncAdapter:
    """Asynchronous SQLite adapter using aiosqlite.

    Every connection to ``:memory:`` opens a separate database, so an
    in-memory pool is always a single connection whatever ``pool_size``
    says. Foreign keys are enforced; file databases use WAL journaling.
    Unique violations surface as ``sqlite3.IntegrityError`` carrying
    ``sqlite_errorname``.
    """

    @property
    def paramstyle(self) -> str:
        return "named"

    async def create_pool_async(self, config: ConnectionConfig) -> ConnectionPool:
        import aiosqlite

        async def connect() -> Any:
            conn = await aiosqlite.connect(config.database, **config.extra)
            conn.row_factory = aiosqlite.Row
            try:
                pragmas = ["PRAGMA foreign_keys = ON"]
                if config.database != MEMORY_DATABASE:
                    pragmas.append("PRAGMA journal_mode = WAL")
                for pragma in pragmas:
                    # an unclosed PRAGMA cursor keeps its statement active
                    async with conn.execute(pragma):
                        pass
            except BaseException:
                await conn.close()
                raise
            return conn

        size = 1 if config.database == MEMORY_DATABASE else config.pool_size
        return await ConnectionPool.open(size, config.pool_timeout, connect, _close)

    async def acquire_connection_async(self, pool: ConnectionPool) -> Any:
        return await pool.acquire()

    async def release_connection_async(self, connection: Any, pool: ConnectionPool) -> None:
        pool.release(connection)

    async def close_pool_async(self, pool: ConnectionPool) -> None:
        await pool.close()

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Run *sql* with ``:name`` parameters; return the aiosqlite cursor."""
        return await connection.execute(sql, params or {})
