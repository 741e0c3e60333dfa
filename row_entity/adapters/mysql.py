"""MySQL adapter - async via aiomysql."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

from row_entity.adapters.pool import ConnectionPool
from row_entity.core.connection import ConnectionConfig


def _close(conn: Any) -> Awaitable[None] | None:
    return conn.close()


class MysqlAsyncAdapter:
    """Asynchronous MySQL adapter using aiomysql.

    Connections set ``CLIENT_FOUND_ROWS`` so an UPDATE reports matched rows,
    not changed rows; otherwise saving an unchanged entity would look like
    a missing row. MySQL has no RETURNING clause: do not flag returning
    columns on types stored in MySQL. Duplicate keys raise error 1062.
    """

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    async def create_pool_async(self, config: ConnectionConfig) -> ConnectionPool:
        import aiomysql
        from pymysql.constants import CLIENT

        options: dict[str, Any] = {"charset": "utf8mb4", **config.extra}
        options["client_flag"] = options.get("client_flag", 0) | CLIENT.FOUND_ROWS

        async def connect() -> Any:
            return await aiomysql.connect(
                host=config.host or "localhost",
                port=config.port or 3306,
                user=config.user,
                password=config.password or "",
                db=config.database,
                **options,
            )

        return await ConnectionPool.open(config.pool_size, config.pool_timeout, connect, _close)

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
        """Run *sql* with ``%(name)s`` parameters; return a DictCursor."""
        import aiomysql

        cursor = await connection.cursor(aiomysql.DictCursor)
        await cursor.execute(sql, params or {})
        return cursor
