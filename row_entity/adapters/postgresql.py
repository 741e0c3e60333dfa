"""PostgreSQL adapter - async via psycopg 3."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

from row_entity.adapters.pool import ConnectionPool
from row_entity.core.connection import ConnectionConfig


def conninfo_kwargs(config: ConnectionConfig) -> dict[str, Any]:
    """libpq keywords for *config*; ``extra`` entries are passed through."""
    kwargs: dict[str, Any] = {
        "host": config.host,
        "port": config.port,
        "user": config.user,
        "password": config.password,
        "dbname": config.database,
    }
    kwargs.update(config.extra)
    return {key: value for key, value in kwargs.items() if value is not None}


def _close(conn: Any) -> Awaitable[None] | None:
    return conn.close()


class PostgresqlAsyncAdapter:
    """Asynchronous PostgreSQL adapter using psycopg async connections.

    Rows come back as dicts. Generated keys are only available through
    RETURNING; cursors report no last insert id. Errors carry ``sqlstate``
    (``23505`` for unique violations).
    """

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    async def create_pool_async(self, config: ConnectionConfig) -> ConnectionPool:
        import psycopg
        from psycopg.conninfo import make_conninfo
        from psycopg.rows import dict_row

        conninfo = make_conninfo("", **conninfo_kwargs(config))

        async def connect() -> Any:
            return await psycopg.AsyncConnection.connect(conninfo, row_factory=dict_row)

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
        """Run *sql* with ``%(name)s`` parameters; return the psycopg cursor."""
        return await connection.execute(sql, params or {})
