"""Connection and entity configuration, pooled connection management.

ConnectionConfig and EntityConfig are Pydantic models. AsyncConnectionManager
picks the adapter for the configured driver and runs statements on pooled
connections.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from pydantic import BaseModel, Field

from row_entity.core.dialect import resolve_dialect
from row_entity.core.enums import Dialect
from row_entity.core.exceptions import AdapterError, ConnectionError  # noqa: A004
from row_entity.core.params import fetch_rows, normalize_params
from row_entity.core.protocol import ExecResult


class ConnectionConfig(BaseModel):
    """Where to connect and how many connections to keep open."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = Field(default=5, ge=1)
    pool_timeout: float = Field(default=30.0, gt=0)
    extra: dict[str, Any] = {}

    @property
    def dialect(self) -> Dialect:
        return resolve_dialect(self.driver)


class EntityConfig(BaseModel):
    """Deadlines and cache defaults applied by the entity manager.

    Timeouts are in seconds and cap the whole operation, cache round trips
    included.
    """

    read_timeout: float = Field(default=3.0, gt=0)
    write_timeout: float = Field(default=3.0, gt=0)
    cache_expiration: float = Field(default=300.0, gt=0)


# dialect -> (module path, adapter class)
_ADAPTERS: dict[Dialect, tuple[str, str]] = {
    Dialect.SQLITE: ("row_entity.adapters.sqlite", "SqliteAsyncAdapter"),
    Dialect.POSTGRES: ("row_entity.adapters.postgresql", "PostgresqlAsyncAdapter"),
    Dialect.MYSQL: ("row_entity.adapters.mysql", "MysqlAsyncAdapter"),
}


def load_adapter(driver: str) -> Any:
    """Instantiate the adapter serving *driver* or any of its aliases."""
    target = _ADAPTERS.get(resolve_dialect(driver))
    if target is None:
        raise AdapterError(f"Unsupported database driver: {driver}")
    module_path, cls_name = target
    try:
        return getattr(importlib.import_module(module_path), cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e


class AsyncConnectionManager:
    """Owns the adapter and its lazily opened pool.

    Statements pass through :meth:`execute` and :meth:`query`, which rewrite
    ``:name`` placeholders into the adapter's paramstyle and shape the
    driver cursor into an ExecResult or a list of dict rows.
    """

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self.adapter = adapter if adapter is not None else load_adapter(config.driver)
        self._pool: Any = None
        self._pool_lock = asyncio.Lock()

    @property
    def paramstyle(self) -> str:
        return self.adapter.paramstyle

    async def initialize_pool(self) -> Any:
        """Open the pool once; concurrent first callers share it."""
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is None:
                try:
                    self._pool = await self.adapter.create_pool_async(self.config)
                except AdapterError:
                    raise
                except Exception as e:
                    raise ConnectionError(
                        f"Failed to connect to '{self.config.driver}': {e}"
                    ) from e
        return self._pool

    async def acquire(self) -> Any:
        pool = await self.initialize_pool()
        return await self.adapter.acquire_connection_async(pool)

    async def release(self, connection: Any) -> None:
        if self._pool is not None:
            await self.adapter.release_connection_async(connection, self._pool)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Any]:
        """Borrow a pooled connection for the duration of the block."""
        conn = await self.acquire()
        try:
            yield conn
        finally:
            await self.release(conn)

    @asynccontextmanager
    async def autocommit(self) -> AsyncIterator[Any]:
        """Borrow a connection; commit after the block or roll back if it raises.

        A connection always returns to the pool outside any transaction.
        """
        async with self.connection() as conn:
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    async def execute(
        self, connection: Any, sql: str, params: dict[str, Any] | None = None
    ) -> ExecResult:
        sql = normalize_params(sql, self.paramstyle)
        cursor = await self.adapter.execute_async(connection, sql, params)
        try:
            return ExecResult(
                rowcount=int(cursor.rowcount),
                lastrowid=getattr(cursor, "lastrowid", None),
            )
        finally:
            await _close_cursor(cursor)

    async def query(
        self, connection: Any, sql: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        sql = normalize_params(sql, self.paramstyle)
        cursor = await self.adapter.execute_async(connection, sql, params)
        try:
            return await fetch_rows(cursor)
        finally:
            await _close_cursor(cursor)

    async def close_pool(self) -> None:
        async with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            await self.adapter.close_pool_async(pool)


async def _close_cursor(cursor: Any) -> None:
    close = getattr(cursor, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result
