"""Async statement engine.

AsyncEngine implements the Database protocol in autocommit fashion: every
call borrows a pooled connection, runs one statement and commits, or rolls
back when the statement fails.
"""

from __future__ import annotations

import logging
from typing import Any

from row_entity.core.connection import AsyncConnectionManager, ConnectionConfig
from row_entity.core.protocol import ExecResult, NamedStatement
from row_entity.core.transaction import AsyncTransactionManager

logger = logging.getLogger(__name__)


class AsyncEngine:
    def __init__(self, connections: AsyncConnectionManager) -> None:
        self._connections = connections

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> AsyncEngine:
        return cls(AsyncConnectionManager(config))

    @property
    def driver_name(self) -> str:
        return self._connections.config.driver

    @property
    def connection_manager(self) -> AsyncConnectionManager:
        return self._connections

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> ExecResult:
        logger.debug("execute: %s", sql)
        async with self._connections.autocommit() as conn:
            return await self._connections.execute(conn, sql, params)

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Fetch all rows, then commit so ``... RETURNING`` writes persist."""
        logger.debug("query: %s", sql)
        async with self._connections.autocommit() as conn:
            return await self._connections.query(conn, sql, params)

    async def prepare(self, sql: str) -> NamedStatement:
        return NamedStatement(self, sql)

    def transaction(self) -> AsyncTransactionManager:
        """``async with engine.transaction() as tx:`` pins one connection."""
        return AsyncTransactionManager(self._connections)

    async def close(self) -> None:
        await self._connections.close_pool()
