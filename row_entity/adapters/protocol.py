"""The driver seam.

An adapter wraps one async DB-API driver: it opens and lends pooled
connections and runs a single statement on a connection. Everything above
it (placeholder rewriting, commits, row shaping) lives in
``row_entity.core.connection``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_entity.core.connection import ConnectionConfig


@runtime_checkable
class AsyncAdapter(Protocol):
    @property
    def paramstyle(self) -> str:
        """``named`` when the driver accepts ``:name``; ``pyformat`` for ``%(name)s``."""
        ...

    async def create_pool_async(self, config: ConnectionConfig) -> Any: ...

    async def acquire_connection_async(self, pool: Any) -> Any:
        """Borrow a connection; raise PoolError when none frees up in time."""
        ...

    async def release_connection_async(self, connection: Any, pool: Any) -> None: ...

    async def close_pool_async(self, pool: Any) -> None: ...

    async def execute_async(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Run one statement already in the adapter's paramstyle.

        Returns the driver cursor. It must expose ``rowcount``,
        ``description`` and an awaitable ``fetchall()``; ``lastrowid`` is
        optional.
        """
        ...
