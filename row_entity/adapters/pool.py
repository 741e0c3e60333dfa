"""Fixed-size async connection pool shared by the driver adapters."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from row_entity.core.exceptions import PoolError

Closer = Callable[[Any], Awaitable[None] | None]


class ConnectionPool:
    """Holds ``size`` open connections; acquire waits up to ``timeout`` seconds.

    Connections are opened eagerly by :meth:`open` and closed with the
    driver's own *close_connection* function.
    """

    def __init__(self, size: int, timeout: float, close_connection: Closer) -> None:
        if size < 1:
            raise PoolError(f"pool_size must be at least 1, got {size}")
        self.size = size
        self.timeout = timeout
        self._close_connection = close_connection
        self._idle: asyncio.Queue[Any] = asyncio.Queue()
        self._all: list[Any] = []

    @classmethod
    async def open(
        cls,
        size: int,
        timeout: float,
        connect: Callable[[], Awaitable[Any]],
        close_connection: Closer,
    ) -> ConnectionPool:
        """Open *size* connections; if one fails, those already open are closed."""
        pool = cls(size, timeout, close_connection)
        try:
            for _ in range(size):
                conn = await connect()
                pool._all.append(conn)
                pool._idle.put_nowait(conn)
        except BaseException:
            await pool.close()
            raise
        return pool

    async def acquire(self) -> Any:
        if not self._all:
            raise PoolError("Pool is closed")
        try:
            async with asyncio.timeout(self.timeout):
                return await self._idle.get()
        except TimeoutError as e:
            raise PoolError(
                f"No connection available within {self.timeout:g}s (pool_size={self.size})"
            ) from e

    def release(self, connection: Any) -> None:
        if connection in self._all:
            self._idle.put_nowait(connection)

    async def close(self) -> None:
        connections, self._all = self._all, []
        self._idle = asyncio.Queue()
        for conn in connections:
            result = self._close_connection(conn)
            if result is not None:
                await result

    @property
    def idle(self) -> int:
        return self._idle.qsize()

    def __len__(self) -> int:
        return len(self._all)
