"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from row_entity.cache.memory import MemoryCache
from row_entity.core.connection import ConnectionConfig
from row_entity.core.protocol import ExecResult, NamedStatement


class FakeDatabase:
    """Database double that records every call.

    ``rows`` is returned by query(); ``rowcount``/``lastrowid`` by execute().
    Setting ``error`` makes the next statement raise it; ``delay`` makes
    every statement sleep first.
    """

    def __init__(self, driver_name: str = "sqlite") -> None:
        self.driver_name = driver_name
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self.rows: list[dict[str, Any]] = []
        self.rowcount = 1
        self.lastrowid: int | None = None
        self.error: Exception | None = None
        self.delay = 0.0
        self.closed_statements = 0

    async def _run(self, kind: str, sql: str, params: dict[str, Any] | None) -> None:
        self.calls.append((kind, sql, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            error, self.error = self.error, None
            raise error

    async def execute(self, sql: str, params: dict[str, Any] | None = None) -> ExecResult:
        await self._run("execute", sql, params)
        return ExecResult(rowcount=self.rowcount, lastrowid=self.lastrowid)

    async def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        await self._run("query", sql, params)
        return [dict(row) for row in self.rows]

    async def prepare(self, sql: str) -> NamedStatement:
        self.calls.append(("prepare", sql, None))
        db = self

        class _Tracked(NamedStatement):
            async def close(self) -> None:
                db.closed_statements += 1
                await super().close()

        return _Tracked(self, sql)

    @property
    def sql(self) -> list[str]:
        return [sql for kind, sql, _ in self.calls if kind != "prepare"]


class RecordingCache(MemoryCache):
    """MemoryCache that logs operations as ``(op, key)`` tuples."""

    def __init__(self) -> None:
        super().__init__()
        self.ops: list[tuple[str, str]] = []

    async def get(self, key: str) -> bytes | None:
        self.ops.append(("get", key))
        return await super().get(key)

    async def put(self, key: str, data: bytes, expiration: float) -> None:
        self.ops.append(("put", key))
        await super().put(key, data, expiration)

    async def delete(self, key: str) -> None:
        self.ops.append(("delete", key))
        await super().delete(key)


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def cache() -> RecordingCache:
    return RecordingCache()
