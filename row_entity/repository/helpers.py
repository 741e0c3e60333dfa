"""Query helpers over a Database.

SQL is plain text with ``:name`` placeholders. Rows are returned as dicts,
or built into instances of a mapped type when ``into`` is given.
"""

from __future__ import annotations

import asyncio
import inspect
import re
from collections.abc import Awaitable, Callable
from typing import Any

from row_entity.core.exceptions import NotFoundError
from row_entity.core.params import build_entity
from row_entity.core.protocol import Database
from row_entity.core.registry import SchemaRegistry

_TRAILING_SEMICOLON = re.compile(r";\s*$")

# Used when a helper is called without a registry.
DEFAULT_REGISTRY = SchemaRegistry()


def _strip(sql: str) -> str:
    return _TRAILING_SEMICOLON.sub("", sql.strip())


def _into(
    rows: list[dict[str, Any]], into: type | None, registry: SchemaRegistry | None
) -> list[Any]:
    if into is None:
        return rows
    md = (registry if registry is not None else DEFAULT_REGISTRY).metadata(into)
    return [build_entity(md, row) for row in rows]


async def get_record(
    db: Database,
    sql: str,
    params: dict[str, Any] | None = None,
    *,
    into: type | None = None,
    registry: SchemaRegistry | None = None,
) -> Any:
    """Return the first row of *sql*.

    Raises:
        NotFoundError: The query returned no rows.
    """
    rows = await db.query(sql, params)
    if not rows:
        raise NotFoundError("select", "query")
    return _into(rows[:1], into, registry)[0]


async def get_records(
    db: Database,
    sql: str,
    params: dict[str, Any] | None = None,
    *,
    into: type | None = None,
    registry: SchemaRegistry | None = None,
) -> list[Any]:
    """Return every row of *sql*."""
    rows = await db.query(sql, params)
    return _into(rows, into, registry)


async def get_total_count(db: Database, sql: str, params: dict[str, Any] | None = None) -> int:
    """Count the rows *sql* would return."""
    rows = await db.query(f"SELECT count(1) AS total FROM ({_strip(sql)}) AS _count", params)
    if not rows:
        return 0
    return int(next(iter(rows[0].values())))


async def query_by(
    db: Database,
    sql: str,
    params: dict[str, Any] | None,
    fn: Callable[[dict[str, Any]], Awaitable[None] | None],
) -> None:
    """Call *fn* for every row of *sql*.

    Control returns to the event loop before each row, so a cancelled task
    stops between rows.
    """
    rows = await db.query(sql, params)
    for row in rows:
        await asyncio.sleep(0)
        result = fn(row)
        if inspect.isawaitable(result):
            await result


def upsert_target(entity: Any, registry: SchemaRegistry | None = None) -> str:
    """Return the ``ON CONFLICT`` target: primary key columns, comma separated."""
    md = (registry if registry is not None else DEFAULT_REGISTRY).metadata(entity)
    return ", ".join(col.db_field for col in md.primary_keys)


def is_not_found(exc: BaseException | None) -> bool:
    return isinstance(exc, NotFoundError)
