"""Generic entity repository.

Thin wrapper over an EntityManager and a Database for DDD-oriented usage:
entities are addressed by id, created through a factory and persisted
through the manager, so hooks and caching apply.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from row_entity.core.manager import EntityManager
from row_entity.core.params import build_entity
from row_entity.core.protocol import Database
from row_entity.repository.helpers import get_total_count
from row_entity.repository.pagination import Pagination, new_pagination
from row_entity.schema.metadata import Metadata

ID = TypeVar("ID")
E = TypeVar("E")

# Returns bool, or an awaitable of bool.
Apply = Callable[[E], Any]


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Repository(Generic[ID, E]):
    """Repository for one mapped type.

    Args:
        db: Engine or transaction to run statements on.
        entity_type: The mapped type this repository serves.
        factory: Builds an entity carrying only its primary key, e.g.
            ``lambda id: User(id=id)``.
        manager: Lifecycle manager; a default one is created when omitted.
    """

    def __init__(
        self,
        db: Database,
        entity_type: type[E],
        factory: Callable[[ID], E],
        manager: EntityManager | None = None,
    ) -> None:
        self.db = db
        self.entity_type = entity_type
        self.factory = factory
        self.manager = manager if manager is not None else EntityManager()

    def new_entity(self, id: ID) -> E:  # noqa: A002
        return self.factory(id)

    async def find(self, id: ID) -> E:  # noqa: A002
        """Load the entity with primary key *id*.

        Raises:
            NotFoundError: No such row.
        """
        entity = self.factory(id)
        await self.manager.load(entity, self.db)
        return entity

    async def create(self, entity: E) -> int | None:
        return await self.manager.insert(entity, self.db)

    async def save(self, entity: E) -> None:
        await self.manager.update(entity, self.db)

    async def update(self, id: ID, apply: Apply[E]) -> None:  # noqa: A002
        """Load, apply, and save when *apply* returns True."""
        entity = await self.find(id)
        if await _call(apply, entity):
            await self.save(entity)

    async def delete(self, entity: E) -> None:
        await self.manager.delete(entity, self.db)

    async def for_each(
        self,
        sql: str,
        params: dict[str, Any] | None,
        iteratee: Apply[E],
    ) -> None:
        """Build an entity for every row of *sql*; stop when *iteratee* returns False."""
        md = self._metadata()
        rows = await self.db.query(sql, params)
        for row in rows:
            await asyncio.sleep(0)
            if not await _call(iteratee, build_entity(md, row)):
                break

    async def update_by_query(
        self,
        sql: str,
        params: dict[str, Any] | None,
        apply: Apply[E],
    ) -> None:
        """Save every entity of *sql* for which *apply* returns True."""

        async def iteratee(entity: E) -> bool:
            if await _call(apply, entity):
                await self.save(entity)
            return True

        await self.for_each(sql, params, iteratee)

    async def page_query(
        self,
        sql: str,
        params: dict[str, Any] | None,
        current: int,
        size: int,
    ) -> tuple[list[E], Pagination]:
        """Return one page of entities of *sql* and the page arithmetic."""
        total = await get_total_count(self.db, sql, params)
        page = new_pagination(current, size, total)
        if total == 0:
            return [], page

        paged = dict(params or {})
        paged.update(page_limit=page.limit, page_offset=page.offset)
        rows = await self.db.query(
            f"{sql.rstrip().rstrip(';')} LIMIT :page_limit OFFSET :page_offset", paged
        )
        md = self._metadata()
        return [build_entity(md, row) for row in rows], page

    def _metadata(self) -> Metadata:
        return self.manager.registry.metadata(self.entity_type)
