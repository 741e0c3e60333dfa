"""Entity lifecycle orchestration.

EntityManager wraps every executor call with a deadline, lifecycle hooks
and the read-through cache:

- load: cache read, then database load on a miss, then cache write
- insert: before hook, insert, after hook
- update / delete: before hook, statement, cache invalidation, after hook
- upsert: insert and update hooks around the statement, cache invalidation

An after-hook or cache invalidation failure is raised even though the
row mutation has already been committed.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from row_entity.cache.option import (
    Cacher,
    CacheOption,
    delete_cache,
    load_cache,
    resolve_cache_option,
    save_cache,
)
from row_entity.core.connection import EntityConfig
from row_entity.core.dialect import ConflictClassifier
from row_entity.core.enums import Command, Dialect, Event
from row_entity.core.exceptions import HookError, InvalidMappingError, OperationTimeoutError
from row_entity.core.executor import Executor
from row_entity.core.protocol import Database, PreparedStatement
from row_entity.core.registry import SchemaRegistry
from row_entity.schema.metadata import GENERIC_HOOK, Metadata

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _deadline(operation: str, timeout: float) -> AsyncIterator[None]:
    try:
        async with asyncio.timeout(timeout):
            yield
    except TimeoutError as e:
        if isinstance(e, OperationTimeoutError):
            raise
        raise OperationTimeoutError(operation, timeout) from e


class EntityManager:
    """Entry point for single-entity persistence.

    Args:
        registry: Schema registry to resolve metadata and statements from.
            A private registry is created when omitted.
        config: Timeouts and default cache expiration.
        cacher: Default cacher for entities whose cache option names none.
        classifiers: Per-dialect conflict classifiers.

    Usage::

        manager = EntityManager(SchemaRegistry(User), cacher=MemoryCache())
        user = User(id=1)
        await manager.load(user, engine)
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        *,
        config: EntityConfig | None = None,
        cacher: Cacher | None = None,
        classifiers: Mapping[Dialect, ConflictClassifier] | None = None,
    ) -> None:
        self.registry = registry if registry is not None else SchemaRegistry()
        self.config = config if config is not None else EntityConfig()
        self.cacher = cacher
        self._executor = Executor(self.registry, classifiers)

    @property
    def executor(self) -> Executor:
        return self._executor

    # --- lifecycle verbs ---

    async def load(self, entity: Any, db: Database) -> None:
        """Fill *entity* by primary key, reading through the cache."""
        async with _deadline("load", self.config.read_timeout):
            md = self.registry.metadata(entity)
            option = self._cache_option(md, entity)
            if option is not None:
                if await load_cache(entity, option):
                    logger.debug("cache hit: %s", option.key)
                    return
                logger.debug("cache miss: %s", option.key)

            await self._executor.load(entity, db)

            if option is not None:
                await save_cache(entity, option)

    async def insert(self, entity: Any, db: Database) -> int | None:
        """Insert *entity* and return the generated id, if the dialect reports one."""
        async with _deadline("insert", self.config.write_timeout):
            md = self.registry.metadata(entity)
            await self._hook(md, entity, Event.BEFORE_INSERT)
            last_id = await self._executor.insert(entity, db)
            await self._hook(md, entity, Event.AFTER_INSERT)
            return last_id

    async def update(self, entity: Any, db: Database) -> None:
        async with _deadline("update", self.config.write_timeout):
            md = self.registry.metadata(entity)
            await self._hook(md, entity, Event.BEFORE_UPDATE)
            await self._executor.update(entity, db)
            await self._invalidate(md, entity)
            await self._hook(md, entity, Event.AFTER_UPDATE)

    async def upsert(self, entity: Any, db: Database) -> None:
        """Insert or update *entity*.

        Both insert and update hooks run, reported under the ``upsert`` stage.
        """
        async with _deadline("upsert", self.config.write_timeout):
            md = self.registry.metadata(entity)
            await self._hook(md, entity, Event.BEFORE_INSERT, "before upsert")
            await self._hook(md, entity, Event.BEFORE_UPDATE, "before upsert")
            await self._executor.upsert(entity, db)
            await self._invalidate(md, entity)
            await self._hook(md, entity, Event.AFTER_INSERT, "after upsert")
            await self._hook(md, entity, Event.AFTER_UPDATE, "after upsert")

    async def delete(self, entity: Any, db: Database) -> None:
        async with _deadline("delete", self.config.write_timeout):
            md = self.registry.metadata(entity)
            await self._hook(md, entity, Event.BEFORE_DELETE)
            await self._executor.delete(entity, db)
            await self._invalidate(md, entity)
            await self._hook(md, entity, Event.AFTER_DELETE)

    # --- prepared statements ---

    @asynccontextmanager
    async def prepare_insert(
        self, entity_type: type, db: Database
    ) -> AsyncIterator[PreparedInsert]:
        """Prepare one INSERT for repeated use; the handle is closed on exit."""
        md, dialect, handle = await self._executor.prepare(Command.INSERT, entity_type, db)
        try:
            yield PreparedInsert(self, md, dialect, handle)
        finally:
            await handle.close()

    @asynccontextmanager
    async def prepare_update(
        self, entity_type: type, db: Database
    ) -> AsyncIterator[PreparedUpdate]:
        """Prepare one UPDATE for repeated use; the handle is closed on exit."""
        md, dialect, handle = await self._executor.prepare(Command.UPDATE, entity_type, db)
        try:
            yield PreparedUpdate(self, md, dialect, handle)
        finally:
            await handle.close()

    # --- internals ---

    def _cache_option(self, md: Metadata, entity: Any) -> CacheOption | None:
        if not md.cacheable:
            return None
        return resolve_cache_option(entity, self.cacher, self.config.cache_expiration)

    async def _invalidate(self, md: Metadata, entity: Any) -> None:
        option = self._cache_option(md, entity)
        if option is not None:
            await delete_cache(option)

    async def _hook(
        self, md: Metadata, entity: Any, event: Event, stage: str | None = None
    ) -> None:
        name = md.hooks.get(event)
        if name is None:
            return

        method = getattr(entity, name)
        try:
            result = method(event) if name == GENERIC_HOOK else method()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            raise HookError(stage or event.stage, str(e)) from e


class _PreparedEntityStatement:
    def __init__(
        self,
        manager: EntityManager,
        metadata: Metadata,
        dialect: Dialect,
        handle: PreparedStatement,
    ) -> None:
        self._manager = manager
        self._metadata = metadata
        self._dialect = dialect
        self._handle = handle

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    def _check_type(self, entity: Any) -> None:
        if type(entity) is not self._metadata.type_key:
            raise InvalidMappingError(
                type(entity).__qualname__,
                f"statement prepared for {self._metadata.type_name}",
            )


class PreparedInsert(_PreparedEntityStatement):
    """Prepared INSERT running the full insert lifecycle per entity."""

    async def execute(self, entity: Any) -> int | None:
        self._check_type(entity)
        manager, md = self._manager, self._metadata
        async with _deadline("insert", manager.config.write_timeout):
            await manager._hook(md, entity, Event.BEFORE_INSERT)
            last_id = await manager.executor.insert_with(self._handle, md, self._dialect, entity)
            await manager._hook(md, entity, Event.AFTER_INSERT)
            return last_id


class PreparedUpdate(_PreparedEntityStatement):
    """Prepared UPDATE running the full update lifecycle per entity."""

    async def execute(self, entity: Any) -> None:
        self._check_type(entity)
        manager, md = self._manager, self._metadata
        async with _deadline("update", manager.config.write_timeout):
            await manager._hook(md, entity, Event.BEFORE_UPDATE)
            await manager.executor.update_with(self._handle, md, self._dialect, entity)
            await manager._invalidate(md, entity)
            await manager._hook(md, entity, Event.AFTER_UPDATE)
