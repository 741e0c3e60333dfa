"""row_entity - entity to SQL statement mapping with hooks and caching."""

from __future__ import annotations

from row_entity.cache import CacheOption, Cacher, MemoryCache
from row_entity.core.connection import AsyncConnectionManager, ConnectionConfig, EntityConfig
from row_entity.core.dialect import (
    DriverErrorClassifier,
    quote_column,
    quote_identifier,
    resolve_dialect,
    strip_quotes,
)
from row_entity.core.engine import AsyncEngine
from row_entity.core.enums import Command, Dialect, Event
from row_entity.core.exceptions import (
    AdapterError,
    CacheError,
    ColumnMismatchError,
    ConflictError,
    ConnectionError,  # noqa: A004
    DriverError,
    EntityError,
    HookError,
    InvalidMappingError,
    MappingError,
    NotFoundError,
    OperationTimeoutError,
    PoolError,
    TransactionError,
    TransactionStateError,
)
from row_entity.core.executor import Executor
from row_entity.core.manager import EntityManager, PreparedInsert, PreparedUpdate
from row_entity.core.protocol import Database, ExecResult, PreparedStatement
from row_entity.core.registry import SchemaRegistry
from row_entity.core.transaction import AsyncTransactionManager, run_in_transaction, savepoint
from row_entity.repository import Pagination, Repository, is_not_found, new_pagination
from row_entity.schema import Column, Metadata, db_field, embedded, resolve_metadata

__all__ = [
    # Connection
    "ConnectionConfig",
    "EntityConfig",
    "AsyncConnectionManager",
    # Engine
    "AsyncEngine",
    "AsyncTransactionManager",
    "run_in_transaction",
    "savepoint",
    "Database",
    "ExecResult",
    "PreparedStatement",
    # Schema
    "db_field",
    "embedded",
    "Column",
    "Metadata",
    "resolve_metadata",
    "SchemaRegistry",
    # Dialect
    "Dialect",
    "Command",
    "Event",
    "resolve_dialect",
    "quote_column",
    "quote_identifier",
    "strip_quotes",
    "DriverErrorClassifier",
    # Execution
    "Executor",
    "EntityManager",
    "PreparedInsert",
    "PreparedUpdate",
    # Cache
    "Cacher",
    "CacheOption",
    "MemoryCache",
    # Repository
    "Repository",
    "Pagination",
    "new_pagination",
    "is_not_found",
    # Exceptions
    "EntityError",
    "MappingError",
    "InvalidMappingError",
    "ColumnMismatchError",
    "NotFoundError",
    "ConflictError",
    "DriverError",
    "HookError",
    "CacheError",
    "OperationTimeoutError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
