"""Schema registry - caches resolved metadata and generated statements.

Both caches are keyed by immutable type identity and grow for the life of
the registry: one metadata entry per mapped type and at most one statement
per (type, command, dialect).
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from row_entity.core.enums import Command, Dialect
from row_entity.core.statements import GENERATORS
from row_entity.schema.metadata import Metadata, resolve_metadata

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Read-mostly cache of metadata and SQL text.

    Lookups are plain dict reads. A miss builds the value outside the lock
    and publishes it under the lock; if another caller published first,
    its value is returned so every caller sees the same object.

    Args:
        *entity_types: Types to resolve eagerly (see :meth:`register`).

    Raises:
        InvalidMappingError: If an eagerly registered type is invalid.
    """

    def __init__(self, *entity_types: type) -> None:
        self._metadata: dict[type, Metadata] = {}
        self._statements: dict[tuple[type, Command, Dialect], str] = {}
        self._lock = threading.Lock()
        self.register(*entity_types)

    def register(self, *entity_types: type) -> None:
        """Resolve and validate *entity_types* now rather than on first use."""
        for entity_type in entity_types:
            self.metadata(entity_type)

    def metadata(self, entity: Any) -> Metadata:
        """Return metadata for an entity instance or type.

        Raises:
            InvalidMappingError: If the type cannot be mapped.
        """
        entity_type = entity if isinstance(entity, type) else type(entity)
        md = self._metadata.get(entity_type)
        if md is not None:
            return md

        md = resolve_metadata(entity_type)
        with self._lock:
            md = self._metadata.setdefault(entity_type, md)
        logger.debug(
            "Resolved metadata for %s: table=%s columns=%s",
            md.type_name,
            md.table_name,
            [col.db_field for col in md.columns],
        )
        return md

    def statement(self, command: Command, md: Metadata, dialect: Dialect) -> str:
        """Return SQL text for *command*, generating it on first use.

        Raises:
            InvalidMappingError: If the statement cannot be built for this type
                (e.g. upsert with an auto-increment primary key).
        """
        key = (md.type_key, command, dialect)
        stmt = self._statements.get(key)
        if stmt is not None:
            return stmt

        stmt = GENERATORS[command](md, dialect)
        with self._lock:
            stmt = self._statements.setdefault(key, stmt)
        logger.debug(
            "Generated %s statement for %s (%s): %s",
            command.value,
            md.type_name,
            dialect.value,
            stmt,
        )
        return stmt

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._metadata

    def __len__(self) -> int:
        """Number of resolved mapped types."""
        return len(self._metadata)
