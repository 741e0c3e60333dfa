"""Cache options and entity (de)serialization.

Entities are stored as JSON produced by a pydantic ``TypeAdapter`` for the
entity's type, optionally gzip-compressed. Every failure is raised as
:class:`CacheError` naming the stage; collaborator errors are chained.
"""

from __future__ import annotations

import gzip
import json
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter

from row_entity.core.exceptions import CacheError
from row_entity.schema.fields import attribute_names


@runtime_checkable
class Cacher(Protocol):
    """Byte-oriented cache storage."""

    async def get(self, key: str) -> bytes | None:
        """Return cached bytes, or None when absent."""
        ...

    async def put(self, key: str, data: bytes, expiration: float) -> None:
        """Store *data* for *expiration* seconds."""
        ...

    async def delete(self, key: str) -> None: ...


@dataclass(frozen=True)
class CacheOption:
    """Per-entity cache settings returned by ``entity.cache_option()``.

    ``disable`` only prevents writing the cache, never reading it: whether
    an entity should be cached is unknown until it has been loaded.

    ``recursive_decode`` lists top-level keys whose cached value is a JSON
    string that itself holds JSON; those are decoded twice.
    """

    key: str
    expiration: float = 0
    compress: bool = False
    disable: bool = False
    recursive_decode: tuple[str, ...] = ()
    cacher: Cacher | None = None


def resolve_cache_option(
    entity: Any,
    default_cacher: Cacher | None,
    default_expiration: float,
) -> CacheOption:
    """Read the entity's option and fill in cacher and expiration defaults.

    Raises:
        CacheError: No cacher available, or an empty key.
    """
    try:
        option = entity.cache_option()
    except Exception as e:
        raise CacheError("get option", str(e)) from e

    if option.cacher is None:
        if default_cacher is None:
            raise CacheError("get option", "nil default cacher")
        option = replace(option, cacher=default_cacher)
    if not option.key:
        raise CacheError("get option", "empty cache key")
    if option.expiration <= 0:
        option = replace(option, expiration=default_expiration)
    return option


def _cacher(option: CacheOption) -> Cacher:
    if option.cacher is None:
        raise CacheError("get option", "option has no cacher; use resolve_cache_option()")
    return option.cacher


@lru_cache(maxsize=None)
def _adapter(entity_type: type) -> TypeAdapter[Any]:
    return TypeAdapter(entity_type)


async def load_cache(entity: Any, option: CacheOption) -> bool:
    """Fill *entity* from the cache. Returns False on a miss."""
    cacher = _cacher(option)
    try:
        data = await cacher.get(option.key)
    except Exception as e:
        raise CacheError("cache load", str(e)) from e
    if not data:
        return False

    try:
        if option.compress:
            data = gzip.decompress(data)
        if option.recursive_decode:
            data = _recursive_decode(data, option.recursive_decode)
        loaded = _adapter(type(entity)).validate_json(data)
    except (OSError, EOFError, ValueError) as e:
        raise CacheError("cache load", f"decode {option.key!r}: {e}") from e

    for name in attribute_names(type(entity)):
        setattr(entity, name, getattr(loaded, name))
    return True


async def save_cache(entity: Any, option: CacheOption) -> None:
    """Write *entity* to the cache unless the option disables it."""
    if option.disable:
        return
    data = _adapter(type(entity)).dump_json(entity)
    if option.compress:
        data = gzip.compress(data)
    cacher = _cacher(option)
    try:
        await cacher.put(option.key, data, option.expiration)
    except Exception as e:
        raise CacheError("cache save", str(e)) from e


async def delete_cache(option: CacheOption) -> None:
    """Invalidate the cached entry for *option*."""
    cacher = _cacher(option)
    try:
        await cacher.delete(option.key)
    except Exception as e:
        raise CacheError("cache delete", str(e)) from e


def _recursive_decode(data: bytes, keys: tuple[str, ...]) -> bytes:
    if not data.startswith(b"{"):
        return data

    values = json.loads(data)
    fixed = False
    for key in keys:
        value = values.get(key)
        if isinstance(value, str) and value:
            values[key] = json.loads(value)
            fixed = True

    if not fixed:
        return data
    return json.dumps(values).encode()
