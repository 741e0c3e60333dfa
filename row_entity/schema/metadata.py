"""Metadata resolver.

Walks a mapped type's declared fields once and produces the normalized
column model used for statement generation. Results are cached by
:class:`row_entity.core.registry.SchemaRegistry`, not here.
"""

from __future__ import annotations

import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from row_entity.core.enums import Event
from row_entity.core.exceptions import InvalidMappingError
from row_entity.schema.column import Column, parse_tag
from row_entity.schema.fields import declared_fields, field_type, is_mapped_shape

GENERIC_HOOK = "on_entity_event"
CACHE_OPTION_HOOK = "cache_option"


@dataclass(frozen=True)
class Metadata:
    """Resolved description of one mapped type."""

    type_key: type
    table_name: str
    columns: tuple[Column, ...]
    primary_keys: tuple[Column, ...]
    embedded: Mapping[tuple[str, ...], type] = field(default_factory=dict)
    hooks: Mapping[Event, str] = field(default_factory=dict)
    cacheable: bool = False

    @property
    def type_name(self) -> str:
        return f"{self.type_key.__module__}.{self.type_key.__qualname__}"

    @property
    def has_returning_insert(self) -> bool:
        return any(col.returning_insert for col in self.columns)

    @property
    def has_returning_update(self) -> bool:
        return any(col.returning_update for col in self.columns)

    @property
    def has_returning_upsert(self) -> bool:
        return any(col.returning_insert or col.returning_update for col in self.columns)

    @cached_property
    def by_db_field(self) -> dict[str, Column]:
        return {col.db_field: col for col in self.columns}


def resolve_metadata(entity_cls: type) -> Metadata:
    """Build metadata for *entity_cls*.

    Raises:
        InvalidMappingError: If the type is not a dataclass or pydantic model,
            has no table name, maps zero columns, or declares no primary key.
    """
    name = getattr(entity_cls, "__qualname__", repr(entity_cls))
    if not is_mapped_shape(entity_cls):
        raise InvalidMappingError(name, "not a dataclass or pydantic model")

    embedded: dict[tuple[str, ...], type] = {}
    columns = _collect_columns(entity_cls, (), set(), embedded, {entity_cls})
    if not columns:
        raise InvalidMappingError(name, "no mapped columns")

    primary_keys = tuple(col for col in columns if col.primary_key)
    if not primary_keys:
        raise InvalidMappingError(name, "primary key not found")

    return Metadata(
        type_key=entity_cls,
        table_name=_table_name(entity_cls, name),
        columns=tuple(columns),
        primary_keys=primary_keys,
        embedded=embedded,
        hooks=_resolve_hooks(entity_cls),
        cacheable=callable(getattr(entity_cls, CACHE_OPTION_HOOK, None)),
    )


def _collect_columns(
    cls: type,
    path: tuple[str, ...],
    seen: set[str],
    embedded: dict[tuple[str, ...], type],
    active: set[type],
) -> list[Column]:
    """Own fields first, then embedded types depth-first.

    A column name already claimed closer to the root wins; deeper
    duplicates are dropped. Deprecated fields claim their name but
    produce no column.
    """
    columns: list[Column] = []
    nested: list[str] = []

    for declared in declared_fields(cls):
        if declared.embed:
            nested.append(declared.name)
            continue
        if declared.tag is None:
            continue

        try:
            tag = parse_tag(declared.tag)
        except ValueError as e:
            raise InvalidMappingError(cls.__qualname__, f"field '{declared.name}': {e}") from e
        if tag is None or tag.db_field in seen:
            continue

        seen.add(tag.db_field)
        if tag.deprecated:
            continue
        columns.append(Column.from_tag(path + (declared.name,), tag))

    for attr in nested:
        sub_cls = _embedded_type(cls, attr)
        if sub_cls in active:
            raise InvalidMappingError(
                cls.__qualname__, f"field '{attr}' embeds {sub_cls.__qualname__} recursively"
            )
        sub_path = path + (attr,)
        embedded[sub_path] = sub_cls
        columns.extend(_collect_columns(sub_cls, sub_path, seen, embedded, active | {sub_cls}))

    return columns


def _embedded_type(cls: type, attr: str) -> type:
    try:
        sub_cls: Any = field_type(cls, attr)
    except (NameError, KeyError) as e:
        raise InvalidMappingError(
            cls.__qualname__, f"cannot resolve type of embedded field '{attr}': {e}"
        ) from e
    # Optional[X] embeds X; the attribute may stay None until a row is scanned
    if typing.get_origin(sub_cls) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(sub_cls) if arg is not type(None)]
        if len(args) == 1:
            sub_cls = args[0]
    if not is_mapped_shape(sub_cls):
        raise InvalidMappingError(
            cls.__qualname__,
            f"embedded field '{attr}' must be a dataclass or pydantic model, got {sub_cls!r}",
        )
    return sub_cls


def _table_name(cls: type, name: str) -> str:
    table = getattr(cls, "__tablename__", None)
    if table is None:
        accessor = getattr(cls, "table_name", None)
        if not callable(accessor):
            raise InvalidMappingError(name, "define __tablename__ or a table_name() classmethod")
        try:
            table = accessor()
        except TypeError as e:
            raise InvalidMappingError(name, f"table_name() must be a classmethod: {e}") from e
    if not isinstance(table, str) or not table:
        raise InvalidMappingError(name, f"invalid table name {table!r}")
    return table


def _resolve_hooks(cls: type) -> dict[Event, str]:
    generic = callable(getattr(cls, GENERIC_HOOK, None))
    hooks: dict[Event, str] = {}
    for event in Event:
        if callable(getattr(cls, event.value, None)):
            hooks[event] = event.value
        elif generic:
            hooks[event] = GENERIC_HOOK
    return hooks
