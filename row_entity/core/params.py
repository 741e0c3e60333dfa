"""Parameter binding and row scanning.

Converts `:name` parameter syntax to driver-specific format, binds entity
attributes as named parameters and writes result rows back onto entities.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

from row_entity.core.exceptions import ColumnMismatchError
from row_entity.schema.metadata import Metadata

# Literals are matched whole so placeholders inside them stay text.
# The lookbehind keeps ::casts and words like ``a:b`` untouched.
_SQL_TOKEN = re.compile(r"(?P<literal>'(?:[^'\\]|\\.)*')|(?<![:\w]):(?P<name>[A-Za-z_]\w*)|%")


def normalize_params(sql: str, paramstyle: str) -> str:
    """Rewrite ``:name`` placeholders for a driver's *paramstyle*.

    ``named`` drivers take the SQL as is. For ``pyformat`` every placeholder
    becomes ``%(name)s`` and every literal ``%`` is doubled, inside string
    literals too, since the driver interpolates the whole text.
    """
    if paramstyle == "named":
        return sql
    return _to_pyformat(sql)


def _pyformat_token(match: re.Match[str]) -> str:
    if match["name"]:
        return f"%({match['name']})s"
    return match.group().replace("%", "%%")


@lru_cache(maxsize=512)
def _to_pyformat(sql: str) -> str:
    return _SQL_TOKEN.sub(_pyformat_token, sql)


def _get_path(obj: Any, path: tuple[str, ...]) -> Any:
    for name in path:
        if obj is None:
            return None
        obj = getattr(obj, name)
    return obj


def entity_params(md: Metadata, entity: Any) -> dict[str, Any]:
    """Bind every mapped column of *entity* by its column name."""
    return {col.db_field: _get_path(entity, col.struct_field) for col in md.columns}


def scan_row(md: Metadata, entity: Any, row: dict[str, Any]) -> None:
    """Assign row values onto *entity*. Unmapped row keys are ignored.

    Embedded objects that are still None are created empty first; that only
    works for embedded types whose fields all have defaults.
    """
    for key, value in row.items():
        col = md.by_db_field.get(key)
        if col is None:
            continue
        target = entity
        for depth, name in enumerate(col.struct_field[:-1], start=1):
            child = getattr(target, name)
            if child is None:
                child = md.embedded[col.struct_field[:depth]]()
                setattr(target, name, child)
            target = child
        setattr(target, col.struct_field[-1], value)


def build_entity(md: Metadata, row: dict[str, Any]) -> Any:
    """Construct a fresh instance of the mapped type from *row*.

    Raises:
        ColumnMismatchError: If the type cannot be constructed from the
            mapped row values (e.g. a required unmapped field).
    """
    values: dict[tuple[str, ...], Any] = {}
    for key, value in row.items():
        col = md.by_db_field.get(key)
        if col is not None:
            values[col.struct_field] = value
    return _construct(md, md.type_key, (), values)


def _construct(
    md: Metadata,
    cls: type,
    path: tuple[str, ...],
    values: dict[tuple[str, ...], Any],
) -> Any:
    kwargs: dict[str, Any] = {}
    for struct_field, value in values.items():
        if len(struct_field) == len(path) + 1 and struct_field[: len(path)] == path:
            kwargs[struct_field[-1]] = value
    for sub_path, sub_cls in md.embedded.items():
        if len(sub_path) == len(path) + 1 and sub_path[: len(path)] == path:
            kwargs[sub_path[-1]] = _construct(md, sub_cls, sub_path, values)
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise ColumnMismatchError(cls.__name__, str(e)) from e


async def fetch_rows(cursor: Any) -> list[dict[str, Any]]:
    """Drain *cursor* into dicts keyed by column name.

    Drivers with dict row factories pass through; sequence rows such as
    ``sqlite3.Row`` are zipped with ``cursor.description``.
    """
    if cursor.description is None:
        return []
    names = tuple(column[0] for column in cursor.description)
    return [
        row if isinstance(row, dict) else dict(zip(names, row, strict=True))
        for row in await cursor.fetchall()
    ]
