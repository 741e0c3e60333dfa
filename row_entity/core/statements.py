"""CRUD statement generation.

Pure functions of (Metadata, Dialect). Column order in the generated SQL is
always ``Metadata.columns`` order. Placeholders use ``:db_field`` named style;
the engine converts them to the driver's paramstyle.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from row_entity.core.dialect import quote_column, quote_identifier
from row_entity.core.enums import Command, Dialect
from row_entity.core.exceptions import InvalidMappingError
from row_entity.schema.column import Column
from row_entity.schema.metadata import Metadata


def _columns(cols: Iterable[Column], dialect: Dialect) -> str:
    return ", ".join(quote_column(col.db_field, dialect) for col in cols)


def _placeholders(cols: Iterable[Column]) -> str:
    return ", ".join(f":{col.db_field}" for col in cols)


def _assignments(cols: Iterable[Column], dialect: Dialect) -> str:
    return ", ".join(f"{quote_column(col.db_field, dialect)} = :{col.db_field}" for col in cols)


def _where_primary_keys(md: Metadata, dialect: Dialect) -> str:
    return " AND ".join(
        f"{quote_column(col.db_field, dialect)} = :{col.db_field}" for col in md.primary_keys
    )


def _returning(cols: list[Column], dialect: Dialect) -> str:
    if not cols:
        return ""
    return f" RETURNING {_columns(cols, dialect)}"


def _insertable(md: Metadata) -> list[Column]:
    return [col for col in md.columns if not col.auto_increment and not col.returning_insert]


def new_select_statement(md: Metadata, dialect: Dialect) -> str:
    """Load-by-primary-key statement, always ``LIMIT 1``."""
    return (
        f"SELECT {_columns(md.columns, dialect)} "
        f"FROM {quote_identifier(md.table_name, dialect)} "
        f"WHERE {_where_primary_keys(md, dialect)} LIMIT 1"
    )


def new_insert_statement(md: Metadata, dialect: Dialect) -> str:
    """INSERT of every column except auto-increment and returning-on-insert ones.

    Returning-on-insert columns are appended as a RETURNING clause whatever
    the dialect; do not flag them on dialects without RETURNING support.
    """
    cols = _insertable(md)
    returning = [col for col in md.columns if col.returning_insert]
    return (
        f"INSERT INTO {quote_identifier(md.table_name, dialect)} "
        f"({_columns(cols, dialect)}) VALUES ({_placeholders(cols)})"
        f"{_returning(returning, dialect)}"
    )


def new_update_statement(md: Metadata, dialect: Dialect) -> str:
    """UPDATE of every updatable column, keyed by primary key."""
    cols = [col for col in md.columns if not col.refuse_update and not col.returning_update]
    if not cols:
        raise InvalidMappingError(md.type_name, "no updatable columns")
    returning = [col for col in md.columns if col.returning_update]
    return (
        f"UPDATE {quote_identifier(md.table_name, dialect)} "
        f"SET {_assignments(cols, dialect)} "
        f"WHERE {_where_primary_keys(md, dialect)}"
        f"{_returning(returning, dialect)}"
    )


def check_upsert(md: Metadata) -> None:
    """Reject types whose primary key is auto-increment.

    Raises:
        InvalidMappingError: No stable conflict target exists.
    """
    auto = [col.db_field for col in md.primary_keys if col.auto_increment]
    if auto:
        raise InvalidMappingError(
            md.type_name, f"upsert requires non auto-increment primary keys, got {auto}"
        )


def new_upsert_statement(md: Metadata, dialect: Dialect) -> str:
    """INSERT with a conflict clause targeting the primary key(s).

    The update branch always assigns something, the first primary key to
    itself when nothing else is updatable, so an existing row is still
    matched and RETURNING yields it.

    A ``returningInsert``-only column is absent from the INSERT list yet
    present in the SET list. Its ``EXCLUDED`` / ``VALUES()`` value is the
    column default, so the update branch resets it to that default. Flag
    such columns ``returning`` or ``refuseUpdate`` to keep the stored value.
    """
    check_upsert(md)

    cols = _insertable(md)
    updates = [
        col
        for col in md.columns
        if not col.primary_key and not col.refuse_update and not col.returning_update
    ]
    returning = [col for col in md.columns if col.returning_insert or col.returning_update]

    stmt = (
        f"INSERT INTO {quote_identifier(md.table_name, dialect)} "
        f"({_columns(cols, dialect)}) VALUES ({_placeholders(cols)})"
    )

    if dialect is Dialect.MYSQL:
        if updates:
            assignments = ", ".join(
                f"{quote_column(col.db_field, dialect)} = VALUES({quote_column(col.db_field, dialect)})"
                for col in updates
            )
        else:
            key = quote_column(md.primary_keys[0].db_field, dialect)
            assignments = f"{key} = {key}"
        stmt += f" ON DUPLICATE KEY UPDATE {assignments}"
    else:
        target = _columns(md.primary_keys, dialect)
        assigned = updates or md.primary_keys[:1]
        assignments = ", ".join(
            f"{quote_column(col.db_field, dialect)} = EXCLUDED.{quote_column(col.db_field, dialect)}"
            for col in assigned
        )
        stmt += f" ON CONFLICT ({target}) DO UPDATE SET {assignments}"

    return stmt + _returning(returning, dialect)


def new_delete_statement(md: Metadata, dialect: Dialect) -> str:
    """DELETE keyed by primary key."""
    return (
        f"DELETE FROM {quote_identifier(md.table_name, dialect)} "
        f"WHERE {_where_primary_keys(md, dialect)}"
    )


GENERATORS: dict[Command, Callable[[Metadata, Dialect], str]] = {
    Command.SELECT: new_select_statement,
    Command.INSERT: new_insert_statement,
    Command.UPDATE: new_update_statement,
    Command.UPSERT: new_upsert_statement,
    Command.DELETE: new_delete_statement,
}
