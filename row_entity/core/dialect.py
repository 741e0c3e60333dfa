"""Dialect resolution, identifier quoting and conflict classification.

Driver names are normalized through a static alias table before any
statement is generated, so wire-compatible drivers share one dialect.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from row_entity.core.enums import Dialect

DRIVER_ALIASES: dict[str, Dialect] = {
    "mysql": Dialect.MYSQL,
    "aiomysql": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "postgres": Dialect.POSTGRES,
    "postgresql": Dialect.POSTGRES,
    "psycopg": Dialect.POSTGRES,
    "asyncpg": Dialect.POSTGRES,
    "pgx": Dialect.POSTGRES,
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
    "aiosqlite": Dialect.SQLITE,
}


def resolve_dialect(driver_name: str) -> Dialect:
    """Map a driver name to its dialect. Unknown drivers get ANSI rules."""
    return DRIVER_ALIASES.get(driver_name.lower(), Dialect.ANSI)


def strip_quotes(name: str, dialect: Dialect) -> str:
    """Remove the dialect's quote characters from *name*."""
    return name.replace(dialect.quote_char, "")


def quote_column(name: str, dialect: Dialect) -> str:
    """Quote a single column name. Idempotent."""
    q = dialect.quote_char
    return f"{q}{strip_quotes(name, dialect)}{q}"


def quote_identifier(name: str, dialect: Dialect) -> str:
    """Quote a possibly qualified name such as ``schema.table`` or ``t.*``.

    Every dot-separated segment is quoted except a literal ``*``.
    """
    q = dialect.quote_char
    segments = strip_quotes(name, dialect).split(".")
    return ".".join(s if s == "*" else f"{q}{s}{q}" for s in segments)


# --- Conflict classification ---


class ConflictClassifier(Protocol):
    """Decides whether a driver exception is a uniqueness violation."""

    def is_conflict(self, exc: BaseException) -> bool: ...


@dataclass(frozen=True)
class DriverErrorClassifier:
    """Structured error codes first, error-text substrings as fallback."""

    sqlstates: frozenset[str] = frozenset()
    error_numbers: frozenset[int] = frozenset()
    error_names: frozenset[str] = frozenset()
    patterns: tuple[str, ...] = ()

    def is_conflict(self, exc: BaseException) -> bool:
        sqlstate = getattr(exc, "sqlstate", None) or getattr(exc, "pgcode", None)
        if sqlstate is not None and sqlstate in self.sqlstates:
            return True

        if self.error_numbers:
            errno = getattr(exc, "errno", None)
            if errno is None and exc.args and isinstance(exc.args[0], int):
                errno = exc.args[0]
            if errno in self.error_numbers:
                return True

        if getattr(exc, "sqlite_errorname", None) in self.error_names:
            return True

        message = str(exc)
        return any(pattern in message for pattern in self.patterns)


DEFAULT_CLASSIFIERS: Mapping[Dialect, ConflictClassifier] = {
    Dialect.POSTGRES: DriverErrorClassifier(
        sqlstates=frozenset({"23505"}),
        patterns=("duplicate key value violates unique constraint",),
    ),
    Dialect.MYSQL: DriverErrorClassifier(
        error_numbers=frozenset({1062}),
        patterns=("Duplicate entry",),
    ),
    Dialect.SQLITE: DriverErrorClassifier(
        error_names=frozenset({"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}),
        patterns=("UNIQUE constraint failed",),
    ),
}


def is_conflict_error(
    exc: BaseException,
    dialect: Dialect,
    classifiers: Mapping[Dialect, ConflictClassifier] | None = None,
) -> bool:
    """Return True if *exc* is a uniqueness violation under *dialect*.

    *classifiers* override the defaults per dialect; dialects they omit keep
    the default classifier.
    """
    classifier = (classifiers or {}).get(dialect) or DEFAULT_CLASSIFIERS.get(dialect)
    if classifier is None:
        return False
    return classifier.is_conflict(exc)
