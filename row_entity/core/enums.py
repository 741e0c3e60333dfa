"""Dialect, command and lifecycle event enumerations."""

from __future__ import annotations

from enum import Enum


class Dialect(Enum):
    """SQL dialect families with distinct quoting and feature rules."""

    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    ANSI = "ansi"

    @property
    def quote_char(self) -> str:
        return "`" if self is Dialect.MYSQL else '"'

    @property
    def supports_last_insert_id(self) -> bool:
        return self is not Dialect.POSTGRES


class Command(Enum):
    """Statement kinds generated per mapped type."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"


class Event(Enum):
    """Entity lifecycle events."""

    BEFORE_INSERT = "before_insert"
    AFTER_INSERT = "after_insert"
    BEFORE_UPDATE = "before_update"
    AFTER_UPDATE = "after_update"
    BEFORE_DELETE = "before_delete"
    AFTER_DELETE = "after_delete"

    @property
    def stage(self) -> str:
        """Human-readable stage name used in error context."""
        return self.value.replace("_", " ")
