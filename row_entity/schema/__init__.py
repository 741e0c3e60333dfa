"""Schema layer - column model, field declaration and metadata resolution."""

from __future__ import annotations

from row_entity.schema.column import Column, ColumnTag, parse_tag
from row_entity.schema.fields import db_field, embedded
from row_entity.schema.metadata import Metadata, resolve_metadata

__all__ = [
    "Column",
    "ColumnTag",
    "parse_tag",
    "db_field",
    "embedded",
    "Metadata",
    "resolve_metadata",
]
