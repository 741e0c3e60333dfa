"""Repository layer - generic repository, pagination and query helpers."""

from __future__ import annotations

from row_entity.repository.base import Repository
from row_entity.repository.helpers import (
    get_record,
    get_records,
    get_total_count,
    is_not_found,
    query_by,
    upsert_target,
)
from row_entity.repository.pagination import Pagination, new_pagination

__all__ = [
    "Repository",
    "Pagination",
    "new_pagination",
    "get_record",
    "get_records",
    "get_total_count",
    "query_by",
    "upsert_target",
    "is_not_found",
]
