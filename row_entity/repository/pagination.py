"""Page arithmetic for paged queries."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict

DEFAULT_PAGE_SIZE = 10


class Pagination(BaseModel):
    """Page numbers are 1-based; ``previous``/``next`` are 0 when absent."""

    model_config = ConfigDict(frozen=True)

    first: int = 1
    last: int = 1
    previous: int = 0
    current: int = 1
    next: int = 0
    size: int = DEFAULT_PAGE_SIZE
    items: int = 0

    @property
    def limit(self) -> int:
        return self.size

    @property
    def offset(self) -> int:
        return (self.current - 1) * self.size


def new_pagination(current: int, size: int, items: int) -> Pagination:
    """Compute a page for *items* total records.

    A non-positive *current* becomes 1 and a non-positive *size* becomes
    the default size. *current* is clamped to ``[first, last]``.
    """
    if current <= 0:
        current = 1
    if size <= 0:
        size = DEFAULT_PAGE_SIZE

    first = 1
    last = 1
    if items > 0:
        last = math.ceil(items / size)
    else:
        items = 0

    current = min(max(current, first), last)
    return Pagination(
        first=first,
        last=last,
        previous=current - 1 if current > first else 0,
        current=current,
        next=current + 1 if current < last else 0,
        size=size,
        items=items,
    )
