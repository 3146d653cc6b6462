"""Page-number pagination helpers shared by file and match listings."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class PaginationError(ValueError):
    """Raised when a page number or page size is invalid."""


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    current_page: int
    total_pages: int
    per_page: int
    total_items: int

    @property
    def has_more(self) -> bool:
        return self.current_page * self.per_page < self.total_items


def count_pages(total_items: int, per_page: int) -> int:
    return math.ceil(total_items / per_page) if total_items else 0


def cap_items(items: list[T], limit: int | None) -> tuple[list[T], bool]:
    """Apply a global cap, reporting whether anything was dropped."""
    if limit is None or len(items) <= limit:
        return items, False
    return items[:limit], True


def paginate(items: list[T], page: int, per_page: int) -> Page[T]:
    """Return the 1-based ``page`` of ``items``; out-of-range pages are empty."""
    if page < 1:
        msg = "Page number must be >= 1"
        raise PaginationError(msg)
    if per_page < 1:
        msg = "Page size must be >= 1"
        raise PaginationError(msg)

    start = (page - 1) * per_page
    return Page(
        items=items[start : start + per_page],
        current_page=page,
        total_pages=count_pages(len(items), per_page),
        per_page=per_page,
        total_items=len(items),
    )


def sort_for_listing(
    items: list[T],
    *,
    path: Callable[[T], str],
    modified: Callable[[T], float | None] | None = None,
    reverse: bool = False,
) -> list[T]:
    """Newest first when modification times are given, else by path.

    ``reverse`` flips the time or path order. Items without a modification
    time go last in either direction; ties follow the path order.
    """
    ordered = sorted(items, key=path, reverse=reverse)
    if modified is not None:

        def recency(item: T) -> tuple[bool, float]:
            mtime = modified(item)
            if mtime is None:
                return (True, 0.0)
            return (False, mtime if reverse else -mtime)

        ordered.sort(key=recency)
    return ordered
