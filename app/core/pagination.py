from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class PageSlice(Generic[_T]):
    """Items of one 0-based page plus totals for the whole listing."""

    items: list[_T]
    page: int
    size: int
    total_elements: int
    total_pages: int

    @property
    def first(self) -> bool:
        return self.page == 0

    @property
    def last(self) -> bool:
        return self.page >= self.total_pages - 1


def paginate(items: Sequence[_T], *, page: int, size: int) -> PageSlice[_T]:
    """Cut one page out of an already filtered and sorted sequence."""
    total_elements = len(items)
    total_pages = math.ceil(total_elements / size) if total_elements else 0
    start = page * size
    return PageSlice(
        items=list(items[start : start + size]),
        page=page,
        size=size,
        total_elements=total_elements,
        total_pages=total_pages,
    )
