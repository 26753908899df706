"""Search and paging over visit type catalogs."""

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

from ..entities.visit_type import VisitType

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 5


def filter_visit_types(catalog: Sequence[VisitType], query: str) -> List[VisitType]:
    """Visit types whose display name contains ``query``, case-insensitively.

    Relative order is preserved. A blank query returns the whole catalog.
    The same function serves the recommended and the full catalog.
    """
    needle = (query or "").strip().casefold()
    if not needle:
        return list(catalog)
    return [visit_type for visit_type in catalog if needle in visit_type.display.casefold()]


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paginated list."""

    results: List[T]
    current_page: int
    total_pages: int
    total_items: int

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice ``items`` into 1-based pages; out-of-range pages are clamped."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total_pages = max(1, math.ceil(len(items) / page_size))
    current = min(max(page, 1), total_pages)
    start = (current - 1) * page_size
    return Page(
        results=list(items[start:start + page_size]),
        current_page=current,
        total_pages=total_pages,
        total_items=len(items),
    )
