from __future__ import annotations

import math
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    has_prev: bool
    has_next: bool
    prev_page: int
    next_page: int

    def to_dict(self) -> dict:
        return asdict(self)


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def compute_pagination(total_count: int, page_size: int, current_page: int) -> Pagination:
    """
    Derive page controls from a row count.

    Pure math: no clamping of current_page (callers pass page >= 1), and
    prev_page/next_page are raw neighbours that may fall outside 1..total_pages.
    An empty result set has total_pages == 0, so has_next is always False there.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total_pages = int(math.ceil(total_count / page_size)) if total_count > 0 else 0
    return Pagination(
        current_page=current_page,
        total_pages=total_pages,
        has_prev=current_page > 1,
        has_next=current_page < total_pages,
        prev_page=current_page - 1,
        next_page=current_page + 1,
    )
