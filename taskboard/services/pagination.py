"""Page metadata for list responses."""

from __future__ import annotations

import math

from taskboard.schemas.query import PaginationResult


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def paginate(total_items: int, page: int, limit: int) -> PaginationResult:
    """Metadata for a paginated fetch; ``limit`` must be positive."""
    total_pages = math.ceil(total_items / limit)
    return PaginationResult(
        total_items=total_items,
        page=page,
        limit=limit,
        total_pages=total_pages,
        has_more=page < total_pages,
        page_size=limit,
    )


def unbounded_pagination(total_items: int) -> PaginationResult:
    """Metadata for a fetch that returned every matching row."""
    return PaginationResult(
        total_items=total_items,
        page=1,
        limit=total_items,
        total_pages=1,
        has_more=False,
        page_size=total_items,
    )
