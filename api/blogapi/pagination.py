from __future__ import annotations

from math import ceil

from . import schemas, settings


def clamp_limit(limit: int | None, max_limit: int | None = None) -> int:
    """
    Clamp a requested page size to the configured maximum.

    Oversized requests are served at the maximum rather than rejected.
    None falls back to the configured default.

    Args:
        limit: The page size the client asked for (already known to be >= 1)
        max_limit: Upper bound, defaults to POSTS_MAX_PAGE_LIMIT

    Returns:
        The effective page size
    """
    if max_limit is None:
        max_limit = settings.POSTS_MAX_PAGE_LIMIT
    if limit is None:
        limit = settings.POSTS_DEFAULT_PAGE_LIMIT
    return max(1, min(limit, max_limit))


def page_offset(page: int, limit: int) -> int:
    """OFFSET for a 1-based page number."""
    return (page - 1) * limit


def apply_page(query, page: int, limit: int):
    """Apply LIMIT/OFFSET for a 1-based page to a SQLAlchemy query."""
    return query.limit(limit).offset(page_offset(page, limit))


def build_pagination(page: int, limit: int, total: int) -> schemas.Pagination:
    """
    Pagination metadata for a response.

    `total` is the full number of rows matching the filter (from a separate
    COUNT query), not the length of the current page.
    """
    return schemas.Pagination(
        page=page,
        limit=limit,
        total=total,
        pages=ceil(total / limit) if total else 0,
    )
