"""Page-by-page collection of list results."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """One page of a list query.

    Attributes:
        items: Items on this page, in server order.
        total: Number of items matching the query across all pages.
    """

    items: list[T] = field(default_factory=list)
    total: int = 0


FetchPage = Callable[[int, int], PageResult[T]]


def fetch_all(
    fetch_page: FetchPage[T],
    *,
    page: int | None = None,
    size: int = DEFAULT_PAGE_SIZE,
) -> PageResult[T]:
    """Collect the items of a paginated query.

    With an explicit ``page`` only that page is fetched. Otherwise pages are
    fetched one at a time from page 1 while ``page * size < total``, using the
    total reported by the latest page. Page 1 is always fetched, even when the
    query matches nothing. A total that changes between calls is taken as is,
    so concurrent writes on the server can cause items to be skipped or seen
    twice.

    Args:
        fetch_page: Called with (page, size), returns one page.
        page: 1-based page to fetch alone, or None for every page.
        size: Page size.

    Returns:
        A PageResult holding the collected items and the last reported total.
    """
    if size < 1:
        raise ValueError(f"Page size must be positive, got {size}")

    if page is not None:
        if page < 1:
            raise ValueError(f"Page number must be positive, got {page}")
        result = fetch_page(page, size)
        return PageResult(items=list(result.items), total=result.total)

    items: list[T] = []
    current = 1
    while True:
        result = fetch_page(current, size)
        items.extend(result.items)
        total = result.total
        logger.debug(f"Fetched page {current} ({len(result.items)} items, total={total})")
        if current * size >= total:
            break
        current += 1

    return PageResult(items=items, total=total)
