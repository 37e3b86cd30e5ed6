"""
Offset Pagination Driver

Drives a stateless (offset, limit) page source until a short page signals
the end of the result set. Used for WebSocket order queries, which return at
most `limit` records per call.
"""

from typing import Awaitable, Callable, List, Sequence, TypeVar

R = TypeVar("R")
T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100


async def paginate(
    fetch_page: Callable[[int, int], Awaitable[Sequence[R]]],
    translate: Callable[[Sequence[R]], List[T]],
    page_size: int = DEFAULT_PAGE_SIZE
) -> List[T]:
    """
    Fetch every page and return the translated records.

    Starts at offset 0 and advances by `page_size` after each page, regardless
    of how many records translated. Stops after the first page holding fewer
    than `page_size` records (an empty page included).

    Any error from `fetch_page` or `translate` propagates immediately; records
    accumulated so far are discarded, never returned as a partial result.

    Args:
        fetch_page: async (offset, limit) -> raw records
        translate: raw records -> canonical records
        page_size: Records requested per page

    Returns:
        List[T]: Translated records from all pages, in page order

    Example:
        Pages of sizes [100, 100, 37] → 3 fetches, 237 records.
        Pages of sizes [100, 100, 100, 0] → 4 fetches, 300 records.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    accumulated: List[T] = []
    offset = 0

    while True:
        page = await fetch_page(offset, page_size)
        accumulated.extend(translate(page))
        if len(page) < page_size:
            return accumulated
        offset += page_size
