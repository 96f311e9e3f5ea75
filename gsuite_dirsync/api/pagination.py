"""
Paginate-until-exhausted helper shared by the directory and contacts clients.

Both remote collections are read the same way: request a page, collect its
items, and continue with whatever cursor the page yields (a next-link URL
for Microsoft Graph, a start index for the GData feed) until there is none.
"""

from collections.abc import Callable, Iterator
from typing import TypeVar

ItemT = TypeVar("ItemT")
CursorT = TypeVar("CursorT")


def paginate(
    fetch_page: Callable[[CursorT], tuple[list[ItemT], CursorT | None]],
    start: CursorT,
) -> Iterator[ItemT]:
    """
    Yield every item of a paginated collection.

    Args:
        fetch_page: Callable returning (items, next_cursor) for a cursor
        start: Cursor of the first page

    Yields:
        Items from each page in order

    Raises:
        Whatever fetch_page raises; pages already read are not returned
        separately, so callers that collect into a list get all or nothing.
    """
    cursor: CursorT | None = start
    while cursor is not None:
        items, cursor = fetch_page(cursor)
        yield from items
