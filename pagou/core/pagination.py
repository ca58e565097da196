"""Page Cursor — pure paging position and termination rule for list endpoints.

Invariants:
    - page is 1-based and only ever increases
    - A page is the last one when it is empty or page * limit >= total (server values, else the requested cursor)
    - Without a server total, only an empty page ends the sequence

Design Decisions:
    - Termination reads the server's metadata, not the number of items received
    - Cursor is a frozen value; advance() returns a new cursor
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from pagou.schemas.envelopes import ListMetadata

DEFAULT_PAGE_LIMIT = 100


@dataclass(frozen=True)
class PageCursor:
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT
    filters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page is 1-based")
        if self.limit < 1:
            raise ValueError("limit must be positive")

    def advance(self) -> "PageCursor":
        return PageCursor(self.page + 1, self.limit, self.filters)

    def to_query(self) -> dict[str, Any]:
        """Filters first, then page/limit so the cursor always wins."""
        return {**self.filters, "page": self.page, "limit": self.limit}


def is_last_page(
    metadata: ListMetadata, item_count: int, requested: PageCursor,
) -> bool:
    """True when no further page should be requested after this one.

    metadata.page and metadata.limit fall back to the requested cursor when
    the server omits them.
    """
    if item_count == 0:
        return True
    if metadata.total is None:
        return False
    page = metadata.page or requested.page
    limit = metadata.limit or requested.limit
    return page * limit >= metadata.total
