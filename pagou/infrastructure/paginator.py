"""Pagination Iterator — lazy async sequence over every item of a list endpoint.

Invariants:
    - Pages are fetched lazily, one at a time, only when the buffer is empty
    - At most one page fetch is outstanding; a concurrent pull raises RuntimeError
    - Termination follows server metadata: empty page, or page * limit >= total
    - A classified error surfaces to the consumer and ends the sequence (state FAILED)
    - Not restartable: after EXHAUSTED or FAILED every pull ends iteration

Design Decisions:
    - Explicit state machine (READY → FETCHING → READY | DRAINING → EXHAUSTED, or FAILED)
    - Each page is its own logical call (own request id, own deadline) through RequestExecutor
    - Cursor owned by this instance only; a new listing needs a new iterator
"""

import logging
from collections import deque
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from pagou.core.pagination import PageCursor, is_last_page
from pagou.core.request_spec import RequestSpec
from pagou.infrastructure.executor import RequestExecutor
from pagou.schemas.envelopes import ListEnvelope, ListMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PagerState(str, Enum):
    READY = "ready"
    FETCHING = "fetching"
    DRAINING = "draining"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class PaginationIterator(Generic[T]):
    """Async iterator yielding list items across successive page fetches."""

    def __init__(
        self,
        executor: RequestExecutor,
        build_spec: Callable[[PageCursor], RequestSpec],
        cursor: PageCursor,
        envelope_type: type[ListEnvelope] = ListEnvelope[Any],
    ):
        self._executor = executor
        self._build_spec = build_spec
        self._cursor = cursor
        self._envelope_type = envelope_type
        self._buffer: deque[T] = deque()
        self.state = PagerState.READY
        self.pages_fetched = 0
        self.last_metadata: ListMetadata | None = None

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    def __aiter__(self) -> "PaginationIterator[T]":
        return self

    async def __anext__(self) -> T:
        while True:
            if self._buffer:
                return self._buffer.popleft()
            if self.state is PagerState.DRAINING:
                self.state = PagerState.EXHAUSTED
            if self.state in (PagerState.EXHAUSTED, PagerState.FAILED):
                raise StopAsyncIteration
            if self.state is PagerState.FETCHING:
                raise RuntimeError(
                    "page fetch already in flight; await the previous pull first",
                )
            await self._fetch_page()

    async def collect(self) -> list[T]:
        """Drain the remaining items into a list."""
        return [item async for item in self]

    async def _fetch_page(self) -> None:
        self.state = PagerState.FETCHING
        cursor = self._cursor
        try:
            page = await self._executor.execute(
                self._build_spec(cursor), self._envelope_type,
            )
        except BaseException:
            self.state = PagerState.FAILED
            raise
        items = list(page.data)
        self.pages_fetched += 1
        self.last_metadata = page.metadata
        self._buffer.extend(items)
        logger.debug(
            f"Fetched page {cursor.page} ({len(items)} items, "
            f"total={page.metadata.total})",
            extra={"page": cursor.page, "request_id": page.request_id},
        )
        if is_last_page(page.metadata, len(items), cursor):
            self.state = PagerState.DRAINING
        else:
            self._cursor = cursor.advance()
            self.state = PagerState.READY
