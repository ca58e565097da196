"""Transactions Resource — declarative mapping of transaction operations to path/verb/body.

Invariants:
    - Every method builds one RequestSpec and hands it to RequestExecutor (no retry logic here)
    - PUT /v2/transactions/{id} is refused client-side outside sandbox/test (no request sent)
    - Transaction ids are URL-quoted into the path
    - list() is lazy: no request is made until the first item is pulled

Design Decisions:
    - Payloads accepted as models or plain dicts; models are serialized with to_wire()
    - Per-call options (idempotency key, request id, timeout, cancellation) via RequestOptions
"""

from typing import Any, Mapping
from urllib.parse import quote

from pagou.core.domain_types import Environment, HttpMethod, TransactionId
from pagou.core.errors import ConfigurationError
from pagou.core.pagination import PageCursor
from pagou.core.request_spec import RequestOptions, RequestSpec, build_request_spec
from pagou.infrastructure.executor import RequestExecutor
from pagou.infrastructure.paginator import PaginationIterator
from pagou.schemas.envelopes import DataEnvelope, ListEnvelope
from pagou.schemas.transactions import (
    RefundRequest,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)


TRANSACTIONS_PATH = "/v2/transactions"


def _transaction_path(transaction_id: TransactionId, suffix: str = "") -> str:
    if not transaction_id:
        raise ValueError("transaction_id is required")
    return f"{TRANSACTIONS_PATH}/{quote(str(transaction_id), safe='')}{suffix}"


def _body(payload: Any) -> Any:
    if payload is None:
        return None
    if hasattr(payload, "to_wire"):
        return payload.to_wire()
    return dict(payload)


class TransactionsResource:
    """Create, read, list, update (sandbox) and refund transactions."""

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        environment: Environment,
        default_page_limit: int = 100,
    ):
        self._executor = executor
        self._environment = environment
        self._default_page_limit = default_page_limit

    async def create(
        self,
        payload: TransactionCreate | Mapping[str, Any],
        options: RequestOptions | None = None,
    ) -> DataEnvelope[Transaction]:
        spec = build_request_spec(
            HttpMethod.POST, TRANSACTIONS_PATH,
            body=_body(payload), options=options,
        )
        return await self._executor.execute(spec, DataEnvelope[Transaction])

    async def retrieve(
        self, transaction_id: TransactionId, options: RequestOptions | None = None,
    ) -> DataEnvelope[Transaction]:
        spec = build_request_spec(
            HttpMethod.GET, _transaction_path(transaction_id), options=options,
        )
        return await self._executor.execute(spec, DataEnvelope[Transaction])

    async def list_page(
        self,
        page: int = 1,
        limit: int | None = None,
        filters: Mapping[str, Any] | None = None,
        options: RequestOptions | None = None,
    ) -> ListEnvelope[Transaction]:
        """Fetch a single page without auto-paging."""
        cursor = PageCursor(page, limit or self._default_page_limit, dict(filters or {}))
        return await self._executor.execute(
            self._list_spec(cursor, options), ListEnvelope[Transaction],
        )

    def list(
        self,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
        options: RequestOptions | None = None,
    ) -> PaginationIterator[Transaction]:
        """Lazily iterate every transaction matching filters, page by page.

        Each page is a separate call; options.request_id is therefore ignored
        so that every page gets its own correlation id.
        """
        if options is not None and options.request_id:
            options = RequestOptions(
                idempotency_key=options.idempotency_key,
                timeout_ms=options.timeout_ms,
                cancellation=options.cancellation,
            )
        cursor = PageCursor(1, limit or self._default_page_limit, dict(filters or {}))
        return PaginationIterator(
            self._executor,
            lambda c: self._list_spec(c, options),
            cursor,
            ListEnvelope[Transaction],
        )

    async def update(
        self,
        transaction_id: TransactionId,
        payload: TransactionUpdate | Mapping[str, Any],
        options: RequestOptions | None = None,
    ) -> DataEnvelope[Transaction]:
        """Sandbox/test only: simulate a transaction state change."""
        if not self._environment.allows_test_endpoints:
            raise ConfigurationError(
                f"PUT {TRANSACTIONS_PATH}/{{id}} is only available in sandbox/test "
                f"(current environment: {self._environment.value})",
            )
        spec = build_request_spec(
            HttpMethod.PUT, _transaction_path(transaction_id),
            body=_body(payload), options=options,
        )
        return await self._executor.execute(spec, DataEnvelope[Transaction])

    async def refund(
        self,
        transaction_id: TransactionId,
        amount: int | None = None,
        reason: str | None = None,
        options: RequestOptions | None = None,
    ) -> DataEnvelope[Transaction]:
        """Refund fully (amount=None) or partially."""
        body = RefundRequest(amount=amount, reason=reason).to_wire()
        spec = build_request_spec(
            HttpMethod.PUT, _transaction_path(transaction_id, "/refund"),
            body=body, options=options,
        )
        return await self._executor.execute(spec, DataEnvelope[Transaction])

    def _list_spec(
        self, cursor: PageCursor, options: RequestOptions | None,
    ) -> RequestSpec:
        return build_request_spec(
            HttpMethod.GET, TRANSACTIONS_PATH,
            query=cursor.to_query(), options=options,
        )
