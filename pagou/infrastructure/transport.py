"""Transport — one network exchange, behind an injectable boundary.

Invariants:
    - A transport performs exactly one HTTP exchange per call (no retries, no redirects policy)
    - Any httpx.RequestError (no usable HTTP response) raises TransportError with a TransportFailureCause
    - Non-2xx responses are returned, never raised: classification happens in the executor
    - Response bodies are decoded as JSON when possible, else kept as text

Design Decisions:
    - Protocol over ABC: any async callable with this signature can be injected (tests use a scripted fake)
    - HttpxTransport wraps httpx.AsyncClient; the client is closed only if this transport created it
    - httpx timeouts disabled by default: the cumulative call deadline is the only clock
"""

import logging
import socket
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

import httpx

from pagou.core.domain_types import TransportFailureCause

logger = logging.getLogger(__name__)

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


@dataclass(frozen=True)
class TransportRequest:
    method: str
    url: str
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    json: Any = None


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None


class TransportError(Exception):
    """No HTTP response was obtained."""

    def __init__(self, cause: TransportFailureCause, detail: str = ""):
        super().__init__(f"{cause.value}: {detail}" if detail else cause.value)
        self.cause = cause
        self.detail = detail


class Transport(Protocol):
    """Structural contract for a single network exchange."""
    async def __call__(self, request: TransportRequest) -> TransportResponse: ...


class HttpxTransport:
    """Default transport over httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(None))

    async def __call__(self, request: TransportRequest) -> TransportResponse:
        try:
            response = await self._client.request(
                request.method,
                request.url,
                params=dict(request.params) or None,
                headers=dict(request.headers),
                json=request.json,
            )
        except httpx.ConnectTimeout as e:
            raise TransportError(TransportFailureCause.CONNECT_ERROR, str(e)) from e
        except httpx.ConnectError as e:
            raise TransportError(_connect_cause(e), str(e)) from e
        except httpx.TransportError as e:
            raise TransportError(TransportFailureCause.PROTOCOL_ERROR, str(e)) from e
        except httpx.RequestError as e:
            # DecodingError, TooManyRedirects: a response arrived but could not be used
            raise TransportError(TransportFailureCause.PROTOCOL_ERROR, str(e)) from e
        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=_decode_body(response),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _connect_cause(error: httpx.ConnectError) -> TransportFailureCause:
    """DNS resolution failures surface as ConnectError; tell them apart."""
    exc: BaseException | None = error
    while exc is not None:
        if isinstance(exc, socket.gaierror):
            return TransportFailureCause.DNS_ERROR
        exc = exc.__cause__ or exc.__context__
    message = str(error).lower()
    if any(marker in message for marker in _DNS_MARKERS):
        return TransportFailureCause.DNS_ERROR
    return TransportFailureCause.CONNECT_ERROR


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug(
            f"Non-JSON response body ({response.status_code}, "
            f"{len(response.content)} bytes)",
        )
        return response.text
