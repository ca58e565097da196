"""Error Hierarchy — typed, tagged exceptions for every way a Pagou call can fail.

Invariants:
    - Every error has a kind (ErrorKind), message, and optional request_id/status_code/provider_code
    - Exactly one classified error reaches the caller per logical call
    - cancel_reason is set only when a deadline or caller cancellation ended the call
    - No credentials or request bodies are embedded in messages

Design Decisions:
    - Single hierarchy with PagouError base: `except PagouError` catches every client failure
    - kind tag on every instance: callers may match `err.kind` instead of isinstance chains
    - ConfigurationError is raised before any network attempt, never by the classifier
"""

from typing import Any

from pagou.core.domain_types import CancelReason, ErrorKind


class PagouError(Exception):
    """Base exception for all Pagou client errors."""

    kind: ErrorKind = ErrorKind.SERVER

    def __init__(
        self,
        message: str,
        *,
        request_id: str | None = None,
        status_code: int | None = None,
        provider_code: str | None = None,
        cancel_reason: CancelReason | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.status_code = status_code
        self.provider_code = provider_code
        self.cancel_reason = cancel_reason

    @property
    def is_timeout(self) -> bool:
        return self.cancel_reason is CancelReason.TIMEOUT

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_reason is CancelReason.CANCELLED

    def with_cancel_reason(self, reason: CancelReason) -> "PagouError":
        """Return a copy of this error tagged with the reason the call ended."""
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        Exception.__init__(clone, self.message)
        clone.cancel_reason = reason
        return clone

    def to_dict(self) -> dict[str, Any]:
        """Serializable view for logs and error reports."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "request_id": self.request_id,
            "status_code": self.status_code,
            "provider_code": self.provider_code,
            "cancel_reason": self.cancel_reason.value if self.cancel_reason else None,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"status_code={self.status_code}, request_id={self.request_id!r})"
        )


# ─── Classified Errors (returned by the classifier) ──────────────

class AuthenticationError(PagouError):
    """401/403: credential missing, invalid, or lacking permission."""
    kind = ErrorKind.AUTHENTICATION


class InvalidRequestError(PagouError):
    """400/409/422 and other 4xx: the request was rejected as malformed or conflicting."""
    kind = ErrorKind.INVALID_REQUEST


class NotFoundError(PagouError):
    """404: the addressed resource does not exist."""
    kind = ErrorKind.NOT_FOUND


class RateLimitError(PagouError):
    """429: too many requests; retry_after_ms carries the server hint."""
    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str, *, retry_after_ms: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after_ms = retry_after_ms

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retry_after_ms"] = self.retry_after_ms
        return data


class ServerError(PagouError):
    """5xx, or a 2xx whose body is not a readable envelope."""
    kind = ErrorKind.SERVER


class NetworkError(PagouError):
    """No HTTP response: connect/DNS/protocol failure or an aborted attempt."""
    kind = ErrorKind.NETWORK

    def __init__(self, message: str, *, cause: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["cause"] = self.cause
        return data


# ─── Client-side Errors (raised before any attempt) ──────────────

class ConfigurationError(PagouError):
    """Client misconfiguration or an endpoint not allowed in this environment."""
    kind = ErrorKind.CONFIGURATION


CLASSIFIED_ERRORS: tuple[type[PagouError], ...] = (
    AuthenticationError,
    InvalidRequestError,
    NotFoundError,
    RateLimitError,
    ServerError,
    NetworkError,
)
