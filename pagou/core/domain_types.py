"""Domain Types — rich types that replace bare primitives across the client.

Invariants:
    - RequestId and IdempotencyKey wrap str: never pass bare strings through policy code
    - All closed sets (methods, environments, causes, stop reasons) encoded as Enums
    - ErrorKind has exactly one member per classified error

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: compare equal to their wire values and serialize without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

RequestId = NewType("RequestId", str)
IdempotencyKey = NewType("IdempotencyKey", str)
TransactionId = NewType("TransactionId", str)


# ─── Wire Constants ──────────────────────────────────────────────

PRODUCTION_BASE_URL = "https://api.pagou.ai"
SANDBOX_BASE_URL = "https://api.sandbox.pagou.ai"

IDEMPOTENCY_HEADER = "Idempotency-Key"
REQUEST_ID_HEADER = "X-Request-Id"
API_VERSION_HEADER = "Pagou-Version"
RETRY_AFTER_HEADER = "Retry-After"

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


# ─── Enums ───────────────────────────────────────────────────────

class HttpMethod(str, Enum):
    """Verbs the API accepts. GET/HEAD are safe to replay without a key."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    HEAD = "HEAD"

    @property
    def is_idempotent(self) -> bool:
        return self in (HttpMethod.GET, HttpMethod.HEAD)


class Environment(str, Enum):
    """Target environment: selects the default base URL."""
    PRODUCTION = "production"
    SANDBOX = "sandbox"
    TEST = "test"

    @property
    def allows_test_endpoints(self) -> bool:
        return self in (Environment.SANDBOX, Environment.TEST)


class AuthScheme(str, Enum):
    """How the API key is presented on the wire."""
    BEARER = "bearer"
    BASIC = "basic"
    API_KEY_HEADER = "api_key_header"


class TransportFailureCause(str, Enum):
    """Why a network exchange produced no HTTP response."""
    CONNECT_ERROR = "connect-error"
    DNS_ERROR = "dns-error"
    PROTOCOL_ERROR = "protocol-error"
    ABORTED = "aborted"


class StopReason(str, Enum):
    """Why the attempt loop stopped retrying."""
    EXHAUSTED = "exhausted"
    NON_IDEMPOTENT = "non_idempotent"
    NOT_RETRYABLE = "not_retryable"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class CancelReason(str, Enum):
    """Who ended the call: the caller or the cumulative deadline."""
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


class ErrorKind(str, Enum):
    """Closed tag for classified errors: callers branch on this, not on messages."""
    AUTHENTICATION = "authentication_error"
    INVALID_REQUEST = "invalid_request_error"
    NOT_FOUND = "not_found_error"
    RATE_LIMIT = "rate_limit_error"
    SERVER = "server_error"
    NETWORK = "network_error"
    CONFIGURATION = "configuration_error"
