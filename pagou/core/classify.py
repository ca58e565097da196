"""Error Classifier — maps one attempt outcome to an envelope or a typed error.

Invariants:
    - Success (2xx) → envelope of the requested shape, or ServerError if the body is unreadable
    - 401/403 → AuthenticationError; 404 → NotFoundError; 400/409/422 (and other 4xx) → InvalidRequestError
    - 429 → RateLimitError (with retry_after_ms); 5xx and any other status → ServerError
    - TransportFailure (any cause) → NetworkError
    - request_id resolution: X-Request-Id header > body requestId > spec.request_id (never None)

Design Decisions:
    - Returns Ok | Err values instead of raising: the attempt loop decides whether to surface
    - Envelope shape is the pydantic class the caller asked for (DataEnvelope[...] / ListEnvelope[...])
    - Provider message/code read from either {"error": {...}} or top-level {"message", "code"}
"""

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from pagou.core.domain_types import REQUEST_ID_HEADER, RETRY_AFTER_HEADER
from pagou.core.errors import (
    AuthenticationError,
    InvalidRequestError,
    NetworkError,
    NotFoundError,
    PagouError,
    RateLimitError,
    ServerError,
)
from pagou.core.outcomes import AttemptOutcome, HttpFailure, Success, TransportFailure
from pagou.core.request_spec import RequestSpec
from pagou.core.retry_policy import parse_retry_after


@dataclass(frozen=True)
class Ok:
    envelope: BaseModel


@dataclass(frozen=True)
class Err:
    error: PagouError


Classified = Union[Ok, Err]

_STATUS_ERRORS: dict[int, type[PagouError]] = {
    400: InvalidRequestError,
    401: AuthenticationError,
    403: AuthenticationError,
    404: NotFoundError,
    409: InvalidRequestError,
    422: InvalidRequestError,
    429: RateLimitError,
}


def classify(
    outcome: AttemptOutcome,
    spec: RequestSpec,
    envelope_type: type[BaseModel],
) -> Classified:
    """Classify an attempt outcome for the call described by spec."""
    if isinstance(outcome, TransportFailure):
        return Err(NetworkError(
            f"Network failure ({outcome.cause.value})"
            + (f": {outcome.detail}" if outcome.detail else ""),
            request_id=spec.request_id,
            cause=outcome.cause.value,
        ))
    if isinstance(outcome, Success):
        return _classify_success(outcome, spec, envelope_type)
    return Err(_error_for_http_failure(outcome, spec))


def _classify_success(
    outcome: Success, spec: RequestSpec, envelope_type: type[BaseModel],
) -> Classified:
    body = outcome.body if outcome.body is not None else {}
    request_id = extract_request_id(outcome, spec)
    if not isinstance(body, dict):
        return Err(ServerError(
            "Malformed response envelope: expected a JSON object",
            request_id=request_id, status_code=outcome.status_code,
        ))
    payload = dict(body)
    payload["requestId"] = request_id
    try:
        return Ok(envelope_type.model_validate(payload))
    except ValidationError as e:
        return Err(ServerError(
            f"Malformed response envelope: {e.error_count()} validation error(s)",
            request_id=request_id, status_code=outcome.status_code,
        ))


def _error_for_http_failure(outcome: HttpFailure, spec: RequestSpec) -> PagouError:
    status = outcome.status_code
    error_cls = _STATUS_ERRORS.get(status)
    if error_cls is None:
        error_cls = InvalidRequestError if 400 <= status < 500 else ServerError
    message, provider_code = _extract_provider_error(outcome.body)
    common: dict[str, Any] = {
        "request_id": extract_request_id(outcome, spec),
        "status_code": status,
        "provider_code": provider_code,
    }
    message = message or f"HTTP {status}"
    if error_cls is RateLimitError:
        return RateLimitError(
            message,
            retry_after_ms=parse_retry_after(outcome.header(RETRY_AFTER_HEADER)),
            **common,
        )
    return error_cls(message, **common)


def extract_request_id(outcome: Success | HttpFailure, spec: RequestSpec) -> str:
    header_value = outcome.header(REQUEST_ID_HEADER)
    if header_value:
        return header_value
    body = outcome.body
    if isinstance(body, dict):
        body_value = body.get("requestId") or body.get("request_id")
        if isinstance(body_value, str) and body_value:
            return body_value
    return spec.request_id


def _extract_provider_error(body: Any) -> tuple[str | None, str | None]:
    if isinstance(body, str):
        return (body[:500] or None), None
    if not isinstance(body, dict):
        return None, None
    source = body.get("error") if isinstance(body.get("error"), dict) else body
    message = source.get("message")
    code = source.get("code")
    if message is None and isinstance(body.get("error"), str):
        message = body["error"]
    return (
        str(message) if message is not None else None,
        str(code) if code is not None else None,
    )
