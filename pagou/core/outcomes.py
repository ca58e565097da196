"""Attempt Outcomes — what a single network exchange produced.

Invariants:
    - Exactly one outcome per attempt; outcomes are never reused across attempts
    - Success holds a 2xx status; HttpFailure holds any other status
    - TransportFailure means no HTTP response was received at all

Design Decisions:
    - Three frozen dataclasses joined in a Union: callers use isinstance/match on the variant
    - Header lookup is case-insensitive (headers stored lower-cased)
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from pagou.core.domain_types import TransportFailureCause


def _lower_keys(headers: Mapping[str, str]) -> dict[str, str]:
    return {k.lower(): v for k, v in headers.items()}


@dataclass(frozen=True)
class Success:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self):
        object.__setattr__(self, "headers", _lower_keys(self.headers))

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


@dataclass(frozen=True)
class HttpFailure:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self):
        object.__setattr__(self, "headers", _lower_keys(self.headers))

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


@dataclass(frozen=True)
class TransportFailure:
    cause: TransportFailureCause
    detail: str = ""


AttemptOutcome = Union[Success, HttpFailure, TransportFailure]


def outcome_from_response(
    status_code: int, headers: Mapping[str, str], body: Any,
) -> Success | HttpFailure:
    """Split a received response into Success (2xx) or HttpFailure."""
    if 200 <= status_code < 300:
        return Success(status_code, headers, body)
    return HttpFailure(status_code, headers, body)
