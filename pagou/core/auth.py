"""Auth Strategies — turn the configured credential into one request header.

Invariants:
    - header() is pure: same credential in, same (name, value) out
    - Exactly one auth header per request
    - basic scheme encodes "<key>:x" (the key is the username, password is a fixed "x")

Design Decisions:
    - One small class per scheme behind a Protocol; build_auth_strategy picks by AuthScheme
    - No validation of the key itself: a malformed key surfaces as AuthenticationError
"""

import base64
from dataclasses import dataclass
from typing import Protocol

from pagou.core.domain_types import AuthScheme

DEFAULT_API_KEY_HEADER = "apikey"


class AuthStrategy(Protocol):
    """Produces the authentication header for a credential."""
    def header(self, credential: str) -> tuple[str, str]: ...


@dataclass(frozen=True)
class BearerAuth:
    def header(self, credential: str) -> tuple[str, str]:
        return "Authorization", f"Bearer {credential}"


@dataclass(frozen=True)
class BasicAuth:
    def header(self, credential: str) -> tuple[str, str]:
        token = base64.b64encode(f"{credential}:x".encode("utf-8")).decode("ascii")
        return "Authorization", f"Basic {token}"


@dataclass(frozen=True)
class ApiKeyHeaderAuth:
    header_name: str = DEFAULT_API_KEY_HEADER

    def header(self, credential: str) -> tuple[str, str]:
        return self.header_name, credential


def build_auth_strategy(
    scheme: AuthScheme | str, header_name: str | None = None,
) -> AuthStrategy:
    """Select the strategy for a configured scheme."""
    scheme = AuthScheme(scheme)
    if scheme is AuthScheme.BASIC:
        return BasicAuth()
    if scheme is AuthScheme.API_KEY_HEADER:
        return ApiKeyHeaderAuth(header_name or DEFAULT_API_KEY_HEADER)
    return BearerAuth()
