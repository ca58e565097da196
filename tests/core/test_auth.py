"""Auth Strategies — tests for the header each scheme produces.

Tests cover:
    - bearer → Authorization: Bearer <key>
    - basic → Authorization: Basic base64("<key>:x")
    - api_key_header → configurable header name, default "apikey"
    - build_auth_strategy selects by scheme (enum or string)
"""

import base64

import pytest

from pagou.core.auth import (
    ApiKeyHeaderAuth,
    BasicAuth,
    BearerAuth,
    build_auth_strategy,
)
from pagou.core.domain_types import AuthScheme


def test_bearer_header():
    assert BearerAuth().header("sk_live_123") == ("Authorization", "Bearer sk_live_123")


def test_basic_header_encodes_key_with_x_password():
    assert BasicAuth().header("abc") == ("Authorization", "Basic YWJjOng=")


def test_basic_header_round_trips_to_key_colon_x():
    _, value = BasicAuth().header("sk_test_9f8e")
    decoded = base64.b64decode(value.removeprefix("Basic ")).decode()
    assert decoded == "sk_test_9f8e:x"


def test_api_key_header_defaults_to_apikey():
    assert ApiKeyHeaderAuth().header("k1") == ("apikey", "k1")


def test_api_key_header_custom_name():
    assert ApiKeyHeaderAuth("X-Api-Key").header("k1") == ("X-Api-Key", "k1")


@pytest.mark.parametrize(
    "scheme, expected",
    [
        (AuthScheme.BEARER, BearerAuth),
        (AuthScheme.BASIC, BasicAuth),
        (AuthScheme.API_KEY_HEADER, ApiKeyHeaderAuth),
        ("basic", BasicAuth),
    ],
)
def test_build_auth_strategy_by_scheme(scheme, expected):
    assert isinstance(build_auth_strategy(scheme), expected)


def test_build_auth_strategy_passes_header_name():
    strategy = build_auth_strategy(AuthScheme.API_KEY_HEADER, "X-Key")
    assert strategy.header("k") == ("X-Key", "k")


def test_build_auth_strategy_rejects_unknown_scheme():
    with pytest.raises(ValueError):
        build_auth_strategy("oauth")
