"""Request Spec — tests for the immutable per-call description.

Tests cover:
    - build_request_spec copies options once (idempotency key, request id, timeout)
    - request_id defaults to a fresh req_<hex> per spec
    - None-valued query entries are dropped
    - query/headers are frozen against later caller mutation
    - RequestOptions rejects non-positive timeouts
"""

import dataclasses

import pytest

from pagou.core.domain_types import HttpMethod
from pagou.core.request_spec import RequestOptions, RequestSpec, build_request_spec


def test_request_id_generated_when_absent():
    spec = build_request_spec("GET", "/v2/transactions")
    assert spec.request_id.startswith("req_")
    assert len(spec.request_id) == len("req_") + 32


def test_each_spec_gets_its_own_request_id():
    a = build_request_spec("GET", "/v2/transactions")
    b = build_request_spec("GET", "/v2/transactions")
    assert a.request_id != b.request_id


def test_options_are_copied_into_spec():
    options = RequestOptions(idempotency_key="idem-7", request_id="req_caller", timeout_ms=1_500)
    spec = build_request_spec(HttpMethod.POST, "/v2/transactions", body={"amount": 100}, options=options)
    assert spec.method is HttpMethod.POST
    assert spec.idempotency_key == "idem-7"
    assert spec.request_id == "req_caller"
    assert spec.timeout_ms == 1_500
    assert spec.body == {"amount": 100}


def test_empty_idempotency_key_is_treated_as_absent():
    spec = build_request_spec("POST", "/v2/transactions", options=RequestOptions(idempotency_key=""))
    assert spec.idempotency_key is None


def test_none_query_values_dropped():
    spec = build_request_spec("GET", "/v2/transactions", query={"status": None, "page": 1})
    assert dict(spec.query) == {"page": 1}


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        build_request_spec("PATCH", "/v2/transactions")


def test_spec_is_frozen():
    spec = RequestSpec(method=HttpMethod.GET, path="/x")
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.path = "/y"


def test_caller_mutation_does_not_leak_into_spec():
    query = {"status": "paid"}
    headers = {"X-Trace": "1"}
    spec = build_request_spec("GET", "/v2/transactions", query=query, headers=headers)
    query["status"] = "refunded"
    headers["X-Trace"] = "2"
    assert spec.query["status"] == "paid"
    assert spec.headers["X-Trace"] == "1"
    with pytest.raises(TypeError):
        spec.query["status"] = "x"


@pytest.mark.parametrize("timeout_ms", [0, -5])
def test_options_reject_non_positive_timeout(timeout_ms):
    with pytest.raises(ValueError):
        RequestOptions(timeout_ms=timeout_ms)
