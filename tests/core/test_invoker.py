import json

import httpx
import pytest

from healthid.core.errors import ErrorType
from healthid.core.invoker import RemoteStepInvoker, _headers, to_query_params


def _invoker(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="https://ehr.test/api/")
    return RemoteStepInvoker(client=client)


def test_post_sends_json_body():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"txnId": "t1"})

    outcome = _invoker(handler).invoke("patient/registration/abha/aadhaar/request-otp", "POST", {"aadhaar": "enc"})
    assert outcome.success is True
    assert outcome.response == {"txnId": "t1"}
    assert outcome.error is None
    assert seen == {
        "method": "POST",
        "path": "/api/patient/registration/abha/aadhaar/request-otp",
        "body": {"aadhaar": "enc"},
    }


def test_get_flattens_body_to_query_params():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=["asha.rao", "asha.r85"])

    outcome = _invoker(handler).invoke("/hpId/suggestion", "get", {"txnId": "t1", "n": 3, "flag": True, "skip": None})
    assert seen["params"] == {"txnId": "t1", "n": "3", "flag": "true"}
    # bare lists are wrapped so response is always a map
    assert outcome.response == {"items": ["asha.rao", "asha.r85"]}


def test_empty_success_body():
    outcome = _invoker(lambda r: httpx.Response(204)).invoke("/x", "POST", {})
    assert outcome.success is True
    assert outcome.response == {}


@pytest.mark.parametrize("status", [400, 401, 404, 500, 503])
def test_http_error_becomes_failed_outcome(status):
    outcome = _invoker(lambda r: httpx.Response(status, text="otp expired")).invoke("/x", "POST", {})
    assert outcome.success is False
    assert outcome.response is None
    assert outcome.status_code == status
    assert outcome.error == "API call failed: Error: otp expired"


def test_transport_error_becomes_failed_outcome():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    outcome = _invoker(handler).invoke("/x", "POST", {"a": 1})
    assert outcome.success is False
    assert "connection refused" in outcome.error


def test_undecodable_success_body_is_failure():
    outcome = _invoker(lambda r: httpx.Response(200, text="<html>oops</html>")).invoke("/x", "POST", {})
    assert outcome.success is False
    assert outcome.error.startswith("API call failed:")


def test_unsupported_method():
    outcome = _invoker(lambda r: httpx.Response(200, json={})).invoke("/x", "DELETE", {})
    assert outcome.success is False
    assert outcome.error == "Unsupported HTTP method: DELETE"


def test_headers():
    assert _headers("abc", "") == {"Content-Type": "application/json", "Authorization": "Bearer abc"}
    assert _headers("Bearer xyz", "hp")["Authorization"] == "Bearer xyz"
    assert _headers("", "hp") == {"Content-Type": "application/json", "x-hprid-auth": "hp"}


def test_to_query_params():
    assert to_query_params({"a": False, "b": 0, "c": None}) == {"a": "false", "b": "0"}


@pytest.mark.parametrize(
    "status,expected",
    [
        (400, ErrorType.VALIDATION),
        (401, ErrorType.AUTHENTICATION),
        (403, ErrorType.AUTHORIZATION),
        (404, ErrorType.NOT_FOUND),
        (409, ErrorType.CONFLICT),
        (503, ErrorType.CONNECTION),
        (500, ErrorType.INTERNAL_SERVER_ERROR),
        (418, ErrorType.INTERNAL_SERVER_ERROR),
    ],
)
def test_error_type_from_status(status, expected):
    assert ErrorType.from_status(status) is expected


def test_error_types_are_failure_categories_only():
    assert all(t.status_code >= 400 for t in ErrorType)
