from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from healthid.core.errors import MalformedPayload
from healthid.core.normalize import dig, normalize_payload


def test_dict_returned_unchanged():
    raw = {"aadhaar": "123456789012", "extra": 1}
    assert normalize_payload(raw) is raw


def test_json_string_parsed():
    assert normalize_payload('{"txnId": "t1", "mobile": "9876543210"}') == {
        "txnId": "t1",
        "mobile": "9876543210",
    }


def test_none_and_blank_string_are_empty():
    assert normalize_payload(None) == {}
    assert normalize_payload("   ") == {}


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '"just a string"', b"\xff\xfe"])
def test_malformed_payload(raw):
    with pytest.raises(MalformedPayload):
        normalize_payload(raw)


def test_typed_objects_converted():
    class Model(BaseModel):
        txnId: str

    @dataclass
    class Dc:
        otp: str
        txnId: str

    class Plain:
        def __init__(self):
            self.txnId = "t3"
            self._private = "x"

    assert normalize_payload(Model(txnId="t1")) == {"txnId": "t1"}
    assert normalize_payload(Dc(otp="1", txnId="t2")) == {"otp": "1", "txnId": "t2"}
    assert normalize_payload(Plain()) == {"txnId": "t3"}


def test_unsupported_scalar():
    with pytest.raises(MalformedPayload):
        normalize_payload(42)


def test_dig_is_total():
    resp = {"ABHAProfile": {"mobile": "9876543210"}, "list": [1]}
    assert dig(resp, "ABHAProfile", "mobile") == "9876543210"
    assert dig(resp, "ABHAProfile", "email") is None
    assert dig(resp, "missing", "mobile") is None
    assert dig(resp, "list", "x") is None
    assert dig(None, "a") is None
    assert dig("text", "a", default="n/a") == "n/a"
