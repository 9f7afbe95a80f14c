from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import ValidationError

from healthid.core.errors import ValidationFailed
from healthid.core.requests import StepRequest

T = TypeVar("T", bound=StepRequest)

_MESSAGES = {
    "missing": "is required",
    "string_too_short": "must not be blank",
    "string_type": "must be a string",
    "bool_parsing": "must be a boolean",
    "bool_type": "must be a boolean",
}

# fields the gateway documents by name; anything else gets the generic wording
_LABELS = {
    "aadhaar": "Aadhaar",
    "otp": "OTP",
    "txnId": "Transaction ID",
    "mobile": "Mobile number",
    "mobileNumber": "Mobile number",
    "updateValue": "Mobile number",
    "domainName": "Domain name",
    "idType": "ID type",
}

_EMPTY = ("missing", "string_too_short")


def _message(field: str, kind: str, err: Dict[str, Any]) -> str:
    if kind == "value_error":
        # message raised by the shape's own format check
        return str((err.get("ctx") or {}).get("error") or err.get("msg"))
    if field == "preverifiedCheck" and kind == "missing":
        return "Preverified check cannot be null"
    if field in _LABELS and kind in _EMPTY:
        return f"{_LABELS[field]} cannot be empty"
    return _MESSAGES.get(kind, err.get("msg", "is invalid"))


def _field_errors(exc: ValidationError) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc") or ()) or "payload"
        out.append({"field": field, "message": _message(field, err.get("type", ""), err)})
    return out


def decode_step_request(shape: Type[T], payload: Mapping[str, Any]) -> T:
    """Read the shape's declared keys out of payload; raise ValidationFailed on any violation."""
    try:
        return shape.model_validate(dict(payload))
    except ValidationError as e:
        raise ValidationFailed(_field_errors(e))


def validate(typed: StepRequest) -> None:
    """Re-check an already constructed request (e.g. one built with model_construct)."""
    decode_step_request(type(typed), dict(vars(typed)))
