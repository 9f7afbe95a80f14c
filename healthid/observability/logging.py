import json
import time
from healthid.settings import settings

# Identity material that must never reach stdout in clear text
SENSITIVE_KEYS = {
    "aadhaar",
    "otp",
    "mobile",
    "mobileNumber",
    "updateValue",
    "password",
    "payload",
    "body",
    "response",
}

def _redact_value(v):
    if isinstance(v, str) and len(v) > 0:
        return f"[REDACTED:{len(v)}chars]"
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return _redact_value(str(v))
    if isinstance(v, dict):
        return {k: _redact_value(val) for k, val in v.items()}
    if isinstance(v, list):
        return [_redact_value(x) for x in v]
    return v

def _redact_fields(fields: dict) -> dict:
    clean = {}
    for k, v in fields.items():
        if k in SENSITIVE_KEYS:
            clean[k] = _redact_value(v)
        elif isinstance(v, dict):
            clean[k] = _redact_fields(v)
        else:
            clean[k] = v
    return clean

def log(event: str, **fields):
    payload = {"ts": int(time.time()), "event": event}

    if settings.ENABLE_PII_REDACTION:
        payload.update(_redact_fields(fields))
    else:
        payload.update(fields)

    print(json.dumps(payload, ensure_ascii=False, default=str))
