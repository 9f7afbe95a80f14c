import json
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Mapping

from healthid.core.errors import MalformedPayload

_MISSING = object()


def normalize_payload(raw: Any) -> Dict[str, Any]:
    """
    Convert whatever the caller handed us into a plain key/value map.

    Accepted shapes:
      - dict                -> returned as-is (unknown keys kept)
      - None                -> {}
      - JSON string / bytes -> parsed; must decode to an object
      - pydantic model      -> model_dump()
      - dataclass instance  -> asdict()
      - plain object        -> its public attributes
    """
    if isinstance(raw, dict):
        return raw
    if raw is None:
        return {}
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayload(f"Invalid JSON format: {e}")
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedPayload(f"Invalid JSON format: {e}")
        if not isinstance(parsed, dict):
            raise MalformedPayload(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed
    if isinstance(raw, Mapping):
        return dict(raw)

    md = getattr(raw, "model_dump", None)
    if callable(md):
        return md()
    if is_dataclass(raw) and not isinstance(raw, type):
        return asdict(raw)
    if hasattr(raw, "__dict__") and not isinstance(raw, type):
        return {k: v for k, v in vars(raw).items() if not k.startswith("_")}

    raise MalformedPayload(f"Unsupported payload type: {type(raw).__name__}")


def dig(data: Any, *path: str, default: Any = None) -> Any:
    """Safe nested lookup: dig(resp, "ABHAProfile", "mobile") -> value or default."""
    cur = data
    for key in path:
        if not isinstance(cur, Mapping):
            return default
        cur = cur.get(key, _MISSING)
        if cur is _MISSING:
            return default
    return cur
