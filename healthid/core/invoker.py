import time
from typing import Any, Dict, Mapping, Optional

import httpx

from healthid.core.errors import EhrApiError
from healthid.core.results import StepOutcome
from healthid.observability.logging import log


def _headers(api_key: str, hprid_auth: str) -> dict:
    h = {"Content-Type": "application/json"}
    if api_key:
        h["Authorization"] = api_key if api_key.lower().startswith("bearer ") else f"Bearer {api_key}"
    if hprid_auth:
        h["x-hprid-auth"] = hprid_auth
    return h


def _query_value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def to_query_params(body: Mapping[str, Any]) -> Dict[str, str]:
    return {k: _query_value(v) for k, v in body.items() if v is not None}


def _decode(resp: httpx.Response) -> Dict[str, Any]:
    if not resp.content:
        return {}
    data = resp.json()
    if isinstance(data, dict):
        return data
    # e.g. /hpId/suggestion answers with a bare list
    return {"items": data}


class RemoteStepInvoker:
    """
    One HTTP round-trip per registration step. Transport and HTTP failures are
    returned as a failed StepOutcome, never raised.
    """

    def __init__(
        self,
        base_url: str = "",
        api_key: str = "",
        hprid_auth: str = "",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self._client = client or httpx.Client(
            base_url=base_url,
            headers=_headers(api_key, hprid_auth),
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings) -> "RemoteStepInvoker":
        return cls(
            base_url=settings.API_URL,
            api_key=settings.API_KEY,
            hprid_auth=settings.HPRID_AUTH,
            timeout=settings.REQUEST_TIMEOUT_SEC,
        )

    def close(self) -> None:
        self._client.close()

    def invoke(self, endpoint: str, method: str, body: Mapping[str, Any]) -> StepOutcome:
        method = (method or "").upper()
        start = time.time()
        try:
            if method == "POST":
                resp = self._client.post(endpoint, json=dict(body))
            elif method == "GET":
                resp = self._client.get(endpoint, params=to_query_params(body))
            else:
                return StepOutcome.failed(f"Unsupported HTTP method: {method}")

            elapsed_ms = int((time.time() - start) * 1000)
            if not (200 <= resp.status_code < 300):
                err = EhrApiError.from_response(resp)
                log(
                    event="remote_call_failed",
                    endpoint=endpoint,
                    method=method,
                    statusCode=int(resp.status_code),
                    errorType=err.error_type.name,
                    elapsedMs=elapsed_ms,
                )
                return StepOutcome.failed(f"API call failed: {err.message}", status_code=resp.status_code)

            log(
                event="remote_call",
                endpoint=endpoint,
                method=method,
                statusCode=int(resp.status_code),
                elapsedMs=elapsed_ms,
            )
            return StepOutcome.ok(_decode(resp), status_code=resp.status_code)

        except Exception as e:
            err = EhrApiError.from_exception(e)
            log(
                event="remote_call_failed",
                endpoint=endpoint,
                method=method,
                errorType=err.error_type.name,
                error=str(e)[:500],
                elapsedMs=int((time.time() - start) * 1000),
            )
            return StepOutcome.failed(f"API call failed: {err.message}")
