import threading
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from healthid.api.auth import require_api_key
from healthid.api.schemas import FlowResponse, StepCatalogue
from healthid.core.dispatcher import FlowDispatcher, abha_dispatcher, hpr_dispatcher
from healthid.core.flows import FLOWS

router = APIRouter(dependencies=[Depends(require_api_key)])

_dispatchers: Dict[str, FlowDispatcher] = {}
_dispatchers_lock = threading.Lock()

_FACTORIES = {
    "abha": abha_dispatcher,
    "hpr": hpr_dispatcher,
}


def get_dispatcher(flow: str) -> FlowDispatcher:
    """Process-wide dispatcher per flow (they hold only an HTTP client and a key)."""
    if flow not in _FACTORIES:
        raise HTTPException(status_code=404, detail=f"Unknown flow: {flow}")
    with _dispatchers_lock:
        if flow not in _dispatchers:
            _dispatchers[flow] = _FACTORIES[flow]()
        return _dispatchers[flow]


def close_dispatchers() -> None:
    with _dispatchers_lock:
        for d in list(_dispatchers.values()):
            d.close()
        _dispatchers.clear()


@router.post("/{flow}/steps/{step}", response_model=FlowResponse)
async def run_flow_step(
    flow: str,
    step: str,
    request: Request,
    dispatcher: FlowDispatcher = Depends(get_dispatcher),
):
    """Run one registration step. Always 200; failures are reported in the body."""
    # raw text goes to the normalizer so malformed JSON is reported as a flow result
    raw = await request.body()
    body = raw.decode("utf-8", errors="replace") if raw else None
    result = await run_in_threadpool(dispatcher.dispatch, step, body)
    return result.to_dict()


@router.get("/{flow}/steps", response_model=StepCatalogue)
def list_flow_steps(flow: str):
    if flow not in FLOWS:
        raise HTTPException(status_code=404, detail=f"Unknown flow: {flow}")
    definition = FLOWS[flow]
    return {"flow": flow, "steps": definition.step_type.catalogue()}
