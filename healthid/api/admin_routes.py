from fastapi import APIRouter, Depends
from healthid.api.auth import require_admin
from healthid.core.flows import FLOWS
import healthid.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"])

@router.get("/metrics")
def get_metrics(_=Depends(require_admin)):
    """
    Per-flow, per-step counters backed by Redis.
    """
    steps = {name: [s.step_name for s in flow.steps] for name, flow in FLOWS.items()}
    return metrics.get_flow_snapshot(steps)
