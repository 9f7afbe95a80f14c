"""
Flow Step Metrics
-----------------
Per-flow, per-step counters and latency samples kept in Redis and exposed via
/admin/metrics. Recording is best-effort: a missing or unreachable Redis never
changes the outcome of a registration step.
"""
from __future__ import annotations
import time
from typing import Dict, Iterable, List, Tuple
from healthid.observability.logging import log
from healthid.settings import settings
from healthid.store.redis_conn import get_redis

K_PREFIX = "metrics:flow"

_MAX_SAMPLES = 500  # cap to bound percentile computation cost

def _key(flow: str, step: str, suffix: str) -> str:
    return f"{K_PREFIX}:{flow}:{step}:{suffix}"

def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])

def _p50_p95(latencies_ms: List[float]) -> Tuple[float, float]:
    if not latencies_ms:
        return 0.0, 0.0
    return _percentile(latencies_ms, 0.50), _percentile(latencies_ms, 0.95)

def record_step(flow: str, step: str, ok: bool, elapsed_ms: int) -> None:
    if not settings.METRICS_ENABLED:
        return
    try:
        r = get_redis()
        r.incr(_key(flow, step, "attempts"), 1)
        r.incr(_key(flow, step, "success" if ok else "failure"), 1)
        lat_key = _key(flow, step, "latencies")
        r.lpush(lat_key, int(elapsed_ms))
        r.ltrim(lat_key, 0, _MAX_SAMPLES - 1)
    except Exception as e:
        log(event="metrics_record_failed", flow=flow, step=step, error=str(e)[:200])

def _read_latencies(r, key: str) -> List[float]:
    out: List[float] = []
    for x in r.lrange(key, 0, _MAX_SAMPLES - 1) or []:
        try:
            out.append(float(x))
        except (TypeError, ValueError):
            continue
    return out

def get_flow_snapshot(flows: Dict[str, Iterable[str]]) -> dict:
    """
    Return {flow: {step: {attempts, success, failure, p50_latency_ms, p95_latency_ms}}}
    for every step name passed in. Steps never seen report zeros.
    """
    r = get_redis()
    out: dict = {}
    for flow, steps in flows.items():
        per_step = {}
        for step in steps:
            p50, p95 = _p50_p95(_read_latencies(r, _key(flow, step, "latencies")))
            per_step[step] = {
                "attempts": int(r.get(_key(flow, step, "attempts")) or 0),
                "success": int(r.get(_key(flow, step, "success")) or 0),
                "failure": int(r.get(_key(flow, step, "failure")) or 0),
                "p50_latency_ms": round(p50, 3),
                "p95_latency_ms": round(p95, 3),
            }
        out[flow] = per_step
    return {
        "enabled": bool(settings.METRICS_ENABLED),
        "flows": out,
        "snapshot_at": int(time.time()),
    }
