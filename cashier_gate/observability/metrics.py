"""
Gate Metrics Snapshot
---------------------
Lightweight Redis counters/timers for the cashier gate plus one snapshot
function consumed by /admin/metrics. Missing keys (first boot) read as zero.
"""
from __future__ import annotations
import time
from typing import Dict, List, Tuple
from cashier_gate.store.redis_conn import get_redis
from cashier_gate.core import state_machine as sm
from cashier_gate.core import reasons

# Keys (best-effort, stable across restarts)
K_GATE_LAT = "metrics:gate:latencies"                # LPUSH ms
K_GATE_OUTCOME = "metrics:gate:outcome:{outcome}"    # INCR
K_GATE_REASON = "metrics:gate:reason:{kind}"         # INCR

K_CASHIER_REQ = "metrics:cashier:requests"           # INCR
K_CASHIER_ERR = "metrics:cashier:errors"             # HINCRBY code
K_TRANSPORT_FAIL = "metrics:transport:failures"      # INCR

_MAX_SAMPLES = 500  # cap to bound percentile computation cost

def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])

def _now_s() -> int:
    return int(time.time())

def record_gate_outcome(outcome: str, reason_kind: str = "") -> None:
    r = get_redis()
    r.incr(K_GATE_OUTCOME.format(outcome=outcome), 1)
    if reason_kind:
        r.incr(K_GATE_REASON.format(kind=reason_kind), 1)

def record_gate_latency(ms: int) -> None:
    try:
        ms = int(ms)
    except Exception:
        return
    r = get_redis()
    r.lpush(K_GATE_LAT, ms)
    r.ltrim(K_GATE_LAT, 0, _MAX_SAMPLES - 1)

def increment_cashier_request() -> None:
    r = get_redis()
    r.incr(K_CASHIER_REQ, 1)

def record_cashier_error(code: str) -> None:
    r = get_redis()
    r.hincrby(K_CASHIER_ERR, code or "UNKNOWN", 1)

def increment_transport_failure() -> None:
    r = get_redis()
    r.incr(K_TRANSPORT_FAIL, 1)

def _read_latency_list(key: str) -> List[float]:
    r = get_redis()
    raw = r.lrange(key, 0, _MAX_SAMPLES - 1) or []
    out: List[float] = []
    for x in raw:
        try:
            out.append(float(x) / 1000.0)  # seconds
        except (TypeError, ValueError):
            continue
    return out

def _p50_p95(latencies_s: List[float]) -> Tuple[float, float]:
    if not latencies_s:
        return 0.0, 0.0
    return _percentile(latencies_s, 0.50), _percentile(latencies_s, 0.95)

def get_snapshot() -> dict:
    """
    Return a dict shaped for /admin/metrics consumers.
    Fields:
      - outcomes: terminal outcome -> count
      - reasons: blocking reason kind -> count
      - cashier_requests, cashier_errors (code -> count), transport_failures
      - p50_gate_latency, p95_gate_latency (seconds)
    """
    r = get_redis()

    outcomes: Dict[str, int] = {}
    for outcome in sm.OUTCOMES:
        outcomes[outcome] = int(r.get(K_GATE_OUTCOME.format(outcome=outcome)) or 0)

    reason_counts: Dict[str, int] = {}
    for kind in reasons.ALL_KINDS:
        reason_counts[kind] = int(r.get(K_GATE_REASON.format(kind=kind)) or 0)

    errors = {str(k): int(v) for k, v in (r.hgetall(K_CASHIER_ERR) or {}).items()}

    p50, p95 = _p50_p95(_read_latency_list(K_GATE_LAT))

    return {
        "outcomes": outcomes,
        "reasons": reason_counts,
        "cashier_requests": int(r.get(K_CASHIER_REQ) or 0),
        "cashier_errors": errors,
        "transport_failures": int(r.get(K_TRANSPORT_FAIL) or 0),
        "p50_gate_latency": round(p50, 3),
        "p95_gate_latency": round(p95, 3),
        "snapshot_at": _now_s(),
    }
