from fastapi import APIRouter, Depends, HTTPException
from starlette.concurrency import run_in_threadpool

from cashier_gate.api.auth import require_admin
from cashier_gate.settings import settings
from cashier_gate.store.outcome_repo import load_outcome
import cashier_gate.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/outcome/{loginid}")
async def get_last_outcome(loginid: str):
    """Last gate outcome recorded for this client (if snapshots are enabled)."""
    if not settings.STORE_LAST_OUTCOME:
        return {"enabled": False}
    outcome = await run_in_threadpool(load_outcome, loginid)
    if outcome is None:
        raise HTTPException(status_code=404, detail="No outcome recorded")
    return {"loginid": loginid, "outcome": outcome}


@router.get("/metrics")
def get_metrics():
    """Outcome / reason counters, cashier error codes and gate latency percentiles."""
    return metrics.get_snapshot()
