import json
from typing import Any, Dict, Optional

from cashier_gate.observability.logging import log
from cashier_gate.settings import settings
from cashier_gate.store.models import GateOutcome
from cashier_gate.store.redis_conn import get_redis

PREFIX = "outcome:"


def _key(loginid: str) -> str:
    return f"{PREFIX}{loginid}"


def save_outcome(loginid: str, outcome: GateOutcome) -> None:
    """Keep the last gate outcome per client for admin/debug retrieval."""
    if not loginid or not settings.STORE_LAST_OUTCOME:
        return
    r = get_redis()
    r.set(_key(loginid), json.dumps(outcome.to_dict()), ex=int(settings.OUTCOME_TTL_SEC))


def load_outcome(loginid: str) -> Optional[Dict[str, Any]]:
    r = get_redis()
    raw = r.get(_key(loginid))
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        log("outcome_snapshot_corrupt", loginid=loginid)
        return None
    return data if isinstance(data, dict) else None
