from functools import lru_cache

from redis import Redis
from cashier_gate.settings import settings

# Metrics and snapshots are best-effort; a stalled Redis must not hold a request
_SOCKET_TIMEOUT_SEC = 2.0


@lru_cache(maxsize=4)
def _client(url: str) -> Redis:
    return Redis.from_url(url, decode_responses=True, socket_timeout=_SOCKET_TIMEOUT_SEC,
                          socket_connect_timeout=_SOCKET_TIMEOUT_SEC)


def get_redis() -> Redis:
    """Shared client (one connection pool) for the configured REDIS_URL."""
    return _client(settings.REDIS_URL)
