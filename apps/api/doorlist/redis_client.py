from __future__ import annotations

from redis import Redis
from redis.connection import ConnectionPool
from redis.lock import Lock

from doorlist.core.config import settings

_pool: ConnectionPool | None = None

SWEEP_LOCK_KEY = "doorlist:lock:lifecycle-sweep"
DISPATCH_ABORT_TTL_SECONDS = 3600


def get_redis() -> Redis:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(settings.redis_url, decode_responses=True)
    return Redis(connection_pool=_pool)


def sweep_lock(r: Redis | None = None) -> Lock:
    # Expires well before the next beat tick so a crashed worker cannot wedge the sweep
    timeout = max(60, settings.sweep_interval_seconds - 30)
    return (r or get_redis()).lock(SWEEP_LOCK_KEY, timeout=timeout, blocking=False)


def _abort_key(event_id: str) -> str:
    return f"doorlist:dispatch:abort:{event_id}"


def request_dispatch_abort(event_id: str, r: Redis | None = None) -> None:
    (r or get_redis()).setex(_abort_key(event_id), DISPATCH_ABORT_TTL_SECONDS, "1")


def dispatch_abort_requested(event_id: str, r: Redis | None = None) -> bool:
    return bool((r or get_redis()).exists(_abort_key(event_id)))


def clear_dispatch_abort(event_id: str, r: Redis | None = None) -> None:
    (r or get_redis()).delete(_abort_key(event_id))
