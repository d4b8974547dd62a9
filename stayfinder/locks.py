# Best-effort Redis locks for work that should run in one process at a time (e.g., periodic sweeps).
# Booking correctness never depends on these; creation is serialized in the database.
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import uuid4

from .redis_client import get_redis

logger = logging.getLogger("stayfinder.locks")

# Delete the key only while it still holds our token, so an expired-and-retaken lock is left alone
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def _release(client, key: str, token: str) -> None:
    try:
        client.eval(_RELEASE_SCRIPT, 1, key, token)
    except Exception as exc:
        # The TTL frees the key eventually
        logger.debug("lock release failed (key=%s): %s", key, exc)


@contextmanager
def redis_try_lock(key: str, ttl_ms: int = 5000) -> Iterator[bool]:
    """
    Try once to take `key` with SET NX PX; never blocks.

    Yields:
    - True when acquired, or when Redis is disabled/unreachable (single-process deployments
      have nobody to race with)
    - False when another process holds the key

        with redis_try_lock("lock:sweeper:complete_bookings", ttl_ms=60_000) as locked:
            if not locked:
                return
            ...
    """
    client = get_redis()
    if client is None:
        yield True
        return

    token = uuid4().hex
    try:
        acquired = bool(client.set(key, token, nx=True, px=ttl_ms))
    except Exception as exc:
        logger.warning("lock acquire failed, proceeding unlocked (key=%s): %s", key, exc)
        yield True
        return

    try:
        yield acquired
    finally:
        if acquired:
            _release(client, key, token)
