# Shared Redis connection for rate limiting and sweeper locks.
# Opt-in via REDIS_ENABLED; any connection problem degrades to "no Redis" instead of raising.
import logging
import os
from typing import Optional

_logger = logging.getLogger("stayfinder.redis")

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def _truthy(val: Optional[str]) -> bool:
    return val is not None and val.strip().lower() in _TRUTHY


def is_redis_enabled() -> bool:
    return _truthy(os.getenv("REDIS_ENABLED", "false"))


# Connection state for this process. A failed attempt is remembered so we do not
# pay the connect timeout on every request.
_client = None
_attempted = False


def get_redis():
    """
    Return a connected redis.Redis, or None when Redis is disabled or unreachable.

    The first call connects (REDIS_URL, default redis://localhost:6379/0) and pings;
    the result, success or failure, is reused for the rest of the process.
    """
    global _client, _attempted
    if not is_redis_enabled():
        return None
    if _attempted:
        return _client

    _attempted = True
    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    try:
        import redis

        client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
            health_check_interval=0,
        )
        client.ping()
    except Exception as exc:
        _logger.warning("Redis unavailable at %s, continuing without it: %s", url, exc)
        _client = None
        return None

    _client = client
    _logger.info("Connected to Redis at %s", url)
    return _client
