# Redis-backed fixed-window rate limiter, applied per client IP and scope.
# Keys: rl:v1:ip:{ip}:{scope}. Without Redis every request is allowed.
import os
import logging
from typing import Callable, Dict, Literal, Optional

from fastapi import Request, HTTPException, status

from .redis_client import get_redis

logger = logging.getLogger("stayfinder.rate_limit")

Scope = Literal["login", "signup", "write"]

# scope -> (env var, default requests per window)
_SCOPE_LIMITS: Dict[str, tuple] = {
    "login": ("RATE_LIMIT_LOGIN_PER_WINDOW", 10),
    "signup": ("RATE_LIMIT_SIGNUP_PER_WINDOW", 5),
    "write": ("RATE_LIMIT_WRITE_PER_WINDOW", 30),
}


def _env_int(name: str, default: int) -> int:
    raw: Optional[str] = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _client_ip(request: Request) -> str:
    # Remote address only; X-Forwarded-For is not trusted here
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: Scope) -> Callable[[Request], None]:
    """
    Build a FastAPI dependency that caps requests per IP for `scope`.

    Window length comes from RATE_LIMIT_WINDOW_SECONDS (default 60); per-scope caps from
    RATE_LIMIT_LOGIN_PER_WINDOW (10), RATE_LIMIT_SIGNUP_PER_WINDOW (5) and
    RATE_LIMIT_WRITE_PER_WINDOW (30). Over the cap the request gets 429 with a
    retry_after hint. Redis errors let the request through.
    """
    window = _env_int("RATE_LIMIT_WINDOW_SECONDS", 60)
    env_name, default_limit = _SCOPE_LIMITS[scope]
    limit = _env_int(env_name, default_limit)

    def _dependency(request: Request) -> None:
        r = get_redis()
        if r is None:
            return

        ip = _client_ip(request)
        key = f"rl:v1:ip:{ip}:{scope}"
        try:
            current = r.incr(key, amount=1)
            if current == 1:
                # First hit opens the window
                r.expire(key, window)
            if current <= limit:
                return
            ttl = r.ttl(key)
        except Exception as exc:
            logger.warning("Rate limit skipped (scope=%s, ip=%s): %s", scope, ip, exc)
            return

        retry_after = ttl if isinstance(ttl, int) and ttl > 0 else window
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "rate_limited",
                "scope": scope,
                "limit": limit,
                "window_seconds": window,
                "retry_after": retry_after,
            },
        )

    return _dependency
