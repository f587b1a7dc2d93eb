"""
Redis fixed-window rate limiting for public login endpoints
"""

import logging
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .auth import get_client_ip
from .config import RATE_LIMIT_ENABLED, REDIS_URL

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Get or create Redis client"""
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for rate limiting...")
        url = REDIS_URL or "redis://localhost:6379/0"
        redis_client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
    return redis_client


def check_rate_limit(key: str, limit: int, window_seconds: int, client: redis.Redis) -> tuple[bool, int, int]:
    """Count a hit in the current window

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    pipe = client.pipeline()
    pipe.incr(key)
    pipe.ttl(key)
    count, ttl = pipe.execute()

    # First hit in a window starts the expiry clock
    if ttl is None or ttl < 0:
        client.expire(key, window_seconds)
        ttl = window_seconds

    return count <= limit, count, ttl


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        login_rate_limit = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")

        @router.post("/login")
        def login(data: LoginRequest, _: None = Depends(login_rate_limit)):
            ...
    """

    # Sync redis client; must stay a plain def to run in the threadpool
    def rate_limiter(request: Request):
        if not RATE_LIMIT_ENABLED:
            return

        if use_ip:
            key = f"{key_prefix}:{get_client_ip(request) or 'unknown'}"
        else:
            key = f"{key_prefix}:global"

        try:
            is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, get_redis_client())
        except redis.RedisError as e:
            # Login must keep working when Redis is down
            logger.warning(f"⚠️ Rate limiting unavailable, allowing request (fail-open mode): {e}")
            return

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter


login_rate_limit = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")
