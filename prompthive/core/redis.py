from __future__ import annotations

import logging

import redis

from .config import settings

logger = logging.getLogger("prompthive.redis")

_redis_client: redis.Redis | None = None
_redis_available = False
_redis_initialized = False

_DISABLED_VALUES = ("", "none", "disabled")


def _initialize_redis() -> None:
    """Connect to Redis once, if configured."""
    global _redis_client, _redis_available, _redis_initialized

    if _redis_initialized:
        return
    _redis_initialized = True

    redis_url = settings.REDIS_URL or ""
    if redis_url.lower() in _DISABLED_VALUES:
        logger.info("Redis is not configured. Login throttling and refresh token rotation are disabled.")
        return

    client = redis.Redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
        retry_on_timeout=False,
    )
    try:
        client.ping()
    except redis.RedisError as exc:
        logger.warning(
            "Redis not reachable at %s: %s. Login throttling and refresh token rotation are disabled.",
            redis_url,
            exc,
        )
        return

    _redis_client = client
    _redis_available = True
    logger.info("Redis connection established")


def get_redis_client() -> redis.Redis | None:
    """Get Redis client if available, otherwise return None."""
    _initialize_redis()
    if not _redis_available:
        return None
    return _redis_client


def is_redis_available() -> bool:
    _initialize_redis()
    return _redis_available
