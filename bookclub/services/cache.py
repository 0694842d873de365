"""
Redis read-through cache for public user profiles.

Only profiles are cached ("user:{id}", settings.cache_ttl). Club rows are
always read from Postgres because owner_id and members_count change under
the membership protocol.

With REDIS_ENABLED=false, or Redis unreachable, every call degrades to a
miss and nothing raises.
"""

import json
import logging
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from bookclub.config import get_settings

logger = logging.getLogger(__name__)

USER_PREFIX = "user"

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Process-wide client, created on first use; None when caching is off."""
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        if not settings.redis_enabled:
            return None

        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        try:
            client.ping()
        except RedisError as e:
            logger.warning(f"Redis unavailable ({e}); profile cache off")
            return None
        logger.info(f"Connected to Redis at {settings.redis_url}")
        _redis_client = client

    return _redis_client


def close_redis_connection() -> None:
    global _redis_client
    if _redis_client is None:
        return
    _redis_client.close()
    _redis_client = None
    logger.info("Redis connection closed")


def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Join non-None positional values and sorted key=value pairs with ':'.

        make_cache_key("user", 1)                   -> "user:1"
        make_cache_key("clubs", per_page=10, page=1) -> "clubs:page=1:per_page=10"
    """
    parts = [prefix, *(str(a) for a in args if a is not None)]
    parts.extend(f"{k}={kwargs[k]}" for k in sorted(kwargs) if kwargs[k] is not None)
    return ":".join(parts)


# =============================================================================
# Primitives
# =============================================================================


def cache_get(key: str) -> Optional[Any]:
    client = get_redis_client()
    if client is None:
        return None

    try:
        raw = client.get(key)
    except RedisError as e:
        logger.warning(f"Cache GET {key} failed: {e}")
        return None

    if raw is None:
        logger.debug(f"Cache miss: {key}")
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Cache entry {key} is not valid JSON; ignoring it")
        return None


def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    """Store value as JSON. Returns False when nothing was written."""
    client = get_redis_client()
    if client is None:
        return False

    try:
        payload = json.dumps(value, default=str)
    except (TypeError, ValueError) as e:
        logger.warning(f"Cannot serialize {key}: {e}")
        return False

    try:
        client.setex(key, ttl or get_settings().cache_ttl, payload)
    except RedisError as e:
        logger.warning(f"Cache SET {key} failed: {e}")
        return False
    return True


def cache_delete(key: str) -> bool:
    client = get_redis_client()
    if client is None:
        return False

    try:
        client.delete(key)
    except RedisError as e:
        logger.warning(f"Cache DELETE {key} failed: {e}")
        return False
    return True


# =============================================================================
# Profiles
# =============================================================================


def get_cached_user(user_id: int) -> Optional[dict]:
    return cache_get(make_cache_key(USER_PREFIX, user_id))


def cache_user(user_id: int, profile: dict) -> bool:
    return cache_set(make_cache_key(USER_PREFIX, user_id), profile)


def invalidate_user_cache(user_id: int) -> None:
    cache_delete(make_cache_key(USER_PREFIX, user_id))


def get_cache_stats() -> dict:
    """Cache section of /health."""
    if not get_settings().redis_enabled:
        return {"status": "disabled"}

    client = get_redis_client()
    if client is None:
        return {"status": "disconnected"}

    try:
        stats = client.info("stats")
        keys = client.dbsize()
    except RedisError:
        return {"status": "error"}

    return {
        "status": "connected",
        "hits": stats.get("keyspace_hits", 0),
        "misses": stats.get("keyspace_misses", 0),
        "keys": keys,
    }
