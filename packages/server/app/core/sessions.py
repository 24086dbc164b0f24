"""
Session revocation list kept in Redis.

A signed-out or refreshed token's ``jti`` is stored until the token would have
expired anyway, so revocation never outlives the token.
"""

from __future__ import annotations

import redis.asyncio as redis

from app.core.config import get_settings

settings = get_settings()

_REVOKED_PREFIX = "ts:session:revoked:"

_redis_pool: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_pool


async def close_redis() -> None:
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


async def revoke_session(jti: str, ttl_seconds: int | None = None) -> None:
    """Add a token id to the revocation list."""
    conn = await get_redis()
    ttl = max(1, ttl_seconds or settings.jwt_expire_minutes * 60)
    await conn.setex(f"{_REVOKED_PREFIX}{jti}", ttl, "1")


async def is_session_revoked(jti: str) -> bool:
    conn = await get_redis()
    return await conn.exists(f"{_REVOKED_PREFIX}{jti}") > 0
