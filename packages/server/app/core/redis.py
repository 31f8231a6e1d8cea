"""Redis access: shared client plus the JWT revocation list."""

from __future__ import annotations

import redis.asyncio as redis

from app.core.config import get_settings

settings = get_settings()

REVOKED_KEY = "jwt:revoked:{jti}"

_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.from_url(settings.redis_url, decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


async def revoke_jti(jti: str, ttl_seconds: int) -> None:
    """Remember a token id until the token would have expired anyway."""
    client = await get_redis()
    await client.setex(REVOKED_KEY.format(jti=jti), max(ttl_seconds, 1), "1")


async def is_jti_revoked(jti: str) -> bool:
    client = await get_redis()
    return await client.exists(REVOKED_KEY.format(jti=jti)) > 0
