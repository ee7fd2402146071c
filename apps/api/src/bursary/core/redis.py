"""
Redis Configuration

Async Redis client backing wizard drafts, rate limits and revoked tokens.
Redis is optional: callers fall back to in-process storage when it is down.
"""

import logging

from redis.asyncio import Redis, from_url

from bursary.core.config import settings

logger = logging.getLogger(__name__)

# Redis client instance
redis_client: Redis | None = None

REVOKED_TOKEN_PREFIX = "revoked_token:"


async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Test connection before publishing the client
    await client.ping()
    redis_client = client
    return redis_client


async def get_redis() -> Redis | None:
    """
    Get Redis client instance.

    Returns None if Redis is not available (optional dependency).
    """
    return redis_client


def is_redis_available() -> bool:
    """Check if Redis client is initialized and available."""
    return redis_client is not None


async def revoke_token(jti: str, ttl_seconds: int) -> bool:
    """
    Remember a revoked token id until the token would have expired anyway.

    Returns:
        True if the revocation was recorded, False when Redis is unavailable
    """
    if redis_client is None or ttl_seconds <= 0:
        return False
    await redis_client.set(f"{REVOKED_TOKEN_PREFIX}{jti}", "1", ex=ttl_seconds)
    return True


async def is_token_revoked(jti: str) -> bool:
    """Check whether a token id was revoked at sign-out."""
    if redis_client is None:
        return False
    try:
        return bool(await redis_client.exists(f"{REVOKED_TOKEN_PREFIX}{jti}"))
    except Exception as e:
        logger.warning(f"Could not check token revocation: {e}")
        return False


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
