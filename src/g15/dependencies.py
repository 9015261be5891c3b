"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis

from g15.redis_client import get_redis_or_none


async def get_optional_redis() -> AsyncGenerator[redis.Redis | None, None]:
    """Yield the Redis client, or None when Redis is unavailable."""
    yield get_redis_or_none()
