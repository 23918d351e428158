"""
Shared async Redis connection.

The only data kept in Redis is the logout blacklist (see token_revocation);
/health reports whether the server answers.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

from backend.app.core.config import settings


# Module global so tests can swap in a fake before requests run
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """True when Redis answers PING; connection errors read as unavailable."""
    try:
        return bool(await redis_client.ping())
    except (RedisError, OSError):
        return False
