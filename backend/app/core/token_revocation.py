"""
Token Revocation System using Redis.

Implements token blacklisting so that logged-out JWT tokens stop working
before they expire.
"""

import logging

from redis.exceptions import RedisError

from backend.app.core import redis_client as redis_store
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


def blacklist_key(token: str) -> str:
    return f"{TOKEN_BLACKLIST_PREFIX}{token}"


async def revoke_token(token: str, phone_number: str) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        token: The JWT token string to revoke
        phone_number: Phone number that owns the token

    Returns:
        True if successfully revoked, False otherwise
    """
    # Tokens auto-expire anyway, keep the entry only as long
    ttl_seconds = settings.access_token_expire_minutes * 60
    try:
        await redis_store.redis_client.setex(blacklist_key(token), ttl_seconds, phone_number)
        return True
    except (RedisError, OSError) as e:
        logger.error("Error revoking token: %s", e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    Fails open when Redis is unreachable.

    Args:
        token: JWT token string to check

    Returns:
        True if token is revoked, False otherwise
    """
    try:
        exists = await redis_store.redis_client.exists(blacklist_key(token))
        return exists > 0
    except (RedisError, OSError) as e:
        logger.warning("Error checking token revocation: %s", e)
        return False
