"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
The caller context is the decoded token payload; downstream code reads the
phone number from it through ``get_phone_number``.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from backend.app.core.exceptions import AuthenticationError
from backend.app.core.jwt import decode_access_token
from backend.app.core.token_revocation import is_token_revoked

# HTTP Bearer security scheme, errors are raised in our own envelope
security = HTTPBearer(auto_error=False)


def get_phone_number(payload: Optional[dict]) -> str:
    """Extract the caller's phone number from a token payload ('' when absent)."""
    if not payload:
        return ""
    value = payload.get("phoneNumber") or payload.get("phone") or payload.get("sub")
    return str(value or "").strip()


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Return the raw bearer token or fail with UNAUTHORIZED."""
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError("Missing or invalid token.")
    return credentials.credentials.strip()


async def get_current_user(token: str = Depends(get_bearer_token)) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature and expiry
    2. Checks if token has been explicitly revoked (logout)
    3. Requires a phone number in the payload

    Args:
        token: Bearer token from the Authorization header

    Returns:
        Decoded token payload containing the caller's phone number

    Raises:
        AuthenticationError: 401 if authentication fails for any reason
    """
    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token.")

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(token):
        raise AuthenticationError("Token has been revoked.")

    # 3. Identity must carry a phone number
    if not get_phone_number(payload):
        raise AuthenticationError("Invalid token payload.")

    return payload
