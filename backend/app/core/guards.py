"""
Security guards for verified-journey, premium and admin access control.

Provides dependencies for protecting endpoints.
"""

import logging
from typing import Optional
from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_user, get_phone_number
from backend.app.core.exceptions import (
    AppException,
    AuthenticationError,
    InsufficientPermissionsError,
    InvalidInputError,
    ServiceUnavailableError,
)
from backend.app.db.session import get_db, is_db_available
from backend.app.models.verified_journey import VerifiedJourney
from backend.app.services.entitlement import EntitlementPolicy, get_entitlement_policy
from backend.app.services.journey_store import get_verified_journey

logger = logging.getLogger(__name__)

PNR_LENGTH = 10
LOCAL_HOSTS = {"127.0.0.1", "::1", "localhost"}


async def _pnr_from_body(request: Request) -> str:
    try:
        body = await request.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    return str(body.get("pnr") or "").strip()


async def _pnr_from_query(request: Request) -> str:
    return str(request.query_params.get("pnr") or "").strip()


_PNR_EXTRACTORS = {
    "body": _pnr_from_body,
    "query": _pnr_from_query,
}


def require_verified_pnr(source: str = "body"):
    """
    Dependency factory for the verified-journey gate.

    Usage:
        @router.post("/search")
        async def search(journey: VerifiedJourney = Depends(require_verified_pnr())):
            ...

    The gate only reads stored verifications; it never calls the PNR provider.

    Args:
        source: Where the PNR is read from, "body" (JSON) or "query"

    Returns:
        FastAPI dependency resolving to the caller's VerifiedJourney

    Raises:
        AuthenticationError 401 if the caller has no phone number
        InvalidInputError 400 INVALID_PNR if the PNR is not 10 characters
        ServiceUnavailableError 503 VERIFICATION_UNAVAILABLE if the store is down
        InsufficientPermissionsError 403 PNR_NOT_VERIFIED if no verification exists
    """
    extractor = _PNR_EXTRACTORS[source]

    async def verified_journey_checker(
        request: Request,
        current_user: dict = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> VerifiedJourney:
        phone_number = get_phone_number(current_user)
        if not phone_number:
            raise AuthenticationError("Missing user context")

        pnr = await extractor(request)
        if len(pnr) != PNR_LENGTH:
            raise InvalidInputError("A valid 10-digit PNR is required", error_code="INVALID_PNR")

        if not await is_db_available(db):
            raise ServiceUnavailableError(
                "Verification service is temporarily unavailable",
                error_code="VERIFICATION_UNAVAILABLE",
            )

        journey = await get_verified_journey(db, phone_number, pnr)
        if journey is None:
            raise InsufficientPermissionsError(
                "Please verify your PNR before using this feature",
                error_code="PNR_NOT_VERIFIED",
            )

        return journey

    return verified_journey_checker


async def require_premium(
    current_user: dict = Depends(get_current_user),
    policy: EntitlementPolicy = Depends(get_entitlement_policy),
) -> dict:
    """
    Dependency for premium-only endpoints.

    Returns:
        User payload if entitled, raises 403 PREMIUM_REQUIRED otherwise
    """
    if not await policy.is_entitled(current_user):
        raise InsufficientPermissionsError("Premium is required.", error_code="PREMIUM_REQUIRED")
    return current_user


def _is_local(host: Optional[str]) -> bool:
    host = host or ""
    return host in LOCAL_HOSTS or host.endswith("127.0.0.1")


async def require_admin(request: Request) -> None:
    """
    Dependency for admin endpoints.

    Admin access is limited to localhost unless ADMIN_ALLOW_REMOTE is set,
    and always requires the configured token in ``x-admin-token``.
    """
    host = request.client.host if request.client else None
    if not _is_local(host) and not settings.admin_allow_remote:
        raise InsufficientPermissionsError("Admin endpoints are only available from localhost")

    expected = settings.admin_token
    if not expected:
        raise AppException(
            "ADMIN_TOKEN is not configured on server",
            error_code="ADMIN_TOKEN_MISSING",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    provided = request.headers.get("x-admin-token")
    if not provided or provided != expected:
        logger.warning("Rejected admin request", extra={"ip": host or "unknown"})
        raise AuthenticationError("Invalid admin token")
