"""
PNR lookup endpoint.

A successful lookup also records the caller's verified journey, which
gates the buddy and seat-offer features.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.dependencies import get_current_user, get_phone_number
from backend.app.core.exceptions import AppException, InvalidInputError
from backend.app.db.session import get_db
from backend.app.schemas.pnr import PnrLookupRequest
from backend.app.services.journey_store import record_verified_journey
from backend.app.services.pnr_service import PnrLookupError, PnrService, get_pnr_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pnr", tags=["PNR"])


@router.post("/lookup")
async def lookup_pnr(
    body: PnrLookupRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    pnr_service: PnrService = Depends(get_pnr_service),
):
    """
    Look up PNR status.

    Persisting the verified journey is best-effort: a store failure is
    logged and the lookup result is still returned.
    """
    pnr = body.pnr
    if not isinstance(pnr, str) or len(pnr) != 10:
        raise InvalidInputError("Enter a valid 10-digit PNR.", error_code="INVALID_PNR")

    try:
        result = await pnr_service.lookup(pnr)
    except PnrLookupError as e:
        raise AppException(e.message, error_code="PNR_LOOKUP_FAILED", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    phone_number = get_phone_number(current_user)
    try:
        await record_verified_journey(
            db,
            phone_number=phone_number,
            pnr=pnr,
            journey=result.get("journey"),
            status_type=(result.get("status") or {}).get("type"),
        )
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Failed to persist verified journey for PNR %s: %s", pnr, e)

    return result
