"""
Buddy matching service.

Pairs confirmed passengers travelling on the same train, class and
boarding date. Candidates come from other users' verified journeys; only
CNF tickets are eligible since RAC/WL travel is not guaranteed.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import BusinessRuleError, ResourceNotFoundError
from backend.app.db.session import ensure_db_available
from backend.app.models.buddy_request import BuddyRequest
from backend.app.models.enums import StatusType
from backend.app.models.verified_journey import VerifiedJourney
from backend.app.services import request_ledger
from backend.app.services.user_service import display_name, get_users_by_phone, resolve_age

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50


def require_trip_key(journey) -> None:
    """Matching needs train number, class and boarding date on the caller's journey."""
    if not journey.has_trip_key():
        raise BusinessRuleError(
            "Verified journey details missing. Please re-check PNR.",
            error_code="JOURNEY_MISSING",
        )


async def search_buddies(
    db: AsyncSession,
    phone_number: str,
    journey: VerifiedJourney,
    today: Optional[date] = None,
) -> List[dict]:
    """
    Find other confirmed passengers on the caller's train/class/date.

    Args:
        db: Database session
        phone_number: Caller's phone number (excluded from results)
        journey: Caller's verified journey from the gate
        today: Reference date for age computation

    Returns:
        Candidate dicts, most recently verified first, at most 50
    """
    await ensure_db_available(db)
    require_trip_key(journey)

    result = await db.execute(
        select(VerifiedJourney)
        .where(
            VerifiedJourney.phone_number != phone_number,
            VerifiedJourney.train_number == journey.train_number,
            VerifiedJourney.travel_class == journey.travel_class,
            VerifiedJourney.boarding_date == journey.boarding_date,
            VerifiedJourney.status_type == StatusType.CNF,
        )
        .order_by(VerifiedJourney.verified_at.desc(), VerifiedJourney.id.desc())
        .limit(SEARCH_LIMIT)
    )
    matches = list(result.scalars().all())
    profiles = await get_users_by_phone(db, [m.phone_number for m in matches])

    candidates = []
    for match in matches:
        profile = profiles.get(match.phone_number)
        candidates.append({
            "id": match.id,
            "display_name": display_name(profile, match.phone_number),
            "age": resolve_age(profile, today),
            "train_number": match.train_number or "",
            "train_class": match.travel_class or "",
            "boarding_date": match.boarding_date or "",
            "from_station": match.from_station or "",
            "to_station": match.to_station or "",
            "verified_at": match.verified_at,
        })

    logger.info("Buddy search", extra={"pnr": journey.pnr, "matches": len(candidates)})
    return candidates


async def request_buddy(
    db: AsyncSession,
    phone_number: str,
    journey: VerifiedJourney,
    buddy_id: int,
    message: Optional[str] = None,
) -> BuddyRequest:
    """
    Ask a candidate to connect; re-requesting revives the same row.

    Raises:
        ResourceNotFoundError: 404 BUDDY_NOT_FOUND
        BusinessRuleError: 400 JOURNEY_MISSING, INVALID_REQUEST, BUDDY_NOT_CONFIRMED
            or TRIP_MISMATCH
    """
    await ensure_db_available(db)
    require_trip_key(journey)

    target = await db.get(VerifiedJourney, buddy_id)
    if target is None:
        raise ResourceNotFoundError("Buddy not found", error_code="BUDDY_NOT_FOUND")
    if target.phone_number == phone_number:
        raise BusinessRuleError("Cannot send a buddy request to yourself", error_code="INVALID_REQUEST")
    if target.status_type != StatusType.CNF:
        raise BusinessRuleError("Buddy does not have a confirmed ticket", error_code="BUDDY_NOT_CONFIRMED")
    if target.trip_key() != journey.trip_key():
        raise BusinessRuleError("Buddy is not on your same train/class/date", error_code="TRIP_MISMATCH")

    return await request_ledger.open_request(
        db,
        BuddyRequest,
        values={
            "from_phone_number": phone_number,
            "to_phone_number": target.phone_number,
            "pnr": journey.pnr,
            "to_pnr": target.pnr,
        },
        conflict_columns=("from_phone_number", "to_phone_number", "pnr"),
        message=message,
    )


async def respond_to_buddy_request(
    db: AsyncSession,
    phone_number: str,
    request_id: int,
    action: Optional[str],
) -> BuddyRequest:
    return await request_ledger.respond(
        db, BuddyRequest, request_id, action, phone_number, receiver_label="receiver"
    )


async def list_buddy_requests(db: AsyncSession, phone_number: str, pnr: str, incoming: bool) -> List[BuddyRequest]:
    return await request_ledger.list_requests(db, BuddyRequest, phone_number, pnr, incoming)
