"""
Seat offer service.

Confirmed passengers advertise spare seats on their ticket; co-passengers
on the same train/class/date request them. The offer carries a snapshot
of the owner's journey taken when the offer is written.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    BusinessRuleError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
)
from backend.app.db.session import ensure_db_available
from backend.app.db.upsert import upsert
from backend.app.models.enums import OfferStatus, StatusType
from backend.app.models.offer_seat import MAX_SEATS, MIN_SEATS, OfferSeat
from backend.app.models.offer_seat_request import OfferSeatRequest
from backend.app.models.verified_journey import VerifiedJourney
from backend.app.services import request_ledger
from backend.app.services.buddy_service import require_trip_key
from backend.app.services.journey_store import journey_snapshot
from backend.app.services.user_service import mask_phone

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 50
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_seats(value: Any) -> int:
    """
    Parse a seat count leniently and clamp it to 1..4.

    Leading integers are honoured ("3 seats" -> 3); anything unparseable
    becomes 1.
    """
    seats: Optional[int] = None
    if isinstance(value, bool):
        seats = None
    elif isinstance(value, int):
        seats = value
    elif isinstance(value, float) and value == value:
        seats = int(value)
    elif value is not None:
        match = _LEADING_INT.match(str(value))
        if match:
            seats = int(match.group(1))

    if seats is None:
        return MIN_SEATS
    return min(max(seats, MIN_SEATS), MAX_SEATS)


async def create_offer(
    db: AsyncSession,
    phone_number: str,
    journey: VerifiedJourney,
    seats_available: Any,
    note: Optional[str] = None,
) -> OfferSeat:
    """
    Create or refresh the caller's offer for this PNR.

    Writing an existing offer re-snapshots the journey and reactivates it.

    Raises:
        InsufficientPermissionsError: 403 PNR_NOT_CONFIRMED unless the ticket is CNF
    """
    await ensure_db_available(db)

    if journey.status_type != StatusType.CNF:
        raise InsufficientPermissionsError(
            "Only confirmed (CNF) passengers can offer seats.",
            error_code="PNR_NOT_CONFIRMED",
        )

    fields = {
        **journey_snapshot(journey),
        "seats_available": parse_seats(seats_available),
        "note": request_ledger.clean_message(note),
        "status": OfferStatus.ACTIVE,
    }
    offer = await upsert(
        db,
        OfferSeat,
        values={"phone_number": phone_number, "pnr": journey.pnr, **fields},
        conflict_columns=("phone_number", "pnr"),
        update_values={**fields, "updated_at": datetime.now(timezone.utc)},
    )
    logger.info("Seat offer written", extra={"offer_id": offer.id, "seats": offer.seats_available})
    return offer


async def search_offers(db: AsyncSession, phone_number: str, journey: VerifiedJourney) -> List[dict]:
    """Active offers of other passengers on the caller's train/class/date."""
    await ensure_db_available(db)
    require_trip_key(journey)

    result = await db.execute(
        select(OfferSeat)
        .where(
            OfferSeat.phone_number != phone_number,
            OfferSeat.train_number == journey.train_number,
            OfferSeat.travel_class == journey.travel_class,
            OfferSeat.boarding_date == journey.boarding_date,
            OfferSeat.status == OfferStatus.ACTIVE,
        )
        .order_by(OfferSeat.updated_at.desc(), OfferSeat.id.desc())
        .limit(SEARCH_LIMIT)
    )

    return [
        {
            "id": offer.id,
            "display_name": mask_phone(offer.phone_number),
            "from_station": offer.from_station or "",
            "to_station": offer.to_station or "",
            "train_number": offer.train_number or "",
            "train_class": offer.travel_class or "",
            "boarding_date": offer.boarding_date or "",
            "seats_available": offer.seats_available or MIN_SEATS,
            "note": offer.note or "",
        }
        for offer in result.scalars().all()
    ]


async def request_offer(
    db: AsyncSession,
    phone_number: str,
    journey: VerifiedJourney,
    offer_id: int,
    message: Optional[str] = None,
) -> OfferSeatRequest:
    """
    Request a seat from another passenger's offer.

    The trip check compares the caller's journey with the offer snapshot.
    The offer may close between this check and the upsert; that race is
    accepted.

    Raises:
        ResourceNotFoundError: 404 OFFER_NOT_FOUND
        BusinessRuleError: 400 JOURNEY_MISSING, OFFER_NOT_ACTIVE, INVALID_REQUEST
            or TRIP_MISMATCH
    """
    await ensure_db_available(db)
    require_trip_key(journey)

    offer = await db.get(OfferSeat, offer_id)
    if offer is None:
        raise ResourceNotFoundError("Offer not found", error_code="OFFER_NOT_FOUND")
    if offer.status != OfferStatus.ACTIVE:
        raise BusinessRuleError("Offer is not active", error_code="OFFER_NOT_ACTIVE")
    if offer.phone_number == phone_number:
        raise BusinessRuleError("Cannot request your own offer", error_code="INVALID_REQUEST")
    if offer.trip_key() != journey.trip_key():
        raise BusinessRuleError("Offer is not on your same train/class/date", error_code="TRIP_MISMATCH")

    return await request_ledger.open_request(
        db,
        OfferSeatRequest,
        values={
            "offer_id": offer.id,
            "from_phone_number": phone_number,
            "to_phone_number": offer.phone_number,
            "pnr": journey.pnr,
            "to_pnr": offer.pnr,
        },
        conflict_columns=("offer_id", "from_phone_number"),
        message=message,
    )


async def respond_to_offer_request(
    db: AsyncSession,
    phone_number: str,
    request_id: int,
    action: Optional[str],
) -> OfferSeatRequest:
    return await request_ledger.respond(
        db, OfferSeatRequest, request_id, action, phone_number, receiver_label="offer owner"
    )


async def list_offer_requests(
    db: AsyncSession,
    phone_number: str,
    pnr: str,
    incoming: bool,
) -> List[OfferSeatRequest]:
    return await request_ledger.list_requests(db, OfferSeatRequest, phone_number, pnr, incoming)


async def get_my_offer(db: AsyncSession, phone_number: str, pnr: str) -> Optional[OfferSeat]:
    result = await db.execute(
        select(OfferSeat).where(OfferSeat.phone_number == phone_number, OfferSeat.pnr == pnr)
    )
    return result.scalar_one_or_none()
