"""
Verified journey store.

A VerifiedJourney is written on every successful PNR lookup and is the
only proof that a phone number travels on a given journey.
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.upsert import upsert
from backend.app.models.enums import StatusType
from backend.app.models.verified_journey import VerifiedJourney


def journey_columns(journey: Optional[dict]) -> dict:
    """Flatten a ``journey{...}`` payload into VerifiedJourney/OfferSeat columns."""
    journey = journey or {}
    return {
        "train_number": _text(journey.get("trainNumber")),
        "train_name": _text(journey.get("trainName")),
        "travel_class": _text(journey.get("class")),
        "from_station": _text(journey.get("from")),
        "to_station": _text(journey.get("to")),
        "boarding_date": _text(journey.get("boardingDate")),
    }


def journey_snapshot(row) -> dict:
    """Copy the journey columns of a VerifiedJourney for another row."""
    return {
        "train_number": row.train_number,
        "train_name": row.train_name,
        "travel_class": row.travel_class,
        "from_station": row.from_station,
        "to_station": row.to_station,
        "boarding_date": row.boarding_date,
    }


def _text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


async def get_verified_journey(
    db: AsyncSession,
    phone_number: str,
    pnr: str,
) -> Optional[VerifiedJourney]:
    result = await db.execute(
        select(VerifiedJourney).where(
            VerifiedJourney.phone_number == phone_number,
            VerifiedJourney.pnr == pnr,
        )
    )
    return result.scalar_one_or_none()


async def record_verified_journey(
    db: AsyncSession,
    phone_number: str,
    pnr: str,
    journey: Optional[dict],
    status_type,
) -> VerifiedJourney:
    """
    Create or overwrite the verified journey for (phone_number, pnr).

    Args:
        db: Database session
        phone_number: Caller's phone number
        pnr: 10-character PNR that was looked up
        journey: ``journey`` block of the lookup result
        status_type: Provider booking status (anything StatusType.parse accepts)

    Returns:
        The persisted VerifiedJourney
    """
    now = datetime.now(timezone.utc)
    columns = journey_columns(journey)
    columns["status_type"] = StatusType.parse(status_type)
    columns["verified_at"] = now

    values = {"phone_number": phone_number, "pnr": pnr, **columns}
    return await upsert(
        db,
        VerifiedJourney,
        values=values,
        conflict_columns=("phone_number", "pnr"),
        update_values={**columns, "updated_at": now},
    )
