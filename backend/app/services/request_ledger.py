"""
Request ledger shared by buddy requests and seat-offer requests.

Both request kinds are keyed on a natural compound identity and move
through the same statuses:

    PENDING -> ACCEPTED | REJECTED   (decided by the receiver)
    PENDING -> CANCELLED             (decided by the sender)

Settled requests are not locked; a later respond() simply overwrites the
status, and re-requesting revives the row as PENDING.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InsufficientPermissionsError,
    InvalidInputError,
    ResourceNotFoundError,
)
from backend.app.db.session import ensure_db_available
from backend.app.db.upsert import upsert
from backend.app.models.enums import RequestStatus

LIST_LIMIT = 200

ACTION_STATUS = {
    "ACCEPT": RequestStatus.ACCEPTED,
    "REJECT": RequestStatus.REJECTED,
    "DECLINE": RequestStatus.REJECTED,
    "IGNORE": RequestStatus.REJECTED,
    "CANCEL": RequestStatus.CANCELLED,
}

RECEIVER_DECISIONS = (RequestStatus.ACCEPTED, RequestStatus.REJECTED)


def resolve_action(action: Optional[str]) -> RequestStatus:
    """Map a client action to the target status (case-insensitive)."""
    status = ACTION_STATUS.get(str(action or "").strip().upper())
    if status is None:
        raise InvalidInputError("Action must be ACCEPT, REJECT, or CANCEL", error_code="INVALID_ACTION")
    return status


def authorize_transition(
    request_row,
    caller_phone: str,
    status: RequestStatus,
    receiver_label: str = "receiver",
) -> None:
    """
    Only the receiver may accept or reject, only the sender may cancel.

    Raises:
        InsufficientPermissionsError: 403 FORBIDDEN, row left untouched
    """
    if status in RECEIVER_DECISIONS and request_row.to_phone_number != caller_phone:
        raise InsufficientPermissionsError(f"Only the {receiver_label} can accept/reject this request")
    if status == RequestStatus.CANCELLED and request_row.from_phone_number != caller_phone:
        raise InsufficientPermissionsError("Only the requester can cancel this request")


def clean_message(message: Optional[str]) -> Optional[str]:
    if message is None:
        return None
    return str(message).strip() or None


async def open_request(
    db: AsyncSession,
    model: Type,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    message: Optional[str],
):
    """
    Create a PENDING request or revive the existing one for the same key.

    Args:
        db: Database session
        model: BuddyRequest or OfferSeatRequest
        values: Natural key plus sender/receiver/pnr for a fresh row
        conflict_columns: Columns of the model's unique constraint
        message: Optional note; replaces any earlier message

    Returns:
        The persisted request row
    """
    message = clean_message(message)
    return await upsert(
        db,
        model,
        values={**values, "message": message, "status": RequestStatus.PENDING},
        conflict_columns=conflict_columns,
        update_values={
            "status": RequestStatus.PENDING,
            "message": message,
            "updated_at": datetime.now(timezone.utc),
        },
    )


async def respond(
    db: AsyncSession,
    model: Type,
    request_id: int,
    action: Optional[str],
    caller_phone: str,
    receiver_label: str = "receiver",
):
    """
    Apply a respond action to a request.

    Raises:
        ServiceUnavailableError: 503 DB_UNAVAILABLE
        InvalidInputError: 400 INVALID_ACTION
        ResourceNotFoundError: 404 REQUEST_NOT_FOUND
        InsufficientPermissionsError: 403 FORBIDDEN
    """
    await ensure_db_available(db)
    status = resolve_action(action)

    request_row = await db.get(model, request_id)
    if request_row is None:
        raise ResourceNotFoundError("Request not found", error_code="REQUEST_NOT_FOUND")

    authorize_transition(request_row, caller_phone, status, receiver_label)

    request_row.status = status
    await db.commit()
    await db.refresh(request_row)
    return request_row


async def list_requests(
    db: AsyncSession,
    model: Type,
    phone_number: str,
    pnr: str,
    incoming: bool,
) -> List:
    """
    Requests received (incoming) or sent by the caller for a PNR, newest first.

    Incoming requests match on the receiver's PNR, outgoing on the sender's.
    """
    if incoming:
        party = (model.to_phone_number == phone_number, model.to_pnr == pnr)
    else:
        party = (model.from_phone_number == phone_number, model.pnr == pnr)
    result = await db.execute(
        select(model)
        .where(*party)
        .order_by(model.created_at.desc(), model.id.desc())
        .limit(LIST_LIMIT)
    )
    return list(result.scalars().all())
