"""
Buddy matching API endpoints.

Search, request and respond for confirmed co-passengers. Every route
except respond requires a verified PNR and premium entitlement.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.dependencies import get_current_user, get_phone_number
from backend.app.core.guards import require_premium, require_verified_pnr
from backend.app.db.session import get_db
from backend.app.models.verified_journey import VerifiedJourney
from backend.app.schemas.buddy import (
    BuddyCandidate,
    BuddyRequestCreate,
    BuddySearchRequest,
    CooperationRequestOut,
    RequestRespond,
)
from backend.app.schemas.common import RequestStatusOut
from backend.app.services import buddy_service

router = APIRouter(prefix="/buddies", tags=["Buddies"])


@router.post("/search")
async def search_buddies(
    body: BuddySearchRequest,
    journey: VerifiedJourney = Depends(require_verified_pnr()),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    """Confirmed passengers on the caller's train/class/date."""
    candidates = await buddy_service.search_buddies(db, get_phone_number(current_user), journey)
    return {
        "success": True,
        "buddies": [BuddyCandidate.model_validate(c) for c in candidates],
    }


@router.post("/request")
async def request_buddy(
    body: BuddyRequestCreate,
    journey: VerifiedJourney = Depends(require_verified_pnr()),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    """Send (or re-send) a buddy request to a candidate."""
    buddy_request = await buddy_service.request_buddy(
        db, get_phone_number(current_user), journey, body.buddy_id, body.message
    )
    return {
        "success": True,
        "request": RequestStatusOut(id=buddy_request.id, status=buddy_request.status.value),
    }


@router.post("/respond")
async def respond_buddy_request(
    body: RequestRespond,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Accept/reject (receiver) or cancel (sender) a buddy request."""
    buddy_request = await buddy_service.respond_to_buddy_request(
        db, get_phone_number(current_user), body.request_id, body.action
    )
    return {
        "success": True,
        "request": RequestStatusOut(id=buddy_request.id, status=buddy_request.status.value),
    }


@router.get("/requests/incoming")
async def incoming_buddy_requests(
    pnr: str = Query(..., description="10-character PNR"),
    journey: VerifiedJourney = Depends(require_verified_pnr(source="query")),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    items = await buddy_service.list_buddy_requests(db, get_phone_number(current_user), journey.pnr, incoming=True)
    return {"success": True, "requests": [CooperationRequestOut.model_validate(r) for r in items]}


@router.get("/requests/outgoing")
async def outgoing_buddy_requests(
    pnr: str = Query(..., description="10-character PNR"),
    journey: VerifiedJourney = Depends(require_verified_pnr(source="query")),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    items = await buddy_service.list_buddy_requests(db, get_phone_number(current_user), journey.pnr, incoming=False)
    return {"success": True, "requests": [CooperationRequestOut.model_validate(r) for r in items]}
