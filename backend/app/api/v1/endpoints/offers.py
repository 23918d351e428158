"""
Seat offer API endpoints.

Confirmed passengers offer spare seats; co-passengers on the same
train/class/date request them.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.dependencies import get_current_user, get_phone_number
from backend.app.core.guards import require_premium, require_verified_pnr
from backend.app.db.session import get_db
from backend.app.models.verified_journey import VerifiedJourney
from backend.app.schemas.buddy import RequestRespond
from backend.app.schemas.common import RequestStatusOut
from backend.app.schemas.offer import (
    OfferCreate,
    OfferListing,
    OfferOut,
    OfferRequestCreate,
    OfferRequestOut,
)
from backend.app.services import offer_service

router = APIRouter(prefix="/offers", tags=["Seat Offers"])


@router.post("/create")
async def create_offer(
    body: OfferCreate,
    journey: VerifiedJourney = Depends(require_verified_pnr()),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    """Create or refresh the caller's offer for this PNR (CNF tickets only)."""
    offer = await offer_service.create_offer(
        db, get_phone_number(current_user), journey, body.seats_available, body.note
    )
    return {"success": True, "offer": RequestStatusOut(id=offer.id, status=offer.status.value)}


@router.get("/search")
async def search_offers(
    pnr: str = Query(..., description="10-character PNR"),
    journey: VerifiedJourney = Depends(require_verified_pnr(source="query")),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    """Active offers from other passengers on the caller's train/class/date."""
    offers = await offer_service.search_offers(db, get_phone_number(current_user), journey)
    return {"success": True, "offers": [OfferListing.model_validate(o) for o in offers]}


@router.post("/request")
async def request_offer(
    body: OfferRequestCreate,
    journey: VerifiedJourney = Depends(require_verified_pnr()),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    """Request a seat from an offer (one request per offer per user)."""
    offer_request = await offer_service.request_offer(
        db, get_phone_number(current_user), journey, body.offer_id, body.message
    )
    return {
        "success": True,
        "request": RequestStatusOut(id=offer_request.id, status=offer_request.status.value),
    }


@router.post("/respond")
async def respond_offer_request(
    body: RequestRespond,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Accept/reject (offer owner) or cancel (requester) a seat request."""
    offer_request = await offer_service.respond_to_offer_request(
        db, get_phone_number(current_user), body.request_id, body.action
    )
    return {
        "success": True,
        "request": RequestStatusOut(id=offer_request.id, status=offer_request.status.value),
    }


@router.get("/requests/incoming")
async def incoming_offer_requests(
    pnr: str = Query(..., description="10-character PNR"),
    journey: VerifiedJourney = Depends(require_verified_pnr(source="query")),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    items = await offer_service.list_offer_requests(db, get_phone_number(current_user), journey.pnr, incoming=True)
    return {"success": True, "requests": [OfferRequestOut.model_validate(r) for r in items]}


@router.get("/requests/outgoing")
async def outgoing_offer_requests(
    pnr: str = Query(..., description="10-character PNR"),
    journey: VerifiedJourney = Depends(require_verified_pnr(source="query")),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    items = await offer_service.list_offer_requests(db, get_phone_number(current_user), journey.pnr, incoming=False)
    return {"success": True, "requests": [OfferRequestOut.model_validate(r) for r in items]}


@router.get("/my")
async def my_offer(
    pnr: str = Query(..., description="10-character PNR"),
    journey: VerifiedJourney = Depends(require_verified_pnr(source="query")),
    current_user: dict = Depends(require_premium),
    db: AsyncSession = Depends(get_db),
):
    """The caller's own offer for this PNR, or null."""
    offer = await offer_service.get_my_offer(db, get_phone_number(current_user), journey.pnr)
    return {"success": True, "offer": OfferOut.model_validate(offer) if offer else None}
