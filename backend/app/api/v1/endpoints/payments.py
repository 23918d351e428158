"""
Premium payment API endpoints.

The payment provider is not integrated yet: intents and confirmations
are answered with fixed stub values.
"""

from fastapi import APIRouter, Depends
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InvalidInputError
from backend.app.schemas.payment import PaymentConfirmRequest, PaymentIntent, PaymentIntentRequest

router = APIRouter(prefix="/payments", tags=["Payments"])

PREMIUM_PRICE_PAISE = 39900
PREMIUM_CURRENCY = "INR"


@router.post("/create-intent")
async def create_payment_intent(
    body: PaymentIntentRequest,
    current_user: dict = Depends(get_current_user),
):
    if not body.pnr:
        raise InvalidInputError("PNR is required.")

    intent = PaymentIntent(
        id="pay_123",
        amount=PREMIUM_PRICE_PAISE,
        currency=PREMIUM_CURRENCY,
        status="PENDING",
        provider_order_id="provider_order_abc",
    )
    return {"success": True, "payment": intent}


@router.post("/confirm")
async def confirm_payment(
    body: PaymentConfirmRequest,
    current_user: dict = Depends(get_current_user),
):
    if not body.payment_id or not body.provider_payment_id or not body.provider_signature:
        raise InvalidInputError("Missing payment confirmation fields.")

    return {
        "success": True,
        "payment": {"id": body.payment_id, "status": "SUCCESS"},
        "premium": {"active": True, "pnr": "1234567890"},
    }
