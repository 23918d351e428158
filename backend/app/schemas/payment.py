"""
Premium payment schemas (stubbed provider).
"""

from typing import Optional
from backend.app.schemas.common import CamelModel


class PaymentIntentRequest(CamelModel):
    pnr: Optional[str] = None


class PaymentConfirmRequest(CamelModel):
    payment_id: Optional[str] = None
    provider_payment_id: Optional[str] = None
    provider_signature: Optional[str] = None


class PaymentIntent(CamelModel):
    id: str
    amount: int
    currency: str
    status: str
    provider_order_id: str
