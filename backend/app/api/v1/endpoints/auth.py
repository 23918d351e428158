"""
Authentication API endpoints.

Phone/OTP login: send a code, verify it to receive a JWT, log out to
revoke the token.
"""

import logging
import re
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.schemas.auth import SendOtpRequest, VerifyOtpRequest, TokenResponse, AuthUser
from backend.app.core.dependencies import get_bearer_token, get_current_user, get_phone_number
from backend.app.core.exceptions import AppException, InvalidInputError
from backend.app.core.jwt import create_phone_token
from backend.app.core.token_revocation import revoke_token
from backend.app.services.otp_provider import OtpProvider, OtpProviderError, get_otp_provider
from backend.app.services.user_service import ensure_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def normalize_indian_phone(value: Optional[str]) -> Optional[str]:
    """
    Normalize an Indian mobile number to +91XXXXXXXXXX.

    Accepts +91XXXXXXXXXX, 10 local digits, or anything that reduces to
    10 digits / 12 digits starting with 91 once non-digits are stripped.
    """
    raw = str(value or "").strip()
    if not raw:
        return None
    if re.fullmatch(r"\+91\d{10}", raw):
        return raw
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 10:
        return f"+91{digits}"
    if len(digits) == 12 and digits.startswith("91"):
        return f"+{digits}"
    return None


@router.post("/send-otp", status_code=status.HTTP_200_OK)
async def send_otp(
    body: SendOtpRequest,
    provider: OtpProvider = Depends(get_otp_provider),
):
    """Send a one-time code by SMS."""
    phone = normalize_indian_phone(body.phone)
    if not phone:
        raise InvalidInputError("Enter a valid 10-digit phone number.", error_code="INVALID_PHONE")

    try:
        await provider.send(phone)
    except OtpProviderError as e:
        logger.error("send-otp failed: %s", e)
        raise AppException(
            "Failed to send OTP. Check Twilio credentials, Verify Service SID, and trial verified numbers.",
            error_code="OTP_SEND_FAILED",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {"success": True, "message": "OTP sent"}


@router.post("/verify-otp", response_model=TokenResponse)
async def verify_otp(
    body: VerifyOtpRequest,
    provider: OtpProvider = Depends(get_otp_provider),
    db: AsyncSession = Depends(get_db),
):
    """
    Verify a one-time code and issue an app token.

    The user row is created on first successful verification.
    """
    phone = normalize_indian_phone(body.phone)
    code = str(body.otp or "").strip()
    if not phone or not code:
        raise InvalidInputError("Phone and OTP are required.")

    try:
        approved = await provider.check(phone, code)
    except OtpProviderError as e:
        logger.error("verify-otp failed: %s", e)
        raise AppException(
            "Failed to verify OTP. Please try again.",
            error_code="OTP_VERIFY_FAILED",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if not approved:
        raise AppException("Invalid OTP.", error_code="OTP_INVALID", status_code=status.HTTP_401_UNAUTHORIZED)

    await ensure_user(db, phone)
    logger.info("OTP login", extra={"phone_suffix": phone[-4:]})

    return TokenResponse(token=create_phone_token(phone), user=AuthUser(phone=phone))


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    current_user: dict = Depends(get_current_user),
):
    """Revoke the presented token until it expires."""
    revoked = await revoke_token(token, get_phone_number(current_user))
    return {"success": True, "revoked": revoked}
