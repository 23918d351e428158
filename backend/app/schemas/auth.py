"""
Authentication Pydantic schemas.

Defines request and response schemas for the OTP login endpoints.
"""

from pydantic import Field
from typing import Optional
from backend.app.schemas.common import CamelModel


class SendOtpRequest(CamelModel):
    """
    Schema for requesting an OTP.

    Used by POST /auth/send-otp endpoint.
    """
    phone: Optional[str] = Field(default=None, description="Indian mobile number")


class VerifyOtpRequest(CamelModel):
    """
    Schema for verifying an OTP.

    Used by POST /auth/verify-otp endpoint.
    """
    phone: Optional[str] = Field(default=None, description="Indian mobile number")
    otp: Optional[str] = Field(default=None, description="Code received by SMS")


class AuthUser(CamelModel):
    phone: str


class TokenResponse(CamelModel):
    """
    Schema for JWT token response.

    Returned by a successful OTP verification.
    """
    success: bool = True
    token: str = Field(..., description="JWT access token")
    user: AuthUser
