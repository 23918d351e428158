"""
OTP delivery through the Twilio Verify REST API.

The provider is an injectable dependency so tests (and other SMS vendors)
can replace it without touching the auth endpoints.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


class OtpProviderError(Exception):
    """Raised when the OTP provider is misconfigured or fails."""


class OtpProvider(ABC):

    @abstractmethod
    async def send(self, phone_number: str) -> None:
        """Send a one-time code to an E.164 phone number."""
        pass

    @abstractmethod
    async def check(self, phone_number: str, code: str) -> bool:
        """Return True when the code is approved for the phone number."""
        pass


class TwilioVerifyProvider(OtpProvider):

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        service_sid: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.service_sid = service_sid or settings.twilio_verify_service_sid
        self.base_url = (base_url or settings.twilio_verify_base_url).rstrip("/")
        self.timeout = timeout or settings.external_api_timeout_seconds
        self.transport = transport

    def _service_url(self) -> str:
        if not self.account_sid or not self.auth_token:
            raise OtpProviderError("Twilio credentials not configured")
        if not self.service_sid:
            raise OtpProviderError("TWILIO_VERIFY_SERVICE_SID not configured")
        return f"{self.base_url}/Services/{self.service_sid}"

    async def _post(self, path: str, data: dict) -> dict:
        url = f"{self._service_url()}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, data=data, auth=(self.account_sid, self.auth_token))
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Twilio %s failed",
                path,
                extra={"status_code": e.response.status_code, "details": e.response.text},
            )
            raise OtpProviderError(f"Twilio {path} failed with status {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Twilio %s failed: %s", path, e)
            raise OtpProviderError(f"Twilio {path} failed") from e

    async def send(self, phone_number: str) -> None:
        await self._post("Verifications", {"To": phone_number, "Channel": "sms"})

    async def check(self, phone_number: str, code: str) -> bool:
        result = await self._post("VerificationCheck", {"To": phone_number, "Code": code})
        return result.get("status") == "approved"


# Singleton instance
otp_provider = TwilioVerifyProvider()


def get_otp_provider() -> OtpProvider:
    """FastAPI dependency returning the OTP provider (override in tests)."""
    return otp_provider
