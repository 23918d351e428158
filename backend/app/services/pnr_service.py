"""
PNR lookup client.

Fetches PNR status from the configured provider (indianrail or RapidAPI),
normalizes it into the canonical journey/status shape and caches results
per PNR. Without an API key the client answers with deterministic mock
data so the app stays usable in development.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx

from backend.app.core.config import settings
from backend.app.models.enums import StatusType
from backend.app.services.cache import TTLCache

logger = logging.getLogger(__name__)

RAPIDAPI_PNR_ENDPOINTS = ("/api/v3/getPNRStatus", "/api/v1/getPNRStatus")
NOT_AVAILABLE = "N/A"

CLARITY_MESSAGES = {
    StatusType.WL: {
        "title": "What this means for you",
        "body": (
            "Your ticket is currently on the waiting list at position {position}. "
            "Final status will be known after chart preparation, typically 4 hours before departure."
        ),
        "tips": [
            "Final status will be known after chart preparation.",
            "WL below {threshold} on this route often moves to RAC or CNF, but not guaranteed.",
            "Keep checking status regularly as it may change.",
        ],
    },
    StatusType.RAC: {
        "title": "RAC Status Explained",
        "body": (
            "You have a RAC (Reservation Against Cancellation) ticket at position {position}. "
            "You are guaranteed travel but may share a berth initially."
        ),
        "tips": [
            "RAC passengers get confirmed berths if cancellations happen.",
            "You can board the train with RAC status.",
            "Check after chart preparation for potential upgrades.",
        ],
    },
    StatusType.CNF: {
        "title": "Confirmed Ticket",
        "body": "Your ticket is confirmed. You have a reserved seat/berth for your journey.",
        "tips": [
            "Carry a valid ID proof for verification.",
            "Reach the station at least 30 minutes before departure.",
            "Check your coach and berth number on the chart.",
        ],
    },
    StatusType.UNKNOWN: {
        "title": "Status Information",
        "body": (
            "Unable to determine exact status. Please check the official IRCTC website "
            "or contact railway helpline."
        ),
        "tips": [
            "Verify your PNR number is correct.",
            "Try checking again after some time.",
            "Contact railway customer care if issue persists.",
        ],
    },
}


class PnrLookupError(Exception):
    """Raised when the provider cannot answer; message is user-facing."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def determine_status_type(status_text: Optional[str]) -> StatusType:
    """Classify provider status text as CNF, RAC, WL or UNKNOWN."""
    if not status_text:
        return StatusType.UNKNOWN
    upper = str(status_text).upper()
    if "CNF" in upper or "CONFIRM" in upper:
        return StatusType.CNF
    if "RAC" in upper:
        return StatusType.RAC
    if "W/L" in upper or "WL" in upper:
        return StatusType.WL
    return StatusType.UNKNOWN


def extract_positions(status_text: Optional[str]) -> Dict[str, int]:
    """
    Pull queue positions out of status text like "WL 12/25".

    The first integer is the current position, the second (or the first
    again) the original one. No integers yields 0/0.
    """
    numbers = re.findall(r"\d+", str(status_text or ""))
    if not numbers:
        return {"current": 0, "original": 0}
    current = int(numbers[0])
    original = int(numbers[1]) if len(numbers) > 1 else current
    return {"current": current, "original": original}


def estimate_chart_time(travel_date: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Charts are prepared about 4 hours before departure.

    Accepts DD-MM-YYYY or ISO dates; anything else falls back to now.
    """
    now = now or datetime.now(timezone.utc)
    if not travel_date:
        return now.isoformat()

    try:
        parts = str(travel_date).strip().split("-")
        if len(parts) == 3 and len(parts[0]) <= 2:
            day, month, year = (int(p) for p in parts)
            date = datetime(year, month, day, tzinfo=timezone.utc)
        else:
            date = datetime.fromisoformat(str(travel_date).strip())
            if date.tzinfo is None:
                date = date.replace(tzinfo=timezone.utc)
    except ValueError:
        return now.isoformat()

    return (date - timedelta(hours=4)).isoformat()


def clarity_message(status_type: StatusType, position: int) -> Dict[str, Any]:
    template = CLARITY_MESSAGES.get(status_type, CLARITY_MESSAGES[StatusType.UNKNOWN])
    values = {"position": position, "threshold": position + 10}
    return {
        "title": template["title"],
        "body": template["body"].format(**values),
        "tips": [tip.format(**values) for tip in template["tips"]],
    }


def mock_lookup(pnr: str) -> Dict[str, Any]:
    """Deterministic response used when no provider key is configured."""
    return {
        "success": True,
        "pnr": pnr,
        "journey": {
            "trainNumber": "12951",
            "trainName": "Mumbai Rajdhani",
            "class": "3A",
            "from": "BCT",
            "to": "NDLS",
            "boardingDate": "2025-12-20",
        },
        "status": {
            "type": StatusType.WL.value,
            "currentPosition": 12,
            "originalPosition": 25,
        },
        "chart": {
            "prepared": False,
            "expectedTime": "2025-12-20T15:00:00+05:30",
        },
        "clarity": {
            "title": "What this means for you",
            "body": "Your ticket is currently WL 12. Final status will be known after chart preparation...",
            "tips": [
                "Final status will be known after chart preparation.",
                "WL below 15 on this route often moves to RAC or CNF, but not guaranteed.",
            ],
        },
    }


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _first(*values):
    for value in values:
        if value:
            return value
    return NOT_AVAILABLE


def _build_result(pnr: str, journey: dict, status_text, travel_date, chart_prepared: bool) -> Dict[str, Any]:
    status_type = determine_status_type(status_text)
    positions = extract_positions(status_text)
    return {
        "success": True,
        "pnr": pnr,
        "journey": journey,
        "status": {
            "type": status_type.value,
            "currentPosition": positions["current"],
            "originalPosition": positions["original"],
        },
        "chart": {
            "prepared": chart_prepared,
            "expectedTime": estimate_chart_time(travel_date),
        },
        "clarity": clarity_message(status_type, positions["current"]),
    }


def transform_indianrail_response(api_data: dict, pnr: str) -> Dict[str, Any]:
    train_info = _as_dict(_as_dict(api_data).get("data"))
    passengers = train_info.get("passenger") or []
    first_passenger = _as_dict(passengers[0]) if passengers else {}

    journey = {
        "trainNumber": _first(train_info.get("train_number")),
        "trainName": _first(train_info.get("train_name")),
        "class": _first(train_info.get("class")),
        "from": _first(_as_dict(train_info.get("from")).get("code"), _as_dict(train_info.get("board")).get("code")),
        "to": _first(_as_dict(train_info.get("to")).get("code"), _as_dict(train_info.get("alight")).get("code")),
        "boardingDate": _first(train_info.get("travel_date"), train_info.get("doj")),
    }
    return _build_result(
        pnr,
        journey,
        first_passenger.get("status"),
        train_info.get("travel_date"),
        train_info.get("chart_prepared") == "CHART PREPARED",
    )


def transform_rapidapi_response(api_data: dict, pnr: str) -> Dict[str, Any]:
    api_data = _as_dict(api_data)
    data = _as_dict(api_data.get("data")) or api_data
    train_info = _as_dict(data.get("TrainDetails"))
    passengers = data.get("PassengerStatus") or []
    first_passenger = _as_dict(passengers[0]) if passengers else {}
    status_text = first_passenger.get("CurrentStatus") or first_passenger.get("BookingStatus")

    journey = {
        "trainNumber": _first(train_info.get("TrainNo"), train_info.get("trainNumber")),
        "trainName": _first(train_info.get("TrainName"), train_info.get("trainName")),
        "class": _first(data.get("Class"), train_info.get("Class")),
        "from": _first(train_info.get("Source"), train_info.get("from")),
        "to": _first(train_info.get("Destination"), train_info.get("to")),
        "boardingDate": _first(data.get("DateOfJourney"), train_info.get("doj")),
    }
    return _build_result(
        pnr,
        journey,
        status_text,
        data.get("DateOfJourney") or train_info.get("doj"),
        data.get("ChartPrepared") is True or data.get("ChartStatus") == "CHART PREPARED",
    )


def map_lookup_error(error: Exception) -> PnrLookupError:
    """Translate transport/provider failures into user-facing messages."""
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        if status_code == 404:
            return PnrLookupError("PNR not found or invalid", status_code)
        if status_code == 429:
            return PnrLookupError("Too many requests. Please try again later", status_code)
        if status_code >= 500:
            return PnrLookupError("Railway server unavailable. Please try again", status_code)
        return PnrLookupError("Unable to fetch PNR status. Please try again", status_code)
    if isinstance(error, httpx.TimeoutException):
        return PnrLookupError("Request timeout. Please try again")
    return PnrLookupError("Unable to fetch PNR status. Please try again")


def _is_fatal_status(error: httpx.HTTPError) -> bool:
    """Auth, rate-limit and server errors are not worth a version fallback."""
    if not isinstance(error, httpx.HTTPStatusError):
        return False
    status_code = error.response.status_code
    return status_code in (401, 403, 429) or status_code >= 500


class PnrService:
    """Caching PNR lookup client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider: Optional[str] = None,
        rapidapi_host: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[TTLCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.pnr_api_key
        self.base_url = (base_url or settings.pnr_api_base_url).rstrip("/")
        self.provider = (provider or settings.pnr_api_provider).lower()
        self.rapidapi_host = rapidapi_host or settings.rapidapi_host
        self.timeout = timeout or settings.external_api_timeout_seconds
        self.cache = cache if cache is not None else TTLCache(
            ttl_seconds=settings.lookup_cache_ttl_seconds,
            max_entries=settings.lookup_cache_max_entries,
        )
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def lookup(self, pnr: str) -> Dict[str, Any]:
        """
        Look up a PNR, serving repeated calls from the cache.

        Raises:
            PnrLookupError: provider or transport failure
        """
        cached = self.cache.get(pnr)
        if cached is not None:
            return cached

        try:
            result = await self._fetch(pnr)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("PNR lookup failed: %s", e)
            raise map_lookup_error(e) from e

        self.cache.set(pnr, result)
        return result

    async def _fetch(self, pnr: str) -> Dict[str, Any]:
        if not self.api_key:
            return mock_lookup(pnr)
        if self.provider == "rapidapi":
            return await self._fetch_rapidapi(pnr)
        return await self._fetch_indianrail(pnr)

    async def _fetch_indianrail(self, pnr: str) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/pnr-check/pnr/{pnr}",
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
            return transform_indianrail_response(response.json(), pnr)

    async def _fetch_rapidapi(self, pnr: str) -> Dict[str, Any]:
        headers = {
            "x-rapidapi-key": self.api_key,
            "x-rapidapi-host": self.rapidapi_host,
        }
        last_error: Optional[httpx.HTTPError] = None

        async with self._client() as client:
            for endpoint in RAPIDAPI_PNR_ENDPOINTS:
                try:
                    response = await client.get(
                        f"{self.base_url}{endpoint}",
                        params={"pnrNumber": pnr},
                        headers=headers,
                    )
                    response.raise_for_status()
                    return transform_rapidapi_response(response.json(), pnr)
                except httpx.HTTPError as e:
                    if _is_fatal_status(e):
                        raise
                    logger.warning("RapidAPI %s failed: %s. Trying next version...", endpoint, e)
                    last_error = e

        raise last_error


# Singleton instance
pnr_service = PnrService()


def get_pnr_service() -> PnrService:
    """FastAPI dependency returning the shared client (override in tests)."""
    return pnr_service
