"""
Tests for the PNR lookup client and the lookup endpoint.

Provider traffic is served by httpx.MockTransport; no network access.
"""

from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from backend.app.models.enums import StatusType
from backend.app.models.verified_journey import VerifiedJourney
from backend.app.services.cache import TTLCache
from backend.app.services.pnr_service import (
    PnrLookupError,
    PnrService,
    clarity_message,
    determine_status_type,
    estimate_chart_time,
    extract_positions,
)

PNR = "4567891230"

RAPIDAPI_BODY = {
    "status": True,
    "data": {
        "TrainDetails": {"TrainNo": "12951", "TrainName": "Mumbai Rajdhani", "Source": "BCT", "Destination": "NDLS"},
        "Class": "3A",
        "DateOfJourney": "20-12-2025",
        "ChartPrepared": False,
        "PassengerStatus": [{"BookingStatus": "WL 25", "CurrentStatus": "RAC 7/12"}],
    },
}


def rapidapi_service(handler, cache=None):
    return PnrService(
        api_key="test-key",
        base_url="https://pnr.test",
        provider="rapidapi",
        rapidapi_host="pnr.test",
        cache=cache if cache is not None else TTLCache(),
        transport=httpx.MockTransport(handler),
    )


# Parsing helpers

@pytest.mark.parametrize("text,expected", [
    ("CNF/B2/34", StatusType.CNF),
    ("Confirmed", StatusType.CNF),
    ("RAC 12", StatusType.RAC),
    ("W/L 5", StatusType.WL),
    ("GNWL 45/60", StatusType.WL),
    ("CAN", StatusType.UNKNOWN),
    (None, StatusType.UNKNOWN),
])
def test_determine_status_type(text, expected):
    assert determine_status_type(text) == expected


def test_extract_positions():
    assert extract_positions("WL 12/25") == {"current": 12, "original": 25}
    assert extract_positions("RAC 7") == {"current": 7, "original": 7}
    assert extract_positions("CNF") == {"current": 0, "original": 0}


def test_estimate_chart_time():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert estimate_chart_time("20-12-2025", now) == "2025-12-19T20:00:00+00:00"
    assert estimate_chart_time("2025-12-20", now) == "2025-12-19T20:00:00+00:00"
    assert estimate_chart_time("not a date", now) == now.isoformat()
    assert estimate_chart_time(None, now) == now.isoformat()


def test_clarity_message_fills_position():
    message = clarity_message(StatusType.WL, 12)
    assert "position 12" in message["body"]
    assert "WL below 22" in message["tips"][1]


# Client

@pytest.mark.asyncio
async def test_mock_lookup_without_key():
    service = PnrService(api_key="", cache=TTLCache())
    result = await service.lookup(PNR)
    assert result["pnr"] == PNR
    assert result["status"]["type"] == "WL"
    assert result["journey"]["trainNumber"] == "12951"


@pytest.mark.asyncio
async def test_rapidapi_lookup_transforms_and_caches():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=RAPIDAPI_BODY)

    service = rapidapi_service(handler)
    result = await service.lookup(PNR)

    assert result["journey"] == {
        "trainNumber": "12951",
        "trainName": "Mumbai Rajdhani",
        "class": "3A",
        "from": "BCT",
        "to": "NDLS",
        "boardingDate": "20-12-2025",
    }
    assert result["status"] == {"type": "RAC", "currentPosition": 7, "originalPosition": 12}
    assert result["chart"]["prepared"] is False
    assert result["chart"]["expectedTime"] == "2025-12-19T20:00:00+00:00"

    assert calls[0].url.path == "/api/v3/getPNRStatus"
    assert calls[0].url.params["pnrNumber"] == PNR
    assert calls[0].headers["x-rapidapi-key"] == "test-key"

    # Second lookup is served from the cache
    await service.lookup(PNR)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_rapidapi_falls_back_to_v1_on_404():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path == "/api/v3/getPNRStatus":
            return httpx.Response(404)
        return httpx.Response(200, json=RAPIDAPI_BODY)

    result = await rapidapi_service(handler).lookup(PNR)
    assert result["status"]["type"] == "RAC"
    assert paths == ["/api/v3/getPNRStatus", "/api/v1/getPNRStatus"]


@pytest.mark.asyncio
async def test_rapidapi_rate_limit_does_not_fall_back():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(429)

    with pytest.raises(PnrLookupError) as exc_info:
        await rapidapi_service(handler).lookup(PNR)

    assert exc_info.value.message == "Too many requests. Please try again later"
    assert paths == ["/api/v3/getPNRStatus"]


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,message", [
    (404, "PNR not found or invalid"),
    (503, "Railway server unavailable. Please try again"),
    (400, "Unable to fetch PNR status. Please try again"),
])
async def test_indianrail_error_mapping(status_code, message):
    service = PnrService(
        api_key="test-key",
        base_url="https://indianrail.test",
        provider="indianrail",
        cache=TTLCache(),
        transport=httpx.MockTransport(lambda request: httpx.Response(status_code)),
    )
    with pytest.raises(PnrLookupError) as exc_info:
        await service.lookup(PNR)
    assert exc_info.value.message == message


@pytest.mark.asyncio
async def test_timeout_is_mapped():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(PnrLookupError) as exc_info:
        await rapidapi_service(handler).lookup(PNR)
    assert exc_info.value.message == "Request timeout. Please try again"


@pytest.mark.asyncio
async def test_failed_lookup_is_not_cached():
    cache = TTLCache()
    with pytest.raises(PnrLookupError):
        await rapidapi_service(lambda request: httpx.Response(500), cache=cache).lookup(PNR)
    assert PNR not in cache


def test_cache_evicts_oldest_entry():
    cache = TTLCache(ttl_seconds=300, max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 3)
    cache.set("c", 4)
    assert "b" not in cache
    assert cache.get("a") == 3
    assert cache.get("c") == 4
    assert len(cache) == 2


def test_cache_expires_entries():
    cache = TTLCache(ttl_seconds=-1)
    cache.set("a", 1)
    assert cache.get("a") is None
    assert len(cache) == 0


# Endpoint

@pytest.mark.asyncio
async def test_lookup_endpoint_records_journey(client, auth_headers, db_session):
    phone = "+919876543210"
    response = await client.post("/pnr/lookup", json={"pnr": PNR}, headers=auth_headers(phone))
    assert response.status_code == 200
    assert response.json()["status"]["type"] == "WL"

    result = await db_session.execute(select(VerifiedJourney).where(VerifiedJourney.phone_number == phone))
    journey = result.scalar_one()
    assert journey.pnr == PNR
    assert journey.status_type == StatusType.WL
    assert journey.train_number == "12951"
    assert journey.travel_class == "3A"


@pytest.mark.asyncio
@pytest.mark.parametrize("pnr", ["123", 1234567890, None, "12345678901"])
async def test_lookup_endpoint_rejects_invalid_pnr(client, auth_headers, pnr):
    response = await client.post("/pnr/lookup", json={"pnr": pnr}, headers=auth_headers("+919876543210"))
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_PNR"


@pytest.mark.asyncio
async def test_lookup_survives_store_failure(client, auth_headers, mocker):
    """The lookup result is returned even when persisting the journey fails."""
    mocker.patch(
        "backend.app.api.v1.endpoints.pnr.record_verified_journey",
        side_effect=SQLAlchemyError("store down"),
    )
    response = await client.post("/pnr/lookup", json={"pnr": PNR}, headers=auth_headers("+919876543210"))
    assert response.status_code == 200
    assert response.json()["pnr"] == PNR


@pytest.mark.asyncio
async def test_lookup_provider_failure(client, auth_headers, mocker):
    mocker.patch(
        "backend.app.services.pnr_service.PnrService.lookup",
        side_effect=PnrLookupError("Railway server unavailable. Please try again", 503),
    )
    response = await client.post("/pnr/lookup", json={"pnr": PNR}, headers=auth_headers("+919876543210"))
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "errorCode": "PNR_LOOKUP_FAILED",
        "message": "Railway server unavailable. Please try again",
    }
