"""
Tests for the train information service and endpoints.

RapidAPI is replaced by httpx.MockTransport; failures must fall back to
mock data where the service promises it.
"""

from datetime import date

import httpx
import pytest

from backend.app.main import app
from backend.app.services.cache import TTLCache
from backend.app.services.rapid_api_client import RapidApiClient, RapidApiError, map_api_error
from backend.app.services.train_service import (
    TrainService,
    get_train_service,
    mock_availability_status,
    mock_fare_breakup,
)

PHONE = "+919876543210"


def train_service(handler):
    client = RapidApiClient(
        api_key="test-key",
        base_url="https://irctc.test",
        host="irctc.test",
        cache=TTLCache(),
        transport=httpx.MockTransport(handler),
    )
    return TrainService(client)


def failing(request):
    return httpx.Response(503)


@pytest.fixture
def use_trains():
    """Route the endpoints to a TrainService built for the test."""
    def _use(handler):
        service = train_service(handler)
        app.dependency_overrides[get_train_service] = lambda: service
        return service
    yield _use
    app.dependency_overrides.pop(get_train_service, None)


def test_map_api_error():
    request = httpx.Request("GET", "https://irctc.test/x")

    def status_error(code):
        return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(code, request=request))

    assert map_api_error(status_error(404)).message == "Resource not found"
    assert map_api_error(status_error(429)).message == "API rate limit exceeded. Please try again later"
    assert map_api_error(status_error(403)).message == "API authentication failed. Check your API key"
    assert map_api_error(status_error(502)).message == "Railway server unavailable. Please try again"
    assert map_api_error(httpx.ConnectTimeout("slow")).message == "Request timeout. Please try again"


def test_mock_fare_breakup():
    assert mock_fare_breakup("12951", "3A") == {
        "baseFare": 1200,
        "reservationCharge": 40,
        "superFastCharge": 75,
        "gst": 60,
        "total": 1375,
    }
    assert mock_fare_breakup("22951", "SL")["superFastCharge"] == 45


def test_mock_availability_depends_on_class_and_date():
    today = date(2025, 12, 1)
    assert mock_availability_status("1A", "2025-12-02", today).startswith("AVAILABLE")
    assert mock_availability_status("3A", "2025-12-02", today).startswith("RAC")
    assert mock_availability_status("SL", "2025-12-02", today).startswith("WL")
    assert mock_availability_status("SL", "2025-12-30", today).startswith("AVAILABLE")


@pytest.mark.asyncio
async def test_rapid_api_client_caches_responses():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json={"data": []})

    client = RapidApiClient(api_key="k", base_url="https://irctc.test", cache=TTLCache(),
                            transport=httpx.MockTransport(handler))
    await client.get("/api/v1/searchStation", {"query": "ndls"})
    await client.get("/api/v1/searchStation", {"query": "ndls"})
    await client.get("/api/v1/searchStation", {"query": "ndls"}, use_cache=False)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_search_trains_falls_back_v3_to_v1():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if "v3" in request.url.path:
            return httpx.Response(500)
        return httpx.Response(200, json={"data": [{"train_number": "12951", "train_name": "Mumbai Rajdhani"}]})

    result = await train_service(handler).search_trains("BCT", "NDLS", "2025-12-20")
    assert paths == ["/api/v3/TrainsBetweenStations", "/api/v1/TrainsBetweenStations"]
    assert result["trains"][0]["trainNumber"] == "12951"


@pytest.mark.asyncio
async def test_search_trains_uses_mock_when_provider_down():
    result = await train_service(failing).search_trains("BCT", "NDLS", "2025-12-20")
    assert result["success"] is True
    assert [t["trainNumber"] for t in result["trains"]] == ["12951", "12953", "12909"]
    assert result["trains"][0]["fromStation"] == "BCT"


@pytest.mark.asyncio
async def test_fare_uses_mock_breakup_when_provider_down():
    result = await train_service(failing).get_fare("12951", "BCT", "NDLS", "3A")
    assert result["fare"] == "₹1375"
    assert result["breakup"]["gst"] == "₹60"


@pytest.mark.asyncio
async def test_schedule_has_no_fallback():
    with pytest.raises(RapidApiError):
        await train_service(failing).get_train_schedule("12951")


# Endpoints

@pytest.mark.asyncio
async def test_search_endpoint_requires_parameters(client, auth_headers, use_trains):
    use_trains(failing)
    response = await client.post("/trains/search", json={"fromStation": "BCT"}, headers=auth_headers(PHONE))
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_PARAMETERS"


@pytest.mark.asyncio
async def test_search_endpoint_returns_mock_trains(client, auth_headers, use_trains):
    use_trains(failing)
    response = await client.post(
        "/trains/search",
        json={"fromStation": "BCT", "toStation": "NDLS", "date": "2025-12-20"},
        headers=auth_headers(PHONE),
    )
    assert response.status_code == 200
    assert len(response.json()["trains"]) == 3


@pytest.mark.asyncio
async def test_schedule_endpoint_failure(client, auth_headers, use_trains):
    use_trains(failing)
    response = await client.get("/trains/schedule/12951", headers=auth_headers(PHONE))
    assert response.status_code == 500
    assert response.json()["errorCode"] == "TRAIN_SCHEDULE_FAILED"
    assert response.json()["message"] == "Railway server unavailable. Please try again"


@pytest.mark.asyncio
async def test_stations_endpoint_is_public(client, use_trains):
    use_trains(lambda request: httpx.Response(
        200, json={"data": [{"code": "NDLS", "name": "New Delhi", "state_name": "Delhi"}]}
    ))
    response = await client.get("/trains/stations", params={"query": "nd"})
    assert response.status_code == 200
    assert response.json()["stations"] == [{"code": "NDLS", "name": "New Delhi", "state": "Delhi"}]

    short = await client.get("/trains/stations", params={"query": "n"})
    assert short.json()["errorCode"] == "INVALID_PARAMETERS"


@pytest.mark.asyncio
async def test_train_endpoints_require_auth(client):
    response = await client.post("/trains/fare", json={})
    assert response.status_code == 401
