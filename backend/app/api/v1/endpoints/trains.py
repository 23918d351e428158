"""
Train information API endpoints.

Thin wrappers over TrainService; missing inputs are INVALID_PARAMETERS
and unrecoverable provider failures are <OPERATION>_FAILED.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import AppException, InvalidInputError
from backend.app.schemas.train import (
    FareRequest,
    LiveStatusRequest,
    SeatAvailabilityRequest,
    TrainSearchRequest,
)
from backend.app.services.rapid_api_client import RapidApiError
from backend.app.services.train_service import TrainService, get_train_service

router = APIRouter(prefix="/trains", tags=["Trains"])


def _missing(message: str) -> InvalidInputError:
    return InvalidInputError(message, error_code="INVALID_PARAMETERS")


def _failed(error_code: str, error: RapidApiError, fallback: str) -> AppException:
    return AppException(
        error.message or fallback,
        error_code=error_code,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@router.post("/search")
async def search_trains(
    body: TrainSearchRequest,
    current_user: dict = Depends(get_current_user),
    trains: TrainService = Depends(get_train_service),
):
    if not body.from_station or not body.to_station or not body.date:
        raise _missing("Missing required parameters: fromStation, toStation, date")
    try:
        return await trains.search_trains(body.from_station, body.to_station, body.date)
    except RapidApiError as e:
        raise _failed("TRAIN_SEARCH_FAILED", e, "Unable to search trains. Please try again.")


@router.get("/schedule/{train_number}")
async def train_schedule(
    train_number: str,
    current_user: dict = Depends(get_current_user),
    trains: TrainService = Depends(get_train_service),
):
    if not train_number.strip():
        raise _missing("Train number is required")
    try:
        return await trains.get_train_schedule(train_number.strip())
    except RapidApiError as e:
        raise _failed("TRAIN_SCHEDULE_FAILED", e, "Unable to fetch train schedule. Please try again.")


@router.post("/live-status")
async def live_status(
    body: LiveStatusRequest,
    current_user: dict = Depends(get_current_user),
    trains: TrainService = Depends(get_train_service),
):
    if not body.train_number or not body.date:
        raise _missing("Missing required parameters: trainNumber, date")
    try:
        return await trains.get_live_status(body.train_number, body.date)
    except RapidApiError as e:
        raise _failed("LIVE_STATUS_FAILED", e, "Unable to fetch live status. Please try again.")


@router.get("/stations")
async def search_stations(
    query: Optional[str] = Query(default=None),
    trains: TrainService = Depends(get_train_service),
):
    """Station search by name or code; public."""
    if not query or len(query) < 2:
        raise _missing("Query must be at least 2 characters")
    try:
        return await trains.search_stations(query)
    except RapidApiError as e:
        raise _failed("STATION_SEARCH_FAILED", e, "Unable to search stations. Please try again.")


@router.post("/availability")
async def seat_availability(
    body: SeatAvailabilityRequest,
    current_user: dict = Depends(get_current_user),
    trains: TrainService = Depends(get_train_service),
):
    if not all((body.train_number, body.from_station, body.to_station, body.date, body.travel_class)):
        raise _missing("Missing required parameters: trainNumber, fromStation, toStation, date, travelClass")
    try:
        return await trains.check_seat_availability(
            body.train_number, body.from_station, body.to_station, body.date, body.travel_class, body.quota
        )
    except RapidApiError as e:
        raise _failed("SEAT_AVAILABILITY_FAILED", e, "Unable to check seat availability. Please try again.")


@router.post("/fare")
async def fare(
    body: FareRequest,
    current_user: dict = Depends(get_current_user),
    trains: TrainService = Depends(get_train_service),
):
    if not all((body.train_number, body.from_station, body.to_station, body.travel_class)):
        raise _missing("Missing required parameters: trainNumber, fromStation, toStation, travelClass")
    try:
        return await trains.get_fare(
            body.train_number, body.from_station, body.to_station, body.travel_class, body.quota
        )
    except RapidApiError as e:
        raise _failed("FARE_LOOKUP_FAILED", e, "Unable to fetch fare. Please try again.")


@router.get("/live-station/{station_code}")
async def live_station(
    station_code: str,
    hours: Optional[str] = Query(default=None),
    current_user: dict = Depends(get_current_user),
    trains: TrainService = Depends(get_train_service),
):
    if not station_code.strip():
        raise _missing("Station code is required")
    try:
        hours_value = int(hours) if hours else 2
    except ValueError:
        hours_value = 2
    try:
        return await trains.get_live_station(station_code.strip(), hours_value or 2)
    except RapidApiError as e:
        raise _failed("LIVE_STATION_FAILED", e, "Unable to fetch live station data. Please try again.")
