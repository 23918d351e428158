"""
Train Service.

Train search, schedule, live status, stations, seat availability and fare
through RapidAPI. Search, live status, availability and fare fall back to
mock data when the provider cannot answer.
"""

import logging
import random
from datetime import date as date_type, datetime, timedelta
from typing import Any, Dict, List, Optional

from backend.app.services.rapid_api_client import RapidApiClient, RapidApiError, rapid_api_client

logger = logging.getLogger(__name__)

KNOWN_TRAINS = {
    "12951": "Mumbai Rajdhani",
    "12953": "August Kranti Rajdhani",
    "12909": "Mumbai Garib Rath",
}

BASE_FARES = {"1A": 3000, "2A": 1800, "3A": 1200}
SLEEPER_BASE_FARE = 700
RESERVATION_CHARGES = {"1A": 60, "2A": 50, "3A": 40}
SLEEPER_RESERVATION_CHARGE = 20
WEEK_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def train_name(train_number: str) -> str:
    return KNOWN_TRAINS.get(train_number, "Unknown Train")


def base_fare(travel_class: str) -> int:
    return BASE_FARES.get(travel_class, SLEEPER_BASE_FARE)


def _rupees(amount: int) -> str:
    return f"₹{amount}"


def _data(api_data, default):
    value = api_data.get("data") if isinstance(api_data, dict) else None
    return value if isinstance(value, type(default)) else default


def _pick(item: dict, *keys, default=""):
    for key in keys:
        value = item.get(key)
        if value:
            return value
    return default


def _running_days(pattern: str) -> List[Dict[str, Any]]:
    return [{"day": day, "runs": flag == "1"} for day, flag in zip(WEEK_DAYS, pattern)]


def mock_trains(from_station: str, to_station: str) -> Dict[str, Any]:
    rows = [
        ("12951", "16:25", "08:15", "15h 50m", "1384 km", ["1A", "2A", "3A"], "1111111"),
        ("12953", "17:40", "09:50", "16h 10m", "1377 km", ["1A", "2A", "3A"], "1111111"),
        ("12909", "15:35", "08:10", "16h 35m", "1386 km", ["3A"], "0010101"),
    ]
    return {
        "success": True,
        "trains": [
            {
                "trainNumber": number,
                "trainName": train_name(number),
                "fromStation": from_station,
                "toStation": to_station,
                "departureTime": departure,
                "arrivalTime": arrival,
                "duration": duration,
                "distance": distance,
                "classes": classes,
                "days": _running_days(days),
            }
            for number, departure, arrival, duration, distance, classes, days in rows
        ],
    }


def mock_live_status(train_number: str, date: str) -> Dict[str, Any]:
    try:
        next_day = (datetime.strptime(date, "%Y-%m-%d") + timedelta(days=1)).strftime("%Y-%m-%d")
    except ValueError:
        next_day = date
    return {
        "success": True,
        "trainNumber": train_number,
        "trainName": train_name(train_number),
        "currentStation": "BRC",
        "currentStationName": "Vadodara Jn",
        "lastUpdated": f"{date} 23:45",
        "expectedArrival": f"{next_day} 08:30",
        "delay": "15 min",
        "status": "Running",
    }


def mock_availability_status(travel_class: str, date: str, today: Optional[date_type] = None) -> str:
    """Plausible availability text; closer journeys are more crowded."""
    today = today or date_type.today()
    try:
        days_ahead = (datetime.strptime(date, "%Y-%m-%d").date() - today).days
    except ValueError:
        days_ahead = 0

    if travel_class == "1A":
        return f"AVAILABLE {random.randint(5, 14)}"
    if travel_class == "2A":
        if days_ahead < 7:
            return f"AVAILABLE {random.randint(2, 9)}"
        return f"AVAILABLE {random.randint(5, 19)}"
    if travel_class == "3A":
        if days_ahead < 3:
            return f"RAC {random.randint(1, 10)}"
        if days_ahead < 7:
            return f"AVAILABLE {random.randint(1, 5)}"
        return f"AVAILABLE {random.randint(5, 14)}"
    if days_ahead < 3:
        return f"WL {random.randint(1, 20)}"
    if days_ahead < 7:
        return f"RAC {random.randint(1, 5)}"
    return f"AVAILABLE {random.randint(1, 5)}"


def mock_fare_breakup(train_number: str, travel_class: str) -> Dict[str, int]:
    fare = base_fare(travel_class)
    reservation = RESERVATION_CHARGES.get(travel_class, SLEEPER_RESERVATION_CHARGE)
    superfast = 75 if train_number.startswith("12") else 45
    gst = round(fare * 0.05)
    return {
        "baseFare": fare,
        "reservationCharge": reservation,
        "superFastCharge": superfast,
        "gst": gst,
        "total": fare + reservation + superfast + gst,
    }


class TrainService:

    def __init__(self, client: Optional[RapidApiClient] = None):
        self.client = client or rapid_api_client

    async def search_trains(self, from_station: str, to_station: str, date: str) -> Dict[str, Any]:
        params = {
            "fromStationCode": from_station,
            "toStationCode": to_station,
            "dateOfJourney": date,
        }
        try:
            try:
                result = await self.client.get("/api/v3/TrainsBetweenStations", params)
            except RapidApiError as e:
                logger.warning("RapidAPI v3 trains failed: %s. Trying v1...", e.message)
                result = await self.client.get("/api/v1/TrainsBetweenStations", params)
        except RapidApiError as e:
            logger.warning("RapidAPI trains search failed: %s. Using mock data.", e.message)
            return mock_trains(from_station, to_station)

        return self.transform_trains(result)

    async def get_train_schedule(self, train_number: str) -> Dict[str, Any]:
        result = await self.client.get("/api/v1/getTrainSchedule", {"trainNo": train_number})
        return self.transform_schedule(result)

    async def get_live_status(self, train_number: str, date: str) -> Dict[str, Any]:
        try:
            result = await self.client.get(
                "/api/v3/getLiveTrainStatus",
                {"trainNo": train_number, "startDate": date},
            )
        except RapidApiError as e:
            logger.warning("RapidAPI live status failed: %s. Using mock data.", e.message)
            return mock_live_status(train_number, date)

        return self.transform_live_status(result)

    async def search_stations(self, query: str) -> Dict[str, Any]:
        result = await self.client.get("/api/v1/searchStation", {"query": query})
        stations = _data(result, [])
        return {
            "success": True,
            "stations": [
                {
                    "code": station.get("code") or "",
                    "name": station.get("name") or station.get("eng_name") or "",
                    "state": station.get("state_name") or "",
                }
                for station in stations if isinstance(station, dict)
            ],
        }

    async def check_seat_availability(
        self,
        train_number: str,
        from_station: str,
        to_station: str,
        date: str,
        travel_class: str,
        quota: str = "GN",
    ) -> Dict[str, Any]:
        params = {
            "trainNo": train_number,
            "fromStationCode": from_station,
            "toStationCode": to_station,
            "date": date,
            "classCode": travel_class,
            "quotaCode": quota,
        }
        try:
            try:
                result = await self.client.get("/api/v2/checkSeatAvailability", params)
            except RapidApiError as e:
                logger.warning("RapidAPI v2 seat availability failed: %s. Trying v1...", e.message)
                result = await self.client.get("/api/v1/checkSeatAvailability", params)
        except RapidApiError as e:
            logger.warning("RapidAPI seat availability failed: %s. Using mock data.", e.message)
            return {
                "success": True,
                "trainNumber": train_number,
                "trainName": train_name(train_number),
                "fromStation": from_station,
                "toStation": to_station,
                "class": travel_class,
                "quota": quota,
                "availability": [
                    {"date": date, "status": mock_availability_status(travel_class, date)}
                ],
                "fare": _rupees(base_fare(travel_class)),
            }

        return self.transform_seat_availability(result)

    async def get_fare(
        self,
        train_number: str,
        from_station: str,
        to_station: str,
        travel_class: str,
        quota: str = "GN",
    ) -> Dict[str, Any]:
        try:
            result = await self.client.get(
                "/api/v1/getFare",
                {
                    "trainNo": train_number,
                    "fromStationCode": from_station,
                    "toStationCode": to_station,
                    "classCode": travel_class,
                    "quotaCode": quota,
                },
            )
        except RapidApiError as e:
            logger.warning("RapidAPI fare lookup failed: %s. Using mock data.", e.message)
            breakup = mock_fare_breakup(train_number, travel_class)
            return {
                "success": True,
                "trainNumber": train_number,
                "trainName": train_name(train_number),
                "fromStation": from_station,
                "toStation": to_station,
                "class": travel_class,
                "quota": quota,
                "fare": _rupees(breakup["total"]),
                "breakup": {key: _rupees(value) for key, value in breakup.items()},
            }

        return self.transform_fare(result)

    async def get_live_station(self, station_code: str, hours: int = 2) -> Dict[str, Any]:
        result = await self.client.get(
            "/api/v3/getLiveStation",
            {"stationCode": station_code, "hours": hours},
        )
        return self.transform_live_station(result)

    # Response normalization

    @staticmethod
    def transform_trains(api_data) -> Dict[str, Any]:
        trains = _data(api_data, [])
        return {
            "success": True,
            "trains": [
                {
                    "trainNumber": _pick(t, "train_number", "trainNo", "train_no"),
                    "trainName": _pick(t, "train_name", "trainName", "name"),
                    "fromStation": _pick(t, "from_station_code", "fromStationCode", "from"),
                    "toStation": _pick(t, "to_station_code", "toStationCode", "to"),
                    "departureTime": _pick(t, "departure_time", "departureTime"),
                    "arrivalTime": _pick(t, "arrival_time", "arrivalTime"),
                    "duration": _pick(t, "duration", "travelTime"),
                    "distance": _pick(t, "distance"),
                    "classes": _pick(t, "classes", "class", default=[]),
                    "days": _pick(t, "days", default=[]),
                }
                for t in trains if isinstance(t, dict)
            ],
        }

    @staticmethod
    def transform_schedule(api_data) -> Dict[str, Any]:
        data = _data(api_data, {})
        route = data.get("route") or []
        return {
            "success": True,
            "trainNumber": _pick(data, "train_number", "trainNo"),
            "trainName": _pick(data, "train_name", "trainName"),
            "schedule": [
                {
                    "stationCode": _pick(s, "station_code", "stationCode"),
                    "stationName": _pick(s, "station_name", "stationName"),
                    "arrivalTime": _pick(s, "arrival_time", "arrivalTime"),
                    "departureTime": _pick(s, "departure_time", "departureTime"),
                    "distance": _pick(s, "distance"),
                    "day": _pick(s, "day", default=1),
                    "haltTime": _pick(s, "halt_time", "haltTime"),
                }
                for s in route if isinstance(s, dict)
            ],
        }

    @staticmethod
    def transform_live_status(api_data) -> Dict[str, Any]:
        data = _data(api_data, {})
        return {
            "success": True,
            "trainNumber": _pick(data, "train_number", "trainNo"),
            "trainName": _pick(data, "train_name", "trainName"),
            "currentStation": _pick(data, "current_station_code", "currentStationCode"),
            "currentStationName": _pick(data, "current_station_name", "currentStationName"),
            "lastUpdated": _pick(data, "last_updated", "lastUpdated"),
            "expectedArrival": _pick(data, "expected_arrival", "expectedArrival"),
            "delay": _pick(data, "delay"),
            "status": _pick(data, "status"),
        }

    @staticmethod
    def transform_seat_availability(api_data) -> Dict[str, Any]:
        data = _data(api_data, {})
        return {
            "success": True,
            "trainNumber": _pick(data, "train_number", "trainNo"),
            "trainName": _pick(data, "train_name", "trainName"),
            "fromStation": _pick(data, "from_station", "fromStation"),
            "toStation": _pick(data, "to_station", "toStation"),
            "class": _pick(data, "class", "classCode"),
            "quota": _pick(data, "quota", "quotaCode"),
            "availability": _pick(data, "availability", default=[]),
            "fare": _pick(data, "fare"),
        }

    @staticmethod
    def transform_fare(api_data) -> Dict[str, Any]:
        data = _data(api_data, {})
        return {
            "success": True,
            "trainNumber": _pick(data, "train_number", "trainNo"),
            "trainName": _pick(data, "train_name", "trainName"),
            "fromStation": _pick(data, "from_station", "fromStation"),
            "toStation": _pick(data, "to_station", "toStation"),
            "class": _pick(data, "class", "classCode"),
            "quota": _pick(data, "quota", "quotaCode"),
            "fare": _pick(data, "fare"),
            "breakup": _pick(data, "fare_breakup", "fareBreakup", default={}),
        }

    @staticmethod
    def transform_live_station(api_data) -> Dict[str, Any]:
        data = _data(api_data, {})
        trains = data.get("trains") or []
        return {
            "success": True,
            "stationCode": _pick(data, "station_code", "stationCode"),
            "stationName": _pick(data, "station_name", "stationName"),
            "trains": [
                {
                    "trainNumber": _pick(t, "train_number", "trainNo"),
                    "trainName": _pick(t, "train_name", "trainName"),
                    "scheduledArrival": _pick(t, "scheduled_arrival", "scheduledArrival"),
                    "scheduledDeparture": _pick(t, "scheduled_departure", "scheduledDeparture"),
                    "expectedArrival": _pick(t, "expected_arrival", "expectedArrival"),
                    "expectedDeparture": _pick(t, "expected_departure", "expectedDeparture"),
                    "delay": _pick(t, "delay"),
                    "platform": _pick(t, "platform"),
                }
                for t in trains if isinstance(t, dict)
            ],
        }


# Singleton instance
train_service = TrainService()


def get_train_service() -> TrainService:
    """FastAPI dependency returning the shared service (override in tests)."""
    return train_service
