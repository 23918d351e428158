"""
Enumerations shared by journeys, offers and cooperation requests.
"""

import enum


class StatusType(str, enum.Enum):
    """
    Booking status of a verified PNR.

    CNF: Confirmed berth
    RAC: Reservation Against Cancellation
    WL: Waitlisted
    UNKNOWN: Provider status could not be classified
    """
    CNF = "CNF"
    RAC = "RAC"
    WL = "WL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value) -> "StatusType":
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN


class RequestStatus(str, enum.Enum):
    """
    Lifecycle of a buddy request or a seat-offer request.

    PENDING: Waiting for the receiver
    ACCEPTED: Receiver agreed
    REJECTED: Receiver declined
    CANCELLED: Sender withdrew
    """
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class OfferStatus(str, enum.Enum):
    """Seat offer status enumeration."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class AgeGroup(str, enum.Enum):
    UNDER_18 = "Under 18"
    AGE_18_25 = "18-25"
    AGE_26_35 = "26-35"
    AGE_36_50 = "36-50"
    ABOVE_50 = "Above 50"


class SeatPreference(str, enum.Enum):
    WINDOW = "window"
    AISLE = "aisle"
    NO_PREFERENCE = "no preference"


class DietaryPreference(str, enum.Enum):
    VEGETARIAN = "vegetarian"
    NON_VEGETARIAN = "non-vegetarian"
    NO_PREFERENCE = "no preference"


class IdType(str, enum.Enum):
    AADHAAR = "aadhaar"
    PAN = "pan"
    DRIVING_LICENSE = "driving_license"
    NONE = "none"
