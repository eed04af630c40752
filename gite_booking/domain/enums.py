"""Domain Enums"""
from enum import Enum


class AccommodationType(str, Enum):
    WHOLE = "Whole"
    SLOT = "Slot"


class ReservationStatus(str, Enum):
    RESERVED = "Reserved"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    CANCELLED = "Cancelled"


class RateCategory(str, Enum):
    LODGING = "Lodging"
    TOURIST_TAX = "TouristTax"


class FailureReason(str, Enum):
    UNAVAILABLE = "Unavailable"
    NOT_FOUND = "NotFound"
    INVALID_RANGE = "InvalidRange"
    INVALID_TRANSITION = "InvalidTransition"
    PERSISTENCE_FAILURE = "PersistenceFailure"


class AuditAction(str, Enum):
    AVAILABILITY_CHECK = "AVAILABILITY_CHECK"
    RESERVATION_CREATED = "RESERVATION_CREATED"
    RESERVATION_MODIFIED = "RESERVATION_MODIFIED"
    RESERVATION_CANCELLED = "RESERVATION_CANCELLED"
    RESERVATION_DELETED = "RESERVATION_DELETED"


class AuditEntity(str, Enum):
    UNIT = "UNIT"
    RESERVATION = "RESERVATION"
