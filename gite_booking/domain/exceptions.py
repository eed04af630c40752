"""Domain Exceptions

Business failures derive from BookingError and carry the FailureReason the
application layer reports back. PersistenceFault is a fault, not a business
outcome, and is never converted into a result.
"""
from gite_booking.domain.enums import FailureReason


class BookingError(Exception):
    """Base class for business-level booking failures"""
    reason: FailureReason = FailureReason.INVALID_RANGE


class ValidationError(BookingError):
    """Bad input, e.g. an end date that is not after the start date"""
    reason = FailureReason.INVALID_RANGE


class UnavailableError(BookingError):
    """Availability or occupancy conflict"""
    reason = FailureReason.UNAVAILABLE


class ReservationConflictError(UnavailableError):
    """Raised by storage when a write would overlap an existing reservation"""


class NotFoundError(BookingError):
    """Referenced entity does not exist"""
    reason = FailureReason.NOT_FOUND


class InvalidTransitionError(BookingError):
    """Illegal reservation status change"""
    reason = FailureReason.INVALID_TRANSITION


class StaleReservationError(InvalidTransitionError):
    """Raised by storage when the stored version moved since the reservation was read"""


class PersistenceFault(Exception):
    """Collaborator I/O failure"""
