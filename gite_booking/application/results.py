"""Application results returned to callers instead of raising for business failures"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from gite_booking.domain.entities import Reservation, ReservationLineItem, Unit
from gite_booking.domain.enums import FailureReason
from gite_booking.domain.exceptions import BookingError
from gite_booking.domain.value_objects import Money


class BookingResult(BaseModel):
    """Discriminated success/failure outcome of a booking operation"""
    success: bool
    reservation: Optional[Reservation] = None
    unit_name: Optional[str] = None
    total_price: Optional[Money] = None
    line_items: List[ReservationLineItem] = []
    confirmation: Optional[str] = None
    reason: Optional[FailureReason] = None
    message: Optional[str] = None

    @staticmethod
    def ok(
        reservation: Reservation,
        unit_name: Optional[str] = None,
        total_price: Optional[Money] = None,
        line_items: Optional[List[ReservationLineItem]] = None,
        confirmation: Optional[str] = None
    ) -> "BookingResult":
        return BookingResult(
            success=True,
            reservation=reservation,
            unit_name=unit_name,
            total_price=total_price,
            line_items=line_items or [],
            confirmation=confirmation
        )

    @staticmethod
    def fail(reason: FailureReason, message: str) -> "BookingResult":
        return BookingResult(success=False, reason=reason, message=message)

    @staticmethod
    def from_error(error: BookingError) -> "BookingResult":
        return BookingResult.fail(error.reason, str(error))


class UnitAvailability(BaseModel):
    """A unit with its per-query availability flag"""
    unit: Unit
    is_available: bool


class CommissionLine(BaseModel):
    """Per-platform commission figures for reporting"""
    platform_id: int
    platform_name: str
    reservation_count: int
    revenue: Decimal
    commission: Decimal
