"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from gite_booking.domain.enums import AccommodationType, RateCategory, ReservationStatus


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class GuestRequest(BaseModel):
    """Guest details DTO"""
    name: str
    email: str
    phone: Optional[str] = None
    street: str = ""
    house_number: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = ""


class BookingRequest(BaseModel):
    """Create booking request DTO"""
    guest: GuestRequest
    unit_id: int
    platform_id: int
    start_date: date
    end_date: date
    party_size: int = Field(ge=1, default=1)


class ModifyReservationRequest(BaseModel):
    """Modify reservation request DTO"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    unit_id: Optional[int] = None
    party_size: Optional[int] = Field(None, ge=1)


class UpdateStatusRequest(BaseModel):
    """Status change request DTO"""
    status: ReservationStatus


class LineItemResponse(BaseModel):
    """Reservation line item response DTO"""
    line_item_id: UUID
    category: RateCategory
    quantity: int
    unit_price: Decimal
    total: Decimal


class BookingResponse(BaseModel):
    """Booking confirmation response DTO"""
    reservation_id: UUID
    confirmation: Optional[str] = None
    unit_name: Optional[str] = None
    start_date: date
    end_date: date
    status: ReservationStatus
    total_price: Decimal
    currency: str
    line_items: List[LineItemResponse] = []


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    guest_id: UUID
    unit_id: int
    platform_id: int
    start_date: date
    end_date: date
    nights: int
    party_size: int
    status: ReservationStatus
    created_at: datetime
    modified_at: datetime
    version: int


# ============================================================================
# AVAILABILITY & PRICING SCHEMAS
# ============================================================================

class UnitAvailabilityResponse(BaseModel):
    """Unit with availability flag response DTO"""
    unit_id: int
    name: str
    accommodation_type: AccommodationType
    max_occupancy: int
    parent_unit_id: Optional[int] = None
    is_available: bool


class QuoteResponse(BaseModel):
    """Price quote response DTO"""
    unit_id: int
    platform_id: int
    start_date: date
    end_date: date
    party_size: int
    total_price: Decimal
    currency: str


class CommissionResponse(BaseModel):
    """Per-platform commission response DTO"""
    platform_id: int
    platform_name: str
    reservation_count: int
    revenue: Decimal
    commission: Decimal
