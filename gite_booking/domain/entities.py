"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date
from typing import Optional
from decimal import Decimal

from gite_booking.domain.enums import AccommodationType, ReservationStatus, RateCategory
from gite_booking.domain.exceptions import InvalidTransitionError
from gite_booking.domain.value_objects import DateRange, GuestDetails


# Reserved -> CheckedIn -> CheckedOut, Cancelled from any non-terminal state
_ALLOWED_TRANSITIONS = {
    ReservationStatus.RESERVED: {ReservationStatus.CHECKED_IN, ReservationStatus.CANCELLED},
    ReservationStatus.CHECKED_IN: {ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED},
    ReservationStatus.CHECKED_OUT: set(),
    ReservationStatus.CANCELLED: set(),
}


class Unit(BaseModel):
    """Bookable inventory item, either a whole property or a slot inside one"""
    unit_id: int
    name: str
    accommodation_type: AccommodationType
    max_occupancy: int = Field(ge=1)
    parent_unit_id: Optional[int] = None

    class Config:
        from_attributes = True

    def can_host(self, party_size: int) -> bool:
        return party_size <= self.max_occupancy


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References to other aggregates
    guest_id: UUID
    unit_id: int
    platform_id: int

    # Value Objects
    date_range: DateRange
    party_size: int = Field(ge=1)

    status: ReservationStatus = ReservationStatus.RESERVED

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest_id: UUID,
        unit_id: int,
        platform_id: int,
        date_range: DateRange,
        party_size: int
    ) -> "Reservation":
        """Create a new reservation in Reserved status"""
        return Reservation(
            guest_id=guest_id,
            unit_id=unit_id,
            platform_id=platform_id,
            date_range=date_range,
            party_size=party_size,
            status=ReservationStatus.RESERVED
        )

    # ==================== MODIFICATION METHODS ====================
    def modify(self, date_range: DateRange, unit_id: int, party_size: int) -> None:
        """Overwrite the mutable booking fields"""
        if self.status == ReservationStatus.CANCELLED:
            raise InvalidTransitionError("Cannot modify a cancelled reservation")

        self.date_range = date_range
        self.unit_id = unit_id
        self.party_size = party_size
        self._touch()

    # ==================== STATE TRANSITION METHODS ====================
    def can_transition_to(self, new_status: ReservationStatus) -> bool:
        return new_status in _ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, new_status: ReservationStatus) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot change status from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        self._touch()

    def check_in(self) -> None:
        self.transition_to(ReservationStatus.CHECKED_IN)

    def check_out(self) -> None:
        self.transition_to(ReservationStatus.CHECKED_OUT)

    def cancel(self) -> None:
        """Soft delete: releases the unit for future availability checks"""
        if self.status not in (ReservationStatus.RESERVED, ReservationStatus.CHECKED_IN):
            raise InvalidTransitionError(
                f"Cannot cancel reservation with status {self.status.value}"
            )
        self.transition_to(ReservationStatus.CANCELLED)

    # ==================== QUERY METHODS ====================
    def is_active(self) -> bool:
        return self.status != ReservationStatus.CANCELLED

    def overlaps(self, date_range: DateRange) -> bool:
        return self.date_range.overlaps(date_range)

    def get_nights(self) -> int:
        return self.date_range.nights()

    def _touch(self) -> None:
        self.modified_at = datetime.utcnow()
        self.version += 1


class ReservationLineItem(BaseModel):
    """Priced component of a reservation; unit_price is frozen at booking time"""
    line_item_id: UUID = Field(default_factory=uuid4)
    reservation_id: UUID
    category: RateCategory
    quantity: int = Field(ge=0)
    unit_price: Decimal = Field(ge=0)

    class Config:
        frozen = True

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


class Rate(BaseModel):
    """Price for an accommodation type, optionally platform specific, over a validity window"""
    rate_id: int
    accommodation_type: AccommodationType
    category: RateCategory = RateCategory.LODGING
    platform_id: Optional[int] = None
    price: Decimal = Field(ge=0)
    tax_included: bool = False
    tax_rate: Decimal = Field(ge=0, default=Decimal("0"))
    valid_from: date
    valid_to: Optional[date] = None

    class Config:
        from_attributes = True

    @property
    def is_platform_specific(self) -> bool:
        return self.platform_id is not None

    def is_valid_on(self, on_date: date) -> bool:
        if self.valid_from > on_date:
            return False
        return self.valid_to is None or self.valid_to >= on_date

    def applies_to(
        self,
        accommodation_type: AccommodationType,
        platform_id: int,
        on_date: date
    ) -> bool:
        return (
            self.accommodation_type == accommodation_type
            and (self.platform_id is None or self.platform_id == platform_id)
            and self.is_valid_on(on_date)
        )


class Guest(BaseModel):
    """Guest Entity, identified externally by e-mail"""
    guest_id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: Optional[str] = None
    street: str = ""
    house_number: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = ""

    class Config:
        from_attributes = True

    @staticmethod
    def from_details(details: GuestDetails) -> "Guest":
        return Guest(**details.model_dump())

    def has_email(self, email: str) -> bool:
        return self.email.strip().lower() == email.strip().lower()


class Platform(BaseModel):
    """Sales channel; commission is used for reporting only"""
    platform_id: int
    name: str
    commission_percentage: Decimal = Field(ge=0, le=100, default=Decimal("0"))

    class Config:
        from_attributes = True

    def commission_on(self, amount: Decimal) -> Decimal:
        return amount * self.commission_percentage / Decimal("100")
