"""In-Memory Repository Implementations"""
import logging
from typing import Optional, List, Dict, Iterable
from uuid import UUID

from gite_booking.domain.repositories import (
    UnitRepository, ReservationRepository, GuestRepository, RateRepository, PlatformRepository
)
from gite_booking.domain.entities import Unit, Reservation, ReservationLineItem, Guest, Rate, Platform
from gite_booking.domain.enums import AccommodationType
from gite_booking.domain.exceptions import ReservationConflictError, StaleReservationError
from gite_booking.domain.value_objects import DateRange

logger = logging.getLogger(__name__)


class InMemoryUnitRepository(UnitRepository):
    """In-memory implementation of UnitRepository"""

    def __init__(self, units: Iterable[Unit] = ()):
        self._storage: Dict[int, Unit] = {unit.unit_id: unit for unit in units}

    def add(self, unit: Unit) -> Unit:
        """Register a unit; inventory management happens outside the engine"""
        self._storage[unit.unit_id] = unit
        return unit

    async def find_all(self) -> List[Unit]:
        """Find all units ordered by ID"""
        return [self._storage[unit_id].model_copy() for unit_id in sorted(self._storage)]

    async def find_by_id(self, unit_id: int) -> Optional[Unit]:
        """Find unit by ID"""
        unit = self._storage.get(unit_id)
        return unit.model_copy() if unit else None


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository.

    Returns copies so callers never mutate stored state in place, and enforces
    a per-unit exclusion constraint on every write.
    """

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        self._line_items: Dict[UUID, List[ReservationLineItem]] = {}

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        reservation = self._storage.get(reservation_id)
        return reservation.model_copy(deep=True) if reservation else None

    async def find_all(self) -> List[Reservation]:
        """Find all reservations, latest start first"""
        reservations = sorted(
            self._storage.values(), key=lambda r: r.date_range.start_date, reverse=True
        )
        return [r.model_copy(deep=True) for r in reservations]

    async def find_by_guest_id(self, guest_id: UUID) -> List[Reservation]:
        """Find reservations by guest ID"""
        return [r for r in await self.find_all() if r.guest_id == guest_id]

    async def find_overlapping(
        self,
        date_range: DateRange,
        unit_id: Optional[int] = None,
        exclude_reservation_id: Optional[UUID] = None
    ) -> List[Reservation]:
        """Find non-cancelled reservations overlapping the range"""
        return [
            r.model_copy(deep=True) for r in self._storage.values()
            if r.is_active()
            and r.overlaps(date_range)
            and (unit_id is None or r.unit_id == unit_id)
            and r.reservation_id != exclude_reservation_id
        ]

    async def add(self, reservation: Reservation, line_items: List[ReservationLineItem]) -> Reservation:
        """Store reservation and line items together"""
        if reservation.reservation_id in self._storage:
            raise ValueError(f"Reservation {reservation.reservation_id} already exists")
        self._check_exclusion(reservation)
        self._check_line_items(reservation, line_items)

        self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        self._line_items[reservation.reservation_id] = list(line_items)
        return reservation

    async def update(
        self,
        reservation: Reservation,
        expected_version: int,
        line_items: Optional[List[ReservationLineItem]] = None
    ) -> bool:
        """Overwrite reservation if its stored version is expected_version"""
        stored = self._storage.get(reservation.reservation_id)
        if stored is None:
            return False
        if stored.version != expected_version:
            logger.warning(
                f"Rejected stale write of reservation {reservation.reservation_id}: "
                f"expected version {expected_version}, stored {stored.version}"
            )
            raise StaleReservationError(
                f"Reservation {reservation.reservation_id} was changed concurrently, please retry"
            )
        self._check_exclusion(reservation)
        if line_items is not None:
            self._check_line_items(reservation, line_items)
            self._line_items[reservation.reservation_id] = list(line_items)

        self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        return True

    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation and its line items"""
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            self._line_items.pop(reservation_id, None)
            return True
        return False

    async def find_line_items(self, reservation_id: UUID) -> List[ReservationLineItem]:
        """Find line items of a reservation"""
        return list(self._line_items.get(reservation_id, []))

    def _check_exclusion(self, reservation: Reservation) -> None:
        if not reservation.is_active():
            return
        for other in self._storage.values():
            if (
                other.reservation_id != reservation.reservation_id
                and other.unit_id == reservation.unit_id
                and other.is_active()
                and other.overlaps(reservation.date_range)
            ):
                logger.warning(
                    f"Exclusion constraint rejected reservation {reservation.reservation_id}: "
                    f"unit {reservation.unit_id} already held by {other.reservation_id}"
                )
                raise ReservationConflictError(
                    f"Unit {reservation.unit_id} is already booked in this period"
                )

    @staticmethod
    def _check_line_items(reservation: Reservation, line_items: List[ReservationLineItem]) -> None:
        for item in line_items:
            if item.reservation_id != reservation.reservation_id:
                raise ValueError("Line item does not belong to this reservation")


class InMemoryGuestRepository(GuestRepository):
    """In-memory implementation of GuestRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Guest] = {}

    async def find_by_email(self, email: str) -> Optional[Guest]:
        """Find guest by e-mail"""
        for guest in self._storage.values():
            if guest.has_email(email):
                return guest
        return None

    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        """Find guest by ID"""
        return self._storage.get(guest_id)

    async def save(self, guest: Guest) -> Guest:
        """Save guest to memory, keeping one guest per e-mail"""
        existing = await self.find_by_email(guest.email)
        if existing is not None and existing.guest_id != guest.guest_id:
            return existing
        self._storage[guest.guest_id] = guest
        return guest


class InMemoryRateRepository(RateRepository):
    """In-memory implementation of RateRepository"""

    def __init__(self, rates: Iterable[Rate] = ()):
        self._storage: Dict[int, Rate] = {rate.rate_id: rate for rate in rates}

    def add(self, rate: Rate) -> Rate:
        self._storage[rate.rate_id] = rate
        return rate

    async def find_by_type(self, accommodation_type: AccommodationType) -> List[Rate]:
        """Find rates for an accommodation type"""
        return [r for r in self._storage.values() if r.accommodation_type == accommodation_type]


class InMemoryPlatformRepository(PlatformRepository):
    """In-memory implementation of PlatformRepository"""

    def __init__(self, platforms: Iterable[Platform] = ()):
        self._storage: Dict[int, Platform] = {p.platform_id: p for p in platforms}

    def add(self, platform: Platform) -> Platform:
        self._storage[platform.platform_id] = platform
        return platform

    async def find_by_id(self, platform_id: int) -> Optional[Platform]:
        """Find platform by ID"""
        return self._storage.get(platform_id)

    async def find_all(self) -> List[Platform]:
        """Find all platforms"""
        return [self._storage[key] for key in sorted(self._storage)]
