"""Domain Repository Interfaces

Persistence and audit collaborators the booking engine consumes. Implementations
must raise PersistenceFault for I/O failures and ReservationConflictError when a
write would store an overlapping reservation for the same unit.
"""
from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional, List
from uuid import UUID

from gite_booking.domain.entities import Unit, Reservation, ReservationLineItem, Guest, Rate, Platform
from gite_booking.domain.enums import AccommodationType
from gite_booking.domain.value_objects import AuditEvent, DateRange


class UnitRepository(ABC):
    """Read-only access to inventory"""

    @abstractmethod
    async def find_all(self) -> List[Unit]:
        """Find all units with their parent links"""
        pass

    @abstractmethod
    async def find_by_id(self, unit_id: int) -> Optional[Unit]:
        """Find unit by ID"""
        pass


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_id: UUID) -> List[Reservation]:
        """Find reservations by guest ID"""
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        date_range: DateRange,
        unit_id: Optional[int] = None,
        exclude_reservation_id: Optional[UUID] = None
    ) -> List[Reservation]:
        """Find non-cancelled reservations overlapping [start, end)"""
        pass

    @abstractmethod
    async def add(self, reservation: Reservation, line_items: List[ReservationLineItem]) -> Reservation:
        """Store a reservation and its line items as one atomic write"""
        pass

    @abstractmethod
    async def update(
        self,
        reservation: Reservation,
        expected_version: int,
        line_items: Optional[List[ReservationLineItem]] = None
    ) -> bool:
        """Overwrite a reservation, replacing its line items when given, atomically.

        Returns False when the reservation does not exist. Raises
        StaleReservationError when the stored version is not expected_version.
        """
        pass

    @abstractmethod
    async def delete(self, reservation_id: UUID) -> bool:
        """Remove a reservation together with its line items"""
        pass

    @abstractmethod
    async def find_line_items(self, reservation_id: UUID) -> List[ReservationLineItem]:
        """Find the line items of a reservation"""
        pass


class GuestRepository(ABC):
    """Repository interface for Guest"""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Guest]:
        """Find guest by e-mail, case-insensitively"""
        pass

    @abstractmethod
    async def find_by_id(self, guest_id: UUID) -> Optional[Guest]:
        """Find guest by ID"""
        pass

    @abstractmethod
    async def save(self, guest: Guest) -> Guest:
        """Save guest; returns the already stored guest when the e-mail is taken"""
        pass


class RateRepository(ABC):
    """Repository interface for Rate"""

    @abstractmethod
    async def find_by_type(self, accommodation_type: AccommodationType) -> List[Rate]:
        """Find every rate defined for an accommodation type"""
        pass


class PlatformRepository(ABC):
    """Repository interface for Platform"""

    @abstractmethod
    async def find_by_id(self, platform_id: int) -> Optional[Platform]:
        """Find platform by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Platform]:
        """Find all platforms"""
        pass


class AuditSink(ABC):
    """Receives audit events; callers treat it as fire-and-forget"""

    @abstractmethod
    async def record(self, event: AuditEvent) -> None:
        """Record an audit event"""
        pass


class BookingLock(ABC):
    """Serializes the read-decide-write sequence of one Parent/Child group"""

    @abstractmethod
    def hold(self, group_key: int) -> AsyncContextManager[None]:
        """Return an async context manager holding the lock for group_key"""
        pass
