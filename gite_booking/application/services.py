"""Application Services - Business use cases"""
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import AsyncIterator, Callable, List, Optional, Set, Tuple
from uuid import UUID

from gite_booking.application.results import BookingResult, CommissionLine, UnitAvailability
from gite_booking.domain.entities import Guest, Rate, Reservation, ReservationLineItem, Unit
from gite_booking.domain.enums import (
    AccommodationType, AuditAction, AuditEntity, FailureReason, ReservationStatus
)
from gite_booking.domain.exceptions import (
    BookingError, InvalidTransitionError, NotFoundError, StaleReservationError, UnavailableError,
    ValidationError
)
from gite_booking.domain.inventory import Inventory, apply_occupancy_filter, resolve_blocked
from gite_booking.domain.pricing import build_line_items, compute_total, resolve_rate
from gite_booking.domain.pricing import tourist_tax as compute_tourist_tax
from gite_booking.domain.repositories import (
    AuditSink, BookingLock, GuestRepository, PlatformRepository, RateRepository,
    ReservationRepository, UnitRepository
)
from gite_booking.domain.value_objects import AuditEvent, DateRange, GuestDetails, Money

logger = logging.getLogger(__name__)


def make_date_range(start_date: date, end_date: date) -> DateRange:
    """Build a DateRange, reporting a bad range as a business failure"""
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")
    return DateRange(start_date=start_date, end_date=end_date)


async def record_audit(
    sink: Optional[AuditSink],
    action,
    entity_type: AuditEntity,
    entity_id=None
) -> None:
    """Hand an event to the audit sink; a failing sink never fails the operation"""
    if sink is None:
        return
    try:
        await sink.record(AuditEvent.of(action, entity_type, entity_id))
    except Exception:
        logger.exception(f"Audit sink failed to record {action} for {entity_type.value} {entity_id}")


class AvailabilityService:
    """Service for availability queries under the parent/child exclusivity rule"""

    def __init__(self,
                 unit_repo: UnitRepository,
                 reservation_repo: ReservationRepository,
                 audit_sink: Optional[AuditSink] = None):
        self.unit_repo = unit_repo
        self.reservation_repo = reservation_repo
        self.audit_sink = audit_sink

    async def load_inventory(self) -> Inventory:
        """Fetch units and resolve them into the inventory tree"""
        return Inventory.from_units(await self.unit_repo.find_all())

    async def blocked_unit_ids(
        self,
        date_range: DateRange,
        party_size: Optional[int] = None,
        exclude_reservation_id: Optional[UUID] = None,
        inventory: Optional[Inventory] = None
    ) -> Set[int]:
        """Unit ids unavailable for the range, optionally also for a party size"""
        if inventory is None:
            inventory = await self.load_inventory()
        overlapping = await self.reservation_repo.find_overlapping(
            date_range, exclude_reservation_id=exclude_reservation_id
        )
        blocked = resolve_blocked(inventory, overlapping)
        return apply_occupancy_filter(inventory, blocked, party_size)

    async def check_availability(
        self,
        start_date: date,
        end_date: date,
        party_size: Optional[int] = None
    ) -> List[UnitAvailability]:
        """List every unit with its availability for the period"""
        date_range = make_date_range(start_date, end_date)
        inventory = await self.load_inventory()
        blocked = await self.blocked_unit_ids(date_range, party_size, inventory=inventory)

        await record_audit(self.audit_sink, AuditAction.AVAILABILITY_CHECK, AuditEntity.UNIT)

        return [
            UnitAvailability(unit=unit, is_available=unit.unit_id not in blocked)
            for unit in inventory.units()
        ]

    async def is_unit_available(
        self,
        unit_id: int,
        start_date: date,
        end_date: date,
        party_size: Optional[int] = None,
        exclude_reservation_id: Optional[UUID] = None
    ) -> bool:
        """Check a single unit; unknown units are never available"""
        date_range = make_date_range(start_date, end_date)
        inventory = await self.load_inventory()
        if unit_id not in inventory:
            return False
        blocked = await self.blocked_unit_ids(
            date_range, party_size, exclude_reservation_id, inventory=inventory
        )
        return unit_id not in blocked


class PricingService:
    """Service for rate lookup and price calculation"""

    def __init__(self, unit_repo: UnitRepository, rate_repo: RateRepository):
        self.unit_repo = unit_repo
        self.rate_repo = rate_repo

    async def resolve_rate(
        self,
        accommodation_type: AccommodationType,
        platform_id: int,
        on_date: date
    ) -> Optional[Rate]:
        """Get the rate applicable on a date, platform-specific first"""
        rates = await self.rate_repo.find_by_type(accommodation_type)
        return resolve_rate(rates, accommodation_type, platform_id, on_date)

    async def price(
        self,
        unit: Unit,
        platform_id: int,
        date_range: DateRange,
        party_size: int
    ) -> Tuple[Rate, Money]:
        """Resolve the rate for the first night and compute the stay total"""
        rate = await self.resolve_rate(unit.accommodation_type, platform_id, date_range.start_date)
        if rate is None:
            raise NotFoundError(
                f"No valid rate for {unit.accommodation_type.value} on platform {platform_id} "
                f"at {date_range.start_date.isoformat()}"
            )
        total = compute_total(unit, rate, date_range.start_date, date_range.end_date, party_size)
        logger.debug(f"Priced unit {unit.unit_id} with rate {rate.rate_id}: {total.amount}")
        return rate, total

    async def calculate_total_price(
        self,
        unit_id: int,
        platform_id: int,
        start_date: date,
        end_date: date,
        party_size: int = 1
    ) -> Money:
        """Quote a stay without booking it"""
        date_range = make_date_range(start_date, end_date)
        unit = await self.unit_repo.find_by_id(unit_id)
        if unit is None:
            raise NotFoundError(f"Unit with ID {unit_id} not found")
        _, total = await self.price(unit, platform_id, date_range, party_size)
        return total

    @staticmethod
    def tourist_tax(party_size: int, nights: int, tax_rate: Decimal) -> Money:
        return Money.of(compute_tourist_tax(party_size, nights, tax_rate))


class BookingService:
    """Orchestrates the reservation lifecycle against availability and pricing"""

    def __init__(self,
                 reservation_repo: ReservationRepository,
                 guest_repo: GuestRepository,
                 platform_repo: PlatformRepository,
                 availability_service: AvailabilityService,
                 pricing_service: PricingService,
                 booking_lock: BookingLock,
                 audit_sink: Optional[AuditSink] = None):
        self.reservation_repo = reservation_repo
        self.guest_repo = guest_repo
        self.platform_repo = platform_repo
        self.availability_service = availability_service
        self.pricing_service = pricing_service
        self.booking_lock = booking_lock
        self.audit_sink = audit_sink

    # ==================== COMMANDS ====================
    async def create_booking(
        self,
        guest: GuestDetails,
        unit_id: int,
        platform_id: int,
        start_date: date,
        end_date: date,
        party_size: int = 1
    ) -> BookingResult:
        """Book a unit for a guest, creating the guest when unknown"""
        try:
            date_range = make_date_range(start_date, end_date)
            if party_size < 1:
                raise ValidationError("Party size must be at least 1")

            inventory = await self.availability_service.load_inventory()
            unit = inventory.unit(unit_id)
            if unit is None:
                raise NotFoundError(f"Unit with ID {unit_id} not found")
            if await self.platform_repo.find_by_id(platform_id) is None:
                raise NotFoundError(f"Platform with ID {platform_id} not found")

            async with self.booking_lock.hold(inventory.group_key(unit_id)):
                await self._ensure_available(inventory, unit, date_range, party_size)
                rate, total = await self.pricing_service.price(unit, platform_id, date_range, party_size)
                guest_id = await self._resolve_guest(guest)

                reservation = Reservation.create(
                    guest_id=guest_id,
                    unit_id=unit_id,
                    platform_id=platform_id,
                    date_range=date_range,
                    party_size=party_size
                )
                line_items = build_line_items(reservation, unit, rate)
                await self.reservation_repo.add(reservation, line_items)
        except BookingError as e:
            logger.warning(f"Booking of unit {unit_id} failed: {e.reason.value}: {e}")
            return BookingResult.from_error(e)

        logger.info(
            f"Reservation {reservation.reservation_id} created for unit {unit_id} "
            f"{date_range.start_date}..{date_range.end_date}, total {total.amount}"
        )
        await record_audit(
            self.audit_sink, AuditAction.RESERVATION_CREATED,
            AuditEntity.RESERVATION, reservation.reservation_id
        )
        return BookingResult.ok(
            reservation,
            unit_name=unit.name,
            total_price=total,
            line_items=line_items,
            confirmation=f"Booking confirmed! Reservation number: {reservation.reservation_id}"
        )

    async def modify_reservation(
        self,
        reservation_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        unit_id: Optional[int] = None,
        party_size: Optional[int] = None
    ) -> BookingResult:
        """Re-validate and re-price a reservation against its new values"""
        try:
            snapshot = await self._get_existing(reservation_id)
            inventory = await self.availability_service.load_inventory()
            target_unit_id = unit_id if unit_id is not None else snapshot.unit_id
            if inventory.unit(target_unit_id) is None:
                raise NotFoundError(f"Unit with ID {target_unit_id} not found")

            # Old and new group, so a move between groups is serialized against both
            async with self._hold_groups(inventory, snapshot.unit_id, target_unit_id) as held:
                existing = await self._get_existing(reservation_id)
                if existing.status == ReservationStatus.CANCELLED:
                    raise InvalidTransitionError("Cannot modify a cancelled reservation")

                new_start = start_date if start_date is not None else existing.date_range.start_date
                new_end = end_date if end_date is not None else existing.date_range.end_date
                new_unit_id = unit_id if unit_id is not None else existing.unit_id
                new_party_size = party_size if party_size is not None else existing.party_size

                date_range = make_date_range(new_start, new_end)
                if new_party_size < 1:
                    raise ValidationError("Party size must be at least 1")
                self._ensure_held(inventory, held, existing.unit_id, new_unit_id)
                unit = inventory.unit(new_unit_id)
                if unit is None:
                    raise NotFoundError(f"Unit with ID {new_unit_id} not found")

                await self._ensure_available(
                    inventory, unit, date_range, new_party_size, exclude_reservation_id=reservation_id
                )
                rate, total = await self.pricing_service.price(
                    unit, existing.platform_id, date_range, new_party_size
                )

                updated = existing.model_copy(deep=True)
                updated.modify(date_range=date_range, unit_id=new_unit_id, party_size=new_party_size)
                line_items = build_line_items(updated, unit, rate)

                if not await self.reservation_repo.update(updated, existing.version, line_items):
                    return self._persistence_failure(f"Could not update reservation {reservation_id}")
        except BookingError as e:
            logger.warning(f"Modification of reservation {reservation_id} failed: {e.reason.value}: {e}")
            return BookingResult.from_error(e)

        logger.info(f"Reservation {reservation_id} modified, new total {total.amount}")
        await record_audit(
            self.audit_sink, AuditAction.RESERVATION_MODIFIED, AuditEntity.RESERVATION, reservation_id
        )
        return BookingResult.ok(updated, unit_name=unit.name, total_price=total, line_items=line_items)

    async def cancel_reservation(self, reservation_id: UUID) -> BookingResult:
        """Soft delete; releases the unit for future availability checks"""
        try:
            reservation = await self._apply_transition(reservation_id, lambda r: r.cancel())
        except BookingError as e:
            logger.warning(f"Cancellation of reservation {reservation_id} failed: {e}")
            return BookingResult.from_error(e)

        if reservation is None:
            return self._persistence_failure(f"Could not cancel reservation {reservation_id}")

        logger.info(f"Reservation {reservation_id} cancelled")
        await record_audit(
            self.audit_sink, AuditAction.RESERVATION_CANCELLED, AuditEntity.RESERVATION, reservation_id
        )
        return BookingResult.ok(reservation)

    async def change_status(self, reservation_id: UUID, new_status: ReservationStatus) -> BookingResult:
        """Apply a legal lifecycle transition"""
        try:
            reservation = await self._apply_transition(reservation_id, lambda r: r.transition_to(new_status))
        except BookingError as e:
            logger.warning(f"Status change of reservation {reservation_id} failed: {e}")
            return BookingResult.from_error(e)

        if reservation is None:
            return self._persistence_failure(f"Could not update status of reservation {reservation_id}")

        logger.info(f"Reservation {reservation_id} status changed to {new_status.value}")
        await record_audit(
            self.audit_sink, f"RESERVATION_STATUS_CHANGED_{new_status.name}",
            AuditEntity.RESERVATION, reservation_id
        )
        return BookingResult.ok(reservation)

    async def delete_reservation(self, reservation_id: UUID) -> BookingResult:
        """Administrative hard delete, bypassing the state machine"""
        try:
            reservation = await self._get_existing(reservation_id)
        except BookingError as e:
            return BookingResult.from_error(e)

        if not await self.reservation_repo.delete(reservation_id):
            return self._persistence_failure(f"Could not delete reservation {reservation_id}")

        logger.info(f"Reservation {reservation_id} deleted")
        await record_audit(
            self.audit_sink, AuditAction.RESERVATION_DELETED, AuditEntity.RESERVATION, reservation_id
        )
        return BookingResult.ok(reservation)

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.reservation_repo.find_by_id(reservation_id)

    async def get_line_items(self, reservation_id: UUID) -> List[ReservationLineItem]:
        """Get the frozen line items of a reservation"""
        return await self.reservation_repo.find_line_items(reservation_id)

    async def get_reservations_by_guest(self, guest_id: UUID) -> List[Reservation]:
        """Get all reservations for a guest"""
        return await self.reservation_repo.find_by_guest_id(guest_id)

    async def get_all_reservations(self, status: Optional[ReservationStatus] = None) -> List[Reservation]:
        """Get all reservations, optionally filtered by status"""
        reservations = await self.reservation_repo.find_all()
        if status is None:
            return reservations
        return [r for r in reservations if r.status == status]

    # ==================== HELPERS ====================
    async def _get_existing(self, reservation_id: UUID) -> Reservation:
        reservation = await self.reservation_repo.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation with ID {reservation_id} not found")
        return reservation

    async def _ensure_available(
        self,
        inventory: Inventory,
        unit: Unit,
        date_range: DateRange,
        party_size: int,
        exclude_reservation_id: Optional[UUID] = None
    ) -> None:
        blocked = await self.availability_service.blocked_unit_ids(
            date_range, party_size, exclude_reservation_id, inventory=inventory
        )
        if unit.unit_id not in blocked:
            return
        if not unit.can_host(party_size):
            raise UnavailableError(
                f"{unit.name} sleeps at most {unit.max_occupancy}, party of {party_size} requested"
            )
        raise UnavailableError(
            f"{unit.name} is not available from {date_range.start_date.isoformat()} "
            f"to {date_range.end_date.isoformat()}"
        )

    @asynccontextmanager
    async def _hold_groups(self, inventory: Inventory, *unit_ids: int) -> AsyncIterator[Set[int]]:
        """Hold the group lock of every given unit, acquired in key order"""
        keys = sorted({inventory.group_key(unit_id) for unit_id in unit_ids})
        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self.booking_lock.hold(key))
            yield set(keys)

    @staticmethod
    def _ensure_held(inventory: Inventory, held: Set[int], *unit_ids: int) -> None:
        if any(inventory.group_key(unit_id) not in held for unit_id in unit_ids):
            raise StaleReservationError("Reservation was moved concurrently, please retry")

    async def _apply_transition(
        self,
        reservation_id: UUID,
        transition: Callable[[Reservation], None]
    ) -> Optional[Reservation]:
        """Run a status transition on a fresh read under the group lock.

        Returns None when the write found no reservation to update.
        """
        snapshot = await self._get_existing(reservation_id)
        inventory = await self.availability_service.load_inventory()
        async with self._hold_groups(inventory, snapshot.unit_id) as held:
            reservation = await self._get_existing(reservation_id)
            self._ensure_held(inventory, held, reservation.unit_id)
            expected_version = reservation.version
            transition(reservation)
            if not await self.reservation_repo.update(reservation, expected_version):
                return None
        return reservation

    async def _resolve_guest(self, details: GuestDetails) -> UUID:
        existing = await self.guest_repo.find_by_email(details.email)
        if existing is not None:
            return existing.guest_id
        candidate = Guest.from_details(details)
        guest = await self.guest_repo.save(candidate)
        if guest.guest_id == candidate.guest_id:
            logger.info(f"Created guest {guest.guest_id}")
        return guest.guest_id

    @staticmethod
    def _persistence_failure(message: str) -> BookingResult:
        logger.error(message)
        return BookingResult.fail(FailureReason.PERSISTENCE_FAILURE, message)


class ReportingService:
    """Commission figures per platform; never used for guest pricing"""

    def __init__(self, reservation_repo: ReservationRepository, platform_repo: PlatformRepository):
        self.reservation_repo = reservation_repo
        self.platform_repo = platform_repo

    async def commission_summary(self, start_date: date, end_date: date) -> List[CommissionLine]:
        """Revenue and commission of active reservations starting in [start_date, end_date)"""
        make_date_range(start_date, end_date)
        platforms = {p.platform_id: p for p in await self.platform_repo.find_all()}
        lines = {
            platform_id: CommissionLine(
                platform_id=platform_id,
                platform_name=platform.name,
                reservation_count=0,
                revenue=Decimal("0"),
                commission=Decimal("0")
            )
            for platform_id, platform in platforms.items()
        }

        for reservation in await self.reservation_repo.find_all():
            if not reservation.is_active():
                continue
            if not start_date <= reservation.date_range.start_date < end_date:
                continue
            platform = platforms.get(reservation.platform_id)
            if platform is None:
                continue
            items = await self.reservation_repo.find_line_items(reservation.reservation_id)
            revenue = sum((item.total for item in items), Decimal("0"))
            line = lines[platform.platform_id]
            line.reservation_count += 1
            line.revenue += revenue
            line.commission += platform.commission_on(revenue)

        return list(lines.values())
