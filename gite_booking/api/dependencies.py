"""API Dependencies - collaborator and service wiring"""
from gite_booking import config
from gite_booking.application.services import (
    AvailabilityService, BookingService, PricingService, ReportingService
)
from gite_booking.infrastructure.audit import InMemoryAuditSink
from gite_booking.infrastructure.locking import InMemoryBookingLock
from gite_booking.infrastructure.repositories.in_memory_repositories import (
    InMemoryUnitRepository, InMemoryReservationRepository, InMemoryGuestRepository,
    InMemoryRateRepository, InMemoryPlatformRepository
)
from gite_booking.infrastructure.seed import seed_demo_data

# Initialize repositories
unit_repo = InMemoryUnitRepository()
reservation_repo = InMemoryReservationRepository()
guest_repo = InMemoryGuestRepository()
rate_repo = InMemoryRateRepository()
platform_repo = InMemoryPlatformRepository()
audit_sink = InMemoryAuditSink()
booking_lock = InMemoryBookingLock()

if config.SEED_DEMO_DATA:
    seed_demo_data(unit_repo, rate_repo, platform_repo)


def get_availability_service() -> AvailabilityService:
    return AvailabilityService(unit_repo, reservation_repo, audit_sink)


def get_pricing_service() -> PricingService:
    return PricingService(unit_repo, rate_repo)


def get_booking_service() -> BookingService:
    return BookingService(
        reservation_repo,
        guest_repo,
        platform_repo,
        get_availability_service(),
        get_pricing_service(),
        booking_lock,
        audit_sink
    )


def get_reporting_service() -> ReportingService:
    return ReportingService(reservation_repo, platform_repo)
