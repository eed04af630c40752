"""Demo inventory: one gite rentable whole or per sleeping place"""
from datetime import date
from decimal import Decimal

from gite_booking.domain.entities import Unit, Rate, Platform
from gite_booking.domain.enums import AccommodationType
from gite_booking.infrastructure.repositories.in_memory_repositories import (
    InMemoryUnitRepository, InMemoryRateRepository, InMemoryPlatformRepository
)

GITE_UNIT_ID = 1
DIRECT_PLATFORM_ID = 1


def demo_units():
    units = [
        Unit(
            unit_id=GITE_UNIT_ID,
            name="Gite (whole)",
            accommodation_type=AccommodationType.WHOLE,
            max_occupancy=8
        )
    ]
    for offset in range(1, 5):
        units.append(
            Unit(
                unit_id=GITE_UNIT_ID + offset,
                name=f"Sleeping place {offset}",
                accommodation_type=AccommodationType.SLOT,
                max_occupancy=4,
                parent_unit_id=GITE_UNIT_ID
            )
        )
    return units


def demo_platforms():
    return [
        Platform(platform_id=DIRECT_PLATFORM_ID, name="Direct", commission_percentage=Decimal("0")),
        Platform(platform_id=2, name="Booking.com", commission_percentage=Decimal("15")),
        Platform(platform_id=3, name="Airbnb", commission_percentage=Decimal("15")),
    ]


def demo_rates():
    valid_from = date(2024, 1, 1)
    return [
        Rate(
            rate_id=1,
            accommodation_type=AccommodationType.WHOLE,
            price=Decimal("100.00"),
            tax_rate=Decimal("1.50"),
            valid_from=valid_from
        ),
        Rate(
            rate_id=2,
            accommodation_type=AccommodationType.SLOT,
            price=Decimal("25.00"),
            tax_rate=Decimal("1.50"),
            valid_from=valid_from
        ),
        Rate(
            rate_id=3,
            accommodation_type=AccommodationType.WHOLE,
            platform_id=2,
            price=Decimal("115.00"),
            tax_included=True,
            tax_rate=Decimal("1.50"),
            valid_from=valid_from
        ),
    ]


def seed_demo_data(
    units: InMemoryUnitRepository,
    rates: InMemoryRateRepository,
    platforms: InMemoryPlatformRepository
) -> None:
    for unit in demo_units():
        units.add(unit)
    for rate in demo_rates():
        rates.add(rate)
    for platform in demo_platforms():
        platforms.add(platform)
