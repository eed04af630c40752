"""Rate resolution and price calculation

Pure functions over already-fetched data. All arithmetic uses Decimal.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from gite_booking.domain.entities import Rate, Reservation, ReservationLineItem, Unit
from gite_booking.domain.enums import AccommodationType, RateCategory
from gite_booking.domain.exceptions import ValidationError
from gite_booking.domain.value_objects import Money


def resolve_rate(
    rates: Iterable[Rate],
    accommodation_type: AccommodationType,
    platform_id: int,
    on_date: date,
    category: RateCategory = RateCategory.LODGING
) -> Optional[Rate]:
    """Pick the single applicable rate, or None.

    A platform-specific rate wins over a generic one. Remaining ties go to the
    latest valid_from, then the highest rate_id, so the choice is stable.
    """
    candidates = [
        rate for rate in rates
        if rate.category == category and rate.applies_to(accommodation_type, platform_id, on_date)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda r: (r.is_platform_specific, r.valid_from, r.rate_id))


def count_nights(start_date: date, end_date: date) -> int:
    nights = (end_date - start_date).days
    if nights <= 0:
        raise ValidationError("End date must be after start date")
    return nights


def tourist_tax(party_size: int, nights: int, tax_rate: Decimal) -> Decimal:
    """Tourist tax is charged per person per night"""
    return Decimal(party_size) * Decimal(nights) * Decimal(tax_rate)


def lodging_quantity(unit: Unit, nights: int, party_size: int) -> int:
    """Nights for a whole unit, person-nights for a slot"""
    if unit.accommodation_type == AccommodationType.WHOLE:
        return nights
    return party_size * nights


def compute_total(unit: Unit, rate: Rate, start_date: date, end_date: date, party_size: int) -> Money:
    """Total price for a stay: base price plus tourist tax when not included"""
    nights = count_nights(start_date, end_date)

    total = rate.price * lodging_quantity(unit, nights, party_size)
    if not rate.tax_included and rate.tax_rate > 0:
        total += tourist_tax(party_size, nights, rate.tax_rate)

    return Money.of(total)


def build_line_items(reservation: Reservation, unit: Unit, rate: Rate) -> List[ReservationLineItem]:
    """Freeze the current rate into line items whose totals add up to compute_total"""
    nights = count_nights(reservation.date_range.start_date, reservation.date_range.end_date)
    party_size = reservation.party_size

    items = [
        ReservationLineItem(
            reservation_id=reservation.reservation_id,
            category=rate.category,
            quantity=lodging_quantity(unit, nights, party_size),
            unit_price=rate.price
        )
    ]
    if not rate.tax_included and rate.tax_rate > 0:
        items.append(
            ReservationLineItem(
                reservation_id=reservation.reservation_id,
                category=RateCategory.TOURIST_TAX,
                quantity=party_size * nights,
                unit_price=rate.tax_rate
            )
        )
    return items
