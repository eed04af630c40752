from fastapi import FastAPI, HTTPException, Depends, Query
from uuid import UUID
from datetime import date
from typing import List, Optional

from gite_booking import config
from gite_booking.api.schemas import (
    # Booking
    BookingRequest, ModifyReservationRequest, UpdateStatusRequest,
    BookingResponse, ReservationResponse, LineItemResponse,
    # Availability & pricing
    UnitAvailabilityResponse, QuoteResponse, CommissionResponse
)
from gite_booking.api.dependencies import (
    get_availability_service, get_pricing_service, get_booking_service, get_reporting_service
)
from gite_booking.application.results import BookingResult
from gite_booking.application.services import (
    AvailabilityService, PricingService, BookingService, ReportingService
)
from gite_booking.domain.enums import FailureReason, ReservationStatus
from gite_booking.domain.exceptions import BookingError
from gite_booking.domain.value_objects import GuestDetails

config.configure_logging()

app = FastAPI(
    title=config.API_TITLE,
    description="Availability, pricing and booking for a gite rentable whole or per sleeping place",
    version="1.0.0"
)

_STATUS_CODES = {
    FailureReason.NOT_FOUND: 404,
    FailureReason.UNAVAILABLE: 409,
    FailureReason.INVALID_RANGE: 400,
    FailureReason.INVALID_TRANSITION: 400,
    FailureReason.PERSISTENCE_FAILURE: 500,
}

# ============================================================================
# HEALTH
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# ============================================================================
# AVAILABILITY & PRICING ENDPOINTS
# ============================================================================

@app.get("/api/availability", response_model=List[UnitAvailabilityResponse], tags=["Availability"])
async def check_availability(
    start_date: date,
    end_date: date,
    party_size: Optional[int] = Query(None, ge=1),
    service: AvailabilityService = Depends(get_availability_service)
):
    """List every unit with its availability for the period"""
    try:
        units = await service.check_availability(start_date, end_date, party_size)
    except BookingError as e:
        raise _http_error(e.reason, str(e))
    return [
        UnitAvailabilityResponse(
            unit_id=entry.unit.unit_id,
            name=entry.unit.name,
            accommodation_type=entry.unit.accommodation_type,
            max_occupancy=entry.unit.max_occupancy,
            parent_unit_id=entry.unit.parent_unit_id,
            is_available=entry.is_available
        )
        for entry in units
    ]

@app.get("/api/rates/quote", response_model=QuoteResponse, tags=["Pricing"])
async def quote_price(
    unit_id: int,
    platform_id: int,
    start_date: date,
    end_date: date,
    party_size: int = Query(1, ge=1),
    service: PricingService = Depends(get_pricing_service)
):
    """Price a stay without booking it"""
    try:
        total = await service.calculate_total_price(unit_id, platform_id, start_date, end_date, party_size)
    except BookingError as e:
        raise _http_error(e.reason, str(e))
    return QuoteResponse(
        unit_id=unit_id,
        platform_id=platform_id,
        start_date=start_date,
        end_date=end_date,
        party_size=party_size,
        total_price=total.amount,
        currency=total.currency
    )

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations/book", response_model=BookingResponse, status_code=201, tags=["Reservations"])
async def book(
    request: BookingRequest,
    service: BookingService = Depends(get_booking_service)
):
    """Book a unit"""
    result = await service.create_booking(
        guest=GuestDetails(**request.guest.model_dump()),
        unit_id=request.unit_id,
        platform_id=request.platform_id,
        start_date=request.start_date,
        end_date=request.end_date,
        party_size=request.party_size
    )
    _raise_for_failure(result)
    return _booking_to_response(result)

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    status: Optional[ReservationStatus] = None,
    service: BookingService = Depends(get_booking_service)
):
    """Get all reservations, optionally by status"""
    reservations = await service.get_all_reservations(status)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/guest/{guest_id}", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_guest_reservations(
    guest_id: UUID,
    service: BookingService = Depends(get_booking_service)
):
    """Get all reservations for a guest"""
    reservations = await service.get_reservations_by_guest(guest_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/line-items", response_model=List[LineItemResponse], tags=["Reservations"])
async def get_line_items(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service)
):
    """Get the frozen line items of a reservation"""
    if not await service.get_reservation(reservation_id):
        raise HTTPException(status_code=404, detail="Reservation not found")
    return [_line_item_to_response(item) for item in await service.get_line_items(reservation_id)]

@app.put("/api/reservations/{reservation_id}", response_model=BookingResponse, tags=["Reservations"])
async def modify_reservation(
    reservation_id: UUID,
    request: ModifyReservationRequest,
    service: BookingService = Depends(get_booking_service)
):
    """Modify dates, unit or party size and re-price"""
    result = await service.modify_reservation(
        reservation_id=reservation_id,
        start_date=request.start_date,
        end_date=request.end_date,
        unit_id=request.unit_id,
        party_size=request.party_size
    )
    _raise_for_failure(result)
    return _booking_to_response(result)

@app.patch("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service)
):
    """Cancel reservation"""
    result = await service.cancel_reservation(reservation_id)
    _raise_for_failure(result)
    return _reservation_to_response(result.reservation)

@app.patch("/api/reservations/{reservation_id}/status", response_model=ReservationResponse, tags=["Reservations"])
async def change_status(
    reservation_id: UUID,
    request: UpdateStatusRequest,
    service: BookingService = Depends(get_booking_service)
):
    """Move a reservation through its lifecycle"""
    result = await service.change_status(reservation_id, request.status)
    _raise_for_failure(result)
    return _reservation_to_response(result.reservation)

@app.delete("/api/reservations/{reservation_id}", status_code=204, tags=["Reservations"])
async def delete_reservation(
    reservation_id: UUID,
    service: BookingService = Depends(get_booking_service)
):
    """Hard delete a reservation and its line items"""
    result = await service.delete_reservation(reservation_id)
    _raise_for_failure(result)

# ============================================================================
# REPORTING ENDPOINTS
# ============================================================================

@app.get("/api/reports/commissions", response_model=List[CommissionResponse], tags=["Reports"])
async def commission_report(
    start_date: date,
    end_date: date,
    service: ReportingService = Depends(get_reporting_service)
):
    """Commission per platform for reservations starting in the period"""
    try:
        lines = await service.commission_summary(start_date, end_date)
    except BookingError as e:
        raise _http_error(e.reason, str(e))
    return [CommissionResponse(**line.model_dump()) for line in lines]

# ============================================================================
# HELPERS
# ============================================================================

def _http_error(reason: FailureReason, message: str) -> HTTPException:
    return HTTPException(status_code=_STATUS_CODES.get(reason, 400), detail=message)

def _raise_for_failure(result: BookingResult) -> None:
    if not result.success:
        raise _http_error(result.reason, result.message)

def _line_item_to_response(item) -> LineItemResponse:
    return LineItemResponse(
        line_item_id=item.line_item_id,
        category=item.category,
        quantity=item.quantity,
        unit_price=item.unit_price,
        total=item.total
    )

def _booking_to_response(result: BookingResult) -> BookingResponse:
    """Convert a successful BookingResult to BookingResponse"""
    reservation = result.reservation
    return BookingResponse(
        reservation_id=reservation.reservation_id,
        confirmation=result.confirmation,
        unit_name=result.unit_name,
        start_date=reservation.date_range.start_date,
        end_date=reservation.date_range.end_date,
        status=reservation.status,
        total_price=result.total_price.amount,
        currency=result.total_price.currency,
        line_items=[_line_item_to_response(item) for item in result.line_items]
    )

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        guest_id=reservation.guest_id,
        unit_id=reservation.unit_id,
        platform_id=reservation.platform_id,
        start_date=reservation.date_range.start_date,
        end_date=reservation.date_range.end_date,
        nights=reservation.get_nights(),
        party_size=reservation.party_size,
        status=reservation.status,
        created_at=reservation.created_at,
        modified_at=reservation.modified_at,
        version=reservation.version
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
