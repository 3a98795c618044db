"""Booking router - FastAPI endpoints for salon and public booking operations"""

import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import (
    BOOKINGS_READ,
    BOOKINGS_WRITE,
    RequestContext,
    get_tenant_id,
    require_capability,
)
from ...config import DEFAULT_BOOKING_DURATION
from ...database import get_db
from ...models import BookingStatus
from ..catalog.schemas import ServiceResponse
from ..catalog.service import CatalogService
from .schemas import (
    AvailabilityResponse,
    BookingFilters,
    BookingResponse,
    CancelBookingRequest,
    CreateBookingRequest,
    PublicBookingRequest,
    StatusUpdateRequest,
    UpdateBookingRequest,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])
public_router = APIRouter(prefix="/public", tags=["Public Booking"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _day_start(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min) if value else None


def _day_end(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max) if value else None


# ============================================================================
# SALON DASHBOARD
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: CreateBookingRequest,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_WRITE)),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking; fails with 409 when the staff member is already booked"""
    booking = service.create_booking(ctx.tenant_id, ctx.user_id, data)
    return BookingResponse.from_model(booking)


@router.get("")
async def list_bookings(
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    staffId: Optional[str] = Query(None),
    customerId: Optional[str] = Query(None),
    status: Optional[BookingStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings; dates are inclusive whole days"""
    filters = BookingFilters(
        startDate=_day_start(startDate),
        endDate=_day_end(endDate),
        staffId=staffId,
        customerId=customerId,
        status=status,
    )
    bookings, meta = service.list_bookings(ctx.tenant_id, filters, page, limit)
    return {"data": [BookingResponse.from_model(b) for b in bookings], "meta": meta}


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    staffId: str = Query(...),
    day: date = Query(..., alias="date"),
    durationMinutes: int = Query(DEFAULT_BOOKING_DURATION, ge=1, le=24 * 60),
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: BookingService = Depends(get_booking_service),
):
    return service.check_availability(ctx.tenant_id, staffId, day, durationMinutes)


@router.get("/staff/{staff_id}")
async def get_bookings_by_staff(
    staff_id: str,
    startDate: date = Query(...),
    endDate: date = Query(...),
    status: Optional[BookingStatus] = Query(None),
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.get_bookings_by_staff(
        ctx.tenant_id, staff_id, _day_start(startDate), _day_end(endDate), status
    )
    return [BookingResponse.from_model(b) for b in bookings]


@router.get("/customer/{customer_id}")
async def get_bookings_by_customer(
    customer_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: BookingService = Depends(get_booking_service),
):
    bookings, meta = service.get_bookings_by_customer(ctx.tenant_id, customer_id, page, limit)
    return {"data": [BookingResponse.from_model(b) for b in bookings], "meta": meta}


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_READ)),
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_model(service.get_booking(ctx.tenant_id, booking_id))


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    data: UpdateBookingRequest,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_WRITE)),
    service: BookingService = Depends(get_booking_service),
):
    """Update notes or discount, reschedule, or change status"""
    return BookingResponse.from_model(service.update_booking(ctx.tenant_id, booking_id, data))


@router.post("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    data: StatusUpdateRequest,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_WRITE)),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.transition_status(ctx.tenant_id, booking_id, data.status, data.reason)
    return BookingResponse.from_model(booking)


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    data: CancelBookingRequest,
    ctx: RequestContext = Depends(require_capability(BOOKINGS_WRITE)),
    service: BookingService = Depends(get_booking_service),
):
    return service.cancel_booking(ctx.tenant_id, booking_id, data.cancelReason)


# ============================================================================
# PUBLIC BOOKING PAGE (no staff login, tenant from gateway)
# ============================================================================


@public_router.get("/services")
async def list_public_services(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Active services offered by the salon"""
    services, _ = CatalogService(db).list_services(tenant_id, limit=100)
    return [ServiceResponse.from_model(s) for s in services]


@public_router.get("/availability", response_model=AvailabilityResponse)
async def public_availability(
    staffId: str = Query(...),
    day: date = Query(..., alias="date"),
    durationMinutes: int = Query(DEFAULT_BOOKING_DURATION, ge=1, le=24 * 60),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return service.check_availability(tenant_id, staffId, day, durationMinutes)


@public_router.post("/bookings", response_model=BookingResponse, status_code=201)
async def create_public_booking(
    data: PublicBookingRequest,
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.create_public_booking(tenant_id, data)
    logger.info(f"🌐 Public booking {booking.booking_number} for tenant: {tenant_id}")
    return BookingResponse.from_model(booking)
