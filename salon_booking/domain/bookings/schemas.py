"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import BookingStatus
from ...shared.validators import normalize_phone, to_salon_time, validate_email
from ...utils.sanitization import validate_and_sanitize_input


class BookingServiceItem(BaseModel):
    serviceId: str = Field(..., min_length=1)


class CreateBookingRequest(BaseModel):
    """Schema for creating a booking from the salon dashboard"""

    customerId: str = Field(..., min_length=1)
    staffId: str = Field(..., min_length=1)
    startTime: datetime
    services: list[BookingServiceItem] = Field(..., min_length=1)
    notes: Optional[str] = None
    discount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    @field_validator("startTime")
    @classmethod
    def normalize_start_time(cls, v):
        return to_salon_time(v)

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)


class PublicBookingRequest(BaseModel):
    """Schema for a booking made from the public booking page"""

    customerFirstName: str = Field(..., min_length=1, max_length=100)
    customerLastName: str = Field(..., min_length=1, max_length=100)
    customerPhone: str
    customerEmail: Optional[str] = None
    staffId: str = Field(..., min_length=1)
    startTime: datetime
    services: list[BookingServiceItem] = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("customerPhone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    @field_validator("customerEmail")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("startTime")
    @classmethod
    def normalize_start_time(cls, v):
        return to_salon_time(v)

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)


class UpdateBookingRequest(BaseModel):
    """Schema for updating or rescheduling a booking; omitted fields are kept"""

    staffId: Optional[str] = Field(None, min_length=1)
    startTime: Optional[datetime] = None
    notes: Optional[str] = None
    status: Optional[BookingStatus] = None
    discount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("startTime")
    @classmethod
    def normalize_start_time(cls, v):
        return to_salon_time(v) if v else v

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)


class StatusUpdateRequest(BaseModel):
    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=500)


class CancelBookingRequest(BaseModel):
    cancelReason: str = Field(..., min_length=1, max_length=500)


class BookingFilters(BaseModel):
    """Optional filters for listing bookings"""

    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    staffId: Optional[str] = None
    customerId: Optional[str] = None
    status: Optional[BookingStatus] = None


class BookingServiceLineResponse(BaseModel):
    id: str
    serviceId: str
    serviceName: str
    price: Decimal
    duration: int


class BookingResponse(BaseModel):
    id: str
    bookingNumber: str
    customerId: str
    staffId: str
    startTime: datetime
    endTime: datetime
    totalDuration: int
    subtotal: Decimal
    discount: Decimal
    totalAmount: Decimal
    status: BookingStatus
    notes: Optional[str] = None
    cancelReason: Optional[str] = None
    cancelledAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    services: list[BookingServiceLineResponse]

    @classmethod
    def from_model(cls, booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            bookingNumber=booking.booking_number,
            customerId=booking.customer_id,
            staffId=booking.staff_id,
            startTime=booking.start_time,
            endTime=booking.end_time,
            totalDuration=booking.total_duration,
            subtotal=booking.subtotal,
            discount=booking.discount,
            totalAmount=booking.total_amount,
            status=booking.status,
            notes=booking.notes,
            cancelReason=booking.cancel_reason,
            cancelledAt=booking.cancelled_at,
            createdAt=booking.created_at,
            services=[
                BookingServiceLineResponse(
                    id=line.id,
                    serviceId=line.service_id,
                    serviceName=line.service_name,
                    price=line.price,
                    duration=line.duration,
                )
                for line in booking.services
            ],
        )


class TimeSlotResponse(BaseModel):
    startTime: str  # HH:MM
    endTime: str
    available: bool


class AvailabilityResponse(BaseModel):
    staffId: str
    date: str  # YYYY-MM-DD
    durationMinutes: int
    slots: list[TimeSlotResponse]
