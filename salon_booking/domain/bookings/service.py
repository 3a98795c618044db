"""Booking service - Business logic for the booking lifecycle"""

import logging
import secrets
import string
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import BOOKING_NUMBER_MAX_ATTEMPTS, DEFAULT_BOOKING_DURATION
from ...models import BOOKING_OVERLAP_CONSTRAINT, Booking, BookingServiceLine, BookingStatus
from ...shared.errors import (
    AlreadyCancelledError,
    BookingConflictError,
    BookingLockedError,
    BookingNumberExhaustedError,
    CannotCancelError,
    InvalidStatusTransitionError,
    NotFoundError,
    SalonError,
    ValidationError,
)
from ...shared.pagination import build_meta, clamp_page
from ...shared.validators import salon_now
from ...utils.sanitization import validate_and_sanitize_input
from ..catalog.service import CatalogService
from ..customers.repository import CustomerRepository
from ..customers.schemas import CustomerCreate
from ..customers.service import CustomerService
from ..tenancy import require_tenant
from .availability import compute_slots
from .conflicts import find_conflict
from .repository import BookingRepository
from .schemas import (
    BookingFilters,
    CreateBookingRequest,
    PublicBookingRequest,
    UpdateBookingRequest,
)

logger = logging.getLogger(__name__)

CANCEL_REASON_MAX_LENGTH = 500

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    },
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.NO_SHOW: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

BOOKING_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def generate_booking_number(on: date) -> str:
    """Human-readable booking number, e.g. BK20240315-7QX2"""
    suffix = "".join(secrets.choice(BOOKING_NUMBER_ALPHABET) for _ in range(4))
    return f"BK{on:%Y%m%d}-{suffix}"


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.catalog = CatalogService(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_booking(self, tenant_id: str, booking_id: str) -> Booking:
        """Get a booking of the tenant"""
        booking = self.repo.get_booking(self.db, tenant_id, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _lock_booking(self, tenant_id: str, booking_id: str) -> Booking:
        """Load a booking with its row locked for a read-then-write"""
        booking = self.repo.get_booking_for_update(self.db, tenant_id, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def list_bookings(
        self,
        tenant_id: str,
        filters: Optional[BookingFilters] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Booking], dict]:
        """List bookings with optional date range, staff, customer and status filters"""
        filters = filters or BookingFilters()
        page, limit = clamp_page(page, limit)
        bookings, total = self.repo.list_bookings(
            self.db,
            tenant_id,
            start_date=filters.startDate,
            end_date=filters.endDate,
            staff_id=filters.staffId,
            status=filters.status,
            customer_id=filters.customerId,
            page=page,
            limit=limit,
        )
        return bookings, build_meta(total, page, limit)

    def get_bookings_by_staff(
        self,
        tenant_id: str,
        staff_id: str,
        start: datetime,
        end: datetime,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        """Bookings of a staff member starting within [start, end]"""
        self.catalog.get_staff(tenant_id, staff_id)
        if end < start:
            raise ValidationError("End date must not be before start date")
        return self.repo.get_staff_bookings(self.db, tenant_id, staff_id, start, end, status)

    def get_bookings_by_customer(
        self, tenant_id: str, customer_id: str, page: int = 1, limit: int = 10
    ) -> tuple[list[Booking], dict]:
        page, limit = clamp_page(page, limit)
        bookings, total = self.repo.get_customer_bookings(
            self.db, tenant_id, customer_id, page, limit
        )
        return bookings, build_meta(total, page, limit)

    def check_availability(
        self,
        tenant_id: str,
        staff_id: str,
        day: date,
        duration_minutes: int = DEFAULT_BOOKING_DURATION,
    ) -> dict:
        """Slot grid for a staff member; advisory only, create re-checks"""
        slots = compute_slots(self.db, tenant_id, staff_id, day, duration_minutes)
        return {
            "staffId": staff_id,
            "date": slots.day.isoformat(),
            "durationMinutes": duration_minutes,
            "slots": slots.to_list(),
        }

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_booking(
        self, tenant_id: str, actor_user_id: Optional[str], data: CreateBookingRequest
    ) -> Booking:
        """
        Create a PENDING booking.

        Services are resolved into price/duration snapshots, the end time is
        derived from their total duration, and the conflict check and insert
        run in one transaction holding the staff lock.

        Raises:
            NotFoundError: customer does not exist under the tenant
            InvalidStaffError: staff member missing or inactive
            InvalidServicesError: any service id unknown or inactive
            ValidationError: discount larger than the subtotal
            BookingConflictError: the interval overlaps a live booking
        """
        return self._create(
            tenant_id,
            actor_user_id,
            customer_id=data.customerId,
            staff_id=data.staffId,
            start_time=data.startTime,
            service_ids=[item.serviceId for item in data.services],
            notes=data.notes,
            discount=data.discount,
        )

    def create_public_booking(self, tenant_id: str, data: PublicBookingRequest) -> Booking:
        """Booking from the public page: find or create the customer by phone first"""
        tenant_id = require_tenant(tenant_id)
        customer = CustomerService(self.db).find_or_create(
            tenant_id,
            CustomerCreate(
                firstName=data.customerFirstName,
                lastName=data.customerLastName,
                phone=data.customerPhone,
                email=data.customerEmail,
            ),
        )
        return self._create(
            tenant_id,
            None,
            customer_id=customer.id,
            staff_id=data.staffId,
            start_time=data.startTime,
            service_ids=[item.serviceId for item in data.services],
            notes=data.notes,
            discount=Decimal("0"),
        )

    def _create(
        self,
        tenant_id: str,
        actor_user_id: Optional[str],
        customer_id: str,
        staff_id: str,
        start_time: datetime,
        service_ids: list[str],
        notes: Optional[str],
        discount: Decimal,
    ) -> Booking:
        tenant_id = require_tenant(tenant_id)

        try:
            if not CustomerRepository.get_customer(self.db, tenant_id, customer_id):
                raise NotFoundError("Customer not found")
            self.catalog.get_active_staff(tenant_id, staff_id)
            snapshots = self.catalog.resolve_services(tenant_id, service_ids)

            total_duration = sum(s.duration_minutes for s in snapshots)
            subtotal = sum((Decimal(s.price) for s in snapshots), Decimal("0"))
            discount = Decimal(discount or 0)
            if discount > subtotal:
                raise ValidationError("Discount cannot exceed the booking subtotal")
            end_time = start_time + timedelta(minutes=total_duration)

            # Check and insert under the staff lock
            self.repo.lock_staff(self.db, tenant_id, [staff_id])
            conflict = find_conflict(self.db, tenant_id, staff_id, start_time, end_time)
            if conflict:
                logger.warning(
                    f"⚠️ Booking conflict for tenant {tenant_id}, staff {staff_id}: "
                    f"{start_time:%Y-%m-%d %H:%M}-{end_time:%H:%M} overlaps "
                    f"booking {conflict.booking_number} ({conflict.id})"
                )
                raise BookingConflictError(conflict.booking_number)

            booking = Booking(
                tenant_id=tenant_id,
                customer_id=customer_id,
                staff_id=staff_id,
                created_by_user_id=actor_user_id,
                booking_number=self._allocate_booking_number(tenant_id),
                start_time=start_time,
                end_time=end_time,
                total_duration=total_duration,
                subtotal=subtotal,
                discount=discount,
                total_amount=subtotal - discount,
                status=BookingStatus.PENDING,
                notes=notes,
            )
            booking.services = [
                BookingServiceLine(
                    position=position,
                    service_id=s.service_id,
                    service_name=s.name,
                    price=s.price,
                    duration=s.duration_minutes,
                )
                for position, s in enumerate(snapshots)
            ]
            self._commit(tenant_id, booking, new=True)
        except SalonError:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✅ Booking created: {booking.booking_number} for tenant: {tenant_id}")
        return booking

    def _allocate_booking_number(self, tenant_id: str) -> str:
        today = salon_now().date()
        for attempt in range(1, BOOKING_NUMBER_MAX_ATTEMPTS + 1):
            number = generate_booking_number(today)
            if not self.repo.booking_number_exists(self.db, number):
                return number
            logger.info(f"🔁 Booking number {number} taken (attempt {attempt})")

        logger.error(
            f"❌ No free booking number after {BOOKING_NUMBER_MAX_ATTEMPTS} attempts "
            f"for tenant {tenant_id}"
        )
        raise BookingNumberExhaustedError()

    def _commit(self, tenant_id: str, booking: Booking, new: bool = False):
        """Flush and commit, mapping the store-level overlap constraint to a conflict"""
        try:
            if new:
                self.repo.add_booking(self.db, booking)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if BOOKING_OVERLAP_CONSTRAINT in str(e.orig):
                logger.warning(
                    f"⚠️ Overlap constraint rejected booking {booking.id} "
                    f"for tenant {tenant_id}, staff {booking.staff_id}"
                )
                raise BookingConflictError() from e
            logger.error(f"❌ Failed to save booking {booking.id} for tenant {tenant_id}: {e}")
            raise

    # ------------------------------------------------------------------
    # Update / status
    # ------------------------------------------------------------------

    def _check_transition(self, booking: Booking, new_status: BookingStatus):
        current = BookingStatus(booking.status)
        if current in TERMINAL_STATUSES:
            logger.warning(
                f"🔒 Booking {booking.id} of tenant {booking.tenant_id} is {current.value}, "
                f"refusing change to {new_status.value}"
            )
            raise BookingLockedError()
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                f"Cannot change booking status from {current.value} to {new_status.value}"
            )

    def update_booking(
        self, tenant_id: str, booking_id: str, data: UpdateBookingRequest
    ) -> Booking:
        """
        Update or reschedule a booking.

        Rescheduling keeps the stored total duration; services are not
        re-resolved. Discount changes recompute the total from the stored
        subtotal.
        """
        tenant_id = require_tenant(tenant_id)

        try:
            booking = self._lock_booking(tenant_id, booking_id)
            if BookingStatus(booking.status) in TERMINAL_STATUSES:
                logger.warning(
                    f"🔒 Update refused for {booking.status.value} booking {booking.id} "
                    f"of tenant {tenant_id}"
                )
                raise BookingLockedError()

            if data.status is not None and data.status != booking.status:
                self._check_transition(booking, data.status)

            new_staff_id = data.staffId or booking.staff_id
            new_start = data.startTime or booking.start_time
            reschedule = new_staff_id != booking.staff_id or new_start != booking.start_time

            if data.discount is not None and data.discount > booking.subtotal:
                raise ValidationError("Discount cannot exceed the booking subtotal")

            if reschedule:
                if new_staff_id != booking.staff_id:
                    self.catalog.get_active_staff(tenant_id, new_staff_id)
                new_end = new_start + timedelta(minutes=booking.total_duration)

                self.repo.lock_staff(self.db, tenant_id, [booking.staff_id, new_staff_id])
                conflict = find_conflict(
                    self.db, tenant_id, new_staff_id, new_start, new_end, booking.id
                )
                if conflict:
                    logger.warning(
                        f"⚠️ Reschedule of booking {booking.id} for tenant {tenant_id} "
                        f"conflicts with booking {conflict.booking_number}"
                    )
                    raise BookingConflictError(conflict.booking_number)

                booking.staff_id = new_staff_id
                booking.start_time = new_start
                booking.end_time = new_end

            if data.discount is not None:
                booking.discount = data.discount
                booking.total_amount = booking.subtotal - data.discount
            if data.notes is not None:
                booking.notes = data.notes
            if data.status is not None and data.status != booking.status:
                self._apply_status(booking, data.status)

            self._commit(tenant_id, booking)
        except SalonError:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"📝 Booking updated: {booking.booking_number} for tenant: {tenant_id}")
        return booking

    def _apply_status(
        self, booking: Booking, new_status: BookingStatus, reason: Optional[str] = None
    ):
        booking.status = new_status
        if new_status == BookingStatus.CANCELLED:
            booking.cancelled_at = salon_now()
            if reason:
                booking.cancel_reason = reason

    def transition_status(
        self,
        tenant_id: str,
        booking_id: str,
        new_status: BookingStatus,
        reason: Optional[str] = None,
    ) -> Booking:
        """Move a booking through the state machine (confirm, complete, no-show, cancel)"""
        tenant_id = require_tenant(tenant_id)
        new_status = BookingStatus(new_status)

        if new_status == BookingStatus.CANCELLED:
            self.cancel_booking(tenant_id, booking_id, reason)
            return self.get_booking(tenant_id, booking_id)

        try:
            booking = self._lock_booking(tenant_id, booking_id)
            self._check_transition(booking, new_status)
            self._apply_status(booking, new_status)
            self._commit(tenant_id, booking)
        except SalonError:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(
            f"🔄 Booking {booking.booking_number} is now {new_status.value} (tenant: {tenant_id})"
        )
        return booking

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    def cancel_booking(self, tenant_id: str, booking_id: str, reason: Optional[str] = None) -> dict:
        """
        Cancel a booking.

        Cancelling twice always fails with AlreadyCancelledError and leaves the
        row untouched; completed and no-show bookings cannot be cancelled.
        """
        tenant_id = require_tenant(tenant_id)
        try:
            reason = validate_and_sanitize_input(reason, max_length=CANCEL_REASON_MAX_LENGTH)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        try:
            booking = self._lock_booking(tenant_id, booking_id)

            if booking.status == BookingStatus.CANCELLED:
                logger.warning(f"⚠️ Booking {booking.id} of tenant {tenant_id} already cancelled")
                raise AlreadyCancelledError()
            if booking.status == BookingStatus.COMPLETED:
                logger.warning(
                    f"⚠️ Cannot cancel completed booking {booking.id} of tenant {tenant_id}"
                )
                raise CannotCancelError()
            if booking.status == BookingStatus.NO_SHOW:
                logger.warning(
                    f"⚠️ Cannot cancel no-show booking {booking.id} of tenant {tenant_id}"
                )
                raise CannotCancelError("Cannot cancel no-show bookings")

            self._apply_status(booking, BookingStatus.CANCELLED, reason)
            self._commit(tenant_id, booking)
        except SalonError:
            self.db.rollback()
            raise

        logger.info(f"🚫 Booking cancelled: {booking.booking_number} (tenant: {tenant_id})")
        return {"success": True, "message": "Booking cancelled"}
