"""Booking repository - Database operations for bookings"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Booking, BookingStatus, Staff
from ..tenancy import scoped


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, tenant_id: str, booking_id: str) -> Optional[Booking]:
        """Get a booking by id, scoped to the tenant"""
        return (
            scoped(db.query(Booking), Booking, tenant_id)
            .options(selectinload(Booking.services))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_booking_for_update(db: Session, tenant_id: str, booking_id: str) -> Optional[Booking]:
        """Get a booking and lock its row until the transaction ends"""
        return (
            scoped(db.query(Booking), Booking, tenant_id)
            .filter(Booking.id == booking_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def list_bookings(
        db: Session,
        tenant_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        staff_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        customer_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Booking], int]:
        """List bookings with filters, ordered by start time"""
        query = scoped(db.query(Booking), Booking, tenant_id)

        if start_date:
            query = query.filter(Booking.start_time >= start_date)
        if end_date:
            query = query.filter(Booking.start_time <= end_date)
        if staff_id:
            query = query.filter(Booking.staff_id == staff_id)
        if status:
            query = query.filter(Booking.status == status)
        if customer_id:
            query = query.filter(Booking.customer_id == customer_id)

        total = query.count()
        bookings = (
            query.options(selectinload(Booking.services))
            .order_by(Booking.start_time.asc(), Booking.booking_number.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total

    @staticmethod
    def get_staff_bookings(
        db: Session,
        tenant_id: str,
        staff_id: str,
        start: datetime,
        end: datetime,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        """Bookings of a staff member starting inside [start, end], any status unless filtered"""
        query = scoped(db.query(Booking), Booking, tenant_id).filter(
            Booking.staff_id == staff_id,
            Booking.start_time >= start,
            Booking.start_time <= end,
        )
        if status:
            query = query.filter(Booking.status == status)
        return (
            query.options(selectinload(Booking.services))
            .order_by(Booking.start_time.asc())
            .all()
        )

    @staticmethod
    def get_customer_bookings(
        db: Session, tenant_id: str, customer_id: str, page: int = 1, limit: int = 20
    ) -> tuple[list[Booking], int]:
        """Bookings of a customer, most recent first"""
        query = scoped(db.query(Booking), Booking, tenant_id).filter(
            Booking.customer_id == customer_id
        )
        total = query.count()
        bookings = (
            query.options(selectinload(Booking.services))
            .order_by(Booking.start_time.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total

    @staticmethod
    def find_overlapping(
        db: Session,
        tenant_id: str,
        staff_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[Booking]:
        """First non-cancelled booking of the staff member overlapping [start, end)"""
        query = scoped(db.query(Booking), Booking, tenant_id).filter(
            Booking.staff_id == staff_id,
            Booking.status != BookingStatus.CANCELLED,
            Booking.start_time < end,
            Booking.end_time > start,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.start_time.asc()).first()

    @staticmethod
    def get_busy_intervals(
        db: Session, tenant_id: str, staff_id: str, start: datetime, end: datetime
    ) -> list[tuple[datetime, datetime]]:
        """(start, end) pairs of non-cancelled bookings overlapping [start, end)"""
        rows = (
            scoped(db.query(Booking.start_time, Booking.end_time), Booking, tenant_id)
            .filter(
                Booking.staff_id == staff_id,
                Booking.status != BookingStatus.CANCELLED,
                Booking.start_time < end,
                Booking.end_time > start,
            )
            .order_by(Booking.start_time.asc())
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    @staticmethod
    def lock_staff(db: Session, tenant_id: str, staff_ids: list[str]) -> list[Staff]:
        """
        Lock staff rows for the rest of the transaction (SELECT ... FOR UPDATE).

        Rows are locked in id order so two reschedules touching the same pair
        of staff members cannot deadlock. SQLite ignores FOR UPDATE; there the
        transaction already holds the database write lock.
        """
        locked = []
        for staff_id in sorted(set(staff_ids)):
            staff = (
                scoped(db.query(Staff), Staff, tenant_id)
                .filter(Staff.id == staff_id)
                .with_for_update()
                .first()
            )
            if staff:
                locked.append(staff)
        return locked

    @staticmethod
    def booking_number_exists(db: Session, booking_number: str) -> bool:
        # Booking numbers are unique across tenants
        return (
            db.query(Booking.id).filter(Booking.booking_number == booking_number).first()
            is not None
        )

    @staticmethod
    def add_booking(db: Session, booking: Booking) -> Booking:
        """Stage a booking and its service lines; the caller commits"""
        db.add(booking)
        db.flush()
        return booking
