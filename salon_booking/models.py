import enum
import uuid

from sqlalchemy import (
    DDL,
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID4 primary key"""
    return str(uuid.uuid4())


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    subdomain = Column(String(100), unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    nickname = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    specialties = Column(JSON, default=list, nullable=False)  # e.g. ["gel", "nail-art"]
    is_active = Column(Boolean, default=True, nullable=False)  # soft delete flag
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="staff")


class SalonService(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="service_duration_positive"),
        CheckConstraint("price >= 0", name="service_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, default="general")
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)  # soft delete flag
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("tenant_id", "phone", name="uq_customer_tenant_phone"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=False)  # E.164, or deleted-<id> once redacted
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    # Aggregates owned by the completion/payment flow
    total_visits = Column(Integer, default=0, nullable=False)
    total_spent = Column(Numeric(12, 2), default=0, nullable=False)
    last_visit_at = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="customer")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="booking_end_after_start"),
        CheckConstraint("total_duration > 0", name="booking_duration_positive"),
        CheckConstraint("discount >= 0", name="booking_discount_non_negative"),
        Index("ix_bookings_tenant_staff_start", "tenant_id", "staff_id", "start_time"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), index=True, nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), index=True, nullable=False)
    staff_id = Column(String(36), ForeignKey("staff.id"), index=True, nullable=False)
    created_by_user_id = Column(String(36), nullable=True)  # null for public bookings
    booking_number = Column(String(20), unique=True, index=True, nullable=False)  # BKYYYYMMDD-XXXX
    start_time = Column(DateTime, nullable=False)  # salon wall-clock time
    end_time = Column(DateTime, nullable=False)
    total_duration = Column(Integer, nullable=False)  # minutes
    subtotal = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), default=0, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(BookingStatus, native_enum=False, length=20),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    notes = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="bookings")
    staff = relationship("Staff", back_populates="bookings")
    services = relationship(
        "BookingServiceLine",
        back_populates="booking",
        order_by="BookingServiceLine.position",
        cascade="all, delete-orphan",
    )


class BookingServiceLine(Base):
    """Catalog data frozen into a booking at creation time"""

    __tablename__ = "booking_services"

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), index=True, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    service_name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes

    booking = relationship("Booking", back_populates="services")


# Store-level backstop for the no-overlap invariant. Only PostgreSQL can
# express it; SQLite relies on BEGIN IMMEDIATE in database.py.
BOOKING_OVERLAP_CONSTRAINT = "booking_no_overlap"

event.listen(
    Booking.__table__,
    "after_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE bookings ADD CONSTRAINT {BOOKING_OVERLAP_CONSTRAINT} "
        "EXCLUDE USING gist (tenant_id WITH =, staff_id WITH =, "
        "tsrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status <> 'CANCELLED')"
    ).execute_if(dialect="postgresql"),
)
