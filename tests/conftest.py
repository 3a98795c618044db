import os
import tempfile
from decimal import Decimal

# Point the app at a throwaway SQLite file before anything imports the engine
_DB_DIR = tempfile.mkdtemp(prefix="salon-booking-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SALON_TIMEZONE"] = "Asia/Bangkok"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from salon_booking.database import Base, SessionLocal, engine, get_db  # noqa: E402
from salon_booking.domain.bookings.schemas import CreateBookingRequest  # noqa: E402
from salon_booking.domain.bookings.service import BookingService  # noqa: E402
from salon_booking.main import app  # noqa: E402
from salon_booking.models import Customer, SalonService, Staff, Tenant  # noqa: E402

ALL_CAPABILITIES = ",".join(
    [
        "bookings:read",
        "bookings:write",
        "catalog:write",
        "customers:read",
        "customers:write",
    ]
)


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def tenant(db):
    return _add(db, Tenant(name="Polish Paradise", subdomain="polish-paradise"))


@pytest.fixture
def other_tenant(db):
    return _add(db, Tenant(name="Nail Nook", subdomain="nail-nook"))


@pytest.fixture
def staff(db, tenant):
    return _add(db, Staff(tenant_id=tenant.id, first_name="Ploy", last_name="Srisuk"))


@pytest.fixture
def second_staff(db, tenant):
    return _add(db, Staff(tenant_id=tenant.id, first_name="Mai", last_name="Chaiyo"))


@pytest.fixture
def gel_manicure(db, tenant):
    return _add(
        db,
        SalonService(
            tenant_id=tenant.id,
            name="Gel Manicure",
            category="manicure",
            duration_minutes=45,
            price=Decimal("599.00"),
        ),
    )


@pytest.fixture
def classic_pedicure(db, tenant):
    return _add(
        db,
        SalonService(
            tenant_id=tenant.id,
            name="Classic Pedicure",
            category="pedicure",
            duration_minutes=60,
            price=Decimal("450.00"),
        ),
    )


@pytest.fixture
def nail_art(db, tenant):
    return _add(
        db,
        SalonService(
            tenant_id=tenant.id,
            name="Nail Art (per nail)",
            category="art",
            duration_minutes=30,
            price=Decimal("150.50"),
        ),
    )


@pytest.fixture
def customer(db, tenant):
    return _add(
        db,
        Customer(tenant_id=tenant.id, first_name="Emily", last_name="Chen", phone="+66891234567"),
    )


@pytest.fixture
def booking_service(db):
    return BookingService(db)


@pytest.fixture
def book(booking_service, tenant, customer, staff, gel_manicure):
    """Create a booking for the default customer; Gel Manicure on staff X unless told otherwise"""

    def _book(start, services=None, staff_id=None, tenant_id=None, **extra):
        request = CreateBookingRequest(
            customerId=customer.id,
            staffId=staff_id or staff.id,
            startTime=start,
            services=[{"serviceId": s.id} for s in (services or [gel_manicure])],
            **extra,
        )
        return booking_service.create_booking(tenant_id or tenant.id, "user-1", request)

    return _book


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers(tenant):
    return {
        "X-Tenant-ID": tenant.id,
        "X-User-ID": "user-1",
        "X-User-Capabilities": ALL_CAPABILITIES,
    }
