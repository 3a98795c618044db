import re
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from salon_booking.domain.bookings import service as booking_module
from salon_booking.domain.bookings.schemas import (
    BookingFilters,
    CreateBookingRequest,
    PublicBookingRequest,
    UpdateBookingRequest,
)
from salon_booking.models import Booking, BookingStatus, Customer
from salon_booking.shared.errors import (
    AlreadyCancelledError,
    BookingConflictError,
    BookingLockedError,
    BookingNumberExhaustedError,
    CannotCancelError,
    InvalidServicesError,
    InvalidStaffError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)


def at(hour, minute=0, day=15):
    return datetime(2024, 3, day, hour, minute)


def test_create_booking_derives_end_time_and_totals(book, staff, gel_manicure):
    booking = book(at(10))

    assert booking.staff_id == staff.id
    assert booking.start_time == at(10)
    assert booking.end_time == at(10, 45)
    assert booking.total_duration == 45
    assert booking.subtotal == Decimal("599")
    assert booking.discount == Decimal("0")
    assert booking.total_amount == Decimal("599")
    assert booking.status == BookingStatus.PENDING
    assert booking.created_by_user_id == "user-1"
    assert re.fullmatch(r"BK\d{8}-[A-Z0-9]{4}", booking.booking_number)

    [line] = booking.services
    assert line.service_id == gel_manicure.id
    assert line.service_name == "Gel Manicure"
    assert line.price == Decimal("599")
    assert line.duration == 45


def test_overlapping_booking_is_rejected_with_booking_number(db, book):
    first = book(at(10))

    with pytest.raises(BookingConflictError) as exc:
        book(at(10, 30))

    assert exc.value.code == "BOOKING_CONFLICT"
    assert exc.value.conflicting_booking_number == first.booking_number
    assert first.booking_number in exc.value.message
    assert db.query(Booking).count() == 1


def test_cancelled_booking_no_longer_blocks_its_slot(book, booking_service, tenant):
    first = book(at(10))
    booking_service.cancel_booking(tenant.id, first.id, "Customer asked to move")

    second = book(at(10))

    assert second.end_time == at(10, 45)
    assert second.booking_number != first.booking_number


def test_touching_bookings_are_both_created(book, classic_pedicure):
    morning = book(at(10), services=[classic_pedicure])
    next_one = book(at(11), services=[classic_pedicure])

    assert morning.end_time == next_one.start_time == at(11)


def test_start_seconds_are_dropped(book):
    first = book(datetime(2024, 3, 15, 10, 0, 30))
    assert (first.start_time, first.end_time) == (at(10), at(10, 45))

    # Starts exactly where the first one ends
    second = book(at(10, 45))
    assert second.start_time == first.end_time


def test_same_slot_on_another_staff_member(book, second_staff):
    book(at(10))
    other = book(at(10), staff_id=second_staff.id)

    assert other.staff_id == second_staff.id


def test_multiple_services_keep_request_order_and_sum(book, gel_manicure, nail_art):
    booking = book(at(13), services=[nail_art, gel_manicure, nail_art])

    assert [line.service_name for line in booking.services] == [
        "Nail Art (per nail)",
        "Gel Manicure",
        "Nail Art (per nail)",
    ]
    assert booking.total_duration == sum(line.duration for line in booking.services) == 105
    assert booking.end_time == at(14, 45)
    assert booking.subtotal == Decimal("900.00")
    assert booking.total_amount == Decimal("900.00")


def test_discount_is_subtracted_from_subtotal(book):
    booking = book(at(10), discount=Decimal("99.50"))

    assert booking.discount == Decimal("99.50")
    assert booking.total_amount == Decimal("499.50")


def test_discount_above_subtotal_is_rejected(db, book):
    with pytest.raises(ValidationError):
        book(at(10), discount=Decimal("600"))
    assert db.query(Booking).count() == 0


def test_unknown_service_fails_whole_booking(db, book, gel_manicure):
    class Missing:
        id = "no-such-service"

    with pytest.raises(InvalidServicesError) as exc:
        book(at(10), services=[gel_manicure, Missing])

    assert exc.value.code == "INVALID_SERVICES"
    assert db.query(Booking).count() == 0


def test_inactive_service_is_rejected(db, book, gel_manicure):
    gel_manicure.is_active = False
    db.commit()

    with pytest.raises(InvalidServicesError):
        book(at(10))


def test_inactive_staff_is_rejected(db, book, staff):
    staff.is_active = False
    db.commit()

    with pytest.raises(InvalidStaffError):
        book(at(10))


def test_unknown_customer_is_not_found(booking_service, tenant, staff, gel_manicure):
    request = CreateBookingRequest(
        customerId="no-such-customer",
        staffId=staff.id,
        startTime=at(10),
        services=[{"serviceId": gel_manicure.id}],
    )
    with pytest.raises(NotFoundError):
        booking_service.create_booking(tenant.id, None, request)


def test_catalog_changes_do_not_touch_existing_bookings(db, book, gel_manicure):
    booking = book(at(10))

    gel_manicure.price = Decimal("799.00")
    gel_manicure.duration_minutes = 60
    db.commit()
    db.refresh(booking)

    assert booking.total_amount == Decimal("599")
    assert booking.services[0].price == Decimal("599")
    assert booking.end_time == at(10, 45)


# ----------------------------------------------------------------------------
# Cancel
# ----------------------------------------------------------------------------


def test_cancel_records_reason(booking_service, tenant, book):
    booking = book(at(10))

    ack = booking_service.cancel_booking(tenant.id, booking.id, "Flight delayed")

    assert ack == {"success": True, "message": "Booking cancelled"}
    cancelled = booking_service.get_booking(tenant.id, booking.id)
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancel_reason == "Flight delayed"
    assert cancelled.cancelled_at is not None


def test_cancelling_twice_fails_without_mutation(booking_service, tenant, book):
    booking = book(at(10))
    booking_service.cancel_booking(tenant.id, booking.id, "First reason")
    cancelled_at = booking_service.get_booking(tenant.id, booking.id).cancelled_at

    for _ in range(2):
        with pytest.raises(AlreadyCancelledError) as exc:
            booking_service.cancel_booking(tenant.id, booking.id, "Second reason")
        assert exc.value.code == "ALREADY_CANCELLED"

    again = booking_service.get_booking(tenant.id, booking.id)
    assert again.cancel_reason == "First reason"
    assert again.cancelled_at == cancelled_at


def test_completed_booking_cannot_be_cancelled(booking_service, tenant, book):
    booking = book(at(10))
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.COMPLETED)

    with pytest.raises(CannotCancelError) as exc:
        booking_service.cancel_booking(tenant.id, booking.id, "Too late")

    assert exc.value.code == "CANNOT_CANCEL"
    assert booking_service.get_booking(tenant.id, booking.id).status == BookingStatus.COMPLETED


def test_no_show_booking_cannot_be_cancelled(booking_service, tenant, book):
    booking = book(at(10))
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.NO_SHOW)

    with pytest.raises(CannotCancelError):
        booking_service.cancel_booking(tenant.id, booking.id, "Never came")


def test_overlong_cancel_reason_is_a_validation_error(booking_service, tenant, book):
    booking = book(at(10))

    with pytest.raises(ValidationError):
        booking_service.cancel_booking(tenant.id, booking.id, "x" * 501)
    with pytest.raises(ValidationError):
        booking_service.transition_status(
            tenant.id, booking.id, BookingStatus.CANCELLED, "x" * 501
        )

    assert booking_service.get_booking(tenant.id, booking.id).status == BookingStatus.PENDING


def test_escaped_cancel_reason_is_stored_whole(booking_service, tenant, book):
    booking = book(at(10))

    booking_service.cancel_booking(tenant.id, booking.id, "'" * 500)

    stored = booking_service.get_booking(tenant.id, booking.id).cancel_reason
    assert stored == "&#x27;" * 500
    assert Booking.__table__.c.cancel_reason.type.length is None


# ----------------------------------------------------------------------------
# Update / reschedule
# ----------------------------------------------------------------------------


def test_reschedule_keeps_stored_duration(db, booking_service, tenant, book, gel_manicure):
    booking = book(at(10))
    gel_manicure.duration_minutes = 90
    db.commit()

    updated = booking_service.update_booking(
        tenant.id, booking.id, UpdateBookingRequest(startTime=at(15))
    )

    assert updated.start_time == at(15)
    assert updated.end_time == at(15, 45)
    assert updated.total_duration == 45


def test_reschedule_may_overlap_its_own_old_slot(booking_service, tenant, book):
    booking = book(at(10))

    updated = booking_service.update_booking(
        tenant.id, booking.id, UpdateBookingRequest(startTime=at(10, 30))
    )

    assert updated.end_time == at(11, 15)


def test_reschedule_into_conflict_leaves_booking_unchanged(db, booking_service, tenant, book):
    blocker = book(at(12))
    booking = book(at(10))

    with pytest.raises(BookingConflictError) as exc:
        booking_service.update_booking(
            tenant.id, booking.id, UpdateBookingRequest(startTime=at(11, 30), notes="moved")
        )

    assert exc.value.conflicting_booking_number == blocker.booking_number
    db.expire_all()
    unchanged = booking_service.get_booking(tenant.id, booking.id)
    assert unchanged.start_time == at(10)
    assert unchanged.notes is None


def test_reschedule_to_another_staff_member(booking_service, tenant, book, second_staff):
    booking = book(at(10))
    book(at(10), staff_id=second_staff.id)

    with pytest.raises(BookingConflictError):
        booking_service.update_booking(
            tenant.id, booking.id, UpdateBookingRequest(staffId=second_staff.id)
        )

    moved = booking_service.update_booking(
        tenant.id,
        booking.id,
        UpdateBookingRequest(staffId=second_staff.id, startTime=at(16)),
    )
    assert moved.staff_id == second_staff.id
    assert moved.end_time == at(16, 45)


def test_reschedule_to_inactive_staff_is_rejected(db, booking_service, tenant, book, second_staff):
    booking = book(at(10))
    second_staff.is_active = False
    db.commit()

    with pytest.raises(InvalidStaffError):
        booking_service.update_booking(
            tenant.id, booking.id, UpdateBookingRequest(staffId=second_staff.id)
        )


def test_discount_update_recomputes_total(booking_service, tenant, book):
    booking = book(at(10))

    updated = booking_service.update_booking(
        tenant.id, booking.id, UpdateBookingRequest(discount=Decimal("100"), notes="VIP")
    )

    assert updated.subtotal == Decimal("599")
    assert updated.total_amount == Decimal("499")
    assert updated.notes == "VIP"


@pytest.mark.parametrize(
    "status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW]
)
def test_terminal_bookings_are_locked(booking_service, tenant, book, status):
    booking = book(at(10))
    if status != BookingStatus.CANCELLED:
        booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)
    booking_service.transition_status(tenant.id, booking.id, status, "closing")

    with pytest.raises(BookingLockedError) as exc:
        booking_service.update_booking(tenant.id, booking.id, UpdateBookingRequest(notes="late"))

    assert exc.value.code == "BOOKING_LOCKED"


# ----------------------------------------------------------------------------
# Status transitions
# ----------------------------------------------------------------------------


def test_confirm_then_complete(booking_service, tenant, book):
    booking = book(at(10))

    confirmed = booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)
    assert confirmed.status == BookingStatus.CONFIRMED

    completed = booking_service.transition_status(tenant.id, booking.id, BookingStatus.COMPLETED)
    assert completed.status == BookingStatus.COMPLETED


def test_status_cannot_go_back_to_pending(booking_service, tenant, book):
    booking = book(at(10))
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)

    with pytest.raises(InvalidStatusTransitionError):
        booking_service.transition_status(tenant.id, booking.id, BookingStatus.PENDING)

    with pytest.raises(InvalidStatusTransitionError):
        booking_service.update_booking(
            tenant.id, booking.id, UpdateBookingRequest(status=BookingStatus.PENDING)
        )


@pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.NO_SHOW])
def test_pending_booking_must_be_confirmed_first(booking_service, tenant, book, status):
    booking = book(at(10))

    with pytest.raises(InvalidStatusTransitionError):
        booking_service.transition_status(tenant.id, booking.id, status)
    with pytest.raises(InvalidStatusTransitionError):
        booking_service.update_booking(tenant.id, booking.id, UpdateBookingRequest(status=status))

    assert booking_service.get_booking(tenant.id, booking.id).status == BookingStatus.PENDING


def test_completed_booking_status_is_final(booking_service, tenant, book):
    booking = book(at(10))
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)
    booking_service.transition_status(tenant.id, booking.id, BookingStatus.COMPLETED)

    with pytest.raises(BookingLockedError):
        booking_service.transition_status(tenant.id, booking.id, BookingStatus.CONFIRMED)


def test_cancel_through_status_transition(booking_service, tenant, book):
    booking = book(at(10))

    cancelled = booking_service.transition_status(
        tenant.id, booking.id, BookingStatus.CANCELLED, "Salon closed"
    )

    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancel_reason == "Salon closed"


def test_status_change_through_update(booking_service, tenant, book):
    booking = book(at(10))

    updated = booking_service.update_booking(
        tenant.id, booking.id, UpdateBookingRequest(status=BookingStatus.CONFIRMED)
    )

    assert updated.status == BookingStatus.CONFIRMED


# ----------------------------------------------------------------------------
# Tenancy, reads and booking numbers
# ----------------------------------------------------------------------------


def test_other_tenant_sees_not_found(booking_service, tenant, other_tenant, book):
    booking = book(at(10))

    with pytest.raises(NotFoundError):
        booking_service.get_booking(other_tenant.id, booking.id)
    with pytest.raises(NotFoundError):
        booking_service.cancel_booking(other_tenant.id, booking.id, "not mine")
    with pytest.raises(NotFoundError):
        booking_service.update_booking(other_tenant.id, booking.id, UpdateBookingRequest())

    bookings, meta = booking_service.list_bookings(other_tenant.id)
    assert bookings == []
    assert meta["total"] == 0


def test_missing_tenant_is_rejected(booking_service, book):
    with pytest.raises(ValidationError) as exc:
        book(at(10), tenant_id="   ")

    assert exc.value.code == "TENANT_REQUIRED"


def test_list_bookings_filters_and_paginates(booking_service, tenant, staff, second_staff, book):
    book(at(9))
    book(at(11))
    book(at(10), staff_id=second_staff.id)
    cancelled = book(at(14))
    booking_service.cancel_booking(tenant.id, cancelled.id, "duplicate")

    bookings, meta = booking_service.list_bookings(tenant.id, page=1, limit=2)
    assert [b.start_time for b in bookings] == [at(9), at(10)]
    assert meta == {"total": 4, "page": 1, "limit": 2, "totalPages": 2}

    bookings, _ = booking_service.list_bookings(
        tenant.id, BookingFilters(staffId=staff.id, status=BookingStatus.PENDING)
    )
    assert [b.start_time for b in bookings] == [at(9), at(11)]

    bookings, _ = booking_service.list_bookings(
        tenant.id, BookingFilters(startDate=at(10), endDate=at(12))
    )
    assert [b.start_time for b in bookings] == [at(10), at(11)]


def test_staff_schedule_includes_every_status(booking_service, tenant, staff, book):
    kept = book(at(9))
    cancelled = book(at(11))
    booking_service.cancel_booking(tenant.id, cancelled.id, "sick")

    schedule = booking_service.get_bookings_by_staff(tenant.id, staff.id, at(0), at(23))
    assert [b.id for b in schedule] == [kept.id, cancelled.id]

    pending = booking_service.get_bookings_by_staff(
        tenant.id, staff.id, at(0), at(23), BookingStatus.PENDING
    )
    assert [b.id for b in pending] == [kept.id]


def test_customer_history_is_newest_first(booking_service, tenant, customer, book):
    older = book(at(10, day=14))
    newer = book(at(10, day=15))

    bookings, meta = booking_service.get_bookings_by_customer(tenant.id, customer.id)

    assert [b.id for b in bookings] == [newer.id, older.id]
    assert meta["total"] == 2


def test_booking_number_is_regenerated_when_taken(book):
    first = book(at(9))
    numbers = iter([first.booking_number, "BK20240315-ZZ99"])

    with patch.object(booking_module, "generate_booking_number", lambda on: next(numbers)):
        second = book(at(11))

    assert second.booking_number == "BK20240315-ZZ99"


def test_booking_number_gives_up_after_max_attempts(db, book):
    first = book(at(9))

    with patch.object(booking_module, "generate_booking_number", lambda on: first.booking_number):
        with pytest.raises(BookingNumberExhaustedError):
            book(at(11))

    assert db.query(Booking).count() == 1


def test_public_booking_finds_or_creates_customer(db, booking_service, tenant, staff, gel_manicure):
    def request(start, phone):
        return PublicBookingRequest(
            customerFirstName="Nok",
            customerLastName="Wong",
            customerPhone=phone,
            staffId=staff.id,
            startTime=start,
            services=[{"serviceId": gel_manicure.id}],
        )

    first = booking_service.create_public_booking(tenant.id, request(at(10), "089-876-5432"))
    second = booking_service.create_public_booking(tenant.id, request(at(12), "+66 89 876 5432"))

    assert first.customer_id == second.customer_id
    assert first.created_by_user_id is None
    customers = db.query(Customer).filter(Customer.tenant_id == tenant.id).all()
    assert [c.phone for c in customers] == ["+66898765432"]
