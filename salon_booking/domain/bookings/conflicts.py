"""
Booking conflict detection.

Bookings occupy half-open intervals [start, end): a booking ending at 10:00
and another starting at 10:00 do not collide. Cancelled bookings never
block a staff member. Availability uses ``intervals_overlap`` as well, so a
slot shown as free is exactly a slot the create path would accept.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking
from .repository import BookingRepository

logger = logging.getLogger(__name__)


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    return start1 < end2 and start2 < end1


def find_conflict(
    db: Session,
    tenant_id: str,
    staff_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> Optional[Booking]:
    """
    Return the first booking that would collide with [start, end), or None.

    Args:
        exclude_booking_id: booking being rescheduled; it never conflicts
            with itself
    """
    conflict = BookingRepository.find_overlapping(
        db, tenant_id, staff_id, start, end, exclude_booking_id
    )
    if conflict:
        logger.debug(
            f"⛔ Slot {start:%Y-%m-%d %H:%M}-{end:%H:%M} for staff {staff_id} "
            f"overlaps booking {conflict.booking_number}"
        )
    return conflict


def has_conflict(
    db: Session,
    tenant_id: str,
    staff_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> bool:
    return find_conflict(db, tenant_id, staff_id, start, end, exclude_booking_id) is not None
