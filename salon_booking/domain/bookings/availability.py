"""Availability calculator - bookable start times for one staff member and day"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from ...config import BUSINESS_CLOSE, BUSINESS_OPEN, DEFAULT_BOOKING_DURATION, SLOT_INTERVAL_MINUTES
from ...shared.errors import ValidationError
from ...shared.validators import parse_clock_time
from ..catalog.service import CatalogService
from .conflicts import intervals_overlap
from .repository import BookingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkingWindow:
    """Daily opening hours shared by every staff member"""

    open_time: time
    close_time: time
    slot_interval_minutes: int = 30

    def __post_init__(self):
        if self.close_time <= self.open_time:
            raise ValueError("Working window must close after it opens")
        if self.slot_interval_minutes <= 0:
            raise ValueError("Slot interval must be positive")

    @classmethod
    def from_config(cls) -> "WorkingWindow":
        return cls(
            open_time=parse_clock_time(BUSINESS_OPEN),
            close_time=parse_clock_time(BUSINESS_CLOSE),
            slot_interval_minutes=SLOT_INTERVAL_MINUTES,
        )

    def bounds(self, day: date) -> tuple[datetime, datetime]:
        return datetime.combine(day, self.open_time), datetime.combine(day, self.close_time)


@dataclass(frozen=True)
class TimeSlot:
    start_time: datetime
    end_time: datetime
    available: bool

    def to_dict(self) -> dict:
        return {
            "startTime": self.start_time.strftime("%H:%M"),
            "endTime": self.end_time.strftime("%H:%M"),
            "available": self.available,
        }


class DaySlots:
    """
    Candidate slots of one day, generated lazily.

    Busy intervals are captured once when the object is built; each call to
    ``iter()`` walks the window again from the opening time, so the sequence
    can be consumed any number of times with the same result.
    """

    def __init__(
        self,
        day: date,
        duration_minutes: int,
        window: WorkingWindow,
        busy: list[tuple[datetime, datetime]],
    ):
        self.day = day
        self.duration_minutes = duration_minutes
        self.window = window
        self.busy = tuple(busy)

    def __iter__(self) -> Iterator[TimeSlot]:
        day_open, day_close = self.window.bounds(self.day)
        duration = timedelta(minutes=self.duration_minutes)
        step = timedelta(minutes=self.window.slot_interval_minutes)

        current = day_open
        while current + duration <= day_close:
            slot_end = current + duration
            blocked = any(intervals_overlap(current, slot_end, s, e) for s, e in self.busy)
            yield TimeSlot(start_time=current, end_time=slot_end, available=not blocked)
            current += step

    def available(self) -> list[TimeSlot]:
        return [slot for slot in self if slot.available]

    def to_list(self) -> list[dict]:
        return [slot.to_dict() for slot in self]


def compute_slots(
    db: Session,
    tenant_id: str,
    staff_id: str,
    day: date,
    duration_minutes: int = DEFAULT_BOOKING_DURATION,
    window: Optional[WorkingWindow] = None,
) -> DaySlots:
    """
    Build the slot grid for a staff member on a given day.

    Raises:
        ValidationError: duration is not a positive whole number of minutes
        NotFoundError: staff member does not exist under the tenant
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationError("Duration must be a whole number of minutes")
    if duration_minutes <= 0:
        raise ValidationError("Duration must be positive")

    if isinstance(day, datetime):
        day = day.date()

    # Unknown or foreign staff surfaces as NotFound
    CatalogService(db).get_staff(tenant_id, staff_id)

    window = window or WorkingWindow.from_config()
    day_start = datetime.combine(day, time.min)
    busy = BookingRepository.get_busy_intervals(
        db, tenant_id, staff_id, day_start, day_start + timedelta(days=1)
    )
    logger.debug(f"📅 {len(busy)} busy interval(s) for staff {staff_id} on {day.isoformat()}")
    return DaySlots(day, duration_minutes, window, busy)
