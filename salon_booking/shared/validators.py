"""Shared validation utilities"""

import re
from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import DEFAULT_PHONE_COUNTRY_CODE, SALON_TIMEZONE


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Local numbers with a leading trunk zero (e.g. 0891234567) get the
    configured country code; numbers written with + or 00 keep theirs.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    raw = phone.strip()
    digits = re.sub(r"\D", "", raw)

    if raw.startswith("+"):
        pass
    elif digits.startswith("00"):
        digits = digits[2:]
    elif digits.startswith("0"):
        digits = f"{DEFAULT_PHONE_COUNTRY_CODE}{digits[1:]}"

    # E.164 allows at most 15 digits; anything under 8 is not a subscriber number
    if not 8 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 8 and 15 digits")

    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def to_salon_time(value: datetime) -> datetime:
    """
    Convert a datetime to naive salon wall-clock time.

    Aware values are shifted into SALON_TIMEZONE first; naive values are
    taken as already being salon local time. Seconds are dropped so bookings
    stay on the minute grid.
    """
    if value.tzinfo is None:
        return value.replace(second=0, microsecond=0)
    local = value.astimezone(ZoneInfo(SALON_TIMEZONE))
    return local.replace(tzinfo=None, second=0, microsecond=0)


def parse_clock_time(value: str) -> time:
    """Parse HH:MM (24h) into a time object"""
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from e


def salon_now() -> datetime:
    """Current naive salon wall-clock time"""
    return datetime.now(ZoneInfo(SALON_TIMEZONE)).replace(tzinfo=None, microsecond=0)
