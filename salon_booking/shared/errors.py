"""Domain error taxonomy shared by all services"""

from typing import Optional


class SalonError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"success": False, "error": {"code": self.code, "message": self.message}}


class ValidationError(SalonError):
    """Malformed input or unknown references, rejected before any write"""

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidServicesError(ValidationError):
    code = "INVALID_SERVICES"

    def __init__(self, message: str = "One or more services not found"):
        super().__init__(message)


class InvalidStaffError(ValidationError):
    code = "INVALID_STAFF"

    def __init__(self, message: str = "Staff member is not available for booking"):
        super().__init__(message)


class InvalidStatusTransitionError(ValidationError):
    code = "INVALID_STATUS_TRANSITION"


class NotFoundError(SalonError):
    """Missing row, or a row that belongs to another tenant"""

    status_code = 404
    code = "NOT_FOUND"


class BookingConflictError(SalonError):
    status_code = 409
    code = "BOOKING_CONFLICT"

    def __init__(self, conflicting_booking_number: Optional[str] = None):
        if conflicting_booking_number:
            message = f"Time slot conflicts with existing booking #{conflicting_booking_number}"
        else:
            message = "Time slot conflicts with an existing booking"
        super().__init__(message)
        self.conflicting_booking_number = conflicting_booking_number


class BookingLockedError(SalonError):
    status_code = 409
    code = "BOOKING_LOCKED"

    def __init__(self, message: str = "Cannot modify completed or cancelled bookings"):
        super().__init__(message)


class AlreadyCancelledError(SalonError):
    status_code = 409
    code = "ALREADY_CANCELLED"

    def __init__(self, message: str = "Booking is already cancelled"):
        super().__init__(message)


class CannotCancelError(SalonError):
    status_code = 409
    code = "CANNOT_CANCEL"

    def __init__(self, message: str = "Cannot cancel completed bookings"):
        super().__init__(message)


class ForbiddenError(SalonError):
    status_code = 403
    code = "FORBIDDEN"


class BookingNumberExhaustedError(SalonError):
    status_code = 503
    code = "BOOKING_NUMBER_UNAVAILABLE"

    def __init__(self, message: str = "Could not allocate a booking number, please retry"):
        super().__init__(message)
