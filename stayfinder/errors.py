# Domain errors raised by the catalog and booking services.
# Routes let them propagate; main.py renders them as JSON with the mapped HTTP status.
from fastapi import status


class BookingError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "booking_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(BookingError):
    """Listing or booking absent (or listing not bookable)."""
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidRequest(BookingError):
    """Malformed dates, guest count out of bounds, stay length outside the listing's limits."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_request"


class Conflict(BookingError):
    """Requested dates overlap a pending or confirmed booking."""
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class InvalidTransition(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class Busy(BookingError):
    """Concurrent writers kept winning the race for the same row; safe to retry as-is."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "busy"
