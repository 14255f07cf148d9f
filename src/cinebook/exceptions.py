"""Domain errors raised by the booking services.

Each error carries the HTTP status it maps to; the API layer turns them
into the standard ``{"success": false, "message": ...}`` envelope.
"""

from typing import Any


class BookingError(Exception):
    """Base class for all user-facing domain errors."""

    status_code: int = 400

    def __init__(self, message: str, data: Any = None) -> None:
        self.message = message
        self.data = data
        super().__init__(message)


class ValidationError(BookingError):
    """Malformed input: bad id, missing field, duplicate seat ids."""

    status_code = 400


class PolicyError(BookingError):
    """Request is well-formed but not allowed: showtime not bookable, wrong hall."""

    status_code = 400


class UnauthorizedError(BookingError):
    status_code = 401


class ForbiddenError(BookingError):
    status_code = 403


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    """Seat already held, overlapping showtime, booking already cancelled."""

    status_code = 409
