# backend/roombooking/errors.py
"""
Domain errors raised by the booking services.

Routers do not catch these; handlers registered in main.py translate them to
JSON responses with the matching HTTP status.
"""

from typing import Optional


class BookingError(Exception):
    status_code = 500

    def __init__(self, detail: str, **extra):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra


class ValidationError(BookingError):
    """Malformed or missing input. Never retried."""
    status_code = 400


class ConflictError(BookingError):
    """Requested interval overlaps an existing reservation."""
    status_code = 409

    def __init__(
        self,
        detail: str = "This time slot is already booked, please pick another time",
        conflicts: Optional[list[str]] = None,
    ):
        if conflicts is not None:
            super().__init__(detail, conflicts=conflicts)
        else:
            super().__init__(detail)


class NotFoundError(BookingError):
    status_code = 404


class PolicyError(BookingError):
    """Request is well-formed but a business rule forbids it."""
    status_code = 403


class BackendUnavailableError(BookingError):
    """Storage or network failure. Transient; the client may retry."""
    status_code = 503


class NotificationError(BookingError):
    """Outbound push (LINE) failed."""
    status_code = 502
