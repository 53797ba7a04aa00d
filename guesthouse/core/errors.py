"""
Booking error taxonomy.

Every failure the admission endpoint can report is one of these kinds.
Messages are safe to show to guests: they never carry table names,
column names or query fragments. Full details go to the server log only.
"""
from typing import Optional


class BookingError(Exception):
    """Base class for errors rendered as ``{"error": ..., "kind": ...}``."""

    kind = "internal"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class InvalidInputError(BookingError):
    kind = "invalid_input"
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NoCapacityError(BookingError):
    """No room of the requested type can hold that many guests."""

    kind = "no_capacity"
    status_code = 409
    default_message = "No rooms available for selected guest count"


class NoAvailabilityError(BookingError):
    """Matching rooms exist but all are blocked or booked for the dates."""

    kind = "no_availability"
    status_code = 409
    default_message = "No rooms available for selected dates"


class RateLimitedError(BookingError):
    kind = "rate_limited"
    status_code = 429
    default_message = "Too many requests"


class InternalError(BookingError):
    kind = "internal"
    status_code = 500
    default_message = "Unable to process booking"


class NotFoundError(BookingError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidTransitionError(BookingError):
    kind = "invalid_transition"
    status_code = 409
    default_message = "Status change not allowed"
