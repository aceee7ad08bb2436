"""
Domain errors raised by the reservation core.

Every error carries the HTTP status the API layer answers with, so the
services stay transport-agnostic and the mapping lives in one place.
"""


class ReservationError(Exception):
    status_code: int = 500
    default_message: str = "Reservation error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ReservationError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(ReservationError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(ReservationError):
    status_code = 404
    default_message = "Booking not found"


class SlotConflict(ReservationError):
    status_code = 409
    default_message = "This time slot is already booked"


class ConfigurationError(ReservationError):
    status_code = 500
    default_message = "Service is not configured"


class StoreUnavailable(ReservationError):
    status_code = 503
    default_message = "Booking store is unavailable"
