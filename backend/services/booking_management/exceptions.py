"""Custom exceptions for booking management."""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for every error raised by the booking services."""
    code = "booking_error"
    status_code = 400
    default_message = "Booking operation failed"

    def __init__(self, message: Optional[str] = None, **payload: Any):
        self.message = message or self.default_message
        self.payload: Dict[str, Any] = payload
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            **self.payload,
        }


class BookingNotFoundError(BookingError):
    """Raised when a booking cannot be found."""
    code = "not_found"
    status_code = 404
    default_message = "Booking not found"


# ---------------------- Validation ----------------------

class BookingValidationError(BookingError):
    """Raised for missing or invalid input, before any state is touched."""
    code = "validation_error"
    status_code = 400
    default_message = "Invalid booking request"


class InvalidRequestError(BookingValidationError):
    """Raised when a driver response neither accepts nor counters."""
    code = "invalid_request"
    default_message = "Invalid response. Must accept or provide counter offer."


# ---------------------- Conflicts ----------------------

class BookingConflictError(BookingError):
    """Raised when a race was lost or a state precondition does not hold."""
    code = "conflict"
    status_code = 409
    default_message = "Booking is not in a valid state for this operation"


class ActiveBookingExistsError(BookingConflictError):
    """Raised when user already has an active booking."""
    code = "active_booking_exists"
    default_message = "You already have an active booking"


class StaleStateError(BookingConflictError):
    """Raised when the booking moved on before this request could apply."""
    code = "stale_state"
    default_message = "This booking is no longer available"


class AlreadyTerminalError(BookingConflictError):
    """Raised when the booking is already completed, cancelled or expired."""
    code = "already_terminal"
    default_message = "Booking is already closed"


class RatingAlreadySubmittedError(BookingConflictError):
    """Raised on a second rating attempt for the same booking."""
    code = "already_rated"
    default_message = "Trip already rated"


# ---------------------- Expiry / geofence / authorization ----------------------

class BookingExpiredError(BookingError):
    """Raised when a pending booking's response window has elapsed."""
    code = "expired"
    status_code = 410
    default_message = "This booking has expired"


class GeofenceError(BookingError):
    code = "geofence"
    status_code = 422
    default_message = "Location check failed"


class TooFarFromDestinationError(GeofenceError):
    """Raised when completion is attempted too far from the destination."""
    code = "too_far_from_destination"

    def __init__(self, distance_meters: float, radius_meters: float):
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters
        super().__init__(
            f"You must be within {radius_meters:g}m of destination to complete. "
            f"Current distance: {round(distance_meters)}m",
            distance_meters=round(distance_meters, 1),
            radius_meters=radius_meters,
        )


class BookingAuthorizationError(BookingError):
    """Raised when the caller is not a party allowed to act on the booking."""
    code = "not_authorized"
    status_code = 403
    default_message = "Not authorized"
