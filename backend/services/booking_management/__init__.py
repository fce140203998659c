"""
Booking management service - Core booking negotiation operations.

This module handles:
    - Creating special trip bookings
    - Driver accept / counter offer
    - Passenger accept / decline of counter offers
    - Geofenced trip completion
    - Cancelling and expiring bookings
"""

from .booking_lifecycle import (
    BookingResult,
    create_booking,
    driver_respond,
    respond_to_offer,
    complete_trip,
    cancel_booking,
    expire_booking,
    get_active_booking,
    get_booking_for_viewer,
)
from .completion_guard import check_completion_location
from .history import BookingPage, list_driver_bookings, list_user_bookings, parse_status_filter
from .conf import booking_setting
from .params import CreateBookingParams, DriverResponseParams, Location, RatingParams
from .repository import BookingRepository

from .exceptions import (
    BookingError,
    BookingNotFoundError,
    BookingValidationError,
    InvalidRequestError,
    BookingConflictError,
    ActiveBookingExistsError,
    StaleStateError,
    AlreadyTerminalError,
    RatingAlreadySubmittedError,
    BookingExpiredError,
    GeofenceError,
    TooFarFromDestinationError,
    BookingAuthorizationError,
)

__all__ = [
    # Lifecycle operations
    "BookingResult",
    "create_booking",
    "driver_respond",
    "respond_to_offer",
    "complete_trip",
    "cancel_booking",
    "expire_booking",
    "get_active_booking",
    "get_booking_for_viewer",
    "check_completion_location",
    # Listings
    "BookingPage",
    "list_user_bookings",
    "list_driver_bookings",
    "parse_status_filter",
    # Inputs / storage / config
    "CreateBookingParams",
    "DriverResponseParams",
    "Location",
    "RatingParams",
    "BookingRepository",
    "booking_setting",
    # Exceptions
    "BookingError",
    "BookingNotFoundError",
    "BookingValidationError",
    "InvalidRequestError",
    "BookingConflictError",
    "ActiveBookingExistsError",
    "StaleStateError",
    "AlreadyTerminalError",
    "RatingAlreadySubmittedError",
    "BookingExpiredError",
    "GeofenceError",
    "TooFarFromDestinationError",
    "BookingAuthorizationError",
]
