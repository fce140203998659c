"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - booking_management: Booking negotiation state machine
    - dispatch: Driver directory and new-booking broadcast
    - ratings: Post-trip ratings and driver aggregates
"""

# Expose commonly used functions at package level
from .booking_management import (
    create_booking,
    driver_respond,
    respond_to_offer,
    complete_trip,
    cancel_booking,
    get_active_booking,
    get_booking_for_viewer,
    BookingError,
    BookingNotFoundError,
    ActiveBookingExistsError,
    StaleStateError,
    AlreadyTerminalError,
    BookingExpiredError,
    TooFarFromDestinationError,
    BookingAuthorizationError,
)
from .dispatch import broadcast_new_booking
from .ratings import rate_booking

__all__ = [
    # Booking management
    "create_booking",
    "driver_respond",
    "respond_to_offer",
    "complete_trip",
    "cancel_booking",
    "get_active_booking",
    "get_booking_for_viewer",
    # Dispatch
    "broadcast_new_booking",
    # Ratings
    "rate_booking",
    # Exceptions
    "BookingError",
    "BookingNotFoundError",
    "ActiveBookingExistsError",
    "StaleStateError",
    "AlreadyTerminalError",
    "BookingExpiredError",
    "TooFarFromDestinationError",
    "BookingAuthorizationError",
]
