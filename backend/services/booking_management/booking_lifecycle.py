"""
Core booking lifecycle operations.

This module is the negotiation state machine for special trip bookings:

    pending     --driver accepts-->        accepted
    pending     --driver counters-->       offer_made
    pending     --expires_at passed-->     expired
    offer_made  --user accepts offer-->    accepted
    offer_made  --user declines offer-->   pending (driver/offer cleared, expiry extended)
    accepted/in_progress --user completes--> completed
    any active  --user/driver/admin cancels--> cancelled

Every transition is one conditional UPDATE through BookingRepository, so
concurrent callers cannot both win. Notifications are sent after the
transition and never affect its outcome.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Q

from bookings.models import ACTIVE_STATUSES, Booking, BookingStatus, CancelledBy
from common.clock import Clock, get_clock
from common.utils import calculate_distance
from realtime.notifications import notify_driver_event, notify_passenger_event
from realtime.notifier import Notifier
from .completion_guard import check_completion_location
from .conf import booking_setting
from .exceptions import (
    ActiveBookingExistsError,
    AlreadyTerminalError,
    BookingAuthorizationError,
    BookingExpiredError,
    BookingNotFoundError,
    StaleStateError,
)
from .params import CreateBookingParams, DriverResponseParams, Location
from .repository import BookingRepository

logger = logging.getLogger(__name__)

COMPLETABLE_STATUSES = (BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS)


@dataclass
class BookingResult:
    """Result object for booking operations."""
    success: bool
    booking: Optional[Booking] = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


# ===================== Helpers =====================

def _get_booking(repository: BookingRepository, booking_id) -> Booking:
    booking = repository.get(booking_id)
    if booking is None:
        raise BookingNotFoundError()
    return booking


def _log_transition(booking_id, old_status: str, new_status: str, actor_id=None):
    logger.info(
        "Booking %s: %s -> %s (by %s)",
        booking_id, old_status, new_status, actor_id if actor_id is not None else "system"
    )


def _raise_for_current_state(repository: BookingRepository, booking_id, now=None, notifier: Optional[Notifier] = None):
    """
    A conditional update matched no row: reload and explain why.
    Always raises.
    """
    current = repository.get(booking_id)
    if current is None:
        raise BookingNotFoundError()
    if current.status == BookingStatus.EXPIRED:
        raise BookingExpiredError()
    if now is not None and current.is_expired_at(now):
        expire_booking(current, now, repository=repository, notifier=notifier)
        raise BookingExpiredError()
    if current.is_terminal:
        raise AlreadyTerminalError(f"Booking is already {current.status}", status=current.status)
    raise StaleStateError(status=current.status)


def expire_booking(
    booking: Booking,
    now,
    repository: Optional[BookingRepository] = None,
    notifier: Optional[Notifier] = None,
) -> bool:
    """
    Move a pending booking whose window has elapsed to ``expired``.

    Returns:
        True if this call performed the transition
    """
    repository = repository or BookingRepository()
    expired = repository.compare_and_set(
        booking.id,
        BookingStatus.PENDING,
        extra_filter=Q(expires_at__lte=now),
        status=BookingStatus.EXPIRED,
    )
    if expired:
        _log_transition(booking.id, BookingStatus.PENDING, BookingStatus.EXPIRED)
        booking.status = BookingStatus.EXPIRED
        notify_passenger_event(
            "booking_expired",
            booking,
            "⌛ Booking Expired",
            "No driver accepted your special trip in time",
            notifier=notifier,
        )
    return expired


# ===================== Passenger Operations =====================

def get_active_booking(
    user,
    clock: Optional[Clock] = None,
    repository: Optional[BookingRepository] = None,
    notifier: Optional[Notifier] = None,
) -> Optional[Booking]:
    """
    Get the passenger's current active booking.

    A pending booking found past its expiry is expired on the spot and
    reported as no active booking.
    """
    repository = repository or BookingRepository()
    booking = repository.active_for_user(user.pk)
    if booking is None:
        return None

    now = get_clock(clock).now()
    if booking.is_expired_at(now):
        expire_booking(booking, now, repository=repository, notifier=notifier)
        return None
    return booking


def create_booking(
    user,
    params: CreateBookingParams,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> BookingResult:
    """
    Create a new special trip booking and broadcast it to drivers.

    Args:
        user: User model instance (passenger)
        params: Validated pickup/destination/fare input

    Returns:
        BookingResult with the created booking

    Raises:
        ActiveBookingExistsError: If the passenger already has an active booking
    """
    repository = repository or BookingRepository()
    now = get_clock(clock).now()

    # A stale pending booking must not block a new request
    if get_active_booking(user, clock=clock, repository=repository, notifier=notifier) is not None:
        raise ActiveBookingExistsError()

    user_location = params.user_location or params.pickup
    booking = Booking(
        user=user,
        pickup_latitude=params.pickup.latitude,
        pickup_longitude=params.pickup.longitude,
        pickup_address=params.pickup.address,
        destination_latitude=params.destination.latitude,
        destination_longitude=params.destination.longitude,
        destination_address=params.destination.address,
        user_latitude_at_booking=user_location.latitude,
        user_longitude_at_booking=user_location.longitude,
        preferred_fare=params.preferred_fare,
        estimated_distance=round(calculate_distance(
            params.pickup.latitude,
            params.pickup.longitude,
            params.destination.latitude,
            params.destination.longitude,
        )),
        status=BookingStatus.PENDING,
        created_at=now,
        expires_at=now + timedelta(minutes=booking_setting("PENDING_TTL_MINUTES")),
    )

    try:
        repository.insert(booking)
    except IntegrityError:
        # Lost a race against a concurrent create for the same passenger
        raise ActiveBookingExistsError()

    logger.info("Booking %s created by user %s (fare=%s)", booking.id, user.pk, booking.preferred_fare)

    from services.dispatch import broadcast_new_booking

    try:
        notified = broadcast_new_booking(booking, notifier=notifier, repository=repository)
    except Exception:
        logger.exception("Driver broadcast failed for booking_id=%s", booking.id)
        notified = []

    return BookingResult(
        success=True,
        booking=booking,
        message="Booking created successfully",
        extra={"drivers_notified": len(notified)},
    )


def respond_to_offer(
    booking_id,
    user,
    accepted: bool,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> BookingResult:
    """
    Passenger accepts or declines the driver's counter offer.

    Declining puts the booking back to ``pending`` for other drivers, clears
    the driver and offer, and extends the expiry. The declined driver is
    still told about it.
    """
    repository = repository or BookingRepository()
    booking = _get_booking(repository, booking_id)

    if booking.user_id != user.pk:
        raise BookingAuthorizationError()

    if booking.status != BookingStatus.OFFER_MADE:
        if booking.is_terminal:
            raise AlreadyTerminalError(f"Booking is already {booking.status}", status=booking.status)
        raise StaleStateError("No pending offer to respond to", status=booking.status)

    now = get_clock(clock).now()
    offering_driver_id = booking.driver_id

    if accepted:
        changes = dict(
            status=BookingStatus.ACCEPTED,
            agreed_fare=booking.driver_offer_amount,
            accepted_at=now,
        )
    else:
        changes = dict(
            status=BookingStatus.PENDING,
            driver=None,
            driver_offer_amount=None,
            driver_offer_at=None,
            driver_offer_message="",
            expires_at=now + timedelta(minutes=booking_setting("DECLINE_EXTENSION_MINUTES")),
        )

    if not repository.compare_and_set(
        booking.id,
        BookingStatus.OFFER_MADE,
        expected_version=booking.version,
        **changes,
    ):
        _raise_for_current_state(repository, booking.id)

    _log_transition(booking.id, BookingStatus.OFFER_MADE, changes["status"], user.pk)
    booking = repository.get(booking.id)

    if accepted:
        notify_driver_event(
            "offer_accepted",
            booking,
            offering_driver_id,
            "✅ Offer Accepted!",
            f"Passenger accepted your fare of ₱{booking.agreed_fare}",
            notifier=notifier,
        )
    else:
        notify_driver_event(
            "offer_declined",
            booking,
            offering_driver_id,
            "❌ Offer Declined",
            "The passenger declined your offer",
            notifier=notifier,
        )

    return BookingResult(
        success=True,
        booking=booking,
        message="Offer accepted" if accepted else "Offer declined",
        extra={"declined_driver_id": None if accepted else offering_driver_id},
    )


# ===================== Driver Operations =====================

def driver_respond(
    booking_id,
    driver,
    params: DriverResponseParams,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> BookingResult:
    """
    Driver accepts a pending booking at the passenger's fare, or counters.

    Args:
        booking_id: ID of the booking
        driver: User model instance (driver)
        params: accept flag / counter offer / message

    Returns:
        BookingResult with the updated booking

    Raises:
        StaleStateError: Another driver (or a cancel) got there first
        BookingExpiredError: The booking's window has elapsed
    """
    repository = repository or BookingRepository()

    if getattr(driver, "role", None) != "driver":
        raise BookingAuthorizationError("Only drivers can respond to bookings")

    booking = _get_booking(repository, booking_id)

    if booking.user_id == driver.pk:
        raise BookingAuthorizationError("You cannot respond to your own booking")

    if booking.status == BookingStatus.EXPIRED:
        raise BookingExpiredError()
    if booking.status != BookingStatus.PENDING:
        raise StaleStateError(status=booking.status)

    now = get_clock(clock).now()
    if now >= booking.expires_at:
        expire_booking(booking, now, repository=repository, notifier=notifier)
        raise BookingExpiredError()

    if params.is_counter_offer:
        changes = dict(
            status=BookingStatus.OFFER_MADE,
            driver=driver,
            driver_offer_amount=params.counter_offer,
            driver_offer_at=now,
            driver_offer_message=params.message,
        )
    else:
        changes = dict(
            status=BookingStatus.ACCEPTED,
            driver=driver,
            agreed_fare=booking.preferred_fare,
            accepted_at=now,
        )

    if not repository.compare_and_set(
        booking.id,
        BookingStatus.PENDING,
        extra_filter=Q(expires_at__gt=now),
        **changes,
    ):
        _raise_for_current_state(repository, booking.id, now=now, notifier=notifier)

    _log_transition(booking.id, BookingStatus.PENDING, changes["status"], driver.pk)
    booking = repository.get(booking.id)
    driver_name = driver.display_name

    if params.is_counter_offer:
        notify_passenger_event(
            "driver_offer",
            booking,
            "💰 Counter Offer Received!",
            f"Driver {driver_name} offers ₱{booking.driver_offer_amount} for your trip",
            extra={"offerAmount": booking.driver_offer_amount},
            notifier=notifier,
        )
        message = "Counter offer sent"
    else:
        notify_passenger_event(
            "booking_accepted",
            booking,
            "✅ Booking Accepted!",
            f"Driver {driver_name} accepted your booking at ₱{booking.agreed_fare}",
            notifier=notifier,
        )
        message = "Booking accepted"

    return BookingResult(success=True, booking=booking, message=message)


# ===================== Shared Operations =====================

@transaction.atomic
def complete_trip(
    booking_id,
    caller,
    location: Optional[Location] = None,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> BookingResult:
    """
    Confirm trip completion, gated by the destination geofence.

    The passenger's confirmation completes the trip and bumps their trip
    counter; the driver's confirmation is recorded and the passenger is
    prompted to confirm.
    """
    repository = repository or BookingRepository()
    booking = _get_booking(repository, booking_id)

    is_user = booking.user_id == caller.pk
    is_driver = booking.driver_id is not None and booking.driver_id == caller.pk
    if not is_user and not is_driver:
        raise BookingAuthorizationError()

    if booking.status not in COMPLETABLE_STATUSES:
        if booking.is_terminal:
            raise AlreadyTerminalError(f"Booking is already {booking.status}", status=booking.status)
        raise StaleStateError("Trip cannot be completed in current status", status=booking.status)

    distance = check_completion_location(booking, location)

    now = get_clock(clock).now()
    changes: Dict[str, Any] = {}
    if location is not None:
        changes.update(completion_latitude=location.latitude, completion_longitude=location.longitude)

    extra_filter = None
    if is_user:
        changes.update(
            status=BookingStatus.COMPLETED,
            user_confirmed_completion=True,
            completed_at=now,
        )
    else:
        changes.update(driver_confirmed_completion=True)
        extra_filter = Q(driver_id=caller.pk)

    if not repository.compare_and_set(
        booking.id,
        COMPLETABLE_STATUSES,
        extra_filter=extra_filter,
        **changes,
    ):
        _raise_for_current_state(repository, booking.id)

    completed = is_user
    if completed:
        repository.increment_trip_count(booking.user_id)
        _log_transition(booking.id, booking.status, BookingStatus.COMPLETED, caller.pk)
    else:
        logger.info("Booking %s: driver %s confirmed completion", booking.id, caller.pk)

    booking = repository.get(booking.id)

    if completed:
        notify_driver_event(
            "trip_completed",
            booking,
            booking.driver_id,
            "✅ Trip Completed!",
            "The passenger has confirmed trip completion",
            notifier=notifier,
        )
        message = "Trip completed successfully"
    else:
        notify_passenger_event(
            "trip_completion_requested",
            booking,
            "🏁 Trip Completed?",
            "The driver has marked the trip as completed. Please confirm.",
            notifier=notifier,
        )
        message = "Completion confirmed. Waiting for passenger confirmation."

    return BookingResult(
        success=True,
        booking=booking,
        message=message,
        extra={
            "completed": completed,
            "distance_to_destination": round(distance, 1) if distance is not None else None,
        },
    )


def cancel_booking(
    booking_id,
    caller,
    reason: str = "",
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> BookingResult:
    """
    Cancel a booking from any active state.

    Allowed for the passenger, the assigned driver, or an administrative
    caller (recorded as cancelled by ``system``).
    """
    repository = repository or BookingRepository()
    booking = _get_booking(repository, booking_id)

    is_user = booking.user_id == caller.pk
    is_driver = booking.driver_id is not None and booking.driver_id == caller.pk
    is_admin = getattr(caller, "is_administrative", False)
    if not (is_user or is_driver or is_admin):
        raise BookingAuthorizationError()

    if booking.is_terminal:
        raise AlreadyTerminalError(f"Booking cannot be cancelled, it is already {booking.status}", status=booking.status)

    if is_user:
        cancelled_by = CancelledBy.USER
    elif is_driver:
        cancelled_by = CancelledBy.DRIVER
    else:
        cancelled_by = CancelledBy.SYSTEM

    # A driver may only cancel while still assigned
    extra_filter = Q(driver_id=caller.pk) if cancelled_by == CancelledBy.DRIVER else None

    now = get_clock(clock).now()
    if not repository.compare_and_set(
        booking.id,
        ACTIVE_STATUSES,
        extra_filter=extra_filter,
        status=BookingStatus.CANCELLED,
        cancelled_by=cancelled_by,
        cancellation_reason=reason or "",
        cancelled_at=now,
    ):
        _raise_for_current_state(repository, booking.id)

    _log_transition(booking.id, booking.status, BookingStatus.CANCELLED, caller.pk)
    had_driver = booking.driver_id is not None
    booking = repository.get(booking.id)

    if cancelled_by != CancelledBy.DRIVER and had_driver:
        notify_driver_event(
            "booking_cancelled",
            booking,
            booking.driver_id,
            "❌ Booking Cancelled",
            "The passenger cancelled the booking" if is_user else "The booking was cancelled",
            notifier=notifier,
        )
    if cancelled_by != CancelledBy.USER:
        notify_passenger_event(
            "booking_cancelled",
            booking,
            "❌ Booking Cancelled",
            "The driver cancelled the booking" if is_driver else "Your booking was cancelled",
            notifier=notifier,
        )

    return BookingResult(
        success=True,
        booking=booking,
        message="Booking cancelled",
        extra={"cancelled_by": cancelled_by, "was_assigned": had_driver},
    )


def get_booking_for_viewer(booking_id, viewer, repository: Optional[BookingRepository] = None) -> Booking:
    """Booking detail, visible to its passenger, its driver, operators and admins."""
    repository = repository or BookingRepository()
    booking = _get_booking(repository, booking_id)

    allowed = (
        booking.user_id == viewer.pk
        or (booking.driver_id is not None and booking.driver_id == viewer.pk)
        or getattr(viewer, "role", None) in ("admin", "operator")
        or viewer.is_staff
    )
    if not allowed:
        raise BookingAuthorizationError("Not authorized to view this booking")
    return booking
