"""
Notification helpers for booking events.

Resolves the recipient through IdentityLookup and hands the message to the
configured Notifier. Every helper returns True/False and logs failures; none
of them raise, so a delivery problem can never undo a booking transition.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from accounts.identity import lookup_identity
from .notifier import Notifier, get_notifier

logger = logging.getLogger(__name__)


def deliver(
    address_token: str,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
    notifier: Optional[Notifier] = None,
) -> bool:
    """Send one push; failures are logged and reported as False."""
    try:
        notifier = notifier or get_notifier()
        delivered = notifier.send(address_token, title, body, data or {})
    except Exception:
        logger.exception("Error sending notification '%s'", title)
        return False

    if not delivered:
        logger.warning("Notification '%s' was not delivered", title)
    return bool(delivered)


def notify_user(
    user_id: Optional[int],
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
    notifier: Optional[Notifier] = None,
) -> bool:
    """Push to a user by id, if they have a registered notification address."""
    if not user_id:
        return False

    try:
        identity = lookup_identity(user_id)
    except Exception:
        logger.exception("Failed to resolve notification address for user %s", user_id)
        return False

    if identity is None or not identity.notification_address:
        logger.debug("User %s has no notification address; skipping '%s'", user_id, title)
        return False

    return deliver(identity.notification_address, title, body, data, notifier=notifier)


# ---------------------- Booking Event Notifications ----------------------

def _booking_payload(event_type: str, booking, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "type": event_type,
        "bookingId": booking.id,
        "status": booking.status,
        **(extra or {}),
    }


def notify_passenger_event(
    event_type: str,
    booking,
    title: str,
    body: str,
    extra: Dict[str, Any] = None,
    notifier: Optional[Notifier] = None,
) -> bool:
    """
    Send a booking event to the passenger who owns the booking.
    
    Args:
        event_type: driver_offer, booking_accepted, trip_completed, booking_cancelled, booking_expired
        booking: Booking model instance
        title: Notification title
        body: Notification body
        extra: Additional payload data
    
    Returns:
        True if sent successfully, False otherwise
    """
    return notify_user(
        booking.user_id, title, body, _booking_payload(event_type, booking, extra), notifier=notifier
    )


def notify_driver_event(
    event_type: str,
    booking,
    driver_id: int | None,
    title: str,
    body: str,
    extra: Dict[str, Any] = None,
    notifier: Optional[Notifier] = None,
) -> bool:
    """
    Send a booking event to a specific driver.

    ``driver_id`` is passed explicitly because the booking may already have
    been detached from the driver (declined offer).
    """
    return notify_user(
        driver_id, title, body, _booking_payload(event_type, booking, extra), notifier=notifier
    )
