"""
Broadcast a newly created booking to every eligible driver.

One push per driver carrying the booking id, pickup coordinates and fare.
A failed push is logged and skipped; the ids of all drivers we attempted are
recorded on the booking for auditing only (any driver may still respond).
"""

import logging
from typing import List, Optional

from realtime.notifications import deliver
from realtime.notifier import Notifier, get_notifier
from services.booking_management.repository import BookingRepository
from .directory import iter_eligible_drivers

logger = logging.getLogger(__name__)


def build_new_booking_message(booking):
    title = "🚗 New Special Trip Request!"
    body = f"A passenger nearby needs a ride. Fare offered: ₱{booking.preferred_fare}"
    data = {
        "type": "new_booking",
        "bookingId": booking.id,
        "pickupLat": booking.pickup_latitude,
        "pickupLon": booking.pickup_longitude,
        "fare": booking.preferred_fare,
    }
    return title, body, data


def broadcast_new_booking(
    booking,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> List[int]:
    """
    Notify all eligible drivers about ``booking``.

    Returns:
        Ids of the drivers a notification was attempted for
    """
    notifier = notifier or get_notifier()
    repository = repository or BookingRepository()
    title, body, data = build_new_booking_message(booking)

    attempted: List[int] = []
    delivered = 0
    for entry in iter_eligible_drivers(exclude_user_id=booking.user_id):
        attempted.append(entry.driver_id)
        if deliver(entry.notification_address, title, body, data, notifier=notifier):
            delivered += 1
        else:
            logger.warning("Failed to notify driver %s about booking %s", entry.driver_id, booking.id)

    repository.record_notified_drivers(booking, attempted)

    logger.info(
        "Notified %d/%d drivers about booking %s",
        delivered, len(attempted), booking.id
    )
    return attempted
