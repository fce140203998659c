"""
Sweep for pending bookings whose response window has elapsed.

Runs from the Celery beat schedule (see bookings/tasks.py) and from the
``expire_bookings`` management command. Each booking is expired with its own
conditional update, so a sweep racing a driver's accept never overwrites it.
"""

import logging
from typing import Optional

from common.clock import Clock, get_clock
from realtime.notifier import Notifier
from services.booking_management import BookingRepository, booking_setting, expire_booking

logger = logging.getLogger(__name__)


def expire_stale_bookings(
    clock: Optional[Clock] = None,
    batch_size: Optional[int] = None,
    notifier: Optional[Notifier] = None,
    repository: Optional[BookingRepository] = None,
) -> int:
    """
    Expire every pending booking with ``expires_at`` in the past.

    Returns the number of bookings this sweep actually expired.
    """
    repository = repository or BookingRepository()
    now = get_clock(clock).now()
    batch_size = batch_size or booking_setting("EXPIRY_BATCH_SIZE")

    expired_count = 0
    while True:
        stale_ids = repository.stale_pending_ids(now, limit=batch_size)
        if not stale_ids:
            break

        progressed = 0
        for booking_id in stale_ids:
            booking = repository.get(booking_id)
            if booking is None:
                continue
            if expire_booking(booking, now, repository=repository, notifier=notifier):
                expired_count += 1
                progressed += 1

        # Everything in this batch was claimed by someone else
        if progressed == 0 or len(stale_ids) < batch_size:
            break

    if expired_count:
        logger.info("Expired %d stale bookings", expired_count)

    return expired_count
