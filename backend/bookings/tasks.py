"""Celery tasks for booking-related background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def expire_stale_bookings_task(batch_size=None):
    """
    Periodic sweep that expires pending bookings past their window.

    Scheduled by CELERY_BEAT_SCHEDULE every EXPIRY_SWEEP_SECONDS.
    """
    from bookings.services.booking_expiry import expire_stale_bookings

    expired = expire_stale_bookings(batch_size=batch_size)
    if expired:
        logger.info("Expiry sweep expired %d bookings", expired)
    else:
        logger.debug("Expiry sweep found nothing to expire")
    return expired
