"""Geofence gate for trip completion."""

import logging
from typing import Optional

from common.utils import calculate_distance
from .conf import booking_setting
from .exceptions import TooFarFromDestinationError
from .params import Location

logger = logging.getLogger(__name__)


def check_completion_location(booking, caller_location: Optional[Location], radius_meters: Optional[float] = None) -> Optional[float]:
    """
    Verify the caller is close enough to the destination to complete.

    Without a location the check is skipped (degraded GPS) and None is
    returned; otherwise the measured distance in meters is returned.

    Raises:
        TooFarFromDestinationError: If farther than the completion radius
    """
    if caller_location is None:
        logger.info("Completion of booking %s without location; geofence skipped", booking.id)
        return None

    radius = float(radius_meters if radius_meters is not None else booking_setting("COMPLETION_RADIUS_METERS"))
    distance = calculate_distance(
        caller_location.latitude,
        caller_location.longitude,
        booking.destination_latitude,
        booking.destination_longitude,
    )
    if distance > radius:
        raise TooFarFromDestinationError(distance_meters=distance, radius_meters=radius)
    return distance
