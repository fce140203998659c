import logging
from typing import List, Optional, Tuple

from bookings.models import Booking
from common.clock import Clock, get_clock
from common.utils.geo import calculate_distance
from services.booking_management import BookingRepository, BookingValidationError, booking_setting

logger = logging.getLogger(__name__)

MAX_NEARBY_RADIUS_KM = 50


# POLLING-BASED NEARBY BOOKINGS
def find_nearby_pending_bookings(
    lat,
    lon,
    radius_km: Optional[float] = None,
    clock: Optional[Clock] = None,
    repository: Optional[BookingRepository] = None,
) -> List[Tuple[Booking, float]]:
    """
    Find pending, unexpired bookings whose pickup is within ``radius_km``.

    A bounding box narrows the query in the database; haversine distance
    then filters the box down to the circle. Nearest first.
    """
    radius_km = float(radius_km if radius_km is not None else booking_setting("NEARBY_RADIUS_KM"))
    if not 0 < radius_km <= MAX_NEARBY_RADIUS_KM:
        raise BookingValidationError(
            f"Radius must be between 0 and {MAX_NEARBY_RADIUS_KM} km", field="radius_km"
        )

    repository = repository or BookingRepository()
    now = get_clock(clock).now()
    radius_meters = radius_km * 1000

    # Annotate with distance
    bookings_with_distance = []
    for booking in repository.pending_in_box(float(lat), float(lon), radius_km, now):
        dist = calculate_distance(float(lat), float(lon),
                                  booking.pickup_latitude,
                                  booking.pickup_longitude)
        if dist <= radius_meters:
            bookings_with_distance.append((booking, dist))

    bookings_with_distance.sort(key=lambda item: item[1])
    logger.debug("Found %d pending bookings within %.1f km", len(bookings_with_distance), radius_km)
    return bookings_with_distance
