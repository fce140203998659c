"""
Passenger ratings of completed trips.

A booking is rated at most once. The booking row is claimed with a
conditional update on ``rating IS NULL``; only the request that wins the
claim writes the review and folds the score into the driver's aggregate.
"""

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Q

from bookings.models import BookingStatus, Review
from services.booking_management import (
    BookingAuthorizationError,
    BookingConflictError,
    BookingNotFoundError,
    BookingRepository,
    BookingResult,
    BookingValidationError,
    RatingAlreadySubmittedError,
    RatingParams,
)

logger = logging.getLogger(__name__)


@transaction.atomic
def rate_booking(
    booking_id,
    user,
    params: RatingParams,
    repository: Optional[BookingRepository] = None,
) -> BookingResult:
    """
    Record the passenger's 1-5 rating for a completed booking.

    Args:
        booking_id: ID of the booking
        user: User model instance (passenger who owns the booking)
        params: rating, optional comment, optional driver id

    Returns:
        BookingResult with the rated booking

    Raises:
        RatingAlreadySubmittedError: If the booking already carries a rating
    """
    repository = repository or BookingRepository()
    booking = repository.get(booking_id)
    if booking is None:
        raise BookingNotFoundError()

    if booking.user_id != user.pk:
        raise BookingAuthorizationError("Only the passenger can rate this trip")

    if booking.status != BookingStatus.COMPLETED:
        raise BookingConflictError("Only completed trips can be rated", status=booking.status)

    if booking.rating is not None:
        raise RatingAlreadySubmittedError()

    if booking.driver_id is None:
        raise BookingConflictError("This trip has no driver to rate")

    if params.driver_id is not None and params.driver_id != booking.driver_id:
        raise BookingValidationError("Driver does not match this booking", field="driver_id")

    claimed = repository.compare_and_set(
        booking.id,
        BookingStatus.COMPLETED,
        extra_filter=Q(rating__isnull=True),
        rating=params.rating,
        rating_comment=params.comment,
    )
    if not claimed:
        raise RatingAlreadySubmittedError()

    Review.objects.create(
        user_id=booking.user_id,
        driver_id=booking.driver_id,
        booking_id=booking.id,
        rating=params.rating,
        comment=params.comment,
    )
    repository.add_driver_rating(booking.driver_id, params.rating)

    logger.info("Booking %s rated %d by user %s", booking.id, params.rating, user.pk)

    return BookingResult(
        success=True,
        booking=repository.get(booking.id),
        message="Rating submitted successfully",
    )
