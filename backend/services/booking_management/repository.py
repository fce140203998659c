"""
Durable access to Booking rows.

Every state change goes through ``compare_and_set``: a single conditional
UPDATE keyed on the booking id, the expected status(es) and optionally the
version the caller read. The affected-row count tells the caller whether its
precondition still held; two writers racing on the same row can never both
see 1.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import ExpressionWrapper, F, FloatField, Q
from django.utils import timezone

from bookings.models import ACTIVE_STATUSES, Booking, BookingStatus
from common.utils import bounding_box, longitude_ranges

User = get_user_model()
logger = logging.getLogger(__name__)


class BookingRepository:
    """ORM-backed store for bookings and the driver/passenger counters they touch."""

    def __init__(self, queryset=None):
        self._queryset = queryset

    @property
    def bookings(self):
        return self._queryset if self._queryset is not None else Booking.objects.all()

    # ---------------------- Reads ----------------------

    def get(self, booking_id) -> Optional[Booking]:
        return self.bookings.select_related("user", "driver").filter(pk=booking_id).first()

    def active_for_user(self, user_id) -> Optional[Booking]:
        return (
            self.bookings.select_related("driver")
            .filter(user_id=user_id, status__in=ACTIVE_STATUSES)
            .order_by("-created_at")
            .first()
        )

    def has_active_booking(self, user_id) -> bool:
        return self.bookings.filter(user_id=user_id, status__in=ACTIVE_STATUSES).exists()

    def for_user(self, user_id, statuses: Optional[Sequence[str]] = None):
        qs = self.bookings.select_related("driver").filter(user_id=user_id)
        if statuses:
            qs = qs.filter(status__in=statuses)
        return qs.order_by("-created_at")

    def for_driver(self, driver_id, statuses: Optional[Sequence[str]] = None):
        qs = self.bookings.select_related("user").filter(driver_id=driver_id)
        if statuses:
            qs = qs.filter(status__in=statuses)
        return qs.order_by("-created_at")

    def pending_in_box(self, lat: float, lon: float, radius_km: float, now):
        """Pending, unexpired bookings whose pickup lies inside the bounding box."""
        min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon, radius_km)

        # a box crossing the antimeridian becomes two longitude ranges
        in_lon = Q()
        for low, high in longitude_ranges(min_lon, max_lon):
            in_lon |= Q(pickup_longitude__gte=low, pickup_longitude__lte=high)

        return (
            self.bookings.select_related("user")
            .filter(
                in_lon,
                status=BookingStatus.PENDING,
                expires_at__gt=now,
                pickup_latitude__gte=min_lat,
                pickup_latitude__lte=max_lat,
            )
            .order_by("-created_at")
        )

    def stale_pending_ids(self, now, limit: int = 500) -> List[int]:
        return list(
            self.bookings.filter(status=BookingStatus.PENDING, expires_at__lt=now)
            .order_by("expires_at")
            .values_list("id", flat=True)[:limit]
        )

    # ---------------------- Writes ----------------------

    def insert(self, booking: Booking) -> Booking:
        """
        Insert a new booking. The partial unique constraint on active bookings
        turns a concurrent duplicate into IntegrityError, which callers map to
        ActiveBookingExistsError.
        """
        with transaction.atomic():
            booking.save(force_insert=True)
        return booking

    def compare_and_set(
        self,
        booking_id,
        expected_status,
        expected_version: Optional[int] = None,
        extra_filter: Optional[Q] = None,
        **changes,
    ) -> bool:
        """
        Apply ``changes`` only if the row still matches. Returns True when
        exactly this call performed the update.
        """
        if isinstance(expected_status, str):
            statuses: Iterable[str] = [expected_status]
        else:
            statuses = list(expected_status)

        qs = self.bookings.filter(pk=booking_id, status__in=statuses)
        if expected_version is not None:
            qs = qs.filter(version=expected_version)
        if extra_filter is not None:
            qs = qs.filter(extra_filter)

        changes["version"] = F("version") + 1
        # update() bypasses auto_now
        changes.setdefault("updated_at", timezone.now())
        updated = qs.update(**changes)
        return updated == 1

    def record_notified_drivers(self, booking: Booking, driver_ids: Sequence[int]) -> None:
        if driver_ids:
            booking.notified_drivers.add(*driver_ids)
            self.bookings.filter(pk=booking.pk).update(updated_at=timezone.now())

    def increment_trip_count(self, user_id) -> None:
        User.objects.filter(pk=user_id).update(trip_count=F("trip_count") + 1)

    def add_driver_rating(self, driver_id, rating: int) -> bool:
        """
        Fold one rating into the driver's running mean in a single UPDATE.
        Both right-hand sides read the pre-update row.
        """
        updated = User.objects.filter(pk=driver_id).update(
            rating=ExpressionWrapper(
                (F("rating") * F("num_reviews") + float(rating)) / (F("num_reviews") + 1.0),
                output_field=FloatField(),
            ),
            num_reviews=F("num_reviews") + 1,
        )
        return updated == 1

