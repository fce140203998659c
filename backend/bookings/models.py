from django.conf import settings
from django.db import models
from django.db.models import Q


class BookingStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    OFFER_MADE = 'offer_made', 'Offer Made'
    ACCEPTED = 'accepted', 'Accepted'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    EXPIRED = 'expired', 'Expired'


ACTIVE_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.OFFER_MADE,
    BookingStatus.ACCEPTED,
    BookingStatus.IN_PROGRESS,
)
TERMINAL_STATUSES = (
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.EXPIRED,
)


class CancelledBy(models.TextChoices):
    USER = 'user', 'User'
    DRIVER = 'driver', 'Driver'
    SYSTEM = 'system', 'System'


class Booking(models.Model):
    """A special trip request, from creation to a terminal state."""

    # Parties
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookings'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='driver_bookings'
    )

    # Pickup location
    pickup_latitude = models.FloatField()
    pickup_longitude = models.FloatField()
    pickup_address = models.CharField(max_length=255, blank=True, default='')

    # Destination
    destination_latitude = models.FloatField()
    destination_longitude = models.FloatField()
    destination_address = models.CharField(max_length=255, blank=True, default='')

    # Where the passenger was when booking (defaults to pickup)
    user_latitude_at_booking = models.FloatField(null=True, blank=True)
    user_longitude_at_booking = models.FloatField(null=True, blank=True)

    # Economics
    preferred_fare = models.DecimalField(max_digits=10, decimal_places=2)
    driver_offer_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    driver_offer_at = models.DateTimeField(null=True, blank=True)
    driver_offer_message = models.TextField(blank=True, default='')
    agreed_fare = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Straight-line pickup -> destination, in meters
    estimated_distance = models.PositiveIntegerField(null=True, blank=True)

    # Status & optimistic concurrency counter
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING,
        db_index=True,
    )
    version = models.PositiveIntegerField(default=0)

    # Completion tracking
    user_confirmed_completion = models.BooleanField(default=False)
    driver_confirmed_completion = models.BooleanField(default=False)
    completion_latitude = models.FloatField(null=True, blank=True)
    completion_longitude = models.FloatField(null=True, blank=True)

    # Cancellation
    cancelled_by = models.CharField(max_length=10, choices=CancelledBy.choices, null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default='')

    # Rating (set once, after completion)
    rating = models.PositiveSmallIntegerField(null=True, blank=True)
    rating_comment = models.TextField(blank=True, default='')

    # Drivers pushed about this booking at creation (audit only)
    notified_drivers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name='notified_bookings'
    )

    # Timestamps
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='bookings_user_id_0c1bb5_idx'),
            models.Index(fields=['driver', '-created_at'], name='bookings_driver__4b8f2e_idx'),
            models.Index(fields=['pickup_latitude', 'pickup_longitude'], name='bookings_pickup__9d3a71_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=Q(status__in=[s.value for s in ACTIVE_STATUSES]),
                name='one_active_booking_per_user',
            ),
            models.CheckConstraint(
                condition=Q(preferred_fare__gte=0),
                name='preferred_fare_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(rating__isnull=True) | Q(rating__gte=1, rating__lte=5),
                name='rating_between_1_and_5',
            ),
        ]

    def __str__(self):
        return f"Booking #{self.id} - {self.user} - {self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def is_expired_at(self, now) -> bool:
        return self.status == BookingStatus.PENDING and now >= self.expires_at


class Review(models.Model):
    """Immutable record of a passenger's rating for a completed booking."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_given'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_received'
    )
    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name='review'
    )
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']

    def __str__(self):
        return f"Review #{self.id} - Booking {self.booking_id} -> {self.driver} ({self.rating})"
