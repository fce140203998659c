"""
Read-only view of drivers that can be notified about new bookings.

A driver is eligible when role == 'driver', the account is active and a
notification address is registered. There is no live presence tracking, so
online/offline status plays no part.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from django.contrib.auth import get_user_model

User = get_user_model()


@dataclass(frozen=True)
class DirectoryEntry:
    driver_id: int
    display_name: str
    notification_address: str


def eligible_drivers_queryset():
    return (
        User.objects.filter(role="driver", is_active=True, fcm_token__isnull=False)
        .exclude(fcm_token="")
        .order_by("id")
    )


def iter_eligible_drivers(batch_size: int = 300, exclude_user_id: Optional[int] = None) -> Iterator[DirectoryEntry]:
    """Yield eligible drivers in id order, fetching ``batch_size`` rows at a time."""
    last_id = 0
    while True:
        qs = eligible_drivers_queryset().filter(id__gt=last_id)
        if exclude_user_id is not None:
            qs = qs.exclude(id=exclude_user_id)
        batch = list(qs.only("id", "username", "first_name", "last_name", "fcm_token")[:batch_size])
        if not batch:
            break

        for driver in batch:
            yield DirectoryEntry(
                driver_id=driver.id,
                display_name=driver.display_name,
                notification_address=driver.fcm_token,
            )

        last_id = batch[-1].id
