"""
Driver dispatch service.

This module handles:
    - Enumerating drivers eligible for booking notifications
    - Broadcasting new bookings to those drivers
"""

from .broadcaster import broadcast_new_booking
from .directory import DirectoryEntry, eligible_drivers_queryset, iter_eligible_drivers

__all__ = [
    "broadcast_new_booking",
    "DirectoryEntry",
    "eligible_drivers_queryset",
    "iter_eligible_drivers",
]
