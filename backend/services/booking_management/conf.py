"""Booking engine tunables, read from ``settings.BOOKING_ENGINE``."""

from django.conf import settings

DEFAULTS = {
    "PENDING_TTL_MINUTES": 30,
    "DECLINE_EXTENSION_MINUTES": 5,
    "COMPLETION_RADIUS_METERS": 300,
    "NEARBY_RADIUS_KM": 5,
    "EXPIRY_SWEEP_SECONDS": 60,
    "EXPIRY_BATCH_SIZE": 500,
    "NOTIFIER_BACKEND": "realtime.notifier.ChannelLayerNotifier",
}


def booking_setting(name: str):
    overrides = getattr(settings, "BOOKING_ENGINE", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
