import logging

import redis
from channels.layers import get_channel_layer
from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from bookings.models import Booking
from bookings.tasks import expire_stale_bookings_task

logger = logging.getLogger(__name__)


def _check_database():
    Booking.objects.exists()


def _check_redis():
    # the Celery broker is the Redis instance the sweep depends on
    redis.Redis.from_url(settings.CELERY_BROKER_URL, socket_timeout=3).ping()


def _check_channels():
    if get_channel_layer() is None:
        raise RuntimeError("no channel layer configured")


def _check_celery():
    if expire_stale_bookings_task.name not in expire_stale_bookings_task.app.tasks:
        raise RuntimeError("expiry task not registered")


HEALTH_CHECKS = (
    ("database", _check_database),
    ("redis", _check_redis),
    ("channels", _check_channels),
    ("celery", _check_celery),
)


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """Reports each backing service; 503 if any of them is down."""
    services = {}
    for name, check in HEALTH_CHECKS:
        try:
            check()
            services[name] = "healthy"
        except Exception as e:
            logger.warning("Health check %s failed: %s", name, e)
            services[name] = f"unhealthy: {e}"

    healthy = all(state == "healthy" for state in services.values())
    return Response(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
