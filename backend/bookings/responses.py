"""HTTP mapping for booking service errors."""

import logging

from rest_framework.response import Response

from services.booking_management import BookingError

logger = logging.getLogger(__name__)


def booking_error_response(exc: BookingError) -> Response:
    """Render a BookingError as ``{"success": false, "error": <code>, ...}``."""
    if exc.status_code >= 500:
        logger.error("Booking operation failed: %s", exc)
    else:
        logger.info("Booking request rejected (%s): %s", exc.code, exc.message)
    return Response(exc.as_dict(), status=exc.status_code)


def booking_payload(result, serializer_class, request=None, **extra):
    """Standard success body for a BookingResult."""
    body = {
        "success": True,
        "message": result.message,
        "booking": serializer_class(result.booking, context={"request": request}).data,
    }
    body.update(result.extra or {})
    body.update(extra)
    return body
