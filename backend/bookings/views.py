from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from services.booking_management import (
    BookingError,
    cancel_booking,
    complete_trip,
    get_booking_for_viewer,
)
from .responses import booking_error_response, booking_payload
from .serializers import (
    BookingSerializer,
    BookingCancelSerializer,
    CompleteTripSerializer,
)


# ==================== Shared Booking APIs ====================

class BookingDetailView(APIView):
    """
    GET: Booking detail for its passenger, its driver, operators and admins.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, booking_id: int):
        try:
            booking = get_booking_for_viewer(booking_id, request.user)
        except BookingError as exc:
            return booking_error_response(exc)

        serializer = BookingSerializer(booking, context={"request": request})
        return Response({"success": True, "booking": serializer.data})


class BookingCompleteView(APIView):
    """
    POST: Passenger or driver confirms the trip is done.

    Body (optional): {"latitude": 14.6, "longitude": 121.0}
    Without a location the destination geofence is skipped.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, booking_id: int):
        serializer = CompleteTripSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = complete_trip(booking_id, request.user, location=serializer.to_location())
        except BookingError as exc:
            return booking_error_response(exc)

        return Response(booking_payload(result, BookingSerializer, request), status=status.HTTP_200_OK)


class BookingCancelView(APIView):
    """
    POST: Cancel an active booking (passenger, assigned driver or admin).
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, booking_id: int):
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = cancel_booking(booking_id, request.user, reason=serializer.validated_data["reason"])
        except BookingError as exc:
            return booking_error_response(exc)

        return Response(booking_payload(result, BookingSerializer, request))
