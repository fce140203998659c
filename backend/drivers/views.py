from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from bookings.responses import booking_error_response, booking_payload
from bookings.serializers import (
    BookingSerializer,
    BookingListQuerySerializer,
    DriverResponseSerializer,
    NearbyBookingSerializer,
    NearbyQuerySerializer,
)
from services.booking_management import (
    BookingError,
    driver_respond,
    list_driver_bookings,
    parse_status_filter,
)

from drivers import services
from drivers.permissions import IsDriver


#    Polling fallback; drivers are also pushed new bookings as they are created.
class NearbyBookingsForDriverView(APIView):
    """
    GET: Pending bookings near the driver.

    Query: ?latitude=14.6&longitude=121.0&radius_km=5
    """
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        serializer = NearbyQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        lat = serializer.validated_data["latitude"]
        lon = serializer.validated_data["longitude"]

        try:
            nearby = services.find_nearby_pending_bookings(lat, lon, serializer.validated_data.get("radius_km"))
        except BookingError as exc:
            return booking_error_response(exc)

        bookings = [booking for booking, _ in nearby]
        distances = {booking.id: dist for booking, dist in nearby}
        serialized = NearbyBookingSerializer(
            bookings, many=True, context={"request": request, "distances": distances}
        )

        return Response({"success": True, "bookings": serialized.data, "count": len(serialized.data)})


class DriverRespondView(APIView):
    """
    POST: Accept a pending booking at the passenger's fare, or counter.

    Body: {"accept": true} or {"counter_offer": "180.00", "message": "..."}
    """
    permission_classes = [IsAuthenticated, IsDriver]

    def post(self, request, booking_id: int):
        serializer = DriverResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = driver_respond(booking_id, request.user, serializer.to_params())
        except BookingError as exc:
            return booking_error_response(exc)

        return Response(booking_payload(result, BookingSerializer, request))


class DriverBookingHistoryView(APIView):
    """
    GET: Bookings this driver has been assigned to, newest first.

    Query: ?page=1&limit=20&status=completed
    """
    permission_classes = [IsAuthenticated, IsDriver]

    def get(self, request):
        query = BookingListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        try:
            page = list_driver_bookings(
                request.user,
                statuses=parse_status_filter(params["status"]),
                page=params["page"],
                limit=params["limit"],
            )
        except BookingError as exc:
            return booking_error_response(exc)

        serializer = BookingSerializer(page.bookings, many=True, context={"request": request})
        return Response({
            "success": True,
            "count": len(serializer.data),
            "bookings": serializer.data,
            "pagination": page.pagination(),
        })
