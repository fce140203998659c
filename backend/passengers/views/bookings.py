# passengers/views/bookings.py

from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from ..permissions import IsPassenger
from bookings.responses import booking_error_response, booking_payload
from bookings.serializers import (
    BookingSerializer,
    BookingCreateSerializer,
    BookingListQuerySerializer,
    OfferResponseSerializer,
    RatingSerializer,
)
from services.booking_management import (
    BookingError,
    create_booking,
    get_active_booking,
    list_user_bookings,
    parse_status_filter,
    respond_to_offer,
)
from services.ratings import rate_booking


class PassengerCreateBookingView(APIView):
    """
    POST: Passenger creates a special trip booking.

    Body:
    {
        "pickup": {"latitude": 14.6, "longitude": 121.0, "address": "..."},
        "destination": {"latitude": 14.65, "longitude": 121.05, "address": "..."},
        "preferred_fare": "150.00",
        "user_location": {"latitude": ..., "longitude": ...}   // optional
    }
    """
    permission_classes = [IsAuthenticated, IsPassenger]

    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = create_booking(request.user, serializer.to_params())
        except BookingError as exc:
            return booking_error_response(exc)

        notified = result.extra["drivers_notified"]
        return Response(
            booking_payload(
                result,
                BookingSerializer,
                request,
                message=(
                    "Notifying nearby drivers..."
                    if notified
                    else "No drivers could be notified yet. Your booking stays open until it expires."
                ),
            ),
            status=status.HTTP_201_CREATED,
        )


class PassengerActiveBookingView(APIView):
    """
    GET: Passenger polling endpoint for the current active booking.
    """
    permission_classes = [IsAuthenticated, IsPassenger]

    def get(self, request):
        booking = get_active_booking(request.user)

        if not booking:
            return Response({
                "success": True,
                "has_active_booking": False,
                "booking": None,
                "message": "No active booking found",
            })

        resp = {
            "success": True,
            "has_active_booking": True,
            "booking": BookingSerializer(booking, context={"request": request}).data,
        }

        if booking.status == "pending":
            resp["message"] = "Waiting for a driver to respond..."
        elif booking.status == "offer_made":
            resp["message"] = "A driver sent you a counter offer"
        else:
            resp["message"] = "Driver is on the way!"

        return Response(resp)


class PassengerOfferResponseView(APIView):
    """
    POST: Passenger accepts or declines the driver's counter offer.

    Body: {"accepted": true}
    """
    permission_classes = [IsAuthenticated, IsPassenger]

    def post(self, request, booking_id: int):
        serializer = OfferResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = respond_to_offer(booking_id, request.user, serializer.validated_data["accepted"])
        except BookingError as exc:
            return booking_error_response(exc)

        return Response(booking_payload(result, BookingSerializer, request))


class PassengerRateBookingView(APIView):
    """
    POST: Rate the driver of a completed booking (1-5, once).
    """
    permission_classes = [IsAuthenticated, IsPassenger]

    def post(self, request, booking_id: int):
        serializer = RatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = rate_booking(booking_id, request.user, serializer.to_params())
        except BookingError as exc:
            return booking_error_response(exc)

        return Response(booking_payload(result, BookingSerializer, request))


class PassengerBookingHistoryView(APIView):
    """
    GET: Passenger's bookings, newest first.

    Query: ?page=1&limit=20&status=completed,cancelled
    """
    permission_classes = [IsAuthenticated, IsPassenger]

    def get(self, request):
        query = BookingListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        try:
            page = list_user_bookings(
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
