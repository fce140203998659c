from django.urls import path
from .views import (
    NearbyBookingsForDriverView,
    DriverRespondView,
    DriverBookingHistoryView,
)

app_name = "drivers"

urlpatterns = [
    path("bookings/nearby/", NearbyBookingsForDriverView.as_view(), name="nearby-bookings"),
    path("bookings/history/", DriverBookingHistoryView.as_view(), name="booking-history"),
    path("bookings/<int:booking_id>/respond/", DriverRespondView.as_view(), name="respond"),
]
