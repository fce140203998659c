# passengers/urls.py

from django.urls import path

from .views.bookings import (
    PassengerCreateBookingView,
    PassengerActiveBookingView,
    PassengerOfferResponseView,
    PassengerRateBookingView,
    PassengerBookingHistoryView,
)

app_name = "passengers"

urlpatterns = [
    path("bookings/", PassengerCreateBookingView.as_view(), name="create-booking"),
    path("bookings/active/", PassengerActiveBookingView.as_view(), name="active-booking"),
    path("bookings/history/", PassengerBookingHistoryView.as_view(), name="booking-history"),
    path("bookings/<int:booking_id>/offer-response/", PassengerOfferResponseView.as_view(), name="offer-response"),
    path("bookings/<int:booking_id>/rate/", PassengerRateBookingView.as_view(), name="rate-booking"),
]
