from django.urls import path

from .views import (
    BookingDetailView,
    BookingCompleteView,
    BookingCancelView,
)

app_name = 'bookings'

urlpatterns = [
    path('<int:booking_id>/', BookingDetailView.as_view(), name='booking-detail'),
    path('<int:booking_id>/complete/', BookingCompleteView.as_view(), name='complete-booking'),
    path('<int:booking_id>/cancel/', BookingCancelView.as_view(), name='cancel-booking'),
]
