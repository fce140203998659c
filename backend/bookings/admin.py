"""Tells what to show in the Django admin interface for bookings app"""

from django.contrib import admin
from .models import Booking, Review


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Special trip booking admin"""
    list_display = ['id', 'user', 'driver', 'status', 'preferred_fare', 'agreed_fare', 'created_at', 'expires_at']
    list_filter = ['status', 'cancelled_by', 'created_at']
    search_fields = ['user__username', 'driver__username', 'pickup_address', 'destination_address']
    readonly_fields = ['version', 'created_at', 'updated_at', 'accepted_at', 'completed_at', 'cancelled_at']
    filter_horizontal = ['notified_drivers']
    date_hierarchy = 'created_at'


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("booking", "user", "driver", "rating", "created_at")
    list_filter = ("rating",)
    search_fields = ("booking__id", "driver__username", "user__username")
