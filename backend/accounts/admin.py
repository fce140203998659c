from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "role", "phone_number", "trip_count", "rating", "num_reviews", "is_active")
    list_filter = ("role", "is_active", "is_staff")
    search_fields = ("username", "email", "phone_number")
    ordering = ("username",)

    # rating aggregate and trip counter are maintained by the booking services
    readonly_fields = ("trip_count", "rating", "num_reviews")

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Trips", {"fields": ("role", "phone_number", "fcm_token", "trip_count", "rating", "num_reviews")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Trips", {"fields": ("role", "phone_number")}),
    )
