from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from services.booking_management import (
    CreateBookingParams,
    DriverResponseParams,
    Location,
    RatingParams,
)
from services.booking_management.history import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .models import Booking


class BookingSerializer(serializers.ModelSerializer):
    """Serializer for special trip bookings"""
    user = UserBasicSerializer(read_only=True)
    driver = UserBasicSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = ['id', 'user', 'driver', 'status',
                  'pickup_latitude', 'pickup_longitude', 'pickup_address',
                  'destination_latitude', 'destination_longitude', 'destination_address',
                  'preferred_fare', 'driver_offer_amount', 'driver_offer_message', 'driver_offer_at',
                  'agreed_fare', 'estimated_distance',
                  'user_confirmed_completion', 'driver_confirmed_completion',
                  'cancelled_by', 'cancellation_reason', 'rating', 'rating_comment',
                  'created_at', 'accepted_at', 'completed_at', 'cancelled_at', 'expires_at']
        read_only_fields = fields


class NearbyBookingSerializer(BookingSerializer):
    """Booking plus its pickup distance from the querying driver"""
    distance_meters = serializers.SerializerMethodField()

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ['distance_meters']
        read_only_fields = fields

    def get_distance_meters(self, obj):
        distance = self.context.get("distances", {}).get(obj.id)
        return round(distance) if distance is not None else None


# ---------------------- Input serializers ----------------------

class LocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    address = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")

    def to_location(self, data=None) -> Location:
        data = data if data is not None else self.validated_data
        return Location(latitude=data["latitude"], longitude=data["longitude"], address=data.get("address", ""))


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for creating special trip bookings"""
    pickup = LocationSerializer()
    destination = LocationSerializer()
    preferred_fare = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    user_location = LocationSerializer(required=False, allow_null=True)

    def to_params(self) -> CreateBookingParams:
        data = self.validated_data
        user_location = data.get("user_location")
        return CreateBookingParams(
            pickup=LocationSerializer().to_location(data["pickup"]),
            destination=LocationSerializer().to_location(data["destination"]),
            preferred_fare=data["preferred_fare"],
            user_location=LocationSerializer().to_location(user_location) if user_location else None,
        )


class DriverResponseSerializer(serializers.Serializer):
    """Driver accepts at the passenger's fare, or counters"""
    accept = serializers.BooleanField(required=False, default=False)
    counter_offer = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    message = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")

    def to_params(self) -> DriverResponseParams:
        data = self.validated_data
        return DriverResponseParams(
            accept=data["accept"],
            counter_offer=data.get("counter_offer"),
            message=data.get("message", ""),
        )


class OfferResponseSerializer(serializers.Serializer):
    accepted = serializers.BooleanField()


class CompleteTripSerializer(serializers.Serializer):
    """Optional caller location for the destination geofence"""
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)

    def validate(self, attrs):
        has_lat = attrs.get("latitude") is not None
        has_lon = attrs.get("longitude") is not None
        if has_lat != has_lon:
            raise serializers.ValidationError("Provide both latitude and longitude, or neither")
        return attrs

    def to_location(self):
        data = self.validated_data
        if data.get("latitude") is None:
            return None
        return Location(latitude=data["latitude"], longitude=data["longitude"])


class BookingCancelSerializer(serializers.Serializer):
    """Serializer for booking cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500, default="")


class RatingSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, max_length=1000, default="")
    driver_id = serializers.IntegerField(required=False, allow_null=True)

    def to_params(self) -> RatingParams:
        data = self.validated_data
        return RatingParams(
            rating=data["rating"],
            comment=data.get("comment", ""),
            driver_id=data.get("driver_id"),
        )


class BookingListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=MAX_PAGE_SIZE, required=False, default=DEFAULT_PAGE_SIZE)
    status = serializers.CharField(required=False, allow_blank=True, default="")


class NearbyQuerySerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, allow_null=True)
