from django.contrib.auth import authenticate
from rest_framework import serializers

from .models import User

# admins and operators are created through the admin site, never self-registered
SELF_SERVICE_ROLES = ("passenger", "driver")


class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = (
            "id", "username", "first_name", "last_name", "display_name", "email",
            "role", "phone_number", "trip_count", "rating", "num_reviews",
        )
        read_only_fields = ("id", "role", "trip_count", "rating", "num_reviews")


class UserBasicSerializer(serializers.ModelSerializer):
    """
    Counterparty summary embedded in booking responses: the passenger as
    drivers see them, and the driver as passengers see them.
    """
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ("id", "username", "display_name", "phone_number", "rating", "num_reviews")


class LoginSerializer(serializers.Serializer):
    """Validates credentials; ``validated_data`` is the authenticated user."""
    username = serializers.CharField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        user = authenticate(username=attrs["username"], password=attrs["password"])
        if user is None:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    role = serializers.ChoiceField(choices=SELF_SERVICE_ROLES, default="passenger")
    fcm_token = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = User
        fields = ("username", "password", "email", "first_name", "last_name",
                  "role", "phone_number", "fcm_token")

    def validate_email(self, value):
        if value and User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered")
        return value

    def create(self, validated_data):
        validated_data["fcm_token"] = validated_data.get("fcm_token") or None
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)


class NotificationAddressSerializer(serializers.Serializer):
    """Register or clear the caller's push notification token."""
    fcm_token = serializers.CharField(max_length=255, allow_null=True, allow_blank=True)
