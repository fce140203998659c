"""Account endpoints: registration, JWT login/refresh, profile, push address."""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from .serializers import (
    LoginSerializer,
    NotificationAddressSerializer,
    RegisterSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def _auth_payload(user, message):
    refresh = RefreshToken.for_user(user)
    return {
        "success": True,
        "message": message,
        "user": UserSerializer(user).data,
        "tokens": {"refresh": str(refresh), "access": str(refresh.access_token)},
    }


class RegisterView(APIView):
    """
    POST: create a passenger or driver account and return a token pair.

    Body: {"username", "password", "email"?, "role": "passenger"|"driver",
           "phone_number"?, "fcm_token"?}
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info("Registered %s account %s", user.role, user.pk)
        return Response(_auth_payload(user, "Account created"), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST: exchange username/password for a token pair."""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        # validate() hands back the authenticated user
        return Response(_auth_payload(serializer.validated_data, "Login successful"))


class RefreshTokenView(TokenRefreshView):
    """POST {"refresh": ...}: new access token. Invalid tokens get 401."""
    permission_classes = [AllowAny]


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class NotificationAddressView(APIView):
    """
    PUT: register the device token booking pushes go to, or clear it
    with null / "" (drivers without a token are not broadcast to).
    """
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = NotificationAddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.fcm_token = serializer.validated_data["fcm_token"] or None
        user.save(update_fields=["fcm_token"])

        return Response({
            "success": True,
            "registered": user.fcm_token is not None,
        })
