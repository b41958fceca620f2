# users/views/auth.py

"""
AUTH VIEWS

- Register: creates a customer account and returns JWT pair.
- Login: email + password, returns JWT pair.

Guest checkout linking:
- Both endpoints accept an optional guest_session_id.
- Orders placed under that guest session are reassigned to the user
  (see orders.services.order_service.reassign_guest_orders).
"""

import logging

from django.contrib.auth import authenticate
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from backend.errors import error_response
from orders.services.order_service import reassign_guest_orders
from users.serializers import (
    AuthTokensSerializer,
    LoginSerializer,
    RegisterSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def _token_payload(user, *, linked: int) -> dict:
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
        "user": UserSerializer(user).data,
        "linked_guest_orders": linked,
    }


def _link_guest_orders(user, guest_session_id: str) -> int:
    guest_session_id = (guest_session_id or "").strip()
    if not guest_session_id:
        return 0
    return reassign_guest_orders(guest_session_id=guest_session_id, user=user)


class RegisterView(APIView):
    permission_classes = [AllowAny]
    serializer_class = RegisterSerializer

    @extend_schema(
        tags=["Auth"],
        request=RegisterSerializer,
        responses={201: AuthTokensSerializer, 400: OpenApiResponse(description="Validation error")},
        description="Register a customer account (optionally linking guest orders).",
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.save()
        linked = _link_guest_orders(user, serializer.validated_data.get("guest_session_id", ""))

        logger.info("User registered", extra={"user_id": str(user.id), "linked_orders": linked})

        return Response(_token_payload(user, linked=linked), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]
    serializer_class = LoginSerializer

    @extend_schema(
        tags=["Auth"],
        request=LoginSerializer,
        responses={200: AuthTokensSerializer, 401: OpenApiResponse(description="Invalid credentials")},
        description="Authenticate with email and password.",
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request=request,
            email=serializer.validated_data["email"].lower(),
            password=serializer.validated_data["password"],
        )

        if not user:
            return error_response(
                code="INVALID_CREDENTIALS",
                message="Invalid credentials",
                http_status=status.HTTP_401_UNAUTHORIZED,
            )

        linked = _link_guest_orders(user, serializer.validated_data.get("guest_session_id", ""))
        return Response(_token_payload(user, linked=linked))
