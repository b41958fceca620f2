# orders/views/public.py

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from integrations import shipping
from orders.models import Order
from orders.serializers import OrderSerializer, validate_pincode
from orders.views.common import PublicPollThrottle, order_queryset

logger = logging.getLogger(__name__)


class GuestOrderListView(APIView):
    """
    Orders placed under a guest session (order tracking before sign-up).
    """

    permission_classes = [AllowAny]
    throttle_classes = [PublicPollThrottle]

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer(many=True)})
    def get(self, request, guest_session_id):
        orders = order_queryset().filter(user__isnull=True, guest_session_id=guest_session_id).order_by("-created_at")
        return Response(OrderSerializer(orders, many=True).data)


class PincodeServiceabilityView(APIView):
    """
    Delivery availability for a 6-digit pincode.

    When the courier API is off or unreachable the answer is the optimistic
    default (available, shipping.DEFAULT_DELIVERY_DAYS).
    """

    permission_classes = [AllowAny]
    throttle_classes = [PublicPollThrottle]

    @extend_schema(
        tags=["Shipping"],
        responses={
            200: OpenApiResponse(description="{pincode, available, estimated_days}"),
            400: OpenApiResponse(description="Pincode must be 6 digits"),
        },
    )
    def get(self, request, pincode):
        pincode = validate_pincode(pincode)

        fallback = {"pincode": pincode, "available": True, "estimated_days": shipping.DEFAULT_DELIVERY_DAYS}
        if not shipping.is_enabled():
            return Response(fallback)

        result = shipping.check_pincode_serviceability(pincode, cod=True)
        if not result.success:
            logger.warning("Pincode check fell back to default", extra={"pincode": pincode, "error": result.error})
            return Response(fallback)

        return Response(
            {
                "pincode": pincode,
                "available": result.serviceable,
                "estimated_days": result.estimated_days,
                "min_days": result.min_days,
                "max_days": result.max_days,
            }
        )
