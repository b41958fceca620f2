# orders/views/common.py

from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from carts.services.owner import GUEST_HEADER
from orders.models import Order
from orders.serializers import OrderSerializer


class PublicWriteThrottle(AnonRateThrottle):
    """
    Public write endpoints (checkout).
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['public_write'].
    """

    scope = "public_write"


class PublicPollThrottle(AnonRateThrottle):
    """
    Public polling endpoints (guest order lookup, pincode check).
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['public_poll'].
    """

    scope = "public_poll"


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


def order_queryset():
    return Order.objects.select_related("user", "coupon").prefetch_related(
        "items",
        "status_history",
        "return_requests__items__order_item",
        "return_requests__history",
    )


def get_order(order_id) -> Order:
    return get_object_or_404(order_queryset(), pk=order_id)


def guest_session_from(request) -> str:
    return str(request.META.get(GUEST_HEADER) or request.query_params.get("guest_session_id") or "").strip()


def order_response(order: Order, *, http_status: int = 200) -> Response:
    # Re-read so nested history/items reflect the committed state.
    return Response(OrderSerializer(get_order(order.pk)).data, status=http_status)


def payment_payload(session) -> dict | None:
    if session is None:
        return None
    return {
        "payment_session_id": session.token,
        "gateway_order_id": session.gateway_order_id,
        "order_id": session.order_id,
    }
