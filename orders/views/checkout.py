# orders/views/checkout.py

"""
CHECKOUT + OWN ORDERS

POST /api/orders/              create (user or guest session)       201 {order, payment}
GET  /api/orders/              own orders (authenticated)
GET  /api/orders/<id>/         owner, order staff, or matching guest session
DELETE /api/orders/<id>/       owner or order staff, payment PENDING only
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from carts.services.owner import resolve_owner
from orders.models import Order
from orders.serializers import (
    CheckoutResponseSerializer,
    CreateOrderInputSerializer,
    OrderListSerializer,
    OrderSerializer,
)
from orders.services import order_service
from orders.services.exceptions import OrderForbiddenError
from orders.views.common import PublicWriteThrottle, get_order, guest_session_from, payment_payload


class OrderListCreateView(APIView):
    permission_classes = [AllowAny]
    serializer_class = OrderSerializer

    def get_throttles(self):
        if self.request.method == "POST":
            return [PublicWriteThrottle()]
        return super().get_throttles()

    @extend_schema(
        tags=["Orders"],
        request=CreateOrderInputSerializer,
        responses={
            201: CheckoutResponseSerializer,
            400: OpenApiResponse(description="Validation error, insufficient stock or invalid coupon"),
            404: OpenApiResponse(description="Product or variant not found"),
            429: OpenApiResponse(description="Rate limited"),
            500: OpenApiResponse(description="Failed to create payment order"),
        },
        description="Create an order from an explicit item list. Prices come from the catalog.",
    )
    def post(self, request):
        serializer = CreateOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = order_service.create_order(
            owner=resolve_owner(request),
            items=data["items"],
            shipping_address=data["shipping_address"],
            billing_address=data["billing_address"],
            payment_method=data["payment_method"],
            coupon_code=data["coupon_code"],
            comment=data["comment"],
        )

        return Response(
            {
                "order": OrderSerializer(get_order(result.order.pk)).data,
                "payment": payment_payload(result.payment_session),
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(tags=["Orders"], responses={200: OrderListSerializer(many=True)})
    def get(self, request):
        if not request.user or not request.user.is_authenticated:
            raise NotAuthenticated()

        qs = Order.objects.filter(user=request.user).prefetch_related("items").order_by("-created_at")
        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(OrderListSerializer(page, many=True).data)


class OrderDetailView(APIView):
    permission_classes = [AllowAny]
    serializer_class = OrderSerializer

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer})
    def get(self, request, order_id):
        order = get_order(order_id)
        if not order_service.can_view(order, request.user, guest_session_id=guest_session_from(request)):
            raise OrderForbiddenError()
        return Response(OrderSerializer(order).data)

    @extend_schema(
        tags=["Orders"],
        responses={
            200: OpenApiResponse(description="Deleted; reserved stock restored"),
            400: OpenApiResponse(description="Payment is not PENDING"),
            403: OpenApiResponse(description="Not owner or order staff"),
        },
    )
    def delete(self, request, order_id):
        if not request.user or not request.user.is_authenticated:
            raise NotAuthenticated()

        order = get_order(order_id)
        order_number = order.order_number
        order_service.delete_order(order, actor=request.user)
        return Response({"success": True, "message": f"Order {order_number} deleted"})
