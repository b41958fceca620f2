# orders/views/actions.py

"""
ORDER ACTIONS

Customer (owner / order staff):
- POST cancel/            CREATED, CONFIRMED, PROCESSING, PAYMENT_FAILED, STOCK_ISSUE
- POST pay/               fresh gateway session (also allowed for the guest session that placed it)
- GET  payment-status/    re-verify with the gateway, reconcile, report

Staff (IsOrderStaff):
- POST status/            generic guarded transition
- POST ship/, out-for-delivery/, deliver/
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import (
    CancelOrderInputSerializer,
    NoteInputSerializer,
    OrderSerializer,
    ShipOrderInputSerializer,
    StatusUpdateInputSerializer,
)
from orders.services import order_service, payments
from orders.services.exceptions import OrderForbiddenError
from orders.views.common import get_order, guest_session_from, order_response, payment_payload
from permissions.roles import IsOrderStaff

TRANSITION_ERRORS = {
    400: OpenApiResponse(description="Current status does not permit the transition"),
    403: OpenApiResponse(description="Order staff access required"),
    404: OpenApiResponse(description="Order not found"),
}


def _viewable_order(request, order_id):
    order = get_order(order_id)
    if not order_service.can_view(order, request.user, guest_session_id=guest_session_from(request)):
        raise OrderForbiddenError()
    return order


class CancelOrderView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Orders"],
        request=CancelOrderInputSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(description="Order cannot be cancelled in its current status"),
            403: OpenApiResponse(description="Not owner or order staff"),
        },
    )
    def post(self, request, order_id):
        serializer = CancelOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = order_service.cancel_order(
            get_order(order_id),
            actor=request.user,
            reason=serializer.validated_data["reason"],
        )
        return order_response(order)


class RetryPaymentView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        tags=["Payments"],
        request=None,
        responses={
            200: OpenApiResponse(description="{order, payment}"),
            400: OpenApiResponse(description="Order is not awaiting online payment"),
            500: OpenApiResponse(description="Failed to create payment order"),
        },
    )
    def post(self, request, order_id):
        order = _viewable_order(request, order_id)
        session = payments.retry_payment(order)
        return Response(
            {
                "order": OrderSerializer(get_order(order.pk)).data,
                "payment": payment_payload(session),
            }
        )


class PaymentStatusView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        tags=["Payments"],
        responses={200: OpenApiResponse(description="{order_id, order_number, status, payment_status, changed}")},
    )
    def get(self, request, order_id):
        order = _viewable_order(request, order_id)
        result = payments.reconcile_payment(order)
        return Response(
            {
                "order_id": str(result.order.pk),
                "order_number": result.order.order_number,
                "status": result.order.status,
                "payment_status": result.payment_status,
                "changed": result.changed,
            }
        )


class UpdateStatusView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(tags=["Orders (staff)"], request=StatusUpdateInputSerializer, responses={200: OrderSerializer, **TRANSITION_ERRORS})
    def post(self, request, order_id):
        serializer = StatusUpdateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = order_service.update_status(
            get_order(order_id),
            status=data["status"],
            actor=request.user,
            note=data["note"],
        )
        return order_response(order)


class ShipOrderView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(tags=["Orders (staff)"], request=ShipOrderInputSerializer, responses={200: OrderSerializer, **TRANSITION_ERRORS})
    def post(self, request, order_id):
        serializer = ShipOrderInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = order_service.mark_shipped(
            get_order(order_id),
            actor=request.user,
            tracking_id=data["tracking_id"],
            courier_name=data["courier_name"],
            note=data["note"],
        )
        return order_response(order)


class OutForDeliveryView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(tags=["Orders (staff)"], request=NoteInputSerializer, responses={200: OrderSerializer, **TRANSITION_ERRORS})
    def post(self, request, order_id):
        serializer = NoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.mark_out_for_delivery(
            get_order(order_id),
            actor=request.user,
            note=serializer.validated_data["note"],
        )
        return order_response(order)


class DeliverOrderView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(tags=["Orders (staff)"], request=NoteInputSerializer, responses={200: OrderSerializer, **TRANSITION_ERRORS})
    def post(self, request, order_id):
        serializer = NoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = order_service.mark_delivered(
            get_order(order_id),
            actor=request.user,
            note=serializer.validated_data["note"],
        )
        return order_response(order)
