# orders/views/returns.py

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import (
    OrderSerializer,
    ProcessReturnInputSerializer,
    ReturnExchangeRequestSerializer,
    ReturnRequestInputSerializer,
)
from orders.services.returns import process_return_exchange, request_return_exchange
from orders.views.common import get_order
from permissions.roles import IsOrderStaff


class ReturnRequestView(APIView):
    """
    Owner (or order staff) asks to return/exchange items of a DELIVERED order.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Returns"],
        request=ReturnRequestInputSerializer,
        responses={
            201: ReturnExchangeRequestSerializer,
            400: OpenApiResponse(description="Not delivered, already requested, or quantity too high"),
            403: OpenApiResponse(description="Not owner or order staff"),
            404: OpenApiResponse(description="Order or item not found"),
        },
    )
    def post(self, request, order_id):
        serializer = ReturnRequestInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        req = request_return_exchange(
            get_order(order_id),
            actor=request.user,
            request_type=data["request_type"],
            reason=data["reason"],
            items=data["items"],
        )
        return Response(ReturnExchangeRequestSerializer(req).data, status=status.HTTP_201_CREATED)


class ProcessReturnView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(
        tags=["Returns"],
        request=ProcessReturnInputSerializer,
        responses={
            200: OpenApiResponse(description="{order, return_request}"),
            400: OpenApiResponse(description="Transition not allowed"),
            403: OpenApiResponse(description="Order staff access required"),
            404: OpenApiResponse(description="No return/exchange request for this order"),
        },
    )
    def post(self, request, order_id):
        serializer = ProcessReturnInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        req = process_return_exchange(
            get_order(order_id),
            actor=request.user,
            status=data["status"],
            note=data["note"],
            refund_amount=data["refund_amount"],
        )
        order = get_order(order_id)
        return Response(
            {
                "order": OrderSerializer(order).data,
                "return_request": ReturnExchangeRequestSerializer(req).data,
            }
        )
