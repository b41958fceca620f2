# orders/views/staff.py

"""
STAFF ORDER VIEWS (IsOrderStaff)

- GET  /api/orders/admin/       all orders, filtered + paginated
- GET  /api/orders/stats/       aggregate reporting
- POST /api/orders/campaigns/   campaign email through the notification dispatcher
"""

from __future__ import annotations

from django.db.models import Sum
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from integrations.notifications import send_campaign
from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import CampaignInputSerializer, OrderListSerializer, StatsQuerySerializer
from orders.services.exceptions import NoCampaignRecipientsError
from orders.services.stats import order_stats
from permissions.roles import IsOrderStaff


class AdminOrderListView(ListAPIView):
    permission_classes = [IsOrderStaff]
    serializer_class = OrderListSerializer
    filterset_class = OrderFilter

    def get_queryset(self):
        return Order.objects.annotate(item_count=Sum("items__quantity")).order_by("-created_at")

    @extend_schema(tags=["Orders (staff)"])
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderStatsView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(
        tags=["Orders (staff)"],
        parameters=[
            OpenApiParameter(name="start_date", type=str, required=False, description="YYYY-MM-DD"),
            OpenApiParameter(name="end_date", type=str, required=False, description="YYYY-MM-DD"),
        ],
        responses={200: OpenApiResponse(description="Totals, revenue, breakdowns, top products")},
    )
    def get(self, request):
        serializer = StatsQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return Response(order_stats(start=data["start_date"], end=data["end_date"]))


class CampaignView(APIView):
    permission_classes = [IsOrderStaff]

    @extend_schema(
        tags=["Orders (staff)"],
        request=CampaignInputSerializer,
        responses={
            200: OpenApiResponse(description="{success, sent, failed}"),
            400: OpenApiResponse(description="No recipients"),
        },
    )
    def post(self, request):
        serializer = CampaignInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        recipients = list(dict.fromkeys(r.strip().lower() for r in data["recipients"] if r.strip()))
        if not recipients:
            raise NoCampaignRecipientsError()

        result = send_campaign(recipients=recipients, subject=data["subject"], html=data["html"])
        return Response({"success": result.failed == 0, "sent": result.sent, "failed": result.failed})
