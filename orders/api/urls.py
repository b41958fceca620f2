# orders/api/urls.py

"""
ORDERS API URLS (mounted at /api/orders/)

Rules:
- Explicit non-UUID routes (admin/, stats/, payments/...) come first so they
  are never read as an order id.
"""

from django.urls import path

from orders.views import (
    AdminOrderListView,
    CampaignView,
    CancelOrderView,
    DeliverOrderView,
    GuestOrderListView,
    OrderDetailView,
    OrderListCreateView,
    OrderStatsView,
    OutForDeliveryView,
    PaymentCallbackView,
    PaymentStatusView,
    PaymentWebhookView,
    PincodeServiceabilityView,
    ProcessReturnView,
    RetryPaymentView,
    ReturnRequestView,
    ShipOrderView,
    UpdateStatusView,
)

app_name = "orders"

urlpatterns = [
    # Payments (gateway-facing)
    path("payments/callback/", PaymentCallbackView.as_view(), name="payment-callback"),
    path("payments/webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
    # Public lookups
    path("pincode/<str:pincode>/", PincodeServiceabilityView.as_view(), name="pincode"),
    path("guest/<str:guest_session_id>/", GuestOrderListView.as_view(), name="guest-orders"),
    # Staff
    path("admin/", AdminOrderListView.as_view(), name="admin-orders"),
    path("stats/", OrderStatsView.as_view(), name="stats"),
    path("campaigns/", CampaignView.as_view(), name="campaigns"),
    # Orders
    path("", OrderListCreateView.as_view(), name="orders"),
    path("<uuid:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<uuid:order_id>/cancel/", CancelOrderView.as_view(), name="order-cancel"),
    path("<uuid:order_id>/pay/", RetryPaymentView.as_view(), name="order-pay"),
    path("<uuid:order_id>/payment-status/", PaymentStatusView.as_view(), name="order-payment-status"),
    path("<uuid:order_id>/return/", ReturnRequestView.as_view(), name="order-return"),
    path("<uuid:order_id>/return/process/", ProcessReturnView.as_view(), name="order-return-process"),
    path("<uuid:order_id>/status/", UpdateStatusView.as_view(), name="order-status"),
    path("<uuid:order_id>/ship/", ShipOrderView.as_view(), name="order-ship"),
    path("<uuid:order_id>/out-for-delivery/", OutForDeliveryView.as_view(), name="order-out-for-delivery"),
    path("<uuid:order_id>/deliver/", DeliverOrderView.as_view(), name="order-deliver"),
]
