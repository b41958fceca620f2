from .actions import (
    CancelOrderView,
    DeliverOrderView,
    OutForDeliveryView,
    PaymentStatusView,
    RetryPaymentView,
    ShipOrderView,
    UpdateStatusView,
)
from .checkout import OrderDetailView, OrderListCreateView
from .payments import PaymentCallbackView, PaymentWebhookView
from .public import GuestOrderListView, PincodeServiceabilityView
from .returns import ProcessReturnView, ReturnRequestView
from .staff import AdminOrderListView, CampaignView, OrderStatsView

__all__ = [
    "AdminOrderListView",
    "CampaignView",
    "CancelOrderView",
    "DeliverOrderView",
    "GuestOrderListView",
    "OrderDetailView",
    "OrderListCreateView",
    "OrderStatsView",
    "OutForDeliveryView",
    "PaymentCallbackView",
    "PaymentStatusView",
    "PaymentWebhookView",
    "PincodeServiceabilityView",
    "ProcessReturnView",
    "RetryPaymentView",
    "ReturnRequestView",
    "ShipOrderView",
    "UpdateStatusView",
]
