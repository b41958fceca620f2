from .commands import (
    AddressInputSerializer,
    CampaignInputSerializer,
    CancelOrderInputSerializer,
    CheckoutResponseSerializer,
    CreateOrderInputSerializer,
    NoteInputSerializer,
    ProcessReturnInputSerializer,
    ReturnRequestInputSerializer,
    ShipOrderInputSerializer,
    StatsQuerySerializer,
    StatusUpdateInputSerializer,
    validate_pincode,
)
from .order import OrderListSerializer, OrderSerializer, OrderStatusHistorySerializer, ReturnExchangeRequestSerializer
from .order_item import OrderItemSerializer

__all__ = [
    "AddressInputSerializer",
    "CampaignInputSerializer",
    "CancelOrderInputSerializer",
    "CheckoutResponseSerializer",
    "CreateOrderInputSerializer",
    "NoteInputSerializer",
    "OrderItemSerializer",
    "OrderListSerializer",
    "OrderSerializer",
    "OrderStatusHistorySerializer",
    "ProcessReturnInputSerializer",
    "ReturnExchangeRequestSerializer",
    "ReturnRequestInputSerializer",
    "ShipOrderInputSerializer",
    "StatsQuerySerializer",
    "StatusUpdateInputSerializer",
    "validate_pincode",
]
