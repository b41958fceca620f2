# orders/models/__init__.py

from .order import Order
from .order_item import OrderItem
from .return_request import ReturnExchangeHistory, ReturnExchangeItem, ReturnExchangeRequest
from .status_history import OrderStatusHistory

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "ReturnExchangeRequest",
    "ReturnExchangeItem",
    "ReturnExchangeHistory",
]
