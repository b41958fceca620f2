from .cart import (
    AddCartItemInputSerializer,
    ApplyCouponInputSerializer,
    CartSerializer,
    UpdateCartItemInputSerializer,
    empty_cart_payload,
)
from .cart_item import CartItemSerializer

__all__ = [
    "AddCartItemInputSerializer",
    "ApplyCouponInputSerializer",
    "CartItemSerializer",
    "CartSerializer",
    "UpdateCartItemInputSerializer",
    "empty_cart_payload",
]
