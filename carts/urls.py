"""
PATH: carts/urls.py

Mounted at /api/cart/
"""

from django.urls import path

from carts.views.api import CartCouponView, CartItemDetailView, CartItemsView, CartView

app_name = "carts"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("items/", CartItemsView.as_view(), name="cart-items"),
    path("items/<uuid:item_id>/", CartItemDetailView.as_view(), name="cart-item-detail"),
    path("coupon/", CartCouponView.as_view(), name="cart-coupon"),
]
