# carts/serializers/cart.py

from decimal import Decimal

from rest_framework import serializers

from carts.models import Cart
from .cart_item import CartItemSerializer


class CartSerializer(serializers.ModelSerializer):
    """
    Guarantees:
    - totals are computed server-side (never trusted from client)
    - total = subtotal - discount
    """

    items = CartItemSerializer(many=True, read_only=True)

    item_count = serializers.IntegerField(read_only=True)
    subtotal_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Cart
        fields = [
            "id",
            "user",
            "guest_session_id",
            "items",
            "item_count",
            "subtotal_amount",
            "coupon_code",
            "discount_amount",
            "total_amount",
            "updated_at",
        ]
        read_only_fields = fields


def empty_cart_payload(owner) -> dict:
    zero = f"{Decimal('0.00'):.2f}"
    return {
        "id": None,
        "user": owner.user.pk if owner.user is not None else None,
        "guest_session_id": owner.guest_session_id,
        "items": [],
        "item_count": 0,
        "subtotal_amount": zero,
        "coupon_code": "",
        "discount_amount": zero,
        "total_amount": zero,
        "updated_at": None,
    }


# =====================================================
# INPUT SERIALIZERS
# =====================================================


class AddCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    variant_sku = serializers.CharField(required=False, allow_blank=True, default="")
    size = serializers.CharField(required=False, allow_blank=True, default="")
    color = serializers.CharField(required=False, allow_blank=True, default="")


class UpdateCartItemInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
    variant_sku = serializers.CharField(required=False, allow_blank=True, default="")
    size = serializers.CharField(required=False, allow_blank=True, default="")
    color = serializers.CharField(required=False, allow_blank=True, default="")


class ApplyCouponInputSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=40)
