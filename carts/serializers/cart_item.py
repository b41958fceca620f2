"""
PATH: carts/serializers/cart_item.py

CART ITEM SERIALIZER

- Prices are read-only (refreshed from the catalog on every read).
- available_stock / in_stock are live values from the variant.
"""

from rest_framework import serializers

from carts.models import CartItem


class CartItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source="product.id", read_only=True)
    variant_id = serializers.UUIDField(source="variant.id", read_only=True)

    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    available_stock = serializers.IntegerField(read_only=True)
    in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "product_id",
            "variant_id",
            "variant_sku",
            "size",
            "color",
            "quantity",
            "unit_price",
            "mrp",
            "gst_rate",
            "title",
            "product_slug",
            "image_url",
            "line_total",
            "available_stock",
            "in_stock",
        ]
        read_only_fields = fields
