# orders/serializers/order_item.py

from rest_framework import serializers

from orders.models import OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """
    Order line (read-only). Prices and GST are the snapshot taken at checkout.
    """

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "variant",
            "variant_sku",
            "title",
            "hsn_code",
            "size",
            "color",
            "quantity",
            "mrp",
            "unit_price",
            "gst_rate",
            "gst_amount",
            "line_total",
        ]
        read_only_fields = fields
