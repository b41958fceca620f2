# orders/serializers/order.py

from rest_framework import serializers

from orders.models import Order, OrderStatusHistory, ReturnExchangeHistory, ReturnExchangeItem, ReturnExchangeRequest
from .order_item import OrderItemSerializer


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["status", "note", "created_by", "created_at"]
        read_only_fields = fields


class ReturnExchangeItemSerializer(serializers.ModelSerializer):
    variant_sku = serializers.CharField(source="order_item.variant_sku", read_only=True)
    title = serializers.CharField(source="order_item.title", read_only=True)

    class Meta:
        model = ReturnExchangeItem
        fields = ["id", "variant_sku", "title", "quantity"]
        read_only_fields = fields


class ReturnExchangeHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ReturnExchangeHistory
        fields = ["status", "note", "created_at"]
        read_only_fields = fields


class ReturnExchangeRequestSerializer(serializers.ModelSerializer):
    items = ReturnExchangeItemSerializer(many=True, read_only=True)
    history = ReturnExchangeHistorySerializer(many=True, read_only=True)

    class Meta:
        model = ReturnExchangeRequest
        fields = [
            "id",
            "request_type",
            "reason",
            "status",
            "previous_status",
            "items",
            "history",
            "refund_status",
            "refund_amount",
            "refund_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """
    CANONICAL ORDER SERIALIZER (read-only)

    GUARANTEES:
    - total_amount = subtotal_amount - discount_amount
    - status_history is append-only and ordered oldest first
    - payment_session_id is never exposed here (returned once, at checkout/pay)
    """

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    return_requests = ReturnExchangeRequestSerializer(many=True, read_only=True)

    billing = serializers.SerializerMethodField()
    shipping = serializers.SerializerMethodField()
    payment = serializers.SerializerMethodField()
    coupon = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user",
            "guest_session_id",
            "status",
            "items",
            "billing",
            "shipping",
            "shipping_is_billing",
            "comment",
            "payment",
            "coupon",
            "subtotal_amount",
            "discount_amount",
            "total_gst_amount",
            "total_amount",
            "courier_name",
            "tracking_id",
            "shipment_id",
            "length",
            "breadth",
            "height",
            "weight",
            "status_history",
            "return_requests",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _address(self, obj, prefix: str) -> dict:
        keys = ["name", "address", "address_2", "city", "state", "pincode", "country", "email", "phone"]
        return {k: getattr(obj, f"{prefix}_{k}") for k in keys}

    def get_billing(self, obj):
        return self._address(obj, "billing")

    def get_shipping(self, obj):
        if obj.shipping_is_billing:
            return self._address(obj, "billing")
        return self._address(obj, "shipping")

    def get_payment(self, obj):
        return {
            "method": obj.payment_method,
            "status": obj.payment_status,
            "gateway_order_id": obj.gateway_order_id,
            "transaction_id": obj.transaction_id,
            "paid_at": obj.paid_at,
            "refund": {
                "status": obj.refund_status,
                "amount": f"{obj.refund_amount:.2f}",
                "refund_id": obj.refund_id,
            },
        }

    def get_coupon(self, obj):
        if not obj.coupon_code:
            return None
        return {
            "code": obj.coupon_code,
            "discount_type": obj.coupon_discount_type,
            "value": f"{obj.coupon_value:.2f}" if obj.coupon_value is not None else None,
            "discount_amount": f"{obj.discount_amount:.2f}",
        }


class OrderListSerializer(serializers.ModelSerializer):
    """
    Compact row for order lists.
    """

    item_count = serializers.SerializerMethodField()
    customer_name = serializers.CharField(source="billing_name", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_method",
            "payment_status",
            "customer_name",
            "billing_email",
            "billing_phone",
            "item_count",
            "subtotal_amount",
            "discount_amount",
            "total_amount",
            "tracking_id",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj):
        annotated = getattr(obj, "item_count", None)
        if annotated is not None:
            return annotated
        return sum(item.quantity for item in obj.items.all())
