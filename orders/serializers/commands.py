# orders/serializers/commands.py

"""
INPUT SERIALIZERS (write side)

Documents ONLY what the client is allowed to send. Prices, totals, stock and
status side effects are server-owned.
"""

import re

from rest_framework import serializers

from orders.models import Order, ReturnExchangeRequest

PINCODE_RE = re.compile(r"^\d{6}$")


def validate_pincode(value: str) -> str:
    value = (value or "").strip()
    if not PINCODE_RE.match(value):
        raise serializers.ValidationError("Pincode must be 6 digits")
    return value


class AddressInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    street = serializers.CharField(max_length=255)
    address_2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    pincode = serializers.CharField(max_length=10, validators=[validate_pincode])
    country = serializers.CharField(max_length=60, required=False, default="India")
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    variant_sku = serializers.CharField(required=False, allow_blank=True, default="")
    size = serializers.CharField(required=False, allow_blank=True, default="")
    color = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)


class CreateOrderInputSerializer(serializers.Serializer):
    """
    Checkout input.

    OWNER RULE:
    - authenticated user, else guest_session_id (body, header or query param)

    PRICE RULE:
    - unit prices are never accepted from the client
    """

    items = OrderItemInputSerializer(many=True, allow_empty=False)
    shipping_address = AddressInputSerializer()
    billing_address = AddressInputSerializer(required=False, allow_null=True, default=None)
    payment_method = serializers.ChoiceField(choices=[m for m, _ in Order.METHOD_CHOICES])
    coupon_code = serializers.CharField(required=False, allow_blank=True, default="", max_length=40)
    comment = serializers.CharField(required=False, allow_blank=True, default="")
    guest_session_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)


class CheckoutResponseSerializer(serializers.Serializer):
    order = serializers.DictField()
    payment = serializers.DictField(allow_null=True)


class CancelOrderInputSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class NoteInputSerializer(serializers.Serializer):
    note = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


STAFF_STATUS_CHOICES = [
    Order.STATUS_CONFIRMED,
    Order.STATUS_PROCESSING,
    Order.STATUS_STOCK_ISSUE,
    Order.STATUS_SHIPPED,
    Order.STATUS_OUT_FOR_DELIVERY,
    Order.STATUS_DELIVERED,
    Order.STATUS_CANCELLED,
]


class StatusUpdateInputSerializer(NoteInputSerializer):
    """
    Return/exchange statuses are driven by the return workflow, not set here.
    """

    status = serializers.ChoiceField(choices=STAFF_STATUS_CHOICES)


class ShipOrderInputSerializer(NoteInputSerializer):
    tracking_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)
    courier_name = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)


class ReturnItemInputSerializer(serializers.Serializer):
    variant_sku = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)


class ReturnRequestInputSerializer(serializers.Serializer):
    request_type = serializers.ChoiceField(choices=[t for t, _ in ReturnExchangeRequest.TYPE_CHOICES])
    reason = serializers.CharField(max_length=500)
    items = ReturnItemInputSerializer(many=True, allow_empty=False)


class ProcessReturnInputSerializer(NoteInputSerializer):
    status = serializers.ChoiceField(
        choices=[
            ReturnExchangeRequest.STATUS_APPROVED,
            ReturnExchangeRequest.STATUS_REJECTED,
            ReturnExchangeRequest.STATUS_COMPLETED,
        ]
    )
    refund_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True,
        default=None,
    )


class CampaignInputSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=200)
    html = serializers.CharField()
    recipients = serializers.ListField(child=serializers.EmailField(), allow_empty=True)


class StatsQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True, default=None)
    end_date = serializers.DateField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("start_date must be on or before end_date")
        return attrs
