"""
======================================================
PATH: orders/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Order, OrderItem, OrderStatusHistory,
           ReturnExchangeRequest, ReturnExchangeItem, ReturnExchangeHistory

Purpose:
- Order owner is exactly one of user / guest session (DB check).
- Discount can never exceed subtotal (DB check).
- One active (non-rejected) return/exchange per order.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("products", "0001_initial"),
        ("coupons", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "order_number",
                    models.CharField(
                        help_text="Public order id (prefix + 6 digits); also the gateway order id",
                        max_length=20,
                        unique=True,
                    ),
                ),
                ("guest_session_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("billing_name", models.CharField(max_length=150)),
                ("billing_address", models.CharField(max_length=255)),
                ("billing_address_2", models.CharField(blank=True, default="", max_length=255)),
                ("billing_city", models.CharField(max_length=100)),
                ("billing_state", models.CharField(max_length=100)),
                ("billing_pincode", models.CharField(max_length=10)),
                ("billing_country", models.CharField(default="India", max_length=60)),
                ("billing_email", models.EmailField(max_length=254)),
                ("billing_phone", models.CharField(max_length=20)),
                ("shipping_is_billing", models.BooleanField(default=True)),
                ("shipping_name", models.CharField(blank=True, default="", max_length=150)),
                ("shipping_address", models.CharField(blank=True, default="", max_length=255)),
                ("shipping_address_2", models.CharField(blank=True, default="", max_length=255)),
                ("shipping_city", models.CharField(blank=True, default="", max_length=100)),
                ("shipping_state", models.CharField(blank=True, default="", max_length=100)),
                ("shipping_pincode", models.CharField(blank=True, default="", max_length=10)),
                ("shipping_country", models.CharField(default="India", max_length=60)),
                ("shipping_email", models.EmailField(blank=True, default="", max_length=254)),
                ("shipping_phone", models.CharField(blank=True, default="", max_length=20)),
                ("comment", models.TextField(blank=True, default="")),
                ("courier_name", models.CharField(blank=True, default="", max_length=100)),
                ("tracking_id", models.CharField(blank=True, db_index=True, default="", max_length=100)),
                ("shipment_id", models.CharField(blank=True, default="", max_length=64)),
                ("provider_order_id", models.CharField(blank=True, default="", max_length=64)),
                ("length", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=8)),
                ("breadth", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=8)),
                ("height", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=8)),
                ("weight", models.DecimalField(decimal_places=3, default=Decimal("0.000"), max_digits=8)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("COD", "Cash on Delivery"), ("ONLINE", "Online"), ("CASHFREE", "Cashfree")],
                        max_length=16,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PAID", "Paid"),
                            ("FAILED", "Failed"),
                            ("REFUNDED", "Refunded"),
                        ],
                        db_index=True,
                        default="PENDING",
                        max_length=16,
                    ),
                ),
                ("gateway_order_id", models.CharField(blank=True, default="", max_length=64)),
                ("payment_session_id", models.CharField(blank=True, default="", max_length=255)),
                ("transaction_id", models.CharField(blank=True, default="", max_length=100)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "refund_status",
                    models.CharField(
                        choices=[
                            ("NONE", "None"),
                            ("INITIATED", "Initiated"),
                            ("COMPLETED", "Completed"),
                            ("FAILED", "Failed"),
                        ],
                        default="NONE",
                        max_length=16,
                    ),
                ),
                ("refund_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("refund_id", models.CharField(blank=True, default="", max_length=64)),
                ("coupon_code", models.CharField(blank=True, default="", max_length=40)),
                ("coupon_discount_type", models.CharField(blank=True, default="", max_length=10)),
                ("coupon_value", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("subtotal_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_gst_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("CREATED", "Created"),
                            ("CONFIRMED", "Confirmed"),
                            ("PAYMENT_FAILED", "Payment Failed"),
                            ("PROCESSING", "Processing"),
                            ("STOCK_ISSUE", "Stock Issue"),
                            ("SHIPPED", "Shipped"),
                            ("OUT_FOR_DELIVERY", "Out for Delivery"),
                            ("DELIVERED", "Delivered"),
                            ("CANCELLED", "Cancelled"),
                            ("RETURN_APPROVED", "Return Approved"),
                            ("RETURNED", "Returned"),
                            ("EXCHANGE_APPROVED", "Exchange Approved"),
                            ("EXCHANGED", "Exchanged"),
                        ],
                        db_index=True,
                        default="CREATED",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "coupon",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="coupons.coupon",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
                    models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            (models.Q(user__isnull=False) & models.Q(guest_session_id=""))
                            | (models.Q(user__isnull=True) & ~models.Q(guest_session_id=""))
                        ),
                        name="order_single_owner",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(discount_amount__gte=0)
                        & models.Q(discount_amount__lte=models.F("subtotal_amount")),
                        name="order_discount_within_subtotal",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("variant_sku", models.CharField(db_index=True, max_length=64)),
                ("title", models.CharField(max_length=255)),
                ("hsn_code", models.CharField(blank=True, default="", max_length=20)),
                ("size", models.CharField(blank=True, default="", max_length=32)),
                ("color", models.CharField(blank=True, default="", max_length=32)),
                ("quantity", models.PositiveIntegerField()),
                ("mrp", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("gst_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("gst_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.order",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_items",
                        to="products.product",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_items",
                        to="products.productvariant",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1),
                        name="order_item_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("status", models.CharField(max_length=20)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "verbose_name_plural": "order status history",
            },
        ),
        migrations.CreateModel(
            name="ReturnExchangeRequest",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                (
                    "request_type",
                    models.CharField(choices=[("RETURN", "Return"), ("EXCHANGE", "Exchange")], max_length=10),
                ),
                ("reason", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("APPROVED", "Approved"),
                            ("REJECTED", "Rejected"),
                            ("COMPLETED", "Completed"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                ("previous_status", models.CharField(max_length=20)),
                (
                    "refund_status",
                    models.CharField(
                        choices=[("NONE", "None"), ("INITIATED", "Initiated"), ("FAILED", "Failed")],
                        default="NONE",
                        max_length=10,
                    ),
                ),
                ("refund_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("refund_id", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="return_requests",
                        to="orders.order",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=~models.Q(status="REJECTED"),
                        fields=("order",),
                        name="one_active_return_per_order",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnExchangeItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                (
                    "order_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="return_items",
                        to="orders.orderitem",
                    ),
                ),
                (
                    "request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="orders.returnexchangerequest",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1),
                        name="return_item_quantity_positive",
                    ),
                    models.UniqueConstraint(fields=("request", "order_item"), name="unique_line_per_return"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnExchangeHistory",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("status", models.CharField(max_length=10)),
                ("note", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="orders.returnexchangerequest",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "verbose_name_plural": "return/exchange history",
            },
        ),
    ]
