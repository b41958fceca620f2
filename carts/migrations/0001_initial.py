"""
======================================================
PATH: carts/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Cart, CartItem

Purpose:
- One cart per owner key (user XOR guest session).
- One line per variant per cart.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Cart",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("guest_session_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("coupon_code", models.CharField(blank=True, default="", max_length=40)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="carts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-updated_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(user__isnull=False),
                        fields=("user",),
                        name="one_cart_per_user",
                    ),
                    models.UniqueConstraint(
                        condition=~models.Q(guest_session_id=""),
                        fields=("guest_session_id",),
                        name="one_cart_per_guest_session",
                    ),
                    models.CheckConstraint(
                        condition=(
                            (models.Q(user__isnull=False) & models.Q(guest_session_id=""))
                            | (models.Q(user__isnull=True) & ~models.Q(guest_session_id=""))
                        ),
                        name="cart_single_owner",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("variant_sku", models.CharField(max_length=64)),
                ("size", models.CharField(blank=True, max_length=32)),
                ("color", models.CharField(blank=True, max_length=32)),
                ("quantity", models.PositiveIntegerField(help_text="Must be greater than zero")),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("mrp", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("gst_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("title", models.CharField(blank=True, max_length=255)),
                ("product_slug", models.CharField(blank=True, max_length=280)),
                ("image_url", models.URLField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cart",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="carts.cart",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to="products.product",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to="products.productvariant",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("cart", "variant"), name="unique_variant_per_cart"),
                ],
            },
        ),
    ]
