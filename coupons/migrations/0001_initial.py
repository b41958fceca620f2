"""
======================================================
PATH: coupons/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Promotion, Coupon

Purpose:
- Coupon codes (unique, uppercase) with usage accounting.
- DB-level guard: used_count can never exceed usage_limit.
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
    ]

    operations = [
        migrations.CreateModel(
            name="Promotion",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                (
                    "promotion_type",
                    models.CharField(
                        choices=[("general", "General"), ("coupon", "Coupon")],
                        default="general",
                        max_length=10,
                    ),
                ),
                (
                    "discount_type",
                    models.CharField(choices=[("percent", "Percent"), ("fixed", "Fixed")], max_length=10),
                ),
                ("discount_value", models.DecimalField(decimal_places=2, max_digits=10)),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("is_active", models.BooleanField(default=True)),
                ("coupon_prefix", models.CharField(default="BG", max_length=12)),
                ("coupon_length", models.PositiveSmallIntegerField(default=8)),
                ("coupon_expire_days", models.PositiveIntegerField(default=30)),
                ("min_order_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("max_usage_count", models.PositiveIntegerField(default=1)),
                ("image_url", models.URLField(blank=True, max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("code", models.CharField(max_length=40, unique=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                (
                    "discount_type",
                    models.CharField(choices=[("percent", "Percent"), ("fixed", "Fixed")], max_length=10),
                ),
                ("value", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "max_discount_value",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Cap for percent coupons.",
                        max_digits=10,
                        null=True,
                    ),
                ),
                ("min_order_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("usage_limit", models.PositiveIntegerField(blank=True, null=True)),
                ("used_count", models.PositiveIntegerField(default=0)),
                ("valid_from", models.DateTimeField(default=django.utils.timezone.now)),
                ("valid_until", models.DateTimeField()),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "promotion",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="coupons",
                        to="coupons.promotion",
                    ),
                ),
                (
                    "assigned_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="coupons",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["valid_until"], name="coupon_valid_until_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(usage_limit__isnull=True) | models.Q(used_count__lte=models.F("usage_limit")),
                        name="coupon_used_within_limit",
                    ),
                ],
            },
        ),
    ]
