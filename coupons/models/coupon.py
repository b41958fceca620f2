# coupons/models/coupon.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class Coupon(models.Model):
    """
    Discount code.

    Rules:
    - code is stored uppercase and globally unique (lookups are case-insensitive)
    - used_count only moves at order creation (coupons.services.coupon_engine.redeem_coupon)
    - used_count <= usage_limit whenever usage_limit is set (DB check constraint)
    """

    TYPE_PERCENT = "percent"
    TYPE_FIXED = "fixed"

    TYPE_CHOICES = [
        (TYPE_PERCENT, "Percent"),
        (TYPE_FIXED, "Fixed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=40, unique=True)
    description = models.CharField(max_length=255, blank=True)

    discount_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    value = models.DecimalField(max_digits=10, decimal_places=2)
    max_discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Cap for percent coupons.",
    )
    min_order_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)

    valid_from = models.DateTimeField(default=timezone.now)
    valid_until = models.DateTimeField()

    is_active = models.BooleanField(default=True)

    promotion = models.ForeignKey(
        "coupons.Promotion",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="coupons",
    )
    assigned_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="coupons",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["valid_until"], name="coupon_valid_until_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(used_count__lte=F("usage_limit")),
                name="coupon_used_within_limit",
            ),
        ]

    def __str__(self):
        return self.code

    @staticmethod
    def normalize_code(code) -> str:
        return str(code or "").strip().upper()

    def clean(self):
        self.code = self.normalize_code(self.code)
        if not self.code:
            raise ValidationError({"code": "Coupon code is required"})

        value = Decimal(self.value if self.value is not None else 0)
        if self.discount_type == self.TYPE_PERCENT and not (Decimal("0") < value <= Decimal("100")):
            raise ValidationError({"value": "Percentage value must be between 1 and 100"})
        if self.discount_type == self.TYPE_FIXED and value <= 0:
            raise ValidationError({"value": "Fixed value must be greater than 0"})

        if self.valid_from and self.valid_until and self.valid_until <= self.valid_from:
            raise ValidationError({"valid_until": "valid_until must be after valid_from"})

    def save(self, *args, **kwargs):
        self.code = self.normalize_code(self.code)
        super().save(*args, **kwargs)

    def is_within_window(self, at=None) -> bool:
        at = at or timezone.now()
        return self.valid_from <= at <= self.valid_until

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit
