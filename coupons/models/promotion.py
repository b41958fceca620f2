# coupons/models/promotion.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Promotion(models.Model):
    """
    Campaign definition.

    A "coupon" promotion mass-generates per-user Coupon rows
    (prefix + random part). Codes that carry the prefix but have no row yet
    are still honoured by validation while the promotion is live.
    """

    TYPE_GENERAL = "general"
    TYPE_COUPON = "coupon"

    TYPE_CHOICES = [
        (TYPE_GENERAL, "General"),
        (TYPE_COUPON, "Coupon"),
    ]

    DISCOUNT_PERCENT = "percent"
    DISCOUNT_FIXED = "fixed"

    DISCOUNT_CHOICES = [
        (DISCOUNT_PERCENT, "Percent"),
        (DISCOUNT_FIXED, "Fixed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)

    promotion_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_GENERAL)
    discount_type = models.CharField(max_length=10, choices=DISCOUNT_CHOICES)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    is_active = models.BooleanField(default=True)

    coupon_prefix = models.CharField(max_length=12, default="BG")
    coupon_length = models.PositiveSmallIntegerField(default=8)
    coupon_expire_days = models.PositiveIntegerField(default=30)
    min_order_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    max_usage_count = models.PositiveIntegerField(default=1)

    image_url = models.URLField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name

    def clean(self):
        self.coupon_prefix = (self.coupon_prefix or "").strip().upper()
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": "end_date must be after start_date"})
        if self.discount_value is not None and Decimal(self.discount_value) <= 0:
            raise ValidationError({"discount_value": "discount_value must be greater than 0"})
        if self.discount_type == self.DISCOUNT_PERCENT and Decimal(self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": "Percentage value must be between 1 and 100"})
        if not 4 <= int(self.coupon_length or 0) <= 20:
            raise ValidationError({"coupon_length": "coupon_length must be between 4 and 20"})

    def save(self, *args, **kwargs):
        self.coupon_prefix = (self.coupon_prefix or "").strip().upper()
        super().save(*args, **kwargs)

    def is_live(self, at=None) -> bool:
        if not self.is_active:
            return False
        at = at or timezone.now()
        return self.start_date <= at <= self.end_date
