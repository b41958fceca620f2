# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum

from .category import Category


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock or price
    - Both live on ProductVariant (one row per SKU)
    - The "first" variant (lowest position, then oldest) is the legacy fallback
      when a client cannot name a SKU or size/color

    TAX:
    - gst_rate is a percentage applied to tax-inclusive selling prices
      (recorded per order line, never added on top of the price)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    title = models.CharField(max_length=255, db_index=True)
    slug = models.SlugField(max_length=280, unique=True)
    description = models.TextField(blank=True)

    hsn_code = models.CharField(max_length=20, blank=True)
    gst_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="GST percentage (e.g. 5.00, 12.00).",
    )

    image_url = models.URLField(max_length=500, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.title

    def clean(self):
        if self.gst_rate is None or Decimal(self.gst_rate) < 0 or Decimal(self.gst_rate) > 100:
            raise ValidationError({"gst_rate": "gst_rate must be between 0 and 100"})

    @property
    def first_variant(self):
        return self.variants.order_by("position", "created_at").first()

    @property
    def total_stock(self) -> int:
        total = self.variants.filter(is_active=True).aggregate(total=Sum("stock")).get("total")
        return int(total or 0)
