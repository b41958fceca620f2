# products/models/variant.py

"""
PRODUCT VARIANT (SKU)

Rules:
- SKU is globally unique.
- stock is an integer >= 0 (DB check constraint); it is only mutated through
  products.services.stock conditional updates, never by read-modify-write.
- attributes is a free-form key -> value map (size, color, fabric, ...).
  size/color are also kept as columns because cart + order matching use them.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from .product import Product


class ProductVariant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    sku = models.CharField(max_length=64, unique=True)

    size = models.CharField(max_length=32, blank=True)
    color = models.CharField(max_length=32, blank=True)
    attributes = models.JSONField(default=dict, blank=True)

    selling_price = models.DecimalField(max_digits=10, decimal_places=2)
    mrp = models.DecimalField(max_digits=10, decimal_places=2)

    stock = models.PositiveIntegerField(default=0)

    # Shipping dimensions (kg / cm)
    weight = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal("0.500"))
    length = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("10.00"))
    breadth = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("10.00"))
    height = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("10.00"))

    position = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["position", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="variant_stock_non_negative",
            ),
        ]

    def clean(self):
        if self.selling_price is None or self.selling_price < 0:
            raise ValidationError({"selling_price": "selling_price cannot be negative"})
        if self.mrp is None or self.mrp < 0:
            raise ValidationError({"mrp": "mrp cannot be negative"})
        if not isinstance(self.attributes, dict):
            raise ValidationError({"attributes": "attributes must be an object"})

    def attribute(self, key: str) -> str:
        """
        Column first (size/color), then the attributes map, case-insensitive key.
        """
        value = getattr(self, key, "") if key in ("size", "color") else ""
        if value:
            return str(value)
        for k, v in (self.attributes or {}).items():
            if str(k).lower() == key.lower():
                return str(v)
        return ""

    @property
    def is_in_stock(self) -> bool:
        return self.is_active and int(self.stock or 0) > 0

    def __str__(self):
        return f"{self.product} [{self.sku}]"
