# carts/models/cart_item.py

"""
CART ITEM

- One line per variant (re-adding the same variant merges quantity).
- Display + price fields are a snapshot refreshed from the catalog on every
  cart read (carts.services.cart_service.refresh_cart), so a stale price never
  survives into the next response.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product, ProductVariant
from .cart import Cart


class CartItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cart = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.CASCADE,
        related_name="cart_items",
    )

    variant_sku = models.CharField(max_length=64)
    size = models.CharField(max_length=32, blank=True)
    color = models.CharField(max_length=32, blank=True)

    quantity = models.PositiveIntegerField(help_text="Must be greater than zero")

    # Snapshot (server-controlled)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    mrp = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    gst_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    title = models.CharField(max_length=255, blank=True)
    product_slug = models.CharField(max_length=280, blank=True)
    image_url = models.URLField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "variant"],
                name="unique_variant_per_cart",
            )
        ]

    def clean(self):
        if self.quantity is None or int(self.quantity) <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero"})

        if self.unit_price is None or self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def take_snapshot(self) -> bool:
        """
        Copy live catalog values onto the line. Returns True when anything changed.
        """
        variant = self.variant
        product = self.product

        fresh = {
            "variant_sku": variant.sku,
            "size": variant.attribute("size") or self.size,
            "color": variant.attribute("color") or self.color,
            "unit_price": variant.selling_price,
            "mrp": variant.mrp,
            "gst_rate": product.gst_rate or Decimal("0.00"),
            "title": product.title,
            "product_slug": product.slug,
            "image_url": product.image_url,
        }

        changed = False
        for field, value in fresh.items():
            if getattr(self, field) != value:
                setattr(self, field, value)
                changed = True
        return changed

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * Decimal(int(self.quantity or 0))

    @property
    def available_stock(self) -> int:
        return int(self.variant.stock or 0) if self.variant.is_active else 0

    @property
    def in_stock(self) -> bool:
        return self.available_stock >= int(self.quantity or 0)

    def __str__(self):
        return f"{self.title or self.variant_sku} x {self.quantity}"
