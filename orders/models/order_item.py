# orders/models/order_item.py

from decimal import Decimal

from django.db import models
from django.db.models import Q

ZERO = Decimal("0.00")


class OrderItem(models.Model):
    """
    Immutable line snapshot. Price, GST and names are copied from the catalog
    at checkout; later catalog edits never change a placed order.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    variant = models.ForeignKey(
        "products.ProductVariant",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )

    variant_sku = models.CharField(max_length=64, db_index=True)
    title = models.CharField(max_length=255)
    hsn_code = models.CharField(max_length=20, blank=True, default="")
    size = models.CharField(max_length=32, blank=True, default="")
    color = models.CharField(max_length=32, blank=True, default="")

    quantity = models.PositiveIntegerField()
    mrp = models.DecimalField(max_digits=10, decimal_places=2, default=ZERO)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    gst_rate = models.DecimalField(max_digits=5, decimal_places=2, default=ZERO)
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name="order_item_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.variant_sku} x {self.quantity}"
