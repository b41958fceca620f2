# orders/models/status_history.py

from django.conf import settings
from django.db import models
from django.utils import timezone


class OrderStatusHistory(models.Model):
    """
    Append-only. Insertion order (id) is the audit order.
    """

    id = models.BigAutoField(primary_key=True)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    status = models.CharField(max_length=20)
    note = models.CharField(max_length=255, blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "order status history"

    def __str__(self):
        return f"{self.order_id} -> {self.status}"
