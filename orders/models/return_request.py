"""
PATH: orders/models/return_request.py

RETURN / EXCHANGE REQUESTS

- One active (non-rejected) request per order (conditional unique constraint).
- previous_status is the order status captured when the request was opened;
  a rejection restores exactly that value.
- Items reference the ordered line; quantity <= ordered quantity is enforced
  by the returns service.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class ReturnExchangeRequest(models.Model):
    TYPE_RETURN = "RETURN"
    TYPE_EXCHANGE = "EXCHANGE"

    TYPE_CHOICES = [
        (TYPE_RETURN, "Return"),
        (TYPE_EXCHANGE, "Exchange"),
    ]

    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    STATUS_COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_COMPLETED, "Completed"),
    ]

    REFUND_NONE = "NONE"
    REFUND_INITIATED = "INITIATED"
    REFUND_FAILED = "FAILED"

    REFUND_STATUS_CHOICES = [
        (REFUND_NONE, "None"),
        (REFUND_INITIATED, "Initiated"),
        (REFUND_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="return_requests",
    )
    request_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    reason = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    previous_status = models.CharField(max_length=20)

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    refund_status = models.CharField(max_length=10, choices=REFUND_STATUS_CHOICES, default=REFUND_NONE)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    refund_id = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=~Q(status="REJECTED"),
                name="one_active_return_per_order",
            ),
        ]

    @property
    def is_return(self) -> bool:
        return self.request_type == self.TYPE_RETURN

    def __str__(self):
        return f"{self.request_type} {self.status} | {self.order_id}"


class ReturnExchangeItem(models.Model):
    request = models.ForeignKey(
        ReturnExchangeRequest,
        on_delete=models.CASCADE,
        related_name="items",
    )
    order_item = models.ForeignKey(
        "orders.OrderItem",
        on_delete=models.CASCADE,
        related_name="return_items",
    )
    quantity = models.PositiveIntegerField()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name="return_item_quantity_positive"),
            models.UniqueConstraint(fields=["request", "order_item"], name="unique_line_per_return"),
        ]


class ReturnExchangeHistory(models.Model):
    id = models.BigAutoField(primary_key=True)

    request = models.ForeignKey(
        ReturnExchangeRequest,
        on_delete=models.CASCADE,
        related_name="history",
    )
    status = models.CharField(max_length=10)
    note = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "return/exchange history"
