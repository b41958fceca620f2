"""
PATH: carts/models/cart.py

STOREFRONT CART

Owner:
- exactly ONE of user / guest_session_id (DB check constraint)
- at most one cart per owner key (conditional unique constraints)

Coupon:
- coupon_code + discount_amount are a PREVIEW only; nothing is redeemed here.
  Order creation re-validates and counts usage.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

User = settings.AUTH_USER_MODEL


class Cart(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="carts",
    )
    guest_session_id = models.CharField(max_length=64, blank=True, default="", db_index=True)

    coupon_code = models.CharField(max_length=40, blank=True, default="")
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=Q(user__isnull=False),
                name="one_cart_per_user",
            ),
            models.UniqueConstraint(
                fields=["guest_session_id"],
                condition=~Q(guest_session_id=""),
                name="one_cart_per_guest_session",
            ),
            models.CheckConstraint(
                condition=(
                    (Q(user__isnull=False) & Q(guest_session_id=""))
                    | (Q(user__isnull=True) & ~Q(guest_session_id=""))
                ),
                name="cart_single_owner",
            ),
        ]

    def clean(self):
        self.guest_session_id = (self.guest_session_id or "").strip()
        if bool(self.user_id) == bool(self.guest_session_id):
            raise ValidationError("Cart must belong to exactly one of user or guest_session_id")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def item_count(self) -> int:
        return sum(int(i.quantity or 0) for i in self.items.all())

    @property
    def subtotal_amount(self) -> Decimal:
        total = Decimal("0.00")
        for item in self.items.all():
            total += item.line_total
        return total

    @property
    def total_amount(self) -> Decimal:
        return max(self.subtotal_amount - (self.discount_amount or Decimal("0.00")), Decimal("0.00"))

    def __str__(self):
        owner = self.user_id or f"guest:{self.guest_session_id}"
        return f"Cart {self.id} | {owner}"
