"""
PATH: orders/models/order.py

STOREFRONT ORDER

Owner:
- exactly ONE of user / guest_session_id (DB check constraint)
- guest orders are re-owned by reassign_guest_orders() on register/login

Money (server authoritative, 2dp):
- subtotal_amount = sum(item.line_total)
- total_amount    = subtotal_amount - discount_amount
- total_gst_amount is informational (prices are GST-inclusive)

Status:
- `status` drives every transition guard (orders.services.lifecycle)
- OrderStatusHistory rows are written in the same transaction as each change
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

User = settings.AUTH_USER_MODEL

ZERO = Decimal("0.00")


class Order(models.Model):
    # ---------------- STATUS ----------------
    STATUS_CREATED = "CREATED"
    STATUS_CONFIRMED = "CONFIRMED"
    STATUS_PAYMENT_FAILED = "PAYMENT_FAILED"
    STATUS_PROCESSING = "PROCESSING"
    STATUS_STOCK_ISSUE = "STOCK_ISSUE"
    STATUS_SHIPPED = "SHIPPED"
    STATUS_OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_RETURN_APPROVED = "RETURN_APPROVED"
    STATUS_RETURNED = "RETURNED"
    STATUS_EXCHANGE_APPROVED = "EXCHANGE_APPROVED"
    STATUS_EXCHANGED = "EXCHANGED"

    STATUS_CHOICES = [
        (STATUS_CREATED, "Created"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PAYMENT_FAILED, "Payment Failed"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_STOCK_ISSUE, "Stock Issue"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_OUT_FOR_DELIVERY, "Out for Delivery"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_RETURN_APPROVED, "Return Approved"),
        (STATUS_RETURNED, "Returned"),
        (STATUS_EXCHANGE_APPROVED, "Exchange Approved"),
        (STATUS_EXCHANGED, "Exchanged"),
    ]

    # ---------------- PAYMENT ----------------
    METHOD_COD = "COD"
    METHOD_ONLINE = "ONLINE"
    METHOD_CASHFREE = "CASHFREE"

    METHOD_CHOICES = [
        (METHOD_COD, "Cash on Delivery"),
        (METHOD_ONLINE, "Online"),
        (METHOD_CASHFREE, "Cashfree"),
    ]

    GATEWAY_METHODS = {METHOD_ONLINE, METHOD_CASHFREE}

    PAYMENT_PENDING = "PENDING"
    PAYMENT_PAID = "PAID"
    PAYMENT_FAILED = "FAILED"
    PAYMENT_REFUNDED = "REFUNDED"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
    ]

    REFUND_NONE = "NONE"
    REFUND_INITIATED = "INITIATED"
    REFUND_COMPLETED = "COMPLETED"
    REFUND_FAILED = "FAILED"

    REFUND_STATUS_CHOICES = [
        (REFUND_NONE, "None"),
        (REFUND_INITIATED, "Initiated"),
        (REFUND_COMPLETED, "Completed"),
        (REFUND_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Public order id (prefix + 6 digits); also the gateway order id",
    )

    user = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    guest_session_id = models.CharField(max_length=64, blank=True, default="", db_index=True)

    # ---------------- BILLING ----------------
    billing_name = models.CharField(max_length=150)
    billing_address = models.CharField(max_length=255)
    billing_address_2 = models.CharField(max_length=255, blank=True, default="")
    billing_city = models.CharField(max_length=100)
    billing_state = models.CharField(max_length=100)
    billing_pincode = models.CharField(max_length=10)
    billing_country = models.CharField(max_length=60, default="India")
    billing_email = models.EmailField()
    billing_phone = models.CharField(max_length=20)

    # ---------------- SHIPPING ----------------
    shipping_is_billing = models.BooleanField(default=True)
    shipping_name = models.CharField(max_length=150, blank=True, default="")
    shipping_address = models.CharField(max_length=255, blank=True, default="")
    shipping_address_2 = models.CharField(max_length=255, blank=True, default="")
    shipping_city = models.CharField(max_length=100, blank=True, default="")
    shipping_state = models.CharField(max_length=100, blank=True, default="")
    shipping_pincode = models.CharField(max_length=10, blank=True, default="")
    shipping_country = models.CharField(max_length=60, default="India")
    shipping_email = models.EmailField(blank=True, default="")
    shipping_phone = models.CharField(max_length=20, blank=True, default="")

    comment = models.TextField(blank=True, default="")

    courier_name = models.CharField(max_length=100, blank=True, default="")
    tracking_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    shipment_id = models.CharField(max_length=64, blank=True, default="")
    provider_order_id = models.CharField(max_length=64, blank=True, default="")

    length = models.DecimalField(max_digits=8, decimal_places=2, default=ZERO)
    breadth = models.DecimalField(max_digits=8, decimal_places=2, default=ZERO)
    height = models.DecimalField(max_digits=8, decimal_places=2, default=ZERO)
    weight = models.DecimalField(max_digits=8, decimal_places=3, default=Decimal("0.000"))

    # ---------------- PAYMENT ----------------
    payment_method = models.CharField(max_length=16, choices=METHOD_CHOICES)
    payment_status = models.CharField(
        max_length=16,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING,
        db_index=True,
    )
    gateway_order_id = models.CharField(max_length=64, blank=True, default="")
    payment_session_id = models.CharField(max_length=255, blank=True, default="")
    transaction_id = models.CharField(max_length=100, blank=True, default="")
    paid_at = models.DateTimeField(null=True, blank=True)

    refund_status = models.CharField(max_length=16, choices=REFUND_STATUS_CHOICES, default=REFUND_NONE)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    refund_id = models.CharField(max_length=64, blank=True, default="")

    # ---------------- COUPON SNAPSHOT ----------------
    coupon = models.ForeignKey(
        "coupons.Coupon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )
    coupon_code = models.CharField(max_length=40, blank=True, default="")
    coupon_discount_type = models.CharField(max_length=10, blank=True, default="")
    coupon_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # ---------------- TOTALS ----------------
    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    total_gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_CREATED, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(user__isnull=False) & Q(guest_session_id=""))
                    | (Q(user__isnull=True) & ~Q(guest_session_id=""))
                ),
                name="order_single_owner",
            ),
            models.CheckConstraint(
                condition=Q(discount_amount__gte=0) & Q(discount_amount__lte=F("subtotal_amount")),
                name="order_discount_within_subtotal",
            ),
        ]

    def clean(self):
        self.guest_session_id = (self.guest_session_id or "").strip()
        if bool(self.user_id) == bool(self.guest_session_id):
            raise ValidationError("Order must belong to exactly one of user or guest_session_id")

        if self.total_amount != (self.subtotal_amount or ZERO) - (self.discount_amount or ZERO):
            raise ValidationError({"total_amount": "total must equal subtotal minus discount"})

    # ---------------- DERIVED ----------------
    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PAYMENT_PAID

    @property
    def is_payment_settled(self) -> bool:
        """
        Money has been captured (and possibly refunded since); the gateway
        can no longer change this order's payment state.
        """
        return self.payment_status in (self.PAYMENT_PAID, self.PAYMENT_REFUNDED)

    @property
    def uses_gateway(self) -> bool:
        return self.payment_method in self.GATEWAY_METHODS

    @property
    def recipient_email(self) -> str:
        return self.shipping_email or self.billing_email

    @property
    def recipient_phone(self) -> str:
        return self.shipping_phone or self.billing_phone

    def __str__(self):
        return f"{self.order_number} | {self.total_amount} | {self.status}"
