# orders/services/stats.py

"""
ORDER STATISTICS (read-only)

- total orders
- revenue: sum(total_amount) where payment is PAID
- per-status counts
- per-payment-method counts + paid revenue
- top 10 products by quantity

Optional [start, end] created_at date range (inclusive dates).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.utils import timezone

from orders.models import Order, OrderItem

TOP_PRODUCTS = 10


def _bounds(start: date | None, end: date | None):
    tz = timezone.get_current_timezone()
    lo = timezone.make_aware(datetime.combine(start, time.min), tz) if start else None
    hi = timezone.make_aware(datetime.combine(end + timedelta(days=1), time.min), tz) if end else None
    return lo, hi


def _filtered(start: date | None, end: date | None):
    qs = Order.objects.all()
    lo, hi = _bounds(start, end)
    if lo:
        qs = qs.filter(created_at__gte=lo)
    if hi:
        qs = qs.filter(created_at__lt=hi)
    return qs


def _money(value) -> str:
    return str((value or Decimal("0")).quantize(Decimal("0.01")))


def order_stats(*, start: date | None = None, end: date | None = None) -> dict:
    orders = _filtered(start, end)
    paid = Q(payment_status=Order.PAYMENT_PAID)

    totals = orders.aggregate(
        total_orders=Count("id"),
        revenue=Sum("total_amount", filter=paid),
    )

    by_status = {row["status"]: row["count"] for row in orders.values("status").annotate(count=Count("id"))}

    by_method = [
        {
            "payment_method": row["payment_method"],
            "count": row["count"],
            "revenue": _money(row["revenue"]),
        }
        for row in orders.values("payment_method")
        .annotate(count=Count("id"), revenue=Sum("total_amount", filter=paid))
        .order_by("payment_method")
    ]

    top_products = [
        {
            "product_id": str(row["product_id"]) if row["product_id"] else None,
            "name": row["title"],
            "quantity": row["quantity"],
        }
        for row in OrderItem.objects.filter(order__in=orders)
        .values("product_id", "title")
        .annotate(quantity=Sum("quantity"))
        .order_by("-quantity", "title")[:TOP_PRODUCTS]
    ]

    return {
        "total_orders": totals["total_orders"] or 0,
        "revenue": _money(totals["revenue"]),
        "by_status": by_status,
        "by_payment_method": by_method,
        "top_products": top_products,
    }
