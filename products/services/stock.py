# products/services/stock.py

"""
VARIANT STOCK ENGINE

Purpose:
- Reserve stock for a set of order lines with NO overselling under concurrent checkout.
- Restore stock on cancellation / return / unpaid-order cleanup.

Mechanics:
- Every mutation is a single conditional UPDATE:
      UPDATE variant SET stock = stock - n WHERE id = ? AND stock >= n
  0 rows updated means someone else took the stock first.
- reserve_stock() runs inside transaction.atomic: the first failing line raises
  InsufficientStockError and the whole reservation (and the caller's enclosing
  transaction, e.g. order creation) rolls back.
- Lines for the same variant are merged first so a split line cannot double-pass
  the guard.
- Integer units only.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Iterable

from django.db import transaction
from django.db.models import F

from products.models import ProductVariant
from products.services.exceptions import InsufficientStockError, StockRestorationError

logger = logging.getLogger(__name__)


def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if value is None or value == "":
        return 0

    if isinstance(value, bool):
        raise ValueError("quantity must be a whole integer unit")

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        s = value.strip()
        if s.isdigit():
            return int(s)

    raise ValueError("quantity must be a whole integer unit")


def _merge_lines(lines: Iterable[tuple]) -> "OrderedDict[object, int]":
    merged: OrderedDict = OrderedDict()
    for variant_id, qty in lines:
        qty = _to_int_qty(qty)
        if qty <= 0:
            raise ValueError("quantity must be >= 1")
        merged[variant_id] = merged.get(variant_id, 0) + qty
    return merged


@transaction.atomic
def reserve_stock(lines: Iterable[tuple]) -> None:
    """
    lines: iterable of (variant_id, quantity).
    """
    for variant_id, qty in _merge_lines(lines).items():
        updated = ProductVariant.objects.filter(id=variant_id, stock__gte=qty).update(
            stock=F("stock") - qty
        )
        if updated:
            continue

        variant = ProductVariant.objects.filter(id=variant_id).only("sku", "stock").first()
        if variant is None:
            raise InsufficientStockError(f"Variant {variant_id} no longer exists")

        logger.info(
            "Stock reservation rejected",
            extra={"sku": variant.sku, "requested": qty, "available": variant.stock},
        )
        raise InsufficientStockError(sku=variant.sku, requested=qty, available=int(variant.stock))


@transaction.atomic
def restore_stock(lines: Iterable[tuple]) -> int:
    """
    Increment stock back. Returns total units restored.
    Missing variants (deleted from catalog) raise StockRestorationError.
    """
    restored = 0
    for variant_id, qty in _merge_lines(lines).items():
        updated = ProductVariant.objects.filter(id=variant_id).update(stock=F("stock") + qty)
        if not updated:
            raise StockRestorationError(f"Variant {variant_id} not found; cannot restore {qty} units")
        restored += qty
    return restored
