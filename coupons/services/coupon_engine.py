# coupons/services/coupon_engine.py

"""
COUPON ENGINE

validate_coupon(code, order_value) -> CouponQuote   (read-only preview)
redeem_coupon(quote)                -> Coupon        (order creation only)

Check order (first failure wins):
1) existence           INVALID_COUPON        404
2) active + window     INACTIVE_COUPON       400
3) usage limit         COUPON_USAGE_EXCEEDED 400
4) minimum order value ORDER_VALUE_TOO_LOW   400

Discount:
- percent: order_value * value / 100, capped by max_discount_value
- fixed:   value
- both capped at order_value, rounded half-up to 2 places

Codes with no coupon row fall back to a live "coupon" promotion whose prefix
matches. That virtual coupon is only written to the DB when an order redeems it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from coupons.models import Coupon, Promotion
from coupons.services.exceptions import (
    CouponUsageExceededError,
    InactiveCouponError,
    InvalidCouponError,
    OrderValueTooLowError,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(value) -> Decimal:
    return Decimal(str(value if value is not None else "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CouponQuote:
    coupon: Coupon
    order_value: Decimal
    discount: Decimal
    promotion: Promotion | None = None

    @property
    def code(self) -> str:
        return self.coupon.code

    @property
    def is_virtual(self) -> bool:
        return self.coupon._state.adding

    @property
    def discounted_total(self) -> Decimal:
        return _money(self.order_value - self.discount)

    def as_dict(self) -> dict:
        coupon = self.coupon
        return {
            "id": None if self.is_virtual else str(coupon.id),
            "code": coupon.code,
            "discount_type": coupon.discount_type,
            "value": str(_money(coupon.value)),
            "min_order_value": str(_money(coupon.min_order_value)),
            "max_discount_value": (
                str(_money(coupon.max_discount_value)) if coupon.max_discount_value is not None else None
            ),
            "discount": str(self.discount),
            "discounted_total": str(self.discounted_total),
        }


def compute_discount(*, discount_type: str, value, order_value, max_discount_value=None) -> Decimal:
    order_value = Decimal(str(order_value))
    if order_value <= 0:
        return ZERO

    value = Decimal(str(value))
    if discount_type == Coupon.TYPE_PERCENT:
        discount = order_value * value / Decimal("100")
        if max_discount_value is not None and discount > Decimal(str(max_discount_value)):
            discount = Decimal(str(max_discount_value))
    else:
        discount = value

    if discount > order_value:
        discount = order_value
    if discount < 0:
        discount = ZERO

    return _money(discount)


def _promotion_for_code(code: str, *, at) -> Promotion | None:
    candidates = Promotion.objects.filter(
        promotion_type=Promotion.TYPE_COUPON,
        is_active=True,
        start_date__lte=at,
        end_date__gte=at,
    ).exclude(coupon_prefix="")

    # Longest prefix wins when campaigns overlap.
    for promotion in sorted(candidates, key=lambda p: len(p.coupon_prefix), reverse=True):
        if code.startswith(promotion.coupon_prefix):
            return promotion
    return None


def _virtual_coupon(code: str, promotion: Promotion) -> Coupon:
    return Coupon(
        code=code,
        discount_type=promotion.discount_type,
        value=promotion.discount_value,
        min_order_value=promotion.min_order_amount,
        usage_limit=promotion.max_usage_count,
        used_count=0,
        valid_from=promotion.start_date,
        valid_until=promotion.end_date,
        promotion=promotion,
    )


def find_coupon(code) -> tuple[Coupon | None, Promotion | None]:
    code = Coupon.normalize_code(code)
    if not code:
        return None, None

    coupon = Coupon.objects.filter(code=code).select_related("promotion").first()
    if coupon is not None:
        return coupon, coupon.promotion

    promotion = _promotion_for_code(code, at=timezone.now())
    if promotion is None:
        return None, None
    return _virtual_coupon(code, promotion), promotion


def validate_coupon(code, order_value, *, at=None) -> CouponQuote:
    """
    Pure check. Never mutates used_count.
    """
    at = at or timezone.now()
    order_value = _money(order_value)

    coupon, promotion = find_coupon(code)
    if coupon is None:
        raise InvalidCouponError()

    if not coupon.is_active or not coupon.is_within_window(at):
        raise InactiveCouponError()

    if coupon.is_exhausted:
        raise CouponUsageExceededError()

    if order_value < _money(coupon.min_order_value):
        raise OrderValueTooLowError(min_order_value=_money(coupon.min_order_value))

    discount = compute_discount(
        discount_type=coupon.discount_type,
        value=coupon.value,
        order_value=order_value,
        max_discount_value=coupon.max_discount_value,
    )
    return CouponQuote(coupon=coupon, order_value=order_value, discount=discount, promotion=promotion)


def _materialize(quote: CouponQuote) -> Coupon:
    coupon = quote.coupon
    try:
        with transaction.atomic():
            coupon.full_clean(validate_unique=False)
            coupon.save()
    except IntegrityError:
        # Another checkout materialized the same code first.
        coupon = Coupon.objects.get(code=coupon.code)

    logger.info(
        "Promotion coupon materialized",
        extra={"code": coupon.code, "promotion_id": str(quote.promotion.id) if quote.promotion else None},
    )
    return coupon


@transaction.atomic
def redeem_coupon(quote: CouponQuote) -> Coupon:
    """
    Count one use. Call inside the order-creation transaction.

    The increment is a conditional UPDATE so two orders racing for the last
    use cannot both pass.
    """
    coupon = _materialize(quote) if quote.is_virtual else quote.coupon

    updated = (
        Coupon.objects.filter(pk=coupon.pk, is_active=True)
        .filter(Q(usage_limit__isnull=True) | Q(used_count__lt=F("usage_limit")))
        .update(used_count=F("used_count") + 1)
    )
    if not updated:
        raise CouponUsageExceededError()

    coupon.refresh_from_db()
    logger.info(
        "Coupon redeemed",
        extra={"code": coupon.code, "used_count": coupon.used_count, "usage_limit": coupon.usage_limit},
    )
    return coupon
