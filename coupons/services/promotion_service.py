# coupons/services/promotion_service.py

"""
PROMOTION COUPON GENERATION

generate_coupons(promotion, user_ids=[...])  one coupon per active user (emailed)
generate_coupons(promotion, count=N)         N unassigned coupons

Rules:
- promotion must be type "coupon" and active
- code = prefix + random uppercase alphanumerics (coupon_length chars)
- valid_until = min(now + coupon_expire_days, promotion.end_date)
- usage_limit = max_usage_count, min_order_value = min_order_amount

Each coupon is its own savepoint: one failure is counted and logged, the rest
of the batch still lands.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from coupons.models import Coupon, Promotion
from coupons.services.exceptions import NoRecipientsError, PromotionNotEligibleError
from integrations.notifications import send_coupon_issued

logger = logging.getLogger(__name__)

User = get_user_model()

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10
MAX_BATCH = 500


@dataclass
class GenerationResult:
    coupons: list = field(default_factory=list)
    failed: int = 0

    @property
    def success_count(self) -> int:
        return len(self.coupons)


def generate_code(prefix: str, length: int) -> str:
    random_part = "".join(secrets.choice(CODE_ALPHABET) for _ in range(int(length)))
    return f"{(prefix or '').upper()}{random_part}"


def _unique_code(promotion: Promotion) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_code(promotion.coupon_prefix, promotion.coupon_length)
        if not Coupon.objects.filter(code=code).exists():
            return code
    raise IntegrityError(f"Could not find a free coupon code for prefix {promotion.coupon_prefix}")


def _validity(promotion: Promotion, *, now):
    valid_from = promotion.start_date
    valid_until = min(now + timedelta(days=promotion.coupon_expire_days), promotion.end_date)
    if valid_until <= valid_from:
        valid_until = promotion.end_date
    return valid_from, valid_until


def _build_coupon(promotion: Promotion, *, user=None, now) -> Coupon:
    valid_from, valid_until = _validity(promotion, now=now)
    coupon = Coupon(
        code=_unique_code(promotion),
        description=promotion.name,
        discount_type=promotion.discount_type,
        value=promotion.discount_value,
        min_order_value=promotion.min_order_amount,
        usage_limit=promotion.max_usage_count,
        valid_from=valid_from,
        valid_until=valid_until,
        promotion=promotion,
        assigned_user=user,
    )
    coupon.full_clean()
    coupon.save()
    return coupon


def ensure_can_generate(promotion: Promotion) -> None:
    if promotion.promotion_type != Promotion.TYPE_COUPON:
        raise PromotionNotEligibleError("Only coupon type promotions can generate coupons")
    if not promotion.is_active:
        raise PromotionNotEligibleError("Cannot generate coupons for inactive promotion")
    if promotion.end_date <= timezone.now():
        raise PromotionNotEligibleError("Promotion has already ended")


def generate_coupons(*, promotion: Promotion, user_ids=None, count: int | None = None) -> GenerationResult:
    ensure_can_generate(promotion)

    now = timezone.now()
    result = GenerationResult()

    if user_ids:
        recipients = list(User.objects.filter(id__in=user_ids, is_active=True))
        if not recipients:
            raise NoRecipientsError()
    else:
        count = int(count or 0)
        if count < 1 or count > MAX_BATCH:
            raise PromotionNotEligibleError(f"count must be between 1 and {MAX_BATCH}")
        recipients = [None] * count

    for user in recipients:
        try:
            with transaction.atomic():
                coupon = _build_coupon(promotion, user=user, now=now)
        except (IntegrityError, DjangoValidationError) as exc:
            result.failed += 1
            logger.warning(
                "Coupon generation failed",
                extra={
                    "promotion_id": str(promotion.id),
                    "user_id": str(user.id) if user else None,
                    "error": str(exc),
                },
            )
            continue

        result.coupons.append(coupon)
        if user is not None:
            send_coupon_issued(user=user, coupon=coupon, promotion=promotion)

    logger.info(
        "Promotion coupons generated",
        extra={
            "promotion_id": str(promotion.id),
            "success": result.success_count,
            "failed": result.failed,
        },
    )
    return result
