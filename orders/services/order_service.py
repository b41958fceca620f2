# orders/services/order_service.py

"""
ORDER SERVICE (APPLICATION SERVICE)

create_order:
- prices every line from the CURRENT catalog variant (client prices ignored)
- one transaction: order + items + history + stock reservation + coupon usage
  succeed together or roll back together
- online methods open the gateway session inside that transaction, so a
  gateway failure leaves no order, no reserved stock and no coupon use
- COD orders are confirmed immediately; notifications/shipment after commit

Stock:
- reserve_stock() is a conditional UPDATE per variant; the first short line
  raises InsufficientStockError and everything rolls back
- cancellation / deletion restore exactly what the order still holds
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction

from carts.services.owner import Owner
from coupons.services.coupon_engine import CouponQuote, redeem_coupon, validate_coupon
from coupons.services.exceptions import InvalidCouponError
from integrations.payment_gateway import PaymentSession
from orders.models import Order, OrderItem
from orders.services import fulfillment
from orders.services.exceptions import InvalidStateError, OrderForbiddenError
from orders.services.lifecycle import CANCELABLE_STATES, apply_transition, record_history
from orders.services.payments import issue_refund, open_payment_session
from permissions.roles import is_order_staff, is_owner
from products.services.exceptions import InsufficientStockError
from products.services.stock import reserve_stock, restore_stock
from products.services.variants import get_active_product, resolve_variant

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

ORDER_NUMBER_ATTEMPTS = 20


def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    payment_session: PaymentSession | None = None


@dataclass
class _PricedLine:
    product: object
    variant: object
    quantity: int
    unit_price: Decimal
    gst_rate: Decimal
    line_total: Decimal
    gst_amount: Decimal


# =========================================================
# ACCESS
# =========================================================
def ensure_can_manage(order: Order, user) -> None:
    """
    Owner or order staff. Guest-owned orders are staff-only for mutations.
    """
    if is_order_staff(user) or is_owner(user, order):
        return
    raise OrderForbiddenError()


def can_view(order: Order, user, *, guest_session_id: str = "") -> bool:
    if is_order_staff(user) or is_owner(user, order):
        return True
    return bool(order.is_guest and guest_session_id and order.guest_session_id == guest_session_id)


# =========================================================
# CREATE
# =========================================================
def generate_order_number() -> str:
    prefix = getattr(settings, "ORDER_ID_PREFIX", "BG") or "BG"
    for _ in range(ORDER_NUMBER_ATTEMPTS):
        candidate = f"{prefix}{secrets.randbelow(900000) + 100000}"
        if not Order.objects.filter(order_number=candidate).exists():
            return candidate
    raise RuntimeError("Could not allocate a unique order number")


def _price_lines(items: list[dict]) -> list[_PricedLine]:
    lines = []
    for raw in items:
        product = get_active_product(raw.get("product_id"))
        resolved = resolve_variant(
            product=product,
            sku=raw.get("variant_sku", ""),
            size=raw.get("size", ""),
            color=raw.get("color", ""),
        )
        variant = resolved.variant
        quantity = int(raw["quantity"])

        # Early, readable failure; reserve_stock() is the race-safe guard.
        if variant.stock < quantity:
            raise InsufficientStockError(sku=variant.sku, requested=quantity, available=int(variant.stock))

        unit_price = _money(variant.selling_price)
        gst_rate = _money(product.gst_rate)
        line_total = _money(unit_price * quantity)
        lines.append(
            _PricedLine(
                product=product,
                variant=variant,
                quantity=quantity,
                unit_price=unit_price,
                gst_rate=gst_rate,
                line_total=line_total,
                gst_amount=_money(line_total * gst_rate / Decimal("100")),
            )
        )
    return lines


def _quote_coupon(code: str, subtotal: Decimal) -> CouponQuote | None:
    if not (code or "").strip():
        return None
    try:
        return validate_coupon(code, subtotal)
    except InvalidCouponError as exc:
        # At checkout an unknown code is a bad request, not a missing resource.
        raise InvalidCouponError(exc.message, http_status=400) from exc


def _address_fields(prefix: str, address: dict) -> dict:
    return {
        f"{prefix}_name": address.get("name", ""),
        f"{prefix}_address": address.get("street", ""),
        f"{prefix}_address_2": address.get("address_2", ""),
        f"{prefix}_city": address.get("city", ""),
        f"{prefix}_state": address.get("state", ""),
        f"{prefix}_pincode": address.get("pincode", ""),
        f"{prefix}_country": address.get("country") or "India",
        f"{prefix}_email": address.get("email", ""),
        f"{prefix}_phone": address.get("phone", ""),
    }


def _package(lines: list[_PricedLine]) -> dict:
    return {
        "weight": sum((line.variant.weight * line.quantity for line in lines), Decimal("0.000")),
        "length": max((line.variant.length for line in lines), default=ZERO),
        "breadth": max((line.variant.breadth for line in lines), default=ZERO),
        "height": sum((line.variant.height * line.quantity for line in lines), ZERO),
    }


def create_order(
    *,
    owner: Owner,
    items: list[dict],
    shipping_address: dict,
    payment_method: str,
    billing_address: dict | None = None,
    coupon_code: str = "",
    comment: str = "",
) -> CheckoutResult:
    if not items:
        raise InvalidStateError("Order must contain at least one item")

    session = None
    with transaction.atomic():
        lines = _price_lines(items)

        subtotal = _money(sum((line.line_total for line in lines), ZERO))
        total_gst = _money(sum((line.gst_amount for line in lines), ZERO))

        quote = _quote_coupon(coupon_code, subtotal)
        discount = quote.discount if quote else ZERO

        shipping_is_billing = billing_address is None
        billing = billing_address or shipping_address

        order = Order(
            order_number=generate_order_number(),
            user=owner.user,
            guest_session_id="" if owner.user is not None else owner.guest_session_id,
            shipping_is_billing=shipping_is_billing,
            comment=comment or "",
            payment_method=payment_method,
            subtotal_amount=subtotal,
            discount_amount=discount,
            total_gst_amount=total_gst,
            total_amount=_money(subtotal - discount),
            **_address_fields("billing", billing),
            **_address_fields("shipping", shipping_address),
            **_package(lines),
        )
        order.full_clean()
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=line.product,
                    variant=line.variant,
                    variant_sku=line.variant.sku,
                    title=line.product.title,
                    hsn_code=line.product.hsn_code,
                    size=line.variant.attribute("size") or "",
                    color=line.variant.attribute("color") or "",
                    quantity=line.quantity,
                    mrp=_money(line.variant.mrp),
                    unit_price=line.unit_price,
                    gst_rate=line.gst_rate,
                    gst_amount=line.gst_amount,
                    line_total=line.line_total,
                )
                for line in lines
            ]
        )
        record_history(order=order, status=Order.STATUS_CREATED, note="Order created", actor=owner.user)

        reserve_stock((line.variant.id, line.quantity) for line in lines)

        if quote is not None:
            coupon = redeem_coupon(quote)
            order.coupon = coupon
            order.coupon_code = coupon.code
            order.coupon_discount_type = coupon.discount_type
            order.coupon_value = coupon.value
            order.save(update_fields=["coupon", "coupon_code", "coupon_discount_type", "coupon_value"])

        if order.uses_gateway:
            session = open_payment_session(order)
        else:
            apply_transition(
                order=order,
                target_status=Order.STATUS_CONFIRMED,
                note="Cash on delivery order confirmed",
                actor=owner.user,
            )

    logger.info(
        "Order created",
        extra={
            "order_number": order.order_number,
            "payment_method": payment_method,
            "total": str(order.total_amount),
            "coupon": order.coupon_code or None,
            "guest": owner.is_guest,
        },
    )

    if not order.uses_gateway:
        fulfillment.on_order_confirmed(order)

    return CheckoutResult(order=order, payment_session=session)


# =========================================================
# STOCK HELD BY AN ORDER
# =========================================================
def held_stock_lines(order: Order) -> list[tuple]:
    """
    (variant_id, qty) still reserved by this order; nothing once cancelled.
    Only meaningful before shipment, which is where cancel and delete stop.
    """
    if order.status == Order.STATUS_CANCELLED:
        return []

    lines = []
    for item in order.items.all():
        if item.variant_id is None:
            logger.warning(
                "Order line has no catalog variant; stock not restored",
                extra={"order_number": order.order_number, "sku": item.variant_sku},
            )
            continue
        lines.append((item.variant_id, item.quantity))
    return lines


# =========================================================
# CANCEL / DELETE
# =========================================================
def cancel_order(order: Order, *, actor, reason: str = "") -> Order:
    ensure_can_manage(order, actor)

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.status not in CANCELABLE_STATES:
            raise InvalidStateError(
                f"Order cannot be cancelled in status {order.status}. "
                f"Cancelable statuses: {', '.join(sorted(CANCELABLE_STATES))}"
            )

        lines = held_stock_lines(order)
        apply_transition(
            order=order,
            target_status=Order.STATUS_CANCELLED,
            note=reason or "Order cancelled",
            actor=actor,
        )
        restore_stock(lines)

    logger.info("Order cancelled", extra={"order_number": order.order_number, "by": str(getattr(actor, "pk", ""))})

    fulfillment.on_order_cancelled(order)
    if order.is_paid:
        issue_refund(order, amount=order.total_amount, note=reason or "Order cancelled")

    return order


# Nothing has left the warehouse yet.
DELETABLE_STATES = CANCELABLE_STATES | {Order.STATUS_CANCELLED}


def delete_order(order: Order, *, actor) -> None:
    """
    Hard delete for abandoned checkouts. Only while payment is PENDING and
    before the order has shipped.
    """
    ensure_can_manage(order, actor)

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.payment_status != Order.PAYMENT_PENDING:
            raise InvalidStateError(
                f"Only orders with pending payment can be deleted (payment status: {order.payment_status})"
            )
        if order.status not in DELETABLE_STATES:
            raise InvalidStateError(
                f"Order cannot be deleted in status {order.status}. "
                f"Deletable statuses: {', '.join(sorted(DELETABLE_STATES))}"
            )

        restored = restore_stock(held_stock_lines(order))
        order_number = order.order_number
        order.delete()

    logger.info("Order deleted", extra={"order_number": order_number, "restored_units": restored})


# =========================================================
# STAFF STATUS UPDATES
# =========================================================
def update_status(order: Order, *, status: str, actor, note: str = "") -> Order:
    """
    Generic staff transition. Cancellation goes through cancel_order so stock
    and refunds are handled.
    """
    if status == Order.STATUS_CANCELLED:
        return cancel_order(order, actor=actor, reason=note)

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        apply_transition(
            order=order,
            target_status=status,
            note=note or f"Status updated to {status}",
            actor=actor,
        )

    fulfillment.on_status_changed(order)
    return order


def mark_shipped(order: Order, *, actor, tracking_id: str = "", courier_name: str = "", note: str = "") -> Order:
    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        extra = []
        if tracking_id:
            order.tracking_id = tracking_id
            extra.append("tracking_id")
        if courier_name:
            order.courier_name = courier_name
            extra.append("courier_name")

        apply_transition(
            order=order,
            target_status=Order.STATUS_SHIPPED,
            note=note or "Order shipped",
            actor=actor,
            extra_fields=extra,
        )

    fulfillment.on_status_changed(order)
    return order


def mark_out_for_delivery(order: Order, *, actor, note: str = "") -> Order:
    return update_status(order, status=Order.STATUS_OUT_FOR_DELIVERY, actor=actor, note=note or "Out for delivery")


def mark_delivered(order: Order, *, actor, note: str = "") -> Order:
    return update_status(order, status=Order.STATUS_DELIVERED, actor=actor, note=note or "Order delivered")


# =========================================================
# GUEST -> USER
# =========================================================
def reassign_guest_orders(*, guest_session_id: str, user) -> int:
    guest_session_id = (guest_session_id or "").strip()
    if not guest_session_id:
        return 0

    updated = Order.objects.filter(user__isnull=True, guest_session_id=guest_session_id).update(
        user=user,
        guest_session_id="",
    )
    if updated:
        logger.info("Guest orders linked to user", extra={"user_id": str(user.pk), "count": updated})
    return updated
