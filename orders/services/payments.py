# orders/services/payments.py

"""
PAYMENTS (SESSION, RECONCILIATION, REFUNDS)

Callback (browser redirect) and webhook (server-to-server) both end in
reconcile_payment(). The inbound payload only says WHICH order to look at;
the gateway status API decides WHAT happened.

Idempotency:
- PAID and REFUNDED are settled: a repeated confirmation changes nothing,
  sends nothing
- FAILED can still recover to PAID (late success after a failure report)
- a success that lands on a CANCELLED order is recorded, then refunded
- the decision runs on a locked order row (select_for_update)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from integrations.payment_gateway import (
    STATUS_PENDING,
    PaymentGatewayError,
    PaymentSession,
    classify_status,
    create_payment_session,
    fetch_payment_status,
    initiate_refund,
)
from orders.models import Order
from orders.services import fulfillment
from orders.services.exceptions import InvalidStateError, PaymentInitError
from orders.services.lifecycle import apply_transition, record_history

logger = logging.getLogger(__name__)


# =========================================================
# PAYLOAD NORMALIZATION
# =========================================================
ORDER_ID_PATHS = (
    ("data", "order", "order_id"),
    ("order_id",),
    ("data", "order_id"),
    ("data", "orderId"),
    ("order", "id"),
    ("data", "test_object", "order_id"),
    ("orderId",),
)

STATUS_PATHS = (
    ("txStatus",),
    ("transaction_status",),
    ("payment_status",),
    ("data", "payment", "payment_status"),
    ("data", "payment_status"),
    ("data", "txStatus"),
    ("order", "status"),
    ("order_status",),
)

REFERENCE_PATHS = (
    ("referenceId",),
    ("transaction_id",),
    ("cf_transaction_id",),
    ("data", "payment", "cf_payment_id"),
    ("data", "transaction_id"),
    ("data", "referenceId"),
    ("data", "test_object", "transaction_id"),
)


@dataclass(frozen=True)
class PaymentNotice:
    order_id: str
    status: str
    reference_id: str = ""


def _dig(payload, path):
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _first(payload, paths) -> str:
    for path in paths:
        value = _dig(payload, path)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def normalize_payment_payload(payload) -> PaymentNotice:
    """
    One place that knows every payload shape the gateway sends.
    """
    if not isinstance(payload, dict):
        payload = {}
    return PaymentNotice(
        order_id=_first(payload, ORDER_ID_PATHS),
        status=classify_status(_first(payload, STATUS_PATHS)),
        reference_id=_first(payload, REFERENCE_PATHS),
    )


# =========================================================
# SESSION
# =========================================================
def _customer_id(order: Order) -> str:
    raw = str(order.user_id) if order.user_id else f"guest_{order.guest_session_id}"
    return re.sub(r"[^A-Za-z0-9_-]", "", raw)[:50] or order.order_number


def open_payment_session(order: Order) -> PaymentSession:
    try:
        session = create_payment_session(
            order_id=order.order_number,
            amount=order.total_amount,
            customer_id=_customer_id(order),
            customer_name=order.billing_name,
            customer_email=order.billing_email,
            customer_phone=order.billing_phone,
        )
    except PaymentGatewayError as exc:
        logger.error(
            "Payment session creation failed",
            extra={"order_number": order.order_number, "status_code": exc.status_code, "error": str(exc)},
        )
        raise PaymentInitError() from exc

    order.payment_session_id = session.token
    order.gateway_order_id = session.gateway_order_id
    order.save(update_fields=["payment_session_id", "gateway_order_id", "updated_at"])
    return session


def retry_payment(order: Order) -> PaymentSession:
    if not order.uses_gateway:
        raise InvalidStateError("Order does not use online payment")
    if order.is_paid:
        raise InvalidStateError("Order is already paid")
    if order.status not in (Order.STATUS_CREATED, Order.STATUS_PAYMENT_FAILED):
        raise InvalidStateError(f"Payment cannot be retried for an order in status {order.status}")

    logger.info("Payment retry requested", extra={"order_number": order.order_number})
    return open_payment_session(order)


# =========================================================
# RECONCILIATION
# =========================================================
@dataclass(frozen=True)
class ReconcileResult:
    order: Order
    changed: bool

    @property
    def payment_status(self) -> str:
        return self.order.payment_status


def _verify(order: Order):
    try:
        return fetch_payment_status(order.order_number)
    except PaymentGatewayError as exc:
        logger.warning(
            "Payment verification unavailable; order left unchanged",
            extra={"order_number": order.order_number, "error": str(exc)},
        )
        return None


def _mark_paid(order: Order, *, reference: str) -> bool:
    """
    Returns True when the order moved to CONFIRMED (fulfilment should run).
    """
    order.payment_status = Order.PAYMENT_PAID
    order.transaction_id = reference or order.transaction_id
    order.paid_at = timezone.now()
    payment_fields = ("payment_status", "transaction_id", "paid_at")

    if order.status in (Order.STATUS_CREATED, Order.STATUS_PAYMENT_FAILED):
        apply_transition(
            order=order,
            target_status=Order.STATUS_CONFIRMED,
            note="Payment confirmed",
            extra_fields=payment_fields,
        )
        return True

    # e.g. cancelled while the customer was still paying
    order.save(update_fields=[*payment_fields, "updated_at"])
    record_history(order=order, status=order.status, note=f"Payment received while order was {order.status}")
    logger.warning(
        "Payment received for order outside checkout states",
        extra={"order_number": order.order_number, "status": order.status},
    )
    return False


def _mark_failed(order: Order) -> bool:
    if order.payment_status == Order.PAYMENT_FAILED and order.status != Order.STATUS_CREATED:
        return False

    order.payment_status = Order.PAYMENT_FAILED
    if order.status == Order.STATUS_CREATED:
        apply_transition(
            order=order,
            target_status=Order.STATUS_PAYMENT_FAILED,
            note="Payment failed",
            extra_fields=("payment_status",),
        )
    else:
        order.save(update_fields=["payment_status", "updated_at"])
    return True


def reconcile_payment(order: Order, *, notice: PaymentNotice | None = None) -> ReconcileResult:
    """
    Converge the order on the gateway's verified status. Safe to call any
    number of times, from any path, in any order.
    """
    if not order.uses_gateway:
        return ReconcileResult(order=order, changed=False)

    if order.is_payment_settled:
        logger.info(
            "Payment already settled; notice ignored",
            extra={"order_number": order.order_number, "payment_status": order.payment_status},
        )
        return ReconcileResult(order=order, changed=False)

    verified = _verify(order)
    if verified is None or verified.status == STATUS_PENDING:
        return ReconcileResult(order=order, changed=False)

    confirmed = False
    paid_after_cancel = False
    with transaction.atomic():
        locked = Order.objects.select_for_update().get(pk=order.pk)
        if locked.is_payment_settled:
            return ReconcileResult(order=locked, changed=False)

        if verified.is_paid:
            reference = verified.reference_id or (notice.reference_id if notice else "")
            confirmed = _mark_paid(locked, reference=reference)
            paid_after_cancel = locked.status == Order.STATUS_CANCELLED
        else:
            if not _mark_failed(locked):
                return ReconcileResult(order=locked, changed=False)

    logger.info(
        "Payment reconciled",
        extra={
            "order_number": locked.order_number,
            "payment_status": locked.payment_status,
            "status": locked.status,
            "notice_status": notice.status if notice else None,
        },
    )

    if confirmed:
        fulfillment.on_order_confirmed(locked)
    elif paid_after_cancel:
        # Nothing will ship for a cancelled order; hand the money back.
        issue_refund(locked, amount=locked.total_amount, note="Payment received after cancellation")

    return ReconcileResult(order=locked, changed=True)


# =========================================================
# REFUNDS (best-effort)
# =========================================================
@dataclass(frozen=True)
class RefundOutcome:
    attempted: bool
    success: bool = False
    refund_id: str = ""


def issue_refund(order: Order, *, amount, note: str = "", refund_id: str = "") -> RefundOutcome:
    """
    Refund a gateway-paid order. Failures are recorded on the order
    (refund_status=FAILED) and logged; they never raise.
    """
    if not (order.is_paid and order.uses_gateway):
        return RefundOutcome(attempted=False)

    refund_id = refund_id or f"RF{order.order_number}{timezone.now():%Y%m%d%H%M%S}"
    try:
        result = initiate_refund(order_id=order.order_number, amount=amount, refund_id=refund_id, note=note)
    except PaymentGatewayError as exc:
        logger.error(
            "Refund initiation failed",
            extra={"order_number": order.order_number, "amount": str(amount), "error": str(exc)},
        )
        order.refund_status = Order.REFUND_FAILED
        order.refund_amount = amount
        order.save(update_fields=["refund_status", "refund_amount", "updated_at"])
        return RefundOutcome(attempted=True, success=False, refund_id=refund_id)

    order.payment_status = Order.PAYMENT_REFUNDED
    order.refund_status = Order.REFUND_INITIATED
    order.refund_amount = amount
    order.refund_id = result.refund_id
    order.save(update_fields=["payment_status", "refund_status", "refund_amount", "refund_id", "updated_at"])
    return RefundOutcome(attempted=True, success=True, refund_id=result.refund_id)


def find_order_for_notice(notice: PaymentNotice) -> Order | None:
    """
    The gateway knows our order_number as its order_id; older payloads may
    carry the gateway's own id instead.
    """
    ref = (notice.order_id or "").strip()
    if not ref:
        return None
    order = Order.objects.filter(order_number=ref).first()
    if order is None:
        order = Order.objects.filter(gateway_order_id=ref).exclude(gateway_order_id="").first()
    return order
