# orders/services/returns.py

"""
RETURN / EXCHANGE WORKFLOW

Request (owner or staff):
- order must be DELIVERED
- one active (non-rejected) request per order
- each requested quantity <= ordered quantity for that SKU

Process (staff):
    PENDING  -> APPROVED | REJECTED
    APPROVED -> COMPLETED

Order effects:
- APPROVED   order -> RETURN_APPROVED / EXCHANGE_APPROVED
- REJECTED   order -> previous_status captured on the request
- COMPLETED  RETURN:   stock restored for returned lines, order -> RETURNED,
                       refund (price x returned qty unless given) best-effort
             EXCHANGE: order -> EXCHANGED (replacement fulfilment is manual)
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import IntegrityError, transaction

from orders.models import (
    Order,
    ReturnExchangeHistory,
    ReturnExchangeItem,
    ReturnExchangeRequest,
)
from orders.services.exceptions import (
    InvalidReturnQuantityError,
    InvalidStateError,
    InvalidTransitionError,
    ReturnAlreadyRequestedError,
    ReturnItemNotFoundError,
    ReturnNotFoundError,
)
from orders.services.lifecycle import apply_transition, record_history, restore_status
from orders.services.order_service import ensure_can_manage
from orders.services.payments import issue_refund
from products.services.stock import restore_stock

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

REQUEST_TRANSITIONS = {
    ReturnExchangeRequest.STATUS_PENDING: {
        ReturnExchangeRequest.STATUS_APPROVED,
        ReturnExchangeRequest.STATUS_REJECTED,
    },
    ReturnExchangeRequest.STATUS_APPROVED: {
        ReturnExchangeRequest.STATUS_COMPLETED,
    },
}

APPROVED_ORDER_STATUS = {
    ReturnExchangeRequest.TYPE_RETURN: Order.STATUS_RETURN_APPROVED,
    ReturnExchangeRequest.TYPE_EXCHANGE: Order.STATUS_EXCHANGE_APPROVED,
}

COMPLETED_ORDER_STATUS = {
    ReturnExchangeRequest.TYPE_RETURN: Order.STATUS_RETURNED,
    ReturnExchangeRequest.TYPE_EXCHANGE: Order.STATUS_EXCHANGED,
}


def _money(v) -> Decimal:
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _log_request(req: ReturnExchangeRequest, note: str) -> None:
    ReturnExchangeHistory.objects.create(request=req, status=req.status, note=(note or "")[:255])


def _match_items(order: Order, items: list[dict]) -> list[tuple]:
    by_sku = {item.variant_sku: item for item in order.items.all()}
    requested: dict[str, int] = {}
    for raw in items:
        sku = str(raw.get("variant_sku") or "").strip()
        qty = int(raw.get("quantity") or 0)
        if sku not in by_sku:
            raise ReturnItemNotFoundError(f"Item with SKU {sku} not found in order")
        if qty < 1:
            raise InvalidReturnQuantityError(f"Quantity for {sku} must be at least 1")
        requested[sku] = requested.get(sku, 0) + qty

    matched = []
    for sku, qty in requested.items():
        order_item = by_sku[sku]
        if qty > order_item.quantity:
            raise InvalidReturnQuantityError(
                f"Return/exchange quantity cannot exceed ordered quantity for {sku} "
                f"(ordered {order_item.quantity}, requested {qty})"
            )
        matched.append((order_item, qty))
    return matched


def request_return_exchange(
    order: Order,
    *,
    actor,
    request_type: str,
    reason: str,
    items: list[dict],
) -> ReturnExchangeRequest:
    ensure_can_manage(order, actor)

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)

        if order.status != Order.STATUS_DELIVERED:
            raise InvalidStateError("Only delivered orders are eligible for return/exchange")

        if order.return_requests.exclude(status=ReturnExchangeRequest.STATUS_REJECTED).exists():
            raise ReturnAlreadyRequestedError()

        matched = _match_items(order, items)

        try:
            with transaction.atomic():
                req = ReturnExchangeRequest.objects.create(
                    order=order,
                    request_type=request_type,
                    reason=reason,
                    previous_status=order.status,
                    requested_by=actor if getattr(actor, "is_authenticated", False) else None,
                )
        except IntegrityError as exc:
            raise ReturnAlreadyRequestedError() from exc

        ReturnExchangeItem.objects.bulk_create(
            [ReturnExchangeItem(request=req, order_item=order_item, quantity=qty) for order_item, qty in matched]
        )
        note = f"{request_type} requested"
        _log_request(req, note)
        record_history(order=order, status=order.status, note=note, actor=actor)

    logger.info(
        "Return/exchange requested",
        extra={"order_number": order.order_number, "type": request_type, "request_id": str(req.id)},
    )
    return req


def active_request(order: Order) -> ReturnExchangeRequest:
    req = order.return_requests.exclude(status=ReturnExchangeRequest.STATUS_REJECTED).first()
    if req is None:
        raise ReturnNotFoundError()
    return req


def refund_amount_for(req: ReturnExchangeRequest) -> Decimal:
    total = Decimal("0.00")
    for item in req.items.select_related("order_item"):
        total += item.order_item.unit_price * item.quantity
    return _money(total)


def process_return_exchange(
    order: Order,
    *,
    actor,
    status: str,
    note: str = "",
    refund_amount=None,
) -> ReturnExchangeRequest:
    """
    Staff only; the caller enforces the role.
    """
    refund_due = None

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        req = active_request(order)

        allowed = REQUEST_TRANSITIONS.get(req.status, set())
        if status not in allowed:
            raise InvalidTransitionError(
                f"Return/exchange in status {req.status} cannot move to {status}",
                allowed=allowed,
            )

        req.status = status

        if status == ReturnExchangeRequest.STATUS_APPROVED:
            apply_transition(
                order=order,
                target_status=APPROVED_ORDER_STATUS[req.request_type],
                note=note or f"{req.request_type} approved",
                actor=actor,
            )

        elif status == ReturnExchangeRequest.STATUS_REJECTED:
            restore_status(
                order=order,
                status=req.previous_status,
                note=note or f"{req.request_type} request rejected",
                actor=actor,
            )

        elif status == ReturnExchangeRequest.STATUS_COMPLETED:
            if req.is_return:
                restore_stock(
                    (item.order_item.variant_id, item.quantity)
                    for item in req.items.select_related("order_item")
                    if item.order_item.variant_id is not None
                )
                req.refund_amount = (
                    _money(refund_amount) if refund_amount is not None else refund_amount_for(req)
                )
                refund_due = req.refund_amount

            apply_transition(
                order=order,
                target_status=COMPLETED_ORDER_STATUS[req.request_type],
                note=note or (
                    "Return completed and refund processed" if req.is_return else "Exchange completed"
                ),
                actor=actor,
            )

        req.save()
        _log_request(req, note or f"{req.request_type} {status.lower()}")

    logger.info(
        "Return/exchange processed",
        extra={"order_number": order.order_number, "request_id": str(req.id), "status": status},
    )

    if refund_due is not None and refund_due > 0:
        outcome = issue_refund(order, amount=refund_due, note=note or "Refund for returned items")
        if outcome.attempted:
            req.refund_status = (
                ReturnExchangeRequest.REFUND_INITIATED if outcome.success else ReturnExchangeRequest.REFUND_FAILED
            )
            req.refund_id = outcome.refund_id if outcome.success else ""
            req.save(update_fields=["refund_status", "refund_id", "updated_at"])

    return req
