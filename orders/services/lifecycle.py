"""
ORDER LIFECYCLE DOMAIN RULES

The ONLY allowed status transitions for Order.

Rules:
- `status` is the single source for guards; history is written alongside it.
- Terminal states never move.
- Gateway orders reach CONFIRMED only once their payment is verified.
- Rejected return/exchange requests restore a captured status through
  restore_status(); that path is not a normal edge.
"""

from __future__ import annotations

from django.utils import timezone

from orders.models import Order, OrderStatusHistory
from orders.services.exceptions import InvalidStateError, InvalidTransitionError

TERMINAL_STATES = {
    Order.STATUS_CANCELLED,
    Order.STATUS_RETURNED,
    Order.STATUS_EXCHANGED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_CREATED: {
        Order.STATUS_CONFIRMED,
        Order.STATUS_PAYMENT_FAILED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_PAYMENT_FAILED: {
        Order.STATUS_CONFIRMED,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_CONFIRMED: {
        Order.STATUS_PROCESSING,
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELLED,
        Order.STATUS_STOCK_ISSUE,
    },
    Order.STATUS_PROCESSING: {
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELLED,
        Order.STATUS_STOCK_ISSUE,
    },
    Order.STATUS_STOCK_ISSUE: {
        Order.STATUS_PROCESSING,
        Order.STATUS_CANCELLED,
    },
    Order.STATUS_SHIPPED: {
        Order.STATUS_OUT_FOR_DELIVERY,
        Order.STATUS_DELIVERED,
    },
    Order.STATUS_OUT_FOR_DELIVERY: {
        Order.STATUS_DELIVERED,
    },
    Order.STATUS_DELIVERED: {
        Order.STATUS_RETURN_APPROVED,
        Order.STATUS_EXCHANGE_APPROVED,
    },
    Order.STATUS_RETURN_APPROVED: {
        Order.STATUS_RETURNED,
    },
    Order.STATUS_EXCHANGE_APPROVED: {
        Order.STATUS_EXCHANGED,
    },
}

CANCELABLE_STATES = {
    source for source, targets in ALLOWED_TRANSITIONS.items() if Order.STATUS_CANCELLED in targets
}

# Human wording for guard messages ("...to be marked as delivered: ...").
_TARGET_LABELS = {
    Order.STATUS_SHIPPED: "marked as shipped",
    Order.STATUS_OUT_FOR_DELIVERY: "marked as out for delivery",
    Order.STATUS_DELIVERED: "marked as delivered",
    Order.STATUS_CANCELLED: "cancelled",
}


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def allowed_sources(to_status: str) -> list[str]:
    return sorted(source for source, targets in ALLOWED_TRANSITIONS.items() if to_status in targets)


def validate_transition(*, order: Order, target_status: str) -> None:
    if not can_transition(from_status=order.status, to_status=target_status):
        sources = allowed_sources(target_status)
        label = _TARGET_LABELS.get(target_status, f"moved to {target_status}")
        raise InvalidTransitionError(
            f"Order must be in one of these statuses to be {label}: {', '.join(sources) or 'none'} "
            f"(current: {order.status})",
            allowed=sources,
        )

    if target_status == Order.STATUS_CONFIRMED and order.uses_gateway and not order.is_paid:
        raise InvalidStateError(
            f"Online payment is not confirmed for this order (payment status: {order.payment_status})"
        )


def record_history(*, order: Order, status: str, note: str = "", actor=None) -> OrderStatusHistory:
    return OrderStatusHistory.objects.create(
        order=order,
        status=status,
        note=(note or "")[:255],
        created_by=actor if getattr(actor, "is_authenticated", False) else None,
        created_at=timezone.now(),
    )


def apply_transition(*, order: Order, target_status: str, note: str = "", actor=None, extra_fields=()) -> Order:
    """
    Guard + status write + history row. Call inside transaction.atomic with the
    order row locked.
    """
    validate_transition(order=order, target_status=target_status)

    order.status = target_status
    order.save(update_fields=["status", "updated_at", *extra_fields])
    record_history(order=order, status=target_status, note=note, actor=actor)
    return order


def restore_status(*, order: Order, status: str, note: str = "", actor=None) -> Order:
    order.status = status
    order.save(update_fields=["status", "updated_at"])
    record_history(order=order, status=status, note=note, actor=actor)
    return order
