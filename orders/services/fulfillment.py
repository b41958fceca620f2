# orders/services/fulfillment.py

"""
FULFILMENT SIDE EFFECTS (BEST-EFFORT)

Called by the order services AFTER their transaction has committed.
Nothing here raises: every step is logged and skipped on failure, so a mail
server or courier outage can never undo a confirmed payment or a placed order.

- on_order_confirmed: confirmation email/SMS, shipment + AWB
- on_status_changed:  shipping update on SHIPPED / OUT_FOR_DELIVERY / DELIVERED
- on_order_cancelled: courier order cancelled when one was created
"""

from __future__ import annotations

import logging
from decimal import Decimal

from integrations import notifications, shipping
from orders.models import Order

logger = logging.getLogger(__name__)

SHIPPING_UPDATE_STATUSES = {
    Order.STATUS_SHIPPED,
    Order.STATUS_OUT_FOR_DELIVERY,
    Order.STATUS_DELIVERED,
}

# Courier minimums (cm / kg) when the catalog has no dimensions.
MIN_DIMENSION = Decimal("10")
MIN_WEIGHT = Decimal("0.5")


def _best_effort(step: str, subject: Order, fn, /, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except Exception:
        logger.exception("Fulfilment step failed", extra={"step": step, "order_number": subject.order_number})
        return None


def _split_name(full_name: str) -> tuple[str, str]:
    first, _, last = (full_name or "").strip().partition(" ")
    return first, last.strip()


def build_shipment_payload(order: Order) -> dict:
    first, last = _split_name(order.billing_name)
    payload = {
        "order_id": order.order_number,
        "order_date": order.created_at.strftime("%Y-%m-%d %H:%M"),
        "comment": order.comment,
        "billing_customer_name": first,
        "billing_last_name": last,
        "billing_address": order.billing_address,
        "billing_address_2": order.billing_address_2,
        "billing_city": order.billing_city,
        "billing_pincode": order.billing_pincode,
        "billing_state": order.billing_state,
        "billing_country": order.billing_country,
        "billing_email": order.billing_email,
        "billing_phone": order.billing_phone,
        "shipping_is_billing": order.shipping_is_billing,
        "order_items": [
            {
                "name": item.title,
                "sku": item.variant_sku,
                "units": item.quantity,
                "selling_price": float(item.unit_price),
                "hsn": item.hsn_code,
            }
            for item in order.items.all()
        ],
        "payment_method": "COD" if order.payment_method == Order.METHOD_COD else "Prepaid",
        "sub_total": float(order.total_amount),
        "length": float(max(order.length, MIN_DIMENSION)),
        "breadth": float(max(order.breadth, MIN_DIMENSION)),
        "height": float(max(order.height, MIN_DIMENSION)),
        "weight": float(max(order.weight, MIN_WEIGHT)),
    }

    if not order.shipping_is_billing:
        ship_first, ship_last = _split_name(order.shipping_name)
        payload.update(
            {
                "shipping_customer_name": ship_first,
                "shipping_last_name": ship_last,
                "shipping_address": order.shipping_address,
                "shipping_address_2": order.shipping_address_2,
                "shipping_city": order.shipping_city,
                "shipping_pincode": order.shipping_pincode,
                "shipping_state": order.shipping_state,
                "shipping_country": order.shipping_country,
                "shipping_email": order.shipping_email,
                "shipping_phone": order.shipping_phone,
            }
        )
    return payload


def create_shipment_for(order: Order) -> bool:
    if not shipping.is_enabled():
        logger.info("Shipping disabled; shipment skipped", extra={"order_number": order.order_number})
        return False

    result = shipping.create_shipment(build_shipment_payload(order))
    if not result.success:
        return False

    fields = {"shipment_id": result.shipment_id, "provider_order_id": result.provider_order_id}

    awb = shipping.generate_tracking_number(result.shipment_id)
    if awb.success:
        fields["tracking_id"] = awb.tracking_code
        fields["courier_name"] = awb.courier_name

    # Plain UPDATE: never touches status or payment fields.
    Order.objects.filter(pk=order.pk).update(**fields)
    for name, value in fields.items():
        setattr(order, name, value)
    return True


def on_order_confirmed(order: Order) -> None:
    _best_effort(
        "confirmation",
        order,
        notifications.send_order_confirmation,
        recipient=order.recipient_email,
        order=order,
        phone=order.recipient_phone,
    )
    _best_effort("shipment", order, create_shipment_for, order)


def on_status_changed(order: Order) -> None:
    if order.status not in SHIPPING_UPDATE_STATUSES:
        return
    _best_effort(
        "shipping_update",
        order,
        notifications.send_shipping_update,
        recipient=order.recipient_email,
        order_number=order.order_number,
        status=order.status,
        tracking_id=order.tracking_id,
        phone=order.recipient_phone,
    )


def cancel_shipment_for(order: Order) -> bool:
    if not order.provider_order_id or not shipping.is_enabled():
        return False
    result = shipping.cancel_shipment([order.provider_order_id])
    return result.success


def on_order_cancelled(order: Order) -> None:
    _best_effort("shipment_cancel", order, cancel_shipment_for, order)
