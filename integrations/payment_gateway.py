# integrations/payment_gateway.py

"""
PAYMENT GATEWAY CLIENT (Cashfree-compatible PG API)

Calls:
- create_payment_session(...)   POST /pg/orders              -> payment_session_id
- fetch_payment_status(order_id) GET /pg/orders/{id}[/payments]
- initiate_refund(...)          POST /pg/orders/{id}/refunds

Config: settings.PAYMENTS["GATEWAY"].

Errors surface as PaymentGatewayError (IntegrationError / RuntimeError).
Callers decide whether that is fatal (session creation) or best-effort (refunds).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.conf import settings

from integrations.http import IntegrationError, request_json

logger = logging.getLogger(__name__)

SERVICE = "payment_gateway"

STATUS_PAID = "PAID"
STATUS_FAILED = "FAILED"
STATUS_PENDING = "PENDING"

SUCCESS_STATUSES = {"SUCCESS", "PAID", "OK", "COMPLETED", "CAPTURED", "AUTHORIZED"}
FAILURE_STATUSES = {"FAILED", "FAILURE", "CANCELLED", "USER_DROPPED"}

TWOPLACES = Decimal("0.01")


class PaymentGatewayError(IntegrationError):
    pass


@dataclass(frozen=True)
class PaymentSession:
    order_id: str
    token: str
    gateway_order_id: str = ""
    raw: dict = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class GatewayPaymentStatus:
    order_id: str
    status: str
    reference_id: str = ""
    raw: Any = field(default=None, repr=False)

    @property
    def is_paid(self) -> bool:
        return self.status == STATUS_PAID

    @property
    def is_failed(self) -> bool:
        return self.status == STATUS_FAILED


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    status: str
    raw: dict = field(default_factory=dict, repr=False)


def classify_status(value) -> str:
    s = str(value or "").strip().upper()
    if s in SUCCESS_STATUSES:
        return STATUS_PAID
    if s in FAILURE_STATUSES:
        return STATUS_FAILED
    return STATUS_PENDING


def _cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("GATEWAY") or {}
    if not cfg.get("BASE_URL") or not cfg.get("CLIENT_ID") or not cfg.get("CLIENT_SECRET"):
        raise PaymentGatewayError(
            "Payment gateway is not configured. Expected settings.PAYMENTS['GATEWAY'] "
            "BASE_URL / CLIENT_ID / CLIENT_SECRET.",
            service=SERVICE,
        )
    return cfg


def _headers(cfg: dict) -> dict:
    return {
        "x-client-id": cfg["CLIENT_ID"],
        "x-client-secret": cfg["CLIENT_SECRET"],
        "x-api-version": cfg.get("API_VERSION") or "2023-08-01",
    }


def _call(method: str, path: str, *, body: dict | None = None):
    cfg = _cfg()
    url = f"{cfg['BASE_URL'].rstrip('/')}{path}"
    try:
        return request_json(
            method,
            url,
            service=SERVICE,
            headers=_headers(cfg),
            body=body,
            timeout=int(cfg.get("TIMEOUT") or 20),
        )
    except IntegrationError as exc:
        raise PaymentGatewayError(str(exc), service=SERVICE, status_code=exc.status_code) from exc


def _amount(value) -> float:
    # Gateway expects a JSON number in rupees.
    return float(Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP))


def create_payment_session(
    *,
    order_id: str,
    amount,
    customer_id: str,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    currency: str = "INR",
    note: str = "",
) -> PaymentSession:
    cfg = _cfg()
    payload = {
        "order_id": str(order_id),
        "order_amount": _amount(amount),
        "order_currency": currency,
        "order_note": note or f"Payment for order {order_id}",
        "customer_details": {
            "customer_id": str(customer_id),
            "customer_name": customer_name or "Customer",
            "customer_email": customer_email,
            "customer_phone": customer_phone,
        },
        "order_meta": {
            "return_url": (cfg.get("RETURN_URL") or "").replace("{order_id}", str(order_id)),
            "notify_url": cfg.get("NOTIFY_URL") or "",
        },
    }

    data = _call("POST", "/pg/orders", body=payload) or {}
    token = str(data.get("payment_session_id") or "").strip()
    if not token:
        raise PaymentGatewayError("Gateway response did not include a payment session", service=SERVICE)

    logger.info("Payment session created", extra={"order_id": order_id, "cf_order_id": data.get("cf_order_id")})
    return PaymentSession(
        order_id=str(order_id),
        token=token,
        gateway_order_id=str(data.get("cf_order_id") or ""),
        raw=data,
    )


def _latest_payment(payments) -> dict:
    if not isinstance(payments, list) or not payments:
        return {}
    for payment in payments:
        if classify_status(payment.get("payment_status")) == STATUS_PAID:
            return payment
    return payments[0]


def fetch_payment_status(order_id: str) -> GatewayPaymentStatus:
    """
    Authoritative status for an order, straight from the gateway.
    """
    order_id = str(order_id)
    order = _call("GET", f"/pg/orders/{order_id}") or {}
    order_status = classify_status(order.get("order_status"))

    payments = _call("GET", f"/pg/orders/{order_id}/payments")
    payment = _latest_payment(payments)
    payment_status = classify_status(payment.get("payment_status"))

    if order_status == STATUS_PAID or payment_status == STATUS_PAID:
        status = STATUS_PAID
    elif payment_status == STATUS_FAILED or order_status == STATUS_FAILED:
        status = STATUS_FAILED
    else:
        status = STATUS_PENDING

    reference = str(payment.get("cf_payment_id") or payment.get("bank_reference") or "")
    return GatewayPaymentStatus(
        order_id=order_id,
        status=status,
        reference_id=reference,
        raw={"order": order, "payments": payments},
    )


def initiate_refund(*, order_id: str, amount, refund_id: str, note: str = "") -> RefundResult:
    payload = {
        "refund_amount": _amount(amount),
        "refund_id": str(refund_id),
        "refund_note": note or "Refund",
    }
    data = _call("POST", f"/pg/orders/{order_id}/refunds", body=payload) or {}

    logger.info(
        "Refund initiated",
        extra={"order_id": order_id, "refund_id": refund_id, "refund_status": data.get("refund_status")},
    )
    return RefundResult(
        refund_id=str(data.get("refund_id") or refund_id),
        status=str(data.get("refund_status") or "PENDING"),
        raw=data,
    )
