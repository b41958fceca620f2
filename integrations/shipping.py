# integrations/shipping.py

"""
SHIPPING AGGREGATOR CLIENT (ShipRocket-compatible external API)

Best-effort by contract: every call returns a result object with `success`
and never raises into the order workflow. Failures are logged with context.

Auth token (auth/login) is cached for 9 days; a 401 drops the cache once and
retries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings
from django.core.cache import cache

from integrations.http import IntegrationError, request_json

logger = logging.getLogger(__name__)

SERVICE = "shipping"
TOKEN_CACHE_KEY = "integrations:shipping:token"
TOKEN_TTL_SECONDS = 9 * 24 * 60 * 60

DEFAULT_DELIVERY_DAYS = 3


@dataclass(frozen=True)
class ShipmentResult:
    success: bool
    shipment_id: str = ""
    provider_order_id: str = ""
    error: str = ""
    raw: Any = field(default=None, repr=False)


@dataclass(frozen=True)
class TrackingResult:
    success: bool
    tracking_code: str = ""
    courier_name: str = ""
    error: str = ""
    raw: Any = field(default=None, repr=False)


@dataclass(frozen=True)
class ServiceabilityResult:
    success: bool
    serviceable: bool = False
    estimated_days: int | None = None
    min_days: int | None = None
    max_days: int | None = None
    error: str = ""


@dataclass(frozen=True)
class ShippingCallResult:
    success: bool
    data: Any = None
    error: str = ""


def _cfg() -> dict:
    return getattr(settings, "SHIPPING", {}) or {}


def is_enabled() -> bool:
    cfg = _cfg()
    return bool(cfg.get("ENABLED") and cfg.get("BASE_URL") and cfg.get("EMAIL") and cfg.get("PASSWORD"))


def _url(path: str) -> str:
    return f"{_cfg()['BASE_URL'].rstrip('/')}/{path.lstrip('/')}"


def _timeout() -> int:
    return int(_cfg().get("TIMEOUT") or 15)


def _get_token(*, force: bool = False) -> str:
    if not force:
        token = cache.get(TOKEN_CACHE_KEY)
        if token:
            return token

    cfg = _cfg()
    data = request_json(
        "POST",
        _url("auth/login"),
        service=SERVICE,
        body={"email": cfg["EMAIL"], "password": cfg["PASSWORD"]},
        timeout=_timeout(),
    ) or {}

    token = str(data.get("token") or "").strip()
    if not token:
        raise IntegrationError("Shipping login returned no token", service=SERVICE)

    cache.set(TOKEN_CACHE_KEY, token, TOKEN_TTL_SECONDS)
    return token


def _authed(method: str, path: str, *, body: dict | None = None, params: dict | None = None):
    if not is_enabled():
        raise IntegrationError("Shipping integration is disabled", service=SERVICE)

    for attempt in (1, 2):
        token = _get_token(force=attempt == 2)
        try:
            return request_json(
                method,
                _url(path),
                service=SERVICE,
                headers={"Authorization": f"Bearer {token}"},
                body=body,
                params=params,
                timeout=_timeout(),
            )
        except IntegrationError as exc:
            if exc.status_code == 401 and attempt == 1:
                cache.delete(TOKEN_CACHE_KEY)
                continue
            raise
    raise IntegrationError("Shipping authentication failed", service=SERVICE)


def create_shipment(order_payload: dict) -> ShipmentResult:
    """
    order_payload: adhoc order body (billing_* / shipping_* / order_items /
    payment_method / sub_total / dimensions). channel_id and pickup_location
    are filled from settings.
    """
    cfg = _cfg()
    payload = dict(order_payload)
    payload.setdefault("pickup_location", cfg.get("PICKUP_LOCATION") or "Primary")
    if cfg.get("CHANNEL_ID"):
        payload.setdefault("channel_id", cfg["CHANNEL_ID"])

    try:
        data = _authed("POST", "orders/create/adhoc", body=payload) or {}
    except IntegrationError as exc:
        logger.warning("Shipment creation failed", extra={"order_id": payload.get("order_id"), "error": str(exc)})
        return ShipmentResult(success=False, error=str(exc))

    shipment_id = str(data.get("shipment_id") or "")
    if not shipment_id:
        logger.warning("Shipment response missing shipment_id", extra={"order_id": payload.get("order_id")})
        return ShipmentResult(success=False, error="No shipment id returned", raw=data)

    logger.info("Shipment created", extra={"order_id": payload.get("order_id"), "shipment_id": shipment_id})
    return ShipmentResult(
        success=True,
        shipment_id=shipment_id,
        provider_order_id=str(data.get("order_id") or ""),
        raw=data,
    )


def generate_tracking_number(shipment_id: str, *, courier_id: str | None = None) -> TrackingResult:
    body = {"shipment_id": shipment_id}
    if courier_id:
        body["courier_id"] = courier_id

    try:
        data = _authed("POST", "courier/assign/awb", body=body) or {}
    except IntegrationError as exc:
        logger.warning("AWB assignment failed", extra={"shipment_id": shipment_id, "error": str(exc)})
        return TrackingResult(success=False, error=str(exc))

    awb = ((data.get("response") or {}).get("data") or {}) if isinstance(data, dict) else {}
    code = str(awb.get("awb_code") or "")
    if not code:
        return TrackingResult(success=False, error="No AWB code returned", raw=data)

    return TrackingResult(
        success=True,
        tracking_code=code,
        courier_name=str(awb.get("courier_name") or ""),
        raw=data,
    )


def _as_int(value) -> int | None:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def check_pincode_serviceability(pincode: str, *, weight=0.5, cod: bool = False) -> ServiceabilityResult:
    pickup = (_cfg().get("PICKUP_PINCODE") or "").strip()
    if not pickup:
        return ServiceabilityResult(success=False, error="Pickup pincode not configured")

    try:
        data = _authed(
            "GET",
            "courier/serviceability/",
            params={
                "pickup_postcode": pickup,
                "delivery_postcode": pincode,
                "weight": weight,
                "cod": 1 if cod else 0,
            },
        ) or {}
    except IntegrationError as exc:
        logger.warning("Serviceability check failed", extra={"pincode": pincode, "error": str(exc)})
        return ServiceabilityResult(success=False, error=str(exc))

    couriers = ((data.get("data") or {}).get("available_courier_companies") or []) if isinstance(data, dict) else []
    days = [d for d in (_as_int(c.get("estimated_delivery_days")) for c in couriers) if d is not None]

    if not couriers:
        return ServiceabilityResult(success=True, serviceable=False)

    return ServiceabilityResult(
        success=True,
        serviceable=True,
        estimated_days=min(days) if days else DEFAULT_DELIVERY_DAYS,
        min_days=min(days) if days else None,
        max_days=max(days) if days else None,
    )


def cancel_shipment(provider_order_ids: list) -> ShippingCallResult:
    try:
        data = _authed("POST", "orders/cancel", body={"ids": list(provider_order_ids)})
    except IntegrationError as exc:
        logger.warning("Shipment cancellation failed", extra={"ids": provider_order_ids, "error": str(exc)})
        return ShippingCallResult(success=False, error=str(exc))
    return ShippingCallResult(success=True, data=data)
