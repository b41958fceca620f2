# orders/views/payments.py

"""
PAYMENT CALLBACK + WEBHOOK

Both paths normalize the inbound payload once, then converge on
reconcile_payment(), which re-verifies with the gateway before changing
anything. The payload only identifies the order.

Callback (customer browser, GET or POST):
- JSON clients get {success, order_id, order_number, status, payment_status}
- browsers are redirected to FRONTEND_BASE_URL/order/<order_number>?status=...

Webhook (server-to-server):
- always 200 {success, message}; failures are logged, never surfaced
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode, urlparse

from django.conf import settings
from django.shortcuts import redirect
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.services.payments import find_order_for_notice, normalize_payment_payload, reconcile_payment
from orders.views.common import PublicPollThrottle, WebhookThrottle

logger = logging.getLogger(__name__)

DEFAULT_FRONTEND = "http://localhost:5173"


def _safe_frontend_base() -> str:
    base = (getattr(settings, "FRONTEND_BASE_URL", "") or "").strip()
    if not base:
        base = DEFAULT_FRONTEND

    parsed = urlparse(base)
    if not parsed.scheme or not parsed.netloc:
        logger.warning("Invalid FRONTEND_BASE_URL detected")
        return DEFAULT_FRONTEND

    return base.rstrip("/")


def _wants_json(request) -> bool:
    accept = (request.headers.get("Accept") or "").lower()
    content_type = (request.content_type or "").lower()
    return "application/json" in accept or "application/json" in content_type


def _merged_payload(request) -> dict:
    payload = {}
    payload.update(request.query_params.dict())
    if isinstance(request.data, dict):
        payload.update(request.data)
    elif hasattr(request.data, "dict"):
        payload.update(request.data.dict())
    return payload


class PaymentCallbackView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PublicPollThrottle]

    def _handle(self, request):
        notice = normalize_payment_payload(_merged_payload(request))
        order = find_order_for_notice(notice)

        if order is None:
            logger.warning("Payment callback for unknown order", extra={"order_id": notice.order_id or None})
            if _wants_json(request):
                return Response(
                    {"error": {"code": "NOT_FOUND", "message": "Order not found"}},
                    status=status.HTTP_404_NOT_FOUND,
                )
            return redirect(_safe_frontend_base() + "/checkout?" + urlencode({"status": "unknown"}))

        result = reconcile_payment(order, notice=notice)
        order = result.order

        if _wants_json(request):
            return Response(
                {
                    "success": order.is_paid,
                    "order_id": str(order.pk),
                    "order_number": order.order_number,
                    "status": order.status,
                    "payment_status": order.payment_status,
                }
            )

        logger.info("Callback redirecting to frontend", extra={"order_number": order.order_number})
        query = urlencode({"status": order.payment_status})
        return redirect(f"{_safe_frontend_base()}/order/{order.order_number}?{query}")

    @extend_schema(tags=["Payments"], responses={200: OpenApiResponse(description="JSON status or redirect")})
    def get(self, request, *args, **kwargs):
        return self._handle(request)

    @extend_schema(tags=["Payments"], request=None, responses={200: OpenApiResponse(description="JSON status or redirect")})
    def post(self, request, *args, **kwargs):
        return self._handle(request)


class PaymentWebhookView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [WebhookThrottle]

    @extend_schema(
        tags=["Payments"],
        request=None,
        responses={200: OpenApiResponse(description="Always {success, message}")},
    )
    def post(self, request, *args, **kwargs):
        logger.info("Payment webhook received")

        try:
            notice = normalize_payment_payload(_merged_payload(request))
            if not notice.order_id:
                logger.warning("Webhook received without order id")
                return Response({"success": True, "message": "No order id"}, status=status.HTTP_200_OK)

            order = find_order_for_notice(notice)
            if order is None:
                logger.warning("Webhook for unknown order", extra={"order_id": notice.order_id})
                return Response({"success": True, "message": "Unknown order"}, status=status.HTTP_200_OK)

            if order.is_payment_settled:
                logger.info("Duplicate webhook ignored", extra={"order_number": order.order_number})
                return Response({"success": True, "message": "Already processed"}, status=status.HTTP_200_OK)

            result = reconcile_payment(order, notice=notice)
            message = f"Payment {result.payment_status.lower()}" if result.changed else "No change"
            logger.info(
                "Webhook processed",
                extra={"order_number": order.order_number, "payment_status": result.payment_status},
            )
            return Response({"success": True, "message": message}, status=status.HTTP_200_OK)

        except Exception:
            logger.exception("Unhandled webhook error")
            return Response({"success": False, "message": "Webhook received"}, status=status.HTTP_200_OK)
