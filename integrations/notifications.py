# integrations/notifications.py

"""
NOTIFICATION DISPATCHER

Fire-and-forget from the order workflow: every public function catches
delivery failures, logs them, and returns False. Nothing here raises into the
caller of an order operation.

Email: django.core.mail (EmailMultiAlternatives, templates under
integrations/emails/). SMS: Twilio REST (Messages resource) over urllib.

Switches: settings.NOTIFICATIONS["EMAIL_ENABLED"] / ["SMS_ENABLED"].
"""

from __future__ import annotations

import base64
import logging
import smtplib
from dataclasses import dataclass

from django.conf import settings
from django.core.mail import BadHeaderError, EmailMultiAlternatives
from django.template.loader import render_to_string

from integrations.http import IntegrationError, request_json

logger = logging.getLogger(__name__)

TWILIO_API = "https://api.twilio.com/2010-04-01"

SHIPPING_STATUS_LABELS = {
    "SHIPPED": "has been shipped",
    "OUT_FOR_DELIVERY": "is out for delivery",
    "DELIVERED": "has been delivered",
}


@dataclass(frozen=True)
class CampaignResult:
    sent: int
    failed: int


def _cfg() -> dict:
    return getattr(settings, "NOTIFICATIONS", {}) or {}


def _from_email() -> str:
    return _cfg().get("FROM_EMAIL") or settings.DEFAULT_FROM_EMAIL


def send_email(*, to: list[str], subject: str, template: str, context: dict) -> bool:
    recipients = [r for r in (to or []) if r]
    if not recipients:
        return False
    if not _cfg().get("EMAIL_ENABLED", True):
        logger.info("Email disabled; skipped", extra={"subject": subject})
        return False

    text_body = render_to_string(f"integrations/emails/{template}.txt", context)
    html_body = render_to_string(f"integrations/emails/{template}.html", context)

    message = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=_from_email(),
        to=recipients,
    )
    message.attach_alternative(html_body, "text/html")

    try:
        message.send()
    except (smtplib.SMTPException, BadHeaderError, OSError) as exc:
        logger.warning("Email delivery failed", extra={"subject": subject, "error": str(exc)})
        return False
    return True


def send_sms(*, to: str, body: str) -> bool:
    cfg = _cfg()
    to = (to or "").strip()
    if not to or not cfg.get("SMS_ENABLED"):
        return False

    sid = cfg.get("TWILIO_ACCOUNT_SID") or ""
    token = cfg.get("TWILIO_AUTH_TOKEN") or ""
    sender = cfg.get("TWILIO_FROM_NUMBER") or ""
    if not (sid and token and sender):
        logger.warning("SMS enabled but Twilio credentials are missing")
        return False

    if not to.startswith("+"):
        to = f"+91{to[-10:]}"

    auth = base64.b64encode(f"{sid}:{token}".encode("utf-8")).decode("ascii")
    try:
        request_json(
            "POST",
            f"{TWILIO_API}/Accounts/{sid}/Messages.json",
            service="twilio",
            headers={"Authorization": f"Basic {auth}"},
            form={"To": to, "From": sender, "Body": body},
            timeout=int(cfg.get("TIMEOUT") or 10),
        )
    except IntegrationError as exc:
        logger.warning("SMS delivery failed", extra={"to": to[-4:], "error": str(exc)})
        return False
    return True


# =========================================================
# ORDER MILESTONES
# =========================================================
def send_order_confirmation(*, recipient: str, order, phone: str = "") -> bool:
    sent = send_email(
        to=[recipient],
        subject=f"Order Confirmation #{order.order_number}",
        template="order_confirmation",
        context={"order": order, "items": list(order.items.all())},
    )
    if phone:
        send_sms(
            to=phone,
            body=f"Your order #{order.order_number} has been confirmed. Total: Rs.{order.total_amount}.",
        )

    logger.info("Order confirmation dispatched", extra={"order_number": order.order_number, "email_sent": sent})
    return sent


def send_shipping_update(
    *,
    recipient: str,
    order_number: str,
    status: str,
    tracking_id: str = "",
    phone: str = "",
) -> bool:
    label = SHIPPING_STATUS_LABELS.get(status, f"status changed to {status}")

    sent = send_email(
        to=[recipient],
        subject=f"Your order #{order_number} {label}",
        template="shipping_update",
        context={"order_number": order_number, "status": status, "label": label, "tracking_id": tracking_id},
    )
    if phone:
        text = f"Your order #{order_number} {label}."
        if tracking_id:
            text += f" Tracking ID: {tracking_id}"
        send_sms(to=phone, body=text)

    return sent


def send_campaign(*, recipients: list[str], subject: str, html: str) -> CampaignResult:
    """
    One message per recipient so addresses never leak to each other.
    """
    sent = failed = 0
    for recipient in recipients:
        ok = send_email(
            to=[recipient],
            subject=subject,
            template="campaign",
            context={"subject": subject, "html": html},
        )
        if ok:
            sent += 1
        else:
            failed += 1

    logger.info("Campaign dispatched", extra={"subject": subject, "sent": sent, "failed": failed})
    return CampaignResult(sent=sent, failed=failed)


def send_coupon_issued(*, user, coupon, promotion) -> bool:
    return send_email(
        to=[user.email],
        subject="Your special coupon",
        template="coupon_issued",
        context={
            "name": getattr(user, "full_name", "") or "Valued Customer",
            "coupon": coupon,
            "promotion": promotion,
        },
    )
