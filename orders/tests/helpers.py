# orders/tests/helpers.py

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from carts.services.owner import Owner
from coupons.models import Coupon
from integrations.payment_gateway import PaymentSession
from orders.services.order_service import create_order

User = get_user_model()


def make_user(email="customer@example.com", **extra):
    return User.objects.create_user(email=email, password="pass12345", **extra)


def make_order_staff(email="orders@example.com"):
    return make_user(email, role="subadmin", department="orders", permissions=["manage_orders"])


def make_coupon(code="SAVE10", **overrides):
    now = timezone.now()
    data = {
        "code": code,
        "discount_type": Coupon.TYPE_PERCENT,
        "value": Decimal("10"),
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=30),
    }
    data.update(overrides)
    return Coupon.objects.create(**data)


def address(**overrides):
    data = {
        "name": "Asha Verma",
        "street": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
        "email": "asha@example.com",
        "phone": "9876543210",
    }
    data.update(overrides)
    return data


def fake_session(order_id="BG000000"):
    return PaymentSession(order_id=order_id, token="session_test_token", gateway_order_id="cf_123")


def place_order(*, user=None, guest_session_id="", items, payment_method="COD", coupon_code=""):
    owner = Owner(user=user) if user is not None else Owner(guest_session_id=guest_session_id)
    return create_order(
        owner=owner,
        items=items,
        shipping_address=address(),
        payment_method=payment_method,
        coupon_code=coupon_code,
    ).order
