# orders/tests/test_reporting.py

from __future__ import annotations

from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from integrations.shipping import ServiceabilityResult
from orders.models import Order
from products.tests.helpers import make_product

from .helpers import make_order_staff, make_user, place_order

SHIPPING_ON = {
    "ENABLED": True,
    "BASE_URL": "https://ship.test.local",
    "EMAIL": "ops@example.com",
    "PASSWORD": "secret",
    "PICKUP_PINCODE": "110001",
}


class OrderStatsTests(TestCase):
    """
    GUARANTEES:
    - revenue counts PAID orders only
    - breakdowns by status and payment method
    - top products ranked by quantity
    - staff only
    """

    def setUp(self):
        self.staff = make_order_staff()
        self.client = APIClient()
        self.client.force_authenticate(self.staff)

        user = make_user()
        self.kurta = make_product(title="Kurta", variants=[{"sku": "K1", "price": "500.00", "stock": 20}])
        self.stole = make_product(title="Stole", variants=[{"sku": "S1", "price": "200.00", "stock": 20}])

        paid = place_order(user=user, items=[{"product_id": self.kurta.id, "variant_sku": "K1", "quantity": 2}])
        Order.objects.filter(pk=paid.pk).update(payment_status=Order.PAYMENT_PAID)
        place_order(user=user, items=[{"product_id": self.stole.id, "variant_sku": "S1", "quantity": 5}])

    def test_stats(self):
        res = self.client.get("/api/orders/stats/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["total_orders"], 2)
        self.assertEqual(res.data["revenue"], "1000.00")
        self.assertEqual(res.data["by_status"], {Order.STATUS_CONFIRMED: 2})
        self.assertEqual(res.data["by_payment_method"][0]["payment_method"], "COD")
        self.assertEqual(res.data["by_payment_method"][0]["count"], 2)
        self.assertEqual([p["name"] for p in res.data["top_products"]], ["Stole", "Kurta"])

    def test_date_range(self):
        res = self.client.get("/api/orders/stats/", {"start_date": "2000-01-01", "end_date": "2000-01-31"})

        self.assertEqual(res.data["total_orders"], 0)
        self.assertEqual(res.data["revenue"], "0.00")

    def test_bad_range(self):
        res = self.client.get("/api/orders/stats/", {"start_date": "2026-02-01", "end_date": "2026-01-01"})

        self.assertEqual(res.status_code, 400)

    def test_customer_forbidden(self):
        client = APIClient()
        client.force_authenticate(make_user("someone@example.com"))

        self.assertEqual(client.get("/api/orders/stats/").status_code, 403)


class PincodeTests(TestCase):
    """
    GUARANTEES:
    - 6-digit validation
    - courier outage answers the optimistic default
    """

    def test_invalid_pincode(self):
        res = APIClient().get("/api/orders/pincode/12345/")

        self.assertEqual(res.status_code, 400)

    def test_disabled_shipping_default(self):
        res = APIClient().get("/api/orders/pincode/411001/")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["available"])
        self.assertEqual(res.data["estimated_days"], 3)

    @override_settings(SHIPPING=SHIPPING_ON)
    @patch("orders.views.public.shipping.check_pincode_serviceability")
    def test_serviceable(self, mock_check):
        mock_check.return_value = ServiceabilityResult(
            success=True, serviceable=True, estimated_days=2, min_days=2, max_days=5
        )

        res = APIClient().get("/api/orders/pincode/411001/")

        self.assertEqual(res.data["estimated_days"], 2)
        self.assertEqual(res.data["max_days"], 5)

    @override_settings(SHIPPING=SHIPPING_ON)
    @patch("orders.views.public.shipping.check_pincode_serviceability")
    def test_failure_falls_back(self, mock_check):
        mock_check.return_value = ServiceabilityResult(success=False, error="timeout")

        res = APIClient().get("/api/orders/pincode/411001/")

        self.assertTrue(res.data["available"])
        self.assertEqual(res.data["estimated_days"], 3)


class CampaignTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_order_staff())

    def test_campaign_sends_one_mail_per_recipient(self):
        res = self.client.post(
            "/api/orders/campaigns/",
            {
                "subject": "Festive sale",
                "html": "<p>20% off</p>",
                "recipients": ["a@example.com", "b@example.com", "A@example.com"],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["sent"], 2)
        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(mail.outbox[0].to, ["a@example.com"])

    def test_no_recipients(self):
        res = self.client.post(
            "/api/orders/campaigns/",
            {"subject": "Hi", "html": "<p>x</p>", "recipients": []},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "NO_RECIPIENTS")
