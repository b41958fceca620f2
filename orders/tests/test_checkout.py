# orders/tests/test_checkout.py

"""
CHECKOUT TESTS

Run with:
    python manage.py test orders -v 2
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.test import TestCase
from rest_framework.test import APIClient

from coupons.models import Coupon
from integrations.payment_gateway import PaymentGatewayError
from orders.models import Order, OrderStatusHistory
from products.models import ProductVariant
from products.tests.helpers import make_product

from .helpers import address, fake_session, make_coupon, make_order_staff, make_user, place_order

SESSION_PATCH = "orders.services.payments.create_payment_session"


class CodCheckoutTests(TestCase):
    """
    GUARANTEES:
    - prices come from the catalog, never from the client
    - total = subtotal - discount; coupon usage counted once per order
    - stock is reserved at creation
    - COD orders are CONFIRMED immediately with a confirmation email
    - any failure leaves no order, no stock change and no coupon use
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.client.force_authenticate(self.user)

        self.kurta = make_product(
            title="Cotton Kurta",
            variants=[{"sku": "KURTA-M", "size": "M", "price": "300.00", "stock": 10}],
        )
        self.dupatta = make_product(
            title="Silk Dupatta",
            variants=[{"sku": "DUP-RED", "color": "Red", "price": "100.00", "stock": 1}],
        )
        self.coupon = make_coupon("SAVE10")

    def _payload(self, **overrides):
        body = {
            "items": [
                {"product_id": str(self.kurta.id), "variant_sku": "KURTA-M", "quantity": 3},
                {"product_id": str(self.dupatta.id), "variant_sku": "DUP-RED", "quantity": 1},
            ],
            "shipping_address": address(),
            "payment_method": "COD",
            "coupon_code": "save10",
        }
        body.update(overrides)
        return body

    def test_cod_order_with_coupon(self):
        res = self.client.post("/api/orders/", self._payload(), format="json")

        self.assertEqual(res.status_code, 201)
        order = res.data["order"]
        self.assertEqual(order["subtotal_amount"], "1000.00")
        self.assertEqual(order["discount_amount"], "100.00")
        self.assertEqual(order["total_amount"], "900.00")
        self.assertEqual(order["status"], Order.STATUS_CONFIRMED)
        self.assertEqual(order["coupon"]["code"], "SAVE10")
        self.assertIsNone(res.data["payment"])
        self.assertTrue(order["order_number"].startswith("BG"))

        self.assertEqual(ProductVariant.objects.get(sku="KURTA-M").stock, 7)
        self.assertEqual(ProductVariant.objects.get(sku="DUP-RED").stock, 0)

        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 1)

        statuses = [h["status"] for h in order["status_history"]]
        self.assertEqual(statuses, [Order.STATUS_CREATED, Order.STATUS_CONFIRMED])

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(order["order_number"], mail.outbox[0].subject)

    def test_client_prices_are_ignored(self):
        payload = self._payload(coupon_code="")
        payload["items"][0]["unit_price"] = "1.00"

        res = self.client.post("/api/orders/", payload, format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["order"]["items"][0]["unit_price"], "300.00")

    def test_gst_is_recorded_not_added(self):
        res = self.client.post("/api/orders/", self._payload(coupon_code=""), format="json")

        order = res.data["order"]
        self.assertEqual(order["total_amount"], "1000.00")
        # make_product default gst_rate is 5%
        self.assertEqual(order["total_gst_amount"], "50.00")

    def test_insufficient_stock_leaves_nothing_behind(self):
        ProductVariant.objects.filter(sku="DUP-RED").update(stock=0)

        res = self.client.post("/api/orders/", self._payload(), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INSUFFICIENT_STOCK")
        self.assertFalse(Order.objects.exists())
        self.assertEqual(ProductVariant.objects.get(sku="KURTA-M").stock, 10)
        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 0)

    def test_invalid_coupon_is_bad_request(self):
        res = self.client.post("/api/orders/", self._payload(coupon_code="NOPE"), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_COUPON")
        self.assertFalse(Order.objects.exists())
        self.assertEqual(ProductVariant.objects.get(sku="KURTA-M").stock, 10)

    def test_order_value_too_low(self):
        make_coupon("BIG", min_order_value=Decimal("5000"))

        res = self.client.post("/api/orders/", self._payload(coupon_code="BIG"), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "ORDER_VALUE_TOO_LOW")
        self.assertFalse(Order.objects.exists())

    def test_unknown_product(self):
        payload = self._payload()
        payload["items"][0]["product_id"] = "00000000-0000-0000-0000-000000000000"

        res = self.client.post("/api/orders/", payload, format="json")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "PRODUCT_NOT_FOUND")

    def test_empty_items_rejected(self):
        res = self.client.post("/api/orders/", self._payload(items=[]), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")

    def test_bad_pincode_rejected(self):
        res = self.client.post(
            "/api/orders/",
            self._payload(shipping_address=address(pincode="12AB")),
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertFalse(Order.objects.exists())

    def test_owner_required_for_anonymous(self):
        res = APIClient().post("/api/orders/", self._payload(), format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "OWNER_REQUIRED")


class GuestCheckoutTests(TestCase):
    """
    GUARANTEES:
    - a guest session can place and read its own order
    - guest orders are listed by session id
    - a different session cannot read the order
    """

    def setUp(self):
        self.product = make_product(variants=[{"sku": "TEE-S", "size": "S", "price": "250.00", "stock": 5}])

    def test_guest_order_roundtrip(self):
        client = APIClient()
        client.credentials(HTTP_X_GUEST_SESSION_ID="guest-1")

        res = client.post(
            "/api/orders/",
            {
                "items": [{"product_id": str(self.product.id), "size": "S", "quantity": 2}],
                "shipping_address": address(),
                "payment_method": "COD",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        order_id = res.data["order"]["id"]
        self.assertEqual(res.data["order"]["guest_session_id"], "guest-1")
        self.assertIsNone(res.data["order"]["user"])

        detail = client.get(f"/api/orders/{order_id}/")
        self.assertEqual(detail.status_code, 200)

        listing = APIClient().get("/api/orders/guest/guest-1/")
        self.assertEqual(len(listing.data), 1)

        stranger = APIClient()
        stranger.credentials(HTTP_X_GUEST_SESSION_ID="guest-2")
        self.assertEqual(stranger.get(f"/api/orders/{order_id}/").status_code, 403)


class OnlineCheckoutTests(TestCase):
    """
    GUARANTEES:
    - gateway orders stay CREATED / PENDING until reconciled
    - the payment session token is returned once, at checkout
    - a gateway failure is a 500 PAYMENT_INIT_FAILED with nothing persisted
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.client.force_authenticate(self.user)
        self.product = make_product(variants=[{"sku": "SHAWL", "price": "800.00", "stock": 4}])
        self.coupon = make_coupon("SAVE10")

    def _payload(self):
        return {
            "items": [{"product_id": str(self.product.id), "variant_sku": "SHAWL", "quantity": 1}],
            "shipping_address": address(),
            "payment_method": "CASHFREE",
            "coupon_code": "SAVE10",
        }

    @patch(SESSION_PATCH)
    def test_online_order_returns_session(self, mock_session):
        mock_session.return_value = fake_session()

        res = self.client.post("/api/orders/", self._payload(), format="json")

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["order"]["status"], Order.STATUS_CREATED)
        self.assertEqual(res.data["order"]["payment"]["status"], Order.PAYMENT_PENDING)
        self.assertEqual(res.data["payment"]["payment_session_id"], "session_test_token")
        self.assertEqual(mock_session.call_args.kwargs["amount"], Decimal("720.00"))
        self.assertEqual(len(mail.outbox), 0)

    @patch(SESSION_PATCH)
    def test_gateway_failure_rolls_back(self, mock_session):
        mock_session.side_effect = PaymentGatewayError("upstream 502", service="payment_gateway", status_code=502)

        res = self.client.post("/api/orders/", self._payload(), format="json")

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.data["error"]["code"], "PAYMENT_INIT_FAILED")
        self.assertEqual(res.data["error"]["message"], "Failed to create payment order")
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderStatusHistory.objects.exists())
        self.assertEqual(ProductVariant.objects.get(sku="SHAWL").stock, 4)
        self.assertEqual(Coupon.objects.get(code="SAVE10").used_count, 0)


class OrderReadAndDeleteTests(TestCase):
    """
    GUARANTEES:
    - customers list only their own orders
    - delete only while payment is PENDING and nothing has shipped, restoring held stock
    - non-owner non-staff gets 403 and nothing changes
    """

    def setUp(self):
        self.owner = make_user("owner@example.com")
        self.other = make_user("other@example.com")
        self.staff = make_order_staff()
        self.product = make_product(variants=[{"sku": "BAG", "price": "500.00", "stock": 5}])

        with patch(SESSION_PATCH, return_value=fake_session()):
            self.pending = place_order(
                user=self.owner,
                items=[{"product_id": self.product.id, "variant_sku": "BAG", "quantity": 2}],
                payment_method="ONLINE",
            )

    def _client(self, user):
        client = APIClient()
        client.force_authenticate(user)
        return client

    def test_own_list(self):
        place_order(user=self.other, items=[{"product_id": self.product.id, "variant_sku": "BAG", "quantity": 1}])

        res = self._client(self.owner).get("/api/orders/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["order_number"], self.pending.order_number)
        self.assertEqual(res.data["results"][0]["item_count"], 2)

    def test_list_requires_auth(self):
        self.assertEqual(APIClient().get("/api/orders/").status_code, 401)

    def test_detail_forbidden_for_stranger(self):
        res = self._client(self.other).get(f"/api/orders/{self.pending.id}/")
        self.assertEqual(res.status_code, 403)

    def test_owner_deletes_pending_order(self):
        self.assertEqual(ProductVariant.objects.get(sku="BAG").stock, 3)

        res = self._client(self.owner).delete(f"/api/orders/{self.pending.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertFalse(Order.objects.filter(pk=self.pending.pk).exists())
        self.assertEqual(ProductVariant.objects.get(sku="BAG").stock, 5)

    def test_stranger_cannot_delete(self):
        res = self._client(self.other).delete(f"/api/orders/{self.pending.id}/")

        self.assertEqual(res.status_code, 403)
        self.assertTrue(Order.objects.filter(pk=self.pending.pk).exists())
        self.assertEqual(ProductVariant.objects.get(sku="BAG").stock, 3)

    def test_paid_order_cannot_be_deleted(self):
        Order.objects.filter(pk=self.pending.pk).update(payment_status=Order.PAYMENT_PAID)

        res = self._client(self.staff).delete(f"/api/orders/{self.pending.id}/")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_STATE")
        self.assertTrue(Order.objects.filter(pk=self.pending.pk).exists())

    def test_shipped_cod_order_cannot_be_deleted(self):
        cod = place_order(user=self.owner, items=[{"product_id": self.product.id, "variant_sku": "BAG", "quantity": 1}])
        Order.objects.filter(pk=cod.pk).update(status=Order.STATUS_SHIPPED)
        self.assertEqual(ProductVariant.objects.get(sku="BAG").stock, 2)

        res = self._client(self.owner).delete(f"/api/orders/{cod.id}/")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_STATE")
        self.assertIn("SHIPPED", res.data["error"]["message"])
        self.assertTrue(Order.objects.filter(pk=cod.pk).exists())
        self.assertEqual(ProductVariant.objects.get(sku="BAG").stock, 2)

    def test_unshipped_cod_order_can_be_deleted(self):
        cod = place_order(user=self.owner, items=[{"product_id": self.product.id, "variant_sku": "BAG", "quantity": 1}])

        res = self._client(self.owner).delete(f"/api/orders/{cod.id}/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(ProductVariant.objects.get(sku="BAG").stock, 3)

    def test_staff_list_filters(self):
        place_order(user=self.other, items=[{"product_id": self.product.id, "variant_sku": "BAG", "quantity": 1}])

        client = self._client(self.staff)
        all_orders = client.get("/api/orders/admin/")
        confirmed = client.get("/api/orders/admin/", {"status": Order.STATUS_CONFIRMED})
        by_number = client.get("/api/orders/admin/", {"search": self.pending.order_number})

        self.assertEqual(all_orders.data["count"], 2)
        self.assertEqual(confirmed.data["count"], 1)
        self.assertEqual(by_number.data["count"], 1)
        self.assertEqual(self._client(self.owner).get("/api/orders/admin/").status_code, 403)
