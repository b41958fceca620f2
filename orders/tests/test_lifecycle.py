# orders/tests/test_lifecycle.py

from __future__ import annotations

from unittest.mock import patch

from django.core import mail
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from integrations.payment_gateway import PaymentGatewayError, RefundResult
from orders.models import Order
from orders.services.lifecycle import CANCELABLE_STATES, TERMINAL_STATES, allowed_sources, can_transition
from products.models import ProductVariant
from products.tests.helpers import make_product

from .helpers import fake_session, make_order_staff, make_user, place_order


class TransitionTableTests(SimpleTestCase):
    """
    GUARANTEES:
    - only the listed edges are legal
    - terminal states never move
    - cancellation is allowed before shipping only
    """

    def test_happy_path_edges(self):
        path = [
            Order.STATUS_CREATED,
            Order.STATUS_CONFIRMED,
            Order.STATUS_PROCESSING,
            Order.STATUS_SHIPPED,
            Order.STATUS_OUT_FOR_DELIVERY,
            Order.STATUS_DELIVERED,
            Order.STATUS_RETURN_APPROVED,
            Order.STATUS_RETURNED,
        ]
        for a, b in zip(path, path[1:]):
            self.assertTrue(can_transition(from_status=a, to_status=b), f"{a} -> {b}")

    def test_no_shortcuts(self):
        self.assertFalse(can_transition(from_status=Order.STATUS_CREATED, to_status=Order.STATUS_DELIVERED))
        self.assertFalse(can_transition(from_status=Order.STATUS_CREATED, to_status=Order.STATUS_SHIPPED))
        self.assertFalse(can_transition(from_status=Order.STATUS_DELIVERED, to_status=Order.STATUS_CANCELLED))
        self.assertFalse(can_transition(from_status=Order.STATUS_SHIPPED, to_status=Order.STATUS_CANCELLED))

    def test_terminal_states(self):
        for terminal in TERMINAL_STATES:
            for target, _ in Order.STATUS_CHOICES:
                self.assertFalse(can_transition(from_status=terminal, to_status=target))

    def test_cancelable_states(self):
        self.assertEqual(
            CANCELABLE_STATES,
            {
                Order.STATUS_CREATED,
                Order.STATUS_CONFIRMED,
                Order.STATUS_PROCESSING,
                Order.STATUS_PAYMENT_FAILED,
                Order.STATUS_STOCK_ISSUE,
            },
        )

    def test_delivered_sources(self):
        self.assertEqual(allowed_sources(Order.STATUS_DELIVERED), [Order.STATUS_OUT_FOR_DELIVERY, Order.STATUS_SHIPPED])


class CancellationTests(TestCase):
    """
    GUARANTEES:
    - owner or order staff may cancel from cancelable states
    - stock is restored exactly once
    - DELIVERED orders cannot be cancelled (400, unchanged)
    - strangers get 403 and nothing changes
    - paid gateway orders are refunded best-effort
    """

    def setUp(self):
        self.owner = make_user("owner@example.com")
        self.other = make_user("other@example.com")
        self.staff = make_order_staff()
        self.product = make_product(variants=[{"sku": "SCARF", "price": "400.00", "stock": 6}])
        self.order = place_order(user=self.owner, items=[{"product_id": self.product.id, "variant_sku": "SCARF", "quantity": 2}])

    def _client(self, user):
        client = APIClient()
        client.force_authenticate(user)
        return client

    def _stock(self):
        return ProductVariant.objects.get(sku="SCARF").stock

    def test_owner_cancels_and_stock_returns(self):
        self.assertEqual(self._stock(), 4)

        res = self._client(self.owner).post(f"/api/orders/{self.order.id}/cancel/", {"reason": "Changed mind"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Order.STATUS_CANCELLED)
        self.assertEqual(res.data["status_history"][-1]["note"], "Changed mind")
        self.assertEqual(self._stock(), 6)

    def test_second_cancel_is_rejected_without_double_restore(self):
        client = self._client(self.owner)
        client.post(f"/api/orders/{self.order.id}/cancel/", {}, format="json")

        res = client.post(f"/api/orders/{self.order.id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_STATE")
        self.assertEqual(self._stock(), 6)

    def test_delivered_order_cannot_be_cancelled(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_DELIVERED)

        res = self._client(self.owner).post(f"/api/orders/{self.order.id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_DELIVERED)
        self.assertEqual(self._stock(), 4)

    def test_stranger_forbidden(self):
        res = self._client(self.other).post(f"/api/orders/{self.order.id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 403)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(self._stock(), 4)

    def test_staff_cancel_via_status_endpoint(self):
        res = self._client(self.staff).post(
            f"/api/orders/{self.order.id}/status/",
            {"status": Order.STATUS_CANCELLED, "note": "Out of stock at warehouse"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Order.STATUS_CANCELLED)
        self.assertEqual(self._stock(), 6)

    @patch("orders.services.payments.initiate_refund")
    def test_paid_gateway_order_is_refunded(self, mock_refund):
        mock_refund.return_value = RefundResult(refund_id="RF1", status="PENDING")
        with patch("orders.services.payments.create_payment_session", return_value=fake_session()):
            order = place_order(
                user=self.owner,
                items=[{"product_id": self.product.id, "variant_sku": "SCARF", "quantity": 1}],
                payment_method="ONLINE",
            )
        Order.objects.filter(pk=order.pk).update(payment_status=Order.PAYMENT_PAID, status=Order.STATUS_CONFIRMED)

        res = self._client(self.owner).post(f"/api/orders/{order.id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 200)
        order.refresh_from_db()
        self.assertEqual(order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(order.refund_status, Order.REFUND_INITIATED)
        self.assertEqual(order.refund_id, "RF1")
        self.assertEqual(mock_refund.call_args.kwargs["order_id"], order.order_number)

    @patch("orders.services.payments.initiate_refund")
    def test_refund_failure_does_not_block_cancel(self, mock_refund):
        mock_refund.side_effect = PaymentGatewayError("refund rejected", service="payment_gateway")
        Order.objects.filter(pk=self.order.pk).update(payment_method=Order.METHOD_ONLINE, payment_status=Order.PAYMENT_PAID)

        with self.assertLogs("orders.services.payments", level="ERROR"):
            res = self._client(self.owner).post(f"/api/orders/{self.order.id}/cancel/", {}, format="json")

        self.assertEqual(res.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.refund_status, Order.REFUND_FAILED)


class StaffTransitionTests(TestCase):
    """
    GUARANTEES:
    - staff walk an order CONFIRMED -> SHIPPED -> OUT_FOR_DELIVERY -> DELIVERED
    - each step appends history and sends a shipping update
    - illegal steps are 400 INVALID_TRANSITION listing the allowed prior statuses
    - customers cannot drive fulfilment statuses
    - online-payment orders are confirmed by hand only once paid
    """

    def setUp(self):
        self.owner = make_user("owner@example.com")
        self.staff = make_order_staff()
        self.client = APIClient()
        self.client.force_authenticate(self.staff)
        self.product = make_product(variants=[{"sku": "RING", "price": "999.00", "stock": 3}])
        self.order = place_order(user=self.owner, items=[{"product_id": self.product.id, "variant_sku": "RING", "quantity": 1}])
        mail.outbox.clear()

    def test_full_fulfilment_walk(self):
        base = f"/api/orders/{self.order.id}"

        shipped = self.client.post(f"{base}/ship/", {"tracking_id": "AWB123", "courier_name": "Delhivery"}, format="json")
        self.assertEqual(shipped.status_code, 200)
        self.assertEqual(shipped.data["status"], Order.STATUS_SHIPPED)
        self.assertEqual(shipped.data["tracking_id"], "AWB123")

        self.assertEqual(self.client.post(f"{base}/out-for-delivery/", {}, format="json").status_code, 200)
        delivered = self.client.post(f"{base}/deliver/", {}, format="json")
        self.assertEqual(delivered.data["status"], Order.STATUS_DELIVERED)

        statuses = [h["status"] for h in delivered.data["status_history"]]
        self.assertEqual(
            statuses,
            [
                Order.STATUS_CREATED,
                Order.STATUS_CONFIRMED,
                Order.STATUS_SHIPPED,
                Order.STATUS_OUT_FOR_DELIVERY,
                Order.STATUS_DELIVERED,
            ],
        )
        self.assertEqual(len(mail.outbox), 3)
        self.assertIn("AWB123", mail.outbox[0].body)

    def test_deliver_from_confirmed_is_rejected(self):
        res = self.client.post(f"/api/orders/{self.order.id}/deliver/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_TRANSITION")
        self.assertIn("SHIPPED", res.data["error"]["message"])
        self.assertEqual(res.data["error"]["allowed_statuses"], [Order.STATUS_OUT_FOR_DELIVERY, Order.STATUS_SHIPPED])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)

    def test_processing_and_stock_issue(self):
        base = f"/api/orders/{self.order.id}/status/"

        self.assertEqual(self.client.post(base, {"status": "PROCESSING"}, format="json").status_code, 200)
        self.assertEqual(self.client.post(base, {"status": "STOCK_ISSUE"}, format="json").status_code, 200)
        res = self.client.post(base, {"status": "SHIPPED"}, format="json")

        self.assertEqual(res.status_code, 400)

    def test_customer_cannot_ship(self):
        client = APIClient()
        client.force_authenticate(self.owner)

        res = client.post(f"/api/orders/{self.order.id}/ship/", {}, format="json")

        self.assertEqual(res.status_code, 403)

    def test_return_statuses_not_settable_directly(self):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_DELIVERED)

        res = self.client.post(f"/api/orders/{self.order.id}/status/", {"status": "RETURN_APPROVED"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")

    def test_unpaid_gateway_order_cannot_be_confirmed_by_hand(self):
        with patch("orders.services.payments.create_payment_session", return_value=fake_session()):
            order = place_order(
                user=self.owner,
                items=[{"product_id": self.product.id, "variant_sku": "RING", "quantity": 1}],
                payment_method="ONLINE",
            )
        Order.objects.filter(pk=order.pk).update(
            status=Order.STATUS_PAYMENT_FAILED, payment_status=Order.PAYMENT_FAILED
        )

        res = self.client.post(f"/api/orders/{order.id}/status/", {"status": "CONFIRMED"}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_STATE")
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PAYMENT_FAILED)
        self.assertEqual(order.payment_status, Order.PAYMENT_FAILED)
        self.assertEqual(len(mail.outbox), 0)

    def test_paid_gateway_order_can_be_confirmed_by_hand(self):
        with patch("orders.services.payments.create_payment_session", return_value=fake_session()):
            order = place_order(
                user=self.owner,
                items=[{"product_id": self.product.id, "variant_sku": "RING", "quantity": 1}],
                payment_method="ONLINE",
            )
        Order.objects.filter(pk=order.pk).update(payment_status=Order.PAYMENT_PAID)

        res = self.client.post(f"/api/orders/{order.id}/status/", {"status": "CONFIRMED"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Order.STATUS_CONFIRMED)
