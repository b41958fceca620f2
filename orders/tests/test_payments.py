# orders/tests/test_payments.py

"""
PAYMENT RECONCILIATION TESTS

GUARANTEES (all classes):
- the gateway status API decides; inbound payloads only name the order
- PAID and REFUNDED are settled: replays send nothing and change nothing
- a success landing on a cancelled order is refunded, never confirmed
- FAILED can recover to PAID
- webhook always answers 200 {success, message}
"""

from __future__ import annotations

from unittest.mock import patch

from django.core import mail
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from integrations.payment_gateway import GatewayPaymentStatus, PaymentGatewayError, RefundResult
from orders.models import Order
from orders.services.order_service import cancel_order
from orders.services.payments import normalize_payment_payload, reconcile_payment
from products.tests.helpers import make_product

from .helpers import fake_session, make_user, place_order

STATUS_PATCH = "orders.services.payments.fetch_payment_status"
SESSION_PATCH = "orders.services.payments.create_payment_session"
REFUND_PATCH = "orders.services.payments.initiate_refund"

WEBHOOK = "/api/orders/payments/webhook/"
CALLBACK = "/api/orders/payments/callback/"


def gateway_says(order, status, reference="cf_pay_1"):
    return GatewayPaymentStatus(order_id=order.order_number, status=status, reference_id=reference)


class NormalizePayloadTests(SimpleTestCase):
    def test_webhook_shape(self):
        notice = normalize_payment_payload(
            {
                "type": "PAYMENT_SUCCESS_WEBHOOK",
                "data": {
                    "order": {"order_id": "BG123456"},
                    "payment": {"payment_status": "SUCCESS", "cf_payment_id": 998877},
                },
            }
        )

        self.assertEqual(notice.order_id, "BG123456")
        self.assertEqual(notice.status, "PAID")
        self.assertEqual(notice.reference_id, "998877")

    def test_flat_callback_shape(self):
        notice = normalize_payment_payload({"order_id": "BG1", "txStatus": "FAILED", "referenceId": "R1"})

        self.assertEqual((notice.order_id, notice.status, notice.reference_id), ("BG1", "FAILED", "R1"))

    def test_camel_case_shape(self):
        notice = normalize_payment_payload({"data": {"orderId": "BG2"}})

        self.assertEqual(notice.order_id, "BG2")
        self.assertEqual(notice.status, "PENDING")

    def test_garbage(self):
        notice = normalize_payment_payload(["not", "a", "dict"])

        self.assertEqual(notice.order_id, "")


class ReconcileTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product(variants=[{"sku": "LAMP", "price": "1200.00", "stock": 3}])
        with patch(SESSION_PATCH, return_value=fake_session()):
            self.order = place_order(
                user=self.user,
                items=[{"product_id": self.product.id, "variant_sku": "LAMP", "quantity": 1}],
                payment_method="CASHFREE",
            )

    @patch(STATUS_PATCH)
    def test_verified_success_confirms_once(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "PAID")

        first = reconcile_payment(self.order)
        self.order.refresh_from_db()
        second = reconcile_payment(self.order)

        self.assertTrue(first.changed)
        self.assertFalse(second.changed)
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)
        self.assertEqual(self.order.transaction_id, "cf_pay_1")
        self.assertIsNotNone(self.order.paid_at)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mock_status.call_count, 1)

    @patch(STATUS_PATCH)
    def test_forged_success_is_not_trusted(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "PENDING")
        notice = normalize_payment_payload({"order_id": self.order.order_number, "txStatus": "SUCCESS"})

        result = reconcile_payment(self.order, notice=notice)

        self.assertFalse(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PENDING)

    @patch(STATUS_PATCH)
    def test_failure_then_recovery(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "FAILED")
        reconcile_payment(self.order)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PAYMENT_FAILED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_FAILED)

        mock_status.return_value = gateway_says(self.order, "PAID")
        result = reconcile_payment(self.order)

        self.assertTrue(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)

    @patch(STATUS_PATCH)
    def test_unreachable_gateway_changes_nothing(self, mock_status):
        mock_status.side_effect = PaymentGatewayError("timeout", service="payment_gateway")

        with self.assertLogs("orders.services.payments", level="WARNING"):
            result = reconcile_payment(self.order)

        self.assertFalse(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CREATED)

    @patch(REFUND_PATCH)
    @patch(STATUS_PATCH)
    def test_payment_after_cancellation_is_recorded_then_refunded(self, mock_status, mock_refund):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_CANCELLED)
        self.order.refresh_from_db()
        mock_status.return_value = gateway_says(self.order, "PAID")
        mock_refund.return_value = RefundResult(refund_id="RF-LATE", status="PENDING")

        result = reconcile_payment(self.order)

        self.assertTrue(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.transaction_id, "cf_pay_1")
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(self.order.refund_status, Order.REFUND_INITIATED)
        self.assertEqual(self.order.refund_amount, self.order.total_amount)
        mock_refund.assert_called_once()
        self.assertEqual(len(mail.outbox), 0)

    @patch(REFUND_PATCH)
    @patch(STATUS_PATCH)
    def test_late_success_after_failed_payment_and_cancel_is_refunded(self, mock_status, mock_refund):
        mock_status.return_value = gateway_says(self.order, "FAILED")
        reconcile_payment(self.order)
        self.order.refresh_from_db()
        cancel_order(self.order, actor=self.user)
        mock_refund.assert_not_called()

        mock_status.return_value = gateway_says(self.order, "PAID", reference="cf_pay_late")
        mock_refund.return_value = RefundResult(refund_id="RF-LATE", status="PENDING")
        self.order.refresh_from_db()
        reconcile_payment(self.order)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(self.order.transaction_id, "cf_pay_late")
        mock_refund.assert_called_once()
        self.assertEqual(len(mail.outbox), 0)

    @patch(REFUND_PATCH)
    @patch(STATUS_PATCH)
    def test_replay_after_refund_keeps_refunded_state(self, mock_status, mock_refund):
        mock_status.return_value = gateway_says(self.order, "PAID")
        mock_refund.return_value = RefundResult(refund_id="RF1", status="PENDING")
        reconcile_payment(self.order)
        self.order.refresh_from_db()
        cancel_order(self.order, actor=self.user)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        history_count = self.order.status_history.count()

        mock_status.return_value = gateway_says(self.order, "PAID", reference="cf_pay_2")
        result = reconcile_payment(self.order)

        self.assertFalse(result.changed)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(self.order.transaction_id, "cf_pay_1")
        self.assertEqual(self.order.status_history.count(), history_count)
        self.assertEqual(mock_status.call_count, 1)
        mock_refund.assert_called_once()

    @patch(STATUS_PATCH)
    def test_cod_orders_never_hit_the_gateway(self, mock_status):
        cod = place_order(user=self.user, items=[{"product_id": self.product.id, "variant_sku": "LAMP", "quantity": 1}])

        result = reconcile_payment(cod)

        self.assertFalse(result.changed)
        mock_status.assert_not_called()


class WebhookTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.product = make_product(variants=[{"sku": "VASE", "price": "650.00", "stock": 2}])
        with patch(SESSION_PATCH, return_value=fake_session()):
            self.order = place_order(
                user=self.user,
                items=[{"product_id": self.product.id, "variant_sku": "VASE", "quantity": 1}],
                payment_method="ONLINE",
            )

    def _success_payload(self):
        return {
            "type": "PAYMENT_SUCCESS_WEBHOOK",
            "data": {
                "order": {"order_id": self.order.order_number},
                "payment": {"payment_status": "SUCCESS", "cf_payment_id": "pay_1"},
            },
        }

    @patch(STATUS_PATCH)
    def test_success_webhook_confirms(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "PAID", reference="pay_1")

        res = self.client.post(WEBHOOK, self._success_payload(), format="json")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(len(mail.outbox), 1)

    @patch(STATUS_PATCH)
    def test_replay_on_paid_order_is_noop(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "PAID", reference="pay_1")
        self.client.post(WEBHOOK, self._success_payload(), format="json")
        self.order.refresh_from_db()
        transaction_id = self.order.transaction_id
        history_count = self.order.status_history.count()

        for _ in range(3):
            res = self.client.post(WEBHOOK, self._success_payload(), format="json")
            self.assertEqual(res.status_code, 200)
            self.assertTrue(res.data["success"])

        self.order.refresh_from_db()
        self.assertEqual(self.order.transaction_id, transaction_id)
        self.assertEqual(self.order.status_history.count(), history_count)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mock_status.call_count, 1)

    @patch(STATUS_PATCH)
    def test_replay_on_refunded_order_is_noop(self, mock_status):
        Order.objects.filter(pk=self.order.pk).update(
            status=Order.STATUS_CANCELLED,
            payment_status=Order.PAYMENT_REFUNDED,
            refund_status=Order.REFUND_INITIATED,
            transaction_id="pay_1",
        )
        history_count = self.order.status_history.count()

        res = self.client.post(WEBHOOK, self._success_payload(), format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["message"], "Already processed")
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_REFUNDED)
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.status_history.count(), history_count)
        mock_status.assert_not_called()

    def test_unknown_order_still_200(self):
        res = self.client.post(WEBHOOK, {"order_id": "BG000001", "txStatus": "SUCCESS"}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])

    def test_malformed_body_still_200(self):
        res = self.client.post(WEBHOOK, data="{not json", content_type="application/json")

        self.assertEqual(res.status_code, 200)
        self.assertIn("message", res.data)

    @patch(STATUS_PATCH)
    def test_internal_error_still_200(self, mock_status):
        mock_status.side_effect = RuntimeError("boom")

        with self.assertLogs("orders.views.payments", level="ERROR"):
            res = self.client.post(WEBHOOK, self._success_payload(), format="json")

        self.assertEqual(res.status_code, 200)
        self.assertFalse(res.data["success"])


class CallbackTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.product = make_product(variants=[{"sku": "MUG", "price": "300.00", "stock": 2}])
        with patch(SESSION_PATCH, return_value=fake_session()):
            self.order = place_order(
                user=self.user,
                items=[{"product_id": self.product.id, "variant_sku": "MUG", "quantity": 1}],
                payment_method="ONLINE",
            )

    @patch(STATUS_PATCH)
    def test_json_callback_reports_verified_status(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "PAID")

        res = APIClient().get(CALLBACK, {"order_id": self.order.order_number}, HTTP_ACCEPT="application/json")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["payment_status"], Order.PAYMENT_PAID)
        self.assertEqual(res.data["status"], Order.STATUS_CONFIRMED)

    @patch(STATUS_PATCH)
    def test_browser_callback_redirects(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "FAILED")

        res = APIClient().get(CALLBACK, {"order_id": self.order.order_number})

        self.assertEqual(res.status_code, 302)
        self.assertIn(f"/order/{self.order.order_number}", res["Location"])
        self.assertIn("status=FAILED", res["Location"])

    def test_unknown_order_json(self):
        res = APIClient().get(CALLBACK, {"order_id": "BG999999"}, HTTP_ACCEPT="application/json")

        self.assertEqual(res.status_code, 404)

    @patch(STATUS_PATCH)
    def test_payment_status_endpoint_for_owner(self, mock_status):
        mock_status.return_value = gateway_says(self.order, "PAID")
        client = APIClient()
        client.force_authenticate(self.user)

        res = client.get(f"/api/orders/{self.order.id}/payment-status/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["payment_status"], Order.PAYMENT_PAID)
        self.assertTrue(res.data["changed"])


class RetryPaymentTests(TestCase):
    """
    GUARANTEES:
    - a fresh session is issued only for unpaid gateway orders in CREATED / PAYMENT_FAILED
    """

    def setUp(self):
        self.user = make_user()
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        self.product = make_product(variants=[{"sku": "PEN", "price": "50.00", "stock": 5}])

    @patch(SESSION_PATCH)
    def test_retry_after_failure(self, mock_session):
        mock_session.return_value = fake_session()
        order = place_order(
            user=self.user,
            items=[{"product_id": self.product.id, "variant_sku": "PEN", "quantity": 1}],
            payment_method="ONLINE",
        )
        Order.objects.filter(pk=order.pk).update(status=Order.STATUS_PAYMENT_FAILED, payment_status=Order.PAYMENT_FAILED)

        res = self.client.post(f"/api/orders/{order.id}/pay/", {}, format="json")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["payment"]["payment_session_id"], "session_test_token")
        self.assertEqual(mock_session.call_count, 2)

    def test_cod_order_cannot_retry(self):
        order = place_order(user=self.user, items=[{"product_id": self.product.id, "variant_sku": "PEN", "quantity": 1}])

        res = self.client.post(f"/api/orders/{order.id}/pay/", {}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "INVALID_STATE")
