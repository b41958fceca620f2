# integrations/tests/test_payment_gateway.py

from unittest.mock import patch

from django.test import SimpleTestCase, override_settings

from integrations import payment_gateway
from integrations.http import IntegrationError
from integrations.payment_gateway import PaymentGatewayError


class ClassifyStatusTests(SimpleTestCase):
    def test_success_family(self):
        for raw in ("SUCCESS", "paid", " Captured ", "AUTHORIZED"):
            self.assertEqual(payment_gateway.classify_status(raw), payment_gateway.STATUS_PAID)

    def test_failure_family(self):
        for raw in ("FAILED", "user_dropped", "CANCELLED"):
            self.assertEqual(payment_gateway.classify_status(raw), payment_gateway.STATUS_FAILED)

    def test_unknown_is_pending(self):
        self.assertEqual(payment_gateway.classify_status("ACTIVE"), payment_gateway.STATUS_PENDING)
        self.assertEqual(payment_gateway.classify_status(None), payment_gateway.STATUS_PENDING)


class PaymentGatewayClientTests(SimpleTestCase):
    """
    GUARANTEES:
    - session creation requires a payment_session_id in the response
    - authoritative status combines order + payments endpoints
    - transport failures surface as PaymentGatewayError
    """

    @patch("integrations.payment_gateway.request_json")
    def test_create_session(self, mock_request):
        mock_request.return_value = {"payment_session_id": "sess_123", "cf_order_id": 991}

        session = payment_gateway.create_payment_session(
            order_id="BG123456",
            amount="900",
            customer_id="guest",
            customer_name="A",
            customer_email="a@example.com",
            customer_phone="9999999999",
        )

        self.assertEqual(session.token, "sess_123")
        self.assertEqual(session.gateway_order_id, "991")
        method, url = mock_request.call_args.args
        self.assertEqual(method, "POST")
        self.assertEqual(url, "https://pg.test.local/pg/orders")
        body = mock_request.call_args.kwargs["body"]
        self.assertEqual(body["order_amount"], 900.0)
        self.assertIn("BG123456", body["order_meta"]["return_url"])
        self.assertEqual(mock_request.call_args.kwargs["headers"]["x-client-id"], "test-client")

    @patch("integrations.payment_gateway.request_json")
    def test_create_session_without_token_fails(self, mock_request):
        mock_request.return_value = {"cf_order_id": 1}

        with self.assertRaises(PaymentGatewayError):
            payment_gateway.create_payment_session(
                order_id="BG1",
                amount="10",
                customer_id="c",
                customer_name="",
                customer_email="a@example.com",
                customer_phone="9999999999",
            )

    @patch("integrations.payment_gateway.request_json")
    def test_fetch_status_paid_from_payments(self, mock_request):
        mock_request.side_effect = [
            {"order_status": "ACTIVE"},
            [{"payment_status": "SUCCESS", "cf_payment_id": 555}],
        ]

        result = payment_gateway.fetch_payment_status("BG1")

        self.assertTrue(result.is_paid)
        self.assertEqual(result.reference_id, "555")

    @patch("integrations.payment_gateway.request_json")
    def test_fetch_status_pending(self, mock_request):
        mock_request.side_effect = [{"order_status": "ACTIVE"}, []]

        result = payment_gateway.fetch_payment_status("BG1")

        self.assertEqual(result.status, payment_gateway.STATUS_PENDING)

    @patch("integrations.payment_gateway.request_json")
    def test_transport_error_wrapped(self, mock_request):
        mock_request.side_effect = IntegrationError("boom", service="payment_gateway", status_code=502)

        with self.assertRaises(PaymentGatewayError) as ctx:
            payment_gateway.initiate_refund(order_id="BG1", amount="10", refund_id="R1")

        self.assertEqual(ctx.exception.status_code, 502)

    @override_settings(PAYMENTS={"GATEWAY": {}})
    def test_unconfigured_gateway(self):
        with self.assertRaises(PaymentGatewayError):
            payment_gateway.fetch_payment_status("BG1")
