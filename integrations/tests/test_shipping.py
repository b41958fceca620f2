# integrations/tests/test_shipping.py

from unittest.mock import patch

from django.core.cache import cache
from django.test import SimpleTestCase, override_settings

from integrations import shipping
from integrations.http import IntegrationError

ENABLED = {
    "ENABLED": True,
    "BASE_URL": "https://ship.test.local/v1/external",
    "EMAIL": "ops@example.com",
    "PASSWORD": "secret",
    "PICKUP_LOCATION": "Primary",
    "PICKUP_PINCODE": "110001",
    "TIMEOUT": 5,
}


class ShippingDisabledTests(SimpleTestCase):
    """
    GUARANTEES:
    - a disabled integration never raises; results carry success=False
    """

    def test_create_shipment_disabled(self):
        result = shipping.create_shipment({"order_id": "BG1"})
        self.assertFalse(result.success)

    def test_serviceability_without_pickup(self):
        result = shipping.check_pincode_serviceability("560001")
        self.assertFalse(result.success)


@override_settings(SHIPPING=ENABLED)
class ShippingClientTests(SimpleTestCase):
    def setUp(self):
        cache.clear()

    @patch("integrations.shipping.request_json")
    def test_create_shipment(self, mock_request):
        mock_request.side_effect = [
            {"token": "tok"},
            {"shipment_id": 77, "order_id": 12},
        ]

        result = shipping.create_shipment({"order_id": "BG1"})

        self.assertTrue(result.success)
        self.assertEqual(result.shipment_id, "77")
        self.assertEqual(mock_request.call_args.kwargs["headers"]["Authorization"], "Bearer tok")
        self.assertEqual(mock_request.call_args.kwargs["body"]["pickup_location"], "Primary")

    @patch("integrations.shipping.request_json")
    def test_token_refreshed_once_on_401(self, mock_request):
        mock_request.side_effect = [
            {"token": "old"},
            IntegrationError("expired", service="shipping", status_code=401),
            {"token": "new"},
            {"response": {"data": {"awb_code": "AWB9", "courier_name": "Fast"}}},
        ]

        result = shipping.generate_tracking_number("77")

        self.assertTrue(result.success)
        self.assertEqual(result.tracking_code, "AWB9")
        self.assertEqual(mock_request.call_count, 4)

    @patch("integrations.shipping.request_json")
    def test_serviceability(self, mock_request):
        mock_request.side_effect = [
            {"token": "tok"},
            {"data": {"available_courier_companies": [
                {"estimated_delivery_days": "4"},
                {"estimated_delivery_days": 2},
            ]}},
        ]

        result = shipping.check_pincode_serviceability("560001")

        self.assertTrue(result.serviceable)
        self.assertEqual(result.estimated_days, 2)
        self.assertEqual(result.max_days, 4)

    @patch("integrations.shipping.request_json")
    def test_failure_is_reported_not_raised(self, mock_request):
        mock_request.side_effect = IntegrationError("down", service="shipping")

        with self.assertLogs("integrations.shipping", level="WARNING"):
            result = shipping.cancel_shipment(["12"])

        self.assertFalse(result.success)
