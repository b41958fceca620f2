# orders/tests/test_fulfillment.py

from __future__ import annotations

from unittest.mock import patch

from django.core import mail
from django.test import TestCase

from integrations.shipping import ShipmentResult, ShippingCallResult, TrackingResult
from orders.models import Order
from orders.services.fulfillment import build_shipment_payload
from orders.services.order_service import cancel_order
from products.tests.helpers import make_product

from .helpers import make_user, place_order


@patch("orders.services.fulfillment.shipping.is_enabled", return_value=True)
class ShipmentSideEffectTests(TestCase):
    """
    GUARANTEES:
    - a confirmed order gets a shipment and AWB stored on it
    - courier or mail failures never undo the order
    - cancelling an order releases its courier order
    """

    def setUp(self):
        self.user = make_user()
        self.product = make_product(variants=[{"sku": "TRAY", "price": "450.00", "stock": 5}])

    def _place(self):
        return place_order(user=self.user, items=[{"product_id": self.product.id, "variant_sku": "TRAY", "quantity": 2}])

    @patch("orders.services.fulfillment.shipping.generate_tracking_number")
    @patch("orders.services.fulfillment.shipping.create_shipment")
    def test_shipment_and_awb_saved(self, mock_create, mock_awb, _enabled):
        mock_create.return_value = ShipmentResult(success=True, shipment_id="S-1", provider_order_id="P-1")
        mock_awb.return_value = TrackingResult(success=True, tracking_code="AWB-9", courier_name="BlueDart")

        order = self._place()

        order.refresh_from_db()
        self.assertEqual(order.shipment_id, "S-1")
        self.assertEqual(order.provider_order_id, "P-1")
        self.assertEqual(order.tracking_id, "AWB-9")
        self.assertEqual(order.courier_name, "BlueDart")
        self.assertEqual(order.status, Order.STATUS_CONFIRMED)
        mock_awb.assert_called_once_with("S-1")

        payload = mock_create.call_args.args[0]
        self.assertEqual(payload["order_id"], order.order_number)
        self.assertEqual(payload["payment_method"], "COD")
        self.assertEqual(payload["order_items"][0]["units"], 2)

    @patch("orders.services.fulfillment.shipping.create_shipment", side_effect=RuntimeError("courier down"))
    def test_courier_crash_is_logged(self, _create, _enabled):
        with self.assertLogs("orders.services.fulfillment", level="ERROR"):
            order = self._place()

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CONFIRMED)
        self.assertEqual(order.shipment_id, "")
        self.assertEqual(len(mail.outbox), 1)

    @patch("orders.services.fulfillment.shipping.create_shipment")
    @patch("orders.services.fulfillment.notifications.send_order_confirmation", side_effect=RuntimeError("smtp"))
    def test_mail_crash_still_creates_shipment(self, _mail, mock_create, _enabled):
        mock_create.return_value = ShipmentResult(success=False, error="bad pincode")

        with self.assertLogs("orders.services.fulfillment", level="ERROR"):
            order = self._place()

        self.assertTrue(Order.objects.filter(pk=order.pk).exists())
        mock_create.assert_called_once()

    @patch("orders.services.fulfillment.shipping.cancel_shipment")
    @patch("orders.services.fulfillment.shipping.generate_tracking_number")
    @patch("orders.services.fulfillment.shipping.create_shipment")
    def test_cancel_releases_courier_order(self, mock_create, mock_awb, mock_cancel, _enabled):
        mock_create.return_value = ShipmentResult(success=True, shipment_id="S-1", provider_order_id="P-1")
        mock_awb.return_value = TrackingResult(success=False, error="no courier")
        mock_cancel.return_value = ShippingCallResult(success=True)

        order = self._place()
        order.refresh_from_db()
        cancel_order(order, actor=self.user, reason="changed my mind")

        mock_cancel.assert_called_once_with(["P-1"])
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CANCELLED)

    @patch("orders.services.fulfillment.shipping.cancel_shipment", side_effect=RuntimeError("courier down"))
    @patch("orders.services.fulfillment.shipping.create_shipment")
    def test_courier_cancel_crash_keeps_cancellation(self, mock_create, _cancel, _enabled):
        mock_create.return_value = ShipmentResult(success=True, shipment_id="S-2", provider_order_id="P-2")

        with patch("orders.services.fulfillment.shipping.generate_tracking_number") as mock_awb:
            mock_awb.return_value = TrackingResult(success=False)
            order = self._place()

        with self.assertLogs("orders.services.fulfillment", level="ERROR"):
            cancel_order(order, actor=self.user)

        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.product.variants.get().stock, 5)


class ConfirmationMailTests(TestCase):
    """
    GUARANTEES:
    - a confirmed order reaches the mailer as the `order` keyword, with its recipient
    - checkout sends exactly one confirmation and logs no fulfilment error
    """

    def setUp(self):
        self.user = make_user("buyer@example.com")
        self.product = make_product(variants=[{"sku": "BOWL", "price": "280.00", "stock": 4}])

    @patch("orders.services.fulfillment.notifications.send_order_confirmation", return_value=True)
    def test_mailer_receives_order_keyword(self, mock_send):
        order = place_order(user=self.user, items=[{"product_id": self.product.id, "variant_sku": "BOWL", "quantity": 1}])

        mock_send.assert_called_once()
        kwargs = mock_send.call_args.kwargs
        self.assertEqual(kwargs["order"].pk, order.pk)
        self.assertEqual(kwargs["recipient"], order.recipient_email)

    def test_checkout_sends_one_confirmation(self):
        with self.assertNoLogs("orders.services.fulfillment", level="ERROR"):
            order = place_order(user=self.user, items=[{"product_id": self.product.id, "variant_sku": "BOWL", "quantity": 1}])

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(order.order_number, mail.outbox[0].subject)


class ShipmentPayloadTests(TestCase):
    def test_minimum_package_and_separate_shipping_address(self):
        user = make_user()
        product = make_product(variants=[{"sku": "CARD", "price": "20.00", "stock": 5}])
        order = place_order(user=user, items=[{"product_id": product.id, "variant_sku": "CARD", "quantity": 1}])
        Order.objects.filter(pk=order.pk).update(
            weight=0,
            length=0,
            shipping_is_billing=False,
            shipping_name="Ravi Kumar Singh",
            shipping_city="Nashik",
        )
        order.refresh_from_db()

        payload = build_shipment_payload(order)

        self.assertEqual(payload["weight"], 0.5)
        self.assertEqual(payload["length"], 10.0)
        self.assertEqual(payload["shipping_customer_name"], "Ravi")
        self.assertEqual(payload["shipping_last_name"], "Kumar Singh")
        self.assertEqual(payload["shipping_city"], "Nashik")
