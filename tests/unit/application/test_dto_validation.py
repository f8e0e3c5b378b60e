"""Validation tests for provider and backend DTOs."""

import unittest

from pydantic import ValidationError

from walletpay.application.dtos import (
    BackendEnvelope,
    IntermediatePaymentData,
    PaymentData,
    PaymentRedirect,
    ShippingTotals,
    TransactionInfo,
)


class TestTransactionInfoValidation(unittest.TestCase):
    """Test cases for TransactionInfo validation."""

    def test_accepts_provider_field_names(self):
        """Test TransactionInfo built from the provider's field names."""
        info = TransactionInfo.model_validate(
            {"totalPriceStatus": "ESTIMATED", "totalPrice": "9.99", "currencyCode": "EUR"}
        )

        self.assertEqual(info.total_price_status, "ESTIMATED")
        self.assertEqual(info.total_price, "9.99")
        self.assertEqual(info.currency_code, "EUR")

    def test_accepts_backend_amount_and_currency(self):
        """Test the backend's amount/currency names map to provider fields."""
        info = TransactionInfo.model_validate({"amount": "42.00", "currency": "USD"})

        self.assertEqual(
            info.to_wire(),
            {"totalPriceStatus": "FINAL", "totalPrice": "42.00", "currencyCode": "USD"},
        )

    def test_final_price_is_required(self):
        """Test a FINAL status without a price is rejected."""
        with self.assertRaises(ValidationError):
            TransactionInfo.model_validate({"currencyCode": "USD"})

    def test_unknown_price_may_be_omitted(self):
        """Test NOT_CURRENTLY_KNOWN does not require a price."""
        info = TransactionInfo.not_currently_known("USD")

        self.assertIsNone(info.total_price)
        self.assertNotIn("totalPrice", info.to_wire())

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(ValidationError):
            TransactionInfo.model_validate(
                {"totalPriceStatus": "MAYBE", "totalPrice": "1.00", "currencyCode": "USD"}
            )

    def test_display_items_are_preserved(self):
        info = TransactionInfo.model_validate(
            {
                "totalPrice": "47.00",
                "currencyCode": "USD",
                "displayItems": [
                    {"label": "Subtotal", "type": "SUBTOTAL", "price": "42.00"},
                    {"label": "Shipping", "type": "LINE_ITEM", "price": "5.00"},
                ],
            }
        )

        self.assertEqual(len(info.to_wire()["displayItems"]), 2)


class TestShippingTotalsValidation(unittest.TestCase):
    """Test cases for ShippingTotals validation."""

    def test_nested_shipping_options(self):
        totals = ShippingTotals.model_validate(
            {
                "newTransactionInfo": {"totalPrice": "47.00", "currencyCode": "USD"},
                "newShippingOptionParameters": {
                    "defaultSelectedOptionId": "flat_rate:1",
                    "shippingOptions": [{"id": "flat_rate:1", "label": "Flat rate"}],
                },
            }
        )

        self.assertEqual([o.id for o in totals.shipping_options], ["flat_rate:1"])

    def test_flat_shipping_options_are_wrapped(self):
        """Test top-level shippingOptions are accepted as the option parameters."""
        totals = ShippingTotals.model_validate(
            {
                "newTransactionInfo": {"totalPrice": "47.00", "currencyCode": "USD"},
                "shippingOptions": [{"id": "local_pickup:3", "label": "Pickup"}],
                "defaultSelectedOptionId": "local_pickup:3",
            }
        )

        self.assertEqual([o.id for o in totals.shipping_options], ["local_pickup:3"])
        self.assertEqual(
            totals.new_shipping_option_parameters.default_selected_option_id,
            "local_pickup:3",
        )

    def test_missing_options_are_rejected(self):
        with self.assertRaises(ValidationError):
            ShippingTotals.model_validate(
                {"newTransactionInfo": {"totalPrice": "47.00", "currencyCode": "USD"}}
            )

    def test_to_update_carries_totals_and_options(self):
        totals = ShippingTotals.model_validate(
            {"shippingOptions": [{"id": "flat_rate:1", "label": "Flat rate"}]}
        )

        update = totals.to_update().to_wire()

        self.assertNotIn("error", update)
        self.assertNotIn("newTransactionInfo", update)
        self.assertEqual(
            update["newShippingOptionParameters"]["shippingOptions"][0]["id"],
            "flat_rate:1",
        )


class TestCallbackPayloadValidation(unittest.TestCase):
    """Test cases for provider callback payloads."""

    def test_option_change_requires_option_data(self):
        with self.assertRaises(ValidationError):
            IntermediatePaymentData.model_validate({"callbackTrigger": "SHIPPING_OPTION"})

    def test_unknown_trigger_is_rejected(self):
        with self.assertRaises(ValidationError):
            IntermediatePaymentData.model_validate({"callbackTrigger": "OFFER"})

    def test_address_keeps_unknown_fields(self):
        data = IntermediatePaymentData.model_validate(
            {
                "callbackTrigger": "SHIPPING_ADDRESS",
                "shippingAddress": {"countryCode": "US", "sortingCode": "X1"},
            }
        )

        self.assertEqual(data.shipping_address.to_wire()["sortingCode"], "X1")

    def test_payment_data_requires_method_data(self):
        with self.assertRaises(ValidationError):
            PaymentData.model_validate({"apiVersion": 2})

    def test_payment_data_json_is_compact(self):
        payment = PaymentData.model_validate(
            {"paymentMethodData": {"type": "CARD"}, "email": "shopper@example.com"}
        )

        self.assertEqual(
            payment.to_json(),
            '{"paymentMethodData":{"type":"CARD"},"email":"shopper@example.com"}',
        )


class TestBackendEnvelope(unittest.TestCase):
    """Test cases for the backend response envelope."""

    def test_json_string_data_is_decoded(self):
        envelope = BackendEnvelope.model_validate(
            {"success": True, "data": '{"redirect": "/thank-you"}'}
        )

        self.assertEqual(envelope.payload(), {"redirect": "/thank-you"})

    def test_plain_string_data_is_kept(self):
        envelope = BackendEnvelope.model_validate({"success": False, "data": "declined"})

        self.assertEqual(envelope.payload(), "declined")
        self.assertEqual(envelope.failure_message(), "declined")

    def test_failure_message_from_dict(self):
        envelope = BackendEnvelope.model_validate(
            {"success": False, "data": {"message": "Invalid nonce"}}
        )

        self.assertEqual(envelope.failure_message(), "Invalid nonce")

    def test_failure_without_data(self):
        envelope = BackendEnvelope.model_validate({"success": False})

        self.assertEqual(envelope.failure_message(), "no message")

    def test_empty_redirect_is_rejected(self):
        with self.assertRaises(ValidationError):
            PaymentRedirect.model_validate({"redirect": ""})


if __name__ == "__main__":
    unittest.main()
