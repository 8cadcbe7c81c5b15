# Overview: Pytest coverage for order payload validation and JSON parsing.

from decimal import Decimal

import pytest

from orderdesk.errors import MalformedPayloadError, ValidationError
from orderdesk.services.order_validation import (
    parse_json_body,
    to_money,
    validate_order_payload,
    validate_status,
)


class TestValidPayload:

    def test_reference_payload(self, payload):
        draft = validate_order_payload(payload)
        assert draft.client_name == "Mona Adel"
        assert draft.shipping_cost == Decimal("30.00")
        assert draft.deposit == Decimal("20.00")
        assert draft.discount == Decimal("0.00")
        assert len(draft.items) == 1
        item = draft.items[0]
        assert item.product_type == "Frame"
        assert item.quantity == 2
        assert item.item_discount == Decimal("10.00")

    def test_numeric_strings_are_accepted(self, payload):
        payload["shippingCost"] = "30.5"
        payload["items"][0]["price"] = "100"
        payload["items"][0]["quantity"] = "3"
        draft = validate_order_payload(payload)
        assert draft.shipping_cost == Decimal("30.50")
        assert draft.items[0].price == Decimal("100.00")
        assert draft.items[0].quantity == 3

    def test_optional_fields_default(self, payload):
        del payload["items"][0]["itemDiscount"]
        del payload["shippingCost"]
        del payload["deposit"]
        draft = validate_order_payload(payload)
        assert draft.items[0].item_discount == Decimal("0.00")
        assert draft.shipping_cost == Decimal("0.00")
        assert draft.deposit == Decimal("0.00")
        assert draft.email is None

    def test_webhook_key_is_not_part_of_the_draft(self, payload):
        payload["webhook_key"] = "secret"
        draft = validate_order_payload(payload)
        assert not hasattr(draft, "webhook_key")


class TestMissingFields:

    @pytest.mark.parametrize("field,message", [
        ("clientName", "clientName is required"),
        ("phone", "phone is required"),
        ("items", "items must contain at least one item"),
    ])
    def test_required_header_fields(self, payload, field, message):
        del payload[field]
        with pytest.raises(ValidationError) as exc_info:
            validate_order_payload(payload)
        assert exc_info.value.message == message

    def test_blank_client_name_is_missing(self, payload):
        payload["clientName"] = "   "
        with pytest.raises(ValidationError, match="clientName is required"):
            validate_order_payload(payload)

    def test_empty_items(self, payload):
        payload["items"] = []
        with pytest.raises(ValidationError, match="at least one item"):
            validate_order_payload(payload)

    @pytest.mark.parametrize("field", ["productType", "size", "price", "cost"])
    def test_required_item_fields(self, payload, field):
        del payload["items"][0][field]
        with pytest.raises(ValidationError) as exc_info:
            validate_order_payload(payload)
        assert exc_info.value.message.startswith(f"items[0].{field}")

    def test_first_violation_wins(self, payload):
        del payload["clientName"]
        del payload["phone"]
        with pytest.raises(ValidationError) as exc_info:
            validate_order_payload(payload)
        assert exc_info.value.message == "clientName is required"

    def test_second_item_is_indexed(self, payload):
        payload["items"].append({"productType": "Canvas", "size": "40x60", "quantity": 1, "price": 80})
        with pytest.raises(ValidationError) as exc_info:
            validate_order_payload(payload)
        assert exc_info.value.message == "items[1].cost is required"


class TestOutOfRange:

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_below_one(self, payload, quantity):
        payload["items"][0]["quantity"] = quantity
        with pytest.raises(ValidationError, match=r"items\[0\]\.quantity must be at least 1"):
            validate_order_payload(payload)

    @pytest.mark.parametrize("quantity", [1.5, "two", True, None])
    def test_quantity_not_an_integer(self, payload, quantity):
        payload["items"][0]["quantity"] = quantity
        with pytest.raises(ValidationError, match="quantity must be a positive integer"):
            validate_order_payload(payload)

    @pytest.mark.parametrize("quantity", [100001, 10**20, "100000000000000000000"])
    def test_quantity_above_maximum(self, payload, quantity):
        payload["items"][0]["quantity"] = quantity
        with pytest.raises(ValidationError, match=r"items\[0\]\.quantity must not exceed 100000"):
            validate_order_payload(payload)

    def test_quantity_at_maximum_is_allowed(self, payload):
        payload["items"][0]["quantity"] = 100000
        draft = validate_order_payload(payload)
        assert draft.items[0].quantity == 100000

    def test_item_discount_above_price(self, payload):
        payload["items"][0]["itemDiscount"] = 150
        with pytest.raises(ValidationError, match="itemDiscount must not exceed price"):
            validate_order_payload(payload)

    def test_item_discount_equal_to_price_is_allowed(self, payload):
        payload["items"][0]["itemDiscount"] = 100
        draft = validate_order_payload(payload)
        assert draft.items[0].item_discount == Decimal("100.00")

    def test_negative_price(self, payload):
        payload["items"][0]["price"] = -5
        with pytest.raises(ValidationError, match="price must not be negative"):
            validate_order_payload(payload)

    @pytest.mark.parametrize("field", ["shippingCost", "discount", "deposit"])
    def test_negative_order_amounts(self, payload, field):
        payload[field] = -1
        with pytest.raises(ValidationError, match=f"{field} must not be negative"):
            validate_order_payload(payload)

    def test_non_numeric_amount(self, payload):
        payload["items"][0]["cost"] = "fifty"
        with pytest.raises(ValidationError, match="cost must be a number"):
            validate_order_payload(payload)


class TestMalformedShape:

    def test_items_not_a_list(self, payload):
        payload["items"] = {"productType": "Frame"}
        with pytest.raises(MalformedPayloadError, match="items must be a list"):
            validate_order_payload(payload)

    def test_item_not_an_object(self, payload):
        payload["items"] = ["Frame"]
        with pytest.raises(MalformedPayloadError, match=r"items\[0\] must be an object"):
            validate_order_payload(payload)

    def test_payload_not_an_object(self):
        with pytest.raises(MalformedPayloadError):
            validate_order_payload(["not", "an", "object"])


class TestParseJsonBody:

    def test_object(self):
        assert parse_json_body(b'{"clientName": "Mona"}') == {"clientName": "Mona"}

    @pytest.mark.parametrize("raw", [None, b"", b"   ", b"{not json", b"[1, 2]", b'"text"'])
    def test_invalid_bodies(self, raw):
        with pytest.raises(MalformedPayloadError, match="Invalid JSON format"):
            parse_json_body(raw)


class TestHelpers:

    def test_to_money_rounds_half_up(self):
        assert to_money("10.005", "price") == Decimal("10.01")
        assert to_money(0.1, "price") == Decimal("0.10")

    def test_to_money_rejects_booleans(self):
        with pytest.raises(ValidationError):
            to_money(True, "price")

    def test_validate_status(self):
        assert validate_status("shipped") == "shipped"
        with pytest.raises(ValidationError, match="status must be one of"):
            validate_status("lost")
