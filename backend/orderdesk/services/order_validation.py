# Overview: Order payload validation shared by the webhook and UI ingestion paths.

"""
Order Validator

Turns a raw camelCase payload into an OrderDraft or raises before any write:
- MalformedPayloadError: the JSON shape is wrong (not an object, items not a
  list of objects, unparseable body)
- ValidationError: well-formed but incomplete or out-of-range values

Checks run in a fixed order and the first violation wins, so the same
payload always yields the same message.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from ..errors import MalformedPayloadError, ValidationError


CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")
MAX_QUANTITY = 100000

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "sentToPrinter",
    "readyForDelivery",
)


@dataclass(frozen=True)
class ItemDraft:
    product_type: str
    size: str
    quantity: int
    cost: Decimal
    price: Decimal
    item_discount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class OrderDraft:
    client_name: str
    phone: str
    items: tuple[ItemDraft, ...]
    email: str | None = None
    payment_method: str = ""
    delivery_method: str = ""
    address: str = ""
    governorate: str = ""
    shipping_cost: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    deposit: Decimal = Decimal("0.00")
    notes: str | None = None


def to_money(value: Any, name: str, *, default: Decimal | None = None) -> Decimal:
    """Coerce a JSON number or numeric string to a two-place Decimal."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a number")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{name} is out of range")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _to_quantity(value: Any, name: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} must be a positive integer")
    if isinstance(value, int):
        qty = value
    elif isinstance(value, float) and value.is_integer():
        qty = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        qty = int(value.strip())
    else:
        raise ValidationError(f"{name} must be a positive integer")
    if qty < 1:
        raise ValidationError(f"{name} must be at least 1")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"{name} must not exceed {MAX_QUANTITY}")
    return qty


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_json_body(raw: bytes | str | None) -> dict:
    """Decode a request body into a JSON object or raise MalformedPayloadError."""
    if raw is None or (isinstance(raw, (bytes, str)) and not raw.strip()):
        raise MalformedPayloadError("Invalid JSON format")
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        raise MalformedPayloadError("Invalid JSON format")
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Invalid JSON format")
    return payload


def check_shape(payload: dict) -> None:
    """JSON-level structure: items, when present, must be a list of objects."""
    items = payload.get("items")
    if items is None:
        return
    if not isinstance(items, list):
        raise MalformedPayloadError("items must be a list")
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedPayloadError(f"items[{index}] must be an object")


def validate_order_payload(payload: dict) -> OrderDraft:
    """
    Validate a camelCase order payload.

    Order of checks: clientName, phone, items non-empty, then per item
    productType, size, quantity, price, cost, itemDiscount, then order-level
    shippingCost, discount, deposit.

    Side-effect free: never touches the session.
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Invalid JSON format")
    check_shape(payload)

    client_name = _text(payload.get("clientName"))
    if not client_name:
        raise ValidationError("clientName is required")

    phone = _text(payload.get("phone"))
    if not phone:
        raise ValidationError("phone is required")

    raw_items = payload.get("items") or []
    if not raw_items:
        raise ValidationError("items must contain at least one item")

    items = []
    for index, raw in enumerate(raw_items):
        label = f"items[{index}]"
        product_type = _text(raw.get("productType"))
        if not product_type:
            raise ValidationError(f"{label}.productType is required")
        size = _text(raw.get("size"))
        if not size:
            raise ValidationError(f"{label}.size is required")
        quantity = _to_quantity(raw.get("quantity"), f"{label}.quantity")

        price = to_money(raw.get("price"), f"{label}.price")
        cost = to_money(raw.get("cost"), f"{label}.cost")
        item_discount = to_money(raw.get("itemDiscount"), f"{label}.itemDiscount", default=Decimal("0.00"))
        if price < 0:
            raise ValidationError(f"{label}.price must not be negative")
        if cost < 0:
            raise ValidationError(f"{label}.cost must not be negative")
        if item_discount < 0:
            raise ValidationError(f"{label}.itemDiscount must not be negative")
        if item_discount > price:
            raise ValidationError(f"{label}.itemDiscount must not exceed price")

        items.append(ItemDraft(
            product_type=product_type,
            size=size,
            quantity=quantity,
            cost=cost,
            price=price,
            item_discount=item_discount,
        ))

    shipping_cost = to_money(payload.get("shippingCost"), "shippingCost", default=Decimal("0.00"))
    discount = to_money(payload.get("discount"), "discount", default=Decimal("0.00"))
    deposit = to_money(payload.get("deposit"), "deposit", default=Decimal("0.00"))
    for name, amount in (("shippingCost", shipping_cost), ("discount", discount), ("deposit", deposit)):
        if amount < 0:
            raise ValidationError(f"{name} must not be negative")

    email = _text(payload.get("email")) or None
    notes = _text(payload.get("notes")) or None

    return OrderDraft(
        client_name=client_name,
        phone=phone,
        items=tuple(items),
        email=email,
        payment_method=_text(payload.get("paymentMethod")),
        delivery_method=_text(payload.get("deliveryMethod")),
        address=_text(payload.get("address")),
        governorate=_text(payload.get("governorate")),
        shipping_cost=shipping_cost,
        discount=discount,
        deposit=deposit,
        notes=notes,
    )


def validate_status(status: Any) -> str:
    if not isinstance(status, str) or status not in ORDER_STATUSES:
        raise ValidationError(
            "status must be one of: " + ", ".join(ORDER_STATUSES)
        )
    return status
