# Overview: Pure money arithmetic for orders, payments and the cash ledger.

"""
Financial Calculator

Every ingestion path (webhook, UI create, UI edit) computes order figures
through these functions and nothing else. All amounts are Decimal; results
are quantized to cents.

Two order-profit definitions exist:
- items only: sum of line profits
- net of shipping: sum of line profits minus the order's shipping cost

ORDER_PROFIT_POLICY selects one for every path; compute_totals() refuses to
run without an explicit policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from ..errors import ValidationError
from .order_validation import MAX_AMOUNT


CENT = Decimal("0.01")
ZERO = Decimal("0.00")

PROFIT_ITEMS_ONLY = "items_only"
PROFIT_NET_OF_SHIPPING = "net_of_shipping"
PROFIT_POLICIES = (PROFIT_ITEMS_ONLY, PROFIT_NET_OF_SHIPPING)

# Customer payment statuses that count toward the amount received
COUNTED_CUSTOMER_STATUSES = ("Paid", "Partial")


def _q(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _discount(item) -> Decimal:
    return getattr(item, "item_discount", None) or ZERO


def line_total(item) -> Decimal:
    """(price - itemDiscount) * quantity"""
    return _q((item.price - _discount(item)) * item.quantity)


def line_profit(item) -> Decimal:
    """(price - itemDiscount - cost) * quantity"""
    return _q((item.price - _discount(item) - item.cost) * item.quantity)


def order_subtotal(items: Iterable) -> Decimal:
    return _q(sum((line_total(i) for i in items), ZERO))


def order_total(items: Iterable, *, shipping_cost, discount, deposit) -> Decimal:
    """subtotal + shipping - discount - deposit"""
    return _q(order_subtotal(items) + shipping_cost - discount - deposit)


def order_profit_items_only(items: Iterable) -> Decimal:
    return _q(sum((line_profit(i) for i in items), ZERO))


def order_profit_net_of_shipping(items: Iterable, shipping_cost) -> Decimal:
    return _q(order_profit_items_only(items) - shipping_cost)


@dataclass(frozen=True)
class LineFigures:
    line_total: Decimal
    profit: Decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    total: Decimal
    profit: Decimal
    lines: tuple[LineFigures, ...]

    def to_dict(self) -> dict:
        return {
            "subtotal": f"{self.subtotal:.2f}",
            "total": f"{self.total:.2f}",
            "profit": f"{self.profit:.2f}",
        }


def _check_range(name: str, value: Decimal) -> Decimal:
    if abs(value) > MAX_AMOUNT:
        raise ValidationError(f"{name} is out of range")
    return value


def compute_totals(draft, *, profit_policy: str) -> OrderTotals:
    """
    Derive line figures, subtotal, total and profit for an OrderDraft.

    Raises ValueError for an unknown profit_policy, and ValidationError when
    any derived figure does not fit a stored money column.
    """
    if profit_policy not in PROFIT_POLICIES:
        raise ValueError(f"Unknown profit policy: {profit_policy!r}")

    items = list(draft.items)
    lines = tuple(LineFigures(line_total(i), line_profit(i)) for i in items)
    for index, line in enumerate(lines):
        _check_range(f"items[{index}].lineTotal", line.line_total)
        _check_range(f"items[{index}].profit", line.profit)

    if profit_policy == PROFIT_NET_OF_SHIPPING:
        profit = order_profit_net_of_shipping(items, draft.shipping_cost)
    else:
        profit = order_profit_items_only(items)

    total = order_total(
        items,
        shipping_cost=draft.shipping_cost,
        discount=draft.discount,
        deposit=draft.deposit,
    )
    return OrderTotals(
        subtotal=_check_range("subtotal", order_subtotal(items)),
        total=_check_range("total", total),
        profit=_check_range("profit", profit),
        lines=lines,
    )


# =============================================================================
# Payments and ledger
# =============================================================================

def amount_received(payments: Iterable) -> Decimal:
    """Sum of customer payments whose status is Paid or Partial."""
    return _q(sum(
        (p.amount for p in payments if p.payment_status in COUNTED_CUSTOMER_STATUSES),
        ZERO,
    ))


def remaining_balance(total, payments: Iterable) -> Decimal:
    """total - amount_received(payments)"""
    return _q(Decimal(total) - amount_received(payments))


def payment_state(total, paid) -> str:
    if paid <= ZERO:
        return "unpaid"
    if paid >= total:
        return "paid"
    return "partial"


def fold_balance(transactions: Iterable) -> Decimal:
    """Tenant cash balance: sum(income) - sum(expense)."""
    balance = ZERO
    for tx in transactions:
        if tx.transaction_type == "income":
            balance += tx.amount
        elif tx.transaction_type == "expense":
            balance -= tx.amount
    return _q(balance)


def profitability(customer_payments: Iterable, workshop_payments: Iterable) -> dict:
    """
    Per-order cash view.

    net_profit_loss compares money received from the customer with money
    already paid to the workshop. financial_status compares customer money with the full
    workshop cost, Due included, once both sides are known.
    """
    workshop_payments = list(workshop_payments)
    customer_paid = amount_received(customer_payments)
    workshop_cost = _q(sum((w.cost_amount for w in workshop_payments), ZERO))
    paid_workshop_cost = _q(sum(
        (w.cost_amount for w in workshop_payments if w.payment_status == "Paid"),
        ZERO,
    ))
    net = _q(customer_paid - paid_workshop_cost)

    if net > ZERO:
        cash_flow_status = "Positive"
    elif net < ZERO:
        cash_flow_status = "Negative"
    else:
        cash_flow_status = "Balanced"

    if customer_paid > ZERO and workshop_cost > ZERO:
        financial_status = "Profitable" if customer_paid - workshop_cost > ZERO else "Loss"
    else:
        financial_status = "Incomplete"

    return {
        "total_customer_paid": customer_paid,
        "total_workshop_cost": workshop_cost,
        "paid_workshop_cost": paid_workshop_cost,
        "net_profit_loss": net,
        "cash_flow_status": cash_flow_status,
        "financial_status": financial_status,
    }
