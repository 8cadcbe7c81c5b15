# Overview: Tenant cash ledger (income/expense); balance is always a fold.

"""
Transactions Ledger

Append-only: there is no update or delete operation here. Rows leave the
ledger only when the order they reference is deleted (see OrderRepository).

Balance = sum(income) - sum(expense) over the tenant's rows, recomputed on
every read. Nothing caches it.
"""

from __future__ import annotations

import secrets
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..errors import InvalidAmountError, NotFoundError, ValidationError
from ..models import Order, Transaction
from .financials import fold_balance, ZERO
from .order_validation import to_money
from .concurrency import persist
from orderdesk.time_utils import utcnow, DateRangeFilter


TRANSACTION_TYPES = ("income", "expense")

# Synthetic reference prefixes for entries not tied to an order
REFERENCE_PREFIXES = {
    "manual": "MAN",
    "transfer": "TRF",
}


def synthetic_reference(kind: str) -> str:
    prefix = REFERENCE_PREFIXES.get(kind)
    if not prefix:
        raise ValidationError("kind must be one of: " + ", ".join(REFERENCE_PREFIXES))
    return f"{prefix}-{utcnow():%Y%m%d%H%M%S}-{secrets.token_hex(2).upper()}"


def append_transaction(
    *,
    tenant_id: int,
    transaction_type: str,
    amount: Decimal,
    order_serial: str,
    description: str | None = None,
    user_id: int | None = None,
) -> Transaction:
    """
    Add a ledger row to the current session without committing.

    Callers own the transaction so the entry commits atomically with the
    event that caused it.
    """
    tx = Transaction(
        tenant_id=tenant_id,
        transaction_type=transaction_type,
        amount=amount,
        description=description,
        order_serial=order_serial,
        created_by_user_id=user_id,
        created_at=utcnow(),
    )
    db.session.add(tx)
    db.session.flush()
    return tx


def record_transaction(
    tenant_id: int,
    *,
    transaction_type: str,
    amount,
    description: str | None = None,
    order_serial: str | None = None,
    kind: str = "manual",
    user_id: int | None = None,
) -> Transaction:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationError("transaction_type must be 'income' or 'expense'")
    amount = to_money(amount, "amount")
    if amount <= ZERO:
        raise InvalidAmountError("amount must be greater than zero")

    if order_serial:
        exists = (
            db.session.query(Order.id)
            .filter_by(tenant_id=tenant_id, serial=order_serial)
            .first()
        )
        if not exists:
            raise NotFoundError(f"Order {order_serial} not found")
        reference = order_serial
    else:
        reference = synthetic_reference(kind)

    def _op() -> Transaction:
        tx = append_transaction(
            tenant_id=tenant_id,
            transaction_type=transaction_type,
            amount=amount,
            order_serial=reference,
            description=(description or "").strip() or None,
            user_id=user_id,
        )
        db.session.commit()
        return tx

    tx = persist(_op, action="record transaction")
    current_app.logger.info(
        "Ledger %s %s recorded for tenant %s (ref=%s)",
        transaction_type, amount, tenant_id, reference,
    )
    return tx


def list_transactions(tenant_id: int, date_filter: DateRangeFilter | None = None) -> list[Transaction]:
    query = db.session.query(Transaction).filter(Transaction.tenant_id == tenant_id)
    if date_filter is not None:
        query = date_filter.apply(query, Transaction.created_at)
    return query.order_by(Transaction.created_at.asc(), Transaction.id.asc()).all()


def tenant_balance(tenant_id: int) -> Decimal:
    """Fold over every ledger row for the tenant."""
    return fold_balance(list_transactions(tenant_id))


def statement(tenant_id: int, date_filter: DateRangeFilter | None = None) -> dict:
    """
    Chronological account statement for a window.

    opening_balance folds everything before the window start; each line
    carries the running balance after it.
    """
    date_filter = date_filter or DateRangeFilter()

    opening = ZERO
    if date_filter.start is not None:
        before = (
            db.session.query(Transaction)
            .filter(
                Transaction.tenant_id == tenant_id,
                Transaction.created_at < date_filter.start,
            )
            .all()
        )
        opening = fold_balance(before)

    rows = list_transactions(tenant_id, date_filter)
    running = opening
    total_income = ZERO
    total_expense = ZERO
    lines = []
    for tx in rows:
        if tx.transaction_type == "income":
            running += tx.amount
            total_income += tx.amount
        else:
            running -= tx.amount
            total_expense += tx.amount
        line = tx.to_dict()
        line["running_balance"] = f"{running:.2f}"
        lines.append(line)

    return {
        "range": date_filter.to_dict(),
        "opening_balance": f"{opening:.2f}",
        "total_income": f"{total_income:.2f}",
        "total_expense": f"{total_expense:.2f}",
        "closing_balance": f"{running:.2f}",
        "lines": lines,
    }
