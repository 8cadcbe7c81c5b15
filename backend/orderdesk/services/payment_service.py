# Overview: Customer and workshop payment ledgers for orders.

"""
Order Payments

Customer payments are immutable rows; the remaining balance of an order is
always recomputed as total - sum(Paid + Partial payments). A payment above
the remaining balance is rejected before anything is written.

A counted customer payment (Paid/Partial) also appends an income row to the
tenant ledger referencing the order serial, in the same commit.

Workshop payments start Due or Paid. settle_workshop_payment (Due -> Paid) is
the only mutation either ledger allows.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import InvalidAmountError, NotFoundError, ValidationError
from ..models import CustomerPayment, WorkshopPayment
from .financials import (
    COUNTED_CUSTOMER_STATUSES,
    ZERO,
    amount_received,
    payment_state,
    profitability,
    remaining_balance,
)
from .order_repository import OrderRepository
from .order_validation import to_money
from .concurrency import persist
from .transaction_service import append_transaction
from orderdesk.time_utils import utcnow, parse_iso_datetime


CUSTOMER_STATUSES = ("Paid", "Partial", "Unpaid")
WORKSHOP_STATUS_PAID = "Paid"
WORKSHOP_STATUS_DUE = "Due"
WORKSHOP_STATUSES = (WORKSHOP_STATUS_PAID, WORKSHOP_STATUS_DUE)


def _parse_date(value, name: str):
    if value is None or value == "":
        return None
    try:
        return parse_iso_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _customer_payments(tenant_id: int, order_id: int) -> list[CustomerPayment]:
    return (
        db.session.query(CustomerPayment)
        .filter_by(tenant_id=tenant_id, order_id=order_id)
        .order_by(CustomerPayment.payment_date.asc(), CustomerPayment.id.asc())
        .all()
    )


def _workshop_payments(tenant_id: int, order_id: int) -> list[WorkshopPayment]:
    return (
        db.session.query(WorkshopPayment)
        .filter_by(tenant_id=tenant_id, order_id=order_id)
        .order_by(WorkshopPayment.id.asc())
        .all()
    )


def payment_summary(tenant_id: int, serial: str) -> dict:
    order = OrderRepository(tenant_id).get_by_serial(serial)
    payments = _customer_payments(tenant_id, order.id)
    paid = amount_received(payments)
    return {
        "order_serial": order.serial,
        "total": f"{order.total:.2f}",
        "paid": f"{paid:.2f}",
        "remaining": f"{remaining_balance(order.total, payments):.2f}",
        "payment_state": payment_state(order.total, paid),
    }


def record_customer_payment(
    tenant_id: int,
    serial: str,
    *,
    amount,
    status: str,
    payment_method: str | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
    payment_date=None,
    user_id: int | None = None,
) -> CustomerPayment:
    """
    Append a customer payment to an order.

    Raises InvalidAmountError for non-positive amounts or amounts above the
    remaining balance; no row is written in that case.
    """
    if status not in CUSTOMER_STATUSES:
        raise ValidationError("status must be one of: " + ", ".join(CUSTOMER_STATUSES))
    amount = to_money(amount, "amount")
    if amount <= ZERO:
        raise InvalidAmountError("amount must be greater than zero")
    paid_at = _parse_date(payment_date, "payment_date") or utcnow()

    repo = OrderRepository(tenant_id)

    def _op() -> CustomerPayment:
        order = repo.get_by_serial(serial, for_update=True)
        remaining = remaining_balance(order.total, _customer_payments(tenant_id, order.id))
        if amount > remaining:
            raise InvalidAmountError(
                f"Payment {amount:.2f} exceeds remaining balance {remaining:.2f}",
                details={"remaining": f"{remaining:.2f}"},
            )

        payment = CustomerPayment(
            tenant_id=tenant_id,
            order_id=order.id,
            customer_name=order.client_name,
            payment_method=(payment_method or order.payment_method or "").strip(),
            amount=amount,
            payment_status=status,
            payment_date=paid_at,
            reference_number=reference_number,
            notes=notes,
            created_by_user_id=user_id,
            created_at=utcnow(),
        )
        db.session.add(payment)

        if status in COUNTED_CUSTOMER_STATUSES:
            append_transaction(
                tenant_id=tenant_id,
                transaction_type="income",
                amount=amount,
                order_serial=order.serial,
                description=f"Customer payment for {order.serial}",
                user_id=user_id,
            )

        db.session.commit()
        return payment

    try:
        payment = persist(_op, action="record customer payment")
    except InvalidAmountError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Customer payment %s (%s) recorded on %s for tenant %s",
        amount, status, serial, tenant_id,
    )
    return payment


def record_workshop_payment(
    tenant_id: int,
    serial: str,
    *,
    workshop_name: str,
    product_name: str,
    cost_amount,
    status: str = WORKSHOP_STATUS_DUE,
    size_or_variant: str | None = None,
    expected_payment_date=None,
    actual_payment_date=None,
    notes: str | None = None,
) -> WorkshopPayment:
    if not (workshop_name or "").strip():
        raise ValidationError("workshop_name is required")
    if not (product_name or "").strip():
        raise ValidationError("product_name is required")
    if status not in WORKSHOP_STATUSES:
        raise ValidationError("status must be one of: " + ", ".join(WORKSHOP_STATUSES))
    cost = to_money(cost_amount, "cost_amount")
    if cost <= ZERO:
        raise InvalidAmountError("cost_amount must be greater than zero")

    expected = _parse_date(expected_payment_date, "expected_payment_date")
    actual = _parse_date(actual_payment_date, "actual_payment_date")
    if status == WORKSHOP_STATUS_PAID and actual is None:
        actual = utcnow()

    order = OrderRepository(tenant_id).get_by_serial(serial)

    def _op() -> WorkshopPayment:
        row = WorkshopPayment(
            tenant_id=tenant_id,
            order_id=order.id,
            workshop_name=workshop_name.strip(),
            product_name=product_name.strip(),
            size_or_variant=size_or_variant,
            cost_amount=cost,
            payment_status=status,
            expected_payment_date=expected,
            actual_payment_date=actual,
            notes=notes,
            created_at=utcnow(),
        )
        db.session.add(row)
        db.session.commit()
        return row

    return persist(_op, action="record workshop payment")


def settle_workshop_payment(tenant_id: int, payment_id: int, *, paid_at=None) -> WorkshopPayment:
    """Due -> Paid. Settling an already Paid row is rejected."""
    paid_at = _parse_date(paid_at, "actual_payment_date") or utcnow()

    def _op() -> WorkshopPayment:
        row = (
            db.session.query(WorkshopPayment)
            .filter_by(id=payment_id, tenant_id=tenant_id)
            .first()
        )
        if not row:
            raise NotFoundError(f"Workshop payment {payment_id} not found")
        if row.payment_status != WORKSHOP_STATUS_DUE:
            raise ValidationError("Only Due workshop payments can be settled")
        row.payment_status = WORKSHOP_STATUS_PAID
        row.actual_payment_date = paid_at
        db.session.commit()
        return row

    row = persist(_op, action="settle workshop payment")
    current_app.logger.info("Workshop payment %s settled for tenant %s", payment_id, tenant_id)
    return row


def order_payments(tenant_id: int, serial: str) -> dict:
    order = OrderRepository(tenant_id).get_by_serial(serial)
    return {
        "customer_payments": [p.to_dict() for p in _customer_payments(tenant_id, order.id)],
        "workshop_payments": [w.to_dict() for w in _workshop_payments(tenant_id, order.id)],
        "summary": payment_summary(tenant_id, serial),
    }


def order_profitability(tenant_id: int, date_filter=None) -> list[dict]:
    """Profitability row for each order in the window, newest first."""
    rows = []
    for order in OrderRepository(tenant_id).list(date_filter=date_filter):
        figures = profitability(
            _customer_payments(tenant_id, order.id),
            _workshop_payments(tenant_id, order.id),
        )
        row = {
            "order_serial": order.serial,
            "client_name": order.client_name,
            "status": order.status,
            "order_total": f"{order.total:.2f}",
        }
        for key, value in figures.items():
            row[key] = f"{value:.2f}" if key not in ("cash_flow_status", "financial_status") else value
        rows.append(row)
    return rows
