from __future__ import annotations

from ..extensions import db
from orderdesk.time_utils import to_utc_z
from .orders import MONEY, _money


class Transaction(db.Model):
    """
    Tenant cash ledger entry.

    WHY: Balance is never stored; it is the fold of income minus expense
    over all rows for the tenant. Rows are never updated; they are removed
    only when the order they reference is deleted.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_tenant_created", "tenant_id", "created_at"),
        db.Index("ix_transactions_tenant_serial", "tenant_id", "order_serial"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    # income, expense
    transaction_type = db.Column(db.String(16), nullable=False, index=True)
    amount = db.Column(MONEY, nullable=False)
    description = db.Column(db.String(512), nullable=True)

    # Order serial, or a synthetic MAN-/TRF- reference for manual entries
    order_serial = db.Column(db.String(32), nullable=False)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "transaction_type": self.transaction_type,
            "amount": _money(self.amount),
            "description": self.description,
            "order_serial": self.order_serial,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class CustomerPayment(db.Model):
    """
    Partial-payment ledger row: money received from the customer for an order.

    IMMUTABLE: one row per payment event, never edited.
    """
    __tablename__ = "customer_payments"
    __table_args__ = (
        db.Index("ix_customer_payments_tenant_order", "tenant_id", "order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    customer_name = db.Column(db.String(255), nullable=False)
    payment_method = db.Column(db.String(64), nullable=False, default="")
    amount = db.Column(MONEY, nullable=False)
    # Paid, Partial, Unpaid
    payment_status = db.Column(db.String(16), nullable=False, index=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    reference_number = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("customer_payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "order_id": self.order_id,
            "customer_name": self.customer_name,
            "payment_method": self.payment_method,
            "amount": _money(self.amount),
            "payment_status": self.payment_status,
            "payment_date": to_utc_z(self.payment_date),
            "reference_number": self.reference_number,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class WorkshopPayment(db.Model):
    """
    Production cost owed to (or paid to) the workshop that fulfils an order.

    status is Due until settled, then Paid.
    """
    __tablename__ = "workshop_payments"
    __table_args__ = (
        db.Index("ix_workshop_payments_tenant_order", "tenant_id", "order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    workshop_name = db.Column(db.String(255), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    size_or_variant = db.Column(db.String(128), nullable=True)
    cost_amount = db.Column(MONEY, nullable=False)
    # Paid, Due
    payment_status = db.Column(db.String(16), nullable=False, index=True)
    expected_payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    actual_payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("workshop_payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "order_id": self.order_id,
            "workshop_name": self.workshop_name,
            "product_name": self.product_name,
            "size_or_variant": self.size_or_variant,
            "cost_amount": _money(self.cost_amount),
            "payment_status": self.payment_status,
            "expected_payment_date": to_utc_z(self.expected_payment_date) if self.expected_payment_date else None,
            "actual_payment_date": to_utc_z(self.actual_payment_date) if self.actual_payment_date else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
