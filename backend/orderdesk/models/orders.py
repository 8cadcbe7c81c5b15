from __future__ import annotations

from sqlalchemy.orm import declared_attr

from ..extensions import db
from orderdesk.time_utils import to_utc_z


MONEY = db.Numeric(12, 2)


def _money(value) -> str | None:
    return None if value is None else f"{value:.2f}"


class OrderHeaderMixin:
    """
    Columns shared by the primary order and its back-office mirror.

    The mirror is a read-model: every column here is replayed to it after
    the primary write commits to the session.
    """
    MIRRORED_FIELDS = (
        "serial", "client_name", "phone", "email", "payment_method",
        "delivery_method", "address", "governorate", "shipping_cost",
        "discount", "deposit", "total", "profit", "status", "notes", "source",
    )

    id = db.Column(db.Integer, primary_key=True)

    @declared_attr
    def tenant_id(cls):
        return db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    # Human-readable serial (INV-YYMM-0001)
    serial = db.Column(db.String(32), nullable=False)

    client_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=True)

    payment_method = db.Column(db.String(64), nullable=False, default="")
    delivery_method = db.Column(db.String(64), nullable=False, default="")
    address = db.Column(db.String(512), nullable=False, default="")
    governorate = db.Column(db.String(128), nullable=False, default="")

    shipping_cost = db.Column(MONEY, nullable=False, default=0)
    discount = db.Column(MONEY, nullable=False, default=0)
    deposit = db.Column(MONEY, nullable=False, default=0)
    total = db.Column(MONEY, nullable=False, default=0)
    profit = db.Column(MONEY, nullable=False, default=0)

    status = db.Column(db.String(32), nullable=False, default="pending", index=True)
    notes = db.Column(db.Text, nullable=True)

    # "webhook" or "ui"
    source = db.Column(db.String(16), nullable=False, default="ui")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def header_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "serial": self.serial,
            "client_name": self.client_name,
            "phone": self.phone,
            "email": self.email,
            "payment_method": self.payment_method,
            "delivery_method": self.delivery_method,
            "address": self.address,
            "governorate": self.governorate,
            "shipping_cost": _money(self.shipping_cost),
            "discount": _money(self.discount),
            "deposit": _money(self.deposit),
            "total": _money(self.total),
            "profit": _money(self.profit),
            "status": self.status,
            "notes": self.notes,
            "source": self.source,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItemMixin:
    MIRRORED_FIELDS = (
        "product_type", "size", "quantity", "cost", "price",
        "item_discount", "line_total", "profit",
    )

    id = db.Column(db.Integer, primary_key=True)
    product_type = db.Column(db.String(128), nullable=False)
    size = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    cost = db.Column(MONEY, nullable=False, default=0)
    price = db.Column(MONEY, nullable=False, default=0)
    item_discount = db.Column(MONEY, nullable=False, default=0)
    # Derived at write time from the calculator
    line_total = db.Column(MONEY, nullable=False, default=0)
    profit = db.Column(MONEY, nullable=False, default=0)

    def item_dict(self) -> dict:
        return {
            "id": self.id,
            "product_type": self.product_type,
            "size": self.size,
            "quantity": self.quantity,
            "cost": _money(self.cost),
            "price": _money(self.price),
            "item_discount": _money(self.item_discount),
            "line_total": _money(self.line_total),
            "profit": _money(self.profit),
        }


class Order(OrderHeaderMixin, db.Model):
    """
    Primary order header: the source of truth for a tenant's order.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "serial", name="uq_orders_tenant_serial"),
        db.Index("ix_orders_tenant_created", "tenant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = True) -> dict:
        data = self.header_dict()
        data["version_id"] = self.version_id
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(OrderItemMixin, db.Model):
    """Line item on a primary order."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    def to_dict(self) -> dict:
        data = self.item_dict()
        data["order_id"] = self.order_id
        return data


class AdminOrder(OrderHeaderMixin, db.Model):
    """
    Back-office mirror of an Order, matched by (tenant_id, serial).

    Written best-effort after the primary; drift is recorded as an
    OrderSyncEvent and repaired by `flask orders reconcile-mirror`.
    """
    __tablename__ = "admin_orders"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "serial", name="uq_admin_orders_tenant_serial"),
        {"sqlite_autoincrement": True},
    )

    items = db.relationship(
        "AdminOrderItem",
        backref="admin_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="AdminOrderItem.id",
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = self.header_dict()
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class AdminOrderItem(OrderItemMixin, db.Model):
    __tablename__ = "admin_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    admin_order_id = db.Column(db.Integer, db.ForeignKey("admin_orders.id"), nullable=False, index=True)

    def to_dict(self) -> dict:
        data = self.item_dict()
        data["admin_order_id"] = self.admin_order_id
        return data


class OrderSyncEvent(db.Model):
    """
    Append-only record of a failed mirror write.

    IMMUTABLE except for the resolved/resolved_at pair, which reconciliation sets.
    """
    __tablename__ = "order_sync_events"
    __table_args__ = (
        db.Index("ix_order_sync_events_tenant_resolved", "tenant_id", "resolved"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    serial = db.Column(db.String(32), nullable=False, index=True)

    # save, update, status, delete
    operation = db.Column(db.String(16), nullable=False)
    # header, items, status, delete
    stage = db.Column(db.String(16), nullable=False)
    error = db.Column(db.Text, nullable=True)

    resolved = db.Column(db.Boolean, nullable=False, default=False)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "serial": self.serial,
            "operation": self.operation,
            "stage": self.stage,
            "error": self.error,
            "resolved": self.resolved,
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
            "occurred_at": to_utc_z(self.occurred_at),
        }
