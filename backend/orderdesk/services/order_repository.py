# Overview: Order persistence with a best-effort back-office mirror.

"""
Order Repository

Single entry point for every order mutation. Each call writes the primary
tables (orders, order_items) and then replays the change to the mirror
(admin_orders, admin_order_items) inside a SAVEPOINT.

Failure semantics:
- Primary failure: the whole unit of work is rolled back and a
  PersistenceError is raised. No order or item row survives.
- Mirror failure: only the savepoint is rolled back. The failure is logged at
  WARNING and recorded as an OrderSyncEvent committed with the primary, so
  `flask orders reconcile-mirror` can repair it later.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError
from ..models import (
    Order,
    OrderItem,
    AdminOrder,
    AdminOrderItem,
    OrderSyncEvent,
    Transaction,
    CustomerPayment,
    WorkshopPayment,
)
from ..models.orders import OrderHeaderMixin, OrderItemMixin
from . import serial_service
from .concurrency import persist, lock_for_update
from orderdesk.time_utils import utcnow, DateRangeFilter


MAX_ERROR_TEXT = 2000


class OrderRepository:
    """Tenant-scoped order store. Never reads or writes another tenant's rows."""

    def __init__(self, tenant_id: int):
        if not tenant_id:
            raise ValueError("tenant_id is required")
        self.tenant_id = tenant_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_serial(self, serial: str) -> Order | None:
        return (
            db.session.query(Order)
            .filter_by(tenant_id=self.tenant_id, serial=serial)
            .first()
        )

    def get_by_serial(self, serial: str, *, for_update: bool = False) -> Order:
        query = db.session.query(Order).filter_by(tenant_id=self.tenant_id, serial=serial)
        if for_update:
            query = lock_for_update(query)
        order = query.first()
        if not order:
            raise NotFoundError(f"Order {serial} not found")
        return order

    def list(self, date_filter: DateRangeFilter | None = None, status: str | None = None,
             limit: int | None = None) -> list[Order]:
        query = db.session.query(Order).filter(Order.tenant_id == self.tenant_id)
        if status:
            query = query.filter(Order.status == status)
        if date_filter is not None:
            query = date_filter.apply(query, Order.created_at)
        query = query.order_by(Order.created_at.desc(), Order.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def unresolved_sync_events(self) -> list[OrderSyncEvent]:
        return (
            db.session.query(OrderSyncEvent)
            .filter_by(tenant_id=self.tenant_id, resolved=False)
            .order_by(OrderSyncEvent.occurred_at.asc(), OrderSyncEvent.id.asc())
            .all()
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save(self, draft, totals, *, source: str) -> Order:
        """Insert a new pending order with a freshly allocated serial."""
        def _op() -> Order:
            serial = serial_service.next_serial(self.tenant_id)
            now = utcnow()
            order = Order(
                tenant_id=self.tenant_id,
                serial=serial,
                status="pending",
                source=source,
                created_at=now,
                updated_at=now,
            )
            _apply_draft(order, draft, totals)
            _build_items(order, draft, totals)
            db.session.add(order)
            db.session.flush()

            self._replay("save", order)
            db.session.commit()
            return order

        order = persist(_op, action="save order")
        current_app.logger.info(
            "Order %s saved for tenant %s (source=%s, total=%s)",
            order.serial, self.tenant_id, source, order.total,
        )
        return order

    def update(self, serial: str, draft, totals) -> Order:
        """Replace header fields and items; serial, status and source are kept."""
        def _op() -> Order:
            order = self.get_by_serial(serial, for_update=True)
            _apply_draft(order, draft, totals)
            order.updated_at = utcnow()
            order.items.clear()
            db.session.flush()
            _build_items(order, draft, totals)
            db.session.flush()

            self._replay("update", order)
            db.session.commit()
            return order

        return persist(_op, action="update order")

    def update_status(self, serial: str, status: str) -> Order:
        def _op() -> Order:
            order = self.get_by_serial(serial, for_update=True)
            order.status = status
            order.updated_at = utcnow()
            db.session.flush()

            self._mirror_step("status", "status", order.serial, lambda: self._write_mirror_header(order))
            db.session.commit()
            return order

        order = persist(_op, action="update order status")
        current_app.logger.info("Order %s status -> %s (tenant %s)", serial, status, self.tenant_id)
        return order

    def delete(self, serial: str) -> dict:
        """
        Delete an order with its items, payments and every ledger transaction
        referencing its serial. Returns counts of removed dependent rows.
        """
        def _op() -> dict:
            order = self.get_by_serial(serial, for_update=True)

            removed_transactions = (
                db.session.query(Transaction)
                .filter_by(tenant_id=self.tenant_id, order_serial=serial)
                .delete()
            )
            removed_customer = _delete_rows(
                db.session.query(CustomerPayment).filter_by(tenant_id=self.tenant_id, order_id=order.id)
            )
            removed_workshop = _delete_rows(
                db.session.query(WorkshopPayment).filter_by(tenant_id=self.tenant_id, order_id=order.id)
            )
            removed_items = len(order.items)
            db.session.delete(order)
            db.session.flush()

            self._mirror_step("delete", "delete", serial, lambda: self._delete_mirror(serial))
            db.session.commit()
            return {
                "serial": serial,
                "items": removed_items,
                "transactions": removed_transactions,
                "customer_payments": removed_customer,
                "workshop_payments": removed_workshop,
            }

        result = persist(_op, action="delete order")
        current_app.logger.info("Order %s deleted for tenant %s: %s", serial, self.tenant_id, result)
        return result

    # ------------------------------------------------------------------
    # Mirror
    # ------------------------------------------------------------------

    def _replay(self, operation: str, order: Order) -> None:
        admin = self._mirror_step(operation, "header", order.serial, lambda: self._write_mirror_header(order))
        if admin is None:
            return
        self._mirror_step(operation, "items", order.serial, lambda: self._write_mirror_items(admin, order))

    def _mirror_step(self, operation: str, stage: str, serial: str, func):
        """
        Run one mirror write in a savepoint. Returns func's result (or True),
        or None when the write failed and was recorded.
        """
        try:
            with db.session.begin_nested():
                result = func()
                db.session.flush()
        except Exception as exc:
            self._record_mirror_failure(operation, stage, serial, exc)
            return None
        return True if result is None else result

    def _record_mirror_failure(self, operation: str, stage: str, serial: str, exc: Exception) -> None:
        current_app.logger.warning(
            "Mirror write failed: tenant=%s serial=%s operation=%s stage=%s",
            self.tenant_id, serial, operation, stage, exc_info=exc,
        )
        db.session.add(OrderSyncEvent(
            tenant_id=self.tenant_id,
            serial=serial,
            operation=operation,
            stage=stage,
            error=f"{exc.__class__.__name__}: {exc}"[:MAX_ERROR_TEXT],
            resolved=False,
            occurred_at=utcnow(),
        ))

    def _find_mirror(self, serial: str) -> AdminOrder | None:
        return (
            db.session.query(AdminOrder)
            .filter_by(tenant_id=self.tenant_id, serial=serial)
            .first()
        )

    def _write_mirror_header(self, order: Order) -> AdminOrder:
        admin = self._find_mirror(order.serial)
        if admin is None:
            admin = AdminOrder(tenant_id=self.tenant_id)
            db.session.add(admin)
        for name in OrderHeaderMixin.MIRRORED_FIELDS:
            setattr(admin, name, getattr(order, name))
        admin.created_at = order.created_at
        admin.updated_at = order.updated_at
        return admin

    def _write_mirror_items(self, admin: AdminOrder, order: Order) -> None:
        admin.items.clear()
        db.session.flush()
        for item in order.items:
            admin.items.append(AdminOrderItem(
                **{name: getattr(item, name) for name in OrderItemMixin.MIRRORED_FIELDS}
            ))

    def _delete_mirror(self, serial: str) -> None:
        admin = self._find_mirror(serial)
        if admin is not None:
            db.session.delete(admin)


def _delete_rows(query) -> int:
    # ORM deletes so loaded backref collections on Order stay consistent
    rows = query.all()
    for row in rows:
        db.session.delete(row)
    return len(rows)


def _apply_draft(order: Order, draft, totals) -> None:
    order.client_name = draft.client_name
    order.phone = draft.phone
    order.email = draft.email
    order.payment_method = draft.payment_method
    order.delivery_method = draft.delivery_method
    order.address = draft.address
    order.governorate = draft.governorate
    order.shipping_cost = draft.shipping_cost
    order.discount = draft.discount
    order.deposit = draft.deposit
    order.notes = draft.notes
    order.total = totals.total
    order.profit = totals.profit


def _build_items(order: Order, draft, totals) -> None:
    for item, figures in zip(draft.items, totals.lines):
        order.items.append(OrderItem(
            product_type=item.product_type,
            size=item.size,
            quantity=item.quantity,
            cost=item.cost,
            price=item.price,
            item_discount=item.item_discount,
            line_total=figures.line_total,
            profit=figures.profit,
        ))


# =============================================================================
# Out-of-band reconciliation
# =============================================================================

def _header_snapshot(row) -> tuple:
    return tuple(getattr(row, name) for name in OrderHeaderMixin.MIRRORED_FIELDS)


def _items_snapshot(items) -> list[tuple]:
    return [tuple(getattr(i, name) for name in OrderItemMixin.MIRRORED_FIELDS) for i in items]


def mirror_matches(order: Order, admin: AdminOrder | None) -> bool:
    if admin is None:
        return False
    return (
        _header_snapshot(order) == _header_snapshot(admin)
        and _items_snapshot(order.items) == _items_snapshot(admin.items)
    )


def reconcile_mirror(tenant_id: int | None = None) -> dict:
    """
    Make admin_orders match orders exactly and resolve open sync events.

    Unlike request-time mirroring, failures here propagate: reconciliation
    either commits a consistent mirror or nothing.
    """
    stats = {"created": 0, "repaired": 0, "removed": 0, "unchanged": 0, "events_resolved": 0}

    orders_q = db.session.query(Order)
    admins_q = db.session.query(AdminOrder)
    events_q = db.session.query(OrderSyncEvent).filter_by(resolved=False)
    if tenant_id is not None:
        orders_q = orders_q.filter(Order.tenant_id == tenant_id)
        admins_q = admins_q.filter(AdminOrder.tenant_id == tenant_id)
        events_q = events_q.filter(OrderSyncEvent.tenant_id == tenant_id)

    admins = {(a.tenant_id, a.serial): a for a in admins_q.all()}
    primaries = set()

    for order in orders_q.order_by(Order.id.asc()).all():
        key = (order.tenant_id, order.serial)
        primaries.add(key)
        admin = admins.get(key)
        if mirror_matches(order, admin):
            stats["unchanged"] += 1
            continue

        repo = OrderRepository(order.tenant_id)
        stats["created" if admin is None else "repaired"] += 1
        admin = repo._write_mirror_header(order)
        db.session.flush()
        repo._write_mirror_items(admin, order)

    for key, admin in admins.items():
        if key not in primaries:
            db.session.delete(admin)
            stats["removed"] += 1

    now = utcnow()
    for event in events_q.all():
        event.resolved = True
        event.resolved_at = now
        stats["events_resolved"] += 1

    db.session.commit()
    current_app.logger.info("Mirror reconciliation finished: %s", stats)
    return stats
