# Overview: Order serial allocation (INV-YYMM-SEQ), per tenant per month.

"""
Serial Number Generator

The authoritative path is an atomic counter row per (tenant, period) in
serial_sequences, incremented with a single UPDATE inside the caller's
transaction. Concurrent writers serialize on that row, so serials are
gap-free and never reused for successful orders.

The scan fallback reads the highest serial already stored for the month and
adds one. It is best-effort only: two concurrent requests can read the same
maximum and the second insert then fails on uq_orders_tenant_serial. It runs
only when the counter path raises a store error and SERIAL_SCAN_FALLBACK is on.
The fallback never touches the counter row; the next counter increment that
lands on an already stored serial advances past the stored maximum instead.

Call next_serial() as the first statement of the order's unit of work: the
fallback rolls back the session before scanning.
"""

from __future__ import annotations

import re
from datetime import datetime

from flask import current_app
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Order, SerialSequence
from orderdesk.time_utils import utcnow, month_period


SEQ_PAD = 4

_SERIAL_RE = re.compile(r"^(?P<prefix>[A-Z0-9]+)-(?P<period>\d{4})-(?P<seq>\d+)$")


def format_serial(prefix: str, period: str, seq: int) -> str:
    return f"{prefix}-{period}-{seq:0{SEQ_PAD}d}"


def parse_serial(serial: str) -> tuple[str, str, int] | None:
    """Split a serial into (prefix, period, seq); None if it is not serial-shaped."""
    match = _SERIAL_RE.match(serial or "")
    if not match:
        return None
    return match.group("prefix"), match.group("period"), int(match.group("seq"))


def scan_max_sequence(tenant_id: int, period: str, prefix: str) -> int:
    """Highest sequence stored on primary orders for tenant+period (0 if none)."""
    like = f"{prefix}-{period}-%"
    serials = (
        db.session.query(Order.serial)
        .filter(Order.tenant_id == tenant_id, Order.serial.like(like))
        .all()
    )
    highest = 0
    for (serial,) in serials:
        parsed = parse_serial(serial)
        if parsed and parsed[1] == period and parsed[2] > highest:
            highest = parsed[2]
    return highest


def _current_value(tenant_id: int, period: str) -> int:
    return (
        db.session.query(SerialSequence.last_value)
        .filter_by(tenant_id=tenant_id, period=period)
        .scalar()
    )


def _serial_taken(tenant_id: int, prefix: str, period: str, seq: int) -> bool:
    serial = format_serial(prefix, period, seq)
    return db.session.query(
        db.session.query(Order.id).filter_by(tenant_id=tenant_id, serial=serial).exists()
    ).scalar()


def _increment(tenant_id: int, period: str, *, floor: int = 0):
    """UPDATE last_value = max(last_value, floor) + 1 for one counter row."""
    current = SerialSequence.last_value
    if floor:
        current = case((SerialSequence.last_value < floor, floor), else_=SerialSequence.last_value)
    return (
        update(SerialSequence)
        .where(
            SerialSequence.tenant_id == tenant_id,
            SerialSequence.period == period,
        )
        .values(last_value=current + 1, updated_at=utcnow())
    )


def _bump(tenant_id: int, period: str, prefix: str) -> int | None:
    """
    Increment an existing counter row; None when the row does not exist.

    Serials handed out by the scan fallback sit above the counter. When the
    incremented value is already stored, the counter jumps past the stored
    maximum with a second row update.
    """
    result = db.session.execute(_increment(tenant_id, period))
    if not result.rowcount:
        return None
    value = _current_value(tenant_id, period)
    if not _serial_taken(tenant_id, prefix, period, value):
        return value

    floor = scan_max_sequence(tenant_id, period, prefix)
    current_app.logger.warning(
        "Serial counter for tenant %s period %s behind stored serials (%s <= %s); advancing",
        tenant_id, period, value, floor,
    )
    db.session.execute(_increment(tenant_id, period, floor=floor))
    return _current_value(tenant_id, period)


def allocate_sequence(tenant_id: int, period: str, prefix: str) -> int:
    """
    Atomically increment the (tenant, period) counter and return the new value.

    A missing counter row is created seeded from the stored maximum, so a
    counter introduced after fallback-allocated serials continues above them.
    """
    value = _bump(tenant_id, period, prefix)
    if value is not None:
        return value

    value = scan_max_sequence(tenant_id, period, prefix) + 1
    try:
        with db.session.begin_nested():
            db.session.add(SerialSequence(tenant_id=tenant_id, period=period, last_value=value))
        return value
    except IntegrityError:
        # Another writer created the row first; take the next value from it
        value = _bump(tenant_id, period, prefix)
        if value is None:
            raise
        return value


def next_serial(tenant_id: int, *, now: datetime | None = None) -> str:
    """
    Produce the next INV-YYMM-SEQ serial for a tenant.

    Raises the underlying SQLAlchemyError when the counter fails and the
    scan fallback is disabled.
    """
    if not tenant_id:
        raise ValueError("tenant_id is required")

    period = month_period(now or utcnow())
    prefix = current_app.config.get("SERIAL_PREFIX", "INV")

    try:
        seq = allocate_sequence(tenant_id, period, prefix)
    except SQLAlchemyError:
        if not current_app.config.get("SERIAL_SCAN_FALLBACK", True):
            raise
        db.session.rollback()
        current_app.logger.warning(
            "Serial counter unavailable for tenant %s period %s; "
            "using non-authoritative scan fallback",
            tenant_id, period, exc_info=True,
        )
        seq = scan_max_sequence(tenant_id, period, prefix) + 1

    return format_serial(prefix, period, seq)
