# Overview: Validate -> calculate -> persist, shared by every order ingestion path.

from __future__ import annotations

from flask import current_app

from .order_validation import validate_order_payload, validate_status
from .financials import compute_totals
from .order_repository import OrderRepository


SOURCE_WEBHOOK = "webhook"
SOURCE_UI = "ui"


def profit_policy() -> str:
    return current_app.config.get("ORDER_PROFIT_POLICY", "net_of_shipping")


def create_order(tenant_id: int, payload: dict, *, source: str):
    """
    Ingest one order payload for a tenant.

    Raises ValidationError/MalformedPayloadError before any write, or
    PersistenceError when the primary write fails.
    """
    draft = validate_order_payload(payload)
    totals = compute_totals(draft, profit_policy=profit_policy())
    return OrderRepository(tenant_id).save(draft, totals, source=source)


def edit_order(tenant_id: int, serial: str, payload: dict):
    repo = OrderRepository(tenant_id)
    # Existence first so an unknown serial is a 404, not a 400
    repo.get_by_serial(serial)
    draft = validate_order_payload(payload)
    totals = compute_totals(draft, profit_policy=profit_policy())
    return repo.update(serial, draft, totals)


def change_status(tenant_id: int, serial: str, status):
    status = validate_status(status)
    return OrderRepository(tenant_id).update_status(serial, status)


def delete_order(tenant_id: int, serial: str) -> dict:
    return OrderRepository(tenant_id).delete(serial)
