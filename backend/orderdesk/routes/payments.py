# Overview: Flask API routes for customer and workshop payments.

# backend/orderdesk/routes/payments.py
"""
Order Payment API

- Customer payments are append-only and capped at the remaining balance
- Workshop payments record production cost; Due rows can be settled once
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import OrderDeskError, error_body
from ..services import payment_service
from ..decorators import require_auth


payments_bp = Blueprint("payments", __name__, url_prefix="/api")


@payments_bp.post("/orders/<serial>/customer-payments")
@require_auth
def add_customer_payment_route(serial: str):
    """
    Request body:
    {
        "amount": 50.00,
        "status": "Paid" | "Partial" | "Unpaid",
        "payment_method": "cash",          (optional, defaults to the order's)
        "reference_number": "RCPT-991",    (optional)
        "notes": "...",                    (optional)
        "payment_date": "2026-10-01"       (optional, defaults to now)
    }

    Returns:
        201: payment plus updated summary
        400: invalid amount/status, or amount above remaining balance
        404: unknown order
    """
    try:
        data = request.get_json(silent=True) or {}
        payment = payment_service.record_customer_payment(
            g.tenant_id,
            serial,
            amount=data.get("amount"),
            status=data.get("status", "Paid"),
            payment_method=data.get("payment_method"),
            reference_number=data.get("reference_number"),
            notes=data.get("notes"),
            payment_date=data.get("payment_date"),
            user_id=g.current_user.id,
        )
        return jsonify({
            "payment": payment.to_dict(),
            "summary": payment_service.payment_summary(g.tenant_id, serial),
        }), 201
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add customer payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/orders/<serial>/payments")
@require_auth
def get_order_payments_route(serial: str):
    try:
        return jsonify(payment_service.order_payments(g.tenant_id, serial)), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code


@payments_bp.post("/orders/<serial>/workshop-payments")
@require_auth
def add_workshop_payment_route(serial: str):
    """
    Request body:
    {
        "workshop_name": "...", "product_name": "...", "size_or_variant": "...",
        "cost_amount": 120.00, "status": "Due" | "Paid",
        "expected_payment_date": "...", "actual_payment_date": "...", "notes": "..."
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        row = payment_service.record_workshop_payment(
            g.tenant_id,
            serial,
            workshop_name=data.get("workshop_name"),
            product_name=data.get("product_name"),
            cost_amount=data.get("cost_amount"),
            status=data.get("status", payment_service.WORKSHOP_STATUS_DUE),
            size_or_variant=data.get("size_or_variant"),
            expected_payment_date=data.get("expected_payment_date"),
            actual_payment_date=data.get("actual_payment_date"),
            notes=data.get("notes"),
        )
        return jsonify({"workshop_payment": row.to_dict()}), 201
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add workshop payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/workshop-payments/<int:payment_id>/settle")
@require_auth
def settle_workshop_payment_route(payment_id: int):
    try:
        data = request.get_json(silent=True) or {}
        row = payment_service.settle_workshop_payment(
            g.tenant_id,
            payment_id,
            paid_at=data.get("actual_payment_date"),
        )
        return jsonify({"workshop_payment": row.to_dict()}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to settle workshop payment %s", payment_id)
        return jsonify({"error": "Internal server error"}), 500
