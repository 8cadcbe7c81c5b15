# Overview: Flask API routes for the tenant cash ledger.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import OrderDeskError, error_body
from ..services import transaction_service
from ..decorators import require_auth
from orderdesk.time_utils import DateRangeFilter


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
@require_auth
def add_transaction_route():
    """
    Body: {"transaction_type": "income"|"expense", "amount", "description",
           "order_serial"?, "kind"?: "manual"|"transfer"}
    """
    try:
        data = request.get_json(silent=True) or {}
        tx = transaction_service.record_transaction(
            g.tenant_id,
            transaction_type=data.get("transaction_type"),
            amount=data.get("amount"),
            description=data.get("description"),
            order_serial=data.get("order_serial"),
            kind=data.get("kind") or "manual",
            user_id=g.current_user.id,
        )
        return jsonify({
            "transaction": tx.to_dict(),
            "balance": f"{transaction_service.tenant_balance(g.tenant_id):.2f}",
        }), 201
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record transaction")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.get("")
@require_auth
def list_transactions_route():
    try:
        date_filter = DateRangeFilter.from_args(request.args.get("start"), request.args.get("end"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    rows = transaction_service.list_transactions(g.tenant_id, date_filter)
    return jsonify({
        "transactions": [tx.to_dict() for tx in rows],
        "count": len(rows),
        "balance": f"{transaction_service.tenant_balance(g.tenant_id):.2f}",
    }), 200


@transactions_bp.get("/statement")
@require_auth
def statement_route():
    try:
        date_filter = DateRangeFilter.from_args(request.args.get("start"), request.args.get("end"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(transaction_service.statement(g.tenant_id, date_filter)), 200
