# Overview: Flask API routes for back-office order operations.

# backend/orderdesk/routes/orders.py
"""
Order API (UI ingestion path)

Orders created here go through the same validate -> calculate -> persist
chain as webhook orders; only key authentication is replaced by the bearer
session. All writes are pessimistic: the response reflects committed state.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import OrderDeskError, MalformedPayloadError, error_body
from ..services import order_service
from ..services.order_repository import OrderRepository
from ..decorators import require_auth
from orderdesk.time_utils import DateRangeFilter


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MalformedPayloadError("Invalid JSON format")
    return data


@orders_bp.post("")
@require_auth
def create_order_route():
    """
    Body: camelCase order (clientName, phone, items[...], shippingCost,
    deposit, discount?, email?, notes?, ...). Returns 201 with the order.
    """
    try:
        order = order_service.create_order(g.tenant_id, _json_body(), source=order_service.SOURCE_UI)
        return jsonify({"order": order.to_dict()}), 201
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    """Query: start, end (ISO-8601, inclusive), status, limit."""
    try:
        date_filter = DateRangeFilter.from_args(request.args.get("start"), request.args.get("end"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    limit = request.args.get("limit", type=int)
    try:
        orders = OrderRepository(g.tenant_id).list(
            date_filter=date_filter,
            status=request.args.get("status"),
            limit=limit,
        )
        return jsonify({
            "orders": [o.to_dict(include_items=False) for o in orders],
            "count": len(orders),
            "range": date_filter.to_dict(),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/sync-events")
@require_auth
def sync_events_route():
    """Unresolved mirror-write failures for this tenant."""
    events = OrderRepository(g.tenant_id).unresolved_sync_events()
    return jsonify({"events": [e.to_dict() for e in events], "count": len(events)}), 200


@orders_bp.get("/<serial>")
@require_auth
def get_order_route(serial: str):
    try:
        order = OrderRepository(g.tenant_id).get_by_serial(serial)
        return jsonify({"order": order.to_dict()}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code


@orders_bp.put("/<serial>")
@require_auth
def update_order_route(serial: str):
    """Full edit: same body as create. Items are replaced, totals recomputed."""
    try:
        order = order_service.edit_order(g.tenant_id, serial, _json_body())
        return jsonify({"order": order.to_dict()}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order %s", serial)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.patch("/<serial>/status")
@require_auth
def update_status_route(serial: str):
    """Body: {"status": "<one of the order statuses>"}"""
    try:
        data = _json_body()
        order = order_service.change_status(g.tenant_id, serial, data.get("status"))
        return jsonify({"order": order.to_dict(include_items=False)}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update status of order %s", serial)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<serial>")
@require_auth
def delete_order_route(serial: str):
    """Deletes the order, its items, payments and ledger transactions."""
    try:
        removed = order_service.delete_order(g.tenant_id, serial)
        return jsonify({"deleted": removed}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete order %s", serial)
        return jsonify({"error": "Internal server error"}), 500
