# Overview: Inbound order webhook and per-tenant webhook configuration routes.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import OrderDeskError, error_body
from ..services import webhook_service
from ..services.webhook_service import CORS_HEADERS
from ..decorators import require_auth


webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/api")


def _with_cors(response, status: int):
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response, status


# =============================================================================
# PUBLIC WEBHOOK
# =============================================================================

@webhooks_bp.route(
    "/webhooks/orders",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
def order_webhook_route():
    """
    External order intake, authenticated by the webhook_key in the body.

    Body:
    {
        "webhook_key": "...",
        "clientName": "...", "phone": "...", "paymentMethod": "...",
        "deliveryMethod": "...", "address": "...", "governorate": "...",
        "shippingCost": 30, "deposit": 20,
        "items": [{"productType", "size", "quantity", "cost", "price", "itemDiscount"?}]
    }

    Returns:
        200: {"success": true, "order_serial", "message"}
        400: malformed JSON or missing/invalid fields
        401: unknown key
        403: webhook disabled
        405: non-POST method
        500: order could not be stored
    """
    if request.method == "OPTIONS":
        return _with_cors(current_app.response_class(status=200), 200)

    if request.method != "POST":
        return _with_cors(jsonify({
            "success": False,
            "message": "Method not allowed",
            "error": "Method not allowed",
        }), 405)

    outcome = webhook_service.handle_order_webhook(
        request.get_data(),
        remote_addr=request.remote_addr,
    )
    return _with_cors(jsonify(outcome.body()), outcome.status)


# =============================================================================
# TENANT CONFIGURATION
# =============================================================================

@webhooks_bp.get("/webhook-config")
@require_auth
def get_webhook_config_route():
    """Returns the tenant's webhook config, creating it on first access."""
    try:
        config = webhook_service.get_or_create_config(g.tenant_id)
        return jsonify({"webhook_config": config.to_dict()}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load webhook config")
        return jsonify({"error": "Internal server error"}), 500


@webhooks_bp.post("/webhook-config/rotate")
@require_auth
def rotate_webhook_key_route():
    try:
        config = webhook_service.rotate_key(g.tenant_id)
        return jsonify({"webhook_config": config.to_dict()}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to rotate webhook key")
        return jsonify({"error": "Internal server error"}), 500


@webhooks_bp.patch("/webhook-config")
@require_auth
def update_webhook_config_route():
    """Body: {"is_active": bool}"""
    try:
        data = request.get_json(silent=True) or {}
        config = webhook_service.set_active(g.tenant_id, data.get("is_active"))
        return jsonify({"webhook_config": config.to_dict()}), 200
    except OrderDeskError as e:
        return jsonify(error_body(e)), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update webhook config")
        return jsonify({"error": "Internal server error"}), 500


@webhooks_bp.get("/webhook-config/logs")
@require_auth
def webhook_logs_route():
    limit = request.args.get("limit", default=50, type=int)
    logs = webhook_service.recent_logs(g.tenant_id, limit=limit)
    return jsonify({"logs": [log.to_dict() for log in logs], "count": len(logs)}), 200
