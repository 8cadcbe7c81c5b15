# Overview: Flask API routes for read-only order reports.

from flask import Blueprint, request, jsonify, g

from ..services import reporting_service, payment_service
from ..decorators import require_auth
from orderdesk.time_utils import DateRangeFilter


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _date_filter():
    return DateRangeFilter.from_args(request.args.get("start"), request.args.get("end"))


@reports_bp.get("/summary")
@require_auth
def summary_route():
    try:
        date_filter = _date_filter()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(reporting_service.summary_report(g.tenant_id, date_filter)), 200


@reports_bp.get("/monthly")
@require_auth
def monthly_route():
    try:
        date_filter = _date_filter()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({
        "range": date_filter.to_dict(),
        "months": reporting_service.monthly_report(g.tenant_id, date_filter),
    }), 200


@reports_bp.get("/profitability")
@require_auth
def profitability_route():
    try:
        date_filter = _date_filter()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    rows = payment_service.order_profitability(g.tenant_id, date_filter)
    return jsonify({"range": date_filter.to_dict(), "orders": rows, "count": len(rows)}), 200
