# Overview: Flask API routes for dashboard stats and reports; read-only views over committed data.

from flask import Blueprint, request, jsonify, g

from ..services import stats_service
from ..services.stats_service import ReportError
from ..decorators import require_tenant

reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/stats")
@require_tenant
def stats_route():
    """
    Dashboard rollup.

    Query params:
    - recent_limit: int (optional, default RECENT_SALES_LIMIT)
    """
    recent_limit = request.args.get("recent_limit", type=int)
    try:
        return jsonify(stats_service.dashboard_stats(g.tenant_id, recent_limit=recent_limit))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400


@reports_bp.get("/reports/fiscal")
@require_tenant
def fiscal_route():
    return jsonify(stats_service.fiscal_summary(g.tenant_id))


@reports_bp.get("/reports/low-stock")
@require_tenant
def low_stock_route():
    products = stats_service.low_stock_products(g.tenant_id)
    return jsonify([p.to_dict() for p in products])
