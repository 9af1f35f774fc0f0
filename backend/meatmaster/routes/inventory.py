# Overview: Flask API routes for the inventory ledger; manual movements, history and reconciliation.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import ledger_service
from ..services.ledger_service import LedgerError
from ..services.catalog_service import CatalogError
from ..services.concurrency import StorageFailure
from ..services.tenant_service import UnknownActor
from ..validation import parse_inventory_adjustment, ValidationError
from ..decorators import require_tenant

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/adjust")
@require_tenant
def adjust_route():
    """
    Manual stock movement.

    Body: {"product_id": 1, "quantity_change": "-2.5", "type": "exit", "reason": "Spoilage"}
    type: entry (> 0), exit (< 0), adjustment (non-zero)
    """
    try:
        adjustment = parse_inventory_adjustment(request.get_json(silent=True))
        entry = ledger_service.manual_adjust(
            tenant_id=g.tenant_id,
            product_id=adjustment.product_id,
            actor_user_id=g.actor_user_id,
            delta=adjustment.quantity_change,
            movement_type=adjustment.type,
            reason=adjustment.reason,
        )
        return jsonify(entry.to_dict()), 201
    except (ValidationError, LedgerError, UnknownActor) as e:
        return jsonify({"error": str(e)}), 400
    except CatalogError as e:
        current_app.logger.warning("Lookup rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
    except StorageFailure:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Storage failure"}), 500


@inventory_bp.get("/history")
@require_tenant
def history_route():
    """
    Ledger entries newest-first with product and actor names.

    Query params:
    - limit: int (optional, default LEDGER_HISTORY_LIMIT, max 500)
    - product_id: int (optional)
    """
    limit = request.args.get("limit", type=int)
    product_id = request.args.get("product_id", type=int)
    return jsonify(ledger_service.history(g.tenant_id, limit, product_id=product_id))


@inventory_bp.get("/<int:product_id>/reconciliation")
@require_tenant
def reconciliation_route(product_id: int):
    try:
        return jsonify(ledger_service.stock_reconciliation(g.tenant_id, product_id))
    except CatalogError as e:
        current_app.logger.warning("Lookup rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
