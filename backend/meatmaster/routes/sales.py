# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/meatmaster/routes/sales.py
"""
Sales API routes.

POST /api/sales is the only write: the body is validated into a SaleRequest
at the boundary, then handed to the sale engine, which commits the sale,
its items, the stock decrements and the ledger entries as one unit.
Sales are immutable; there is no update or delete route.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service
from ..services.sales_service import SaleError, SaleNotFound
from ..services.catalog_service import CatalogError
from ..services.concurrency import StorageFailure
from ..services.tenant_service import UnknownActor
from ..validation import parse_sale_request, ValidationError
from ..decorators import require_tenant


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_tenant
def create_sale_route():
    """
    Create and commit a sale.

    Body:
        {"items": [{"product_id": 1, "quantity": "1.250"}],
         "payment_method": "cash|card|pix",
         "delivery_type": "pickup|delivery",
         "delivery_fee_cents": 1200,
         "customer_id": 3}

    Unit prices come from the catalog; any price in the body is rejected.
    """
    try:
        sale_request = parse_sale_request(request.get_json(silent=True))
        receipt = sales_service.create_sale(
            g.tenant_id,
            sale_request,
            actor_user_id=g.actor_user_id,
        )
        return jsonify(receipt.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except UnknownActor as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except CatalogError as e:
        current_app.logger.warning("Sale rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
    except StorageFailure:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Storage failure"}), 500
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_tenant
def list_sales_route():
    """Query params: limit (default 50, max 500)."""
    limit = request.args.get("limit", default=50, type=int)
    sales = sales_service.list_sales(g.tenant_id, limit=limit)
    return jsonify([s.to_dict() for s in sales])


@sales_bp.get("/<int:sale_id>")
@require_tenant
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.tenant_id, sale_id)
    except SaleNotFound as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(sale.to_dict(include_items=True))
