# Overview: Flask API routes for products; parses input and returns JSON responses.

# backend/meatmaster/routes/products.py
"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's tenant
(g.tenant_id, set by @require_tenant). A product id of another tenant
answers 404, exactly like a nonexistent one.

STOCK: stock_quantity is accepted on create only (booked as an opening
"entry" in the inventory ledger). Later stock changes go through
/api/inventory/adjust or sales.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Product
from ..services import catalog_service
from ..services.catalog_service import CatalogError
from ..services.concurrency import StorageFailure
from ..services.tenant_service import UnknownActor
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_tenant

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=catalog_service.PRODUCT_MUTABLE_FIELDS | {"stock_quantity"},
    required_on_create={"name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_tenant
def list_products():
    """List the tenant's products with category name and effective price."""
    products = catalog_service.list_products(g.tenant_id)
    return jsonify([p.to_dict() for p in products])


@products_bp.get("/<int:product_id>")
@require_tenant
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(g.tenant_id, product_id)
    except CatalogError as e:
        current_app.logger.warning("Lookup rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict())


@products_bp.post("")
@require_tenant
def create_product_route():
    """
    Create a new product.

    Opening stock in the payload is recorded as an "entry" ledger movement
    attributed to the X-User-ID actor, if any.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = catalog_service.create_product(
            tenant_id=g.tenant_id,
            patch=patch,
            actor_user_id=g.actor_user_id,
        )
        return jsonify(product.to_dict()), 201
    except CatalogError as e:
        current_app.logger.warning("Lookup rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
    except UnknownActor as e:
        return jsonify({"error": str(e)}), 400
    except StorageFailure:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Storage failure"}), 500


@products_bp.patch("/<int:product_id>")
@require_tenant
def update_product_route(product_id: int):
    """Catalog edit. Past sales keep their snapshotted prices."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        product = catalog_service.update_product(
            tenant_id=g.tenant_id,
            product_id=product_id,
            patch=patch,
        )
        return jsonify(product.to_dict())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CatalogError as e:
        current_app.logger.warning("Lookup rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
    except StorageFailure:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Storage failure"}), 500
