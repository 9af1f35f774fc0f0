# Overview: Flask API routes for categories and suppliers; tenant-scoped reference data.

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Category, Supplier
from ..services import catalog_service
from ..services.concurrency import StorageFailure
from ..validation import ModelValidationPolicy, validate_payload, ValidationError
from ..decorators import require_tenant

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "document", "email", "phone", "address", "notes"},
    required_on_create={"name"},
)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/categories")
@require_tenant
def list_categories():
    return jsonify([c.to_dict() for c in catalog_service.list_categories(g.tenant_id)])


@catalog_bp.post("/categories")
@require_tenant
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        category = catalog_service.create_category(tenant_id=g.tenant_id, name=patch["name"])
        return jsonify(category.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StorageFailure:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Storage failure"}), 500


@catalog_bp.get("/suppliers")
@require_tenant
def list_suppliers():
    return jsonify([s.to_dict() for s in catalog_service.list_suppliers(g.tenant_id)])


@catalog_bp.post("/suppliers")
@require_tenant
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
        supplier = catalog_service.create_supplier(tenant_id=g.tenant_id, patch=patch)
        return jsonify(supplier.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StorageFailure:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Storage failure"}), 500
