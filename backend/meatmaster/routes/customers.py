# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Customer
from ..services import customer_service
from ..services.customer_service import CustomerNotFound
from ..services.concurrency import StorageFailure
from ..validation import ModelValidationPolicy, validate_payload, ValidationError
from ..decorators import require_tenant

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=set(customer_service.CUSTOMER_MUTABLE_FIELDS),
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_tenant
def list_customers():
    """Customers with total_spent_cents and last_visit_at derived from sales."""
    return jsonify(customer_service.list_customers(g.tenant_id))


@customers_bp.post("")
@require_tenant
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        customer = customer_service.create_customer(tenant_id=g.tenant_id, patch=patch)
        return jsonify(customer.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StorageFailure:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Storage failure"}), 500


@customers_bp.put("/<int:customer_id>")
@require_tenant
def update_customer_route(customer_id: int):
    """
    Update customer fields. Only the fields present in the body change.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        customer = customer_service.update_customer(
            tenant_id=g.tenant_id,
            customer_id=customer_id,
            patch=patch,
        )
        return jsonify(customer.to_dict())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except CustomerNotFound as e:
        current_app.logger.warning("Lookup rejected path=%s: %s", request.path, e)
        return jsonify({"error": str(e)}), 404
    except StorageFailure:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Storage failure"}), 500
