# Overview: Flask API routes for tenant storefront settings.

from flask import Blueprint, request, jsonify, g, current_app

from ..models import TenantSettings
from ..services import settings_service
from ..services.concurrency import StorageFailure
from ..services.tenant_service import UnknownActor
from ..validation import ModelValidationPolicy, validate_payload, ValidationError
from ..decorators import require_tenant

SETTINGS_POLICY = ModelValidationPolicy(
    writable_fields=set(settings_service.SETTINGS_FIELDS),
)

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_tenant
def get_settings_route():
    """The tenant's settings, or {} when none were saved yet."""
    return jsonify(settings_service.settings_dict(g.tenant_id))


@settings_bp.post("")
@require_tenant
def save_settings_route():
    """
    Save the settings form.

    Body: {"address": ..., "phone": ..., "whatsapp": ..., "instagram": ...,
           "facebook": ..., "opening_hours": ..., "logo_url": ...}
    Omitted fields are cleared.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=TenantSettings, payload=payload, policy=SETTINGS_POLICY, partial=True)
        settings = settings_service.save_settings(
            tenant_id=g.tenant_id,
            patch=patch,
            actor_user_id=g.actor_user_id,
        )
        return jsonify(settings.to_dict())
    except (ValidationError, UnknownActor) as e:
        return jsonify({"error": str(e)}), 400
    except StorageFailure:
        current_app.logger.exception("Failed to save settings")
        return jsonify({"error": "Storage failure"}), 500
