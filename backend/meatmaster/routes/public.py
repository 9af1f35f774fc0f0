# Overview: Public storefront read; the tenant is addressed by slug, no tenant header required.

from flask import Blueprint, jsonify

from ..services import catalog_service, settings_service
from ..services.tenant_service import get_tenant_by_slug

public_bp = Blueprint("public", __name__, url_prefix="/api/public")


@public_bp.get("/store/<slug>")
def store_route(slug: str):
    """
    Storefront catalog: tenant name, categories, products and settings.

    Read-only; an unknown slug answers 404.
    """
    tenant = get_tenant_by_slug(slug)
    if tenant is None:
        return jsonify({"error": "Store not found"}), 404

    return jsonify({
        "store": {"name": tenant.name, "slug": tenant.slug},
        "categories": [c.to_dict() for c in catalog_service.list_categories(tenant.id)],
        "products": [p.to_dict() for p in catalog_service.list_products(tenant.id)],
        "settings": settings_service.settings_dict(tenant.id),
    })
