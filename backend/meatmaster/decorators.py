# Overview: Request decorators for API routes (tenant scope and actor attribution).

from functools import wraps
from flask import request, jsonify, g, current_app

from .services.tenant_service import (
    TENANT_HEADER,
    ACTOR_HEADER,
    MissingTenant,
    InvalidTenant,
    resolve_tenant,
)


def require_tenant(f):
    """
    Establish tenant context before the handler touches storage.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.tenant_id: validated tenant id - REQUIRED
    - g.actor_user_id: raw actor id from X-User-ID, or None. Services
      re-verify it against the tenant before attributing anything to it.

    SECURITY: Returns 401 if:
    - No X-Tenant-ID header
    - Header is not a tenant id, or names no tenant
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            tenant_id = resolve_tenant(request.headers.get(TENANT_HEADER))
        except InvalidTenant as e:
            current_app.logger.warning("Rejected invalid tenant token path=%s", request.path)
            return jsonify({"error": str(e)}), 401
        except MissingTenant as e:
            current_app.logger.warning("Missing tenant context path=%s", request.path)
            return jsonify({"error": str(e)}), 401

        raw_actor = request.headers.get(ACTOR_HEADER)
        if raw_actor is not None and raw_actor.strip():
            if not raw_actor.strip().isdigit():
                return jsonify({"error": f"{ACTOR_HEADER} must be a user id"}), 400
            g.actor_user_id = int(raw_actor.strip())
        else:
            g.actor_user_id = None

        g.tenant_id = tenant_id
        return f(*args, **kwargs)

    return decorated_function
