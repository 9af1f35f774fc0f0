# Overview: Service-layer operations for tenant storefront settings (contact and branding details).

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import Session

from ..extensions import db
from ..models import TenantSettings
from .concurrency import atomic
from .tenant_service import require_user_in_tenant

SETTINGS_FIELDS = (
    "address",
    "phone",
    "whatsapp",
    "instagram",
    "facebook",
    "opening_hours",
    "logo_url",
)


def get_settings(tenant_id: int, session: Session | None = None) -> TenantSettings | None:
    session = session or db.session
    return session.get(TenantSettings, tenant_id)


def settings_dict(tenant_id: int, session: Session | None = None) -> dict:
    """Settings as JSON-ready dict; {} when the tenant never saved any."""
    settings = get_settings(tenant_id, session=session)
    return settings.to_dict() if settings else {}


def save_settings(
    *,
    tenant_id: int,
    patch: dict,
    actor_user_id: int | None = None,
    session: Session | None = None,
) -> TenantSettings:
    """
    Upsert the tenant's settings row.

    The saved form replaces the stored one: fields missing from the patch
    are cleared.

    Raises:
        UnknownActor: actor is not a user of the tenant
    """
    session = session or db.session

    with atomic(session):
        if actor_user_id is not None:
            require_user_in_tenant(actor_user_id, tenant_id, session=session)

        settings = session.get(TenantSettings, tenant_id)
        if settings is None:
            settings = TenantSettings(tenant_id=tenant_id)
            session.add(settings)

        for field in SETTINGS_FIELDS:
            setattr(settings, field, patch.get(field))

    current_app.logger.info("Settings saved tenant=%s actor=%s", tenant_id, actor_user_id)
    return settings
