"""
Tenant Context Resolver: tenant validation and scoping helpers.

Every request that touches tenant data must be scoped to one tenant, and
every entity id supplied by a client must be re-verified against it.

SECURITY INVARIANTS:
1. Handlers that need tenant scope call resolve_tenant() (via @require_tenant)
   before any other storage access; a missing token is a hard failure.
2. The tenant token is a capability: it must name an existing tenant.
3. Entity ids from client input (products, customers, actors) are looked up
   with tenant_id in the filter; rows of other tenants are "not found".

USAGE:
    from meatmaster.services.tenant_service import resolve_tenant, get_current_tenant_id

    tenant_id = resolve_tenant(request.headers.get(TENANT_HEADER))
"""

from __future__ import annotations

import re
import unicodedata

from flask import g
from sqlalchemy.orm import Session

from ..extensions import db
from ..models import Tenant, User, USER_ROLES
from ..validation import ConflictError, ValidationError
from .concurrency import atomic

TENANT_HEADER = "X-Tenant-ID"
ACTOR_HEADER = "X-User-ID"


class MissingTenant(Exception):
    """Raised when no tenant context was supplied."""


class InvalidTenant(MissingTenant):
    """Raised when the tenant token is malformed or names no tenant."""


class UnknownActor(Exception):
    """Raised when an actor id does not name a user of the tenant."""


def resolve_tenant(token, session: Session | None = None) -> int:
    """
    Turn an opaque tenant token into a validated tenant id.

    Raises:
        MissingTenant: token absent or blank
        InvalidTenant: token not a positive integer, or no such tenant
    """
    session = session or db.session

    if token is None or not str(token).strip():
        raise MissingTenant("Tenant ID required")

    raw = str(token).strip()
    if not raw.isdigit():
        raise InvalidTenant("Invalid tenant")

    tenant = session.get(Tenant, int(raw))
    if tenant is None:
        raise InvalidTenant("Invalid tenant")

    return tenant.id


def get_current_tenant_id() -> int:
    """
    Get the current tenant id from Flask g context.

    Raises MissingTenant if @require_tenant did not run for this request.
    """
    tenant_id = getattr(g, "tenant_id", None)
    if tenant_id is None:
        raise MissingTenant("Tenant context not established")
    return tenant_id


def require_user_in_tenant(user_id: int, tenant_id: int, session: Session | None = None) -> User:
    """Actor ids are re-verified against the tenant, never trusted."""
    session = session or db.session
    user = session.query(User).filter_by(id=user_id, tenant_id=tenant_id).first()
    if user is None:
        raise UnknownActor("Unknown actor")
    return user


def slugify(name: str) -> str:
    """'Açougue do Zé' -> 'acougue-do-ze'"""
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = ascii_name.strip().lower().replace(" ", "-")
    return re.sub(r"[^\w-]+", "", slug)


def get_tenant_by_slug(slug: str, session: Session | None = None) -> Tenant | None:
    session = session or db.session
    return session.query(Tenant).filter_by(slug=slug).first()


def list_tenants(session: Session | None = None) -> list[Tenant]:
    session = session or db.session
    return session.query(Tenant).order_by(Tenant.id.asc()).all()


def create_tenant(
    *,
    name: str,
    slug: str | None = None,
    email: str | None = None,
    session: Session | None = None,
) -> Tenant:
    """
    Create a tenant (signup). The slug is derived from the name when omitted.

    Raises:
        ValidationError: blank name or empty slug
        ConflictError: slug or email already taken
    """
    session = session or db.session

    name = (name or "").strip()
    if len(name) < 3:
        raise ValidationError("name must be at least 3 characters")

    slug = slugify(slug or name)
    if not slug:
        raise ValidationError("slug cannot be blank")

    if session.query(Tenant).filter_by(slug=slug).first():
        raise ConflictError(f"Tenant slug '{slug}' already in use")
    if email and session.query(Tenant).filter_by(email=email).first():
        raise ConflictError("Tenant email already in use")

    with atomic(session):
        tenant = Tenant(name=name, slug=slug, email=email)
        session.add(tenant)

    return tenant


def create_user(
    *,
    tenant_id: int,
    username: str,
    name: str,
    role: str = "cashier",
    session: Session | None = None,
) -> User:
    """Register an actor identity inside a tenant."""
    session = session or db.session

    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

    username = (username or "").strip()
    if not username:
        raise ValidationError("username cannot be blank")

    if session.query(User).filter_by(tenant_id=tenant_id, username=username).first():
        raise ConflictError(f"Username '{username}' already in use")

    with atomic(session):
        user = User(tenant_id=tenant_id, username=username, name=name, role=role)
        session.add(user)

    return user
