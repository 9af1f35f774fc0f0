from __future__ import annotations

from ..extensions import db
from meatmaster.time_utils import to_utc_z, utcnow

USER_ROLES = ("admin", "cashier", "stock_manager")


class Tenant(db.Model):
    """
    Multi-tenant root: every business account is a Tenant.

    All catalog, customer, sale and ledger rows carry tenant_id.
    No query may return rows across tenants.
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=True, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }


class User(db.Model):
    """
    Actor identity used to attribute ledger entries and sales.

    Credentials live in the authentication subsystem; this row only
    names who did what inside a tenant.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "username", name="uq_users_tenant_username"),
        db.CheckConstraint(
            "role IN ('admin', 'cashier', 'stock_manager')",
            name="ck_users_role",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="cashier")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    tenant = db.relationship("Tenant", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} tenant_id={self.tenant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }


class TenantSettings(db.Model):
    """
    Storefront contact and branding details, at most one row per tenant.

    Read by the public store page; written only through settings_service.
    """
    __tablename__ = "tenant_settings"

    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), primary_key=True)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    whatsapp = db.Column(db.String(32), nullable=True)
    instagram = db.Column(db.String(120), nullable=True)
    facebook = db.Column(db.String(255), nullable=True)
    opening_hours = db.Column(db.String(255), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    tenant = db.relationship("Tenant", backref=db.backref("settings", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "address": self.address,
            "phone": self.phone,
            "whatsapp": self.whatsapp,
            "instagram": self.instagram,
            "facebook": self.facebook,
            "opening_hours": self.opening_hours,
            "logo_url": self.logo_url,
            "updated_at": to_utc_z(self.updated_at),
        }
