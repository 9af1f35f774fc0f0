from __future__ import annotations

from ..extensions import db
from meatmaster.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    Customer master data, scoped to one tenant.

    Read by the sale engine (optional customer on a sale) but never
    mutated by it. Spend and last-visit figures are derived from sales
    at read time, not stored here.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_tenant_name", "tenant_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # Free-form address plus the structured delivery fields
    address = db.Column(db.String(255), nullable=True)
    street = db.Column(db.String(255), nullable=True)
    number = db.Column(db.String(32), nullable=True)
    neighborhood = db.Column(db.String(120), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "street": self.street,
            "number": self.number,
            "neighborhood": self.neighborhood,
            "city": self.city,
            "state": self.state,
            "created_at": to_utc_z(self.created_at),
        }
