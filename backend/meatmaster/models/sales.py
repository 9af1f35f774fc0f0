from __future__ import annotations

from ..extensions import db
from meatmaster.quantities import format_quantity
from meatmaster.time_utils import to_utc_z, utcnow

PAYMENT_METHODS = ("cash", "card", "pix")
DELIVERY_TYPES = ("pickup", "delivery")


class Sale(db.Model):
    """
    Sale header. Written once by the sale engine and never updated.

    total_amount_cents = sum(items.subtotal_cents) + delivery_fee_cents,
    with delivery_fee_cents forced to 0 for pickup.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_tenant_created", "tenant_id", "created_at"),
        db.CheckConstraint("delivery_type IN ('pickup', 'delivery')", name="ck_sales_delivery_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    delivery_type = db.Column(db.String(16), nullable=False, default="pickup")
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    items = db.relationship("SaleItem", backref="sale", lazy=True, order_by="SaleItem.id")

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "customer_id": self.customer_id,
            "total_amount_cents": self.total_amount_cents,
            "payment_method": self.payment_method,
            "delivery_type": self.delivery_type,
            "delivery_fee_cents": self.delivery_fee_cents,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Line item with the unit price snapshotted at sale time."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": format_quantity(self.quantity),
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
        }
