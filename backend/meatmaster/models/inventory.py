from __future__ import annotations

from ..extensions import db
from meatmaster.quantities import format_quantity
from meatmaster.time_utils import to_utc_z, utcnow

MOVEMENT_SALE = "sale"
MOVEMENT_ENTRY = "entry"
MOVEMENT_EXIT = "exit"
MOVEMENT_ADJUSTMENT = "adjustment"
MOVEMENT_TYPES = (MOVEMENT_SALE, MOVEMENT_ENTRY, MOVEMENT_EXIT, MOVEMENT_ADJUSTMENT)


class InventoryLogEntry(db.Model):
    """
    Append-only record of one stock quantity change.

    Every write to Product.stock_quantity is paired with exactly one entry
    in the same transaction. Rows are never updated or deleted.
    """
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.Index("ix_invlog_tenant_created", "tenant_id", "created_at"),
        db.Index("ix_invlog_tenant_product", "tenant_id", "product_id"),
        db.CheckConstraint(
            "type IN ('sale', 'entry', 'exit', 'adjustment')",
            name="ck_inventory_logs_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    quantity_change = db.Column(db.Numeric(12, 3), nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "sale_id": self.sale_id,
            "quantity_change": format_quantity(self.quantity_change),
            "type": self.type,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
