from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from meatmaster.quantities import format_quantity
from meatmaster.time_utils import to_utc_z, utcnow

PRODUCT_UNITS = ("kg", "un")


def _opening_stock(context):
    return context.get_current_parameters().get("stock_quantity") or Decimal("0")


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_tenant_slug", "tenant_id", "slug"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "slug": self.slug,
        }


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    # CNPJ / CPF or any tax document number
    document = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "document": self.document,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data, scoped to one tenant.

    PRICING:
    - price_cents is the list price; promotional_price_cents overrides it when set.
    - Sales snapshot the effective price onto SaleItem.unit_price_cents, so later
      edits here never alter historical sales.

    STOCK:
    - stock_quantity is only mutated together with an InventoryLogEntry
      (sale engine or manual adjustment).
    - initial_stock_quantity is the stock the row was created with; it plus the
      signed sum of the product's ledger entries equals stock_quantity.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_tenant_name", "tenant_id", "name"),
        db.Index("ix_products_tenant_code", "tenant_id", "code"),
        db.CheckConstraint("unit IN ('kg', 'un')", name="ck_products_unit"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)
    promotional_price_cents = db.Column(db.Integer, nullable=True)

    unit = db.Column(db.String(8), nullable=False, default="un")

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    stock_quantity = db.Column(db.Numeric(12, 3), nullable=False, default=Decimal("0"))
    initial_stock_quantity = db.Column(db.Numeric(12, 3), nullable=False, default=_opening_stock)
    min_stock_level = db.Column(db.Numeric(12, 3), nullable=False, default=Decimal("5"))

    barcode = db.Column(db.String(64), nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    is_kit = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))

    @property
    def effective_price_cents(self) -> int:
        if self.promotional_price_cents is not None:
            return self.promotional_price_cents
        return self.price_cents

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} tenant_id={self.tenant_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "price_cents": self.price_cents,
            "promotional_price_cents": self.promotional_price_cents,
            "effective_price_cents": self.effective_price_cents,
            "unit": self.unit,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "supplier_id": self.supplier_id,
            "stock_quantity": format_quantity(self.stock_quantity),
            "min_stock_level": format_quantity(self.min_stock_level),
            "barcode": self.barcode,
            "image_url": self.image_url,
            "is_kit": self.is_kit,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
