# backend/meatmaster/services/catalog_service.py
"""
Catalog Accessor with multi-tenant support.

MULTI-TENANT: every lookup filters by tenant_id. A product id that exists
under another tenant is reported exactly like a nonexistent one.

PRICING: effective unit price is promotional_price_cents when set, else
price_cents. The sale engine re-reads it here at the moment of sale and
never accepts a client-supplied price.

STOCK: catalog edits never write stock_quantity. Opening stock given at
creation is booked through the inventory ledger as an "entry".
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import Session, joinedload

from ..extensions import db
from ..models import Category, Product, Supplier, MOVEMENT_ENTRY
from ..validation import ValidationError
from .concurrency import atomic, lock_for_update
from .tenant_service import slugify, require_user_in_tenant
from . import ledger_service

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "code",
    "description",
    "price_cents",
    "promotional_price_cents",
    "unit",
    "category_id",
    "supplier_id",
    "min_stock_level",
    "barcode",
    "image_url",
    "is_kit",
}


class CatalogError(Exception):
    """Base class for tenant-scoped lookups that found nothing."""

    entity = "Entity"

    def __init__(self, entity_id: int | None = None, message: str | None = None):
        super().__init__(message or f"{self.entity} {entity_id} not found")
        self.entity_id = entity_id


class ProductNotFound(CatalogError):
    entity = "Product"


class CategoryNotFound(CatalogError):
    entity = "Category"


class SupplierNotFound(CatalogError):
    entity = "Supplier"


def effective_unit_price_cents(product: Product) -> int:
    """promotional price ?? list price"""
    return product.effective_price_cents


def get_product(
    tenant_id: int,
    product_id: int,
    *,
    lock: bool = False,
    session: Session | None = None,
) -> Product:
    """
    Tenant-scoped product read.

    lock=True takes a row lock (SELECT ... FOR UPDATE) on stores that
    support it; the sale engine uses it for every product it will decrement.

    Raises:
        ProductNotFound: no such product for this tenant
    """
    session = session or db.session
    query = session.query(Product).filter_by(id=product_id, tenant_id=tenant_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise ProductNotFound(product_id)
    return product


def list_products(tenant_id: int, session: Session | None = None) -> list[Product]:
    session = session or db.session
    return (
        session.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.tenant_id == tenant_id)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )


def _require_category(tenant_id: int, category_id: int | None, session: Session) -> None:
    if category_id is None:
        return
    if session.query(Category.id).filter_by(id=category_id, tenant_id=tenant_id).first() is None:
        raise CategoryNotFound(category_id)


def _require_supplier(tenant_id: int, supplier_id: int | None, session: Session) -> None:
    if supplier_id is None:
        return
    if session.query(Supplier.id).filter_by(id=supplier_id, tenant_id=tenant_id).first() is None:
        raise SupplierNotFound(supplier_id)


def create_product(
    *,
    tenant_id: int,
    patch: dict,
    actor_user_id: int | None = None,
    session: Session | None = None,
) -> Product:
    """
    Create a product from a validated patch dict.

    Opening stock ("stock_quantity" in the patch) is not written directly: the
    product starts at zero and an "entry" ledger entry brings it up, inside the
    same transaction, so the ledger explains every unit on hand.

    Raises:
        CategoryNotFound / SupplierNotFound: reference to another tenant's row
        UnknownActor: actor is not a user of the tenant
    """
    session = session or db.session

    _require_category(tenant_id, patch.get("category_id"), session)
    _require_supplier(tenant_id, patch.get("supplier_id"), session)
    if actor_user_id is not None:
        require_user_in_tenant(actor_user_id, tenant_id, session=session)

    opening_stock = patch.get("stock_quantity") or Decimal("0")

    with atomic(session):
        product = Product(tenant_id=tenant_id, stock_quantity=Decimal("0"), initial_stock_quantity=Decimal("0"))
        product.min_stock_level = Decimal(str(current_app.config.get("DEFAULT_MIN_STOCK_LEVEL", "5")))
        for k, v in patch.items():
            if k in PRODUCT_MUTABLE_FIELDS:
                setattr(product, k, v)
        session.add(product)
        session.flush()

        if opening_stock > 0:
            ledger_service.apply_stock_change(
                tenant_id=tenant_id,
                product=product,
                actor_user_id=actor_user_id,
                delta=opening_stock,
                movement_type=MOVEMENT_ENTRY,
                reason="Opening stock",
                session=session,
            )

    return product


def update_product(
    *,
    tenant_id: int,
    product_id: int,
    patch: dict,
    session: Session | None = None,
) -> Product:
    """
    Apply a catalog edit. stock_quantity is not editable here; stock moves
    only through the sale engine and manual adjustments.
    """
    session = session or db.session

    if "stock_quantity" in patch:
        raise ValidationError("stock_quantity can only change through inventory adjustments")

    product = get_product(tenant_id, product_id, session=session)
    _require_category(tenant_id, patch.get("category_id"), session)
    _require_supplier(tenant_id, patch.get("supplier_id"), session)

    with atomic(session):
        for k, v in patch.items():
            if k in PRODUCT_MUTABLE_FIELDS:
                setattr(product, k, v)

    return product


def list_categories(tenant_id: int, session: Session | None = None) -> list[Category]:
    session = session or db.session
    return session.query(Category).filter_by(tenant_id=tenant_id).order_by(Category.name.asc()).all()


def create_category(*, tenant_id: int, name: str, session: Session | None = None) -> Category:
    session = session or db.session
    with atomic(session):
        category = Category(tenant_id=tenant_id, name=name, slug=slugify(name))
        session.add(category)
    return category


def list_suppliers(tenant_id: int, session: Session | None = None) -> list[Supplier]:
    session = session or db.session
    return session.query(Supplier).filter_by(tenant_id=tenant_id).order_by(Supplier.name.asc()).all()


def create_supplier(*, tenant_id: int, patch: dict, session: Session | None = None) -> Supplier:
    session = session or db.session
    with atomic(session):
        supplier = Supplier(tenant_id=tenant_id, **patch)
        session.add(supplier)
    return supplier
