"""
Sale Transaction Engine - basket in, committed sale out.

One call converts a validated SaleRequest into a Sale header, its SaleItems,
the stock decrements and the matching "sale" ledger entries, as a single
atomic unit. Either every row persists or none does.

PRICING: unit prices are re-read from the catalog inside the transaction
(promotional price ?? list price) and snapshotted onto each SaleItem.
Client-supplied prices are never accepted.

TOTALS: total = sum(item subtotals) + delivery fee; pickup forces the fee to 0.

NEGATIVE STOCK: stock is decremented unconditionally by default, even below
zero (oversell now, reconcile later). Set ALLOW_NEGATIVE_STOCK=false to
reject such baskets with InsufficientStockError before anything is written.

FAILURES: no retries. Any error aborts the whole sale; the caller resubmits.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import Session, joinedload

from ..extensions import db
from ..models import Sale, SaleItem, Product, MOVEMENT_SALE
from ..validation import SaleRequest, BasketLine
from meatmaster.quantities import format_quantity, line_subtotal_cents
from .concurrency import atomic
from .catalog_service import get_product, effective_unit_price_cents
from .customer_service import get_customer
from .ledger_service import apply_stock_change
from .tenant_service import require_user_in_tenant


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class EmptyBasketError(SaleError):
    """Raised when a sale is attempted with zero items."""


class InsufficientStockError(SaleError):
    """Raised when ALLOW_NEGATIVE_STOCK is off and the basket exceeds stock on hand."""


class SaleNotFound(SaleError):
    """Raised when a sale id does not exist for the tenant."""


@dataclass(frozen=True)
class SaleReceipt:
    sale_id: int
    total_amount_cents: int
    subtotal_cents: int
    delivery_fee_cents: int
    item_count: int

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "total_amount_cents": self.total_amount_cents,
            "subtotal_cents": self.subtotal_cents,
            "delivery_fee_cents": self.delivery_fee_cents,
            "item_count": self.item_count,
        }


@dataclass(frozen=True)
class _PricedLine:
    line: BasketLine
    product: Product
    unit_price_cents: int
    subtotal_cents: int


def _validate_on_hand(products: dict[int, Product], lines: tuple[BasketLine, ...]) -> None:
    requested: dict[int, Decimal] = {}
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, Decimal("0")) + line.quantity

    insufficient = []
    for product_id, qty in requested.items():
        on_hand = products[product_id].stock_quantity
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": format_quantity(qty),
                "on_hand": format_quantity(on_hand),
            })

    if insufficient:
        raise InsufficientStockError(
            "Insufficient stock to complete sale",
            details={"items": insufficient},
        )


def _price_basket(
    tenant_id: int,
    lines: tuple[BasketLine, ...],
    session: Session,
) -> tuple[list[_PricedLine], dict[int, Product]]:
    """
    Look up every basket product (tenant-scoped, row-locked) and price it.

    Rows are locked in ascending product id order, whatever the basket order,
    so two sales sharing products always acquire their locks in the same order.
    A missing or foreign product raises ProductNotFound before any write.
    """
    products: dict[int, Product] = {}
    for product_id in sorted({line.product_id for line in lines}):
        products[product_id] = get_product(tenant_id, product_id, lock=True, session=session)

    priced: list[_PricedLine] = []
    for line in lines:
        product = products[line.product_id]
        unit_price = effective_unit_price_cents(product)
        priced.append(_PricedLine(
            line=line,
            product=product,
            unit_price_cents=unit_price,
            subtotal_cents=line_subtotal_cents(unit_price, line.quantity),
        ))

    return priced, products


def create_sale(
    tenant_id: int,
    request: SaleRequest,
    *,
    actor_user_id: int | None = None,
    allow_negative_stock: bool | None = None,
    session: Session | None = None,
) -> SaleReceipt:
    """
    Commit one sale atomically and return its id and totals.

    Raises:
        EmptyBasketError: no lines
        ProductNotFound: a line references a missing/foreign product
        CustomerNotFound: customer_id is missing/foreign
        UnknownActor: actor is not a user of the tenant
        InsufficientStockError: only when negative stock is disallowed
        StorageFailure: the store could not commit
    """
    session = session or db.session

    if not request.lines:
        raise EmptyBasketError("Cannot create a sale with no items")

    if allow_negative_stock is None:
        allow_negative_stock = current_app.config.get("ALLOW_NEGATIVE_STOCK", True)

    with atomic(session):
        if actor_user_id is not None:
            require_user_in_tenant(actor_user_id, tenant_id, session=session)
        if request.customer_id is not None:
            get_customer(tenant_id, request.customer_id, session=session)

        priced, products = _price_basket(tenant_id, request.lines, session)

        if not allow_negative_stock:
            _validate_on_hand(products, request.lines)

        subtotal_cents = sum(p.subtotal_cents for p in priced)
        delivery_fee_cents = request.delivery_fee_cents if request.delivery_type == "delivery" else 0

        sale = Sale(
            tenant_id=tenant_id,
            customer_id=request.customer_id,
            total_amount_cents=subtotal_cents + delivery_fee_cents,
            payment_method=request.payment_method,
            delivery_type=request.delivery_type,
            delivery_fee_cents=delivery_fee_cents,
            created_by_user_id=actor_user_id,
        )
        session.add(sale)
        session.flush()

        for p in priced:
            session.add(SaleItem(
                sale_id=sale.id,
                tenant_id=tenant_id,
                product_id=p.product.id,
                quantity=p.line.quantity,
                unit_price_cents=p.unit_price_cents,
                subtotal_cents=p.subtotal_cents,
            ))
            apply_stock_change(
                tenant_id=tenant_id,
                product=p.product,
                actor_user_id=actor_user_id,
                delta=-p.line.quantity,
                movement_type=MOVEMENT_SALE,
                reason=f"Sale #{sale.id}",
                sale_id=sale.id,
                session=session,
            )

        receipt = SaleReceipt(
            sale_id=sale.id,
            total_amount_cents=sale.total_amount_cents,
            subtotal_cents=subtotal_cents,
            delivery_fee_cents=delivery_fee_cents,
            item_count=len(priced),
        )

    current_app.logger.info(
        "Sale committed tenant=%s sale=%s total_cents=%s items=%s",
        tenant_id, receipt.sale_id, receipt.total_amount_cents, receipt.item_count,
    )
    return receipt


def get_sale(tenant_id: int, sale_id: int, session: Session | None = None) -> Sale:
    """Tenant-scoped sale read with items loaded."""
    session = session or db.session
    sale = (
        session.query(Sale)
        .options(joinedload(Sale.items).joinedload(SaleItem.product))
        .filter(Sale.id == sale_id, Sale.tenant_id == tenant_id)
        .first()
    )
    if sale is None:
        raise SaleNotFound("Sale not found")
    return sale


def list_sales(tenant_id: int, limit: int = 50, session: Session | None = None) -> list[Sale]:
    session = session or db.session
    limit = max(1, min(int(limit), 500))
    return (
        session.query(Sale)
        .filter(Sale.tenant_id == tenant_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )
