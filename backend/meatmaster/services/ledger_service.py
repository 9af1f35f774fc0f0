# Overview: Inventory Ledger; the only code path that writes Product.stock_quantity.

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..extensions import db
from ..models import (
    InventoryLogEntry,
    Product,
    MOVEMENT_TYPES,
    MOVEMENT_ENTRY,
    MOVEMENT_EXIT,
    MOVEMENT_ADJUSTMENT,
)
from meatmaster.quantities import QUANTITY_QUANTUM, format_quantity
from .concurrency import atomic
from .tenant_service import require_user_in_tenant
"""
Inventory Ledger Invariants (authoritative)

- Append-only: entries are inserted, never updated or deleted
  (enforced by ORM listeners in meatmaster.immutability).
- Pairing: every change to Product.stock_quantity is made by
  apply_stock_change(), which writes exactly one entry in the same
  transaction. Neither happens without the other.
- Bookkeeping identity:
    stock_quantity == initial_stock_quantity + SUM(quantity_change)
- Sale entries carry quantity_change = -SaleItem.quantity and sale_id.
- Manual movements: entry (delta > 0), exit (delta < 0), adjustment (delta != 0).
"""

MANUAL_MOVEMENT_TYPES = (MOVEMENT_ENTRY, MOVEMENT_EXIT, MOVEMENT_ADJUSTMENT)
MAX_HISTORY_LIMIT = 500


class LedgerError(ValueError):
    """Raised for ledger operations that violate movement rules."""


def append_entry(
    *,
    tenant_id: int,
    product_id: int,
    actor_user_id: int | None,
    delta: Decimal,
    movement_type: str,
    reason: str | None = None,
    sale_id: int | None = None,
    session: Session | None = None,
) -> InventoryLogEntry:
    """
    Append one ledger entry. No commit; the caller owns the transaction.

    Only apply_stock_change() should call this, so that the entry is always
    paired with its stock mutation.
    """
    session = session or db.session

    if movement_type not in MOVEMENT_TYPES:
        raise LedgerError(f"type must be one of: {', '.join(MOVEMENT_TYPES)}")
    if delta == 0:
        raise LedgerError("quantity_change must be non-zero")

    entry = InventoryLogEntry(
        tenant_id=tenant_id,
        product_id=product_id,
        user_id=actor_user_id,
        sale_id=sale_id,
        quantity_change=delta,
        type=movement_type,
        reason=reason,
    )
    session.add(entry)
    session.flush()  # ensures entry.id is assigned without committing
    return entry


def apply_stock_change(
    *,
    tenant_id: int,
    product: Product,
    actor_user_id: int | None,
    delta: Decimal,
    movement_type: str,
    reason: str | None = None,
    sale_id: int | None = None,
    session: Session | None = None,
) -> InventoryLogEntry:
    """
    stock_quantity += delta, plus its ledger entry. No commit.

    The product must already have been loaded through a tenant-scoped lookup;
    the tenant is checked again here because this is the write.
    """
    if product.tenant_id != tenant_id:
        raise LedgerError("product does not belong to tenant")

    product.stock_quantity = (product.stock_quantity or Decimal("0")) + delta

    return append_entry(
        tenant_id=tenant_id,
        product_id=product.id,
        actor_user_id=actor_user_id,
        delta=delta,
        movement_type=movement_type,
        reason=reason,
        sale_id=sale_id,
        session=session,
    )


def _check_manual_movement(movement_type: str, delta: Decimal) -> None:
    if movement_type not in MANUAL_MOVEMENT_TYPES:
        raise LedgerError(f"type must be one of: {', '.join(MANUAL_MOVEMENT_TYPES)}")
    if delta == 0:
        raise LedgerError("quantity_change must be non-zero")
    if movement_type == MOVEMENT_ENTRY and delta < 0:
        raise LedgerError("quantity_change must be > 0 for entry")
    if movement_type == MOVEMENT_EXIT and delta > 0:
        raise LedgerError("quantity_change must be < 0 for exit")


def manual_adjust(
    *,
    tenant_id: int,
    product_id: int,
    actor_user_id: int | None,
    delta: Decimal,
    movement_type: str,
    reason: str | None = None,
    allow_negative_stock: bool | None = None,
    session: Session | None = None,
) -> InventoryLogEntry:
    """
    Non-sale stock movement (goods received, losses, count corrections).

    Runs as its own atomic unit: the stock update and the entry commit
    together or not at all.

    Raises:
        LedgerError: bad type/sign, or stock would go negative while
            ALLOW_NEGATIVE_STOCK is off
        ProductNotFound: product missing or owned by another tenant
        UnknownActor: actor is not a user of the tenant
    """
    from .catalog_service import get_product

    session = session or db.session
    if allow_negative_stock is None:
        allow_negative_stock = current_app.config.get("ALLOW_NEGATIVE_STOCK", True)

    _check_manual_movement(movement_type, delta)

    with atomic(session):
        if actor_user_id is not None:
            require_user_in_tenant(actor_user_id, tenant_id, session=session)

        product = get_product(tenant_id, product_id, lock=True, session=session)

        if not allow_negative_stock and product.stock_quantity + delta < 0:
            raise LedgerError("Adjustment would make stock negative")

        entry = apply_stock_change(
            tenant_id=tenant_id,
            product=product,
            actor_user_id=actor_user_id,
            delta=delta,
            movement_type=movement_type,
            reason=reason,
            session=session,
        )

    current_app.logger.info(
        "Inventory %s tenant=%s product=%s delta=%s",
        movement_type, tenant_id, product_id, format_quantity(delta),
    )
    return entry


def history(
    tenant_id: int,
    limit: int | None = None,
    *,
    product_id: int | None = None,
    session: Session | None = None,
) -> list[dict]:
    """
    Ledger entries newest-first, with product and actor names. Pure read.
    """
    session = session or db.session

    if limit is None:
        limit = current_app.config.get("LEDGER_HISTORY_LIMIT", 100)
    limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))

    q = (
        session.query(InventoryLogEntry)
        .options(joinedload(InventoryLogEntry.product), joinedload(InventoryLogEntry.user))
        .filter(InventoryLogEntry.tenant_id == tenant_id)
    )
    if product_id is not None:
        q = q.filter(InventoryLogEntry.product_id == product_id)

    rows = (
        q.order_by(InventoryLogEntry.created_at.desc(), InventoryLogEntry.id.desc())
        .limit(limit)
        .all()
    )
    return [r.to_dict() for r in rows]


def stock_reconciliation(
    tenant_id: int,
    product_id: int,
    session: Session | None = None,
) -> dict:
    """
    Check the bookkeeping identity for one product:
        initial_stock_quantity + SUM(quantity_change) == stock_quantity
    """
    from .catalog_service import get_product

    session = session or db.session
    product = get_product(tenant_id, product_id, session=session)

    ledger_sum = session.query(
        func.coalesce(func.sum(InventoryLogEntry.quantity_change), 0)
    ).filter(
        InventoryLogEntry.tenant_id == tenant_id,
        InventoryLogEntry.product_id == product_id,
    ).scalar()
    ledger_sum = Decimal(str(ledger_sum or 0)).quantize(QUANTITY_QUANTUM)

    opening = product.initial_stock_quantity or Decimal("0")
    expected = opening + ledger_sum
    return {
        "product_id": product.id,
        "opening_quantity": format_quantity(opening),
        "ledger_sum": format_quantity(ledger_sum),
        "stock_quantity": format_quantity(product.stock_quantity),
        "balanced": expected == product.stock_quantity,
    }
