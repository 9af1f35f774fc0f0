# Overview: Stats / reporting aggregator; read-only rollups recomputed from committed rows.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..extensions import db
from ..models import Product, Sale
from meatmaster.time_utils import day_bounds, to_utc_z


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _sales_today(tenant_id: int, today: datetime | None, session: Session):
    start, end = day_bounds(today)
    return session.query(Sale).filter(
        Sale.tenant_id == tenant_id,
        Sale.created_at >= start,
        Sale.created_at < end,
    )


def _low_stock_query(tenant_id: int, session: Session):
    return session.query(Product).filter(
        Product.tenant_id == tenant_id,
        Product.stock_quantity <= Product.min_stock_level,
    )


def low_stock_products(tenant_id: int, session: Session | None = None) -> list[Product]:
    """Products at or below their minimum stock threshold, lowest stock first."""
    session = session or db.session
    return (
        _low_stock_query(tenant_id, session)
        .options(joinedload(Product.category))
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )


def dashboard_stats(
    tenant_id: int,
    today: datetime | None = None,
    *,
    recent_limit: int | None = None,
    session: Session | None = None,
) -> dict:
    """
    Dashboard rollup: today's revenue, low-stock count and the most recent sales.

    "today" is the UTC calendar day containing `today` (default: now).
    """
    session = session or db.session

    if recent_limit is None:
        recent_limit = current_app.config.get("RECENT_SALES_LIMIT", 5)
    if recent_limit < 1:
        raise ReportError("recent_limit must be >= 1")

    daily_revenue = (
        _sales_today(tenant_id, today, session)
        .with_entities(func.coalesce(func.sum(Sale.total_amount_cents), 0))
        .scalar()
    )

    low_stock_count = _low_stock_query(tenant_id, session).count()

    recent = (
        session.query(Sale)
        .options(joinedload(Sale.customer))
        .filter(Sale.tenant_id == tenant_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(recent_limit)
        .all()
    )

    return {
        "daily_revenue_cents": int(daily_revenue or 0),
        "low_stock_count": int(low_stock_count),
        "recent_sales": [
            {
                "id": s.id,
                "total_amount_cents": s.total_amount_cents,
                "payment_method": s.payment_method,
                "delivery_type": s.delivery_type,
                "customer_name": s.customer.name if s.customer else None,
                "created_at": to_utc_z(s.created_at),
            }
            for s in recent
        ],
    }


def fiscal_summary(
    tenant_id: int,
    today: datetime | None = None,
    session: Session | None = None,
) -> dict:
    """Count, revenue and delivery fees of the sales made today (UTC day)."""
    session = session or db.session
    start, _end = day_bounds(today)

    row = (
        _sales_today(tenant_id, today, session)
        .with_entities(
            func.count(Sale.id).label("total_sales"),
            func.coalesce(func.sum(Sale.total_amount_cents), 0).label("total_revenue_cents"),
            func.coalesce(func.sum(Sale.delivery_fee_cents), 0).label("total_delivery_fees_cents"),
        )
        .one()
    )

    return {
        "date": start.date().isoformat(),
        "total_sales": int(row.total_sales or 0),
        "total_revenue_cents": int(row.total_revenue_cents or 0),
        "total_delivery_fees_cents": int(row.total_delivery_fees_cents or 0),
    }
