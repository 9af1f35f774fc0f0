# Overview: Service-layer operations for customers; tenant-scoped master data read by the sale engine.

from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..extensions import db
from ..models import Customer, Sale
from meatmaster.time_utils import to_utc_z
from .catalog_service import CatalogError
from .concurrency import atomic

CUSTOMER_MUTABLE_FIELDS = {
    "name",
    "email",
    "phone",
    "address",
    "street",
    "number",
    "neighborhood",
    "city",
    "state",
}


class CustomerNotFound(CatalogError):
    entity = "Customer"


def get_customer(tenant_id: int, customer_id: int, session: Session | None = None) -> Customer:
    """
    Tenant-scoped customer read.

    Raises:
        CustomerNotFound: no such customer for this tenant
    """
    session = session or db.session
    customer = session.query(Customer).filter_by(id=customer_id, tenant_id=tenant_id).first()
    if customer is None:
        raise CustomerNotFound(customer_id)
    return customer


def list_customers(tenant_id: int, session: Session | None = None) -> list[dict]:
    """
    Customers with total spent and last visit, derived from committed sales.

    Customers with no sales report total_spent_cents=0 and last_visit_at=None.
    """
    session = session or db.session

    spend = (
        session.query(
            Sale.customer_id.label("customer_id"),
            func.coalesce(func.sum(Sale.total_amount_cents), 0).label("total_spent_cents"),
            func.max(Sale.created_at).label("last_visit_at"),
        )
        .filter(Sale.tenant_id == tenant_id, Sale.customer_id.isnot(None))
        .group_by(Sale.customer_id)
        .subquery()
    )

    rows = (
        session.query(Customer, spend.c.total_spent_cents, spend.c.last_visit_at)
        .outerjoin(spend, spend.c.customer_id == Customer.id)
        .filter(Customer.tenant_id == tenant_id)
        .order_by(Customer.name.asc(), Customer.id.asc())
        .all()
    )

    result = []
    for customer, total_spent, last_visit in rows:
        data = customer.to_dict()
        data["total_spent_cents"] = int(total_spent or 0)
        data["last_visit_at"] = to_utc_z(last_visit) if last_visit else None
        result.append(data)
    return result


def create_customer(*, tenant_id: int, patch: dict, session: Session | None = None) -> Customer:
    session = session or db.session
    with atomic(session):
        customer = Customer(tenant_id=tenant_id)
        for k, v in patch.items():
            if k in CUSTOMER_MUTABLE_FIELDS:
                setattr(customer, k, v)
        session.add(customer)
    return customer


def update_customer(
    *,
    tenant_id: int,
    customer_id: int,
    patch: dict,
    session: Session | None = None,
) -> Customer:
    session = session or db.session
    customer = get_customer(tenant_id, customer_id, session=session)
    with atomic(session):
        for k, v in patch.items():
            if k in CUSTOMER_MUTABLE_FIELDS:
                setattr(customer, k, v)
    return customer
