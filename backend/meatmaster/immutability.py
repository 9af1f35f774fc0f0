"""
ORM-level immutability for sales and the inventory ledger.

Sale, SaleItem and InventoryLogEntry rows are written once and never
changed. SQLAlchemy fires before_update / before_delete before any SQL is
sent, so a violating flush raises and the surrounding transaction rolls
back without touching the database.

Bulk statements (session.execute(delete(...))) bypass mapper events; they
are only used by maintenance commands and test fixtures.
"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import object_session

from .models import Sale, SaleItem, InventoryLogEntry

PROTECTED_MODELS = (Sale, SaleItem, InventoryLogEntry)


class ImmutableRecordError(Exception):
    """Raised when code tries to update or delete an append-only record."""

    def __init__(self, entity_type: str, entity_id, operation: str):
        super().__init__(f"{entity_type} {entity_id} is immutable ({operation} blocked)")
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation


def _check_update(mapper, connection, target):
    session = object_session(target)
    # Collection changes (e.g. sale.items loading) mark the parent dirty
    # without any column change; only column writes are violations.
    if session is not None and not session.is_modified(target, include_collections=False):
        return
    raise ImmutableRecordError(type(target).__name__, target.id, "UPDATE")


def _check_delete(mapper, connection, target):
    raise ImmutableRecordError(type(target).__name__, target.id, "DELETE")


def register_immutability_listeners() -> None:
    """Register listeners once at startup. Safe to call repeatedly."""
    for model in PROTECTED_MODELS:
        if not event.contains(model, "before_update", _check_update):
            event.listen(model, "before_update", _check_update)
        if not event.contains(model, "before_delete", _check_delete):
            event.listen(model, "before_delete", _check_delete)


def unregister_immutability_listeners() -> None:
    for model in PROTECTED_MODELS:
        if event.contains(model, "before_update", _check_update):
            event.remove(model, "before_update", _check_update)
        if event.contains(model, "before_delete", _check_delete):
            event.remove(model, "before_delete", _check_delete)
