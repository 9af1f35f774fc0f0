from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import PAYMENT_METHODS, DELIVERY_TYPES, PRODUCT_UNITS
from .quantities import to_quantity


# Maximum price: R$ 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate slug)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_quantity(key: str, value: Any) -> Decimal:
    try:
        return to_quantity(value)
    except ValueError as e:
        raise ValidationError(f"{key}: {e}")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Quantities (stock, min stock, ledger deltas)
    if isinstance(coltype, Numeric):
        return _coerce_quantity(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(field: str, price: int) -> None:
    if price < 0:
        raise ValidationError(f"{field} must be >= 0")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("price_cents") is not None:
        _check_price("price_cents", patch["price_cents"])

    if patch.get("promotional_price_cents") is not None:
        _check_price("promotional_price_cents", patch["promotional_price_cents"])

    if "unit" in patch and patch["unit"] not in PRODUCT_UNITS:
        raise ValidationError(f"unit must be one of: {', '.join(PRODUCT_UNITS)}")

    if patch.get("stock_quantity") is not None and patch["stock_quantity"] < 0:
        raise ValidationError("stock_quantity must be >= 0")

    if patch.get("min_stock_level") is not None and patch["min_stock_level"] < 0:
        raise ValidationError("min_stock_level must be >= 0")


# =============================================================================
# SALE REQUEST
# =============================================================================

@dataclass(frozen=True)
class BasketLine:
    """One client-submitted basket line. Prices are never taken from the client."""
    product_id: int
    quantity: Decimal


@dataclass(frozen=True)
class SaleRequest:
    lines: tuple[BasketLine, ...]
    payment_method: str
    delivery_type: str = "pickup"
    delivery_fee_cents: int = 0
    customer_id: int | None = None


SALE_REQUEST_FIELDS = {"items", "payment_method", "delivery_type", "delivery_fee_cents", "customer_id"}
BASKET_LINE_FIELDS = {"product_id", "quantity"}


def _parse_basket_line(index: int, raw: Any) -> BasketLine:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")

    unknown = set(raw) - BASKET_LINE_FIELDS
    if unknown:
        raise ValidationError(f"items[{index}]: field not allowed: {', '.join(sorted(unknown))}")

    if raw.get("product_id") is None:
        raise ValidationError(f"items[{index}].product_id is required")
    if raw.get("quantity") is None:
        raise ValidationError(f"items[{index}].quantity is required")

    product_id = _coerce_int(f"items[{index}].product_id", raw["product_id"])
    quantity = _coerce_quantity(f"items[{index}].quantity", raw["quantity"])
    if quantity <= 0:
        raise ValidationError(f"items[{index}].quantity must be > 0")

    return BasketLine(product_id=product_id, quantity=quantity)


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Validate a POST /api/sales body into a SaleRequest.

    An empty items list is accepted here; the sale engine rejects it
    with EmptyBasketError so callers see one error for it everywhere.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = set(payload) - SALE_REQUEST_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    items = payload.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    payment_method = payload.get("payment_method")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    delivery_type = payload.get("delivery_type") or "pickup"
    if delivery_type not in DELIVERY_TYPES:
        raise ValidationError(f"delivery_type must be one of: {', '.join(DELIVERY_TYPES)}")

    delivery_fee_cents = 0
    if payload.get("delivery_fee_cents") is not None:
        delivery_fee_cents = _coerce_int("delivery_fee_cents", payload["delivery_fee_cents"])
        _check_price("delivery_fee_cents", delivery_fee_cents)

    customer_id = None
    if payload.get("customer_id") is not None:
        customer_id = _coerce_int("customer_id", payload["customer_id"])

    return SaleRequest(
        lines=tuple(_parse_basket_line(i, raw) for i, raw in enumerate(items)),
        payment_method=payment_method,
        delivery_type=delivery_type,
        delivery_fee_cents=delivery_fee_cents,
        customer_id=customer_id,
    )


# =============================================================================
# INVENTORY ADJUSTMENT
# =============================================================================

@dataclass(frozen=True)
class InventoryAdjustment:
    product_id: int
    quantity_change: Decimal
    type: str
    reason: str | None = None


ADJUSTMENT_FIELDS = {"product_id", "quantity_change", "type", "reason"}


def parse_inventory_adjustment(payload: Any) -> InventoryAdjustment:
    """
    Validate a POST /api/inventory/adjust body.

    Movement type and sign rules are checked by the ledger, not here.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = set(payload) - ADJUSTMENT_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    missing = sorted(f for f in ("product_id", "quantity_change", "type") if payload.get(f) is None)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    reason = payload.get("reason")
    if reason is not None:
        reason = str(reason).strip()[:255] or None

    return InventoryAdjustment(
        product_id=_coerce_int("product_id", payload["product_id"]),
        quantity_change=_coerce_quantity("quantity_change", payload["quantity_change"]),
        type=str(payload["type"]).strip().lower(),
        reason=reason,
    )
