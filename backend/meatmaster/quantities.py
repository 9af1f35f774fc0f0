from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional

# Stock, basket and ledger quantities are Numeric(12, 3): weight-based
# products ("kg") are sold to the gram.
QUANTITY_PLACES = 3
QUANTITY_QUANTUM = Decimal(1).scaleb(-QUANTITY_PLACES)


def to_quantity(value) -> Decimal:
    """
    Coerce int / str / Decimal input to a Decimal quantity.

    Floats go through str() so 1.1 stays 1.1 instead of its binary expansion.
    Raises ValueError for booleans, non-finite values and more than three
    decimal places.
    """
    if isinstance(value, bool):
        raise ValueError("quantity must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        qty = Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError("quantity must be a number")
    if not qty.is_finite():
        raise ValueError("quantity must be a number")
    try:
        rounded = qty.quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError("quantity is out of range")
    if qty != rounded:
        raise ValueError(f"quantity supports at most {QUANTITY_PLACES} decimal places")
    return qty


def line_subtotal_cents(unit_price_cents: int, quantity: Decimal) -> int:
    """unit price x quantity, nearest-cent rounding (half-up)."""
    return int((Decimal(unit_price_cents) * quantity).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_quantity(value: Optional[Decimal]) -> Optional[str]:
    """Serialize a quantity without trailing zeros ("2.500" -> "2.5", "48.000" -> "48")."""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    text = format(value.normalize(), "f")
    return "0" if text in {"-0", ""} else text
