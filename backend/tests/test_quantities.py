from decimal import Decimal

import pytest

from meatmaster.quantities import to_quantity, line_subtotal_cents, format_quantity


class TestToQuantity:

    def test_accepts_numbers_and_strings(self):
        assert to_quantity(2) == Decimal("2")
        assert to_quantity("1.250") == Decimal("1.25")
        assert to_quantity(1.1) == Decimal("1.1")

    @pytest.mark.parametrize("value", [True, "abc", None, "NaN", "Infinity", "0.0001", "1e30"])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            to_quantity(value)


class TestLineSubtotal:

    @pytest.mark.parametrize("price,qty,expected", [
        (8990, "2", 17980),
        (3490, "3", 10470),
        (8990, "0.333", 2994),
        (1000, "0.0005", 1),
        (1000, "0.0004", 0),
        (8990, "1.255", 11282),
    ])
    def test_half_up_to_cent(self, price, qty, expected):
        assert line_subtotal_cents(price, Decimal(qty)) == expected


def test_format_quantity():
    assert format_quantity(Decimal("48.000")) == "48"
    assert format_quantity(Decimal("2.500")) == "2.5"
    assert format_quantity(Decimal("-0.000")) == "0"
    assert format_quantity(None) is None
