"""
Tests for the pure billing math in wholesale_pos.modules.billing.pricing.
"""
from __future__ import annotations

import pytest

from wholesale_pos.errors import ValidationError
from wholesale_pos.modules.billing import (
    CartLine,
    compute_totals,
    final_price,
    price_line,
    round2,
    validate_percent,
)


# ---------------------------------------------------------------------------
# Worked scenarios
# ---------------------------------------------------------------------------

def test_no_discounts():
    t = compute_totals([CartLine("Rice", 100, 2)])
    assert t.subtotal == 200
    assert t.item_discount_amount == 0
    assert t.bill_discount_amount == 0
    assert t.total_amount == 200


def test_item_discount():
    t = compute_totals([CartLine("Rice", 100, 2, discount_percent=10)])
    (ln,) = t.lines
    assert ln.final_rate == 90
    assert ln.total == 180
    assert ln.discount_amount == 20
    assert t.item_discount_amount == 20
    assert t.subtotal == 200
    assert t.total_amount == 180


def test_item_and_bill_discount():
    t = compute_totals([CartLine("Rice", 100, 2, discount_percent=10)], bill_discount_percent=5)
    assert t.amount_after_item_discount == 180
    assert t.bill_discount_amount == 9
    assert t.total_amount == 171


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw, expected",
    [(2.345, 2.35), (-2.345, -2.35), (1.005, 1.01), (2.344, 2.34), (10, 10.0)],
)
def test_round2_halves_away_from_zero(raw, expected):
    assert round2(raw) == expected


def test_final_price_rounds_after_multiplication():
    # 33.33 * 0.85 = 28.3305
    assert final_price(33.33, 15) == 28.33
    assert final_price(33.33, 0) == 33.33


def test_subtotal_sums_base_amounts_before_rounding():
    # 0.125 + 0.125 rounds once to 0.25; rounding each line first would give 0.26
    t = compute_totals([CartLine("a", 0.125, 1), CartLine("b", 0.125, 1)])
    assert t.subtotal == 0.25
    assert t.total_amount == 0.25


def test_bill_discount_is_rounded_once():
    # (3 * 19.99) = 59.97, 7.5% of it = 4.49775
    t = compute_totals([CartLine("Soap", 19.99, 3)], bill_discount_percent=7.5)
    assert t.bill_discount_amount == 4.50
    assert t.total_amount == 55.47


def test_money_invariant_holds_across_mixed_carts():
    carts = [
        ([CartLine("A", 19.99, 3, 12.5), CartLine("B", 7.35, 11, 3)], 2.5),
        ([CartLine("C", 0.99, 97, 33.3)], 17),
        ([CartLine("D", 1234.56, 1), CartLine("E", 0, 4, 50)], 0),
        ([CartLine("F", 45.45, 7, 100)], 10),
    ]
    for lines, bill_pct in carts:
        t = compute_totals(lines, bill_pct)
        assert t.total_amount == round2(
            t.subtotal - t.item_discount_amount - t.bill_discount_amount
        )
        for ln in t.lines:
            assert ln.total == round2(ln.final_rate * ln.quantity)
            if ln.discount_percent > 0:
                assert ln.final_rate <= ln.rate


def test_full_item_discount_makes_line_free():
    ln = price_line(CartLine("Sample", 45.45, 2, 100))
    assert ln.final_rate == 0
    assert ln.total == 0
    assert ln.discount_amount == 90.90


def test_empty_cart_is_all_zero():
    t = compute_totals([])
    assert (t.subtotal, t.item_discount_amount, t.total_amount) == (0, 0, 0)
    assert t.item_count == 0


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("bad", [101, -0.01, "abc"])
def test_out_of_range_percent_is_rejected(bad):
    with pytest.raises(ValidationError):
        validate_percent(bad)


def test_blank_percent_means_no_discount():
    assert validate_percent(None) == 0.0
    assert validate_percent("  ") == 0.0
    assert validate_percent("12.5") == 12.5


def test_bill_discount_over_100_is_not_clamped():
    with pytest.raises(ValidationError):
        compute_totals([CartLine("Rice", 100, 1)], bill_discount_percent=150)


@pytest.mark.parametrize(
    "line",
    [
        CartLine("Rice", 100, 0),
        CartLine("Rice", 100, 1.5),
        CartLine("Rice", -1, 1),
        CartLine("  ", 100, 1),
        CartLine("Rice", 100, 1, discount_percent=120),
    ],
)
def test_bad_lines_are_rejected(line):
    with pytest.raises(ValidationError):
        price_line(line)
