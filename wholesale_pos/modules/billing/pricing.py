"""
billing/pricing.py

Pure bill math: per-item discounts, subtotal, whole-bill discount and the
payable total. Mirrors what BillsRepo persists, so a bill shown in the cart
and the row written to `bills` always agree to the cent.

Do not import repos or open DB connections here.
Only compute numbers; formatting belongs in the UI.

Rules:
  - Per-line money values are round2()-ed right after the multiplication
    that produced them.
  - Subtotal is round2(sum(base price * qty)): base prices are summed
    unrounded and rounded once. Item discounts are reported separately.
  - The bill discount applies to (subtotal - item discounts), once.
  - Percentages outside [0, 100] are rejected, not clamped.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ...errors import ValidationError
from ...utils.helpers import round2
from ...utils.validators import non_empty, try_parse_float, is_whole_number

__all__ = [
    "round2",
    "CartLine",
    "PricedLine",
    "BillTotals",
    "validate_percent",
    "final_price",
    "price_line",
    "compute_totals",
]


@dataclass(frozen=True)
class CartLine:
    """One cart entry as handed to the pricing engine and to BillsRepo."""
    name: str
    base_price: float
    quantity: int
    discount_percent: float = 0.0
    product_id: int | None = None


@dataclass(frozen=True)
class PricedLine:
    name: str
    product_id: int | None
    quantity: int
    rate: float
    final_rate: float
    discount_percent: float
    discount_amount: float
    total: float


@dataclass(frozen=True)
class BillTotals:
    lines: tuple[PricedLine, ...]
    subtotal: float
    item_discount_amount: float
    bill_discount_percent: float
    bill_discount_amount: float
    total_amount: float

    @property
    def amount_after_item_discount(self) -> float:
        return round2(self.subtotal - self.item_discount_amount)

    @property
    def item_count(self) -> int:
        return sum(ln.quantity for ln in self.lines)


# -----------------------------
# Input checks
# -----------------------------

def validate_percent(value, label: str = "Discount") -> float:
    """None/blank -> 0.0; otherwise a number in [0, 100] or ValidationError."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return 0.0
    ok, pct = try_parse_float(value)
    if not ok:
        raise ValidationError(f"{label} must be a number.")
    if pct < 0 or pct > 100:
        raise ValidationError(f"{label} must be between 0 and 100 (got {pct:g}).")
    return pct


def _validate_line(line: CartLine) -> tuple[float, int, float]:
    if not non_empty(line.name):
        raise ValidationError("Every bill item needs a name.")
    ok, base = try_parse_float(line.base_price)
    if not ok or base < 0:
        raise ValidationError(f"Rate for {line.name} must be a number >= 0.")
    if not is_whole_number(line.quantity) or float(line.quantity) <= 0:
        raise ValidationError(f"Quantity for {line.name} must be a whole number > 0.")
    pct = validate_percent(line.discount_percent, f"Discount for {line.name}")
    return base, int(float(line.quantity)), pct


# -----------------------------
# Per-item math
# -----------------------------

def final_price(base_price: float, discount_percent: float = 0.0) -> float:
    """Unit price after the item discount; the base price when there is none."""
    if discount_percent and discount_percent > 0:
        return round2(base_price * (1 - discount_percent / 100))
    return base_price


def price_line(line: CartLine) -> PricedLine:
    base, qty, pct = _validate_line(line)
    final = final_price(base, pct)
    return PricedLine(
        name=line.name.strip(),
        product_id=line.product_id,
        quantity=qty,
        rate=base,
        final_rate=final,
        discount_percent=pct if pct > 0 else 0.0,
        discount_amount=round2((base - final) * qty),
        total=round2(final * qty),
    )


# -----------------------------
# Whole-bill math
# -----------------------------

def compute_totals(lines: Iterable[CartLine], bill_discount_percent=0.0) -> BillTotals:
    """
    Price every line and roll the bill up. An empty cart yields all zeros;
    refusing to save one is BillsRepo's job.
    """
    bill_pct = validate_percent(bill_discount_percent, "Bill discount")
    priced = tuple(price_line(ln) for ln in lines)

    subtotal = round2(sum(p.rate * p.quantity for p in priced))
    item_discount = round2(sum(p.discount_amount for p in priced))

    bill_discount = 0.0
    if bill_pct > 0:
        bill_discount = round2((subtotal - item_discount) * bill_pct / 100)

    return BillTotals(
        lines=priced,
        subtotal=subtotal,
        item_discount_amount=item_discount,
        bill_discount_percent=bill_pct,
        bill_discount_amount=bill_discount,
        total_amount=round2(subtotal - item_discount - bill_discount),
    )
