"""
Billing module: pure pricing math and the in-memory cart.

Qt item models live in `billing.model` and are imported separately so the
engine can be used without PySide6 loaded.
"""
from .pricing import (
    round2,
    CartLine,
    PricedLine,
    BillTotals,
    validate_percent,
    final_price,
    price_line,
    compute_totals,
)
from .cart import Cart

__all__ = [
    "round2",
    "CartLine",
    "PricedLine",
    "BillTotals",
    "validate_percent",
    "final_price",
    "price_line",
    "compute_totals",
    "Cart",
]
