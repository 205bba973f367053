# utils/helpers.py
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import logging
from typing import Union, Optional

from ..constants import MONEY_PLACES

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)


_CENT = Decimal("0.01")


def round2(x: NumberLike) -> float:
    """
    Round a money value to 2 places, halves away from zero (2.345 -> 2.35,
    -2.345 -> -2.35). Goes through str() so 1.005 rounds as written, not as
    its binary approximation.
    """
    return float(Decimal(str(x)).quantize(_CENT, rounding=ROUND_HALF_UP))


def today_str() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def now_iso() -> str:
    """UTC timestamp used for products.updatedAt."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def fmt_money(
    v: NumberLike,
    places: int = MONEY_PLACES,
    *,
    strict: bool = False,
    sentinel: Optional[str] = None,
) -> str:
    """
    Format a number as money with thousands separators and a fixed number of decimals.

    Behavior on parse failure:
      - By default (strict=False, sentinel=None), returns str(v).
      - If `sentinel` is provided (e.g., "N/A"), returns that sentinel instead.
      - If `strict=True`, raises ValueError on parse failures.
    """
    try:
        x = float(v)
    except Exception as e:
        _log.debug("fmt_money: failed to parse %r as float: %s", v, e)
        if strict:
            raise ValueError(f"Could not parse {v!r} as a number.") from e
        return str(sentinel) if sentinel is not None else str(v)
    return f"{x:,.{places}f}"
