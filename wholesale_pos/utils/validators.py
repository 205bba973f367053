# utils/validators.py

def non_empty(text: str) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)
    """
    if x is None or isinstance(x, bool):
        return False, None
    try:
        return True, float(x)
    except (TypeError, ValueError):
        return False, None


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)


def is_whole_number(x) -> bool:
    """
    True iff x is an int, or a float/str holding an integral value (5, 5.0, "5").
    Booleans are rejected.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and float(val).is_integer())


def is_percent(x) -> bool:
    """True iff x parses to a number within [0, 100]."""
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and 0.0 <= val <= 100.0)
