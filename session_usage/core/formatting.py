"""
Number and name formatting shared by the view and the table.
"""

import math


def format_count(n: float) -> str:
    """Format a count with a B/M/K suffix once it gets large."""
    if not math.isfinite(n) or n == 0:
        return "0"
    if n >= 1_000_000_000:
        return f"{n / 1_000_000_000:.1f}B"
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    if float(n).is_integer():
        return f"{int(n):,}"
    return f"{n:,.3f}".rstrip("0").rstrip(".")


def format_cost(amount: float, places: int = 2) -> str:
    return f"${amount:.{places}f}"


def display_model_name(model_key: str) -> str:
    """Strip the provider prefix from a `provider/family` key."""
    _, sep, family = model_key.partition("/")
    return family if sep else model_key


def provider_of(model_key: str) -> str:
    """Provider part of a `provider/family` key (the whole key when bare)."""
    return model_key.partition("/")[0]


def share_percent(value: float, denominator: float) -> int:
    """Whole-number share of a total, rounded half up; 0 for an empty total."""
    if denominator <= 0:
        return 0
    return int(math.floor(value / denominator * 100 + 0.5))
