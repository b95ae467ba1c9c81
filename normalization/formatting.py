"""
Display formatting for keyword metrics.
"""
import math
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Any

# Wide enough to hold any finite float exactly
_DECIMAL_CONTEXT = Context(prec=1000, rounding=ROUND_HALF_UP)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _fixed(value: Decimal, places: int) -> str:
    """Fixed-decimal string, ties rounded away from zero."""
    exponent = Decimal(1).scaleb(-places)
    return str(value.quantize(exponent, context=_DECIMAL_CONTEXT))


def format_metric_value(metric: str, value: Any) -> str:
    """
    Format a metric value for display.

    Args:
        metric: One of volume, difficulty, competition, cpc
        value: Metric value, None when not reported

    Returns:
        Display string, "-" for missing values. Never raises; unexpected
        values are stringified.
    """
    if value is None:
        return "-"

    if not _is_number(value):
        return str(value)

    try:
        as_float = float(value)
    except OverflowError:
        return str(value)

    if math.isnan(as_float):
        return "-"

    if math.isinf(as_float):
        return str(value)

    exact = Decimal(value)

    if metric == "volume":
        if value >= 1_000_000:
            return f"{_fixed(_DECIMAL_CONTEXT.divide(exact, 1_000_000), 1)}M"
        if value >= 1_000:
            return f"{_fixed(_DECIMAL_CONTEXT.divide(exact, 1_000), 1)}K"
        return str(int(value)) if as_float.is_integer() else str(value)

    if metric == "difficulty":
        return _fixed(exact, 0)

    if metric == "competition":
        if value <= 1:
            return f"{_fixed(_DECIMAL_CONTEXT.multiply(exact, 100), 0)}%"
        return _fixed(exact, 0)

    if metric == "cpc":
        return f"${_fixed(exact, 2)}"

    return str(value)
