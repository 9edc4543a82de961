"""Display formatting for metrics and cost inputs.

Missing values (for example an indeterminate IRR) render as ``"N/A"`` so
they are never mistaken for zero.
"""
from __future__ import annotations

from typing import Optional, Union

NOT_AVAILABLE = "N/A"

Number = Union[int, float]


def format_number(value: Optional[Number]) -> str:
    """``1234.5`` -> ``"1,234.50"``."""

    if value is None:
        return NOT_AVAILABLE
    return f"{value:,.2f}"


def format_currency(value: Optional[Number]) -> str:
    """Whole euros with thousands separators, e.g. ``"€1,235"`` or ``"-€500"``."""

    if value is None:
        return NOT_AVAILABLE
    rounded = round(value)
    sign = "-" if rounded < 0 else ""
    return f"{sign}€{abs(rounded):,.0f}"


def format_percentage(value: Optional[Number]) -> str:
    """Fraction to percent: ``0.0525`` -> ``"5.25%"``."""

    if value is None:
        return NOT_AVAILABLE
    return f"{value * 100:.2f}%"


def format_chart_currency(value: Optional[Number]) -> str:
    """Compact axis labels with K/M suffixes."""

    if value is None:
        return ""
    if abs(value) >= 1_000_000:
        return f"€{value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"€{value / 1_000:.1f}K"
    return f"€{value:.0f}"


def parse_cost_input(value: Optional[Union[str, Number]]) -> str:
    """Strip thousands separators from a user-entered cost."""

    if value is None or value == "":
        return ""
    return str(value).replace(",", "")


def format_cost_input(value: Optional[Union[str, Number]]) -> str:
    """Re-insert thousands separators; unparseable input yields ``""``."""

    cleaned = parse_cost_input(value)
    if not cleaned:
        return ""
    try:
        number = float(cleaned)
    except ValueError:
        return ""
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def round_or_na(value: Optional[Number], places: int = 2) -> Union[float, str]:
    """Round for tabular export, keeping missing values visible."""

    if value is None:
        return NOT_AVAILABLE
    return round(float(value), places)


__all__ = [
    "NOT_AVAILABLE",
    "format_number",
    "format_currency",
    "format_percentage",
    "format_chart_currency",
    "parse_cost_input",
    "format_cost_input",
    "round_or_na",
]
