"""Capacity scaling for per-MW cost tables."""
from __future__ import annotations

from typing import AbstractSet, Sequence, Tuple

from utils.constants import (
    BASE_INVESTMENT_PER_MW,
    BASE_STATIC_CONSTRUCTION_COST_PER_MW,
    BASE_STATIC_OPEX_PER_MW,
    BASE_TRACKER_CONSTRUCTION_COST_PER_MW,
    BASE_TRACKER_OPEX_PER_MW,
    ECONOMIES_OF_SCALE_EXPONENT,
    STATIC_CONSTRUCTION_LABEL,
    SUBLINEAR_INVESTMENT_COMPONENTS,
    SUBLINEAR_OPEX_COMPONENTS,
    TRACKER_CONSTRUCTION_LABEL,
    CostTable,
)

Breakdown = Tuple[Tuple[str, float], ...]


def scale_with_capacity(base_value: float, capacity: float, exponent: float = 1.0) -> float:
    """Scale a per-MW value to ``capacity`` MW.

    ``exponent`` of 1 is linear per-MW scaling; values below 1 model
    economies of scale.
    """

    return base_value * capacity**exponent


def scale_breakdown(
    base_table: CostTable,
    capacity: float,
    sublinear_components: AbstractSet[str] = frozenset(),
    exponent: float = ECONOMIES_OF_SCALE_EXPONENT,
) -> Breakdown:
    """Scale every entry of a per-MW table, keeping the table order."""

    return tuple(
        (
            name,
            scale_with_capacity(value, capacity, exponent if name in sublinear_components else 1.0),
        )
        for name, value in base_table
    )


def breakdown_total(breakdown: Sequence[Tuple[str, float]]) -> float:
    return float(sum(value for _, value in breakdown))


def scaled_investment_breakdown(capacity: float) -> Breakdown:
    """Shared (mount-independent) investment components for a plant."""

    return scale_breakdown(BASE_INVESTMENT_PER_MW, capacity, SUBLINEAR_INVESTMENT_COMPONENTS)


def scaled_construction_cost(capacity: float, is_fixed: bool) -> float:
    base = BASE_STATIC_CONSTRUCTION_COST_PER_MW if is_fixed else BASE_TRACKER_CONSTRUCTION_COST_PER_MW
    return scale_with_capacity(base, capacity)


def scaled_opex_breakdown(capacity: float, is_fixed: bool) -> Breakdown:
    base_table = BASE_STATIC_OPEX_PER_MW if is_fixed else BASE_TRACKER_OPEX_PER_MW
    return scale_breakdown(base_table, capacity, SUBLINEAR_OPEX_COMPONENTS)


def full_investment_breakdown(
    investment_breakdown: Sequence[Tuple[str, float]],
    construction_cost: float,
    is_fixed: bool,
) -> Breakdown:
    """Append the mount-specific construction cost as the last component."""

    label = STATIC_CONSTRUCTION_LABEL if is_fixed else TRACKER_CONSTRUCTION_LABEL
    return tuple((name, float(value or 0.0)) for name, value in investment_breakdown) + (
        (label, float(construction_cost or 0.0)),
    )


__all__ = [
    "Breakdown",
    "scale_with_capacity",
    "scale_breakdown",
    "breakdown_total",
    "scaled_investment_breakdown",
    "scaled_construction_cost",
    "scaled_opex_breakdown",
    "full_investment_breakdown",
]
