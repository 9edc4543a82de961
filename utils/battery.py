"""Battery storage investment, OPEX, and arbitrage revenue."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

from utils.constants import (
    BATTERY_ARBITRAGE_DEGRADATION,
    BATTERY_DEGRADATION_RESET_YEAR,
    BATTERY_INVESTMENT_FACTORS,
    BATTERY_SYSTEM_LABEL,
    DAYS_PER_YEAR,
    KWH_PER_MWH,
)
from utils.scaling import Breakdown, breakdown_total

BatteryRevenueFn = Callable[[int], float]


@dataclass(frozen=True)
class BatterySettings:
    """Battery sizing and price assumptions.

    Units:
    - ``capacity``: MW of battery power.
    - ``storage_duration``: hours at rated power.
    - ``cost_per_mw``: EUR per MW for the battery system itself.
    - ``peak_solar_price`` / ``evening_peak_price``: EUR/kWh paid to charge
      and earned on discharge.
    """

    capacity: float = 100.0
    storage_duration: float = 2.0
    cost_per_mw: float = 200_000.0
    peak_solar_price: float = 0.02
    evening_peak_price: float = 0.16


@dataclass(frozen=True)
class BatteryOpexRates:
    """Yearly battery OPEX as percentages (0-100) of total battery investment."""

    maintenance: float = 1.0
    insurance: float = 0.5
    replacement_reserve: float = 5.0


@dataclass(frozen=True)
class BatteryCosts:
    investment: float = 0.0
    opex: float = 0.0


def build_battery_investment_breakdown(settings: BatterySettings) -> Breakdown:
    """Battery system plus per-MW installation, grid, and control components."""

    return ((BATTERY_SYSTEM_LABEL, settings.capacity * settings.cost_per_mw),) + tuple(
        (name, settings.capacity * factor) for name, factor in BATTERY_INVESTMENT_FACTORS
    )


def calculate_battery_costs(
    has_battery_storage: bool,
    investment_breakdown: Sequence[Tuple[str, float]],
    opex_rates: BatteryOpexRates,
) -> BatteryCosts:
    """Total battery investment and the yearly OPEX it implies.

    The three OPEX percentages are summed and applied once to the investment
    total. A disabled battery costs nothing regardless of the breakdown.
    """

    if not has_battery_storage:
        return BatteryCosts(investment=0.0, opex=0.0)

    investment = breakdown_total(investment_breakdown)
    opex = investment * (
        opex_rates.maintenance / 100
        + opex_rates.insurance / 100
        + opex_rates.replacement_reserve / 100
    )
    return BatteryCosts(investment=investment, opex=opex)


def arbitrage_degradation(year: int) -> float:
    """Arbitrage efficiency factor for ``year``.

    The exponent restarts after year 15, so year 16 is back at full
    efficiency.
    """

    exponent = year - 1
    if year > BATTERY_DEGRADATION_RESET_YEAR:
        exponent -= BATTERY_DEGRADATION_RESET_YEAR
    return (1 - BATTERY_ARBITRAGE_DEGRADATION) ** exponent


def calculate_battery_revenue(year: int, settings: BatterySettings) -> float:
    """Yearly margin from charging at the solar peak and selling in the evening."""

    storage_kwh = settings.capacity * settings.storage_duration * KWH_PER_MWH
    daily_cost = storage_kwh * settings.peak_solar_price
    daily_revenue = storage_kwh * settings.evening_peak_price * arbitrage_degradation(year)
    return (daily_revenue - daily_cost) * DAYS_PER_YEAR


def make_battery_revenue_fn(has_battery_storage: bool, settings: BatterySettings) -> BatteryRevenueFn:
    """Bind battery settings into the per-year revenue callback used by the projector."""

    if not has_battery_storage:
        return no_battery_revenue

    def _revenue(year: int) -> float:
        return calculate_battery_revenue(year, settings)

    return _revenue


def no_battery_revenue(year: int) -> float:
    return 0.0


__all__ = [
    "BatteryRevenueFn",
    "BatterySettings",
    "BatteryOpexRates",
    "BatteryCosts",
    "build_battery_investment_breakdown",
    "calculate_battery_costs",
    "arbitrage_degradation",
    "calculate_battery_revenue",
    "make_battery_revenue_fn",
    "no_battery_revenue",
]
