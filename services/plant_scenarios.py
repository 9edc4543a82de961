"""Capacity-driven plant setup and fixed vs. tracking mount comparison."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

import pandas as pd

from services.projection_core import FinancialResult, ScalarSettings, compute_financials
from utils.battery import (
    BatteryCosts,
    BatteryOpexRates,
    BatterySettings,
    build_battery_investment_breakdown,
    calculate_battery_costs,
    make_battery_revenue_fn,
)
from utils.constants import BASE_FIXED_ENERGY_YIELD_PER_MW, BASE_TRACKING_ENERGY_YIELD_PER_MW
from utils.scaling import (
    Breakdown,
    breakdown_total,
    full_investment_breakdown,
    scaled_construction_cost,
    scaled_investment_breakdown,
    scaled_opex_breakdown,
)

SYSTEMS: tuple[str, ...] = ("fixed", "tracking")


@dataclass(frozen=True)
class PlantConfiguration:
    """Plant-level choices that drive both mount variants.

    Units:
    - ``capacity_mw``: installed PV capacity in MW.
    - ``*_energy_yield_per_mw``: MWh/year per MW before degradation.

    When ``battery_settings`` is omitted the battery is sized at 100 % of
    plant capacity with default prices.
    """

    capacity_mw: float = 100.0
    is_levered: bool = False
    has_battery_storage: bool = False
    fixed_energy_yield_per_mw: float = BASE_FIXED_ENERGY_YIELD_PER_MW
    tracking_energy_yield_per_mw: float = BASE_TRACKING_ENERGY_YIELD_PER_MW
    settings: ScalarSettings = field(default_factory=ScalarSettings)
    battery_settings: Optional[BatterySettings] = None
    battery_opex_rates: BatteryOpexRates = field(default_factory=BatteryOpexRates)

    def resolved_battery_settings(self) -> BatterySettings:
        if self.battery_settings is not None:
            return self.battery_settings
        return BatterySettings(capacity=self.capacity_mw * 1.0)


@dataclass(frozen=True)
class SystemInputs:
    """Engine inputs for one mount type, derived from a :class:`PlantConfiguration`."""

    system: str
    energy_yield_mwh: float
    investment_breakdown: Breakdown
    opex_breakdown: Breakdown
    initial_investment: float
    yearly_opex: float


@dataclass(frozen=True)
class SystemComparison:
    fixed: FinancialResult
    tracking: FinancialResult
    battery_costs: BatteryCosts
    battery_investment_breakdown: Breakdown

    def for_system(self, system: str) -> FinancialResult:
        return self.fixed if select_system(system) == "fixed" else self.tracking


def select_system(system: str) -> str:
    normalized = system.strip().lower()
    if normalized not in SYSTEMS:
        raise ValueError(f"Unsupported system '{system}'. Use one of {SYSTEMS}.")
    return normalized


def build_system_inputs(config: PlantConfiguration, system: str) -> SystemInputs:
    """Scale the cost tables to plant capacity for one mount type."""

    is_fixed = select_system(system) == "fixed"
    capacity = config.capacity_mw
    investment = full_investment_breakdown(
        scaled_investment_breakdown(capacity),
        scaled_construction_cost(capacity, is_fixed),
        is_fixed,
    )
    opex = scaled_opex_breakdown(capacity, is_fixed)
    yield_per_mw = config.fixed_energy_yield_per_mw if is_fixed else config.tracking_energy_yield_per_mw

    return SystemInputs(
        system="fixed" if is_fixed else "tracking",
        energy_yield_mwh=yield_per_mw * capacity,
        investment_breakdown=investment,
        opex_breakdown=opex,
        initial_investment=breakdown_total(investment),
        yearly_opex=breakdown_total(opex),
    )


def run_system(config: PlantConfiguration, system: str) -> FinancialResult:
    """Run the engine for one mount type."""

    battery_costs, _ = _battery_inputs(config)
    return _run_system(config, build_system_inputs(config, system), battery_costs)


def compare_systems(config: PlantConfiguration) -> SystemComparison:
    """Run the engine for both mount types with shared battery assumptions."""

    battery_costs, battery_breakdown = _battery_inputs(config)
    results = {
        system: _run_system(config, build_system_inputs(config, system), battery_costs)
        for system in SYSTEMS
    }
    return SystemComparison(
        fixed=results["fixed"],
        tracking=results["tracking"],
        battery_costs=battery_costs,
        battery_investment_breakdown=battery_breakdown,
    )


def _battery_inputs(config: PlantConfiguration) -> tuple[BatteryCosts, Breakdown]:
    breakdown = build_battery_investment_breakdown(config.resolved_battery_settings())
    costs = calculate_battery_costs(config.has_battery_storage, breakdown, config.battery_opex_rates)
    return costs, breakdown


def _run_system(
    config: PlantConfiguration,
    system_inputs: SystemInputs,
    battery_costs: BatteryCosts,
) -> FinancialResult:
    settings = replace(config.settings, yearly_opex=system_inputs.yearly_opex)
    return compute_financials(
        system_inputs.energy_yield_mwh,
        system_inputs.initial_investment,
        settings,
        config.is_levered,
        config.has_battery_storage,
        battery_costs,
        make_battery_revenue_fn(config.has_battery_storage, config.resolved_battery_settings()),
    )


def cash_flow_chart_frame(comparison: SystemComparison) -> pd.DataFrame:
    """Yearly and cumulative cash flow for both mounts."""

    return pd.DataFrame(
        [
            {
                "year": fixed.year,
                "fixed_cash_flow": fixed.cash_flow,
                "tracking_cash_flow": tracking.cash_flow,
                "fixed_cumulative_cash_flow": fixed.cumulative_cash_flow,
                "tracking_cumulative_cash_flow": tracking.cumulative_cash_flow,
            }
            for fixed, tracking in zip(comparison.fixed.yearly_data, comparison.tracking.yearly_data)
        ]
    )


def revenue_chart_frame(comparison: SystemComparison) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "year": fixed.year,
                "fixed_revenue": fixed.revenue,
                "tracking_revenue": tracking.revenue,
                "fixed_net_profit": fixed.net_profit,
                "tracking_net_profit": tracking.net_profit,
            }
            for fixed, tracking in zip(comparison.fixed.yearly_data, comparison.tracking.yearly_data)
        ]
    )


def dscr_chart_frame(comparison: SystemComparison, settings: ScalarSettings) -> pd.DataFrame:
    """DSCR for the years covered by the loan (and the operating period)."""

    rows = min(settings.loan_term, settings.operation_time)
    pairs = list(zip(comparison.fixed.yearly_data, comparison.tracking.yearly_data))[:rows]
    return pd.DataFrame(
        [
            {"year": fixed.year, "fixed_dscr": fixed.dscr, "tracking_dscr": tracking.dscr}
            for fixed, tracking in pairs
        ],
        columns=["year", "fixed_dscr", "tracking_dscr"],
    )


__all__ = [
    "SYSTEMS",
    "PlantConfiguration",
    "SystemInputs",
    "SystemComparison",
    "select_system",
    "build_system_inputs",
    "run_system",
    "compare_systems",
    "cash_flow_chart_frame",
    "revenue_chart_frame",
    "dscr_chart_frame",
]
