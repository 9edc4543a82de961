"""Year-by-year cash-flow ledger and investment metrics for a solar plant.

``project_cash_flows`` folds over operating years, threading the remaining
loan balance and cumulative cash flow as explicit state, and
``summarize_financials`` reduces the ledger to NPV, IRR, ROE, payback, and
DSCR. ``compute_financials`` chains the two and is the engine entry point.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from utils.battery import BatteryCosts, BatteryRevenueFn, no_battery_revenue
from utils.constants import CORPORATE_TAX, FIRST_YEAR_DEGRADATION, SUBSEQUENT_YEAR_DEGRADATION
from utils.economics import (
    amortize_year,
    calculate_pmt,
    compute_npv,
    degradation_curve,
    equity_amount,
    inflation_multiplier,
    loan_amount,
    solar_revenue,
    solve_irr,
)


@dataclass(frozen=True)
class ScalarSettings:
    """Financing and market assumptions for one analysis run.

    Rates are fractions, ``electricity_price_2025`` is EUR/kWh in the first
    operating year, and ``yearly_opex`` is the un-inflated year-1 OPEX in EUR.
    """

    operation_time: int = 35
    loan_percentage: float = 0.7
    loan_interest_rate: float = 0.035
    loan_term: int = 15
    inflation_rate: float = 0.04
    discount_rate: float = 0.06
    electricity_price_2025: float = 0.07
    yearly_opex: float = 0.0
    corporate_tax_rate: float = CORPORATE_TAX
    first_year_degradation: float = FIRST_YEAR_DEGRADATION
    subsequent_year_degradation: float = SUBSEQUENT_YEAR_DEGRADATION


@dataclass(frozen=True)
class YearRecord:
    year: int
    revenue: float
    opex: float
    depreciation: float
    interest: float
    principal: float
    taxable_income: float
    tax: float
    net_profit: float
    cash_flow: float
    cumulative_cash_flow: float
    dscr: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the field names downstream tables and charts read."""

        return {
            "year": self.year,
            "revenue": self.revenue,
            "opex": self.opex,
            "depreciation": self.depreciation,
            "interest": self.interest,
            "principal": self.principal,
            "taxableIncome": self.taxable_income,
            "tax": self.tax,
            "netProfit": self.net_profit,
            "cashFlow": self.cash_flow,
            "cumulativeCashFlow": self.cumulative_cash_flow,
            "dscr": self.dscr,
        }


@dataclass(frozen=True)
class FinancialResult:
    npv: float
    irr: Optional[float]
    roe: float
    payback_period: float
    average_dscr: Optional[float]
    total_profit: float
    initial_investment: float
    yearly_data: Tuple[YearRecord, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "npv": self.npv,
            "irr": self.irr,
            "roe": self.roe,
            "paybackPeriod": self.payback_period,
            "averageDSCR": self.average_dscr,
            "totalProfit": self.total_profit,
            "initialInvestment": self.initial_investment,
            "yearlyData": [record.to_dict() for record in self.yearly_data],
        }


@dataclass(frozen=True)
class ProjectionInputs:
    """Everything the year loop needs, resolved once per call."""

    energy_yield_mwh: float
    total_investment: float
    settings: ScalarSettings
    is_levered: bool
    has_battery_storage: bool
    battery_costs: BatteryCosts
    battery_revenue_fn: BatteryRevenueFn
    yearly_loan_payment: float
    depreciation: float
    upfront_outlay: float
    degradation_factors: np.ndarray


@dataclass(frozen=True)
class LedgerState:
    """State carried from one projected year into the next."""

    remaining_loan: float
    cumulative_cash_flow: float


def validate_settings(settings: ScalarSettings, is_levered: bool) -> None:
    """Raise ``ValueError`` for settings the projector cannot run on.

    The year loop needs at least one operating year, the loan must fit inside
    the operating period, and a levered run needs a non-zero equity share
    for ROE and the cumulative cash-flow baseline.
    """

    if settings.operation_time < 1:
        raise ValueError("Operation time must be at least 1 year.")
    if settings.loan_term < 1:
        raise ValueError("Loan term must be at least 1 year.")
    if settings.loan_term > settings.operation_time:
        raise ValueError(
            f"Loan term cannot be greater than operation time ({settings.operation_time} years)."
        )
    if is_levered and settings.loan_percentage >= 1:
        raise ValueError("Loan percentage must be below 100% for a levered analysis.")


def build_projection_inputs(
    energy_yield_mwh: float,
    initial_investment: float,
    settings: ScalarSettings,
    is_levered: bool,
    has_battery_storage: bool,
    battery_costs: BatteryCosts = BatteryCosts(),
    battery_revenue_fn: BatteryRevenueFn = no_battery_revenue,
) -> ProjectionInputs:
    """Resolve totals, the loan payment, and depreciation ahead of the year loop."""

    total_investment = initial_investment + battery_costs.investment
    loan = loan_amount(total_investment, settings.loan_percentage)
    equity = equity_amount(total_investment, settings.loan_percentage)
    yearly_loan_payment = 0.0
    if is_levered:
        yearly_loan_payment = calculate_pmt(settings.loan_interest_rate, settings.loan_term, loan)
    return ProjectionInputs(
        energy_yield_mwh=energy_yield_mwh,
        total_investment=total_investment,
        settings=settings,
        is_levered=is_levered,
        has_battery_storage=has_battery_storage,
        battery_costs=battery_costs,
        battery_revenue_fn=battery_revenue_fn,
        yearly_loan_payment=yearly_loan_payment,
        depreciation=total_investment / settings.operation_time,
        upfront_outlay=equity if is_levered else total_investment,
        degradation_factors=degradation_curve(
            settings.operation_time,
            settings.first_year_degradation,
            settings.subsequent_year_degradation,
        ),
    )


def project_year(state: LedgerState, year: int, inputs: ProjectionInputs) -> Tuple[LedgerState, YearRecord]:
    """Project one operating year and return the updated ledger state."""

    settings = inputs.settings
    within_loan = inputs.is_levered and year <= settings.loan_term

    revenue = solar_revenue(
        inputs.energy_yield_mwh,
        float(inputs.degradation_factors[year - 1]),
        year,
        settings.electricity_price_2025,
        settings.inflation_rate,
    ) + inputs.battery_revenue_fn(year)

    opex = settings.yearly_opex * inflation_multiplier(settings.inflation_rate, year)
    if inputs.has_battery_storage:
        opex += inputs.battery_costs.opex

    interest, principal, remaining_loan = amortize_year(
        state.remaining_loan,
        year,
        settings.loan_interest_rate,
        settings.loan_term,
        inputs.yearly_loan_payment,
        inputs.is_levered,
    )

    taxable_income = revenue - opex - inputs.depreciation - interest
    tax = max(0.0, taxable_income * settings.corporate_tax_rate)
    net_profit = taxable_income - tax
    cash_flow = net_profit + inputs.depreciation - principal
    cumulative_cash_flow = state.cumulative_cash_flow + cash_flow
    dscr = (revenue - opex - tax) / inputs.yearly_loan_payment if within_loan else None

    record = YearRecord(
        year=year,
        revenue=revenue,
        opex=opex,
        depreciation=inputs.depreciation,
        interest=interest,
        principal=principal,
        taxable_income=taxable_income,
        tax=tax,
        net_profit=net_profit,
        cash_flow=cash_flow,
        cumulative_cash_flow=cumulative_cash_flow,
        dscr=dscr,
    )
    return LedgerState(remaining_loan=remaining_loan, cumulative_cash_flow=cumulative_cash_flow), record


def project_cash_flows(inputs: ProjectionInputs) -> Tuple[YearRecord, ...]:
    """Build the ledger for years ``1..operation_time`` in order.

    Cumulative cash flow starts from the upfront outlay (equity when levered,
    the full investment otherwise) so year 1 already nets it off.
    """

    settings = inputs.settings
    if inputs.is_levered and settings.loan_term > settings.operation_time:
        logging.getLogger(__name__).warning(
            "Loan term (%s years) exceeds operation time (%s years); "
            "average DSCR still divides by the loan term.",
            settings.loan_term,
            settings.operation_time,
        )

    state = LedgerState(
        remaining_loan=loan_amount(inputs.total_investment, settings.loan_percentage),
        cumulative_cash_flow=-inputs.upfront_outlay,
    )
    records: List[YearRecord] = []
    for year in range(1, settings.operation_time + 1):
        state, record = project_year(state, year, inputs)
        records.append(record)
    return tuple(records)


def payback_period(cumulative_cash_flows: List[float], operation_time: int) -> float:
    """Years until cumulative cash flow turns non-negative.

    A crossing in the first year is reported as exactly 1; later crossings
    are interpolated linearly within the crossing year. No crossing returns
    ``operation_time``.
    """

    for idx, current in enumerate(cumulative_cash_flows):
        if current >= 0:
            if idx == 0:
                return 1.0
            previous = cumulative_cash_flows[idx - 1]
            return idx + abs(previous) / (current - previous)
    return float(operation_time)


def summarize_financials(inputs: ProjectionInputs, yearly_data: Tuple[YearRecord, ...]) -> FinancialResult:
    settings = inputs.settings
    cash_flows = [record.cash_flow for record in yearly_data]
    all_cash_flows = [-inputs.upfront_outlay] + cash_flows

    total_profit = sum(record.net_profit for record in yearly_data)
    roe = total_profit / settings.operation_time / inputs.upfront_outlay

    average_dscr: Optional[float] = None
    if inputs.is_levered:
        # Divides by the loan term rather than the count of covered years.
        average_dscr = sum(r.dscr for r in yearly_data if r.dscr is not None) / settings.loan_term

    return FinancialResult(
        npv=compute_npv(all_cash_flows, settings.discount_rate),
        irr=solve_irr(all_cash_flows),
        roe=roe,
        payback_period=payback_period(
            [record.cumulative_cash_flow for record in yearly_data], settings.operation_time
        ),
        average_dscr=average_dscr,
        total_profit=total_profit,
        initial_investment=inputs.total_investment,
        yearly_data=yearly_data,
    )


def compute_financials(
    energy_yield_mwh: float,
    initial_investment: float,
    settings: ScalarSettings,
    is_levered: bool,
    has_battery_storage: bool,
    battery_costs: BatteryCosts = BatteryCosts(),
    battery_revenue_fn: BatteryRevenueFn = no_battery_revenue,
) -> FinancialResult:
    """Project the plant's cash flows and summarize its investment metrics.

    Parameters
    ----------
    energy_yield_mwh
        Year-1 nameplate energy yield before degradation (MWh/year).
    initial_investment
        Plant investment excluding the battery (EUR); battery investment
        from ``battery_costs`` is added on top.
    settings
        Financing and market assumptions.
    is_levered
        Include debt financing (interest, principal, DSCR) when True.
    has_battery_storage
        Add battery OPEX to every year when True.
    battery_costs
        Output of :func:`utils.battery.calculate_battery_costs`.
    battery_revenue_fn
        Per-year battery revenue callback, see
        :func:`utils.battery.make_battery_revenue_fn`.
    """

    inputs = build_projection_inputs(
        energy_yield_mwh,
        initial_investment,
        settings,
        is_levered,
        has_battery_storage,
        battery_costs,
        battery_revenue_fn,
    )
    return summarize_financials(inputs, project_cash_flows(inputs))


def yearly_data_frame(result: FinancialResult) -> pd.DataFrame:
    """Ledger as a DataFrame using the serialized field names."""

    return pd.DataFrame([record.to_dict() for record in result.yearly_data])


__all__ = [
    "ScalarSettings",
    "YearRecord",
    "FinancialResult",
    "ProjectionInputs",
    "LedgerState",
    "validate_settings",
    "build_projection_inputs",
    "project_year",
    "project_cash_flows",
    "payback_period",
    "summarize_financials",
    "compute_financials",
    "yearly_data_frame",
]
