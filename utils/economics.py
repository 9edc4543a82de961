"""Financing, degradation, pricing, and return helpers shared by the projector.

Everything here is a pure function over explicit arguments so the cash-flow
projector, the sensitivity sweeps, and API callers can reuse the same math.
Rates are fractions (0.035 = 3.5 %) and years are 1-indexed.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from utils.constants import FIRST_YEAR_DEGRADATION, KWH_PER_MWH, SUBSEQUENT_YEAR_DEGRADATION

IRR_INITIAL_GUESS = 0.10
IRR_TOLERANCE = 1e-4
IRR_MAX_ITERATIONS = 100
IRR_MIN_DERIVATIVE = 1e-10


def loan_amount(total_investment: float, loan_percentage: float) -> float:
    """Debt-financed share of the total investment."""

    return total_investment * loan_percentage


def equity_amount(total_investment: float, loan_percentage: float) -> float:
    """Equity-financed share of the total investment."""

    return total_investment * (1 - loan_percentage)


def calculate_pmt(rate: float, term_years: int, principal: float) -> float:
    """Level annual payment that amortizes ``principal`` over ``term_years``."""

    if rate == 0:
        return principal / term_years
    pvif = (1 + rate) ** term_years
    return rate * principal * pvif / (pvif - 1)


def amortize_year(
    remaining_balance: float,
    year: int,
    rate: float,
    term_years: int,
    payment: float,
    is_levered: bool,
) -> Tuple[float, float, float]:
    """Split one year's payment into interest and principal.

    Returns ``(interest, principal, updated_balance)``. Outside the loan term,
    or when unlevered, both parts are zero and the balance is carried as is.
    """

    if not is_levered or year > term_years:
        return 0.0, 0.0, remaining_balance

    interest = remaining_balance * rate
    principal = payment - interest
    return interest, principal, remaining_balance - principal


def degradation_factor(
    year: int,
    first_year_degradation: float = FIRST_YEAR_DEGRADATION,
    subsequent_year_degradation: float = SUBSEQUENT_YEAR_DEGRADATION,
) -> float:
    """Fraction of nameplate solar output still available in ``year``."""

    if year == 1:
        return 1 - first_year_degradation
    return (1 - first_year_degradation) * (1 - subsequent_year_degradation) ** (year - 1)


def degradation_curve(
    operation_time: int,
    first_year_degradation: float = FIRST_YEAR_DEGRADATION,
    subsequent_year_degradation: float = SUBSEQUENT_YEAR_DEGRADATION,
) -> np.ndarray:
    """Degradation factors for years ``1..operation_time``."""

    return np.array(
        [
            degradation_factor(year, first_year_degradation, subsequent_year_degradation)
            for year in range(1, operation_time + 1)
        ],
        dtype=float,
    )


def inflated_price(base_price: float, inflation_rate: float, year: int) -> float:
    """Electricity price in ``year`` escalated from the base-year price."""

    if year == 1:
        return base_price
    return base_price * (1 + inflation_rate) ** (year - 1)


def inflation_multiplier(inflation_rate: float, year: int) -> float:
    return (1 + inflation_rate) ** (year - 1)


def solar_revenue(
    energy_yield_mwh: float,
    degradation: float,
    year: int,
    base_price: float,
    inflation_rate: float,
) -> float:
    """Energy sales for one year; prices are per kWh so MWh are converted.

    ``degradation`` is the year's entry from :func:`degradation_curve`.
    """

    return (
        energy_yield_mwh
        * KWH_PER_MWH
        * degradation
        * inflated_price(base_price, inflation_rate, year)
    )


def compute_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """Net present value where ``cash_flows[0]`` is the undiscounted outlay."""

    return sum(cf / ((1.0 + discount_rate) ** idx) for idx, cf in enumerate(cash_flows))


def _npv_and_derivative(cash_flows: Sequence[float], rate: float) -> Tuple[float, float]:
    npv = 0.0
    derivative = 0.0
    for idx, cf in enumerate(cash_flows):
        npv += cf / (1 + rate) ** idx
        if idx > 0:
            derivative -= idx * cf / (1 + rate) ** (idx + 1)
    return npv, derivative


def solve_irr(
    cash_flows: Sequence[float],
    guess: float = IRR_INITIAL_GUESS,
    tolerance: float = IRR_TOLERANCE,
    max_iterations: int = IRR_MAX_ITERATIONS,
) -> Optional[float]:
    """Internal rate of return via Newton-Raphson.

    ``cash_flows[0]`` is the (negative) initial outlay. Returns the rate as a
    fraction, or ``None`` when the derivative flattens out or the iteration
    budget runs out. Callers must treat ``None`` as indeterminate, not zero.
    """

    rate = guess
    for _ in range(max_iterations):
        try:
            npv, derivative = _npv_and_derivative(cash_flows, rate)
        except (OverflowError, ZeroDivisionError):
            logging.getLogger(__name__).warning(
                "IRR iteration diverged at rate %r; returning indeterminate IRR.", rate
            )
            return None

        if abs(npv) < tolerance:
            return rate

        if abs(derivative) < IRR_MIN_DERIVATIVE:
            logging.getLogger(__name__).warning(
                "IRR derivative vanished at rate %.6f; returning indeterminate IRR.", rate
            )
            return None

        new_rate = rate - npv / derivative
        if abs(new_rate - rate) < tolerance:
            return new_rate
        rate = new_rate

    logging.getLogger(__name__).warning(
        "IRR did not converge within %s iterations; returning indeterminate IRR.", max_iterations
    )
    return None


__all__ = [
    "IRR_INITIAL_GUESS",
    "IRR_TOLERANCE",
    "IRR_MAX_ITERATIONS",
    "loan_amount",
    "equity_amount",
    "calculate_pmt",
    "amortize_year",
    "degradation_factor",
    "degradation_curve",
    "inflated_price",
    "inflation_multiplier",
    "solar_revenue",
    "compute_npv",
    "solve_irr",
]
