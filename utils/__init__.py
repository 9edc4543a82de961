"""Leaf helpers shared by the projection services and the API."""

from utils.battery import (
    BatteryCosts,
    BatteryOpexRates,
    BatterySettings,
    calculate_battery_costs,
    calculate_battery_revenue,
    make_battery_revenue_fn,
)
from utils.economics import calculate_pmt, equity_amount, loan_amount, solve_irr
from utils.formatting import format_currency, format_number, format_percentage
from utils.scaling import scale_with_capacity

__all__ = [
    "BatteryCosts",
    "BatteryOpexRates",
    "BatterySettings",
    "calculate_battery_costs",
    "calculate_battery_revenue",
    "make_battery_revenue_fn",
    "calculate_pmt",
    "equity_amount",
    "loan_amount",
    "solve_irr",
    "format_currency",
    "format_number",
    "format_percentage",
    "scale_with_capacity",
]
