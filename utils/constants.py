"""Domain constants for solar plant cost, yield, and tax assumptions.

Cost tables are ordered ``(component, value)`` tuples so totals and display
order stay deterministic. Monetary values are EUR; per-MW values are scaled
to plant capacity in :mod:`utils.scaling`.
"""
from __future__ import annotations

from typing import Tuple

CostTable = Tuple[Tuple[str, float], ...]

# EUR/MW
BASE_INVESTMENT_PER_MW: CostTable = (
    ("Solar Panels", 137_999.86),
    ("Inverters", 30_720.00),
    ("Fence", 1_200.00),
    ("Grid Connection", 3_000.00),
    ("Land Lease", 7_648.00),
    ("Site Preparation", 478.00),
    ("Foundations", 30_000.00),
    ("Electrical Equipment", 70_000.00),
    ("Monitoring Systems", 1_500.00),
    ("Engineering", 7_500.00),
    ("Construction", 10_000.00),
)

# EUR/MW
BASE_STATIC_CONSTRUCTION_COST_PER_MW = 50_000.00
BASE_TRACKER_CONSTRUCTION_COST_PER_MW = 80_000.00

STATIC_CONSTRUCTION_LABEL = "Static Construction"
TRACKER_CONSTRUCTION_LABEL = "Single Axis Tracker"

# EUR/MW/year
BASE_STATIC_OPEX_PER_MW: CostTable = (
    ("Balancing Fee", 6_109.14),
    ("Maintenance", 3_225.00),
    ("Insurance", 1_290.00),
    ("Monitoring & Performance Analysis", 1_000.00),
    ("Administrative Expenses", 4_000.00),
    ("Security", 2_000.00),
    ("Reserve Funds", 2_000.00),
)

BASE_TRACKER_OPEX_PER_MW: CostTable = (
    ("Balancing Fee", 7_824.46),
    ("Maintenance", 5_375.00),
    ("Insurance", 1_290.00),
    ("Monitoring & Performance Analysis", 1_000.00),
    ("Administrative Expenses", 4_000.00),
    ("Security", 2_000.00),
    ("Reserve Funds", 2_000.00),
)

# Components that grow sub-linearly with capacity (economies of scale).
ECONOMIES_OF_SCALE_EXPONENT = 0.8
SUBLINEAR_INVESTMENT_COMPONENTS = frozenset({"Monitoring Systems", "Administrative Expenses"})
SUBLINEAR_OPEX_COMPONENTS = frozenset(
    {"Administrative Expenses", "Monitoring & Performance Analysis"}
)

# MWh/year per MW installed
BASE_FIXED_ENERGY_YIELD_PER_MW = 1_745.47
BASE_TRACKING_ENERGY_YIELD_PER_MW = 2_235.56

CORPORATE_TAX = 0.10
FIRST_YEAR_DEGRADATION = 0.01
SUBSEQUENT_YEAR_DEGRADATION = 0.004

# EUR/MW of battery power, on top of the battery system itself
BATTERY_SYSTEM_LABEL = "Battery System"
BATTERY_INVESTMENT_FACTORS: CostTable = (
    ("Installation", 10_000.0),
    ("Grid Connection", 6_000.0),
    ("Control Systems", 4_000.0),
)

# Yearly arbitrage efficiency loss (0.02 %) and the year its exponent restarts.
BATTERY_ARBITRAGE_DEGRADATION = 0.0002
BATTERY_DEGRADATION_RESET_YEAR = 15
DAYS_PER_YEAR = 365

KWH_PER_MWH = 1_000.0

__all__ = [
    "CostTable",
    "BASE_INVESTMENT_PER_MW",
    "BASE_STATIC_CONSTRUCTION_COST_PER_MW",
    "BASE_TRACKER_CONSTRUCTION_COST_PER_MW",
    "STATIC_CONSTRUCTION_LABEL",
    "TRACKER_CONSTRUCTION_LABEL",
    "BASE_STATIC_OPEX_PER_MW",
    "BASE_TRACKER_OPEX_PER_MW",
    "ECONOMIES_OF_SCALE_EXPONENT",
    "SUBLINEAR_INVESTMENT_COMPONENTS",
    "SUBLINEAR_OPEX_COMPONENTS",
    "BASE_FIXED_ENERGY_YIELD_PER_MW",
    "BASE_TRACKING_ENERGY_YIELD_PER_MW",
    "CORPORATE_TAX",
    "FIRST_YEAR_DEGRADATION",
    "SUBSEQUENT_YEAR_DEGRADATION",
    "BATTERY_SYSTEM_LABEL",
    "BATTERY_INVESTMENT_FACTORS",
    "BATTERY_ARBITRAGE_DEGRADATION",
    "BATTERY_DEGRADATION_RESET_YEAR",
    "DAYS_PER_YEAR",
    "KWH_PER_MWH",
]
