"""Tabular export of analysis results (Excel workbooks via pandas)."""
from __future__ import annotations

from datetime import date
from typing import IO, Dict, List, Optional, Union

import pandas as pd

from services.plant_scenarios import (
    PlantConfiguration,
    SystemComparison,
    cash_flow_chart_frame,
    dscr_chart_frame,
    revenue_chart_frame,
)
from services.projection_core import FinancialResult
from utils.formatting import round_or_na

SYSTEM_LABELS = {"fixed": "Fixed System", "tracking": "Tracking System"}

# Excel caps sheet names at 31 characters.
_MAX_SHEET_NAME = 31


def _percent_or_na(value: Optional[float]) -> Union[float, str]:
    return round_or_na(None if value is None else value * 100)


def _metrics_frame(result: FinancialResult) -> pd.DataFrame:
    metrics = [
        ("Initial Investment", round_or_na(result.initial_investment)),
        ("NPV", round_or_na(result.npv)),
        ("IRR", _percent_or_na(result.irr)),
        ("ROE", _percent_or_na(result.roe)),
        ("Payback Period", round_or_na(result.payback_period)),
        ("Total Profit", round_or_na(result.total_profit)),
        ("Average DSCR", round_or_na(result.average_dscr)),
    ]
    return pd.DataFrame(metrics, columns=["Metric", "Value"])


def _yearly_frame(result: FinancialResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Year": record.year,
                "Revenue": round_or_na(record.revenue),
                "OPEX": round_or_na(record.opex),
                "Depreciation": round_or_na(record.depreciation),
                "Interest": round_or_na(record.interest),
                "Principal": round_or_na(record.principal),
                "Taxable Income": round_or_na(record.taxable_income),
                "Tax": round_or_na(record.tax),
                "Net Profit": round_or_na(record.net_profit),
                "Cash Flow": round_or_na(record.cash_flow),
                "Cumulative Cash Flow": round_or_na(record.cumulative_cash_flow),
                "DSCR": round_or_na(record.dscr),
            }
            for record in result.yearly_data
        ]
    )


def _settings_frame(config: PlantConfiguration, view_mode: str) -> pd.DataFrame:
    settings = config.settings
    rows = [
        ("Plant Capacity", f"{config.capacity_mw} MW"),
        ("View Mode", view_mode),
        ("Levered Analysis", "Yes" if config.is_levered else "No"),
        ("Fixed System Energy Yield", f"{config.fixed_energy_yield_per_mw} MWh/y/MW"),
        ("Tracking System Energy Yield", f"{config.tracking_energy_yield_per_mw} MWh/y/MW"),
        ("Operation Time", f"{settings.operation_time} years"),
        ("Loan Term", f"{settings.loan_term} years"),
        ("Discount Rate", _percent_or_na(settings.discount_rate)),
        ("Inflation Rate", _percent_or_na(settings.inflation_rate)),
        ("Loan Interest Rate", _percent_or_na(settings.loan_interest_rate)),
    ]
    return pd.DataFrame(rows, columns=["Metric", "Value"])


def _battery_frame(config: PlantConfiguration, comparison: SystemComparison) -> pd.DataFrame:
    battery = config.resolved_battery_settings()
    rows = [
        ("Capacity", f"{battery.capacity} MW"),
        ("Storage Duration", f"{battery.storage_duration} hours"),
        ("Cost Per MW", round_or_na(battery.cost_per_mw)),
        ("Peak Solar Price", round_or_na(battery.peak_solar_price)),
        ("Evening Peak Price", round_or_na(battery.evening_peak_price)),
        ("Total Investment", round_or_na(comparison.battery_costs.investment)),
        ("Yearly OPEX", round_or_na(comparison.battery_costs.opex)),
    ]
    return pd.DataFrame(rows, columns=["Metric", "Value"])


def _rounded_chart(frame: pd.DataFrame) -> pd.DataFrame:
    out = frame.copy()
    for column in out.columns:
        if column != "year":
            out[column] = [round_or_na(None if pd.isna(v) else v) for v in out[column]]
    return out


def prepare_export_tables(
    comparison: SystemComparison,
    config: PlantConfiguration,
    include_charts: bool = False,
    view_mode: str = "comparison",
) -> Dict[str, pd.DataFrame]:
    """Sheet name -> table, in workbook order."""

    tables: Dict[str, pd.DataFrame] = {}
    for system, label in SYSTEM_LABELS.items():
        result = comparison.for_system(system)
        tables[f"{label} Financial Metrics"] = _metrics_frame(result)
        tables[f"{label} Yearly Data"] = _yearly_frame(result)

    tables["Analysis Settings"] = _settings_frame(config, view_mode)
    if config.has_battery_storage:
        tables["Battery System"] = _battery_frame(config, comparison)

    if include_charts:
        tables["Cash Flow Charts"] = _rounded_chart(cash_flow_chart_frame(comparison))
        tables["Revenue Charts"] = _rounded_chart(revenue_chart_frame(comparison))
        tables["DSCR Charts"] = _rounded_chart(dscr_chart_frame(comparison, config.settings))
    return tables


def generate_export_filename(
    view_mode: Optional[str], include_charts: bool = False, today: Optional[date] = None
) -> str:
    stamp = (today or date.today()).isoformat()
    base_name = f"solar_financial_analysis_{view_mode or 'N/A'}_{stamp}"
    return f"{base_name}_with_charts" if include_charts else base_name


def write_export_workbook(tables: Dict[str, pd.DataFrame], target: Union[str, IO[bytes]]) -> List[str]:
    """Write each table to its own sheet and return the sheet names used."""

    sheet_names: List[str] = []
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        for name, frame in tables.items():
            sheet_name = name[:_MAX_SHEET_NAME]
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
            sheet_names.append(sheet_name)
    return sheet_names


__all__ = [
    "SYSTEM_LABELS",
    "prepare_export_tables",
    "generate_export_filename",
    "write_export_workbook",
]
