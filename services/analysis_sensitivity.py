"""One-at-a-time sensitivity sweeps over plant and financing assumptions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Sequence

import pandas as pd

from services.plant_scenarios import PlantConfiguration, run_system, select_system
from services.projection_core import ScalarSettings, validate_settings


NORMALIZED_RESULT_COLUMNS: tuple[str, ...] = (
    "parameter",
    "value",
    "system",
    "npv",
    "irr",
    "roe",
    "payback_period",
    "average_dscr",
    "total_profit",
)

PLANT_PARAMETERS: tuple[str, ...] = ("capacity_mw",)
SETTINGS_PARAMETERS: tuple[str, ...] = tuple(f.name for f in fields(ScalarSettings))
_INTEGER_SETTINGS = {"operation_time", "loan_term"}


@dataclass(frozen=True)
class SensitivityAxis:
    """Perturbation axis for sensitivity runs.

    ``parameter`` is either ``capacity_mw`` or a :class:`ScalarSettings`
    field name; ``values`` replace the base value one at a time.
    """

    parameter: str
    values: list[float]


@dataclass(frozen=True)
class SensitivityAnalysisResponse:
    """Sensitivity response with tabular and serializable result outputs."""

    results_df: pd.DataFrame
    records: list[dict[str, Any]]


def _apply_axis_value(config: PlantConfiguration, parameter: str, value: float) -> PlantConfiguration:
    if parameter in PLANT_PARAMETERS:
        perturbed = replace(config, **{parameter: float(value)})
    elif parameter in SETTINGS_PARAMETERS:
        cast_value = int(value) if parameter in _INTEGER_SETTINGS else float(value)
        perturbed = replace(config, settings=replace(config.settings, **{parameter: cast_value}))
    else:
        raise ValueError(f"Unsupported sensitivity parameter: {parameter}")

    if perturbed.capacity_mw <= 0:
        raise ValueError(f"{parameter}={value} cannot be evaluated: plant capacity must be positive.")
    try:
        validate_settings(perturbed.settings, perturbed.is_levered)
    except ValueError as exc:
        raise ValueError(f"{parameter}={value} cannot be evaluated: {exc}") from exc
    return perturbed


def run_sensitivity_analysis(
    *,
    config: PlantConfiguration,
    axes: Sequence[SensitivityAxis],
    systems: Sequence[str] = ("fixed",),
) -> SensitivityAnalysisResponse:
    """Rerun the engine for every axis value while holding the rest at base."""

    resolved_systems = [select_system(system) for system in systems]
    rows: list[dict[str, Any]] = []

    for axis in axes:
        for value in axis.values:
            perturbed = _apply_axis_value(config, axis.parameter, value)
            for system in resolved_systems:
                result = run_system(perturbed, system)
                if result.irr is None:
                    logging.getLogger(__name__).warning(
                        "IRR is indeterminate for %s=%s (%s system).", axis.parameter, value, system
                    )
                rows.append(
                    {
                        "parameter": axis.parameter,
                        "value": float(value),
                        "system": system,
                        "npv": result.npv,
                        "irr": result.irr,
                        "roe": result.roe,
                        "payback_period": result.payback_period,
                        "average_dscr": result.average_dscr,
                        "total_profit": result.total_profit,
                    }
                )

    results_df = pd.DataFrame(rows, columns=list(NORMALIZED_RESULT_COLUMNS))
    return SensitivityAnalysisResponse(results_df=results_df, records=rows)


__all__ = [
    "NORMALIZED_RESULT_COLUMNS",
    "PLANT_PARAMETERS",
    "SETTINGS_PARAMETERS",
    "SensitivityAxis",
    "SensitivityAnalysisResponse",
    "run_sensitivity_analysis",
]
