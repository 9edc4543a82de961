from __future__ import annotations

import io
import math
import os
from typing import Any, Dict, List, Optional

import pandas as pd
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, field_validator, model_validator

from services.analysis_sensitivity import (
    PLANT_PARAMETERS,
    SETTINGS_PARAMETERS,
    SensitivityAxis,
    run_sensitivity_analysis,
)
from services.export import generate_export_filename, prepare_export_tables, write_export_workbook
from services.plant_scenarios import (
    SYSTEMS,
    PlantConfiguration,
    cash_flow_chart_frame,
    compare_systems,
    dscr_chart_frame,
    revenue_chart_frame,
)
from services.projection_core import ScalarSettings, compute_financials, validate_settings
from utils.battery import (
    BatteryOpexRates,
    BatterySettings,
    build_battery_investment_breakdown,
    calculate_battery_costs,
    make_battery_revenue_fn,
)
from utils.constants import BASE_FIXED_ENERGY_YIELD_PER_MW, BASE_TRACKING_ENERGY_YIELD_PER_MW

_DEFAULT_SETTINGS = ScalarSettings()
_DEFAULT_BATTERY = BatterySettings()
_DEFAULT_BATTERY_OPEX = BatteryOpexRates()

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class SettingsPayload(BaseModel):
    """Pydantic mirror of :class:`ScalarSettings` for FastAPI requests."""

    operation_time: int = Field(_DEFAULT_SETTINGS.operation_time, ge=1)
    loan_percentage: float = Field(_DEFAULT_SETTINGS.loan_percentage, ge=0.0, le=1.0)
    loan_interest_rate: float = Field(_DEFAULT_SETTINGS.loan_interest_rate, ge=0.0, le=1.0)
    loan_term: int = Field(_DEFAULT_SETTINGS.loan_term, ge=1)
    inflation_rate: float = _DEFAULT_SETTINGS.inflation_rate
    discount_rate: float = Field(_DEFAULT_SETTINGS.discount_rate, gt=-1.0)
    electricity_price_2025: float = Field(_DEFAULT_SETTINGS.electricity_price_2025, ge=0.0)
    yearly_opex: float = Field(_DEFAULT_SETTINGS.yearly_opex, ge=0.0)
    corporate_tax_rate: float = Field(_DEFAULT_SETTINGS.corporate_tax_rate, ge=0.0, le=1.0)
    first_year_degradation: float = Field(_DEFAULT_SETTINGS.first_year_degradation, ge=0.0, lt=1.0)
    subsequent_year_degradation: float = Field(
        _DEFAULT_SETTINGS.subsequent_year_degradation, ge=0.0, lt=1.0
    )

    def build(self, is_levered: bool = False) -> ScalarSettings:
        """Return :class:`ScalarSettings`, rejecting combinations the projector cannot run.

        Loans that outlive the plant and fully debt-financed levered runs
        (zero equity) are refused with HTTP 400.
        """

        settings = ScalarSettings(**self.model_dump())
        try:
            validate_settings(settings, is_levered)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return settings


class BatterySettingsPayload(BaseModel):
    capacity: float = Field(_DEFAULT_BATTERY.capacity, ge=0.0)
    storage_duration: float = Field(_DEFAULT_BATTERY.storage_duration, ge=0.0)
    cost_per_mw: float = Field(_DEFAULT_BATTERY.cost_per_mw, ge=0.0)
    peak_solar_price: float = Field(_DEFAULT_BATTERY.peak_solar_price, ge=0.0)
    evening_peak_price: float = Field(_DEFAULT_BATTERY.evening_peak_price, ge=0.0)

    def build(self) -> BatterySettings:
        return BatterySettings(**self.model_dump())


class BatteryOpexPayload(BaseModel):
    maintenance: float = Field(_DEFAULT_BATTERY_OPEX.maintenance, ge=0.0, le=100.0)
    insurance: float = Field(_DEFAULT_BATTERY_OPEX.insurance, ge=0.0, le=100.0)
    replacement_reserve: float = Field(_DEFAULT_BATTERY_OPEX.replacement_reserve, ge=0.0, le=100.0)

    def build(self) -> BatteryOpexRates:
        return BatteryOpexRates(**self.model_dump())


class CostComponent(BaseModel):
    name: str
    value: float = Field(ge=0.0)


class FinancialsRequest(BaseModel):
    """Explicit engine inputs; battery breakdown defaults to one derived from the settings."""

    energy_yield_mwh: float = Field(ge=0.0)
    initial_investment: float = Field(gt=0.0)
    is_levered: bool = False
    has_battery_storage: bool = False
    settings: SettingsPayload = Field(default_factory=SettingsPayload)
    battery_settings: BatterySettingsPayload = Field(default_factory=BatterySettingsPayload)
    battery_opex: BatteryOpexPayload = Field(default_factory=BatteryOpexPayload)
    battery_investment_breakdown: Optional[List[CostComponent]] = None


class PlantPayload(BaseModel):
    """Pydantic mirror of :class:`PlantConfiguration`."""

    capacity_mw: float = Field(100.0, gt=0.0)
    is_levered: bool = False
    has_battery_storage: bool = False
    fixed_energy_yield_per_mw: float = Field(BASE_FIXED_ENERGY_YIELD_PER_MW, ge=0.0)
    tracking_energy_yield_per_mw: float = Field(BASE_TRACKING_ENERGY_YIELD_PER_MW, ge=0.0)
    settings: SettingsPayload = Field(default_factory=SettingsPayload)
    battery_settings: Optional[BatterySettingsPayload] = None
    battery_opex: BatteryOpexPayload = Field(default_factory=BatteryOpexPayload)

    def build(self) -> PlantConfiguration:
        return PlantConfiguration(
            capacity_mw=self.capacity_mw,
            is_levered=self.is_levered,
            has_battery_storage=self.has_battery_storage,
            fixed_energy_yield_per_mw=self.fixed_energy_yield_per_mw,
            tracking_energy_yield_per_mw=self.tracking_energy_yield_per_mw,
            settings=self.settings.build(self.is_levered),
            battery_settings=self.battery_settings.build() if self.battery_settings else None,
            battery_opex_rates=self.battery_opex.build(),
        )


class CompareRequest(BaseModel):
    plant: PlantPayload = Field(default_factory=PlantPayload)
    include_charts: bool = True


class SensitivityAxisPayload(BaseModel):
    parameter: str
    values: List[float]

    @field_validator("parameter")
    @classmethod
    def _validate_parameter(cls, value: str) -> str:
        if value not in PLANT_PARAMETERS + SETTINGS_PARAMETERS:
            raise ValueError(f"parameter must be one of {PLANT_PARAMETERS + SETTINGS_PARAMETERS}")
        return value


class SensitivityRequest(BaseModel):
    plant: PlantPayload = Field(default_factory=PlantPayload)
    axes: List[SensitivityAxisPayload] = Field(default_factory=list)
    systems: List[str] = Field(default_factory=lambda: ["fixed"])

    @field_validator("systems")
    @classmethod
    def _validate_systems(cls, value: List[str]) -> List[str]:
        unknown = [system for system in value if system not in SYSTEMS]
        if unknown:
            raise ValueError(f"systems must be drawn from {SYSTEMS}; got {unknown}")
        return value

    @model_validator(mode="after")
    def _require_axes(self) -> "SensitivityRequest":
        if not self.axes:
            raise ValueError("Provide at least one sensitivity axis in 'axes'.")
        return self


class ExportRequest(BaseModel):
    plant: PlantPayload = Field(default_factory=PlantPayload)
    include_charts: bool = False
    view_mode: str = "comparison"


def _frame_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    # NaN is not valid JSON; DSCR gaps come back as None.
    return [
        {
            key: (None if isinstance(value, float) and math.isnan(value) else value)
            for key, value in row.items()
        }
        for row in frame.to_dict(orient="records")
    ]


app = FastAPI(
    title="SolarFinLab API",
    description="REST API for solar plant cash-flow projections and investment metrics.",
    version="0.1.0",
)


# Local dashboard dev/preview ports, used when SOLARFINLAB_CORS_ORIGINS is unset.
_LOCAL_DASHBOARD_ORIGINS = tuple(
    f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in (5173, 4173)
)


def _cors_origins() -> List[str]:
    configured = os.getenv("SOLARFINLAB_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in configured.split(",") if origin.strip()]
    return origins or list(_LOCAL_DASHBOARD_ORIGINS)


# Let browser dashboards on another origin request projections and download exports.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, str]:
    """Simple liveness probe for container orchestrators."""
    return {"status": "ok"}


@app.post("/financials")
def financials(request: FinancialsRequest) -> Dict[str, Any]:
    """Run the engine on explicit inputs and return the full ledger and metrics."""

    settings = request.settings.build(request.is_levered)
    battery_settings = request.battery_settings.build()
    if request.battery_investment_breakdown is not None:
        breakdown = tuple((c.name, c.value) for c in request.battery_investment_breakdown)
    else:
        breakdown = build_battery_investment_breakdown(battery_settings)

    battery_costs = calculate_battery_costs(
        request.has_battery_storage, breakdown, request.battery_opex.build()
    )
    result = compute_financials(
        request.energy_yield_mwh,
        request.initial_investment,
        settings,
        request.is_levered,
        request.has_battery_storage,
        battery_costs,
        make_battery_revenue_fn(request.has_battery_storage, battery_settings),
    )
    return {
        "batteryCosts": {"investment": battery_costs.investment, "opex": battery_costs.opex},
        "result": result.to_dict(),
    }


@app.post("/compare")
def compare(request: CompareRequest) -> Dict[str, Any]:
    """Fixed vs. tracking comparison for a capacity-driven plant."""

    config = request.plant.build()
    comparison = compare_systems(config)
    response: Dict[str, Any] = {
        "fixed": comparison.fixed.to_dict(),
        "tracking": comparison.tracking.to_dict(),
        "batteryCosts": {
            "investment": comparison.battery_costs.investment,
            "opex": comparison.battery_costs.opex,
        },
    }
    if request.include_charts:
        response["charts"] = {
            "cashFlow": _frame_records(cash_flow_chart_frame(comparison)),
            "revenue": _frame_records(revenue_chart_frame(comparison)),
            "dscr": _frame_records(dscr_chart_frame(comparison, config.settings)),
        }
    return response


@app.post("/sensitivity")
def sensitivity(request: SensitivityRequest) -> Dict[str, Any]:
    """One-at-a-time parameter sweep around the submitted plant."""

    config = request.plant.build()
    try:
        response = run_sensitivity_analysis(
            config=config,
            axes=[SensitivityAxis(parameter=a.parameter, values=list(a.values)) for a in request.axes],
            systems=request.systems,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"rows": response.records}


@app.post("/export")
def export(request: ExportRequest) -> StreamingResponse:
    """Download the comparison as an Excel workbook."""

    config = request.plant.build()
    comparison = compare_systems(config)
    tables = prepare_export_tables(comparison, config, request.include_charts, request.view_mode)

    buffer = io.BytesIO()
    write_export_workbook(tables, buffer)
    buffer.seek(0)
    filename = generate_export_filename(request.view_mode, request.include_charts)
    return StreamingResponse(
        buffer,
        media_type=_XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}.xlsx"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=False)
