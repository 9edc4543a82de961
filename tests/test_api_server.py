from __future__ import annotations

import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from api import server
from api.server import (
    CompareRequest,
    FinancialsRequest,
    PlantPayload,
    SensitivityAxisPayload,
    SensitivityRequest,
    SettingsPayload,
    app,
    compare,
    financials,
    health,
    sensitivity,
)

client = TestClient(app)


def test_health() -> None:
    assert health() == {"status": "ok"}


def test_financials_with_explicit_inputs() -> None:
    request = FinancialsRequest(
        energy_yield_mwh=174_547.0,
        initial_investment=34_914_302.075583,
        settings=SettingsPayload(yearly_opex=1_661_467.58527675),
    )
    response = financials(request)

    result = response["result"]
    assert response["batteryCosts"] == {"investment": 0.0, "opex": 0.0}
    assert result["npv"] == pytest.approx(179_689_505.57641, rel=1e-6)
    assert result["averageDSCR"] is None
    assert len(result["yearlyData"]) == 35
    assert result["yearlyData"][0]["cumulativeCashFlow"] < 0


def test_financials_accepts_custom_battery_breakdown() -> None:
    request = FinancialsRequest(
        energy_yield_mwh=1_000.0,
        initial_investment=500_000.0,
        has_battery_storage=True,
        battery_investment_breakdown=[
            {"name": "Battery System", "value": 100_000.0},
            {"name": "Installation", "value": 10_000.0},
        ],
    )
    response = financials(request)

    assert response["batteryCosts"]["investment"] == pytest.approx(110_000.0)
    assert response["batteryCosts"]["opex"] == pytest.approx(110_000.0 * 0.065)
    assert response["result"]["initialInvestment"] == pytest.approx(610_000.0)


def test_compare_includes_chart_series() -> None:
    response = compare(CompareRequest(plant=PlantPayload(capacity_mw=10.0, is_levered=True)))

    assert set(response) == {"fixed", "tracking", "batteryCosts", "charts"}
    assert len(response["charts"]["cashFlow"]) == 35
    assert len(response["charts"]["dscr"]) == 15
    assert response["tracking"]["initialInvestment"] > response["fixed"]["initialInvestment"]


def test_compare_chart_gaps_are_json_null() -> None:
    response = compare(CompareRequest(plant=PlantPayload(capacity_mw=10.0)))

    assert all(row["fixed_dscr"] is None for row in response["charts"]["dscr"])


def test_sensitivity_rows() -> None:
    request = SensitivityRequest(
        plant=PlantPayload(capacity_mw=10.0),
        axes=[SensitivityAxisPayload(parameter="inflation_rate", values=[0.0, 0.02])],
        systems=["fixed", "tracking"],
    )

    rows = sensitivity(request)["rows"]
    assert len(rows) == 4
    assert {row["system"] for row in rows} == {"fixed", "tracking"}


def test_loan_term_longer_than_operation_time_is_rejected() -> None:
    response = client.post(
        "/compare",
        json={"plant": {"is_levered": True, "settings": {"operation_time": 10, "loan_term": 15}}},
    )

    assert response.status_code == 400
    assert "Loan term" in response.json()["detail"]


def test_invalid_payloads_fail_validation() -> None:
    assert client.post("/sensitivity", json={"axes": []}).status_code == 422
    assert (
        client.post("/sensitivity", json={"axes": [{"parameter": "colour", "values": [1]}]}).status_code
        == 422
    )
    assert client.post("/financials", json={"energy_yield_mwh": -1, "initial_investment": 1}).status_code == 422


def test_export_streams_workbook() -> None:
    response = client.post("/export", json={"plant": {"capacity_mw": 5.0}, "include_charts": True})

    assert response.status_code == 200
    assert "_with_charts.xlsx" in response.headers["content-disposition"]
    workbook = pd.ExcelFile(io.BytesIO(response.content), engine="openpyxl")
    assert "Analysis Settings" in workbook.sheet_names
    assert "Cash Flow Charts" in workbook.sheet_names


def test_fully_debt_financed_levered_run_is_rejected() -> None:
    payload = {
        "energy_yield_mwh": 1_000.0,
        "initial_investment": 1_000_000.0,
        "is_levered": True,
        "settings": {"loan_percentage": 1.0},
    }

    response = client.post("/financials", json=payload)
    assert response.status_code == 400
    assert "Loan percentage" in response.json()["detail"]

    payload["is_levered"] = False
    assert client.post("/financials", json=payload).status_code == 200


def test_zero_investment_fails_validation() -> None:
    response = client.post("/financials", json={"energy_yield_mwh": 1_000.0, "initial_investment": 0.0})

    assert response.status_code == 422


@pytest.mark.parametrize(
    "axis",
    [
        {"parameter": "loan_term", "values": [0]},
        {"parameter": "operation_time", "values": [0]},
        {"parameter": "operation_time", "values": [10]},
    ],
)
def test_sensitivity_rejects_unrunnable_sweep_values(axis) -> None:
    response = client.post("/sensitivity", json={"plant": {"is_levered": True}, "axes": [axis]})

    assert response.status_code == 400
    assert "cannot be evaluated" in response.json()["detail"]


def test_cors_origins_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOLARFINLAB_CORS_ORIGINS", " https://dash.example.com, ,http://a.test ")
    assert server._cors_origins() == ["https://dash.example.com", "http://a.test"]

    monkeypatch.delenv("SOLARFINLAB_CORS_ORIGINS")
    assert "http://localhost:5173" in server._cors_origins()
