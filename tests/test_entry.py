"""
요청 핸들러 및 요청 검증 테스트
"""
from __future__ import annotations

import pandas as pd
import pytest

from autoforecast.core.config import AutoForecastConfig, CalculationConfig
from autoforecast.data_sources.memory import MemoryStore
from autoforecast.domain.exceptions import DataLoadError, ValidationError
from autoforecast.domain.validation import validate_forecast_request
from autoforecast.entry import handle_request
from autoforecast.pipeline import ForecastOrchestrator

MISSING_MESSAGE = (
    "Missing required parameters: sku, country, baselineDate, baseStock, targetCoverMonths"
)


def _body(**overrides):
    body = {
        "sku": "sku-1",
        "country": "kr",
        "baselineDate": "2025-01-15",
        "baseStock": 1200,
        "targetCoverMonths": 6,
    }
    body.update(overrides)
    return body


@pytest.fixture
def config():
    return AutoForecastConfig(calculation=CalculationConfig(forecast_months_ahead=3))


@pytest.fixture
def orchestrator(config):
    store = MemoryStore()
    return ForecastOrchestrator(store, store, config)


# ============================================================
# handle_request
# ============================================================

@pytest.mark.parametrize(
    "field, value",
    [
        ("sku", None),
        ("sku", ""),
        ("country", None),
        ("baselineDate", None),
        ("baseStock", None),
        ("targetCoverMonths", None),
        ("targetCoverMonths", 0),
    ],
)
def test_missing_parameters_return_400(field, value, orchestrator, config):
    status, body = handle_request(_body(**{field: value}), orchestrator=orchestrator, config=config)

    assert status == 400
    assert body == {"error": MISSING_MESSAGE}


def test_zero_base_stock_is_accepted(orchestrator, config):
    status, body = handle_request(_body(baseStock=0), orchestrator=orchestrator, config=config)

    assert status == 200
    assert body["ok"] is True
    assert body["stats"]["monthsProcessed"] == 3


def test_malformed_values_return_400(orchestrator, config):
    status, body = handle_request(
        _body(baseStock="lots"), orchestrator=orchestrator, config=config
    )

    assert status == 400
    assert "baseStock" in body["error"]


def test_execution_failure_returns_500(config):
    class Broken:
        def execute(self, request):
            raise DataLoadError("Failed to fetch budgets: timeout")

    status, body = handle_request(_body(), orchestrator=Broken(), config=config)

    assert status == 500
    assert body == {"error": "Failed to fetch budgets: timeout"}


def test_missing_dataverse_settings_return_500():
    status, body = handle_request(_body(), config=AutoForecastConfig())

    assert status == 500
    assert "Missing required configuration" in body["error"]


# ============================================================
# validate_forecast_request
# ============================================================

def test_request_fields_are_converted():
    request = validate_forecast_request(
        _body(baselineDate="2025-03-20T23:30:00Z", ProcurementSafeMargin=1.15)
    )

    assert request.baseline_date == pd.Timestamp("2025-03-20 23:30:00")
    assert request.start_month.month == 3
    assert request.base_stock == 1200.0
    assert request.target_cover_months == 6
    assert request.procurement_safe_margin == 1.15


def test_margin_defaults_to_one():
    assert validate_forecast_request(_body()).procurement_safe_margin == 1.0
    assert validate_forecast_request(_body(ProcurementSafeMargin=0)).procurement_safe_margin == 1.0


def test_camel_case_margin_is_accepted():
    request = validate_forecast_request(_body(procurementSafeMargin="1.3"))

    assert request.procurement_safe_margin == 1.3


def test_negative_margin_is_rejected(orchestrator, config):
    with pytest.raises(ValidationError, match="non-negative"):
        validate_forecast_request(_body(ProcurementSafeMargin=-1.2))

    status, body = handle_request(
        _body(ProcurementSafeMargin=-1.2), orchestrator=orchestrator, config=config
    )
    assert status == 400
    assert "ProcurementSafeMargin" in body["error"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"baselineDate": "not a date"},
        {"targetCoverMonths": 2.5},
        {"targetCoverMonths": -1},
        {"ProcurementSafeMargin": "abc"},
    ],
)
def test_invalid_values_raise(overrides):
    with pytest.raises(ValidationError):
        validate_forecast_request(_body(**overrides))


def test_non_mapping_body_raises():
    with pytest.raises(ValidationError):
        validate_forecast_request(["sku-1"])
