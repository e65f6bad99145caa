"""
설정 로드 및 검증 테스트
"""
from __future__ import annotations

import pytest

from autoforecast.core.config import (
    CONFIG,
    AutoForecastConfig,
    DataverseConfig,
    load_config,
    validate_config,
)
from autoforecast.domain.exceptions import ConfigurationError

FULL_ENV = {
    "DATAVERSE_URL": "https://org.crm.dynamics.com/",
    "AZURE_TENANT_ID": "tenant",
    "AZURE_CLIENT_ID": "client",
    "AZURE_CLIENT_SECRET": "secret",
}


def test_defaults():
    calc = CONFIG.calculation
    assert calc.forecast_months_ahead == 25
    assert calc.at_risk_threshold_months == 6
    assert calc.no_sell_buffer_months == 3
    assert calc.max_months_cover_offset == 12
    assert calc.batch_chunk_size == 100
    assert CONFIG.dataverse.api_version == "v9.2"


def test_load_config_reads_environment():
    env = dict(
        FULL_ENV,
        FORECAST_MONTHS_AHEAD="18",
        AT_RISK_THRESHOLD_MONTHS="4",
        NO_SELL_BUFFER_MONTHS="2",
        AUTOFORECAST_LOG_LEVEL="debug",
    )
    config = load_config(env)

    assert config.dataverse.base_url == "https://org.crm.dynamics.com"
    assert config.dataverse.client_secret == "secret"
    assert config.calculation.forecast_months_ahead == 18
    assert config.calculation.at_risk_threshold_months == 4
    assert config.calculation.no_sell_buffer_months == 2
    assert config.log_level == "DEBUG"


def test_invalid_numbers_fall_back_to_defaults():
    config = load_config(dict(FULL_ENV, FORECAST_MONTHS_AHEAD="soon", NO_SELL_BUFFER_MONTHS=""))

    assert config.calculation.forecast_months_ahead == 25
    assert config.calculation.no_sell_buffer_months == 3


def test_validate_config_accepts_complete_settings():
    validate_config(load_config(FULL_ENV))


def test_validate_config_names_missing_settings():
    config = AutoForecastConfig(dataverse=DataverseConfig(url="https://org", tenant_id="t"))

    with pytest.raises(ConfigurationError) as excinfo:
        validate_config(config)

    message = str(excinfo.value)
    assert "dataverse.client_id" in message
    assert "dataverse.client_secret" in message
    assert "dataverse.url" not in message


def test_config_is_immutable():
    with pytest.raises(Exception):
        CONFIG.calculation.forecast_months_ahead = 3


def test_load_config_from_process_environment():
    """conftest에서 설정한 테스트용 환경 변수를 사용"""
    config = load_config(dotenv=False)

    assert config.dataverse.missing_fields() == []


def test_log_level_falls_back_to_plain_log_level():
    assert load_config(dict(FULL_ENV, LOG_LEVEL="warning")).log_level == "WARNING"
    assert load_config(FULL_ENV).log_level == "INFO"

    both = dict(FULL_ENV, LOG_LEVEL="warning", AUTOFORECAST_LOG_LEVEL="debug")
    assert load_config(both).log_level == "DEBUG"
