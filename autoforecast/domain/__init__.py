"""
도메인 계층 퍼블릭 API

예외, 모델, 정규화, 요청 검증 함수를 재수출합니다.
"""
from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    DataLoadError,
    DataverseError,
    DataWriteError,
    DomainError,
    ValidationError,
)
from .models import (
    ConsumptionMap,
    ConsumptionMonth,
    FetchedInputs,
    ForecastRequest,
    SimulationMonthResult,
    SimulationResult,
    SystemOrder,
    WriteOffSchedule,
)
from .normalization import (
    normalize_aging,
    normalize_allowed_months,
    normalize_budgets,
    normalize_forecasts,
    normalize_orders,
)
from .validation import validate_forecast_request

__all__ = [
    # 예외
    "DomainError",
    "ValidationError",
    "ConfigurationError",
    "DataLoadError",
    "DataWriteError",
    "DataverseError",
    # 모델
    "ForecastRequest",
    "FetchedInputs",
    "ConsumptionMap",
    "ConsumptionMonth",
    "WriteOffSchedule",
    "SystemOrder",
    "SimulationMonthResult",
    "SimulationResult",
    # 정규화
    "normalize_forecasts",
    "normalize_budgets",
    "normalize_orders",
    "normalize_aging",
    "normalize_allowed_months",
    # 검증
    "validate_forecast_request",
]
