"""Core configuration for the AutoForecast engine."""

from .config import (
    CONFIG,
    AutoForecastConfig,
    CalculationConfig,
    Channel,
    DataverseConfig,
    OrderStatus,
    load_config,
    validate_config,
)

__all__ = [
    "CONFIG",
    "AutoForecastConfig",
    "CalculationConfig",
    "Channel",
    "DataverseConfig",
    "OrderStatus",
    "load_config",
    "validate_config",
]
