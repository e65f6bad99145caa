"""
요청 검증 로직

HTTP 함수 요청 본문을 검증하여 ForecastRequest로 변환합니다.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import pandas as pd

from .exceptions import ValidationError
from .models import ForecastRequest

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("sku", "country", "baselineDate", "baseStock", "targetCoverMonths")


def _is_missing(body: Mapping[str, Any], name: str) -> bool:
    value = body.get(name)
    if name == "baseStock":
        # 0 is a valid starting stock
        return value is None
    return value is None or value == "" or value == 0


def _number(value: Any, name: str) -> float:
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number):
        raise ValidationError(f"{name} must be numeric, got {value!r}")
    return float(number)


def validate_forecast_request(body: object) -> ForecastRequest:
    """
    요청 본문의 필수 항목과 타입을 검증합니다.

    검증 항목:
    1. 본문이 매핑(dict)인지 확인
    2. 필수 항목 존재 여부 (baseStock은 0 허용)
    3. baselineDate 날짜 형식
    4. baseStock, targetCoverMonths, ProcurementSafeMargin 숫자 형식

    Args:
        body: 요청 본문 (camelCase 키)

    Returns:
        ForecastRequest 인스턴스

    Raises:
        ValidationError: 검증 실패 시 발생

    Examples:
        >>> validate_forecast_request({
        ...     "sku": "sku-id", "country": "country-id",
        ...     "baselineDate": "2025-01-15", "baseStock": 1200,
        ...     "targetCoverMonths": 6,
        ... })
    """
    # ========================================
    # 1단계: 본문 타입 / 필수 항목
    # ========================================
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object")

    missing = [name for name in REQUIRED_FIELDS if _is_missing(body, name)]
    if missing:
        logger.error(f"Missing request fields: {missing}")
        raise ValidationError(
            "Missing required parameters: " + ", ".join(REQUIRED_FIELDS)
        )

    # ========================================
    # 2단계: 날짜 / 숫자 형식
    # ========================================
    baseline = pd.to_datetime(body["baselineDate"], errors="coerce", utc=True)
    if pd.isna(baseline):
        raise ValidationError(f"baselineDate is not a valid date: {body['baselineDate']!r}")

    base_stock = _number(body["baseStock"], "baseStock")
    target_cover = _number(body["targetCoverMonths"], "targetCoverMonths")
    if target_cover < 0 or target_cover != int(target_cover):
        raise ValidationError("targetCoverMonths must be a non-negative whole number")

    margin_raw = body.get("ProcurementSafeMargin", body.get("procurementSafeMargin"))
    # 0 / empty margin falls back to 1.0 like a missing one
    margin = _number(margin_raw, "ProcurementSafeMargin") if margin_raw else 1.0
    if margin < 0:
        raise ValidationError(f"ProcurementSafeMargin must be non-negative, got {margin_raw!r}")

    return ForecastRequest(
        sku=str(body["sku"]),
        country=str(body["country"]),
        baseline_date=baseline.tz_convert(None),
        base_stock=base_stock,
        target_cover_months=int(target_cover),
        procurement_safe_margin=margin,
    )
