"""월별 소비 예측 맵 생성.

예측(forecast) → 당해 예산 → 전년 예산 순의 우선순위로 월별 소비량을 정하고,
안전 계수를 곱한 뒤 정수로 올림합니다.
"""

from __future__ import annotations

import logging
import math

import pandas as pd

from ..common.months import YearMonth, month_sequence
from ..domain.models import ConsumptionMap, ConsumptionMonth
from ..domain.normalization import Records, normalize_budgets, normalize_forecasts

logger = logging.getLogger(__name__)

SOURCE_FORECAST = "forecast"
SOURCE_CURRENT_BUDGET = "current-budget"
SOURCE_LAST_YEAR_BUDGET = "lastyear-budget"


def _sum_by_period(frame: pd.DataFrame) -> dict[YearMonth, float]:
    if frame.empty:
        return {}
    grouped = frame.groupby(["year", "month"])["quantity"].sum()
    return {
        YearMonth(int(year), int(month)): float(qty)
        for (year, month), qty in grouped.items()
    }


def select_month_consumption(
    month: YearMonth,
    forecast_by_month: dict[YearMonth, float],
    budget_by_month: dict[YearMonth, float],
) -> tuple[float, str]:
    """
    한 달의 소비량과 출처를 우선순위 체인으로 선택합니다.

    1. 해당 월 예측 합계가 양수이면 예측 사용
    2. 아니면 당해 같은 월 예산이 양수이면 예산 사용
    3. 아니면 전년 같은 월 예산 (없으면 0)

    한 달에는 하나의 출처만 사용되며, 값을 섞지 않습니다.
    """
    forecast = forecast_by_month.get(month, 0.0)
    if forecast > 0:
        return forecast, SOURCE_FORECAST

    current_budget = budget_by_month.get(month, 0.0)
    if current_budget > 0:
        return current_budget, SOURCE_CURRENT_BUDGET

    last_year = YearMonth(month.year - 1, month.month)
    # consumption is never negative, even for a net-negative budget correction
    return max(0.0, budget_by_month.get(last_year, 0.0)), SOURCE_LAST_YEAR_BUDGET


def apply_safety_margin(quantity: float, safety_margin: float) -> int:
    """Scale by *safety_margin* and round up; partial units are never shipped."""

    # 80 * 1.2 == 96.00000000000001 in binary floating point
    return max(0, int(math.ceil(round(quantity * safety_margin, 9))))


def build_consumption_map(
    forecasts: Records,
    budgets: Records,
    start: YearMonth,
    horizon_months: int,
    safety_margin: float = 1.0,
) -> ConsumptionMap:
    """
    기준월 이후 ``horizon_months``개월의 소비 예측 맵을 생성합니다.

    Args:
        forecasts: 예측 레코드 (Dataverse 원본 또는 year/month/quantity)
        budgets: 예산 레코드 (Dataverse 원본 또는 year/month/quantity)
        start: 기준월 (맵은 start+1 ~ start+horizon_months 월을 포함)
        horizon_months: 예측 개월 수
        safety_margin: 안전 계수 (기본 1.0)

    Returns:
        ConsumptionMap (월 → 올림된 소비량, 월 → 출처)

    Examples:
        >>> cmap = build_consumption_map(
        ...     [{"new_year": 2025, "new_month": 2, "new_forecastquantity": 50}],
        ...     [{"new_year": 2025, "new_month": 2, "new_budgetedquantity": 80}],
        ...     YearMonth(2025, 1),
        ...     horizon_months=3,
        ... )
        >>> cmap.get(YearMonth(2025, 2))
        50
    """
    forecast_by_month = _sum_by_period(normalize_forecasts(forecasts))
    budget_by_month = _sum_by_period(normalize_budgets(budgets))
    logger.debug(
        f"Forecast map: {len(forecast_by_month)} months with data, "
        f"budget map: {len(budget_by_month)} year-month combinations"
    )

    quantities: dict[YearMonth, int] = {}
    sources: dict[YearMonth, str] = {}
    for _, month in month_sequence(start, horizon_months):
        raw, source = select_month_consumption(month, forecast_by_month, budget_by_month)
        adjusted = apply_safety_margin(raw, safety_margin)
        quantities[month] = adjusted
        sources[month] = source
        logger.debug(
            f"Month {month.label}: {source} = {raw} x {safety_margin} = {adjusted}"
        )

    logger.info(f"Built consumption map for {len(quantities)} months")
    return ConsumptionMap(quantities=quantities, sources=sources)


def to_sequence(
    consumption: ConsumptionMap,
    from_month: YearMonth,
    count: int,
) -> list[ConsumptionMonth]:
    """
    ``from_month`` 다음 달부터 ``count``개월의 소비 시퀀스를 반환합니다.

    맵에 없는 월은 소비량 0으로 채우며, 일수는 실제 달력 기준(28-31)입니다.
    """
    return [
        ConsumptionMonth(
            offset=offset,
            month=month,
            consumption=consumption.get(month),
            days_in_month=month.days_in_month,
        )
        for offset, month in month_sequence(from_month, count)
    ]

