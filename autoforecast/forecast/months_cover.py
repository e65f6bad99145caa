"""재고 커버 개월 수 계산.

주어진 재고로 앞으로 몇 개월의 소비를 감당할 수 있는지 계산합니다.
부분 월은 해당 월의 실제 일수 기준 일평균 소비량으로 환산합니다.

예: 3.45 = 3개월 완전 커버 + 4번째 달의 45%
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.config import CONFIG
from ..domain.models import ConsumptionMonth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CumulativeMonth:
    offset: int
    consumption: float
    days_in_month: int
    cumulative: float


def round_half_up(value: float, digits: int = 2) -> float:
    """Round like a spreadsheet (halves away from zero for positive values)."""

    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def build_cumulative_table(months: Sequence[ConsumptionMonth]) -> list[CumulativeMonth]:
    cumulative = np.cumsum([float(m.consumption) for m in months])
    return [
        CumulativeMonth(
            offset=month.offset,
            consumption=month.consumption,
            days_in_month=month.days_in_month,
            cumulative=float(total),
        )
        for month, total in zip(months, cumulative)
    ]


def find_last_full_month(
    table: Sequence[CumulativeMonth], stock: float
) -> Optional[CumulativeMonth]:
    """Return the last month whose cumulative consumption is <= stock (inclusive)."""

    last_full: Optional[CumulativeMonth] = None
    for month in table:
        if month.cumulative <= stock:
            last_full = month
        else:
            break
    return last_full


def month_fraction(stock: float, consumption: float, days_in_month: int) -> float:
    """
    재고를 일평균 소비량으로 환산한 커버 일수를 해당 월 일수 대비 비율로 반환합니다.

    소비량이나 일수가 0 이하이면 0을 반환합니다.
    """
    if consumption <= 0 or days_in_month <= 0:
        return 0.0
    daily = consumption / days_in_month
    days_covered = stock / daily
    return days_covered / days_in_month


def calculate_months_cover(
    current_stock: float,
    forward_consumption: Sequence[ConsumptionMonth],
    max_offset: Optional[int] = None,
) -> float:
    """
    재고 커버 개월 수를 계산합니다 (소수점 둘째 자리 반올림).

    계산 단계:
    1. 재고가 0 이하이면 0
    2. 소비량이 0 이하인 월 제외. 남은 월이 없으면 max_offset 반환
    3. 월 순서대로 누적 소비량 테이블 생성
    4. 누적 소비량 <= 재고인 마지막 월 탐색 (같으면 완전 커버로 간주)
    5. 완전 커버 월이 없으면 첫 월의 부분 커버 비율
    6. 있으면 완전 커버 개월 수 + 다음 월(offset+1)의 부분 커버 비율
       (다음 월이 없거나 잔여 재고가 0 이하이면 완전 커버 개월 수 그대로)

    Args:
        current_stock: 현재 (기말) 재고
        forward_consumption: offset 순서의 미래 소비 시퀀스
        max_offset: 조회 개월 수 상한이자 "소비 없음" 시 반환값 (기본값: CONFIG)

    Returns:
        커버 개월 수

    Examples:
        >>> base = YearMonth(2025, 3)
        >>> months = [ConsumptionMonth(i, base.shift(i), 100, 30) for i in range(1, 4)]
        >>> calculate_months_cover(250, months)
        2.5
    """
    if max_offset is None:
        max_offset = CONFIG.calculation.max_months_cover_offset

    if current_stock <= 0:
        return 0

    valid_months = [m for m in forward_consumption if m.consumption > 0]
    if not valid_months:
        logger.debug(f"No positive forward consumption, cover capped at {max_offset}")
        return max_offset

    table = build_cumulative_table(valid_months)
    last_full = find_last_full_month(table, current_stock)

    if last_full is None:
        first = valid_months[0]
        cover = month_fraction(current_stock, first.consumption, first.days_in_month)
    else:
        full_months = last_full.offset
        remainder = current_stock - last_full.cumulative
        next_month = next((m for m in valid_months if m.offset == full_months + 1), None)

        if next_month is None or remainder <= 0:
            cover = float(full_months)
        else:
            cover = full_months + month_fraction(
                remainder, next_month.consumption, next_month.days_in_month
            )

    return round_half_up(cover)
