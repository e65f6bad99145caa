"""유통기한 임박 재고의 폐기 스케줄 계산."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

import pandas as pd

from ..common.months import YearMonth
from ..core.config import CONFIG
from ..domain.models import WriteOffSchedule
from ..domain.normalization import Records, normalize_aging, to_naive_utc

logger = logging.getLogger(__name__)


def non_sell_month(expiry_date: pd.Timestamp, buffer_months: int) -> YearMonth:
    """Month from which stock expiring on *expiry_date* can no longer be sold."""

    return YearMonth.from_timestamp(expiry_date).shift(-int(buffer_months))


def process_write_offs(
    aging_records: Records,
    cutoff: Any,
    buffer_months: int | None = None,
) -> WriteOffSchedule:
    """
    에이징 레코드를 즉시 폐기 수량과 월별 미래 폐기 수량으로 분류합니다.

    판매 불가일 = 유통기한 월의 1일 - buffer_months 개월

    분류 규칙:
    - 유통기한 <= 기준일 이고 판매 불가일 <= 기준일: 즉시 폐기 (시작 재고에서 차감)
    - 유통기한 > 기준일: 판매 불가 월에 미래 폐기로 예약
    - 그 외: 어느 쪽에도 포함하지 않음

    유통기한이 없거나 해석할 수 없는 레코드는 건너뜁니다.

    Args:
        aging_records: 에이징 레코드 (Dataverse 원본 또는 quantity/expiry_date)
        cutoff: 기준일 (보통 기준월의 1일)
        buffer_months: 판매 불가 버퍼 개월 수 (기본값: CONFIG 설정)

    Returns:
        WriteOffSchedule
    """
    if buffer_months is None:
        buffer_months = CONFIG.calculation.no_sell_buffer_months

    cutoff_ts = to_naive_utc(cutoff)
    aging = normalize_aging(aging_records)

    immediate_total = 0.0
    future_by_month: dict[YearMonth, float] = defaultdict(float)

    if pd.isna(cutoff_ts):
        logger.warning(f"Invalid write-off cutoff {cutoff!r}; no write-offs applied")
        return WriteOffSchedule()

    for row in aging.itertuples(index=False):
        qty = float(row.quantity)
        expiry = row.expiry_date
        non_sell = non_sell_month(expiry, buffer_months)

        if expiry <= cutoff_ts and non_sell.start <= cutoff_ts:
            immediate_total += qty
        elif expiry > cutoff_ts:
            future_by_month[non_sell] += qty

    logger.info(
        f"Write-offs: total={immediate_total}, future months={len(future_by_month)}"
    )
    return WriteOffSchedule(
        immediate_total=immediate_total, future_by_month=dict(future_by_month)
    )
