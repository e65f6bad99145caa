"""Manual-order inbound utilities."""

from __future__ import annotations

import logging
from typing import Dict, Tuple

import pandas as pd

from ..common.months import YearMonth
from ..core.config import OrderStatus
from ..domain.normalization import (
    ORDER_COLUMN_ALIASES,
    Records,
    apply_column_aliases,
    normalize_orders,
    records_to_frame,
)

logger = logging.getLogger(__name__)

InboundMap = Dict[YearMonth, float]


def partition_orders(
    orders: Records,
    *,
    system_status: int = OrderStatus.SYSTEM_GENERATED,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    발주 레코드를 수동 발주와 시스템 생성 발주로 분리합니다.

    상태 값이 없거나 시스템 생성 코드가 아닌 발주는 모두 수동 발주입니다.
    연/월이 없는 시스템 발주도 삭제 대상이어야 하므로 이 단계에서는
    행을 제외하지 않습니다.

    Returns:
        (manual, system) 데이터프레임 튜플 (표준 컬럼명 적용)
    """
    frame = apply_column_aliases(records_to_frame(orders), ORDER_COLUMN_ALIASES)
    if frame.empty:
        return frame.copy(), frame.copy()

    if "status" in frame.columns:
        status = pd.to_numeric(frame["status"], errors="coerce")
        is_system = status.eq(system_status)
    else:
        is_system = pd.Series(False, index=frame.index)

    manual = frame[~is_system].reset_index(drop=True)
    system = frame[is_system].reset_index(drop=True)
    logger.debug(f"Orders partitioned: {len(manual)} manual, {len(system)} system")
    return manual, system


def build_inbound_map(manual_orders: Records) -> Tuple[InboundMap, int]:
    """
    수동 발주로부터 월별 입고 맵과 수동 발주 최대 월 인덱스를 계산합니다.

    월 인덱스는 ``year * 12 + (month - 1)``이며, 수동 발주가 없으면 0입니다.
    시스템 발주는 이 인덱스보다 뒤의 월에만 생성될 수 있습니다.

    Returns:
        (월 → 입고 수량, manual_orders_max_ym)
    """
    orders = normalize_orders(manual_orders)
    if orders.empty:
        logger.info("Inbound map: 0 months, maxYM=0")
        return {}, 0

    grouped = orders.groupby(["year", "month"])["quantity"].sum()
    inbound: InboundMap = {
        YearMonth(int(year), int(month)): float(qty)
        for (year, month), qty in grouped.items()
    }
    max_ym = max(0, max(month.index for month in inbound))

    logger.info(f"Inbound map: {len(inbound)} months, maxYM={max_ym}")
    return inbound, max_ym
