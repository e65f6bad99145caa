"""월별 재고 시뮬레이션 및 자동 발주.

기준월 다음 달부터 한 달씩 순차적으로 입고 → 폐기 → 소비를 반영하고,
목표 커버 구간의 요구량이 부족하면 시스템 발주를 생성합니다.
각 월의 기말 재고는 다음 월의 기초 재고가 되므로 병렬화하지 않습니다.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import AbstractSet, Mapping, Optional

from ..common.months import YearMonth, month_sequence
from ..common.performance import measure_time
from ..core.config import CONFIG
from ..domain.models import (
    ConsumptionMap,
    SimulationMonthResult,
    SimulationResult,
    SystemOrder,
    WriteOffSchedule,
)
from ..forecast.consumption import to_sequence
from ..forecast.months_cover import calculate_months_cover

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationParams:
    """
    시뮬레이션 입력 파라미터.

    Attributes:
        start: 기준월 (시뮬레이션은 start+1 월부터)
        base_stock: 기준 재고 (즉시 폐기 수량 차감 전)
        horizon_months: 시뮬레이션 개월 수 (0 이하이면 빈 결과)
        target_cover_months: 발주 요구량 계산 구간 (현재 월 이후 개월 수)
        consumption: 월별 소비 예측 맵
        write_offs: 폐기 스케줄
        inbound: 수동 발주 입고 맵 (시뮬레이터가 복사해서 사용)
        allowed_months: 시스템 발주 허용 월 (1-12)
        manual_orders_max_ym: 수동 발주 최대 월 인덱스
        max_cover_offset: 커버 계산 조회 개월 수
        at_risk_threshold_months: 이 값 미만의 커버를 위험 월로 표시
    """

    start: YearMonth
    base_stock: float
    horizon_months: int
    target_cover_months: int
    consumption: ConsumptionMap
    write_offs: WriteOffSchedule = field(default_factory=WriteOffSchedule)
    inbound: Mapping[YearMonth, float] = field(default_factory=dict)
    allowed_months: AbstractSet[int] = frozenset()
    manual_orders_max_ym: int = 0
    max_cover_offset: int = CONFIG.calculation.max_months_cover_offset
    at_risk_threshold_months: int = CONFIG.calculation.at_risk_threshold_months


@dataclass(frozen=True)
class Requirement:
    required: float
    future_inbound: float
    gap: float


def calculate_requirement(
    closing_stock: float,
    month: YearMonth,
    consumption: ConsumptionMap,
    inbound: Mapping[YearMonth, float],
    target_cover_months: int,
) -> Requirement:
    """
    현재 월 이후 ``target_cover_months``개월 동안의 요구량과 부족분을 계산합니다.

    gap = 구간 소비 합계 - (기말 재고 + 구간 입고 합계)
    """
    required = 0.0
    future_inbound = 0.0
    for _, future in month_sequence(month, target_cover_months):
        required += consumption.get(future)
        future_inbound += inbound.get(future, 0.0)

    gap = required - (closing_stock + future_inbound)
    return Requirement(required=required, future_inbound=future_inbound, gap=gap)


def can_place_order(
    gap: float,
    month: YearMonth,
    manual_orders_max_ym: int,
    allowed_months: AbstractSet[int],
) -> bool:
    """
    시스템 발주 가능 여부.

    부족분이 양수이고, 수동 발주 최대 월보다 뒤이며, 허용 월인 경우에만 True.
    """
    return gap > 0 and month.index > manual_orders_max_ym and month.month in allowed_months


def simulate_month(
    offset: int,
    month: YearMonth,
    opening_stock: float,
    params: SimulationParams,
    inbound: Mapping[YearMonth, float],
) -> SimulationMonthResult:
    """
    한 달을 시뮬레이션합니다 (커버 개월 수 제외).

    supply = 기초 + 입고, loss = min(supply, 폐기), available = supply - loss,
    used = min(available, 소비), 기말 = available - used
    """
    month_inbound = inbound.get(month, 0.0)
    write_off = params.write_offs.get(month)
    demand = params.consumption.get(month)

    supply = opening_stock + month_inbound
    loss = min(supply, write_off)
    available = supply - loss
    used = min(available, demand)
    closing_stock = available - used

    requirement = calculate_requirement(
        closing_stock,
        month,
        params.consumption,
        inbound,
        params.target_cover_months,
    )

    system_order: Optional[SystemOrder] = None
    final_closing = closing_stock
    if can_place_order(
        requirement.gap, month, params.manual_orders_max_ym, params.allowed_months
    ):
        quantity = int(math.ceil(requirement.gap))
        system_order = SystemOrder(
            offset=offset,
            year=month.year,
            month=month.month,
            quantity=quantity,
            iso_date=month.iso,
        )
        final_closing = closing_stock + quantity

    logger.debug(
        f"[M{offset}] ym={month.index}, open={opening_stock}, in={month_inbound}, "
        f"loss={loss}, demand={demand}, close={closing_stock}, "
        f"gap={requirement.gap}, order={system_order.quantity if system_order else 0}"
    )

    return SimulationMonthResult(
        offset=offset,
        month=month,
        opening_stock=opening_stock,
        inbound=month_inbound,
        write_off=loss,
        demand=demand,
        consumption=used,
        closing_stock=final_closing,
        required_inventory=requirement.required,
        future_inbound=requirement.future_inbound,
        gap=requirement.gap,
        system_order=system_order,
    )


def attach_months_cover(
    results: list[SimulationMonthResult],
    consumption: ConsumptionMap,
    *,
    max_cover_offset: int,
    at_risk_threshold_months: int,
) -> list[SimulationMonthResult]:
    """
    시뮬레이션이 끝난 뒤 각 월의 기말 재고로 커버 개월 수를 계산해 붙입니다.

    i월의 커버는 i+1 ~ i+max_cover_offset 월의 소비에 의존하므로,
    소비 맵이 모두 계산된 이후 두 번째 패스에서 수행합니다.
    """
    covered: list[SimulationMonthResult] = []
    for result in results:
        forward = to_sequence(consumption, result.month, max_cover_offset)
        cover = calculate_months_cover(
            result.closing_stock, forward, max_offset=max_cover_offset
        )
        covered.append(
            replace(result, months_cover=cover, at_risk=cover < at_risk_threshold_months)
        )
    return covered


@measure_time
def run_simulation(params: SimulationParams) -> SimulationResult:
    """
    전체 기간의 월별 재고를 순차적으로 시뮬레이션합니다.

    이 함수는 다음 단계로 수행됩니다:
    1. 시작 재고 = 기준 재고 - 즉시 폐기 수량
    2. 수동 발주 입고 맵을 복사 (시뮬레이터 내부에서만 변경)
    3. 각 월마다 simulate_month 수행, 발주가 생성되면 해당 월 입고 맵에 누적
    4. 모든 월 완료 후 커버 개월 수를 두 번째 패스로 부착

    Args:
        params: SimulationParams

    Returns:
        SimulationResult (월별 원장, 시스템 발주 목록)

    Examples:
        >>> result = run_simulation(SimulationParams(
        ...     start=YearMonth(2025, 1),
        ...     base_stock=500,
        ...     horizon_months=12,
        ...     target_cover_months=3,
        ...     consumption=cmap,
        ...     allowed_months=frozenset(range(1, 13)),
        ... ))
        >>> result.to_frame()[["year_month", "closing_stock"]]
    """
    logger.debug(
        f"run_simulation: baseStock={params.base_stock}, "
        f"monthsAhead={params.horizon_months}, targetCover={params.target_cover_months}"
    )

    stock = params.base_stock - params.write_offs.immediate_total
    if stock < 0:
        logger.warning(
            f"Immediate write-off {params.write_offs.immediate_total} exceeds "
            f"base stock {params.base_stock}; starting from 0"
        )
        stock = 0.0
    inbound: dict[YearMonth, float] = dict(params.inbound)
    results: list[SimulationMonthResult] = []
    orders: list[SystemOrder] = []

    for offset, month in month_sequence(params.start, params.horizon_months):
        month_result = simulate_month(offset, month, stock, params, inbound)

        if month_result.system_order is not None:
            orders.append(month_result.system_order)
            inbound[month] = inbound.get(month, 0.0) + month_result.system_order.quantity

        results.append(month_result)
        stock = month_result.closing_stock

    results = attach_months_cover(
        results,
        params.consumption,
        max_cover_offset=params.max_cover_offset,
        at_risk_threshold_months=params.at_risk_threshold_months,
    )

    logger.info(
        f"Simulation complete: {len(results)} months, {len(orders)} auto-orders"
    )
    return SimulationResult(results=tuple(results), system_orders=tuple(orders))
