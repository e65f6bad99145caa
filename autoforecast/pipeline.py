"""End-to-end orchestration of one AutoForecast run."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from .common.performance import measure_time_context
from .core.config import CONFIG, AutoForecastConfig
from .data_sources.loader import InputFetcher, ResultWriter
from .domain.models import (
    ForecastRequest,
    SimulationMonthResult,
    SimulationResult,
    WriteOffSchedule,
)
from .domain.normalization import normalize_allowed_months
from .forecast.consumption import build_consumption_map
from .forecast.months_cover import round_half_up
from .forecast.writeoff import process_write_offs
from .planning.inbound import build_inbound_map, partition_orders
from .planning.simulation import SimulationParams, run_simulation

logger = logging.getLogger(__name__)

# 커버 계산이 무한대를 의미하는 값 (평균에서 제외)
COVER_SENTINEL = 999


def average_months_cover(results: Sequence[SimulationMonthResult]) -> float:
    """Mean of the computed months-cover values, half-up to 2 decimals (0 when none)."""

    covers = [
        r.months_cover
        for r in results
        if r.months_cover is not None and r.months_cover < COVER_SENTINEL
    ]
    if not covers:
        return 0
    return round_half_up(sum(covers) / len(covers), 2)


class ForecastOrchestrator:
    """
    한 SKU/국가에 대한 예측 실행을 조율합니다.

    단계:
    1. 입력 조회 (fetcher)
    2. 소비 예측 맵 생성
    3. 폐기 스케줄 계산
    4. 수동/시스템 발주 분리 및 입고 맵 생성
    5. 이전 시스템 발주와 미래재고 결과 삭제 (writer)
    6. 월별 재고 시뮬레이션
    7. 새 결과 기록 (writer)

    어느 단계든 실패하면 로그를 남기고 예외를 그대로 다시 발생시킵니다.
    """

    def __init__(
        self,
        fetcher: InputFetcher,
        writer: ResultWriter,
        config: AutoForecastConfig = CONFIG,
    ) -> None:
        self.fetcher = fetcher
        self.writer = writer
        self.config = config
        self.last_result: Optional[SimulationResult] = None

    def execute(self, request: ForecastRequest) -> dict[str, Any]:
        """
        예측을 실행하고 요약을 반환합니다.

        Returns:
            {ok, durationMs, stats{monthsProcessed, systemOrdersPlaced,
            totalWriteOff, avgMonthsCover}, systemOrders[{yearMonth, quantity}]}

        Raises:
            DataLoadError, DataWriteError: fetcher/writer 실패 시 (그대로 전파)
        """
        logger.info(
            f"execute: sku={request.sku}, country={request.country}, "
            f"baseline={request.baseline_date.date()}, baseStock={request.base_stock}, "
            f"targetCover={request.target_cover_months}, "
            f"margin={request.procurement_safe_margin}"
        )

        try:
            with measure_time_context("AutoForecast execute") as timer:
                result, write_offs = self._run(request)
        except Exception as exc:
            logger.error(f"Calculation failed: {exc}", exc_info=True)
            raise

        self.last_result = result
        summary = {
            "ok": True,
            "durationMs": timer.elapsed_ms,
            "stats": {
                "monthsProcessed": len(result.results),
                "systemOrdersPlaced": len(result.system_orders),
                "totalWriteOff": write_offs.immediate_total,
                "avgMonthsCover": average_months_cover(result.results),
            },
            "systemOrders": [
                {"yearMonth": order.year_month, "quantity": order.quantity}
                for order in result.system_orders
            ],
        }
        logger.info(f"Calculation completed in {timer.elapsed_ms}ms")
        return summary

    def _run(self, request: ForecastRequest) -> tuple[SimulationResult, WriteOffSchedule]:
        calc = self.config.calculation

        logger.info("Step 1: Fetching input data...")
        inputs = self.fetcher.fetch_all(request.sku, request.country)
        start = request.start_month
        horizon = calc.forecast_months_ahead

        logger.info("Step 2: Building consumption map...")
        consumption = build_consumption_map(
            inputs.forecasts,
            inputs.budgets,
            start,
            horizon,
            request.procurement_safe_margin,
        )

        logger.info("Step 3: Processing write-offs...")
        write_offs = process_write_offs(
            inputs.aging_data, start.start, calc.no_sell_buffer_months
        )

        logger.info("Step 4: Processing manual orders...")
        manual_orders, system_orders = partition_orders(inputs.orders)
        inbound, manual_max_ym = build_inbound_map(manual_orders)

        logger.info("Step 5: Purging old data...")
        self.writer.purge_old_data(
            system_orders.to_dict("records"), list(inputs.old_future_inventory)
        )

        logger.info("Step 6: Running stock simulation...")
        result = run_simulation(
            SimulationParams(
                start=start,
                base_stock=request.base_stock,
                horizon_months=horizon,
                target_cover_months=request.target_cover_months,
                consumption=consumption,
                write_offs=write_offs,
                inbound=inbound,
                allowed_months=normalize_allowed_months(inputs.allowed_months),
                manual_orders_max_ym=manual_max_ym,
                max_cover_offset=calc.max_months_cover_offset,
                at_risk_threshold_months=calc.at_risk_threshold_months,
            )
        )

        logger.info("Step 7: Writing results...")
        self.writer.write_results(
            result.results,
            result.system_orders,
            request.sku,
            request.country,
            inputs.tins_per_carton,
        )
        return result, write_offs
