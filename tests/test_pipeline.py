"""
오케스트레이터 통합 테스트 (MemoryStore 사용)
"""
from __future__ import annotations

import pandas as pd
import pytest

from autoforecast.common.months import YearMonth
from autoforecast.core.config import AutoForecastConfig, CalculationConfig, OrderStatus
from autoforecast.data_sources.fetcher import StaticFetcher
from autoforecast.data_sources.memory import MemoryStore
from autoforecast.domain.exceptions import DataLoadError, DataWriteError
from autoforecast.domain.models import FetchedInputs, ForecastRequest, SimulationMonthResult
from autoforecast.pipeline import ForecastOrchestrator, average_months_cover

SKU = "sku-1"
COUNTRY = "country-kr"


def _request(**overrides):
    values = dict(
        sku=SKU,
        country=COUNTRY,
        baseline_date=pd.Timestamp("2025-01-15"),
        base_stock=0,
        target_cover_months=2,
    )
    values.update(overrides)
    return ForecastRequest(**values)


def _budget(year, month, qty):
    return {"new_year": year, "new_month": month, "new_budgetedquantity": qty}


@pytest.fixture
def short_config():
    return AutoForecastConfig(calculation=CalculationConfig(forecast_months_ahead=4))


@pytest.fixture
def store():
    store = MemoryStore()
    store.seed(
        SKU,
        COUNTRY,
        sku_meta={"new_numberoftinspercarton": 20},
        budgets=[_budget(2025, m, 100) for m in range(2, 6)],
        allowed_months=range(1, 13),
    )
    return store


# ============================================================
# 요약
# ============================================================

def test_execute_returns_summary(store, short_config):
    summary = ForecastOrchestrator(store, store, short_config).execute(_request())

    assert summary["ok"] is True
    assert isinstance(summary["durationMs"], int)
    assert summary["stats"] == {
        "monthsProcessed": 4,
        "systemOrdersPlaced": 2,
        "totalWriteOff": 0,
        "avgMonthsCover": 1.25,
    }
    assert summary["systemOrders"] == [
        {"yearMonth": "2025-2", "quantity": 200},
        {"yearMonth": "2025-3", "quantity": 100},
    ]


def test_execute_exposes_last_result(store, short_config):
    orchestrator = ForecastOrchestrator(store, store, short_config)
    assert orchestrator.last_result is None

    orchestrator.execute(_request())

    assert len(orchestrator.last_result.results) == 4
    assert orchestrator.last_result.results[0].month == YearMonth(2025, 2)


def test_results_and_orders_are_written(store, short_config):
    ForecastOrchestrator(store, store, short_config).execute(_request())

    rows = store.future_inventory(SKU, COUNTRY)
    assert [r["new_date"] for r in rows] == [
        "2025-02-01T00:00:00Z",
        "2025-03-01T00:00:00Z",
        "2025-04-01T00:00:00Z",
        "2025-05-01T00:00:00Z",
    ]
    assert [r["new_calculatedconsumption"] for r in rows] == [100, 100, 100, 100]

    orders = store.orders(SKU, COUNTRY)
    assert [o["new_orderitemqty"] for o in orders] == [200, 100]
    assert all(o["new_orderplacementstatus"] == OrderStatus.SYSTEM_GENERATED for o in orders)
    assert orders[0]["new_qtyincartons"] == 10


def test_immediate_write_off_reported(store, short_config):
    store.seed(SKU, COUNTRY, aging_data=[{"new_nearexpiryquantity": 30, "new_expirydate": "2024-12-01"}])

    summary = ForecastOrchestrator(store, store, short_config).execute(_request(base_stock=500))

    assert summary["stats"]["totalWriteOff"] == 30


def test_safety_margin_scales_consumption(store, short_config):
    orchestrator = ForecastOrchestrator(store, store, short_config)
    orchestrator.execute(_request(procurement_safe_margin=1.2, base_stock=1000))

    assert [r.demand for r in orchestrator.last_result.results] == [120, 120, 120, 120]


# ============================================================
# 삭제 → 기록 순서 / 멱등성
# ============================================================

def test_purge_happens_before_write(store, short_config):
    ForecastOrchestrator(store, store, short_config).execute(_request())

    assert store.operations == ["fetch", "purge", "write"]


def test_rerun_with_same_inputs_is_idempotent(store, short_config):
    orchestrator = ForecastOrchestrator(store, store, short_config)
    first = orchestrator.execute(_request())
    first_rows = store.future_inventory(SKU, COUNTRY)

    second = orchestrator.execute(_request())
    second_rows = store.future_inventory(SKU, COUNTRY)

    assert second["systemOrders"] == first["systemOrders"]
    assert second["stats"] == first["stats"]
    assert len(store.orders(SKU, COUNTRY)) == 2

    def strip_ids(rows):
        return [{k: v for k, v in r.items() if k != "new_futureinventoryforecastid"} for r in rows]

    assert strip_ids(second_rows) == strip_ids(first_rows)


def test_manual_orders_survive_rerun(store, short_config):
    store.seed(
        SKU,
        COUNTRY,
        orders=[
            {
                "new_orderitemsid": "manual-1",
                "new_year": 2025,
                "new_month": 3,
                "new_orderitemqty": 500,
                "new_orderplacementstatus": OrderStatus.APPROVED,
            }
        ],
    )
    orchestrator = ForecastOrchestrator(store, store, short_config)
    orchestrator.execute(_request())
    summary = orchestrator.execute(_request())

    ids = [o["new_orderitemsid"] for o in store.orders(SKU, COUNTRY)]
    assert "manual-1" in ids
    # 수동 발주 월(3월) 이후에만 자동 발주 가능
    assert all(o["yearMonth"] in {"2025-4", "2025-5"} for o in summary["systemOrders"])


# ============================================================
# 실패 전파
# ============================================================

class _FailingFetcher:
    def fetch_all(self, sku, country):
        raise DataLoadError("Failed to fetch budgets: boom")


class _FailingWriter(MemoryStore):
    def purge_old_data(self, system_orders, old_future_inventory):
        self.operations.append("purge")
        raise DataWriteError("PurgeOldData failed")


def test_fetch_failure_propagates_without_writes(short_config):
    writer = MemoryStore()

    with pytest.raises(DataLoadError):
        ForecastOrchestrator(_FailingFetcher(), writer, short_config).execute(_request())

    assert writer.operations == []


def test_purge_failure_aborts_before_write(short_config):
    writer = _FailingWriter()
    fetcher = StaticFetcher(FetchedInputs(allowed_months=[1, 2, 3]))

    with pytest.raises(DataWriteError):
        ForecastOrchestrator(fetcher, writer, short_config).execute(_request())

    assert writer.operations == ["purge"]


# ============================================================
# 평균 커버
# ============================================================

def _result(cover):
    return SimulationMonthResult(
        offset=1,
        month=YearMonth(2025, 2),
        opening_stock=0,
        inbound=0,
        write_off=0,
        demand=0,
        consumption=0,
        closing_stock=0,
        required_inventory=0,
        future_inbound=0,
        gap=0,
        months_cover=cover,
    )


def test_average_months_cover_ignores_missing_and_sentinel_values():
    results = [_result(1.0), _result(2.005), _result(None), _result(999)]

    assert average_months_cover(results) == 1.5


def test_average_months_cover_without_values_is_zero():
    assert average_months_cover([]) == 0
    assert average_months_cover([_result(None)]) == 0
