"""
월별 재고 시뮬레이션 및 자동 발주 테스트
"""
from __future__ import annotations

import pytest

from autoforecast.common.months import YearMonth
from autoforecast.domain.models import ConsumptionMap, WriteOffSchedule
from autoforecast.planning.simulation import (
    SimulationParams,
    calculate_requirement,
    can_place_order,
    run_simulation,
)

START = YearMonth(2025, 1)
FEB, MAR, APR, MAY = (START.shift(i) for i in range(1, 5))


def _consumption(**by_month):
    return ConsumptionMap(quantities=by_month_to_map(by_month))


def by_month_to_map(by_month):
    months = {"feb": FEB, "mar": MAR, "apr": APR, "may": MAY}
    return {months[name]: qty for name, qty in by_month.items()}


@pytest.fixture
def flat_demand():
    """2-5월 매월 100 소비"""
    return _consumption(feb=100, mar=100, apr=100, may=100)


def _params(consumption, **overrides):
    values = dict(
        start=START,
        base_stock=0,
        horizon_months=4,
        target_cover_months=2,
        consumption=consumption,
        allowed_months=frozenset(range(1, 13)),
    )
    values.update(overrides)
    return SimulationParams(**values)


# ============================================================
# 재고 흐름
# ============================================================

def test_opening_stock_continues_from_previous_closing(flat_demand):
    result = run_simulation(_params(flat_demand, base_stock=500, allowed_months=frozenset()))

    rows = result.results
    assert [r.month for r in rows] == [FEB, MAR, APR, MAY]
    assert rows[0].opening_stock == 500
    for prev, cur in zip(rows, rows[1:]):
        assert cur.opening_stock == prev.closing_stock
    assert [r.closing_stock for r in rows] == [400, 300, 200, 100]


def test_consumption_is_limited_by_available_stock(flat_demand):
    result = run_simulation(_params(flat_demand, base_stock=150, allowed_months=frozenset()))

    rows = result.results
    assert [r.consumption for r in rows] == [100, 50, 0, 0]
    assert [r.demand for r in rows] == [100, 100, 100, 100]
    assert all(r.closing_stock >= 0 for r in rows)


def test_immediate_write_off_reduces_starting_stock(flat_demand):
    schedule = WriteOffSchedule(immediate_total=30)
    result = run_simulation(
        _params(flat_demand, base_stock=100, write_offs=schedule, allowed_months=frozenset())
    )

    assert result.results[0].opening_stock == 70


def test_immediate_write_off_larger_than_stock_starts_from_zero(flat_demand):
    schedule = WriteOffSchedule(immediate_total=150)
    result = run_simulation(
        _params(flat_demand, base_stock=100, write_offs=schedule, allowed_months=frozenset())
    )

    assert result.results[0].opening_stock == 0
    assert all(r.closing_stock >= 0 for r in result.results)


def test_scheduled_write_off_applies_before_consumption(flat_demand):
    schedule = WriteOffSchedule(future_by_month={MAR: 50})
    result = run_simulation(
        _params(flat_demand, base_stock=300, write_offs=schedule, allowed_months=frozenset())
    )

    mar = result.results[1]
    assert mar.write_off == 50
    assert mar.consumption == 100
    assert mar.closing_stock == 50


def test_write_off_is_capped_by_supply(flat_demand):
    schedule = WriteOffSchedule(future_by_month={FEB: 500})
    result = run_simulation(
        _params(flat_demand, base_stock=100, write_offs=schedule, allowed_months=frozenset())
    )

    feb = result.results[0]
    assert feb.write_off == 100
    assert feb.consumption == 0
    assert feb.closing_stock == 0


def test_manual_inbound_arrives_in_its_month(flat_demand):
    inbound = {MAR: 250.0}
    result = run_simulation(
        _params(flat_demand, base_stock=100, inbound=inbound, allowed_months=frozenset())
    )

    assert [r.inbound for r in result.results] == [0, 250, 0, 0]
    assert [r.closing_stock for r in result.results] == [0, 150, 50, 0]
    # 입력 맵은 변경되지 않음
    assert inbound == {MAR: 250.0}


# ============================================================
# 자동 발주
# ============================================================

def test_orders_fill_gap_over_target_cover_window(flat_demand):
    result = run_simulation(_params(flat_demand))

    orders = [(o.period, o.quantity) for o in result.system_orders]
    assert orders == [(FEB, 200), (MAR, 100)]

    feb, mar, apr, may = result.results
    assert feb.required_inventory == 200
    assert feb.gap == 200
    assert feb.closing_stock == 200
    assert mar.closing_stock == 200
    assert apr.gap == 0
    assert may.closing_stock == 0


def test_order_quantity_is_ceiling_of_gap():
    consumption = ConsumptionMap(quantities={MAR: 100.4})
    result = run_simulation(_params(consumption, target_cover_months=1, horizon_months=1))

    assert result.system_orders[0].quantity == 101


def test_no_orders_at_or_before_manual_orders_horizon(flat_demand):
    result = run_simulation(_params(flat_demand, manual_orders_max_ym=MAR.index))

    assert [(o.period, o.quantity) for o in result.system_orders] == [(APR, 100)]


def test_orders_only_in_allowed_months(flat_demand):
    result = run_simulation(_params(flat_demand, allowed_months=frozenset({4})))

    assert [o.period.month for o in result.system_orders] == [4]
    assert result.results[0].system_order is None


def test_no_allowed_months_means_no_orders(flat_demand):
    result = run_simulation(_params(flat_demand, allowed_months=frozenset()))

    assert result.system_orders == ()


def test_future_inbound_counts_against_gap(flat_demand):
    result = run_simulation(_params(flat_demand, inbound={MAR: 100.0, APR: 100.0}))

    feb = result.results[0]
    assert feb.future_inbound == 200
    assert feb.gap == 0
    assert feb.system_order is None


def test_system_order_fields(flat_demand):
    order = run_simulation(_params(flat_demand)).system_orders[0]

    assert order.year == 2025 and order.month == 2
    assert order.offset == 1
    assert order.iso_date == "2025-02-01T00:00:00Z"
    assert order.year_month == "2025-2"


# ============================================================
# 커버 개월 수 / 경계
# ============================================================

def test_months_cover_attached_after_simulation(flat_demand):
    result = run_simulation(_params(flat_demand))

    covers = [r.months_cover for r in result.results]
    assert covers == [2.0, 2.0, 1.0, 0]
    assert [r.at_risk for r in result.results] == [True, True, True, True]


def test_month_without_forward_demand_reports_max_offset():
    consumption = ConsumptionMap(quantities={FEB: 10})
    result = run_simulation(
        _params(consumption, base_stock=100, horizon_months=1, allowed_months=frozenset())
    )

    only = result.results[0]
    assert only.months_cover == 12
    assert only.at_risk is False


def test_zero_demand_months_keep_stock_flat():
    result = run_simulation(
        _params(ConsumptionMap(), base_stock=80, allowed_months=frozenset())
    )

    assert [r.closing_stock for r in result.results] == [80, 80, 80, 80]
    assert result.system_orders == ()


@pytest.mark.parametrize("horizon", [0, -3])
def test_empty_horizon_gives_empty_result(flat_demand, horizon):
    result = run_simulation(_params(flat_demand, horizon_months=horizon))

    assert result.results == ()
    assert result.system_orders == ()
    assert result.to_frame().empty


def test_ledger_frame_has_one_row_per_month(flat_demand):
    frame = run_simulation(_params(flat_demand)).to_frame()

    assert len(frame) == 4
    assert frame["year_month"].tolist() == ["2025-02", "2025-03", "2025-04", "2025-05"]
    assert frame["system_order_qty"].tolist() == [200, 100, 0, 0]


# ============================================================
# 헬퍼
# ============================================================

def test_calculate_requirement(flat_demand):
    req = calculate_requirement(50, FEB, flat_demand, {APR: 30.0}, 2)

    assert req.required == 200
    assert req.future_inbound == 30
    assert req.gap == 120


def test_can_place_order_gates():
    allowed = frozenset({2})
    assert can_place_order(1, FEB, 0, allowed)
    assert not can_place_order(0, FEB, 0, allowed)
    assert not can_place_order(5, FEB, FEB.index, allowed)
    assert not can_place_order(5, MAR, 0, allowed)
