"""
도메인 모델: AutoForecast 엔진의 핵심 데이터 구조

이 모듈은 요청, 조회 스냅샷, 소비 맵, 폐기 스케줄, 시뮬레이션 결과를 정의합니다.
계산 중 변경되면 안 되는 구조는 불변(frozen) 데이터클래스와 읽기 전용 매핑으로 구현합니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

import pandas as pd

from ..common.months import YearMonth

LEDGER_COLUMNS = [
    "offset",
    "date",
    "year_month",
    "opening_stock",
    "inbound",
    "write_off",
    "demand",
    "consumption",
    "closing_stock",
    "required_inventory",
    "future_inbound",
    "gap",
    "system_order_qty",
    "months_cover",
    "at_risk",
]


def _frozen_mapping(values: Mapping[YearMonth, Any]) -> Mapping[YearMonth, Any]:
    return MappingProxyType(dict(values))


# ============================================================
# 요청 / 조회 스냅샷
# ============================================================


@dataclass(frozen=True)
class ForecastRequest:
    """
    검증된 단일 예측 요청.

    Attributes:
        sku: SKU 레코드 ID
        country: 국가 레코드 ID
        baseline_date: 기준일 (해당 월의 1일이 시뮬레이션 기준월)
        base_stock: 기준 재고
        target_cover_months: 목표 커버 개월 수 (발주 요구량 계산 구간)
        procurement_safe_margin: 소비 예측에 곱하는 안전 계수
    """

    sku: str
    country: str
    baseline_date: pd.Timestamp
    base_stock: float
    target_cover_months: int
    procurement_safe_margin: float = 1.0

    @property
    def start_month(self) -> YearMonth:
        return YearMonth.from_timestamp(self.baseline_date)


@dataclass(frozen=True)
class FetchedInputs:
    """
    외부 저장소에서 조회한 읽기 전용 입력 스냅샷.

    각 필드는 Dataverse 원본 레코드(dict) 목록이며,
    allowed_months만 정수 월(1-12) 목록입니다.
    """

    sku_meta: Mapping[str, Any] = field(default_factory=dict)
    budgets: Sequence[Mapping[str, Any]] = field(default_factory=list)
    forecasts: Sequence[Mapping[str, Any]] = field(default_factory=list)
    orders: Sequence[Mapping[str, Any]] = field(default_factory=list)
    allowed_months: Sequence[int] = field(default_factory=list)
    aging_data: Sequence[Mapping[str, Any]] = field(default_factory=list)
    old_future_inventory: Sequence[Mapping[str, Any]] = field(default_factory=list)

    @property
    def tins_per_carton(self) -> float:
        value = pd.to_numeric(
            (self.sku_meta or {}).get("new_numberoftinspercarton"), errors="coerce"
        )
        if pd.isna(value) or value == 0:
            return 1.0
        return float(value)

    def counts(self) -> dict[str, int]:
        return {
            "budgets": len(self.budgets),
            "forecasts": len(self.forecasts),
            "orders": len(self.orders),
            "allowedMonths": len(self.allowed_months),
            "agingRows": len(self.aging_data),
            "oldFutureInv": len(self.old_future_inventory),
        }


# ============================================================
# 소비 맵 / 폐기 스케줄
# ============================================================


@dataclass(frozen=True)
class ConsumptionMonth:
    """Forward-looking consumption entry consumed by the months-cover calculator."""

    offset: int
    month: YearMonth
    consumption: float
    days_in_month: int


@dataclass(frozen=True)
class ConsumptionMap:
    """
    월별 소비 예측 (안전 계수 적용, 정수 올림 완료).

    Attributes:
        quantities: 월 → 소비량 (읽기 전용)
        sources: 월 → 선택된 데이터 출처 ("forecast", "current-budget", "lastyear-budget")
    """

    quantities: Mapping[YearMonth, int] = field(default_factory=dict)
    sources: Mapping[YearMonth, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantities", _frozen_mapping(self.quantities))
        object.__setattr__(self, "sources", _frozen_mapping(self.sources))

    def get(self, month: YearMonth) -> int:
        return self.quantities.get(month, 0)

    def __len__(self) -> int:
        return len(self.quantities)

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "year_month": str(month),
                "consumption": qty,
                "source": self.sources.get(month, ""),
            }
            for month, qty in sorted(self.quantities.items())
        ]
        return pd.DataFrame(rows, columns=["year_month", "consumption", "source"])


@dataclass(frozen=True)
class WriteOffSchedule:
    """
    유통기한 임박 재고의 폐기 스케줄.

    Attributes:
        immediate_total: 기준 시점에 이미 판매 불가인 수량 (시작 재고에서 차감)
        future_by_month: 판매 불가 월 → 폐기 수량 (시뮬레이션 중 해당 월에 적용)
    """

    immediate_total: float = 0.0
    future_by_month: Mapping[YearMonth, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "future_by_month", _frozen_mapping(self.future_by_month)
        )

    def get(self, month: YearMonth) -> float:
        return self.future_by_month.get(month, 0)


# ============================================================
# 시뮬레이션 결과
# ============================================================


@dataclass(frozen=True)
class SystemOrder:
    """시뮬레이터가 제안한 자동 발주 (입력으로는 사용되지 않음)."""

    offset: int
    year: int
    month: int
    quantity: int
    iso_date: str

    @property
    def year_month(self) -> str:
        return f"{self.year}-{self.month}"

    @property
    def period(self) -> YearMonth:
        return YearMonth(self.year, self.month)


@dataclass(frozen=True)
class SimulationMonthResult:
    """
    시뮬레이션 한 달의 원장 레코드.

    consumption과 write_off는 실제 적용된 수량(가용 재고로 제한됨)이며,
    demand는 해당 월의 소비 예측값입니다. months_cover와 at_risk는
    전체 시뮬레이션 이후 두 번째 패스에서 채워집니다.
    """

    offset: int
    month: YearMonth
    opening_stock: float
    inbound: float
    write_off: float
    demand: float
    consumption: float
    closing_stock: float
    required_inventory: float
    future_inbound: float
    gap: float
    system_order: Optional[SystemOrder] = None
    months_cover: Optional[float] = None
    at_risk: bool = False

    @property
    def iso_date(self) -> str:
        return self.month.iso

    def as_row(self) -> dict[str, Any]:
        return {
            "offset": self.offset,
            "date": self.month.start,
            "year_month": str(self.month),
            "opening_stock": self.opening_stock,
            "inbound": self.inbound,
            "write_off": self.write_off,
            "demand": self.demand,
            "consumption": self.consumption,
            "closing_stock": self.closing_stock,
            "required_inventory": self.required_inventory,
            "future_inbound": self.future_inbound,
            "gap": self.gap,
            "system_order_qty": self.system_order.quantity if self.system_order else 0,
            "months_cover": self.months_cover,
            "at_risk": self.at_risk,
        }


@dataclass(frozen=True)
class SimulationResult:
    """월별 원장과 자동 발주 목록."""

    results: tuple[SimulationMonthResult, ...] = ()
    system_orders: tuple[SystemOrder, ...] = ()

    def to_frame(self) -> pd.DataFrame:
        """Return the monthly ledger as a DataFrame (one row per simulated month)."""

        if not self.results:
            return pd.DataFrame(columns=LEDGER_COLUMNS)
        return pd.DataFrame([r.as_row() for r in self.results], columns=LEDGER_COLUMNS)
