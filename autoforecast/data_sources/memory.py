"""In-memory store implementing both the fetch and write protocols."""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..domain.models import FetchedInputs, SimulationMonthResult, SystemOrder
from ..domain.normalization import normalize_allowed_months
from .writer import future_inventory_payload, order_payload

logger = logging.getLogger(__name__)


@dataclass
class _Partition:
    sku_meta: dict[str, Any] = field(default_factory=dict)
    budgets: list[dict[str, Any]] = field(default_factory=list)
    forecasts: list[dict[str, Any]] = field(default_factory=list)
    orders: list[dict[str, Any]] = field(default_factory=list)
    allowed_months: list[int] = field(default_factory=list)
    aging_data: list[dict[str, Any]] = field(default_factory=list)
    future_inventory: list[dict[str, Any]] = field(default_factory=list)


class MemoryStore:
    """
    Dataverse 대신 메모리에 입력과 결과를 보관하는 저장소.

    fetch_all은 깊은 복사본을 반환하므로 계산 중 저장소 상태가 바뀌어도
    이미 조회한 스냅샷에는 영향이 없습니다. 오프라인 실행(드라이 런)과
    테스트에서 사용합니다.
    """

    def __init__(self) -> None:
        self._partitions: dict[tuple[str, str], _Partition] = {}
        self.operations: list[str] = []

    def _partition(self, sku: str, country: str) -> _Partition:
        return self._partitions.setdefault((sku, country), _Partition())

    def seed(
        self,
        sku: str,
        country: str,
        *,
        sku_meta: Optional[Mapping[str, Any]] = None,
        budgets: Sequence[Mapping[str, Any]] = (),
        forecasts: Sequence[Mapping[str, Any]] = (),
        orders: Sequence[Mapping[str, Any]] = (),
        allowed_months: Sequence[Any] = (),
        aging_data: Sequence[Mapping[str, Any]] = (),
    ) -> None:
        """Load input records for one SKU/country; orders without an id get one."""

        part = self._partition(sku, country)
        if sku_meta is not None:
            part.sku_meta = dict(sku_meta)
        part.budgets.extend(dict(r) for r in budgets)
        part.forecasts.extend(dict(r) for r in forecasts)
        for order in orders:
            record = dict(order)
            record.setdefault("new_orderitemsid", str(uuid.uuid4()))
            part.orders.append(record)
        part.allowed_months = sorted(
            set(part.allowed_months) | normalize_allowed_months(allowed_months)
        )
        part.aging_data.extend(dict(r) for r in aging_data)

    # ------------------------------------------------------------------
    # InputFetcher
    # ------------------------------------------------------------------

    def fetch_all(self, sku: str, country: str) -> FetchedInputs:
        self.operations.append("fetch")
        part = self._partition(sku, country)
        return FetchedInputs(
            sku_meta=copy.deepcopy(part.sku_meta),
            budgets=copy.deepcopy(part.budgets),
            forecasts=copy.deepcopy(part.forecasts),
            orders=copy.deepcopy(part.orders),
            allowed_months=list(part.allowed_months),
            aging_data=copy.deepcopy(part.aging_data),
            old_future_inventory=[
                {"new_futureinventoryforecastid": row["new_futureinventoryforecastid"]}
                for row in part.future_inventory
            ],
        )

    # ------------------------------------------------------------------
    # ResultWriter
    # ------------------------------------------------------------------

    def purge_old_data(
        self,
        system_orders: Sequence[Mapping[str, Any]],
        old_future_inventory: Sequence[Mapping[str, Any]],
    ) -> None:
        self.operations.append("purge")
        order_ids = {
            str(o.get("new_orderitemsid", o.get("order_id"))) for o in system_orders
        }
        inventory_ids = {
            str(r.get("new_futureinventoryforecastid")) for r in old_future_inventory
        }

        removed = 0
        for part in self._partitions.values():
            before = len(part.orders) + len(part.future_inventory)
            part.orders = [
                o for o in part.orders if str(o.get("new_orderitemsid")) not in order_ids
            ]
            part.future_inventory = [
                r
                for r in part.future_inventory
                if str(r.get("new_futureinventoryforecastid")) not in inventory_ids
            ]
            removed += before - len(part.orders) - len(part.future_inventory)
        logger.info(f"Purged {removed} old records")

    def write_results(
        self,
        results: Sequence[SimulationMonthResult],
        system_orders: Sequence[SystemOrder],
        sku: str,
        country: str,
        tins_per_carton: float,
    ) -> None:
        self.operations.append("write")
        part = self._partition(sku, country)
        for result in results:
            row = future_inventory_payload(result, sku, country)
            row["new_futureinventoryforecastid"] = str(uuid.uuid4())
            part.future_inventory.append(row)
        for order in system_orders:
            row = order_payload(order, sku, country, tins_per_carton)
            row["new_orderitemsid"] = str(uuid.uuid4())
            part.orders.append(row)
        logger.info(f"Wrote {len(results) + len(system_orders)} records to memory")

    # ------------------------------------------------------------------
    # 조회 헬퍼
    # ------------------------------------------------------------------

    def future_inventory(self, sku: str, country: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._partition(sku, country).future_inventory)

    def orders(self, sku: str, country: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._partition(sku, country).orders)
