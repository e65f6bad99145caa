"""
계산 결과 기록

이전 시스템 발주와 미래재고 행을 삭제하고, 새 월별 원장과 시스템 발주를
Dataverse $batch 요청으로 기록합니다. 요청 목록은 순서와 무관한 평면 리스트입니다.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..core.config import CONFIG, CalculationConfig, Channel, OrderStatus
from ..domain.exceptions import DataWriteError
from ..domain.models import SimulationMonthResult, SystemOrder
from .dataverse import DataverseClient

logger = logging.getLogger(__name__)

ORDER_ENTITY = "new_orderitemses"
FUTURE_INVENTORY_ENTITY = "new_futureinventoryforecasts"


def _record_id(record: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = record.get(key)
        if value is not None and value == value and str(value).strip():
            return str(value)
    return None


# ============================================================
# 요청 빌더
# ============================================================


def build_purge_requests(
    system_orders: Sequence[Mapping[str, Any]],
    old_future_inventory: Sequence[Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """
    이전 시스템 발주와 미래재고 행에 대한 DELETE 요청 목록을 생성합니다.

    ID가 없는 레코드는 경고 로그를 남기고 건너뜁니다.
    """
    requests_: list[dict[str, Any]] = []
    skipped = 0

    for order in system_orders:
        record_id = _record_id(order, "new_orderitemsid", "order_id")
        if record_id is None:
            skipped += 1
            continue
        requests_.append({"method": "DELETE", "path": f"{ORDER_ENTITY}({record_id})"})

    for record in old_future_inventory:
        record_id = _record_id(record, "new_futureinventoryforecastid")
        if record_id is None:
            skipped += 1
            continue
        requests_.append(
            {"method": "DELETE", "path": f"{FUTURE_INVENTORY_ENTITY}({record_id})"}
        )

    if skipped:
        logger.warning(f"Skipped {skipped} purge candidates without a record id")
    return requests_


def future_inventory_payload(
    result: SimulationMonthResult, sku: str, country: str
) -> dict[str, Any]:
    return {
        "new_SKU@odata.bind": f"/new_skutables({sku})",
        "new_Country@odata.bind": f"/new_countrytables({country})",
        "new_date": result.iso_date,
        "new_futureopeningstock": result.opening_stock,
        "new_futureclosingstock": result.closing_stock,
        "new_calculatedconsumption": result.demand,
        "new_atriskquantity": result.write_off,
        "new_nonsellablequantity": result.write_off,
        "new_requiredinventory": result.required_inventory,
        "new_coverstock": result.months_cover,
    }


def order_payload(
    order: SystemOrder, sku: str, country: str, tins_per_carton: float
) -> dict[str, Any]:
    tins = tins_per_carton or 1.0
    return {
        "new_SKU@odata.bind": f"/new_skutables({sku})",
        "new_Country@odata.bind": f"/new_countrytables({country})",
        "new_date": order.iso_date,
        "new_year": order.year,
        "new_month": order.month,
        "new_orderitemqty": order.quantity,
        "new_orderplacementstatus": OrderStatus.SYSTEM_GENERATED,
        "new_channel": Channel.DEFAULT,
        "new_qtyincartons": order.quantity / tins,
    }


def build_write_requests(
    results: Sequence[SimulationMonthResult],
    system_orders: Sequence[SystemOrder],
    sku: str,
    country: str,
    tins_per_carton: float,
) -> list[dict[str, Any]]:
    """월별 미래재고 행과 시스템 발주 행에 대한 POST 요청 목록을 생성합니다."""

    requests_: list[dict[str, Any]] = [
        {
            "method": "POST",
            "path": FUTURE_INVENTORY_ENTITY,
            "payload": future_inventory_payload(result, sku, country),
        }
        for result in results
    ]
    requests_ += [
        {
            "method": "POST",
            "path": ORDER_ENTITY,
            "payload": order_payload(order, sku, country, tins_per_carton),
        }
        for order in system_orders
    ]
    return requests_


# ============================================================
# Writer
# ============================================================


class DataverseWriter:
    """ResultWriter backed by the Dataverse Web API."""

    def __init__(
        self,
        client: DataverseClient,
        calculation: CalculationConfig = CONFIG.calculation,
    ) -> None:
        self.client = client
        self.chunk_size = calculation.batch_chunk_size

    def _send(self, requests_: list[dict[str, Any]], label: str) -> None:
        if not requests_:
            return
        try:
            self.client.batch_in_chunks(requests_, self.chunk_size, label)
        except Exception as exc:
            raise DataWriteError(f"{label} failed: {exc}") from exc

    def purge_old_data(
        self,
        system_orders: Sequence[Mapping[str, Any]],
        old_future_inventory: Sequence[Mapping[str, Any]],
    ) -> None:
        """
        이전 실행 결과를 삭제합니다.

        Raises:
            DataWriteError: 배치 삭제 실패 시
        """
        requests_ = build_purge_requests(system_orders, old_future_inventory)
        self._send(requests_, "PurgeOldData")
        logger.info(f"Purged {len(requests_)} old records")

    def write_results(
        self,
        results: Sequence[SimulationMonthResult],
        system_orders: Sequence[SystemOrder],
        sku: str,
        country: str,
        tins_per_carton: float,
    ) -> None:
        """
        새 월별 원장과 시스템 발주를 기록합니다.

        Raises:
            DataWriteError: 배치 기록 실패 시
        """
        requests_ = build_write_requests(
            results, system_orders, sku, country, tins_per_carton
        )
        self._send(requests_, "WriteResults")
        logger.info(f"Wrote {len(requests_)} records to Dataverse")
