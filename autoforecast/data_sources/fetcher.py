"""
Dataverse 입력 데이터 조회

SKU 메타, 예산, 예측, 발주, 발주 허용 월, 재고 에이징, 이전 미래재고 결과를
동시에 조회해 FetchedInputs 스냅샷으로 반환합니다.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional

from ..common.performance import measure_time
from ..core.config import CONFIG, CalculationConfig
from ..domain.exceptions import DataLoadError
from ..domain.models import FetchedInputs
from ..domain.normalization import normalize_allowed_months
from .dataverse import DataverseClient

logger = logging.getLogger(__name__)


def sku_country_filter(sku: str, country: str) -> str:
    return f"$filter=_new_sku_value eq '{sku}' and _new_country_value eq '{country}'"


def build_queries(sku: str, country: str) -> dict[str, str]:
    """
    조회 대상별 Web API 상대 경로를 생성합니다.

    Returns:
        필드명 → 쿼리 경로 딕셔너리 (FetchedInputs 필드명과 동일)
    """
    flt = sku_country_filter(sku, country)
    return {
        "sku_meta": f"new_skutables({sku})?$select=new_numberoftinspercarton",
        "budgets": (
            "new_budgettables?$select=new_budgetedquantity,new_year,new_month,new_channel"
            f"&{flt}"
        ),
        "forecasts": (
            "new_forecasttables?$select=new_forecasttableid,new_forecastquantity,"
            f"new_year,new_month,new_channel,new_forecaststatus&{flt}"
        ),
        "orders": (
            "new_orderitemses?$select=new_orderitemsid,new_year,new_month,"
            f"new_orderitemqty,new_orderplacementstatus&{flt}"
        ),
        "allowed_months": f"new_allowedordermonthses?$select=new_month&{flt}",
        "aging_data": (
            "new_stockagingreporttables?$select=new_nearexpiryquantity,new_expirydate"
            f"&{flt}"
        ),
        "old_future_inventory": (
            f"new_futureinventoryforecasts?$select=new_futureinventoryforecastid&{flt}"
        ),
    }


def _values(response: Optional[Mapping[str, Any]]) -> list[dict[str, Any]]:
    if not response:
        return []
    return list(response.get("value", []))


class DataverseFetcher:
    """InputFetcher backed by the Dataverse Web API."""

    def __init__(
        self,
        client: DataverseClient,
        calculation: CalculationConfig = CONFIG.calculation,
    ) -> None:
        self.client = client
        self.max_workers = max(1, calculation.fetch_workers)

    def _fetch(self, name: str, path: str) -> Any:
        response = self.client.call(path)
        if name == "sku_meta":
            return dict(response or {})
        values = _values(response)
        if name == "allowed_months":
            return sorted(normalize_allowed_months(values))
        return values

    @measure_time
    def fetch_all(self, sku: str, country: str) -> FetchedInputs:
        """
        7개 입력을 스레드 풀로 동시에 조회합니다.

        하나라도 실패하면 나머지 결과는 버리고 DataLoadError를 발생시킵니다.

        Raises:
            DataLoadError: 조회 실패 시 (원인 예외 연결)
        """
        queries = build_queries(sku, country)
        logger.info(f"Fetching {len(queries)} input sets for sku={sku}, country={country}")

        fetched: dict[str, Any] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                name: executor.submit(self._fetch, name, path)
                for name, path in queries.items()
            }
            for name, future in futures.items():
                try:
                    fetched[name] = future.result()
                except Exception as exc:
                    raise DataLoadError(f"Failed to fetch {name}: {exc}") from exc

        inputs = FetchedInputs(**fetched)
        logger.info(f"Fetched inputs: {inputs.counts()}")
        return inputs


class StaticFetcher:
    """InputFetcher that returns a prepared snapshot (dry runs, tests)."""

    def __init__(self, inputs: FetchedInputs | Callable[[str, str], FetchedInputs]) -> None:
        self._inputs = inputs

    def fetch_all(self, sku: str, country: str) -> FetchedInputs:
        if callable(self._inputs):
            return self._inputs(sku, country)
        return self._inputs
