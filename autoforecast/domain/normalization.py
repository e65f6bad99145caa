"""
원본 레코드 정규화 유틸리티

Dataverse에서 조회한 레코드(dict 목록)를 계산 모듈이 사용하는
표준 스키마의 DataFrame으로 변환합니다. 표준 컬럼명으로 이미 정리된
입력은 그대로 통과하므로 여러 번 호출해도 결과가 같습니다.

누락되거나 형식이 잘못된 값은 예외 대신 0 또는 행 제외로 처리합니다.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence, Union

import pandas as pd

logger = logging.getLogger(__name__)

Records = Union[pd.DataFrame, Iterable[Mapping[str, Any]], None]

PERIOD_COLUMNS = ["year", "month", "quantity"]
ORDER_COLUMNS = ["order_id", "year", "month", "quantity", "status"]
AGING_COLUMNS = ["quantity", "expiry_date"]


# Dataverse logical names → canonical column names. Lookups are case
# insensitive; the canonical name itself is always accepted.
FORECAST_COLUMN_ALIASES: dict[str, Sequence[str]] = {
    "year": ("new_year",),
    "month": ("new_month",),
    "quantity": ("new_forecastquantity", "forecast_qty"),
}

BUDGET_COLUMN_ALIASES: dict[str, Sequence[str]] = {
    "year": ("new_year",),
    "month": ("new_month",),
    "quantity": ("new_budgetedquantity", "budget_qty"),
}

ORDER_COLUMN_ALIASES: dict[str, Sequence[str]] = {
    "order_id": ("new_orderitemsid",),
    "year": ("new_year",),
    "month": ("new_month",),
    "quantity": ("new_orderitemqty", "qty"),
    "status": ("new_orderplacementstatus", "placement_status"),
}

AGING_COLUMN_ALIASES: dict[str, Sequence[str]] = {
    "quantity": ("new_nearexpiryquantity", "near_expiry_qty"),
    "expiry_date": ("new_expirydate", "expiry"),
}


def records_to_frame(records: Records) -> pd.DataFrame:
    """Return *records* as a DataFrame copy (None and empty inputs give an empty frame)."""

    if records is None:
        return pd.DataFrame()
    if isinstance(records, pd.DataFrame):
        return records.copy()
    return pd.DataFrame([dict(r) for r in records])


def apply_column_aliases(
    frame: pd.DataFrame, aliases: Mapping[str, Sequence[str]]
) -> pd.DataFrame:
    lookup = {str(col).strip().lower(): col for col in frame.columns}
    rename_map: dict[str, str] = {}
    for canonical, candidates in aliases.items():
        if canonical in frame.columns:
            continue
        for candidate in candidates:
            source = lookup.get(candidate.lower())
            if source is not None:
                rename_map[source] = canonical
                break
    return frame.rename(columns=rename_map)


def _quantity(frame: pd.DataFrame, column: str = "quantity") -> pd.Series:
    if column not in frame.columns:
        return pd.Series(0.0, index=frame.index, dtype=float)
    return pd.to_numeric(frame[column], errors="coerce").fillna(0.0).astype(float)


def _has_period(frame: pd.DataFrame) -> bool:
    return not frame.empty and "year" in frame.columns and "month" in frame.columns


def _keep_valid_periods(out: pd.DataFrame, label: str) -> pd.DataFrame:
    """Drop rows whose year/month cannot be used and cast them to int."""

    valid = (
        out["year"].notna()
        & (out["year"] == out["year"].round())
        & out["month"].between(1, 12)
        & (out["month"] == out["month"].round())
    )
    dropped = int((~valid).sum())
    if dropped:
        logger.warning(f"Dropped {dropped} {label} rows without a usable year/month")

    out = out[valid].copy()
    out["year"] = out["year"].astype(int)
    out["month"] = out["month"].astype(int)
    return out.reset_index(drop=True)


def _normalize_period_frame(
    records: Records, aliases: Mapping[str, Sequence[str]], label: str
) -> pd.DataFrame:
    frame = apply_column_aliases(records_to_frame(records), aliases)
    if not _has_period(frame):
        return pd.DataFrame(columns=PERIOD_COLUMNS)

    out = pd.DataFrame(
        {
            "year": pd.to_numeric(frame["year"], errors="coerce"),
            "month": pd.to_numeric(frame["month"], errors="coerce"),
            "quantity": _quantity(frame),
        }
    )
    return _keep_valid_periods(out, label)[PERIOD_COLUMNS]


def normalize_forecasts(records: Records) -> pd.DataFrame:
    """Return forecast rows as ``year, month, quantity``."""

    return _normalize_period_frame(records, FORECAST_COLUMN_ALIASES, "forecast")


def normalize_budgets(records: Records) -> pd.DataFrame:
    """Return budget rows as ``year, month, quantity``."""

    return _normalize_period_frame(records, BUDGET_COLUMN_ALIASES, "budget")


def normalize_orders(records: Records) -> pd.DataFrame:
    """
    발주 레코드를 ``order_id, year, month, quantity, status`` 스키마로 변환합니다.

    연/월이 없는 발주는 입고 월을 알 수 없으므로 제외됩니다.
    status가 없으면 NaN으로 남겨 수동 발주로 취급됩니다.
    """
    frame = apply_column_aliases(records_to_frame(records), ORDER_COLUMN_ALIASES)
    if not _has_period(frame):
        return pd.DataFrame(columns=ORDER_COLUMNS)

    out = pd.DataFrame(
        {
            "year": pd.to_numeric(frame["year"], errors="coerce"),
            "month": pd.to_numeric(frame["month"], errors="coerce"),
            "quantity": _quantity(frame),
        }
    )
    out["order_id"] = frame["order_id"] if "order_id" in frame.columns else None
    out["status"] = (
        pd.to_numeric(frame["status"], errors="coerce")
        if "status" in frame.columns
        else float("nan")
    )
    return _keep_valid_periods(out, "order")[ORDER_COLUMNS]


def to_naive_utc(value: Any) -> pd.Timestamp:
    """Parse one timestamp as UTC and drop the timezone (NaT if unparseable)."""

    if value is None:
        return pd.NaT
    parsed = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(parsed):
        return pd.NaT
    return parsed.tz_convert(None)


def normalize_aging(records: Records) -> pd.DataFrame:
    """
    재고 에이징 레코드를 ``quantity, expiry_date`` 스키마로 변환합니다.

    유통기한이 없거나 해석할 수 없는 레코드는 제외합니다.
    """
    frame = apply_column_aliases(records_to_frame(records), AGING_COLUMN_ALIASES)
    if frame.empty or "expiry_date" not in frame.columns:
        if not frame.empty:
            logger.warning(f"Skipped {len(frame)} aging rows without an expiry date")
        return pd.DataFrame(columns=AGING_COLUMNS)

    out = pd.DataFrame(
        {
            "quantity": _quantity(frame),
            # element-wise so mixed date / datetime literals parse independently
            "expiry_date": pd.to_datetime(frame["expiry_date"].map(to_naive_utc)),
        }
    )
    invalid = out["expiry_date"].isna()
    if invalid.any():
        logger.warning(f"Skipped {int(invalid.sum())} aging rows with a malformed expiry date")
    return out[~invalid].reset_index(drop=True)[AGING_COLUMNS]


def normalize_allowed_months(values: Iterable[Any] | None) -> frozenset[int]:
    """
    발주 허용 월 목록을 1-12 정수 집합으로 변환합니다.

    정수 값 또는 ``new_month`` 필드를 가진 레코드를 모두 허용합니다.
    """
    months: set[int] = set()
    for value in values or []:
        if isinstance(value, Mapping):
            value = value.get("new_month", value.get("month"))
        if value is None or isinstance(value, bool):
            continue
        number = pd.to_numeric(value, errors="coerce")
        if pd.isna(number) or float(number) != int(number):
            continue
        if 1 <= int(number) <= 12:
            months.add(int(number))
    return frozenset(months)
