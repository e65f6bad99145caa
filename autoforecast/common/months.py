"""Calendar-month value type used as the key of every monthly map.

월 단위 맵의 키로 문자열 대신 (year, month) 값 타입을 사용합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

import pandas as pd


@dataclass(frozen=True, order=True)
class YearMonth:
    """
    연/월 쌍을 나타내는 불변 값 타입.

    Attributes:
        year: 연도 (예: 2025)
        month: 월 (1-12)

    Examples:
        >>> ym = YearMonth(2024, 11)
        >>> ym.shift(3)
        YearMonth(year=2025, month=2)
        >>> ym.shift(3).days_in_month
        28
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= int(self.month) <= 12:
            raise ValueError(f"month must be within 1..12, got {self.month}")

    @classmethod
    def from_timestamp(cls, value: Any) -> "YearMonth":
        """Return the month containing *value* (date, datetime, Timestamp or string)."""

        ts = pd.Timestamp(value)
        return cls(int(ts.year), int(ts.month))

    @classmethod
    def from_index(cls, index: int) -> "YearMonth":
        year, month0 = divmod(int(index), 12)
        return cls(year, month0 + 1)

    @property
    def index(self) -> int:
        """Linear month index: ``year * 12 + (month - 1)``."""

        return self.year * 12 + (self.month - 1)

    def shift(self, months: int) -> "YearMonth":
        return YearMonth.from_index(self.index + int(months))

    @property
    def start(self) -> pd.Timestamp:
        return pd.Timestamp(year=self.year, month=self.month, day=1)

    @property
    def days_in_month(self) -> int:
        return int(self.start.days_in_month)

    @property
    def iso(self) -> str:
        """Dataverse date literal for the first day of the month (UTC)."""

        return f"{self.year:04d}-{self.month:02d}-01T00:00:00Z"

    @property
    def label(self) -> str:
        return f"{self.year}-{self.month}"

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def month_sequence(start: YearMonth, count: int) -> Iterator[tuple[int, YearMonth]]:
    """Yield ``(offset, month)`` for offsets ``1..count`` after *start*."""

    for offset in range(1, int(max(0, count)) + 1):
        yield offset, start.shift(offset)
