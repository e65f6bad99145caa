"""공통 유틸리티 모듈.

월 단위 값 타입과 성능 측정 헬퍼를 제공합니다.
"""

from .months import YearMonth, month_sequence
from .performance import PerformanceContext, measure_time, measure_time_context

__all__ = [
    "YearMonth",
    "month_sequence",
    "PerformanceContext",
    "measure_time",
    "measure_time_context",
]
