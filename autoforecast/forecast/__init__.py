"""Forecast 계산 모듈.

소비 예측 맵, 폐기 스케줄, 재고 커버 개월 수 계산을 제공합니다.
"""

from .consumption import build_consumption_map, select_month_consumption, to_sequence
from .months_cover import calculate_months_cover, round_half_up
from .writeoff import non_sell_month, process_write_offs

__all__ = [
    "build_consumption_map",
    "select_month_consumption",
    "to_sequence",
    "calculate_months_cover",
    "round_half_up",
    "process_write_offs",
    "non_sell_month",
]
