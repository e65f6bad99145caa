"""
원장 테이블 포맷 모듈

시뮬레이션 결과를 Streamlit 표시용 데이터프레임으로 변환합니다.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..domain.models import LEDGER_COLUMNS, SimulationResult

LEDGER_LABELS = {
    "year_month": "월",
    "opening_stock": "기초 재고",
    "inbound": "입고",
    "write_off": "폐기",
    "demand": "소비 예측",
    "consumption": "소비",
    "closing_stock": "기말 재고",
    "required_inventory": "요구량",
    "future_inbound": "향후 입고",
    "gap": "부족분",
    "system_order_qty": "자동 발주",
    "months_cover": "커버(개월)",
    "at_risk": "위험",
}

QUANTITY_COLUMNS = [
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
]


def format_ledger(result: SimulationResult | pd.DataFrame) -> pd.DataFrame:
    """
    월별 원장을 표시용 테이블로 변환합니다.

    수량은 정수로 반올림하고, 커버 개월 수는 소수 둘째 자리까지 표시하며,
    컬럼명은 한글 라벨로 바꿉니다.

    Args:
        result: SimulationResult 또는 SimulationResult.to_frame() 결과

    Returns:
        표시용 데이터프레임 (원장이 비어 있으면 라벨 컬럼만 있는 빈 프레임)
    """
    ledger = result.to_frame() if isinstance(result, SimulationResult) else result.copy()
    if ledger.empty:
        return pd.DataFrame(columns=list(LEDGER_LABELS.values()))

    missing = [col for col in LEDGER_COLUMNS if col not in ledger.columns]
    for col in missing:
        ledger[col] = pd.NA

    table = ledger[list(LEDGER_LABELS)].copy()
    for col in QUANTITY_COLUMNS:
        table[col] = pd.to_numeric(table[col], errors="coerce").fillna(0).round().astype(int)
    table["months_cover"] = pd.to_numeric(table["months_cover"], errors="coerce").round(2)
    table["at_risk"] = np.where(table["at_risk"].fillna(False).astype(bool), "⚠️", "")

    return table.rename(columns=LEDGER_LABELS).reset_index(drop=True)
