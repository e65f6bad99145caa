"""
AutoForecast 플래너 콘솔

SKU/국가를 지정해 재고 시뮬레이션을 실행하고 월별 원장과 전망 차트를 확인합니다.

실행 모드:
- 드라이 런: Dataverse에서 입력을 조회하되 결과는 메모리에만 기록
- 기록: 이전 자동 발주/미래재고를 삭제하고 새 결과를 Dataverse에 기록
"""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from autoforecast.core.config import load_config

# 로깅 설정
_CONFIG = load_config()
logging.basicConfig(
    level=getattr(logging, _CONFIG.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

from autoforecast.core.config import validate_config
from autoforecast.data_sources import (
    DataverseClient,
    DataverseFetcher,
    DataverseWriter,
    MemoryStore,
)
from autoforecast.domain import validate_forecast_request
from autoforecast.pipeline import ForecastOrchestrator
from autoforecast.ui import build_projection_figure, format_ledger
from autoforecast.ui.adapters import handle_domain_errors

MODE_DRY_RUN = "드라이 런 (기록 안 함)"
MODE_WRITE = "Dataverse 기록"


def _build_orchestrator(dry_run: bool) -> ForecastOrchestrator:
    validate_config(_CONFIG)
    client = DataverseClient(_CONFIG.dataverse)
    writer = MemoryStore() if dry_run else DataverseWriter(client, _CONFIG.calculation)
    return ForecastOrchestrator(
        fetcher=DataverseFetcher(client, _CONFIG.calculation),
        writer=writer,
        config=_CONFIG,
    )


def _render_sidebar() -> dict:
    with st.sidebar:
        st.header("실행 조건")
        sku = st.text_input("SKU ID", value=st.session_state.get("sku", ""))
        country = st.text_input("Country ID", value=st.session_state.get("country", ""))
        baseline = st.date_input("기준일", value=pd.Timestamp.today().normalize())
        base_stock = st.number_input("기준 재고", min_value=0.0, value=0.0, step=100.0)
        target_cover = st.number_input("목표 커버 (개월)", min_value=1, value=6, step=1)
        margin = st.number_input(
            "안전 계수", min_value=0.1, value=1.0, step=0.05, format="%.2f"
        )

        st.divider()
        mode = st.radio("실행 모드", [MODE_DRY_RUN, MODE_WRITE])
        st.caption(
            f"예측 기간 {_CONFIG.calculation.forecast_months_ahead}개월 / "
            f"위험 기준 {_CONFIG.calculation.at_risk_threshold_months}개월 미만"
        )
        run = st.button("▶ 실행", use_container_width=True)

    return {
        "run": run,
        "dry_run": mode == MODE_DRY_RUN,
        "body": {
            "sku": sku.strip(),
            "country": country.strip(),
            "baselineDate": pd.Timestamp(baseline).strftime("%Y-%m-%d"),
            "baseStock": base_stock,
            "targetCoverMonths": int(target_cover),
            "ProcurementSafeMargin": margin,
        },
    }


def _render_summary(summary: dict) -> None:
    stats = summary["stats"]
    cols = st.columns(4)
    cols[0].metric("시뮬레이션 개월", stats["monthsProcessed"])
    cols[1].metric("자동 발주", stats["systemOrdersPlaced"])
    cols[2].metric("즉시 폐기", f"{stats['totalWriteOff']:,.0f}")
    cols[3].metric("평균 커버", f"{stats['avgMonthsCover']:.2f}")
    st.caption(f"실행 시간 {summary['durationMs']}ms")


def main() -> None:
    """플래너 콘솔 메인 함수."""

    logger.info("AutoForecast 콘솔 시작")

    # ========================================
    # 1단계: 페이지 설정
    # ========================================
    st.set_page_config(page_title="AutoForecast", layout="wide")
    st.title("AutoForecast")

    options = _render_sidebar()
    if options["run"]:
        # ========================================
        # 2단계: 요청 검증 및 실행
        # ========================================
        with handle_domain_errors():
            request = validate_forecast_request(options["body"])
            orchestrator = _build_orchestrator(options["dry_run"])
            summary = orchestrator.execute(request)
            st.session_state["summary"] = summary
            st.session_state["result"] = orchestrator.last_result
            st.session_state["sku"] = request.sku
            st.session_state["country"] = request.country
            logger.info(f"실행 완료: {summary['stats']}")

    summary = st.session_state.get("summary")
    result = st.session_state.get("result")
    if summary is None or result is None:
        st.info("사이드바에서 조건을 입력하고 실행하면 결과가 표시됩니다.")
        return

    # ========================================
    # 3단계: 결과 표시
    # ========================================
    _render_summary(summary)

    fig = build_projection_figure(
        result,
        at_risk_threshold_months=_CONFIG.calculation.at_risk_threshold_months,
    )
    st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})

    st.subheader("월별 원장")
    st.dataframe(format_ledger(result), use_container_width=True, hide_index=True)

    if summary["systemOrders"]:
        st.subheader("자동 발주")
        st.dataframe(
            pd.DataFrame(summary["systemOrders"]), use_container_width=True, hide_index=True
        )


if __name__ == "__main__":
    main()
