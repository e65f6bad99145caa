"""재고 전망 차트 모듈.

월별 기말 재고, 자동 발주, 커버 개월 수를 하나의 Plotly 차트로 그립니다.
"""

from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go

from ..domain.models import SimulationResult

STOCK_COLOR = "#4E79A7"
ORDER_COLOR = "#F28E2B"
COVER_COLOR = "#E15759"


def build_projection_figure(
    ledger: SimulationResult | pd.DataFrame,
    *,
    at_risk_threshold_months: float | None = None,
    title: str | None = None,
) -> go.Figure:
    """
    기말 재고 막대, 자동 발주 마커, 커버 개월 수 선(보조 축)으로 구성된 차트를 생성합니다.

    Args:
        ledger: SimulationResult 또는 원장 데이터프레임
        at_risk_threshold_months: 지정하면 보조 축에 위험 기준선을 표시
        title: 차트 제목

    Returns:
        plotly Figure (원장이 비어 있으면 trace 없는 Figure)
    """
    frame = ledger.to_frame() if isinstance(ledger, SimulationResult) else ledger
    fig = go.Figure()

    if not frame.empty:
        fig.add_bar(
            x=frame["date"],
            y=frame["closing_stock"],
            name="기말 재고",
            marker_color=STOCK_COLOR,
            opacity=0.75,
            hovertemplate="월: %{x|%Y-%m}<br>기말 재고: %{y:,.0f} EA<extra></extra>",
        )

        orders = frame[frame["system_order_qty"] > 0]
        if not orders.empty:
            fig.add_trace(
                go.Scatter(
                    x=orders["date"],
                    y=orders["closing_stock"],
                    mode="markers",
                    name="자동 발주",
                    marker=dict(color=ORDER_COLOR, size=11, symbol="triangle-up"),
                    customdata=orders["system_order_qty"],
                    hovertemplate="월: %{x|%Y-%m}<br>발주: %{customdata:,.0f} EA<extra></extra>",
                )
            )

        fig.add_trace(
            go.Scatter(
                x=frame["date"],
                y=frame["months_cover"],
                mode="lines+markers",
                name="커버(개월)",
                line=dict(color=COVER_COLOR, width=2),
                yaxis="y2",
                hovertemplate="월: %{x|%Y-%m}<br>커버: %{y:.2f}개월<extra></extra>",
            )
        )

        if at_risk_threshold_months is not None:
            fig.add_shape(
                type="line",
                xref="paper",
                x0=0,
                x1=1,
                yref="y2",
                y0=at_risk_threshold_months,
                y1=at_risk_threshold_months,
                line=dict(color=COVER_COLOR, dash="dot", width=1),
            )

    fig.update_layout(
        title=title,
        legend=dict(orientation="h", x=0, xanchor="left", y=-0.2, yanchor="top"),
        margin=dict(l=30, r=20, t=40 if title else 10, b=80),
        hovermode="x unified",
        xaxis=dict(title="Month"),
        yaxis=dict(title="재고 (EA)", tickformat=",.0f"),
        yaxis2=dict(
            title="커버 (개월)",
            overlaying="y",
            side="right",
            showgrid=False,
            zeroline=False,
            tickformat=".1f",
        ),
    )
    return fig
