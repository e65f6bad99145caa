"""
AutoForecast 패키지

SKU/국가 단위 월별 재고 예측 및 자동 발주 엔진입니다.
주요 구성:
- forecast: 소비 예측, 폐기(유통기한) 처리, 재고 커버 개월 수 계산
- planning: 수동 발주 입고 맵, 월별 재고 시뮬레이션
- pipeline: 데이터 조회 → 계산 → 결과 기록 오케스트레이션
- data_sources: Dataverse 연동 및 인메모리 저장소
"""

from __future__ import annotations

__version__ = "1.0.0"
