"""
HTTP 요청 핸들러

요청 본문을 검증하고, Dataverse 연동 서비스를 구성한 뒤 예측을 실행하여
(상태 코드, 응답 본문) 튜플을 반환합니다.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .core.config import AutoForecastConfig, load_config, validate_config
from .data_sources.dataverse import DataverseClient
from .data_sources.fetcher import DataverseFetcher
from .data_sources.writer import DataverseWriter
from .domain.exceptions import ValidationError
from .domain.validation import validate_forecast_request
from .pipeline import ForecastOrchestrator

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_orchestrator(config: AutoForecastConfig) -> ForecastOrchestrator:
    """
    설정을 검증하고 Dataverse 클라이언트, fetcher, writer를 연결한 오케스트레이터를 생성합니다.

    Raises:
        ConfigurationError: Dataverse 접속 정보가 누락된 경우
    """
    validate_config(config)
    client = DataverseClient(config.dataverse)
    return ForecastOrchestrator(
        fetcher=DataverseFetcher(client, config.calculation),
        writer=DataverseWriter(client, config.calculation),
        config=config,
    )


def handle_request(
    body: Any,
    *,
    orchestrator: Optional[ForecastOrchestrator] = None,
    config: Optional[AutoForecastConfig] = None,
) -> tuple[int, dict[str, Any]]:
    """
    예측 요청 하나를 처리합니다.

    Args:
        body: 요청 본문 (sku, country, baselineDate, baseStock, targetCoverMonths,
            선택적으로 ProcurementSafeMargin)
        orchestrator: 사용할 오케스트레이터 (None이면 설정으로부터 생성)
        config: 사용할 설정 (None이면 환경 변수/.env에서 로드)

    Returns:
        (status, body) 튜플
        - 400: 필수 항목 누락 또는 형식 오류
        - 200: 실행 요약
        - 500: 실행 중 오류 ({"error": message})
    """
    if config is None:
        config = load_config()
    configure_logging(config.log_level)
    logger.info(f"AutoForecast started: {body}")

    try:
        request = validate_forecast_request(body)
    except ValidationError as exc:
        return 400, {"error": str(exc)}

    try:
        if orchestrator is None:
            orchestrator = build_orchestrator(config)
        summary = orchestrator.execute(request)
    except Exception as exc:
        logger.error(f"AutoForecast error: {exc}")
        return 500, {"error": str(exc)}

    return 200, summary
