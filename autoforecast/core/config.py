"""Configuration and constants for the AutoForecast engine.

Dataverse 접속 정보, 예측 기간, 폐기 버퍼 등 전역 설정을 제공합니다.
값은 환경 변수(.env 포함)에서 읽고, 누락 시 기본값을 사용합니다.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from ..domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# ============================================================
# Dataverse 코드 값
# ============================================================


class OrderStatus:
    """new_orderplacementstatus option-set values."""

    SYSTEM_GENERATED = 100000000
    PLANNED_BY_LO = 100000001
    PENDING_RO_APPROVAL = 100000002
    APPROVED = 100000003
    CONFIRMED_TO_UP = 100000005
    BACK_ORDER = 100000006
    REMAINING_FOR_SHIPPING = 100000010


class Channel:
    """new_channel option-set values."""

    DEFAULT = 100000000


# ============================================================
# 설정 데이터클래스
# ============================================================


@dataclass(frozen=True)
class DataverseConfig:
    """Dataverse Web API 접속 설정"""

    url: str = ""
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""

    # Web API 버전 (경로: /api/data/{api_version}/)
    api_version: str = "v9.2"

    # HTTP 요청 타임아웃 (초)
    timeout_seconds: int = 30

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")

    def missing_fields(self) -> list[str]:
        """Return the names of required settings that are empty."""

        required = {
            "dataverse.url": self.url,
            "dataverse.tenant_id": self.tenant_id,
            "dataverse.client_id": self.client_id,
            "dataverse.client_secret": self.client_secret,
        }
        return [name for name, value in required.items() if not value]


@dataclass(frozen=True)
class CalculationConfig:
    """예측 및 시뮬레이션 관련 설정"""

    # 시뮬레이션 기간 (기준월 이후 개월 수)
    forecast_months_ahead: int = 25

    # 커버 개월 수가 이 값 미만이면 위험(at-risk) 월로 표시
    at_risk_threshold_months: int = 6

    # 유통기한 월에서 판매 불가 시점까지의 버퍼 (개월)
    no_sell_buffer_months: int = 3

    # 커버 계산 시 앞으로 조회할 최대 개월 수
    max_months_cover_offset: int = 12

    # 배치 쓰기/삭제 시 한 번에 보낼 요청 수
    batch_chunk_size: int = 100

    # 입력 데이터 동시 조회 스레드 수
    fetch_workers: int = 7


@dataclass(frozen=True)
class AutoForecastConfig:
    """엔진 전역 설정"""

    dataverse: DataverseConfig = field(default_factory=DataverseConfig)
    calculation: CalculationConfig = field(default_factory=CalculationConfig)
    log_level: str = "INFO"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    dotenv: bool = True,
) -> AutoForecastConfig:
    """
    환경 변수로부터 설정 객체를 생성합니다.

    Args:
        env: 읽을 환경 매핑 (기본값: os.environ)
        dotenv: True이면 먼저 .env 파일을 로드합니다 (기존 값은 덮어쓰지 않음)

    Returns:
        AutoForecastConfig 인스턴스
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    dataverse = DataverseConfig(
        url=env.get("DATAVERSE_URL", "") or "",
        tenant_id=env.get("AZURE_TENANT_ID", "") or "",
        client_id=env.get("AZURE_CLIENT_ID", "") or "",
        client_secret=env.get("AZURE_CLIENT_SECRET", "") or "",
    )
    calculation = CalculationConfig(
        forecast_months_ahead=_int_env(env, "FORECAST_MONTHS_AHEAD", 25),
        at_risk_threshold_months=_int_env(env, "AT_RISK_THRESHOLD_MONTHS", 6),
        no_sell_buffer_months=_int_env(env, "NO_SELL_BUFFER_MONTHS", 3),
    )
    log_level = (
        env.get("AUTOFORECAST_LOG_LEVEL") or env.get("LOG_LEVEL") or "INFO"
    ).upper()

    return AutoForecastConfig(
        dataverse=dataverse, calculation=calculation, log_level=log_level
    )


def validate_config(config: AutoForecastConfig) -> None:
    """Raise ConfigurationError when Dataverse settings are incomplete."""

    missing = config.dataverse.missing_fields()
    if missing:
        logger.error(f"Missing required configuration: {missing}")
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )


# ============================================================
# 전역 설정 인스턴스
# ============================================================

# 순수 계산 함수들의 기본값 (불변)
CONFIG = AutoForecastConfig()
