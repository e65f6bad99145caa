"""
도메인 계층 예외 정의

이 모듈은 AutoForecast 엔진에서 발생할 수 있는 예외를 정의합니다.
계산 로직(소비 예측, 폐기, 시뮬레이션, 커버 계산)은 예외를 발생시키지 않으며,
예외는 설정/요청 검증과 외부 저장소 연동 경계에서만 발생합니다.
"""

from __future__ import annotations


class DomainError(Exception):
    """
    도메인 계층의 기본 예외 클래스.

    모든 엔진 예외는 이 클래스를 상속합니다.
    """

    pass


class ValidationError(DomainError):
    """
    요청 검증 실패 시 발생하는 예외.

    예: sku/country 누락, baseStock이 숫자가 아님, 날짜 형식 오류 등
    """

    pass


class ConfigurationError(DomainError):
    """
    필수 설정(Dataverse 접속 정보 등)이 누락된 경우 발생하는 예외.
    """

    pass


class DataLoadError(DomainError):
    """
    외부 저장소에서 입력 데이터를 조회하지 못한 경우 발생하는 예외.
    """

    pass


class DataWriteError(DomainError):
    """
    이전 결과 삭제 또는 새 결과 기록에 실패한 경우 발생하는 예외.
    """

    pass


class DataverseError(DataLoadError):
    """
    Dataverse Web API 호출이 실패한 경우 발생하는 예외.

    Attributes:
        status_code: HTTP 상태 코드 (전송 오류 시 None)
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
