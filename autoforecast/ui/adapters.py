"""
도메인 예외 → UI 에러 메시지 어댑터

엔진에서 발생한 예외를 Streamlit 사용자 메시지로 변환합니다.
엔진 코드는 Streamlit에 의존하지 않습니다.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

import streamlit as st

from autoforecast.domain.exceptions import (
    ConfigurationError,
    DataLoadError,
    DataWriteError,
    ValidationError,
)


@contextmanager
def handle_domain_errors() -> Generator[None, None, None]:
    """
    도메인 예외를 잡아서 Streamlit 에러 메시지로 표시하는 컨텍스트 매니저.

    Examples:
        >>> with handle_domain_errors():
        ...     summary = orchestrator.execute(request)

    Notes:
        - ValidationError: 입력값 오류
        - ConfigurationError: Dataverse 접속 설정 누락
        - DataLoadError: 입력 데이터 조회 실패
        - DataWriteError: 결과 기록 실패
    """
    try:
        yield

    except ValidationError as e:
        st.error(f"❌ 입력값 검증 실패: {str(e)}")

    except ConfigurationError as e:
        # 설정 누락: 노란색 경고 메시지
        st.warning(f"⚠️ 설정 확인 필요: {str(e)}")

    except DataWriteError as e:
        st.error(f"❌ 결과 기록 실패: {str(e)}")

    except DataLoadError as e:
        st.error(f"❌ 데이터 조회 실패: {str(e)}")

    except Exception as e:
        st.error(f"❌ 예상치 못한 오류가 발생했습니다: {type(e).__name__}: {str(e)}")
        st.exception(e)
