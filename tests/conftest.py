import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_configure(config):
    """pytest 초기화 시점에 실행되어 테스트 수집 전에 환경을 준비합니다.

    Dataverse 접속 정보가 없으면 테스트용 값을 설정합니다.
    실제 네트워크 호출은 테스트에서 모두 mock 처리됩니다.
    """
    test_env = {
        "DATAVERSE_URL": "https://test-org.crm.dynamics.com",
        "AZURE_TENANT_ID": "test-tenant",
        "AZURE_CLIENT_ID": "test-client",
        "AZURE_CLIENT_SECRET": "test-secret",
    }
    for name, value in test_env.items():
        if not os.getenv(name):
            os.environ[name] = value


@pytest.fixture
def all_months():
    return frozenset(range(1, 13))
