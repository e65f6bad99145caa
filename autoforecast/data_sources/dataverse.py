"""
Dataverse Web API 클라이언트

이 모듈은 Azure AD 클라이언트 자격 증명(azure-identity)으로 토큰을 발급받아
Dataverse Web API 조회, 단건 호출, $batch 일괄 처리를 수행합니다.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Mapping, Optional, Sequence

import requests
from azure.core.credentials import TokenCredential
from azure.core.exceptions import AzureError
from azure.identity import ClientSecretCredential

from ..core.config import DataverseConfig
from ..domain.exceptions import DataverseError

logger = logging.getLogger(__name__)

# 만료 60초 전부터는 새 토큰을 발급
TOKEN_REFRESH_MARGIN_SECONDS = 60

ODATA_HEADERS = {
    "Accept": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
}

BatchRequest = Mapping[str, Any]


class DataverseClient:
    """Thin wrapper around the Dataverse Web API."""

    def __init__(
        self,
        config: DataverseConfig,
        session: Optional[requests.Session] = None,
        credential: Optional[TokenCredential] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.base_url = config.base_url
        self._credential = credential
        self._token: Optional[str] = None
        self._token_expiry: float = 0.0

    @property
    def api_root(self) -> str:
        return f"{self.base_url}/api/data/{self.config.api_version}"

    @property
    def scope(self) -> str:
        return f"{self.base_url}/.default"

    @property
    def credential(self) -> TokenCredential:
        if self._credential is None:
            self._credential = ClientSecretCredential(
                self.config.tenant_id,
                self.config.client_id,
                self.config.client_secret,
            )
        return self._credential

    def get_token(self) -> str:
        """
        캐시된 액세스 토큰을 반환하고, 없거나 만료 임박이면 새로 발급합니다.

        Raises:
            DataverseError: 토큰 발급 실패 시
        """
        if self._token and time.time() < self._token_expiry - TOKEN_REFRESH_MARGIN_SECONDS:
            return self._token

        logger.debug("Acquiring new access token...")
        try:
            access_token = self.credential.get_token(self.scope)
        except (AzureError, ValueError) as exc:
            raise DataverseError(f"Token request failed: {exc}") from exc

        self._token = access_token.token
        self._token_expiry = float(access_token.expires_on)
        logger.debug("Token acquired successfully")
        return self._token

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.get_token()}", **ODATA_HEADERS}
        if extra:
            headers.update(extra)
        return headers

    def call(
        self,
        path: str,
        *,
        method: str = "GET",
        payload: Optional[Mapping[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """
        Web API 단건 호출.

        Args:
            path: api_root 기준 상대 경로 (쿼리 문자열 포함)
            method: HTTP 메서드
            payload: JSON 본문

        Returns:
            응답 JSON (204 No Content이면 None)

        Raises:
            DataverseError: 전송 실패 또는 2xx 이외의 응답
        """
        logger.debug(f"-> {method} {path[:100]}...")
        url = f"{self.api_root}/{path}"
        extra = {"Content-Type": "application/json"} if payload is not None else None

        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(extra),
                data=json.dumps(payload) if payload is not None else None,
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise DataverseError(f"{method} {path} failed: {exc}") from exc

        if not response.ok:
            raise DataverseError(
                f"{method} {path} failed: {response.text}",
                status_code=response.status_code,
            )

        logger.debug(f"<- {method} -> {response.status_code}")
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def build_batch_body(
        self, requests_: Sequence[BatchRequest], batch_id: str, changeset_id: str
    ) -> str:
        """Serialise *requests_* as one multipart changeset inside an OData batch."""

        lines = [
            f"--{batch_id}",
            f"Content-Type: multipart/mixed; boundary={changeset_id}",
            "",
        ]
        for index, req in enumerate(requests_, start=1):
            lines += [
                f"--{changeset_id}",
                "Content-Type: application/http",
                "Content-Transfer-Encoding: binary",
                f"Content-ID:{index}",
                "",
                f"{req['method']} {self.api_root}/{req['path']} HTTP/1.1",
                "Content-Type: application/json",
                "",
                json.dumps(req["payload"]) if req.get("payload") is not None else "",
            ]
        lines += [f"--{changeset_id}--", f"--{batch_id}--"]
        return "\n".join(lines)

    def batch(self, requests_: Sequence[BatchRequest], label: str = "batch") -> None:
        """
        여러 요청을 하나의 $batch 변경 집합으로 전송합니다 (전체 성공 또는 전체 실패).

        Raises:
            DataverseError: 배치 실패 시
        """
        if not requests_:
            logger.debug(f"Skipping empty batch: {label}")
            return

        logger.info(f"-> BATCH {label}: {len(requests_)} operations")
        suffix = uuid.uuid4().hex
        batch_id = f"batch_{suffix}"
        changeset_id = f"cs_{suffix}"
        body = self.build_batch_body(requests_, batch_id, changeset_id)

        try:
            response = self.session.post(
                f"{self.api_root}/$batch",
                headers=self._headers(
                    {"Content-Type": f"multipart/mixed; boundary={batch_id}"}
                ),
                data=body.encode("utf-8"),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise DataverseError(f"[{label}] batch failure: {exc}") from exc

        logger.info(f"<- BATCH {label}: {response.status_code}")
        if not response.ok:
            raise DataverseError(
                f"[{label}] batch failure: {response.text}",
                status_code=response.status_code,
            )

    def batch_in_chunks(
        self,
        requests_: Sequence[BatchRequest],
        chunk_size: int = 100,
        label: str = "batch",
    ) -> None:
        """Send *requests_* as consecutive batches of at most *chunk_size* operations."""

        chunk_size = max(1, int(chunk_size))
        for start in range(0, len(requests_), chunk_size):
            chunk = list(requests_[start : start + chunk_size])
            self.batch(chunk, f"{label}-chunk-{start // chunk_size + 1}")
