"""
Whistle API Client

httpx client for submitters (report submission, status lookup) and admins
(login, review).
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from whistle_service.config.settings import ClientSettings
from whistle_service.core.exceptions import ReportNotFoundError, Unauthorized, ValidationError
from whistle_service.core.policy import check_video_metadata
from whistle_service.crypto.codec import encrypt
from whistle_service.models import (
    CreateReportResponse,
    Report,
    ReportListResponse,
    ReportPayload,
    ReportSeverity,
    ReportStatus,
    ReportStatusResponse,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or response.text
    except ValueError:
        return response.text


def _raise_for_error(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    message = _error_message(response)
    if response.status_code == 400:
        raise ValidationError(message)
    if response.status_code == 401:
        raise Unauthorized(message)
    if response.status_code == 404:
        raise ReportNotFoundError(message)
    response.raise_for_status()


class WhistleClient:
    """Async client for the Whistle HTTP API"""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        api_prefix: str = "/api",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_prefix = api_prefix
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.token: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "WhistleClient":
        return cls(
            base_url=settings.base_url,
            api_prefix=settings.api_prefix,
            timeout=settings.request_timeout_seconds
        )

    async def __aenter__(self) -> "WhistleClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    def _auth_headers(self) -> Dict[str, str]:
        if not self.token:
            raise Unauthorized("Not logged in")
        return {"Authorization": f"Bearer {self.token}"}

    async def submit_report(
        self,
        payload: ReportPayload,
        severity: Union[ReportSeverity, str] = ReportSeverity.MEDIUM,
        key: Optional[bytes] = None
    ) -> CreateReportResponse:
        """
        Submit a report, encrypting it first when a key is given

        Video limits are checked locally before sending; the server repeats
        the check authoritatively.

        Raises:
            ValidationError: If the video is out of policy or the server rejects the report
            ConfigurationError: If the key is malformed
        """
        if payload.video_metadata is not None:
            check_video_metadata(payload.video_metadata)

        severity = ReportSeverity(severity).value
        body: Dict[str, Any]
        if key is not None:
            envelope = encrypt(payload, key)
            body = {
                "is_encrypted": True,
                "encrypted_data": envelope.model_dump(exclude_none=True),
                "severity": severity,
            }
            # Plaintext metadata lets the server enforce the video limits
            if payload.video_metadata is not None:
                body["video_metadata"] = payload.video_metadata.model_dump(exclude_none=True)
        else:
            body = payload.model_dump(mode="json", exclude_none=True)
            body.update({"severity": severity, "is_encrypted": False})

        response = await self._client.post(self._url("/reports"), json=body)
        _raise_for_error(response)
        return CreateReportResponse.model_validate(response.json())

    async def get_status(self, report_id: str) -> ReportStatusResponse:
        """Anonymous status lookup"""
        response = await self._client.get(self._url(f"/reports/{report_id}/status"))
        _raise_for_error(response)
        return ReportStatusResponse.model_validate(response.json())

    async def login(self, username: str, password: str) -> str:
        """
        Log in as admin and keep the token for later calls

        Raises:
            Unauthorized: If the credentials are rejected
        """
        response = await self._client.post(
            self._url("/admin/login"),
            json={"username": username, "password": password}
        )
        _raise_for_error(response)
        self.token = response.json()["token"]
        return self.token

    async def list_reports(self, status: Optional[ReportStatus] = None) -> List[Report]:
        """List reports (admin)"""
        params = {"status": ReportStatus(status).value} if status else None
        response = await self._client.get(
            self._url("/reports"),
            params=params,
            headers=self._auth_headers()
        )
        _raise_for_error(response)
        return ReportListResponse.model_validate(response.json()).reports

    async def update_report(
        self,
        report_id: str,
        status: Optional[ReportStatus] = None,
        admin_response: Optional[str] = None
    ) -> Report:
        """Update a report (admin)"""
        body: Dict[str, Any] = {}
        if status is not None:
            body["status"] = ReportStatus(status).value
        if admin_response is not None:
            body["admin_response"] = admin_response

        response = await self._client.put(
            self._url(f"/reports/{report_id}"),
            json=body,
            headers=self._auth_headers()
        )
        _raise_for_error(response)
        return Report.model_validate(response.json())
