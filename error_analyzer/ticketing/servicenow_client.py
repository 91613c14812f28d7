"""Async ServiceNow client for incidents, attachments and work notes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

import httpx

from error_analyzer import config
from error_analyzer.models import DiagnosticReport, IncidentResult
from error_analyzer.reporting.report_formatter import (
    build_incident_payload,
    render_report,
    report_file_name,
)

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)


class ServiceNowError(Exception):
    """Raised when a ServiceNow request fails or returns an unexpected body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceNowClient:
    """Creates incidents on a ServiceNow instance using basic auth.

    Example:
        ```python
        async with ServiceNowClient("dev12345.service-now.com", "admin", "secret") as client:
            result = await client.create_incident_with_report(report)
            print(result.incident_number)
        ```
    """

    def __init__(
        self,
        instance: str = config.SNOW_INSTANCE,
        username: str = config.SNOW_USERNAME,
        password: str = config.SNOW_PASSWORD,
        api_version: str = config.SNOW_API_VERSION,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        if not instance or not username or not password:
            raise ValueError("ServiceNow instance, username and password are required")
        self.instance = instance.replace("https://", "").rstrip("/")
        self.api_version = api_version
        self._auth = httpx.BasicAuth(username, password)
        self._timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        return f"https://{self.instance}"

    def incident_url(self, sys_id: str) -> str:
        return f"{self.base_url}/nav_to.do?uri=incident.do?sys_id={sys_id}"

    async def __aenter__(self) -> ServiceNowClient:
        self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def create_incident(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create an incident and return the ``result`` record."""
        return await self._request("POST", "/api/now/table/incident", json=fields)

    async def attach_file(self, sys_id: str, file_name: str, content: str) -> Dict[str, Any]:
        """Attach a text file to an incident."""
        return await self._request(
            "POST",
            "/api/now/attachment/file",
            params={"table_name": "incident", "table_sys_id": sys_id, "file_name": file_name},
            content=content.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )

    async def update_incident(self, sys_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PATCH", f"/api/now/table/incident/{sys_id}", json=fields)

    async def create_incident_with_report(
        self,
        report: DiagnosticReport,
        additional_fields: Optional[Dict[str, Any]] = None
    ) -> IncidentResult:
        """Create an incident, attach the rendered report and add work notes.

        Args:
            report: Diagnostic report to file
            additional_fields: Extra incident fields (caller_id, assignment_group, ...)

        Returns:
            IncidentResult with number, sys_id, URL and attached file name

        Raises:
            ServiceNowError: If any of the three requests fails
        """
        fields = build_incident_payload(report)
        fields.update(additional_fields or {})

        incident = await self.create_incident(fields)
        try:
            number = incident["number"]
            sys_id = incident["sys_id"]
        except KeyError as e:
            raise ServiceNowError(f"Incident response missing {e}") from e
        logger.info("Incident created: %s (%s)", number, sys_id)

        file_name = report_file_name(number)
        await self.attach_file(sys_id, file_name, render_report(report))
        logger.info("Attached %s to %s", file_name, number)

        fault = report.fault
        work_notes = (
            "Error analysis completed and detailed report attached.\n\n"
            f"Error Type: {fault.error_type}\n"
            f"Language: {fault.language.value}\n"
            f"Analysis File: {file_name}\n"
        )
        await self.update_incident(sys_id, {"work_notes": work_notes})

        return IncidentResult(
            mode="servicenow",
            report_file=file_name,
            incident_number=number,
            incident_sys_id=sys_id,
            incident_url=self.incident_url(sys_id),
            priority=fields.get("priority"),
            error_type=fault.error_type,
            language=fault.language
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        client = self._ensure_client()
        headers = {"Accept": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})

        try:
            response = await client.request(
                method, f"{self.base_url}{path}", headers=headers, auth=self._auth, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ServiceNowError(
                f"ServiceNow API error ({e.response.status_code}): {e.response.text[:200]}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ServiceNowError(f"ServiceNow request failed: {e}") from e

        try:
            return response.json()["result"]
        except (ValueError, KeyError) as e:
            raise ServiceNowError(f"Failed to parse ServiceNow response: {e}") from e

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_seconds))
            self._owns_client = True
        return self._client
