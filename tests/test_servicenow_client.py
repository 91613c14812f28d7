"""Tests for the ServiceNow client."""

import asyncio
import json

import httpx
import pytest

from error_analyzer.classifier.fault_classifier import classify_fault
from error_analyzer.models import FaultRecord, Language
from error_analyzer.recommender.recommendation_engine import generate_recommendations
from error_analyzer.ticketing.servicenow_client import ServiceNowClient, ServiceNowError


class TestServiceNowClient:
    """Test cases for ServiceNowClient."""

    def setup_method(self):
        """Set up test fixtures."""
        self.requests = []
        fault = FaultRecord(
            raw_message="System.NullPointerException: Attempt to de-reference a null object",
            message="Attempt to de-reference a null object",
            error_type="NullPointerException",
            language=Language.APEX
        )
        self.report = generate_recommendations(fault).model_copy(
            update={"classification": classify_fault(fault)}
        )

    def _handler(self, request):
        self.requests.append(request)
        if request.method == "POST" and request.url.path == "/api/now/table/incident":
            return httpx.Response(201, json={"result": {"number": "INC0010001", "sys_id": "abc123"}})
        if request.url.path == "/api/now/attachment/file":
            return httpx.Response(201, json={"result": {"sys_id": "att456"}})
        if request.method == "PATCH":
            return httpx.Response(200, json={"result": {"sys_id": "abc123"}})
        return httpx.Response(404, json={"error": "not found"})

    def _client(self, handler=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler or self._handler))
        return ServiceNowClient("dev12345.service-now.com", "admin", "secret", client=client)

    def test_create_incident_with_report(self):
        """Test incident creation, attachment and work notes."""
        async def run():
            async with self._client() as client:
                return await client.create_incident_with_report(self.report, {"caller_id": "jdoe"})

        result = asyncio.run(run())

        assert result.mode == "servicenow"
        assert result.incident_number == "INC0010001"
        assert result.incident_sys_id == "abc123"
        assert result.incident_url == "https://dev12345.service-now.com/nav_to.do?uri=incident.do?sys_id=abc123"
        assert result.priority == "2"
        assert result.report_file.startswith("error_analysis_INC0010001_")

        create, attach, update = self.requests
        fields = json.loads(create.content)
        assert fields["caller_id"] == "jdoe"
        assert fields["u_error_type"] == "NullPointerException"
        assert create.headers["Authorization"].startswith("Basic ")
        assert attach.url.params["table_sys_id"] == "abc123"
        assert b"COMPREHENSIVE ERROR ANALYSIS REPORT" in attach.content
        assert "work_notes" in json.loads(update.content)

    def test_http_error_raises(self):
        """Test that error responses raise ServiceNowError with the status."""
        def unauthorized(request):
            return httpx.Response(401, text="User Not Authenticated")

        async def run():
            async with self._client(unauthorized) as client:
                await client.create_incident({"short_description": "x"})

        with pytest.raises(ServiceNowError) as exc_info:
            asyncio.run(run())

        assert exc_info.value.status_code == 401

    def test_missing_credentials(self):
        """Test that incomplete credentials are rejected."""
        with pytest.raises(ValueError):
            ServiceNowClient("dev12345.service-now.com", "", "")
