"""Tests for API endpoints."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from error_analyzer.api.main import app
from error_analyzer.classifier.fault_classifier import classify_fault
from error_analyzer.models import IncidentResult, Language
from error_analyzer.parser.fault_parser import parse_fault
from error_analyzer.pipeline.analyzer import MalformedInputError
from error_analyzer.recommender.recommendation_engine import generate_recommendations
from error_analyzer.ticketing.servicenow_client import ServiceNowError


client = TestClient(app)

ERROR_MESSAGE = """System.NullPointerException: Attempt to de-reference a null object

Class.AccountHandler.processAccounts: line 45, column 1"""


def _report():
    fault = parse_fault(ERROR_MESSAGE)
    return generate_recommendations(fault).model_copy(update={"classification": classify_fault(fault)})


class FakeServiceNowClient:
    """Stands in for ServiceNowClient inside the endpoint."""

    calls = []
    error = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def create_incident_with_report(self, report, additional_fields=None):
        FakeServiceNowClient.calls.append(additional_fields)
        if FakeServiceNowClient.error:
            raise FakeServiceNowClient.error
        return IncidentResult(
            mode="servicenow",
            report_file="error_analysis_INC0010001_1.txt",
            incident_number="INC0010001",
            incident_sys_id="abc123",
            incident_url="https://dev.service-now.com/nav_to.do?uri=incident.do?sys_id=abc123",
            priority="2",
            error_type=report.fault.error_type,
            language=report.fault.language
        )


class TestAPI:
    """Test cases for API endpoints."""

    def setup_method(self):
        """Set up test fixtures."""
        FakeServiceNowClient.calls = []
        FakeServiceNowClient.error = None

    def test_root_endpoint(self):
        """Test root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert "Error Analyzer API" in response.json()["message"]

    def test_health_endpoint(self):
        """Test health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @patch("error_analyzer.api.main.servicenow_configured", return_value=False)
    def test_status_endpoint(self, mock_configured):
        """Test status endpoint in local-only mode."""
        response = client.get("/status")

        assert response.status_code == 200
        data = response.json()
        assert data["servicenow"]["mode"] == "Local only"
        assert {"method": "POST", "path": "/analyze", "description": "Analyze error without creating incident"} in data["endpoints"]

    @patch("error_analyzer.api.main.analyze_error", new_callable=AsyncMock)
    def test_analyze_endpoint_success(self, mock_analyze):
        """Test successful analysis."""
        mock_analyze.return_value = _report()

        response = client.post(
            "/analyze",
            json={"error_message": ERROR_MESSAGE, "repository": "https://github.com/acme/app"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["report"]["fault"]["class_name"] == "AccountHandler"
        assert data["report"]["classification"]["severity"] == "high"
        mock_analyze.assert_awaited_once_with(ERROR_MESSAGE, "https://github.com/acme/app")

    @patch("error_analyzer.api.main.analyze_error", new_callable=AsyncMock)
    def test_analyze_endpoint_malformed_input(self, mock_analyze):
        """Test that malformed input maps to 400."""
        mock_analyze.side_effect = MalformedInputError("Error message must be a non-empty string")

        response = client.post("/analyze", json={"error_message": "   "})

        assert response.status_code == 400
        assert "non-empty" in response.json()["detail"]

    @patch("error_analyzer.api.main.analyze_error", new_callable=AsyncMock)
    def test_analyze_endpoint_failure(self, mock_analyze):
        """Test that unexpected failures map to 500."""
        mock_analyze.side_effect = RuntimeError("boom")

        response = client.post("/analyze", json={"error_message": ERROR_MESSAGE})

        assert response.status_code == 500
        assert "Analysis failed" in response.json()["detail"]

    def test_analyze_endpoint_invalid_request(self):
        """Test analysis with invalid request."""
        response = client.post("/analyze", json={})

        assert response.status_code == 422  # Validation error

    @patch("error_analyzer.api.main.servicenow_configured", return_value=False)
    @patch("error_analyzer.api.main.analyze_error", new_callable=AsyncMock)
    def test_incident_saved_locally(self, mock_analyze, mock_configured, tmp_path):
        """Test that the report is saved locally without ServiceNow."""
        mock_analyze.return_value = _report()

        with patch("error_analyzer.api.main.REPORT_OUTPUT_DIR", str(tmp_path)):
            response = client.post("/incident/create", json={"error_message": ERROR_MESSAGE})

        assert response.status_code == 200
        incident = response.json()["incident"]
        assert incident["mode"] == "local"
        assert incident["priority"] == "2"
        assert incident["language"] == Language.APEX.value
        assert (tmp_path / incident["report_file"]).exists()

    @patch("error_analyzer.api.main.ServiceNowClient", FakeServiceNowClient)
    @patch("error_analyzer.api.main.servicenow_configured", return_value=True)
    @patch("error_analyzer.api.main.analyze_error", new_callable=AsyncMock)
    def test_incident_created_in_servicenow(self, mock_analyze, mock_configured):
        """Test incident creation with caller and assignment group."""
        mock_analyze.return_value = _report()

        response = client.post(
            "/incident/create",
            json={"error_message": ERROR_MESSAGE, "caller": "jdoe", "assignment_group": "Salesforce Support"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["incident"]["incident_number"] == "INC0010001"
        assert "INC0010001" in data["message"]
        assert FakeServiceNowClient.calls == [{"caller_id": "jdoe", "assignment_group": "Salesforce Support"}]

    @patch("error_analyzer.api.main.ServiceNowClient", FakeServiceNowClient)
    @patch("error_analyzer.api.main.servicenow_configured", return_value=True)
    @patch("error_analyzer.api.main.analyze_error", new_callable=AsyncMock)
    def test_incident_servicenow_failure(self, mock_analyze, mock_configured):
        """Test that ServiceNow failures map to 502."""
        mock_analyze.return_value = _report()
        FakeServiceNowClient.error = ServiceNowError("ServiceNow API error (401)", status_code=401)

        response = client.post("/incident/create", json={"error_message": ERROR_MESSAGE})

        assert response.status_code == 502
        assert "ServiceNow" in response.json()["detail"]
