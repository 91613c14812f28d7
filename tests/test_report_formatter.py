"""Tests for report rendering and incident payloads."""

from datetime import datetime, timezone

from error_analyzer.classifier.fault_classifier import classify_fault
from error_analyzer.context.code_context import extract_code_context
from error_analyzer.models import FileCandidate, RepositoryInfo
from error_analyzer.parser.fault_parser import parse_fault
from error_analyzer.recommender.recommendation_engine import generate_recommendations
from error_analyzer.reporting.report_formatter import (
    build_incident_payload,
    render_report,
    report_file_name,
    save_report,
)


def _report(message="System.LimitException: Too many SOQL queries: 101\nClass.LeadProcessor.run: line 3, column 1"):
    fault = parse_fault(message)
    content = "a\nb\nfor (Lead l : leads) { [SELECT Id FROM Contact]; }\nd"
    context = extract_code_context(content, fault.line_number, fault)
    selected = FileCandidate(path="classes/LeadProcessor.cls", priority_tier=2, reason="Exact class match from error")
    report = generate_recommendations(fault, context, selected)
    return report.model_copy(update={
        "classification": classify_fault(fault),
        "candidates": [selected],
        "repository": RepositoryInfo(owner="acme", name="app", branch="main"),
    })


class TestReportFormatter:
    """Test cases for the report formatter."""

    def test_render_report(self):
        """Test the main report sections and error line marker."""
        text = render_report(_report(), generated_at=datetime(2024, 1, 2, tzinfo=timezone.utc))

        assert "COMPREHENSIVE ERROR ANALYSIS REPORT" in text
        assert "Generated: 2024-01-02T00:00:00+00:00" in text
        assert "Error Type: LimitException" in text
        assert "Class: LeadProcessor" in text
        assert "Severity: critical" in text
        assert "Repository: acme/app" in text
        assert "1. classes/LeadProcessor.cls" in text
        assert ">>>    3: for (Lead l : leads)" in text
        assert "SOQL query inside a loop can cause governor limit exceptions" in text
        assert "POSSIBLE CAUSES:" in text
        assert text.rstrip().endswith("=" * 80)

    def test_incident_payload(self):
        """Test incident fields and priority mapping."""
        payload = build_incident_payload(_report())

        assert payload["short_description"] == "LimitException: Too many SOQL queries: 101"
        assert (payload["priority"], payload["impact"], payload["urgency"]) == ("1", "1", "1")
        assert payload["category"] == "Software"
        assert payload["subcategory"] == "Application Error"
        assert payload["u_error_type"] == "LimitException"
        assert payload["u_programming_language"] == "apex"
        assert "classes/LeadProcessor.cls (Exact class match from error)" in payload["description"]

    def test_short_description_truncated(self):
        """Test that the message part is cut to 100 characters."""
        payload = build_incident_payload(_report("System.DmlException: " + "x" * 300))

        assert payload["short_description"] == "DmlException: " + "x" * 100

    def test_report_file_name(self):
        """Test report file naming with and without incident number."""
        now = datetime(2024, 1, 2, tzinfo=timezone.utc)

        assert report_file_name("INC0010001", now) == "error_analysis_INC0010001_1704153600000.txt"
        assert report_file_name(now=now) == "error_analysis_1704153600000.txt"

    def test_save_report(self, tmp_path):
        """Test that the rendered report is written to disk."""
        path = save_report(_report(), tmp_path / "reports")

        assert path.exists()
        assert path.parent == tmp_path / "reports"
        assert "END OF REPORT" in path.read_text(encoding="utf-8")
