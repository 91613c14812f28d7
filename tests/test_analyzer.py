"""Tests for the end-to-end analyzer."""

import asyncio
from unittest.mock import Mock

import anthropic
import httpx
import pytest

from error_analyzer.models import AIAnalysis, RepositoryEntry, RepositoryInfo, Severity
from error_analyzer.pipeline.analyzer import ErrorAnalyzer, MalformedInputError, analyze_error
from error_analyzer.repository.github_client import RepositoryFetchError


ACCOUNT_HANDLER = "\n".join(
    [f"    // filler {number}" for number in range(1, 45)]
    + ["        String name = acc.Owner.Name;"]
    + [f"    // filler {number}" for number in range(46, 61)]
)

NULL_POINTER_MESSAGE = """System.NullPointerException: Attempt to de-reference a null object

Class.AccountHandler.processAccounts: line 45, column 1"""


class FakeRepository:
    """In-memory repository used instead of GitHub."""

    def __init__(self, files, fail_tree=False, fail_content=False):
        self.info = RepositoryInfo(owner="acme", name="app", branch="main")
        self.files = files
        self.fail_tree = fail_tree
        self.fail_content = fail_content
        self.fetched = []

    async def fetch_tree(self):
        if self.fail_tree:
            raise RepositoryFetchError("tree unavailable")
        return [RepositoryEntry(path=path) for path in self.files]

    async def fetch_file_content(self, path):
        self.fetched.append(path)
        if self.fail_content:
            raise RepositoryFetchError("content unavailable")
        return self.files[path]


class TestErrorAnalyzer:
    """Test cases for ErrorAnalyzer."""

    def setup_method(self):
        """Set up test fixtures."""
        self.files = {
            "force-app/main/default/classes/AccountHandler.cls": ACCOUNT_HANDLER,
            "force-app/main/default/classes/AccountHandlerTest.cls": "@isTest class AccountHandlerTest {}",
            "README.md": "# app",
        }

    def test_full_analysis(self):
        """Test the complete pipeline against an Apex null dereference."""
        repository = FakeRepository(self.files)
        report = asyncio.run(ErrorAnalyzer(repository).analyze(NULL_POINTER_MESSAGE))

        assert report.fault.class_name == "AccountHandler"
        assert report.selected_file.path == "force-app/main/default/classes/AccountHandler.cls"
        assert report.selected_file.priority_tier == 2
        assert report.code_context.start_line == 40
        assert report.code_context.end_line == 50
        assert report.code_context.object_accesses == ["acc", "Owner", "Name"]
        assert report.suggested_fixes[0].startswith("Add a null check for acc, Owner, Name")
        assert report.classification.severity == Severity.HIGH
        assert report.repository.name == "app"
        assert [component.path for component in report.related_components] == [
            "force-app/main/default/classes/AccountHandlerTest.cls"
        ]
        assert report.ai_powered is False
        assert repository.fetched == ["force-app/main/default/classes/AccountHandler.cls"]

    def test_tree_fetch_failure(self):
        """Test that a failed tree fetch still yields a report without context."""
        repository = FakeRepository(self.files, fail_tree=True)
        report = asyncio.run(ErrorAnalyzer(repository).analyze(NULL_POINTER_MESSAGE))

        assert report.selected_file is None
        assert report.code_context is None
        assert report.candidates == []
        assert report.possible_causes

    def test_content_fetch_failure(self):
        """Test that a failed content fetch keeps the selected file."""
        repository = FakeRepository(self.files, fail_content=True)
        report = asyncio.run(ErrorAnalyzer(repository).analyze(NULL_POINTER_MESSAGE))

        assert report.selected_file is not None
        assert report.code_context is None
        assert report.suggested_fixes

    def test_unresolved_file(self):
        """Test that an unmatched fault is analysed without fetching content."""
        repository = FakeRepository(self.files)
        report = asyncio.run(ErrorAnalyzer(repository).analyze("Something went wrong"))

        assert report.fault.error_type == "Unknown"
        assert report.selected_file is None
        assert repository.fetched == []

    @pytest.mark.parametrize("message", ["", "   \n", None, 42])
    def test_malformed_input(self, message):
        """Test that empty or non-text input is rejected."""
        with pytest.raises(MalformedInputError):
            asyncio.run(ErrorAnalyzer(FakeRepository(self.files)).analyze(message))

    def test_ai_enrichment(self):
        """Test that AI output replaces rule-based guidance."""
        suggester = Mock()
        suggester.is_enabled.return_value = True
        suggester.analyze.return_value = AIAnalysis(
            root_cause_analysis="acc.Owner is null for accounts without an owner",
            possible_causes=["Owner lookup not queried"],
            suggested_fixes=["Query Owner.Name in the SOQL"],
            best_practices=[],
            model="claude-test"
        )
        analyzer = ErrorAnalyzer(FakeRepository(self.files), ai_suggester=suggester)
        report = asyncio.run(analyzer.analyze(NULL_POINTER_MESSAGE))

        assert report.ai_powered is True
        assert report.ai_model == "claude-test"
        assert report.possible_causes == ["Owner lookup not queried"]
        assert report.root_cause_narrative == "acc.Owner is null for accounts without an owner"
        # Empty AI list keeps the rule-based practices
        assert report.best_practices

    def test_ai_failure_keeps_rule_based_report(self):
        """Test that an API error falls back to the rule-based report."""
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        suggester = Mock()
        suggester.is_enabled.return_value = True
        suggester.analyze.side_effect = anthropic.APIConnectionError(request=request)
        analyzer = ErrorAnalyzer(FakeRepository(self.files), ai_suggester=suggester)
        report = asyncio.run(analyzer.analyze(NULL_POINTER_MESSAGE))

        assert report.ai_powered is False
        assert report.possible_causes

    def test_analyze_error_rejects_invalid_repository(self):
        """Test that a bad repository URL is reported as malformed input."""
        with pytest.raises(MalformedInputError):
            asyncio.run(analyze_error(NULL_POINTER_MESSAGE, "not a url"))
