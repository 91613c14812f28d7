"""End-to-end analysis: error message in, diagnostic report out."""

import asyncio
import logging
from typing import List, Optional, Protocol

import anthropic

from error_analyzer import config
from error_analyzer.classifier.fault_classifier import FaultClassifier
from error_analyzer.context.code_context import CodeContextExtractor
from error_analyzer.fix_suggester.ai_fix_suggester import AIFixSuggester
from error_analyzer.models import (
    AIAnalysis,
    CodeContext,
    DiagnosticReport,
    FaultRecord,
    FileCandidate,
    RepositoryEntry,
    RepositoryInfo,
)
from error_analyzer.parser.fault_parser import FaultParser
from error_analyzer.recommender.recommendation_engine import RecommendationEngine
from error_analyzer.repository.github_client import GitHubRepository, RepositoryFetchError
from error_analyzer.resolver.file_resolver import FileResolver

logger = logging.getLogger(__name__)


class MalformedInputError(ValueError):
    """Raised when the error message is empty or not text."""


class Repository(Protocol):
    """What the analyzer needs from a source repository."""

    info: RepositoryInfo

    async def fetch_tree(self) -> List[RepositoryEntry]: ...

    async def fetch_file_content(self, path: str) -> str: ...


class ErrorAnalyzer:
    """Runs parse, resolve, extract, recommend and classify for one repository.

    Fetch failures never abort the analysis: the report is produced without
    code context instead.
    """

    def __init__(
        self,
        repository: Repository,
        parser: Optional[FaultParser] = None,
        resolver: Optional[FileResolver] = None,
        extractor: Optional[CodeContextExtractor] = None,
        engine: Optional[RecommendationEngine] = None,
        classifier: Optional[FaultClassifier] = None,
        ai_suggester: Optional[AIFixSuggester] = None
    ):
        self.repository = repository
        self.parser = parser or FaultParser()
        self.resolver = resolver or FileResolver()
        self.extractor = extractor or CodeContextExtractor()
        self.engine = engine or RecommendationEngine()
        self.classifier = classifier or FaultClassifier()
        self.ai_suggester = ai_suggester

    async def analyze(self, raw_message: str) -> DiagnosticReport:
        """Analyze one error message.

        Args:
            raw_message: Error text as reported by the failing system

        Returns:
            DiagnosticReport with classification attached

        Raises:
            MalformedInputError: If the message is empty, blank or not a string
        """
        if not isinstance(raw_message, str) or not raw_message.strip():
            raise MalformedInputError("Error message must be a non-empty string")

        fault = self.parser.parse(raw_message)
        logger.info(
            "Parsed %s (language=%s, file=%s, class=%s, line=%s)",
            fault.error_type, fault.language.value, fault.file_name, fault.class_name, fault.line_number
        )

        tree = await self._fetch_tree()
        candidates = self.resolver.resolve(fault, tree)
        selected = candidates[0] if candidates else None
        related = self.resolver.find_related_components(
            fault, tree, exclude=[candidate.path for candidate in candidates]
        )

        context = None
        if selected is not None:
            logger.info("Selected %s (tier %d)", selected.path, selected.priority_tier)
            content = await self._fetch_content(selected.path)
            context = self.extractor.extract(content, fault.line_number, fault)
        else:
            logger.info("No repository file matched %s", fault.error_type)

        report = self.engine.recommend(fault, context, selected)

        update = {
            "candidates": candidates,
            "related_components": related,
            "repository": self.repository.info,
            "classification": self.classifier.classify(fault),
        }

        analysis = await self._run_ai(fault, context, selected)
        if analysis is not None:
            update.update(self._merge_ai(report, analysis))

        return report.model_copy(update=update)

    async def _fetch_tree(self) -> List[RepositoryEntry]:
        try:
            return await self.repository.fetch_tree()
        except RepositoryFetchError as e:
            logger.warning("Could not fetch repository tree: %s", e)
            return []

    async def _fetch_content(self, path: str) -> Optional[str]:
        try:
            return await self.repository.fetch_file_content(path)
        except RepositoryFetchError as e:
            logger.warning("Could not fetch %s: %s", path, e)
            return None

    async def _run_ai(
        self,
        fault: FaultRecord,
        context: Optional[CodeContext],
        selected: Optional[FileCandidate]
    ) -> Optional[AIAnalysis]:
        if self.ai_suggester is None or not self.ai_suggester.is_enabled() or context is None:
            return None
        try:
            return await asyncio.to_thread(
                self.ai_suggester.analyze,
                fault,
                context,
                selected.path if selected else None,
                self.repository.info
            )
        except anthropic.APIError as e:
            logger.warning("AI analysis failed, keeping rule-based report: %s", e)
            return None

    def _merge_ai(self, report: DiagnosticReport, analysis: AIAnalysis) -> dict:
        # Empty AI lists keep the rule-based guidance
        return {
            "possible_causes": analysis.possible_causes or report.possible_causes,
            "suggested_fixes": analysis.suggested_fixes or report.suggested_fixes,
            "best_practices": analysis.best_practices or report.best_practices,
            "root_cause_narrative": analysis.root_cause_analysis,
            "prevention_strategy": analysis.prevention_strategy or report.prevention_strategy,
            "ai_powered": True,
            "ai_model": analysis.model,
        }


async def analyze_error(raw_message: str, repo_url: Optional[str] = None) -> DiagnosticReport:
    """Convenience function to analyze an error against a GitHub repository.

    Args:
        raw_message: Error text
        repo_url: GitHub repository URL; defaults to DEFAULT_REPO

    Returns:
        DiagnosticReport

    Raises:
        MalformedInputError: If the message or the repository URL is invalid
    """
    try:
        repository = GitHubRepository(repo_url or config.DEFAULT_REPO)
    except ValueError as e:
        raise MalformedInputError(str(e)) from e

    async with repository:
        analyzer = ErrorAnalyzer(repository, ai_suggester=AIFixSuggester())
        return await analyzer.analyze(raw_message)
