"""Locates the source file an error points at inside a repository tree."""

import posixpath
from typing import Iterable, List

from error_analyzer.models import (
    FaultRecord,
    FileCandidate,
    Language,
    RelatedComponent,
    RepositoryEntry,
)


class FileResolver:
    """Ranks repository files against a parsed fault.

    Tiers are tried in order and the first tier with any match wins; lower
    tiers are never consulted once a higher tier matched.
    """

    MAX_CANDIDATES = 2

    # (path fragment suffix, relationship, reason, priority)
    RELATED_PATTERNS = [
        ("Test", "test classes", "Test coverage for affected code", "medium"),
        ("Trigger", "triggers", "Trigger may invoke affected class", "high"),
        ("Handler", "handler classes", "Related handler logic", "medium"),
        ("Service", "service classes", "Related service logic", "medium"),
    ]

    SHARED_METADATA_FILES = ["package.xml", "sfdx-project.json"]

    def resolve(self, fault: FaultRecord, tree: Iterable[RepositoryEntry]) -> List[FileCandidate]:
        """Select at most two candidate files for the fault.

        Args:
            fault: Parsed fault record
            tree: Flat repository listing

        Returns:
            Candidates ordered by tier; empty when nothing matched
        """
        files = [entry for entry in tree if entry.is_file]

        candidates = self._match_file_name(fault, files)
        if not candidates:
            candidates = self._match_class_name(fault, files)
        if not candidates:
            candidates = self._match_method_name(fault, files)

        candidates.sort(key=lambda candidate: candidate.priority_tier)
        return candidates[:self.MAX_CANDIDATES]

    def find_related_components(
        self,
        fault: FaultRecord,
        tree: Iterable[RepositoryEntry],
        exclude: Iterable[str] = ()
    ) -> List[RelatedComponent]:
        """Find tests, triggers, handlers, services and metadata around an Apex class."""
        if fault.language != Language.APEX or not fault.class_name:
            return []

        excluded = set(exclude)
        files = [entry for entry in tree if entry.is_file and entry.path not in excluded]
        related: List[RelatedComponent] = []
        seen = set()

        for suffix, relationship, reason, priority in self.RELATED_PATTERNS:
            fragment = f"{fault.class_name}{suffix}"
            for entry in files:
                if fragment in entry.path and entry.path not in seen:
                    seen.add(entry.path)
                    related.append(RelatedComponent(
                        path=entry.path,
                        relationship=relationship,
                        reason=reason,
                        priority=priority
                    ))

        metadata_names = [
            f"{fault.class_name}.cls-meta.xml",
            f"{fault.class_name}.trigger-meta.xml",
        ] + self.SHARED_METADATA_FILES
        for entry in files:
            if posixpath.basename(entry.path) in metadata_names and entry.path not in seen:
                seen.add(entry.path)
                related.append(RelatedComponent(
                    path=entry.path,
                    relationship="metadata",
                    reason="Configuration/metadata for affected component",
                    priority="low"
                ))

        return related

    def _match_file_name(self, fault: FaultRecord, files: List[RepositoryEntry]) -> List[FileCandidate]:
        if not fault.file_name:
            return []
        return [
            FileCandidate(path=entry.path, priority_tier=1, reason="Exact file match from error")
            for entry in files
            if entry.path.endswith(fault.file_name)
        ]

    def _match_class_name(self, fault: FaultRecord, files: List[RepositoryEntry]) -> List[FileCandidate]:
        if not fault.class_name:
            return []
        return [
            FileCandidate(path=entry.path, priority_tier=2, reason="Exact class match from error")
            for entry in files
            if self._stem(entry.path) == fault.class_name
        ]

    def _match_method_name(self, fault: FaultRecord, files: List[RepositoryEntry]) -> List[FileCandidate]:
        if not fault.method_name:
            return []
        return [
            FileCandidate(path=entry.path, priority_tier=3, reason="Method name match from error")
            for entry in files
            if fault.method_name in entry.path
        ]

    def _stem(self, path: str) -> str:
        """File name after the last '/' up to its first dot."""
        return posixpath.basename(path).split(".", 1)[0]


def resolve_files(fault: FaultRecord, tree: Iterable[RepositoryEntry]) -> List[FileCandidate]:
    """Convenience function to resolve candidate files for a fault."""
    resolver = FileResolver()
    return resolver.resolve(fault, tree)
