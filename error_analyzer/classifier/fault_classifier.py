"""Table-driven severity and category classification for faults."""

from typing import Dict, Tuple

from error_analyzer.models import Category, FaultClassification, FaultRecord, Severity


class FaultClassifier:
    """Maps a fault type to severity, category and ticket priority.

    Every type maps to exactly one entry; unknown types use DEFAULT.
    """

    SEVERITY_TABLE: Dict[str, Tuple[Severity, Category]] = {
        "LimitException": (Severity.CRITICAL, Category.GOVERNOR_LIMIT),
        "NullPointerException": (Severity.HIGH, Category.NULL_REFERENCE),
        "DmlException": (Severity.HIGH, Category.DATABASE),
        "StringException": (Severity.HIGH, Category.DATA_VALIDATION),
        "QueryException": (Severity.HIGH, Category.QUERY),
    }
    DEFAULT = (Severity.ERROR, Category.RUNTIME)

    # (priority, impact, urgency) as ServiceNow codes, 1 = highest
    PRIORITY_TABLE: Dict[str, Tuple[str, str, str]] = {
        "LimitException": ("1", "1", "1"),
        "DmlException": ("2", "2", "2"),
        "NullPointerException": ("2", "2", "2"),
        "SyntaxError": ("2", "2", "1"),
    }
    DEFAULT_PRIORITY = ("3", "3", "3")

    def classify(self, fault: FaultRecord) -> FaultClassification:
        """Classify a fault.

        Args:
            fault: Parsed fault record

        Returns:
            FaultClassification with severity, category and ticket priority
        """
        error_type = fault.error_type
        known = error_type in self.SEVERITY_TABLE
        severity, category = self.SEVERITY_TABLE.get(error_type, self.DEFAULT)
        priority, impact, urgency = self.PRIORITY_TABLE.get(error_type, self.DEFAULT_PRIORITY)

        if known:
            reasoning = f"{error_type} is classified as {severity.value} ({category.value})"
        else:
            reasoning = f"No classification rule for {error_type}; using default {severity.value} ({category.value})"

        return FaultClassification(
            severity=severity,
            category=category,
            priority=priority,
            impact=impact,
            urgency=urgency,
            reasoning=reasoning
        )


def classify_fault(fault: FaultRecord) -> FaultClassification:
    """Convenience function to classify a fault."""
    classifier = FaultClassifier()
    return classifier.classify(fault)
