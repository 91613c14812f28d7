"""Plain-text reports and ticket payloads built from a diagnostic report."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from error_analyzer.models import DiagnosticReport

logger = logging.getLogger(__name__)

RULE = "=" * 80
THIN_RULE = "-" * 80
SHORT_DESCRIPTION_LIMIT = 100


def _numbered(items: List[str], indent: str = "  ") -> List[str]:
    return [f"{indent}{index}. {item}" for index, item in enumerate(items, 1)]


def render_report(report: DiagnosticReport, generated_at: Optional[datetime] = None) -> str:
    """Render the full analysis report as plain text.

    Args:
        report: Diagnostic report to render
        generated_at: Timestamp printed in the header, defaults to now (UTC)

    Returns:
        Report text
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    fault = report.fault

    lines = [
        RULE,
        "COMPREHENSIVE ERROR ANALYSIS REPORT",
        RULE,
        "",
        f"Generated: {generated_at.isoformat()}",
        "",
        "ORIGINAL ERROR MESSAGE:",
        THIN_RULE,
        fault.raw_message,
        THIN_RULE,
        "",
        "PARSED ERROR INFORMATION:",
        f"  Error Type: {fault.error_type}",
        f"  Language: {fault.language.value}",
        f"  Message: {fault.message}",
    ]
    if fault.file_name:
        lines.append(f"  File: {fault.file_name}")
    lines.append(f"  Line: {fault.line_number or 'N/A'}")
    if fault.column_number:
        lines.append(f"  Column: {fault.column_number}")
    if fault.class_name:
        lines.append(f"  Class: {fault.class_name}")
    if fault.method_name:
        lines.append(f"  Method: {fault.method_name}")

    if report.classification:
        classification = report.classification
        lines += [
            f"  Severity: {classification.severity.value}",
            f"  Category: {classification.category.value}",
        ]
    lines.append("")

    if report.repository:
        repository = report.repository
        lines += [
            "REPOSITORY INFORMATION:",
            f"  Repository: {repository.owner}/{repository.name}",
            f"  Branch: {repository.branch}",
            f"  URL: {repository.url}",
            "",
        ]

    if report.candidates:
        lines.append("RELEVANT FILES IDENTIFIED:")
        for index, candidate in enumerate(report.candidates, 1):
            lines.append(f"  {index}. {candidate.path}")
            lines.append(f"     Reason: {candidate.reason}")
        lines.append("")

    if report.related_components:
        lines.append("RELATED COMPONENTS:")
        for component in report.related_components:
            lines.append(f"  - {component.path} [{component.relationship}, {component.priority}]")
        lines.append("")

    if report.code_context and report.code_context.snippet:
        lines += ["CODE SNIPPET:", THIN_RULE]
        for line in report.code_context.snippet:
            marker = ">>> " if line.is_error_line else "    "
            lines.append(f"{marker}{line.line_number:>4}: {line.content}")
        lines += [THIN_RULE, ""]
        if report.code_context.insights:
            lines.append("CODE INSIGHTS:")
            lines += [f"  - {insight}" for insight in report.code_context.insights]
            lines.append("")

    if report.root_cause_narrative:
        lines += ["ROOT CAUSE:", f"  {report.root_cause_narrative}", ""]

    lines += ["POSSIBLE CAUSES:", *_numbered(report.possible_causes), ""]
    lines += ["SUGGESTED FIXES:", *_numbered(report.suggested_fixes), ""]
    lines += ["BEST PRACTICES:", *_numbered(report.best_practices), ""]

    if report.fix_approach:
        lines += [
            "FIX APPROACH:",
            f"  Immediate: {report.fix_approach.immediate}",
            f"  Short term: {report.fix_approach.short_term}",
            f"  Long term: {report.fix_approach.long_term}",
            "",
        ]

    if report.prevention_strategy:
        lines += ["PREVENTION STRATEGY:", report.prevention_strategy, ""]

    if report.ai_powered:
        lines += [f"Analysis enriched by {report.ai_model or 'AI'}", ""]

    lines += [RULE, "END OF REPORT", RULE]
    return "\n".join(lines) + "\n"


def build_incident_payload(report: DiagnosticReport) -> Dict[str, str]:
    """Build the ServiceNow incident fields for a report."""
    fault = report.fault
    message = fault.message or fault.raw_message
    short_description = f"{fault.error_type}: {message[:SHORT_DESCRIPTION_LIMIT]}"

    description = [
        "Error Analysis Report",
        RULE,
        "",
        "ERROR DETAILS:",
        f"- Type: {fault.error_type}",
        f"- Language: {fault.language.value}",
        f"- Message: {message}",
    ]
    if fault.file_name:
        location = fault.file_name
        if fault.line_number:
            location += f":{fault.line_number}"
            if fault.column_number:
                location += f":{fault.column_number}"
        description.append(f"- Location: {location}")
    if fault.class_name:
        description.append(f"- Class: {fault.class_name}")

    if report.repository:
        repository = report.repository
        description += ["", "REPOSITORY:", f"- {repository.owner}/{repository.name} ({repository.branch})"]

    if report.candidates:
        description += ["", "RELEVANT FILES:"]
        description += [
            f"{index}. {candidate.path} ({candidate.reason})"
            for index, candidate in enumerate(report.candidates, 1)
        ]

    description += [
        "",
        RULE,
        "",
        "For detailed analysis, fixes, and recommendations, please see the attached file.",
    ]

    if report.classification:
        priority = report.classification.priority
        impact = report.classification.impact
        urgency = report.classification.urgency
    else:
        priority = impact = urgency = "3"

    return {
        "short_description": short_description,
        "description": "\n".join(description),
        "priority": priority,
        "impact": impact,
        "urgency": urgency,
        "category": "Software",
        "subcategory": "Application Error",
        "u_error_type": fault.error_type,
        "u_programming_language": fault.language.value,
    }


def report_file_name(incident_number: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Name for a report file, e.g. ``error_analysis_INC0010001_1700000000000.txt``."""
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    if incident_number:
        return f"error_analysis_{incident_number}_{stamp}.txt"
    return f"error_analysis_{stamp}.txt"


def save_report(report: DiagnosticReport, output_dir: Union[str, Path]) -> Path:
    """Render a report and write it under output_dir.

    Returns:
        Path of the written file
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / report_file_name()
    path.write_text(render_report(report), encoding="utf-8")
    logger.info("Analysis report saved to %s", path)
    return path
