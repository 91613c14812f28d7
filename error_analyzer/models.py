"""Data models for the error diagnostics system."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Runtime the error message originates from."""
    APEX = "apex"
    JAVASCRIPT = "javascript"
    JAVA = "java"
    PYTHON = "python"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Fault severity levels."""
    CRITICAL = "critical"
    HIGH = "high"
    ERROR = "error"


class Category(str, Enum):
    """Fault categories used for ticket routing."""
    GOVERNOR_LIMIT = "governor-limit"
    NULL_REFERENCE = "null-reference"
    DATABASE = "database"
    DATA_VALIDATION = "data-validation"
    QUERY = "query"
    RUNTIME = "runtime"


class StackFrame(BaseModel):
    """One frame of a stack trace found in the error message."""
    model_config = ConfigDict(frozen=True)

    function: str = Field("anonymous", description="Function or method name")
    file: str = Field(..., description="File path as written in the trace")
    line: int = Field(..., description="Line number")
    column: Optional[int] = Field(None, description="Column number if available")


class FaultRecord(BaseModel):
    """Structured result of parsing one error message."""
    model_config = ConfigDict(frozen=True)

    raw_message: str = Field(..., description="Original unparsed error message")
    message: str = Field("", description="Exception message without the type prefix")
    error_type: str = Field("Unknown", description="Exception type, namespace stripped")
    language: Language = Field(Language.UNKNOWN, description="Inferred source language")
    file_name: Optional[str] = Field(None, description="File referenced by the error")
    class_name: Optional[str] = Field(None, description="Class referenced by the error")
    method_name: Optional[str] = Field(None, description="Method referenced by the error")
    line_number: Optional[int] = Field(None, gt=0, description="Line number if available")
    column_number: Optional[int] = Field(None, gt=0, description="Column number if available")
    stack_frames: List[StackFrame] = Field(default_factory=list, description="Frames in message order")


class RepositoryEntry(BaseModel):
    """One entry of a recursive repository tree listing."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Repository-relative path")
    type: str = Field("blob", description="'blob' for files, 'tree' for directories")

    @property
    def is_file(self) -> bool:
        return self.type == "blob"


class FileCandidate(BaseModel):
    """A repository file that may contain the fault."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Repository-relative path")
    priority_tier: int = Field(..., ge=1, le=3, description="1 = file name, 2 = class name, 3 = method name")
    reason: str = Field(..., description="Why this file was selected")


class RelatedComponent(BaseModel):
    """A file related to the faulty component (tests, triggers, metadata)."""
    model_config = ConfigDict(frozen=True)

    path: str
    relationship: str = Field(..., description="Kind of relationship, e.g. 'test classes'")
    reason: str
    priority: str = Field("medium", description="Review priority: high, medium or low")


class SnippetLine(BaseModel):
    """One source line of a code snippet."""
    model_config = ConfigDict(frozen=True)

    line_number: int
    content: str
    is_error_line: bool = False


class CodeContext(BaseModel):
    """Code window around the fault line plus the findings on that line."""
    model_config = ConfigDict(frozen=True)

    start_line: int = Field(..., description="First line of the snippet (1-based)")
    end_line: int = Field(..., description="Last line of the snippet (1-based)")
    error_line: int = Field(..., description="Line the error points at")
    snippet: List[SnippetLine] = Field(default_factory=list)
    variables_used: List[str] = Field(default_factory=list)
    method_calls: List[str] = Field(default_factory=list)
    object_accesses: List[str] = Field(default_factory=list, description="Identifiers dereferenced with '.'")
    has_null_check: bool = False
    has_query: bool = False
    has_loop: bool = False
    insights: List[str] = Field(default_factory=list)


class FaultClassification(BaseModel):
    """Severity/category tagging for one fault."""
    model_config = ConfigDict(frozen=True)

    severity: Severity
    category: Category
    priority: str = Field("3", description="Ticket priority (1 = critical)")
    impact: str = Field("3", description="Ticket impact (1 = high)")
    urgency: str = Field("3", description="Ticket urgency (1 = high)")
    reasoning: str = Field(..., description="Explanation for the classification")


class FixApproach(BaseModel):
    """Staged plan for resolving the fault."""
    model_config = ConfigDict(frozen=True)

    immediate: str
    short_term: str
    long_term: str


class RepositoryInfo(BaseModel):
    """Coordinates of the analysed GitHub repository."""
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    branch: str = "master"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"


class AIAnalysis(BaseModel):
    """Structured output of the optional LLM analysis."""
    root_cause_analysis: str = "Analysis not available"
    code_context_insights: List[str] = Field(default_factory=list)
    possible_causes: List[str] = Field(default_factory=list)
    suggested_fixes: List[str] = Field(default_factory=list)
    best_practices: List[str] = Field(default_factory=list)
    related_components: List[str] = Field(default_factory=list)
    prevention_strategy: str = ""
    model: Optional[str] = None
    parse_error: Optional[str] = None


class DiagnosticReport(BaseModel):
    """Final diagnosis for one fault."""
    model_config = ConfigDict(frozen=True)

    fault: FaultRecord
    selected_file: Optional[FileCandidate] = None
    code_context: Optional[CodeContext] = None
    possible_causes: List[str] = Field(..., min_length=1)
    suggested_fixes: List[str] = Field(..., min_length=1)
    best_practices: List[str] = Field(..., min_length=1)
    root_cause_narrative: Optional[str] = None
    prevention_strategy: Optional[str] = None
    fix_approach: Optional[FixApproach] = None
    classification: Optional[FaultClassification] = None
    candidates: List[FileCandidate] = Field(default_factory=list)
    related_components: List[RelatedComponent] = Field(default_factory=list)
    repository: Optional[RepositoryInfo] = None
    ai_powered: bool = False
    ai_model: Optional[str] = None


class AnalyzeRequest(BaseModel):
    """Request model for error analysis."""
    error_message: str = Field(..., description="Raw error message to analyse")
    repository: Optional[str] = Field(None, description="GitHub repository URL; defaults to DEFAULT_REPO")


class AnalyzeResponse(BaseModel):
    """Response for an analysis request."""
    success: bool = True
    message: str
    report: DiagnosticReport


class IncidentRequest(AnalyzeRequest):
    """Request model for incident creation."""
    caller: Optional[str] = Field(None, description="ServiceNow caller_id")
    assignment_group: Optional[str] = Field(None, description="ServiceNow assignment group")
    local_only: bool = Field(False, description="Save the report locally instead of creating an incident")


class IncidentResult(BaseModel):
    """Outcome of creating an incident or saving a report locally."""
    mode: str = Field(..., description="'servicenow' or 'local'")
    report_file: str
    report_path: Optional[str] = None
    incident_number: Optional[str] = None
    incident_sys_id: Optional[str] = None
    incident_url: Optional[str] = None
    priority: Optional[str] = None
    error_type: str
    language: Language


class IncidentResponse(BaseModel):
    """Response for an incident creation request."""
    success: bool = True
    message: str
    incident: IncidentResult
