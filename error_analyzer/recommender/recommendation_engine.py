"""Rule-based recommendations keyed on fault type."""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from error_analyzer.models import (
    CodeContext,
    DiagnosticReport,
    FaultRecord,
    FileCandidate,
    FixApproach,
    Language,
)


@dataclass
class Recommendation:
    """Guidance produced by one template."""
    possible_causes: List[str]
    suggested_fixes: List[str]
    best_practices: List[str]
    root_cause: str
    prevention_strategy: Optional[str] = None


Template = Callable[[FaultRecord, Optional[CodeContext]], Recommendation]

INVALID_ID_PATTERN = re.compile(r'Invalid id:\s*([^\s,;]*[^\s,;.)"\'])', re.IGNORECASE)
SALESFORCE_ID_LENGTHS = (15, 18)

ID_VALIDATION_EXAMPLE = """public static Boolean isValidId(String value) {
    if (String.isBlank(value) || (value.length() != 15 && value.length() != 18)) {
        return false;
    }
    if (!Pattern.matches('[a-zA-Z0-9]+', value)) {
        return false;
    }
    try {
        Id recordId = Id.valueOf(value);
        return true;
    } catch (StringException e) {
        return false;
    }
}"""

APEX_BEST_PRACTICES = [
    "Use Salesforce debug logs for troubleshooting",
    "Test with different user profiles and permissions",
    "Follow Apex best practices and design patterns",
]

GENERIC_ROOT_CAUSE = "Unable to determine root cause automatically."


def _null_pointer(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    fixes = [
        "Add null checks before accessing object properties",
        "Initialize variables with default values",
        "Use defensive programming with null coalescing operators",
        "For Apex: Use isEmpty() or != null checks before accessing objects",
    ]
    if context and context.object_accesses and not context.has_null_check:
        fixes.insert(0, (
            f"Add a null check for {', '.join(context.object_accesses)} "
            f"before line {context.error_line}"
        ))
    return Recommendation(
        possible_causes=[
            "Attempting to access a property or method on a null object",
            "Variable not properly initialized before use",
            "Query returned no results and null was not handled",
        ],
        suggested_fixes=fixes,
        best_practices=[
            "Always validate query results before using them",
            "Use optional chaining (JavaScript) or safe navigation operators",
            "Implement proper error handling with try-catch blocks",
        ],
        root_cause="Attempted to access a property or method on a null object reference.",
        prevention_strategy=(
            "Treat every query result, map lookup and relationship field as possibly null; "
            "use the safe navigation operator (?.) and cover empty-result paths in unit tests."
        )
    )


def _reference(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "Variable referenced before declaration",
            "Typo in variable or function name",
            "Variable out of scope",
            "Missing import or dependency",
        ],
        suggested_fixes=[
            "Check variable spelling and capitalization",
            "Ensure variable is declared before use",
            "Verify all imports are present",
            "Check variable scope (block, function, or global)",
        ],
        best_practices=[
            'Use "use strict" mode in JavaScript',
            "Enable linting tools (ESLint, PMD for Apex)",
            "Declare variables at the top of their scope",
        ],
        root_cause="Attempted to access an undefined variable or function.",
        prevention_strategy="Run a linter in CI so undeclared identifiers fail the build."
    )


def _dml(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "DML operation failed due to validation rules",
            "Required fields missing",
            "Insufficient permissions",
            "Record locking issues",
            "Governor limits exceeded",
        ],
        suggested_fixes=[
            "Validate all required fields before DML",
            "Use Database.insert/update with allOrNone=false for partial success",
            "Check user permissions before DML operations",
            "Implement proper error handling for DML operations",
            "Review validation rules and field-level security",
        ],
        best_practices=[
            "Use Database methods instead of direct DML for better error handling",
            "Bulkify DML operations to avoid governor limits",
            "Log DML errors for debugging",
            "Validate data before DML in triggers and classes",
        ],
        root_cause="Database operation failed due to validation rules, required fields, or constraints.",
        prevention_strategy=(
            "Inspect Database.SaveResult errors after every DML call and keep validation rules "
            "covered by tests that insert invalid records."
        )
    )


def _limit(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    causes = [
        "Too many SOQL queries in a single transaction",
        "Too many DML statements",
        "CPU time limit exceeded",
        "Heap size limit exceeded",
        "Non-bulkified code in loops",
    ]
    if context and context.has_query:
        causes.insert(0, f"Line {context.error_line} runs a SOQL query that may execute once per record")
    return Recommendation(
        possible_causes=causes,
        suggested_fixes=[
            "Move SOQL queries outside of loops",
            "Bulkify your code to handle multiple records",
            "Use aggregate queries instead of looping",
            "Optimize complex algorithms",
            "Use @future or Queueable for asynchronous processing",
        ],
        best_practices=[
            "Always write bulkified code",
            "Use collections to batch DML operations",
            "Monitor governor limits with Limits class",
            "Cache SOQL results when possible",
            "Use efficient data structures",
        ],
        root_cause="Exceeded Salesforce governor limits (SOQL queries, DML statements, CPU time, etc.).",
        prevention_strategy=(
            "Test triggers and batch code with 200-record inserts and assert on "
            "Limits.getQueries() to catch non-bulkified code early."
        )
    )


def _type_error(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "Operation performed on incompatible data type",
            "Function called with wrong number/type of arguments",
            "Attempting to modify immutable data",
        ],
        suggested_fixes=[
            "Verify data types match expected types",
            "Add type checking before operations",
            "Use type conversion functions (parseInt, String(), etc.)",
            "Check function signatures and arguments",
        ],
        best_practices=[
            "Use TypeScript for static type checking",
            "Document expected parameter types",
            "Use JSDoc comments for type hints",
            "Enable strict type checking in your IDE",
        ],
        root_cause="Attempted to perform an operation on an incompatible type.",
        prevention_strategy="Adopt static type checking and validate external data at the boundary."
    )


def _syntax(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "Missing or extra brackets, parentheses, or braces",
            "Invalid character or syntax",
            "Incorrect use of keywords",
            "Missing semicolons or commas",
        ],
        suggested_fixes=[
            "Review code syntax carefully",
            "Use IDE syntax highlighting and validation",
            "Check bracket matching",
            "Verify proper string quotes and escaping",
        ],
        best_practices=[
            "Use a linter to catch syntax errors",
            "Enable auto-formatting in your IDE",
            "Use version control to track changes",
            "Test code incrementally",
        ],
        root_cause="Code contains invalid syntax that prevents parsing.",
        prevention_strategy="Run the parser or linter in a pre-commit hook."
    )


def _string(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    match = INVALID_ID_PATTERN.search(fault.raw_message)
    if not match:
        return Recommendation(
            possible_causes=[
                "String value could not be converted to the expected type",
                "String index or substring bounds out of range",
                "Unexpected format of an input value",
            ],
            suggested_fixes=[
                "Validate string format before conversion",
                "Check string length before substring or charAt calls",
                "Wrap conversions in try-catch and report the offending value",
            ],
            best_practices=[
                "Validate user and integration input at the boundary",
                "Use String.isBlank() and String.isNotBlank() for empty checks",
                "Write unit tests for malformed input values",
            ],
            root_cause="A string operation or conversion failed on an unexpected value.",
            prevention_strategy="Validate and normalise string inputs before using them."
        )

    invalid_id = match.group(1)
    length = len(invalid_id)
    expected = " or ".join(str(size) for size in SALESFORCE_ID_LENGTHS)
    return Recommendation(
        possible_causes=[
            (
                f"The value '{invalid_id}' is not a valid Salesforce ID: it is {length} characters "
                f"long, but Salesforce IDs must be exactly {expected} characters"
            ),
            "A hard-coded, truncated or user-supplied value is being cast to the Id type",
            "An external system or integration sent a non-Salesforce identifier",
        ],
        suggested_fixes=[
            f"Validate that the value has exactly {expected} alphanumeric characters before casting to Id",
            "Use Id.valueOf() inside a try-catch block and handle StringException",
            "Use 'value instanceof Id' to check the format before assigning",
            "Trace where the value originates and correct the source data",
        ],
        best_practices=[
            "Never hard-code record IDs; query them or use custom metadata",
            "Validate IDs received from external systems before use",
            "Centralise ID validation in a shared utility class",
        ],
        root_cause=(
            f"The string '{invalid_id}' ({length} characters) was used where a Salesforce ID "
            f"was expected. Salesforce IDs are exactly {expected} characters, so the cast to Id failed."
        ),
        prevention_strategy=(
            "Validate IDs with a shared utility before casting:\n\n" + ID_VALIDATION_EXAMPLE
        )
    )


def _query(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "Query returned no rows for assignment to a single SObject",
            "Query returned more than one row for assignment to a single SObject",
            "Field used without being selected in the SOQL query",
            "Non-selective query against a large object",
        ],
        suggested_fixes=[
            "Assign query results to a List and check isEmpty() before use",
            "Add LIMIT 1 when a single record is expected",
            "Include every accessed field in the SELECT clause",
            "Add selective filters on indexed fields",
        ],
        best_practices=[
            "Never assume a query returns exactly one record",
            "Keep queries selective and use indexed fields in WHERE clauses",
            "Cover empty and multi-row results in unit tests",
        ],
        root_cause="A SOQL query result did not match how the code used it.",
        prevention_strategy="Query into collections and handle the empty and multi-row cases explicitly."
    )


def _list(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "List index out of bounds",
            "Accessing the first element of an empty query result",
            "Duplicate IDs in a list passed to DML",
        ],
        suggested_fixes=[
            "Check list size or isEmpty() before accessing an index",
            "Use a Set or Map to de-duplicate records before DML",
            "Iterate with for-each loops instead of fixed indexes",
        ],
        best_practices=[
            "Avoid hard-coded list indexes",
            "Validate collection sizes in unit tests",
            "Prefer Maps keyed by Id for record lookups",
        ],
        root_cause="A list operation used an index or element that does not exist.",
        prevention_strategy="Guard every indexed access with a size check."
    )


def _generic(fault: FaultRecord, context: Optional[CodeContext]) -> Recommendation:
    return Recommendation(
        possible_causes=[
            "Review the error message for specific details",
            "Check recent code changes",
            "Verify configuration and dependencies",
        ],
        suggested_fixes=[
            "Enable debug logging",
            "Add try-catch blocks to isolate the issue",
            "Review documentation for the framework/library",
            "Check for known issues in the project repository",
        ],
        best_practices=[
            "Implement comprehensive error handling",
            "Use logging frameworks for debugging",
            "Write unit tests to catch issues early",
            "Follow coding standards and best practices",
        ],
        root_cause=GENERIC_ROOT_CAUSE
    )


TEMPLATES: Dict[str, Template] = {
    "NullPointerException": _null_pointer,
    "UndefinedError": _reference,
    "ReferenceError": _reference,
    "DmlException": _dml,
    "LimitException": _limit,
    "TypeError": _type_error,
    "SyntaxError": _syntax,
    "StringException": _string,
    "QueryException": _query,
    "ListException": _list,
}


class RecommendationEngine:
    """Builds diagnostic reports from fault type templates."""

    def __init__(self, templates: Optional[Dict[str, Template]] = None, default: Template = _generic):
        self.templates = templates if templates is not None else TEMPLATES
        self.default = default

    def recommend(
        self,
        fault: FaultRecord,
        context: Optional[CodeContext] = None,
        selected_file: Optional[FileCandidate] = None
    ) -> DiagnosticReport:
        """Produce the diagnostic report for a fault.

        Args:
            fault: Parsed fault record
            context: Code context around the error line, if the file was found
            selected_file: Resolved source file, if any

        Returns:
            DiagnosticReport with non-empty causes, fixes and best practices
        """
        template = self.templates.get(fault.error_type, self.default)
        recommendation = template(fault, context)

        best_practices = list(recommendation.best_practices)
        if fault.language == Language.APEX:
            best_practices.extend(APEX_BEST_PRACTICES)

        return DiagnosticReport(
            fault=fault,
            selected_file=selected_file,
            code_context=context,
            possible_causes=list(recommendation.possible_causes),
            suggested_fixes=list(recommendation.suggested_fixes),
            best_practices=best_practices,
            root_cause_narrative=recommendation.root_cause,
            prevention_strategy=recommendation.prevention_strategy,
            fix_approach=self._fix_approach(recommendation)
        )

    def _fix_approach(self, recommendation: Recommendation) -> FixApproach:
        return FixApproach(
            immediate="Apply the suggested code fixes to resolve the error",
            short_term="Add test coverage to prevent regression",
            long_term=recommendation.prevention_strategy or "Implement coding standards and static analysis"
        )


def generate_recommendations(
    fault: FaultRecord,
    context: Optional[CodeContext] = None,
    selected_file: Optional[FileCandidate] = None
) -> DiagnosticReport:
    """Convenience function to build a diagnostic report.

    Args:
        fault: Parsed fault record
        context: Optional code context
        selected_file: Optional resolved file

    Returns:
        DiagnosticReport
    """
    engine = RecommendationEngine()
    return engine.recommend(fault, context, selected_file)
