"""Code window extraction and line inspection around a fault location."""

import re
from typing import List, Optional

from error_analyzer.models import CodeContext, FaultRecord, SnippetLine


class CodeContextExtractor:
    """Extracts the lines around the error and inspects the error line."""

    CONTEXT_LINES = 5

    IDENTIFIER_PATTERN = re.compile(r'(?<![\w$])[A-Za-z_$][\w$]*')
    METHOD_CALL_PATTERN = re.compile(r'(?<![\w$])([A-Za-z_$][\w$]*)\s*\(')
    OBJECT_ACCESS_PATTERN = re.compile(r'(?<![\w$])([A-Za-z_$][\w$]*)\.')
    NULL_CHECK_PATTERN = re.compile(r'[!=]==?\s*null\b|\bnull\s*[!=]==?', re.IGNORECASE)
    QUERY_PATTERN = re.compile(r'\[\s*SELECT\b|Database\.query\s*\(', re.IGNORECASE)
    LOOP_PATTERN = re.compile(r'\b(?:for|while)\s*\(')

    KEYWORDS = frozenset([
        "if", "else", "for", "while", "do", "switch", "case", "break", "continue",
        "return", "new", "class", "interface", "enum", "extends", "implements",
        "public", "private", "protected", "global", "static", "final", "virtual",
        "override", "abstract", "void", "try", "catch", "finally", "throw", "throws",
        "const", "let", "var", "function", "def", "import", "from", "in", "instanceof",
        "null", "true", "false", "undefined", "None", "True", "False",
    ])

    def extract(
        self,
        file_content: Optional[str],
        error_line: Optional[int],
        fault: FaultRecord
    ) -> Optional[CodeContext]:
        """Build the code context for one error line.

        Args:
            file_content: Full text of the source file
            error_line: 1-based line number of the error
            fault: Parsed fault record, used for type-specific insights

        Returns:
            CodeContext, or None when there is no line or no content
        """
        if not error_line or error_line < 1 or not file_content:
            return None

        lines = [line.rstrip("\r") for line in file_content.split("\n")]
        error_index = error_line - 1
        start = max(0, error_index - self.CONTEXT_LINES)
        end = min(len(lines), error_index + self.CONTEXT_LINES + 1)

        snippet = [
            SnippetLine(
                line_number=index + 1,
                content=lines[index],
                is_error_line=(index + 1) == error_line
            )
            for index in range(start, end)
        ]

        if error_index >= len(lines):
            return CodeContext(
                start_line=start + 1,
                end_line=end,
                error_line=error_line,
                snippet=snippet
            )

        return self._inspect_line(lines[error_index], fault, start + 1, end, error_line, snippet)

    def _inspect_line(
        self,
        line: str,
        fault: FaultRecord,
        start_line: int,
        end_line: int,
        error_line: int,
        snippet: List[SnippetLine]
    ) -> CodeContext:
        trimmed = line.strip()

        variables = [
            name for name in self._unique(self.IDENTIFIER_PATTERN.findall(trimmed))
            if name not in self.KEYWORDS
        ]
        method_calls = self._unique(self.METHOD_CALL_PATTERN.findall(trimmed))
        object_accesses = self._unique(self.OBJECT_ACCESS_PATTERN.findall(trimmed))
        has_null_check = bool(self.NULL_CHECK_PATTERN.search(trimmed))
        has_query = bool(self.QUERY_PATTERN.search(trimmed))
        has_loop = bool(self.LOOP_PATTERN.search(trimmed))

        insights: List[str] = []

        if fault.error_type == "NullPointerException":
            if "." in trimmed and not has_null_check and object_accesses:
                insights.append(f"Line accesses properties/methods on: {', '.join(object_accesses)}")
                insights.append("No null check detected before object access")
            if "[" in trimmed and "]" in trimmed:
                insights.append("Array/List access detected - ensure collection is not empty")

        if has_query:
            insights.append("SOQL query detected on this line")
            if fault.error_type == "LimitException":
                insights.append("SOQL query inside a loop can cause governor limit exceptions")

        if has_loop:
            insights.append("Loop detected")
            if fault.error_type == "LimitException":
                insights.append("Ensure operations inside loop are bulkified")

        return CodeContext(
            start_line=start_line,
            end_line=end_line,
            error_line=error_line,
            snippet=snippet,
            variables_used=variables,
            method_calls=method_calls,
            object_accesses=object_accesses,
            has_null_check=has_null_check,
            has_query=has_query,
            has_loop=has_loop,
            insights=insights
        )

    def _unique(self, names: List[str]) -> List[str]:
        return list(dict.fromkeys(names))


def extract_code_context(
    file_content: Optional[str],
    error_line: Optional[int],
    fault: FaultRecord
) -> Optional[CodeContext]:
    """Convenience function to extract code context around an error line."""
    extractor = CodeContextExtractor()
    return extractor.extract(file_content, error_line, fault)
