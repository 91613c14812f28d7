"""Parser for runtime error and exception messages."""

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from error_analyzer.models import FaultRecord, Language, StackFrame

# Parse state shared by the rules while one message is processed
FaultDraft = Dict[str, Any]
ParseRule = Tuple[str, Callable[[str, FaultDraft], None]]


class FaultParser:
    """Turns a free-text error message into a FaultRecord.

    Rules run in a fixed order. A field that an earlier rule set is never
    overwritten by a later one, and the language is taken from the first rule
    that infers it.
    """

    EXCEPTION_TYPE_PATTERN = re.compile(r'([\w.]+Exception):\s*(.+)', re.IGNORECASE)
    EXCEPTION_TYPE_FIELD_PATTERN = re.compile(r'Exception Type:\s*([\w.]+)', re.IGNORECASE)
    EXCEPTION_MESSAGE_FIELD_PATTERN = re.compile(r'Exception Message:\s*(.+)', re.IGNORECASE)
    APEX_LOCATION_PATTERN = re.compile(
        r'(Class|Trigger)\.([\w$.]+):\s*line\s+(\d+)(?:,\s*column\s+(\d+))?',
        re.IGNORECASE
    )
    JS_FRAME_PATTERN = re.compile(r'\bat\s+(?:(.+?)\s+\()?(.+?):(\d+):(\d+)\)?')
    JAVA_FRAME_PATTERN = re.compile(r'\bat\s+([\w$.]+)\.([\w$<>]+)\(([\w$]+\.java):(\d+)\)')
    PYTHON_FRAME_PATTERN = re.compile(r'File\s+"([^"]+)",\s+line\s+(\d+)(?:,\s+in\s+(\S+))?')
    PYTHON_ERROR_LINE_PATTERN = re.compile(
        r'^([A-Za-z_][\w.]*(?:Error|Exception|Warning|Interrupt|Exit)):?\s*(.*)$',
        re.MULTILINE
    )
    FILE_REFERENCE_PATTERN = re.compile(
        r'\b(?:in|at)\s+([^\s:]+\.(?:js|apex|cls|trigger|java|py))\b:?(\d+)?:?(\d+)?',
        re.IGNORECASE
    )

    EXTENSION_LANGUAGES = {
        "cls": Language.APEX,
        "trigger": Language.APEX,
        "apex": Language.APEX,
        "js": Language.JAVASCRIPT,
        "java": Language.JAVA,
        "py": Language.PYTHON,
    }

    # Checked in order, first hit wins
    TYPE_KEYWORDS: List[Tuple[Tuple[str, ...], str]] = [
        (("TypeError",), "TypeError"),
        (("ReferenceError",), "ReferenceError"),
        (("SyntaxError",), "SyntaxError"),
        (("NullPointerException", "null is not"), "NullPointerException"),
        (("undefined",), "UndefinedError"),
        (("DmlException",), "DmlException"),
        (("LimitException",), "LimitException"),
    ]

    def __init__(self):
        self.rules: List[ParseRule] = [
            ("exception_type", self._apply_exception_type),
            ("apex_location", self._apply_apex_location),
            ("javascript_stack", self._apply_javascript_stack),
            ("java_stack", self._apply_java_stack),
            ("python_traceback", self._apply_python_traceback),
            ("file_reference", self._apply_file_reference),
            ("type_keywords", self._apply_type_keywords),
        ]

    def parse(self, raw_message: str) -> FaultRecord:
        """Parse a raw error message into a structured fault record.

        Args:
            raw_message: Error text as reported by the runtime

        Returns:
            FaultRecord; unmatched fields stay unset and the type is "Unknown"
        """
        text = raw_message if isinstance(raw_message, str) else ""
        draft = self._new_draft(text)

        for _name, rule in self.rules:
            rule(text, draft)

        return FaultRecord(**draft)

    def _new_draft(self, text: str) -> FaultDraft:
        return {
            "raw_message": text,
            "message": text,
            "error_type": "Unknown",
            "language": Language.UNKNOWN,
            "file_name": None,
            "class_name": None,
            "method_name": None,
            "line_number": None,
            "column_number": None,
            "stack_frames": [],
        }

    def _apply_exception_type(self, text: str, draft: FaultDraft) -> None:
        """Detect `<Namespace.>XxxException: message`."""
        match = self.EXCEPTION_TYPE_PATTERN.search(text)
        if match:
            draft["error_type"] = self._strip_namespace(match.group(1))
            draft["message"] = match.group(2).strip()
            return

        # Salesforce exception emails put type and message on separate lines
        type_match = self.EXCEPTION_TYPE_FIELD_PATTERN.search(text)
        if type_match:
            draft["error_type"] = self._strip_namespace(type_match.group(1))
            message_match = self.EXCEPTION_MESSAGE_FIELD_PATTERN.search(text)
            if message_match:
                draft["message"] = message_match.group(1).strip()

    def _apply_apex_location(self, text: str, draft: FaultDraft) -> None:
        """Detect `Class.Name.method: line N, column M`."""
        match = self.APEX_LOCATION_PATTERN.search(text)
        if not match:
            return

        parts = [part for part in match.group(2).split(".") if part]
        if not parts:
            return

        self._set_language(draft, Language.APEX)
        self._set_if_unset(draft, "class_name", parts[0])
        if len(parts) > 1:
            self._set_if_unset(draft, "method_name", parts[-1])
        self._set_location(draft, int(match.group(3)), self._to_int(match.group(4)))

    def _apply_javascript_stack(self, text: str, draft: FaultDraft) -> None:
        """Collect `at fn (file:line:col)` frames."""
        for match in self.JS_FRAME_PATTERN.finditer(text):
            frame = StackFrame(
                function=match.group(1) or "anonymous",
                file=match.group(2),
                line=int(match.group(3)),
                column=int(match.group(4))
            )
            if not draft["stack_frames"]:
                self._seed_from_frame(draft, frame, Language.JAVASCRIPT)
            draft["stack_frames"].append(frame)

    def _apply_java_stack(self, text: str, draft: FaultDraft) -> None:
        """Collect `at pkg.Class.method(File.java:N)` frames."""
        for match in self.JAVA_FRAME_PATTERN.finditer(text):
            qualified_class = match.group(1)
            frame = StackFrame(
                function=f"{qualified_class}.{match.group(2)}",
                file=match.group(3),
                line=int(match.group(4))
            )
            if not draft["stack_frames"]:
                self._seed_from_frame(draft, frame, Language.JAVA)
                class_name = qualified_class.rsplit(".", 1)[-1].split("$", 1)[0]
                self._set_if_unset(draft, "class_name", class_name)
                self._set_if_unset(draft, "method_name", match.group(2))
            draft["stack_frames"].append(frame)

    def _apply_python_traceback(self, text: str, draft: FaultDraft) -> None:
        """Collect `File "x.py", line N, in fn` frames; the innermost frame is last."""
        frames = []
        for match in self.PYTHON_FRAME_PATTERN.finditer(text):
            frames.append(StackFrame(
                function=match.group(3) or "<module>",
                file=match.group(1),
                line=int(match.group(2))
            ))

        if not frames:
            return

        if not draft["stack_frames"]:
            innermost = frames[-1]
            self._seed_from_frame(draft, innermost, Language.PYTHON)
            if innermost.function != "<module>":
                self._set_if_unset(draft, "method_name", innermost.function)
        draft["stack_frames"].extend(frames)

        if draft["error_type"] == "Unknown":
            error_lines = self.PYTHON_ERROR_LINE_PATTERN.findall(text)
            if error_lines:
                error_type, message = error_lines[-1]
                draft["error_type"] = self._strip_namespace(error_type)
                draft["message"] = message.strip() or draft["message"]

    def _apply_file_reference(self, text: str, draft: FaultDraft) -> None:
        """Detect `in|at <file>.<ext>[:line[:col]]`; only the first match counts."""
        match = self.FILE_REFERENCE_PATTERN.search(text)
        if not match or draft["file_name"]:
            return

        file_name = match.group(1)
        draft["file_name"] = file_name
        if match.group(2):
            self._set_location(draft, int(match.group(2)), self._to_int(match.group(3)))

        extension = file_name.rsplit(".", 1)[-1].lower()
        language = self.EXTENSION_LANGUAGES.get(extension)
        if language:
            self._set_language(draft, language)

    def _apply_type_keywords(self, text: str, draft: FaultDraft) -> None:
        """Fall back to keyword matching when no type pattern matched."""
        if draft["error_type"] != "Unknown":
            return

        for keywords, error_type in self.TYPE_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                draft["error_type"] = error_type
                return

    def _seed_from_frame(self, draft: FaultDraft, frame: StackFrame, language: Language) -> None:
        self._set_if_unset(draft, "file_name", frame.file)
        self._set_location(draft, frame.line, frame.column)
        self._set_language(draft, language)

    def _set_location(self, draft: FaultDraft, line: int, column: Optional[int]) -> None:
        if draft["line_number"] is not None or line <= 0:
            return
        draft["line_number"] = line
        draft["column_number"] = column if column and column > 0 else None

    def _set_language(self, draft: FaultDraft, language: Language) -> None:
        if draft["language"] == Language.UNKNOWN:
            draft["language"] = language

    def _set_if_unset(self, draft: FaultDraft, field: str, value: Optional[str]) -> None:
        if draft[field] is None and value:
            draft[field] = value

    def _strip_namespace(self, error_type: str) -> str:
        return error_type.rsplit(".", 1)[-1]

    def _to_int(self, value: Optional[str]) -> Optional[int]:
        return int(value) if value else None


def parse_fault(raw_message: str) -> FaultRecord:
    """Convenience function to parse an error message.

    Args:
        raw_message: Raw error message text

    Returns:
        Parsed FaultRecord
    """
    parser = FaultParser()
    return parser.parse(raw_message)
