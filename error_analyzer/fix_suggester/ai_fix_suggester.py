"""Optional LLM analysis of a fault using Anthropic."""

import json
import logging
from typing import Dict, Optional

from anthropic import Anthropic

from error_analyzer import config
from error_analyzer.models import AIAnalysis, CodeContext, FaultRecord, RepositoryInfo

logger = logging.getLogger(__name__)


FOCUS_AREAS: Dict[str, str] = {
    "NullPointerException": """
**FOCUS AREAS FOR NULL POINTER ANALYSIS:**
- Identify which object/variable is null
- Check if proper null checks exist
- Analyze data flow to determine where null originates
- Consider safe navigation patterns
- Look for query results that might return empty/null""",

    "LimitException": """
**FOCUS AREAS FOR GOVERNOR LIMIT ANALYSIS:**
- Identify SOQL queries in loops
- Check for non-bulkified operations
- Analyze collection sizes and processing patterns
- Look for opportunities to use aggregate queries
- Consider asynchronous processing options""",

    "DmlException": """
**FOCUS AREAS FOR DML EXCEPTION ANALYSIS:**
- Check required field validations
- Analyze field-level security settings
- Look for validation rules that might fail
- Consider record locking issues
- Check for trigger recursion""",

    "StringException": """
**FOCUS AREAS FOR STRING/ID ANALYSIS:**
- Identify where the invalid value comes from
- Check length and format of record Ids before conversion
- Look for user input or external data used as Ids
- Consider validating with Id.valueOf inside try-catch""",

    "TypeError": """
**FOCUS AREAS FOR TYPE ERROR ANALYSIS:**
- Identify type mismatch in the code
- Check variable declarations and assignments
- Analyze function return types
- Look for undefined variables or properties""",

    "SyntaxError": """
**FOCUS AREAS FOR SYNTAX ERROR ANALYSIS:**
- Identify the specific syntax violation
- Check bracket/parenthesis matching
- Look for missing semicolons or commas
- Analyze quote usage and escaping""",
}

GENERAL_FOCUS = """
**GENERAL ANALYSIS FOCUS:**
- Examine the code structure and patterns
- Identify anti-patterns or code smells
- Consider error handling and edge cases
- Look for potential performance issues"""


class AIFixSuggester:
    """Asks Claude for a context-aware analysis of one fault."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = config.CLAUDE_MAX_TOKENS,
        enabled: bool = config.USE_AI
    ):
        """Initialize the suggester; without an API key it stays disabled."""
        self.api_key = api_key or config.ANTHROPIC_API_KEY
        self.model = model or config.CLAUDE_MODEL
        self.max_tokens = max_tokens
        self.client = Anthropic(api_key=self.api_key) if self.api_key and enabled else None

        if self.client is None:
            logger.info("AI analysis disabled; using rule-based recommendations only")

    def is_enabled(self) -> bool:
        return self.client is not None

    def analyze(
        self,
        fault: FaultRecord,
        context: Optional[CodeContext],
        file_path: Optional[str],
        repository: Optional[RepositoryInfo]
    ) -> AIAnalysis:
        """Run the LLM analysis.

        Args:
            fault: Parsed fault record
            context: Code context around the error line
            file_path: Path of the resolved file
            repository: Analysed repository

        Returns:
            AIAnalysis; a fallback analysis when the response is not valid JSON

        Raises:
            RuntimeError: If the suggester is disabled
            anthropic.APIError: If the API call fails
        """
        if not self.is_enabled():
            raise RuntimeError("AI analysis is not enabled. Set ANTHROPIC_API_KEY to enable it.")

        prompt = self._build_analysis_prompt(fault, context, file_path, repository)
        response = self._call_anthropic(prompt)
        return self._parse_analysis_response(response)

    def _build_analysis_prompt(
        self,
        fault: FaultRecord,
        context: Optional[CodeContext],
        file_path: Optional[str],
        repository: Optional[RepositoryInfo]
    ) -> str:
        """Build the analysis prompt."""
        language = fault.language.value
        details = [
            f"- Type: {fault.error_type}",
            f"- Language: {language}",
            f"- File: {file_path or 'Unknown'}",
            f"- Line: {fault.line_number or 'Unknown'}",
        ]
        if fault.class_name:
            details.append(f"- Class: {fault.class_name}")
        if fault.method_name:
            details.append(f"- Method: {fault.method_name}")

        prompt = f"""You are an expert software engineer analyzing a code error. Provide a comprehensive, actionable analysis.

**ERROR DETAILS:**
{chr(10).join(details)}

**ERROR MESSAGE:**
{fault.message or fault.raw_message}
"""

        if repository:
            prompt += f"""
**REPOSITORY CONTEXT:**
- Repository: {repository.owner}/{repository.name}
- Branch: {repository.branch}
- URL: {repository.url}
"""

        if context and context.snippet:
            snippet = "\n".join(
                f"{'>>> ' if line.is_error_line else '    '}{line.line_number}: {line.content}"
                for line in context.snippet
            )
            prompt += f"""
**CODE SNIPPET (Lines {context.start_line}-{context.end_line}):**
```{language}
{snippet}
```

**Error occurs on line {context.error_line}**
"""

        prompt += FOCUS_AREAS.get(fault.error_type, GENERAL_FOCUS)

        prompt += """

**REQUIRED OUTPUT FORMAT:**

Respond ONLY with a JSON object in this exact format:
{
  "root_cause_analysis": "Detailed explanation of why this error occurred",
  "code_context_insights": ["Specific insight about the code at the error line"],
  "possible_causes": ["Primary cause based on code analysis", "Secondary cause"],
  "suggested_fixes": ["Specific fix with code example", "Alternative approach"],
  "best_practices": ["Best practice relevant to this error"],
  "related_components": ["Other files/classes that might be affected"],
  "prevention_strategy": "How to prevent this error in the future"
}

Be specific to the code shown: reference actual variable names and line numbers."""

        return prompt

    def _call_anthropic(self, prompt: str) -> str:
        """Call Anthropic API."""
        message = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}]
        )
        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""

    def _parse_analysis_response(self, response: str) -> AIAnalysis:
        """Parse LLM response into an AIAnalysis."""
        text = response
        try:
            # Extract JSON from response (handle markdown code blocks)
            if "```json" in text:
                json_start = text.find("```json") + 7
                json_end = text.find("```", json_start)
                text = text[json_start:json_end].strip()
            elif "```" in text:
                json_start = text.find("```") + 3
                json_end = text.find("```", json_start)
                text = text[json_start:json_end].strip()

            data = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("Expected a JSON object")

            return AIAnalysis(
                root_cause_analysis=data.get("root_cause_analysis") or "Analysis not available",
                code_context_insights=list(data.get("code_context_insights") or []),
                possible_causes=list(data.get("possible_causes") or []),
                suggested_fixes=list(data.get("suggested_fixes") or []),
                best_practices=list(data.get("best_practices") or []),
                related_components=list(data.get("related_components") or []),
                prevention_strategy=data.get("prevention_strategy") or "",
                model=self.model
            )

        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Could not parse AI response: %s", e)
            return self._fallback_analysis(response, str(e))

    def _fallback_analysis(self, raw_response: str, parse_error: str) -> AIAnalysis:
        """Wrap unparsable output so the raw text is still reported."""
        return AIAnalysis(
            root_cause_analysis=raw_response,
            code_context_insights=["AI analysis completed - see root cause analysis for details"],
            possible_causes=["See AI analysis above"],
            suggested_fixes=["See AI analysis above"],
            best_practices=["See AI analysis above"],
            prevention_strategy="Review the AI analysis for prevention strategies",
            model=self.model,
            parse_error=parse_error
        )
