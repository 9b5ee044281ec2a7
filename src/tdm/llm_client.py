# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analyzer client abstractions."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

ANALYSIS_INSTRUCTIONS = (
    "You review one source file for technical debt. Report every finding inside a "
    "single <debts>...</debts> section. Write each finding as "
    '<debt id="TD001" severity="Low|Medium|High|Critical" tags="comma separated tags">'
    "<summary>one line summary</summary> markdown explanation with a suggested fix </debt>. "
    "Allowed tags: CodeSmell, Naming, MagicNumber, Complexity, ErrorHandling, "
    "OutdatedPattern, Todo, Performance, Security, General. "
    "Return an empty <debts></debts> section when the file has no technical debt."
)


class AnalysisGenerationError(RuntimeError):
    """Represent a failed or timed out analyzer call."""


class DebtAnalyzer(Protocol):
    """Define the analyzer collaborator contract."""

    def analyze(self, file_path: str, content: str, file_extension: str) -> str:
        """Produce raw analysis text for one file.

        Args:
            file_path: Repository-relative path of the file.
            content: File content.
            file_extension: Extension without the leading dot.

        Returns:
            Raw analyzer output, which may or may not contain a debts section.

        Raises:
            AnalysisGenerationError: If the call fails or times out.
        """


def build_prompt(file_path: str, content: str, file_extension: str) -> str:
    """Build the user prompt sent along with ``ANALYSIS_INSTRUCTIONS``."""
    language = file_extension or "text"
    return f"File: {file_path}\n\n```{language}\n{content}\n```"


def extract_response_text(response: object, field_name: str) -> str:
    """Read a text field from an SDK response, mapping or attribute style.

    Args:
        response: SDK response object or plain mapping.
        field_name: Name of the text field (``response`` for Ollama,
            ``output_text`` for OpenAI Responses).

    Returns:
        Stripped text, or an empty string when the field is missing or not text.
    """
    if isinstance(response, dict):
        value = response.get(field_name)
    else:
        value = getattr(response, field_name, None)
    return value.strip() if isinstance(value, str) else ""
