# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Technical debt extraction handler."""

import logging
from typing import Any

from tdm.artifact_store import ArtifactStore
from tdm.debt_parser import ParsedDebt, parse_debt_section
from tdm.handlers.base import FileAnalysisContext
from tdm.llm_client import DebtAnalyzer
from tdm.model import TechDebtAnalysisResult, TechnicalDebtItem, tech_debt_result_to_dict
from tdm.results import TECH_DEBT_KEY

logger = logging.getLogger(__name__)


class TechDebtAnalysisHandler:
    """Ask the analyzer for debt findings and store each body as an artifact."""

    result_key = TECH_DEBT_KEY

    def __init__(self, analyzer: DebtAnalyzer, artifact_store: ArtifactStore) -> None:
        """Initialize the handler.

        Args:
            analyzer: Collaborator producing raw analysis text.
            artifact_store: Store receiving one body per item.
        """
        self._analyzer = analyzer
        self._artifact_store = artifact_store

    def process(self, context: FileAnalysisContext) -> dict[str, Any] | None:
        """Analyze one file.

        Returns:
            Encoded ``TechDebtAnalysisResult``, or ``None`` when the file is
            empty or the analyzer reported no debts section or no items.

        Raises:
            AnalysisGenerationError: If the analyzer call fails.
            DebtParseError: If the analyzer output is malformed.
            ArtifactStoreError: If an artifact cannot be written.
        """
        if not context.content:
            return None

        raw_text = self._analyzer.analyze(
            context.file_path, context.content, context.file_extension
        )
        parsed = parse_debt_section(raw_text)
        if not parsed:
            logger.debug(f"No technical debt reported (file_path={context.file_path})")
            return None

        items: list[TechnicalDebtItem] = []
        for debt in parsed:
            reference = self._artifact_store.save(
                render_artifact(debt, context.file_path), context.file_path
            )
            items.append(
                TechnicalDebtItem(
                    id=debt.id,
                    summary=debt.summary,
                    severity=debt.severity,
                    tags=debt.tags,
                    reference=reference,
                )
            )
        logger.debug(
            f"Technical debt extracted (file_path={context.file_path} items={len(items)})"
        )
        return tech_debt_result_to_dict(TechDebtAnalysisResult(items=items))


def render_artifact(debt: ParsedDebt, file_path: str) -> str:
    """Prefix a debt body with a front matter header for standalone reading."""
    tags = ", ".join(tag.value for tag in debt.tags)
    header = [
        "---",
        f"id: {debt.id}",
        f"summary: {_quote(debt.summary)}",
        f"file: {_quote(file_path)}",
        f"severity: {debt.severity.value}",
        f"tags: [{tags}]",
        "---",
        "",
    ]
    return "\n".join(header) + debt.body.rstrip() + "\n"


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
