# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Reconcile a human-edited HTML report with the live analysis report."""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tdm.artifact_store import ArtifactStore
from tdm.model import AnalysisReport, FileAnalysisHistory, TechnicalDebtItem, item_from_dict
from tdm.results import get_tech_debt_result, referenced_artifact_names, with_tech_debt_items

logger = logging.getLogger(__name__)

DATA_BLOCK_ID = "debt-data"
STATE_BLOCK_ID = "debt-state"


def _json_block_pattern(block_id: str) -> re.Pattern[str]:
    return re.compile(
        rf"<script type=\"application/json\" id=\"{re.escape(block_id)}\">\s*(.*?)\s*</script>",
        re.IGNORECASE | re.DOTALL,
    )


_DATA_PATTERN = _json_block_pattern(DATA_BLOCK_ID)
_STATE_PATTERN = _json_block_pattern(STATE_BLOCK_ID)


class ReportStateError(RuntimeError):
    """Represent a report document that cannot be reconciled."""


def item_key(file_path: str, item_id: str) -> str:
    """Build the ``path-id`` key used by the report's state block."""
    return f"{file_path}-{item_id}"


@dataclass(frozen=True)
class ReportState:
    """State recovered from a previously exported report.

    Attributes:
        debt_data: Items shown in the report, by file path, without bodies.
        hidden_items: ``path-id`` keys the reader hid.
        done_items: ``path-id`` keys the reader marked done.
    """

    debt_data: dict[str, list[TechnicalDebtItem]] = field(default_factory=dict)
    hidden_items: dict[str, bool] = field(default_factory=dict)
    done_items: dict[str, bool] = field(default_factory=dict)

    def is_item_active(self, file_path: str, item_id: str) -> bool:
        key = item_key(file_path, item_id)
        return not self.hidden_items.get(key) and not self.done_items.get(key)


@dataclass(frozen=True)
class FileImportChange:
    """Represent the items removed from one file."""

    file_path: str
    original_count: int
    remaining_count: int
    removed_items: list[TechnicalDebtItem] = field(default_factory=list)


@dataclass(frozen=True)
class ImportAnalysis:
    """Represent the candidate report produced by reconciliation."""

    updated_report: AnalysisReport
    changes: list[FileImportChange] = field(default_factory=list)

    @property
    def total_items_to_remove(self) -> int:
        return sum(len(change.removed_items) for change in self.changes)

    @property
    def total_remaining_items(self) -> int:
        total = 0
        for history in self.updated_report.file_histories.values():
            result = get_tech_debt_result(history.current)
            if result is not None:
                total += len(result.items)
        return total

    @property
    def files_cleared(self) -> int:
        return sum(1 for change in self.changes if change.remaining_count == 0)


def extract_state(document: str) -> ReportState:
    """Parse the data snapshot and the mutable state block of a report.

    Args:
        document: Full HTML report text.

    Returns:
        Recovered state. A missing or unreadable state block yields empty
        hidden/done maps.

    Raises:
        ReportStateError: If the data snapshot is missing or corrupt.
    """
    debt_data = _extract_debt_data(document)
    hidden_items, done_items = _extract_flags(document)
    return ReportState(debt_data=debt_data, hidden_items=hidden_items, done_items=done_items)


def extract_state_from_file(report_path: Path) -> ReportState:
    """Read a report file and parse its state.

    Raises:
        ReportStateError: If the file cannot be read or has no data snapshot.
    """
    try:
        document = report_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Report file unreadable (path={report_path} error={exc})")
        raise ReportStateError(f"Could not read report file: {exc}") from exc
    return extract_state(document)


def _extract_debt_data(document: str) -> dict[str, list[TechnicalDebtItem]]:
    match = _DATA_PATTERN.search(document)
    if match is None:
        raise ReportStateError(
            "Could not find debtData in HTML report. The report may be invalid or corrupted."
        )
    try:
        raw: Any = json.loads(match.group(1))
    except json.JSONDecodeError as exc:
        raise ReportStateError(f"Failed to parse debt data from HTML report: {exc}") from exc
    if not isinstance(raw, dict):
        raise ReportStateError("Debt data in HTML report is not an object.")
    try:
        return {
            str(path): [item_from_dict(item) for item in items]
            for path, items in raw.items()
        }
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ReportStateError(f"Failed to parse debt data from HTML report: {exc}") from exc


def _extract_flags(document: str) -> tuple[dict[str, bool], dict[str, bool]]:
    match = _STATE_PATTERN.search(document)
    if match is None:
        return {}, {}
    try:
        data: Any = json.loads(match.group(1).strip() or "{}")
    except json.JSONDecodeError as exc:
        logger.warning(f"Ignoring unreadable report state block (error={exc})")
        return {}, {}
    if not isinstance(data, dict):
        return {}, {}
    return _flag_map(data.get("hiddenItems")), _flag_map(data.get("doneItems"))


def _flag_map(value: object) -> dict[str, bool]:
    if not isinstance(value, dict):
        return {}
    return {str(key): bool(flag) for key, flag in value.items()}


def reconcile(live_report: AnalysisReport, state: ReportState) -> ImportAnalysis:
    """Drop hidden and done items from the live report.

    Only files shown in the report's data snapshot are considered. Files
    whose items are all removed lose their debt result entirely; every other
    field of their history is kept. The live report is not modified.

    Args:
        live_report: Current persisted analysis report.
        state: State recovered from the edited report.

    Returns:
        Candidate report and per-file changes.
    """
    histories: dict[str, FileAnalysisHistory] = {}
    changes: list[FileImportChange] = []
    for file_path, history in live_report.file_histories.items():
        result = get_tech_debt_result(history.current)
        if result is None or not result.items or file_path not in state.debt_data:
            histories[file_path] = history
            continue

        remaining = [item for item in result.items if state.is_item_active(file_path, item.id)]
        removed = [item for item in result.items if not state.is_item_active(file_path, item.id)]
        if not removed:
            histories[file_path] = history
            continue

        histories[file_path] = with_tech_debt_items(history, remaining)
        changes.append(
            FileImportChange(
                file_path=file_path,
                original_count=len(result.items),
                remaining_count=len(remaining),
                removed_items=removed,
            )
        )

    return ImportAnalysis(
        updated_report=AnalysisReport(
            timestamp=live_report.timestamp, file_histories=histories
        ),
        changes=changes,
    )


def delete_removed_artifacts(analysis: ImportAnalysis, store: ArtifactStore) -> int:
    """Delete artifacts of removed items no longer referenced anywhere.

    Artifacts still referenced by a remaining item, or by a previous
    generation entry, are kept.

    Returns:
        Number of artifact files deleted.
    """
    referenced = referenced_artifact_names(analysis.updated_report)
    deleted = 0
    for change in analysis.changes:
        for item in change.removed_items:
            if item.reference.file_name in referenced:
                continue
            referenced.add(item.reference.file_name)
            if store.delete(item.reference):
                deleted += 1
    logger.info(f"Removed artifacts deleted (count={deleted})")
    return deleted
