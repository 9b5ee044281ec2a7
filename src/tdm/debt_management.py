# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Removal of individual debt items from the live report."""

import logging
from dataclasses import dataclass, replace

from tdm.artifact_store import ArtifactStore
from tdm.model import AnalysisReport, TechnicalDebtItem
from tdm.results import get_tech_debt_result, referenced_artifact_names, with_tech_debt_items

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebtRemoval:
    """Represent the outcome of removing one item."""

    report: AnalysisReport
    removed_item: TechnicalDebtItem | None
    artifact_deleted: bool = False

    @property
    def found(self) -> bool:
        return self.removed_item is not None


def parse_debt_id(debt_id: str) -> tuple[str, str]:
    """Split a ``filePath:id`` identifier on its last colon.

    Raises:
        ValueError: If either part is empty.
    """
    file_path, separator, item_id = debt_id.rpartition(":")
    if not separator or not file_path.strip() or not item_id.strip():
        raise ValueError(
            f"Invalid debt ID format '{debt_id}'. Expected 'filePath:id' (e.g. 'src/app.py:TD001')."
        )
    return file_path.strip(), item_id.strip()


def remove_debt_item(
    report: AnalysisReport, store: ArtifactStore, file_path: str, item_id: str
) -> DebtRemoval:
    """Remove one item, matching its id case-insensitively, and its artifact.

    The artifact is kept while any other current or previous entry still
    references the same content. Artifact loss is tolerated. The input
    report is not modified.

    Returns:
        The updated report and the removed item, or the unchanged report
        with ``removed_item=None`` when nothing matched.
    """
    history = report.file_histories.get(file_path)
    result = get_tech_debt_result(history.current) if history is not None else None
    if history is None or result is None:
        return DebtRemoval(report=report, removed_item=None)

    target = next(
        (item for item in result.items if item.id.lower() == item_id.lower()), None
    )
    if target is None:
        return DebtRemoval(report=report, removed_item=None)

    remaining = [item for item in result.items if item is not target]
    histories = dict(report.file_histories)
    histories[file_path] = with_tech_debt_items(history, remaining)
    updated = replace(report, file_histories=histories)
    artifact_deleted = False
    if target.reference.file_name not in referenced_artifact_names(updated):
        artifact_deleted = store.delete(target.reference)
    logger.info(
        f"Debt item removed (file_path={file_path} id={target.id} "
        f"artifact_deleted={artifact_deleted})"
    )
    return DebtRemoval(
        report=updated,
        removed_item=target,
        artifact_deleted=artifact_deleted,
    )
