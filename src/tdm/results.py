# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Typed accessors over the per-file results bag."""

import logging
from dataclasses import replace
from typing import Any

from tdm.model import (
    AnalysisReport,
    FileAnalysisEntry,
    FileAnalysisHistory,
    TechDebtAnalysisResult,
    TechnicalDebtItem,
    tech_debt_result_from_dict,
    tech_debt_result_to_dict,
)

logger = logging.getLogger(__name__)

TECH_DEBT_KEY = "techdebt"
PREVIEW_KEY = "preview"


def get_tech_debt_result(entry: FileAnalysisEntry) -> TechDebtAnalysisResult | None:
    """Decode the technical debt payload of an entry.

    Returns:
        The decoded result, or ``None`` when the key is absent, holds the
        explicit "no result" marker, or cannot be decoded.
    """
    payload = entry.results.get(TECH_DEBT_KEY)
    if not isinstance(payload, dict):
        return None
    try:
        return tech_debt_result_from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(f"Undecodable technical debt payload (error={exc})")
        return None


def replace_result(entry: FileAnalysisEntry, key: str, payload: Any) -> FileAnalysisEntry:
    """Return a copy of ``entry`` with one result key replaced."""
    results = dict(entry.results)
    results[key] = payload
    return replace(entry, results=results)


def drop_result(entry: FileAnalysisEntry, key: str) -> FileAnalysisEntry:
    """Return a copy of ``entry`` without ``key``."""
    results = {name: value for name, value in entry.results.items() if name != key}
    return replace(entry, results=results)


def with_tech_debt_items(
    history: FileAnalysisHistory, items: list[TechnicalDebtItem]
) -> FileAnalysisHistory:
    """Replace the current debt items of a history.

    An empty ``items`` list drops the result entirely rather than storing
    an empty list. The previous generation is left untouched.
    """
    if items:
        current = replace_result(
            history.current,
            TECH_DEBT_KEY,
            tech_debt_result_to_dict(TechDebtAnalysisResult(items=list(items))),
        )
    else:
        current = drop_result(history.current, TECH_DEBT_KEY)
    return replace(history, current=current)


def extract_debt_items(report: AnalysisReport) -> dict[str, list[TechnicalDebtItem]]:
    """Map file path to current debt items, skipping files without any."""
    debt_map: dict[str, list[TechnicalDebtItem]] = {}
    for path, history in report.file_histories.items():
        result = get_tech_debt_result(history.current)
        if result is not None and result.items:
            debt_map[path] = list(result.items)
    return debt_map


def referenced_artifact_names(report: AnalysisReport) -> set[str]:
    """Collect artifact file names referenced by current or previous entries."""
    names: set[str] = set()
    for history in report.file_histories.values():
        for entry in (history.current, history.previous):
            if entry is None:
                continue
            result = get_tech_debt_result(entry)
            if result is not None:
                names.update(item.reference.file_name for item in result.items)
    return names
