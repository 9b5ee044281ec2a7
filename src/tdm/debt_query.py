# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Filtering and statistics over the debt items of a stored report."""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field

from tdm.model import AnalysisReport, DebtSeverity, DebtTag, TechnicalDebtItem, parse_tags
from tdm.results import extract_debt_items, get_tech_debt_result

logger = logging.getLogger(__name__)

STATISTICS_TOP_LIMIT = 10


@dataclass(frozen=True)
class DebtFilter:
    """Select debt items by file path pattern, severity and tag.

    Attributes:
        severity: Exact severity to keep, or ``None`` for all.
        tag: Tag an item must carry, or ``None`` for all.
        include: Path pattern a file must match.
        exclude: Path pattern that drops a file.
    """

    severity: DebtSeverity | None = None
    tag: DebtTag | None = None
    include: re.Pattern[str] | None = None
    exclude: re.Pattern[str] | None = None

    def accepts_file(self, file_path: str) -> bool:
        if self.include is not None and not self.include.search(file_path):
            return False
        return self.exclude is None or not self.exclude.search(file_path)

    def accepts_item(self, item: TechnicalDebtItem) -> bool:
        if self.severity is not None and item.severity is not self.severity:
            return False
        return self.tag is None or self.tag in item.tags


@dataclass(frozen=True)
class DebtQueryResult:
    """Represent the items selected from one report.

    Attributes:
        files_analyzed: Files present in the report.
        files_with_debt: Files holding at least one item before filtering.
        total_items: Items in the report before filtering.
        matches: Selected items by file path; files without a match are left out.
    """

    files_analyzed: int
    files_with_debt: int
    total_items: int
    matches: dict[str, list[TechnicalDebtItem]] = field(default_factory=dict)

    @property
    def filtered_items(self) -> int:
        return sum(len(items) for items in self.matches.values())


@dataclass(frozen=True)
class DebtStatistics:
    """Counts over a set of selected items."""

    total_items: int
    files_with_debt: int
    by_severity: dict[str, int] = field(default_factory=dict)
    by_tag: dict[str, int] = field(default_factory=dict)
    top_files: dict[str, int] = field(default_factory=dict)


def compile_pattern(pattern: str | None) -> re.Pattern[str] | None:
    """Compile a case-insensitive path pattern.

    Raises:
        ValueError: If the pattern is not a valid regular expression.
    """
    if pattern is None or not pattern.strip():
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"Invalid regex pattern '{pattern}': {exc}") from exc


def parse_severity_filter(value: str | None) -> DebtSeverity | None:
    """Match a severity name in any case.

    Unlike stored payloads, an unknown name is rejected.

    Raises:
        ValueError: If ``value`` names no severity.
    """
    if value is None:
        return None
    token = value.strip().lower()
    for severity in DebtSeverity:
        if severity.value.lower() == token:
            return severity
    choices = ", ".join(severity.value for severity in DebtSeverity)
    raise ValueError(f"Unknown severity '{value}'. Expected one of: {choices}.")


def parse_tag_filter(value: str | None) -> DebtTag | None:
    """Match a single tag name the same way stored tags are matched.

    Raises:
        ValueError: If ``value`` names no tag.
    """
    if value is None:
        return None
    tags = parse_tags([value])
    if not tags:
        choices = ", ".join(tag.value for tag in DebtTag)
        raise ValueError(f"Unknown tag '{value}'. Expected one of: {choices}.")
    return tags[0]


def query_debt(report: AnalysisReport, debt_filter: DebtFilter) -> DebtQueryResult:
    """Select the current debt items that pass ``debt_filter``."""
    debt_map = extract_debt_items(report)
    matches: dict[str, list[TechnicalDebtItem]] = {}
    for file_path in sorted(debt_map):
        if not debt_filter.accepts_file(file_path):
            continue
        selected = [item for item in debt_map[file_path] if debt_filter.accepts_item(item)]
        if selected:
            matches[file_path] = selected
    result = DebtQueryResult(
        files_analyzed=len(report.file_histories),
        files_with_debt=len(debt_map),
        total_items=sum(len(items) for items in debt_map.values()),
        matches=matches,
    )
    logger.debug(
        f"Debt query evaluated (files={len(matches)} items={result.filtered_items} "
        f"total_items={result.total_items})"
    )
    return result


def debt_statistics(matches: dict[str, list[TechnicalDebtItem]]) -> DebtStatistics:
    """Count selected items by severity, tag and file.

    Severities are listed from most to least severe, all of them present
    even at zero. Tags and files keep the most frequent ones only.
    """
    items = [item for file_items in matches.values() for item in file_items]
    severity_counts = Counter(item.severity for item in items)
    tag_counts = Counter(tag.value for item in items for tag in item.tags)
    file_counts = Counter({path: len(file_items) for path, file_items in matches.items()})
    return DebtStatistics(
        total_items=len(items),
        files_with_debt=len(matches),
        by_severity={
            severity.value: severity_counts.get(severity, 0)
            for severity in reversed(DebtSeverity)
        },
        by_tag=dict(tag_counts.most_common(STATISTICS_TOP_LIMIT)),
        top_files=dict(file_counts.most_common(STATISTICS_TOP_LIMIT)),
    )


def find_debt_item(
    report: AnalysisReport, file_path: str, item_id: str
) -> TechnicalDebtItem | None:
    """Look up one current item, matching its id case-insensitively."""
    history = report.file_histories.get(file_path)
    if history is None:
        return None
    result = get_tech_debt_result(history.current)
    if result is None:
        return None
    return next((item for item in result.items if item.id.lower() == item_id.lower()), None)
