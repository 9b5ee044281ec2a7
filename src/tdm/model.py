# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for analysis reports and technical debt items."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class DebtSeverity(Enum):
    """Severity of one technical debt item, lowest first."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class DebtTag(Enum):
    """Category tags attached to technical debt items."""

    CODE_SMELL = "CodeSmell"
    NAMING = "Naming"
    MAGIC_NUMBER = "MagicNumber"
    COMPLEXITY = "Complexity"
    ERROR_HANDLING = "ErrorHandling"
    OUTDATED_PATTERN = "OutdatedPattern"
    TODO = "Todo"
    PERFORMANCE = "Performance"
    SECURITY = "Security"
    GENERAL = "General"


@dataclass(frozen=True)
class ArtifactReference:
    """Point at one content-addressed artifact body.

    Attributes:
        file_name: ``techdebt_<digest>.md``; a pure function of the content.
        timestamp: Time the artifact was saved.
        content_hash: MD5 hex digest of the normalized content.
    """

    file_name: str
    timestamp: datetime
    content_hash: str


@dataclass(frozen=True)
class TechnicalDebtItem:
    """Represent one technical debt finding for a file.

    ``id`` is assigned by the analyzer per run and is not stable across
    re-analysis of a changed file.
    """

    id: str
    summary: str
    severity: DebtSeverity
    tags: tuple[DebtTag, ...]
    reference: ArtifactReference


@dataclass(frozen=True)
class TechDebtAnalysisResult:
    """Payload stored under the technical debt handler key."""

    items: list[TechnicalDebtItem] = field(default_factory=list)


@dataclass(frozen=True)
class FileAnalysisEntry:
    """One generation of analysis for a file.

    Attributes:
        timestamp: Time the analysis ran.
        file_hash: Content hash recorded when the file was indexed.
        results: JSON-native payloads keyed by handler result key.
    """

    timestamp: datetime
    file_hash: str
    results: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FileAnalysisHistory:
    """Current analysis for a file plus exactly one prior generation."""

    file_path: str
    current: FileAnalysisEntry
    previous: FileAnalysisEntry | None = None


@dataclass(frozen=True)
class AnalysisReport:
    """Latest analysis state for a repository."""

    timestamp: datetime
    file_histories: dict[str, FileAnalysisHistory] = field(default_factory=dict)


def parse_severity(value: object) -> DebtSeverity:
    """Parse a severity permissively.

    Accepts names in any case (``"high"``, ``"High"``) and ordinal integers.
    Anything unrecognized or missing becomes ``LOW``.
    """
    if isinstance(value, DebtSeverity):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        members = list(DebtSeverity)
        if 0 <= value < len(members):
            return members[value]
        return DebtSeverity.LOW
    if isinstance(value, str):
        token = value.strip().lower()
        for severity in DebtSeverity:
            if severity.value.lower() == token:
                return severity
    return DebtSeverity.LOW


def parse_tags(values: object) -> tuple[DebtTag, ...]:
    """Parse tag tokens, silently dropping unrecognized ones.

    Matching ignores case, spaces, hyphens and underscores, so ``"code smell"``
    and ``"code_smell"`` both map to ``DebtTag.CODE_SMELL``.
    """
    if isinstance(values, str):
        tokens: list[object] = list(values.split(","))
    elif isinstance(values, (list, tuple)):
        tokens = list(values)
    else:
        return ()
    lookup = {_tag_token(tag.value): tag for tag in DebtTag}
    parsed: list[DebtTag] = []
    for token in tokens:
        if isinstance(token, DebtTag):
            tag: DebtTag | None = token
        elif isinstance(token, str):
            tag = lookup.get(_tag_token(token))
        else:
            tag = None
        if tag is not None and tag not in parsed:
            parsed.append(tag)
    return tuple(parsed)


def _tag_token(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


def reference_to_dict(reference: ArtifactReference) -> dict[str, Any]:
    return {
        "file_name": reference.file_name,
        "timestamp": reference.timestamp.isoformat(),
        "content_hash": reference.content_hash,
    }


def reference_from_dict(data: dict[str, Any]) -> ArtifactReference:
    return ArtifactReference(
        file_name=str(data["file_name"]),
        timestamp=datetime.fromisoformat(data["timestamp"]),
        content_hash=str(data["content_hash"]),
    )


def item_to_dict(item: TechnicalDebtItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "summary": item.summary,
        "severity": item.severity.value,
        "tags": [tag.value for tag in item.tags],
        "reference": reference_to_dict(item.reference),
    }


def item_from_dict(data: dict[str, Any]) -> TechnicalDebtItem:
    return TechnicalDebtItem(
        id=str(data["id"]),
        summary=str(data.get("summary", "")),
        severity=parse_severity(data.get("severity")),
        tags=parse_tags(data.get("tags", [])),
        reference=reference_from_dict(data["reference"]),
    )


def tech_debt_result_to_dict(result: TechDebtAnalysisResult) -> dict[str, Any]:
    return {"items": [item_to_dict(item) for item in result.items]}


def tech_debt_result_from_dict(data: dict[str, Any]) -> TechDebtAnalysisResult:
    return TechDebtAnalysisResult(
        items=[item_from_dict(item) for item in data.get("items", [])]
    )


def entry_to_dict(entry: FileAnalysisEntry) -> dict[str, Any]:
    return {
        "timestamp": entry.timestamp.isoformat(),
        "file_hash": entry.file_hash,
        "results": dict(entry.results),
    }


def entry_from_dict(data: dict[str, Any]) -> FileAnalysisEntry:
    return FileAnalysisEntry(
        timestamp=datetime.fromisoformat(data["timestamp"]),
        file_hash=str(data["file_hash"]),
        results=dict(data.get("results") or {}),
    )


def report_to_dict(report: AnalysisReport) -> dict[str, Any]:
    return {
        "timestamp": report.timestamp.isoformat(),
        "file_histories": {
            path: {
                "file_path": history.file_path,
                "current": entry_to_dict(history.current),
                "previous": (
                    entry_to_dict(history.previous)
                    if history.previous is not None
                    else None
                ),
            }
            for path, history in report.file_histories.items()
        },
    }


def report_from_dict(data: dict[str, Any]) -> AnalysisReport:
    histories: dict[str, FileAnalysisHistory] = {}
    for path, item in (data.get("file_histories") or {}).items():
        previous = item.get("previous")
        histories[path] = FileAnalysisHistory(
            file_path=str(item.get("file_path", path)),
            current=entry_from_dict(item["current"]),
            previous=entry_from_dict(previous) if previous is not None else None,
        )
    return AnalysisReport(
        timestamp=datetime.fromisoformat(data["timestamp"]), file_histories=histories
    )
