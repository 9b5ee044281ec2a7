from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tdm.artifact_store import ArtifactStore
from tdm.debt_management import parse_debt_id, remove_debt_item
from tdm.model import (
    AnalysisReport,
    DebtSeverity,
    FileAnalysisEntry,
    FileAnalysisHistory,
    TechDebtAnalysisResult,
    TechnicalDebtItem,
    tech_debt_result_to_dict,
)
from tdm.results import TECH_DEBT_KEY, get_tech_debt_result

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _report(store: ArtifactStore, ids: list[str]) -> AnalysisReport:
    items = [
        TechnicalDebtItem(
            id=item_id,
            summary=item_id,
            severity=DebtSeverity.LOW,
            tags=(),
            reference=store.save(f"body {item_id}", "src/app.py"),
        )
        for item_id in ids
    ]
    entry = FileAnalysisEntry(
        timestamp=T0,
        file_hash="h",
        results={TECH_DEBT_KEY: tech_debt_result_to_dict(TechDebtAnalysisResult(items=items))},
    )
    return AnalysisReport(
        timestamp=T0,
        file_histories={"src/app.py": FileAnalysisHistory(file_path="src/app.py", current=entry)},
    )


def test_dmg_001_parse_debt_id_splits_on_last_colon() -> None:
    assert parse_debt_id("src/app.py:TD001") == ("src/app.py", "TD001")
    assert parse_debt_id("C:/repo/app.py:TD002") == ("C:/repo/app.py", "TD002")


@pytest.mark.parametrize("raw", ["no-colon", ":TD001", "src/app.py:", "  :  "])
def test_dmg_002_parse_debt_id_rejects_malformed_ids(raw: str) -> None:
    with pytest.raises(ValueError, match="Invalid debt ID format"):
        parse_debt_id(raw)


def test_dmg_003_remove_matches_id_case_insensitively(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(store, ["TD001", "TD002"])
    target = get_tech_debt_result(report.file_histories["src/app.py"].current).items[0]

    removal = remove_debt_item(report, store, "src/app.py", "td001")

    assert removal.found
    assert removal.removed_item == target
    assert removal.artifact_deleted is True
    assert not store.exists(target.reference)
    remaining = get_tech_debt_result(removal.report.file_histories["src/app.py"].current)
    assert [item.id for item in remaining.items] == ["TD002"]


def test_dmg_004_removing_last_item_drops_result(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(store, ["TD001"])

    removal = remove_debt_item(report, store, "src/app.py", "TD001")

    assert TECH_DEBT_KEY not in removal.report.file_histories["src/app.py"].current.results


def test_dmg_005_unknown_item_leaves_report_untouched(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(store, ["TD001"])

    assert remove_debt_item(report, store, "src/app.py", "TD999").report is report
    assert not remove_debt_item(report, store, "other.py", "TD001").found


def test_dmg_006_missing_artifact_is_tolerated(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(store, ["TD001"])
    target = get_tech_debt_result(report.file_histories["src/app.py"].current).items[0]
    store.delete(target.reference)

    removal = remove_debt_item(report, store, "src/app.py", "TD001")

    assert removal.found
    assert removal.artifact_deleted is False


def test_dmg_007_artifact_shared_with_previous_generation_is_kept(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(store, ["TD001"])
    history = report.file_histories["src/app.py"]
    report = replace(
        report,
        file_histories={"src/app.py": replace(history, previous=history.current)},
    )
    target = get_tech_debt_result(history.current).items[0]

    removal = remove_debt_item(report, store, "src/app.py", "TD001")

    assert removal.found
    assert removal.artifact_deleted is False
    assert store.exists(target.reference)
    assert removal.report.file_histories["src/app.py"].previous == history.current
