import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tdm.artifact_store import ArtifactStore
from tdm.model import (
    AnalysisReport,
    DebtSeverity,
    DebtTag,
    FileAnalysisEntry,
    FileAnalysisHistory,
    TechDebtAnalysisResult,
    TechnicalDebtItem,
    tech_debt_result_to_dict,
)
from tdm.reconciler import (
    ReportState,
    ReportStateError,
    delete_removed_artifacts,
    extract_state,
    extract_state_from_file,
    reconcile,
)
from tdm.report_renderer import collect_debt_items, render_html_report
from tdm.results import PREVIEW_KEY, TECH_DEBT_KEY, get_tech_debt_result

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2026, 1, 2, tzinfo=timezone.utc)


def _item(
    store: ArtifactStore, item_id: str, body: str | None = None, summary: str | None = None
) -> TechnicalDebtItem:
    return TechnicalDebtItem(
        id=item_id,
        summary=summary or f"Summary {item_id}",
        severity=DebtSeverity.HIGH,
        tags=(DebtTag.COMPLEXITY,),
        reference=store.save(body or f"Body of {item_id}", "src/a.py"),
    )


def _history(path: str, items: list[TechnicalDebtItem]) -> FileAnalysisHistory:
    return FileAnalysisHistory(
        file_path=path,
        current=FileAnalysisEntry(
            timestamp=T0,
            file_hash=f"hash-{path}",
            results={
                PREVIEW_KEY: "preview",
                TECH_DEBT_KEY: tech_debt_result_to_dict(TechDebtAnalysisResult(items=items)),
            },
        ),
    )


def _report(histories: dict[str, list[TechnicalDebtItem]]) -> AnalysisReport:
    return AnalysisReport(
        timestamp=T1,
        file_histories={path: _history(path, items) for path, items in histories.items()},
    )


def _with_state(document: str, hidden: dict[str, bool], done: dict[str, bool]) -> str:
    return document.replace(
        '{"hiddenItems": {}, "doneItems": {}}',
        json.dumps({"hiddenItems": hidden, "doneItems": done}),
    )


def _rendered(report: AnalysisReport, store: ArtifactStore) -> str:
    return render_html_report(collect_debt_items(report, store), "repo", report.timestamp)


def test_rec_001_rendered_report_round_trips_through_state_extraction(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(
        {"src/a.py": [_item(store, "A"), _item(store, "B", summary="</script><script>alert(1)")]}
    )

    state = extract_state(_rendered(report, store))

    assert list(state.debt_data) == ["src/a.py"]
    assert [item.id for item in state.debt_data["src/a.py"]] == ["A", "B"]
    assert state.debt_data["src/a.py"][1].summary == "</script><script>alert(1)"
    assert state.hidden_items == {}
    assert state.done_items == {}


def test_rec_002_hidden_and_done_items_are_removed(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    items = [_item(store, "A"), _item(store, "B"), _item(store, "C")]
    report = _report({"src/a.py": items})
    document = _with_state(
        _rendered(report, store), {"src/a.py-B": True}, {"src/a.py-C": True}
    )
    state = extract_state(document)

    analysis = reconcile(report, state)

    result = get_tech_debt_result(analysis.updated_report.file_histories["src/a.py"].current)
    assert result is not None
    assert [item.id for item in result.items] == ["A"]
    assert analysis.total_items_to_remove == 2
    assert analysis.total_remaining_items == 1
    assert analysis.files_cleared == 0
    assert [item.id for item in analysis.changes[0].removed_items] == ["B", "C"]


def test_rec_003_removing_every_item_drops_the_result_but_keeps_history(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report({"src/a.py": [_item(store, "A")]})
    state = ReportState(
        debt_data={"src/a.py": []}, done_items={"src/a.py-A": True}
    )

    analysis = reconcile(report, state)

    history = analysis.updated_report.file_histories["src/a.py"]
    assert TECH_DEBT_KEY not in history.current.results
    assert history.current.results[PREVIEW_KEY] == "preview"
    assert history.current.file_hash == "hash-src/a.py"
    assert analysis.files_cleared == 1


def test_rec_004_false_flags_and_unknown_files_are_ignored(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report({"a.py": [_item(store, "A")], "b.py": [_item(store, "B")]})
    state = ReportState(
        debt_data={"a.py": []},
        hidden_items={"a.py-A": False, "b.py-B": True},
    )

    analysis = reconcile(report, state)

    assert analysis.changes == []
    assert analysis.updated_report.file_histories == report.file_histories
    assert analysis.updated_report.timestamp == report.timestamp


def test_rec_005_live_report_is_not_mutated(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report({"a.py": [_item(store, "A")]})
    before = dict(report.file_histories["a.py"].current.results)

    reconcile(report, ReportState(debt_data={"a.py": []}, done_items={"a.py-A": True}))

    assert report.file_histories["a.py"].current.results == before


def test_rec_006_missing_debt_data_is_an_error() -> None:
    with pytest.raises(ReportStateError, match="debtData"):
        extract_state("<html><body>No data</body></html>")


def test_rec_007_corrupt_debt_data_is_an_error() -> None:
    with pytest.raises(ReportStateError):
        extract_state('<script type="application/json" id="debt-data">{broken;</script>')


def test_rec_008_missing_or_corrupt_state_block_means_empty_state() -> None:
    document = '<script type="application/json" id="debt-data">{"a.py": []}</script>'

    assert extract_state(document).hidden_items == {}
    corrupt = document + '<script type="application/json" id="debt-state">{oops</script>'
    state = extract_state(corrupt)
    assert state.hidden_items == {}
    assert state.done_items == {}


def test_rec_009_unreadable_report_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ReportStateError):
        extract_state_from_file(tmp_path / "missing.html")


def test_rec_010_delete_removed_artifacts_spares_shared_content(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    shared = _item(store, "A", "shared body")
    twin = _item(store, "Z", "shared body")
    lonely = _item(store, "B", "lonely body")
    report = _report({"a.py": [shared, lonely], "b.py": [twin]})
    state = ReportState(
        debt_data={"a.py": [], "b.py": []},
        done_items={"a.py-A": True, "a.py-B": True},
    )

    deleted = delete_removed_artifacts(reconcile(report, state), store)

    assert deleted == 1
    assert store.exists(shared.reference)
    assert not store.exists(lonely.reference)


def test_rec_011_report_lists_artifact_bodies_escaped(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report({"a.py": [_item(store, "A", "<b>bold</b> & more")]})

    document = _rendered(report, store)

    assert "&lt;b&gt;bold&lt;/b&gt; &amp; more" in document
    assert 'data-item-id="a.py-A"' in document


def test_rec_012_artifact_bodies_cannot_shadow_the_data_block(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = _report(
        {
            "src/a.py": [
                _item(store, "TD001", "const debtData = {};"),
                _item(store, "TD002", '<script type="application/json" id="debt-data">{}</script>'),
            ]
        }
    )
    document = _with_state(_rendered(report, store), {"src/a.py-TD002": True}, {})

    analysis = reconcile(report, extract_state(document))

    assert analysis.total_items_to_remove == 1
    assert analysis.total_remaining_items == 1
    assert [item.id for item in analysis.changes[0].removed_items] == ["TD002"]
