from datetime import datetime, timezone

import pytest

from tdm.debt_query import (
    DebtFilter,
    compile_pattern,
    debt_statistics,
    find_debt_item,
    parse_severity_filter,
    parse_tag_filter,
    query_debt,
)
from tdm.model import (
    AnalysisReport,
    ArtifactReference,
    DebtSeverity,
    DebtTag,
    FileAnalysisEntry,
    FileAnalysisHistory,
    TechDebtAnalysisResult,
    TechnicalDebtItem,
    tech_debt_result_to_dict,
)
from tdm.results import PREVIEW_KEY, TECH_DEBT_KEY

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _item(item_id: str, severity: DebtSeverity, *tags: DebtTag) -> TechnicalDebtItem:
    return TechnicalDebtItem(
        id=item_id,
        summary=f"Summary {item_id}",
        severity=severity,
        tags=tags,
        reference=ArtifactReference(
            file_name=f"techdebt_{item_id.lower()}.md", timestamp=T0, content_hash=item_id
        ),
    )


def _report() -> AnalysisReport:
    files = {
        "src/app.py": [
            _item("TD001", DebtSeverity.HIGH, DebtTag.COMPLEXITY),
            _item("TD002", DebtSeverity.LOW, DebtTag.NAMING, DebtTag.COMPLEXITY),
        ],
        "src/util.py": [_item("TD001", DebtSeverity.CRITICAL, DebtTag.SECURITY)],
        "tests/test_app.py": [_item("TD001", DebtSeverity.LOW, DebtTag.NAMING)],
    }
    histories = {
        path: FileAnalysisHistory(
            file_path=path,
            current=FileAnalysisEntry(
                timestamp=T0,
                file_hash="h",
                results={
                    TECH_DEBT_KEY: tech_debt_result_to_dict(TechDebtAnalysisResult(items=items))
                },
            ),
        )
        for path, items in files.items()
    }
    histories["README.md"] = FileAnalysisHistory(
        file_path="README.md",
        current=FileAnalysisEntry(timestamp=T0, file_hash="h", results={PREVIEW_KEY: "x"}),
    )
    return AnalysisReport(timestamp=T0, file_histories=histories)


def test_dbq_001_empty_filter_selects_every_item() -> None:
    result = query_debt(_report(), DebtFilter())

    assert result.files_analyzed == 4
    assert result.files_with_debt == 3
    assert result.total_items == 4
    assert result.filtered_items == 4
    assert list(result.matches) == ["src/app.py", "src/util.py", "tests/test_app.py"]


def test_dbq_002_severity_and_tag_filters_combine() -> None:
    result = query_debt(
        _report(), DebtFilter(severity=DebtSeverity.LOW, tag=DebtTag.NAMING)
    )

    assert {path: [item.id for item in items] for path, items in result.matches.items()} == {
        "src/app.py": ["TD002"],
        "tests/test_app.py": ["TD001"],
    }
    assert result.total_items == 4


def test_dbq_003_include_and_exclude_patterns_ignore_case() -> None:
    debt_filter = DebtFilter(include=compile_pattern("^SRC/"), exclude=compile_pattern("util"))

    result = query_debt(_report(), debt_filter)

    assert list(result.matches) == ["src/app.py"]


def test_dbq_004_invalid_filters_raise_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid regex pattern"):
        compile_pattern("[unclosed")
    with pytest.raises(ValueError, match="Unknown severity"):
        parse_severity_filter("Severe")
    with pytest.raises(ValueError, match="Unknown tag"):
        parse_tag_filter("Bogus")
    assert compile_pattern("  ") is None
    assert parse_severity_filter("critical") is DebtSeverity.CRITICAL
    assert parse_tag_filter("code smell") is DebtTag.CODE_SMELL


def test_dbq_005_statistics_count_severities_tags_and_files() -> None:
    statistics = debt_statistics(query_debt(_report(), DebtFilter()).matches)

    assert statistics.total_items == 4
    assert statistics.files_with_debt == 3
    assert list(statistics.by_severity) == ["Critical", "High", "Medium", "Low"]
    assert statistics.by_severity == {"Critical": 1, "High": 1, "Medium": 0, "Low": 2}
    assert statistics.by_tag == {"Complexity": 2, "Naming": 2, "Security": 1}
    assert next(iter(statistics.top_files)) == "src/app.py"


def test_dbq_006_find_debt_item_ignores_id_case() -> None:
    report = _report()

    assert find_debt_item(report, "src/app.py", "td002").id == "TD002"
    assert find_debt_item(report, "src/app.py", "TD404") is None
    assert find_debt_item(report, "README.md", "TD001") is None
    assert find_debt_item(report, "missing.py", "TD001") is None
