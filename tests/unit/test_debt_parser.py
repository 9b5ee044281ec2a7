import pytest

from tdm.debt_parser import DebtParseError, parse_debt_section
from tdm.model import DebtSeverity, DebtTag


def test_dbp_001_returns_none_without_section() -> None:
    assert parse_debt_section("") is None
    assert parse_debt_section("   ") is None
    assert parse_debt_section("The file looks fine.") is None


def test_dbp_002_empty_section_yields_empty_list() -> None:
    assert parse_debt_section("Review:\n<debts>\n</debts>\n") == []


def test_dbp_003_parses_items_with_attributes_and_summary() -> None:
    raw = "\n".join(
        [
            "Some preamble.",
            "<debts>",
            '<debt id="TD001" severity="high" tags="Complexity, naming, Unknown">',
            "<summary>Function is too long</summary>",
            "## Problem",
            "Split it.",
            "</debt>",
            '<debt id="TD002" severity="2" tags="magic number">',
            "Magic numbers everywhere",
            "</debt>",
            "</debts>",
        ]
    )

    items = parse_debt_section(raw)

    assert items is not None
    assert [item.id for item in items] == ["TD001", "TD002"]
    first, second = items
    assert first.summary == "Function is too long"
    assert first.severity is DebtSeverity.HIGH
    assert first.tags == (DebtTag.COMPLEXITY, DebtTag.NAMING)
    assert first.body == "## Problem\nSplit it."
    assert second.summary == "Magic numbers everywhere"
    assert second.severity is DebtSeverity.LOW
    assert second.tags == (DebtTag.MAGIC_NUMBER,)


def test_dbp_004_unknown_severity_defaults_to_low() -> None:
    items = parse_debt_section('<debts><debt id="A" severity="Severe">x</debt></debts>')

    assert items is not None
    assert items[0].severity is DebtSeverity.LOW


def test_dbp_005_unterminated_section_raises() -> None:
    with pytest.raises(DebtParseError):
        parse_debt_section('<debts><debt id="A">body</debt>')


def test_dbp_006_unterminated_item_raises() -> None:
    with pytest.raises(DebtParseError):
        parse_debt_section('<debts><debt id="A">body</debt><debt id="B">oops</debts>')


def test_dbp_007_item_without_id_raises() -> None:
    with pytest.raises(DebtParseError):
        parse_debt_section('<debts><debt severity="High">body</debt></debts>')


def test_dbp_008_duplicate_ids_keep_first() -> None:
    items = parse_debt_section(
        '<debts><debt id="A">first</debt><debt id="A">second</debt></debts>'
    )

    assert items is not None
    assert len(items) == 1
    assert items[0].body == "first"


def test_dbp_009_single_quoted_attributes_are_read() -> None:
    items = parse_debt_section(
        "<debts><debt id='TD001' severity='High' tags=\"Security\">body</debt></debts>"
    )

    assert items is not None
    assert items[0].id == "TD001"
    assert items[0].severity is DebtSeverity.HIGH
    assert items[0].tags == (DebtTag.SECURITY,)
