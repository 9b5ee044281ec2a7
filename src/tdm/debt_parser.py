# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Parse the delimited debts section out of analyzer output.

The analyzer is asked to answer with free text that may contain one
section of the form::

    <debts>
    <debt id="TD001" severity="High" tags="Complexity, Naming">
    <summary>One line summary</summary>
    Markdown body describing the problem and a fix.
    </debt>
    </debts>

Severity and tags are parsed permissively; structural problems (an
unterminated section, an unterminated item, an item without an id) raise
``DebtParseError``.
"""

import html
import logging
import re
from dataclasses import dataclass

from tdm.model import DebtSeverity, DebtTag, parse_severity, parse_tags

logger = logging.getLogger(__name__)

SECTION_START = "<debts>"
SECTION_END = "</debts>"

_SECTION_PATTERN = re.compile(r"<debts>(.*?)</debts>", re.IGNORECASE | re.DOTALL)
_ITEM_PATTERN = re.compile(r"<debt\b([^>]*)>(.*?)</debt>", re.IGNORECASE | re.DOTALL)
_ATTRIBUTE_PATTERN = re.compile(r"([A-Za-z_][\w-]*)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
_SUMMARY_PATTERN = re.compile(r"<summary>(.*?)</summary>", re.IGNORECASE | re.DOTALL)

SUMMARY_FALLBACK_LENGTH = 120


class DebtParseError(RuntimeError):
    """Represent malformed structured analyzer output."""


@dataclass(frozen=True)
class ParsedDebt:
    """Represent one debt item parsed from analyzer output."""

    id: str
    summary: str
    severity: DebtSeverity
    tags: tuple[DebtTag, ...]
    body: str


def parse_debt_section(raw_text: str) -> list[ParsedDebt] | None:
    """Extract debt items from analyzer output.

    Args:
        raw_text: Raw analyzer response.

    Returns:
        ``None`` when the text is empty or has no debts section, otherwise the
        parsed items (possibly an empty list).

    Raises:
        DebtParseError: If the section or one of its items is malformed.
    """
    if not raw_text or not raw_text.strip():
        return None

    lowered = raw_text.lower()
    has_start = SECTION_START in lowered
    has_end = SECTION_END in lowered
    if not has_start and not has_end:
        return None
    match = _SECTION_PATTERN.search(raw_text)
    if match is None:
        raise DebtParseError("Debts section is not terminated.")

    section = match.group(1)
    item_matches = list(_ITEM_PATTERN.finditer(section))
    opened = len(re.findall(r"<debt\b", section, flags=re.IGNORECASE))
    if opened != len(item_matches):
        raise DebtParseError(
            f"Debts section has {opened} opened items but {len(item_matches)} complete items."
        )

    items: list[ParsedDebt] = []
    seen_ids: set[str] = set()
    for item_match in item_matches:
        attributes = {
            name.lower(): html.unescape(double or single)
            for name, double, single in _ATTRIBUTE_PATTERN.findall(item_match.group(1))
        }
        item_id = attributes.get("id", "").strip()
        if not item_id:
            raise DebtParseError("Debt item is missing an id attribute.")
        if item_id in seen_ids:
            logger.warning(f"Duplicate debt id in analyzer output; keeping first (id={item_id})")
            continue
        seen_ids.add(item_id)

        content = item_match.group(2)
        summary_match = _SUMMARY_PATTERN.search(content)
        if summary_match is not None:
            summary = " ".join(summary_match.group(1).split())
            body = (content[: summary_match.start()] + content[summary_match.end() :]).strip()
        else:
            body = content.strip()
            summary = attributes.get("summary", "").strip() or _first_line(body)

        items.append(
            ParsedDebt(
                id=item_id,
                summary=summary,
                severity=parse_severity(attributes.get("severity")),
                tags=parse_tags(attributes.get("tags", "")),
                body=body,
            )
        )
    return items


def _first_line(body: str) -> str:
    for line in body.splitlines():
        stripped = line.strip().lstrip("#").strip()
        if stripped:
            return stripped[:SUMMARY_FALLBACK_LENGTH]
    return ""
