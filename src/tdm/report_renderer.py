# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Self-contained HTML report with an editable hidden/done state block."""

import html
import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from tdm.artifact_store import ArtifactStore
from tdm.model import AnalysisReport, DebtSeverity, TechnicalDebtItem, item_to_dict
from tdm.reconciler import DATA_BLOCK_ID, STATE_BLOCK_ID, item_key
from tdm.results import extract_debt_items

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebtItemWithContent:
    """Pair one item with its artifact body."""

    item: TechnicalDebtItem
    content: str


def collect_debt_items(
    report: AnalysisReport, store: ArtifactStore
) -> dict[str, list[DebtItemWithContent]]:
    """Load the artifact body of every current debt item.

    Missing artifacts render as an empty body.
    """
    collected: dict[str, list[DebtItemWithContent]] = {}
    for file_path, items in sorted(extract_debt_items(report).items()):
        collected[file_path] = [
            DebtItemWithContent(item=item, content=store.load(item.reference) or "")
            for item in items
        ]
    return collected


def _script_json(value: object) -> str:
    return json.dumps(value, sort_keys=True).replace("</", "<\\/")


def render_html_report(
    file_debt_map: dict[str, list[DebtItemWithContent]],
    repository_name: str,
    analysis_date: datetime,
) -> str:
    """Render the report document.

    The document embeds a ``debt-data`` JSON block (items by path, bodies
    excluded) and a ``debt-state`` JSON block that the page rewrites as the
    reader hides items or marks them done.
    """
    all_items = [entry.item for entries in file_debt_map.values() for entry in entries]
    severity_counts = Counter(item.severity.value for item in all_items)
    tag_counts = Counter(tag.value for item in all_items for tag in item.tags)
    debt_data = {
        path: [item_to_dict(entry.item) for entry in entries]
        for path, entries in file_debt_map.items()
    }
    title = html.escape(repository_name)

    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '    <meta charset="UTF-8">',
        f"    <title>Technical Debt Report - {title}</title>",
        "    <style>",
        _STYLES,
        "    </style>",
        f'    <script type="application/json" id="{DATA_BLOCK_ID}">',
        f"        {_script_json(debt_data)}",
        "    </script>",
        f'    <script type="application/json" id="{STATE_BLOCK_ID}">',
        '        {"hiddenItems": {}, "doneItems": {}}',
        "    </script>",
        "</head>",
        "<body>",
        "    <header>",
        "        <h1>Technical Debt Report</h1>",
        f'        <span class="repo-name">{title}</span>',
        f'        <span class="analysis-date">Generated: {analysis_date:%Y-%m-%d %H:%M:%S} UTC</span>',
        "    </header>",
        '    <section class="summary">',
        f"        <div>Total debt items: {len(all_items)}</div>",
        f"        <div>Files with debt: {len(file_debt_map)}</div>",
    ]
    for severity in reversed(DebtSeverity):
        lines.append(
            f"        <div>{severity.value}: {severity_counts.get(severity.value, 0)}</div>"
        )
    for tag, count in tag_counts.most_common(10):
        lines.append(f"        <div>{html.escape(tag)}: {count}</div>")
    lines.append("    </section>")
    lines.append('    <main id="debt-items">')
    for file_path, entries in file_debt_map.items():
        lines.append(f'        <section class="file"><h2>{html.escape(file_path)}</h2>')
        for entry in entries:
            item = entry.item
            key = html.escape(item_key(file_path, item.id), quote=True)
            tags = ", ".join(tag.value for tag in item.tags)
            lines.extend(
                [
                    f'            <article class="debt-item severity-{item.severity.value.lower()}" data-item-id="{key}">',
                    f"                <h3>{html.escape(item.id)}: {html.escape(item.summary)}</h3>",
                    f'                <div class="meta">{item.severity.value} | {html.escape(tags)}</div>',
                    f"                <pre>{html.escape(entry.content)}</pre>",
                    '                <button class="toggle-done">Done</button>',
                    '                <button class="toggle-hidden">Hide</button>',
                    "            </article>",
                ]
            )
        lines.append("        </section>")
    lines.extend(
        [
            "    </main>",
            '    <button id="save-report">Save report</button>',
            "    <script>",
            _SCRIPT,
            "    </script>",
            "</body>",
            "</html>",
            "",
        ]
    )
    logger.info(
        f"HTML report rendered (repository={repository_name} files={len(file_debt_map)} "
        f"items={len(all_items)})"
    )
    return "\n".join(lines)


_STYLES = """
        body { font-family: sans-serif; margin: 2rem; background: #f5f7fa; color: #333; }
        .debt-item { background: #fff; border-left: 4px solid #999; margin: 1rem 0; padding: 1rem; }
        .severity-critical { border-color: #c0392b; }
        .severity-high { border-color: #e67e22; }
        .severity-medium { border-color: #f1c40f; }
        .severity-low { border-color: #27ae60; }
        .debt-item.done { opacity: 0.5; }
        .debt-item.hidden { display: none; }
        pre { white-space: pre-wrap; }"""

_SCRIPT = """
        const stateElement = document.getElementById('debt-state');
        const state = JSON.parse(stateElement.textContent || '{}');
        const hiddenItems = state.hiddenItems || {};
        const doneItems = state.doneItems || {};

        function saveState() {
            stateElement.textContent = JSON.stringify({hiddenItems, doneItems});
        }

        function toggle(map, itemId, className, article) {
            if (map[itemId]) {
                delete map[itemId];
            } else {
                map[itemId] = true;
            }
            article.classList.toggle(className, Boolean(map[itemId]));
            saveState();
        }

        document.querySelectorAll('.debt-item').forEach((article) => {
            const itemId = article.dataset.itemId;
            article.classList.toggle('done', Boolean(doneItems[itemId]));
            article.classList.toggle('hidden', Boolean(hiddenItems[itemId]));
            article.querySelector('.toggle-done').addEventListener(
                'click', () => toggle(doneItems, itemId, 'done', article));
            article.querySelector('.toggle-hidden').addEventListener(
                'click', () => toggle(hiddenItems, itemId, 'hidden', article));
        });

        document.getElementById('save-report').addEventListener('click', () => {
            const blob = new Blob(['<!DOCTYPE html>\\n' + document.documentElement.outerHTML],
                {type: 'text/html'});
            const link = document.createElement('a');
            link.href = URL.createObjectURL(blob);
            link.download = 'techdebt-report.html';
            link.click();
        });"""
