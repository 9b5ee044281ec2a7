# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command line interface for incremental technical debt analysis."""

import argparse
import json
import logging
import shutil
import sys
from dataclasses import asdict
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.style import Style
from rich.table import Table
from rich.text import Text

from tdm.artifact_store import ArtifactStore, ArtifactStoreError
from tdm.config import (
    DEFAULTS,
    KNOWN_KEYS,
    MODEL_KEY,
    PROVIDER_KEY,
    TIMEOUT_KEY,
    URL_KEY,
    WORKERS_KEY,
    ConfigStore,
    ToolSettings,
    resolve_settings,
)
from tdm.debt_management import parse_debt_id, remove_debt_item
from tdm.debt_query import (
    DebtFilter,
    DebtQueryResult,
    compile_pattern,
    debt_statistics,
    find_debt_item,
    parse_severity_filter,
    parse_tag_filter,
    query_debt,
)
from tdm.flattener import DirectoryFlattener, FlattenError, RepomixFlattener, RepositoryFlattener
from tdm.fsutil import PersistenceError, atomic_write_text
from tdm.handlers import PreviewHandler, TechDebtAnalysisHandler
from tdm.index_store import IndexStorage
from tdm.indexer import IndexResult, RepositoryIndexer
from tdm.llm import OllamaAnalyzer, OpenAIAnalyzer
from tdm.llm_client import DebtAnalyzer
from tdm.model import AnalysisReport, DebtSeverity, item_to_dict
from tdm.pipeline import AnalysisPipeline
from tdm.reconciler import (
    ImportAnalysis,
    ReportStateError,
    delete_removed_artifacts,
    extract_state_from_file,
    reconcile,
)
from tdm.report_renderer import collect_debt_items, render_html_report
from tdm.report_store import AnalysisReportStore
from tdm.tracing import LoggingTracer

logger = logging.getLogger(__name__)

STATUS_LIST_LIMIT = 5

SEVERITY_STYLES: dict[DebtSeverity, str] = {
    DebtSeverity.CRITICAL: "bold red",
    DebtSeverity.HIGH: "red",
    DebtSeverity.MEDIUM: "yellow",
    DebtSeverity.LOW: "green",
}


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="tdm")
    parser.add_argument(
        "--debug", action="store_true", help="Lower the log threshold to DEBUG."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", help="Index and analyze a repository.")
    index_parser.add_argument("path", help="Repository root path.")
    index_parser.add_argument(
        "--flattener",
        choices=("repomix", "directory"),
        default="repomix",
        help="How repository files are collected.",
    )
    _add_common_arguments(index_parser)
    _add_provider_arguments(index_parser)

    status_parser = subparsers.add_parser("status", help="Show the latest index state.")
    status_parser.add_argument("path", nargs="?", help="Repository root path.")
    _add_common_arguments(status_parser)

    report_parser = subparsers.add_parser("report", help="Render the HTML report.")
    report_parser.add_argument("path", nargs="?", help="Repository root path.")
    report_parser.add_argument("--output", required=True, help="Target HTML file.")
    _add_common_arguments(report_parser)

    show_parser = subparsers.add_parser("show", help="List stored debt items.")
    show_parser.add_argument("path", nargs="?", help="Repository root path.")
    show_parser.add_argument("--severity", help="Only items of this severity.")
    show_parser.add_argument("--tag", help="Only items carrying this tag.")
    show_parser.add_argument("--include", help="Regex a file path must match.")
    show_parser.add_argument("--exclude", help="Regex that drops matching file paths.")
    show_parser.add_argument(
        "--item", help="Show one item with its body, identified as 'filePath:id'."
    )
    show_parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format.",
    )
    show_parser.add_argument(
        "--with-body", action="store_true", help="Include artifact bodies in JSON output."
    )
    _add_common_arguments(show_parser)

    import_parser = subparsers.add_parser(
        "import", help="Apply hidden and done marks from an edited HTML report."
    )
    import_parser.add_argument("report", help="Edited HTML report file.")
    import_parser.add_argument("--repo", help="Repository root path.")
    import_parser.add_argument(
        "--apply", action="store_true", help="Persist the changes (default is a dry run)."
    )
    import_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt."
    )
    import_parser.add_argument(
        "--verbose", action="store_true", help="List the removed items per file."
    )
    import_parser.add_argument(
        "--delete-artifacts",
        action="store_true",
        help="Delete artifact files of removed items.",
    )
    _add_common_arguments(import_parser)

    remove_parser = subparsers.add_parser(
        "remove-debt", help="Remove one debt item identified as FILE:ID."
    )
    remove_parser.add_argument("debt_id", help="Debt item as 'filePath:id'.")
    remove_parser.add_argument("--repo", help="Repository root path.")
    _add_common_arguments(remove_parser)

    clean_parser = subparsers.add_parser("clean", help="Remove the state directory.")
    _add_common_arguments(clean_parser)

    config_parser = subparsers.add_parser("config", help="Manage user configuration.")
    config_subparsers = config_parser.add_subparsers(dest="config_command", required=True)
    config_set_parser = config_subparsers.add_parser("set")
    config_set_parser.add_argument("key")
    config_set_parser.add_argument("value")
    config_set_parser.add_argument("--config", help="Configuration file path.")
    config_show_parser = config_subparsers.add_parser("show")
    config_show_parser.add_argument("--config", help="Configuration file path.")
    config_unset_parser = config_subparsers.add_parser("unset")
    config_unset_parser.add_argument("key")
    config_unset_parser.add_argument("--config", help="Configuration file path.")
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Configuration file path.")
    parser.add_argument("--store-dir", help="State directory (default: ./.tdm).")


def _add_provider_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--provider", help="Analyzer backend: ollama or openai.")
    parser.add_argument("--provider-url", help="Provider API endpoint URL.")
    parser.add_argument("--model", help="Provider model name.")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds.")
    parser.add_argument("--workers", type=int, help="Files analyzed concurrently.")


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code: 0 on success, 1 on failure, 2 on invalid input.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == "config":
        return _run_config(args=args, stdout=stdout, stderr=stderr)

    try:
        settings = _resolve(args)
    except ValueError as exc:
        logger.warning(f"Invalid settings (error={exc})")
        stderr.write(f"Invalid settings: {exc}\n")
        return 2

    if args.command == "index":
        return _run_index(args=args, settings=settings, stdout=stdout, stderr=stderr)
    if args.command == "status":
        return _run_status(args=args, settings=settings, stdout=stdout, stderr=stderr)
    if args.command == "report":
        return _run_report(args=args, settings=settings, stdout=stdout, stderr=stderr)
    if args.command == "show":
        return _run_show(args=args, settings=settings, stdout=stdout, stderr=stderr)
    if args.command == "import":
        return _run_import(args=args, settings=settings, stdout=stdout, stderr=stderr)
    if args.command == "remove-debt":
        return _run_remove_debt(args=args, settings=settings, stdout=stdout, stderr=stderr)
    if args.command == "clean":
        return _run_clean(settings=settings, stdout=stdout, stderr=stderr)

    logger.warning(f"Unsupported command (command={args.command})")
    stderr.write(f"Unsupported command: {args.command}\n")
    return 2


def _resolve(args: argparse.Namespace) -> ToolSettings:
    overrides = {
        PROVIDER_KEY: getattr(args, "provider", None),
        URL_KEY: getattr(args, "provider_url", None),
        MODEL_KEY: getattr(args, "model", None),
        TIMEOUT_KEY: getattr(args, "timeout", None),
        WORKERS_KEY: getattr(args, "workers", None),
        "store_dir": args.store_dir,
    }
    return resolve_settings(_config_store(args), overrides)


def _config_store(args: argparse.Namespace) -> ConfigStore:
    return ConfigStore(Path(args.config) if args.config else None)


def _repository_path(explicit: str | None, settings: ToolSettings) -> Path:
    """Pick the repository from the argument, the configured default, or the cwd."""
    raw = explicit or settings.default_repository or "."
    return Path(raw).expanduser().resolve()


def _console(stream: TextIO) -> Console:
    return Console(file=stream, force_terminal=False, color_system="truecolor")


def build_analyzer(settings: ToolSettings) -> DebtAnalyzer:
    """Create the configured analyzer client.

    Args:
        settings: Resolved settings.

    Returns:
        Analyzer bound to the configured provider.
    """
    if settings.provider == "openai":
        return OpenAIAnalyzer(
            provider_url=settings.provider_url,
            model=settings.model,
            timeout_seconds=settings.timeout_seconds,
        )
    return OllamaAnalyzer(
        provider_url=settings.provider_url,
        model=settings.model,
        timeout_seconds=settings.timeout_seconds,
    )


def build_flattener(name: str) -> RepositoryFlattener:
    if name == "directory":
        return DirectoryFlattener()
    return RepomixFlattener()


def _run_index(
    args: argparse.Namespace, settings: ToolSettings, stdout: TextIO, stderr: TextIO
) -> int:
    """Run index command.

    Args:
        args: Parsed CLI arguments.
        settings: Resolved settings.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code; 1 when any file failed analysis.
    """
    root_path = Path(args.path).expanduser().resolve()
    if not root_path.is_dir():
        logger.warning(f"Path does not exist (path={root_path})")
        stderr.write(f"Path does not exist: {root_path}\n")
        return 2

    artifact_store = ArtifactStore(settings.store_dir)
    pipeline = AnalysisPipeline(
        handlers=[
            PreviewHandler(),
            TechDebtAnalysisHandler(build_analyzer(settings), artifact_store),
        ],
        report_store=AnalysisReportStore(settings.store_dir),
        tracer=LoggingTracer(),
        max_workers=settings.max_workers,
    )
    indexer = RepositoryIndexer(
        flattener=build_flattener(args.flattener),
        index_storage=IndexStorage(settings.store_dir),
        pipeline=pipeline,
    )
    try:
        result = indexer.index_repository(str(root_path))
    except FlattenError as exc:
        logger.warning(f"Repository flattening failed (path={root_path} error={exc})")
        stderr.write(f"Failed to read repository: {exc}\n")
        return 1
    except (ArtifactStoreError, PersistenceError) as exc:
        logger.warning(f"Publishing analysis state failed (path={root_path} error={exc})")
        stderr.write(f"Failed to save analysis state: {exc}\n")
        return 1

    _write_index_result(result=result, root_path=root_path, stdout=stdout)
    if result.pipeline_result is not None and result.pipeline_result.failures:
        for failure in result.pipeline_result.failures:
            stderr.write(f"analysis_failed: {failure.file_path}: {failure.message}\n")
        return 1
    return 0


def _write_index_result(result: IndexResult, root_path: Path, stdout: TextIO) -> None:
    console = _console(stdout)
    console.rule(str(root_path), style=Style(color="cyan"), characters="-")
    if not result.has_changes:
        console.print(
            f"No changes detected ({result.change_summary.total_files} files).",
            markup=False,
        )
        return
    summary = result.change_summary
    pipeline_result = result.pipeline_result
    table = Table(show_header=True, expand=False)
    table.add_column("metric")
    table.add_column("count", justify="right")
    table.add_row("total", str(summary.total_files))
    table.add_row("new", str(len(summary.new_files)))
    table.add_row("changed", str(len(summary.changed_files)))
    table.add_row("deleted", str(len(summary.deleted_files)))
    table.add_row(
        "analyzed", str(len(pipeline_result.analyzed_files) if pipeline_result else 0)
    )
    table.add_row("failed", str(len(pipeline_result.failures) if pipeline_result else 0))
    console.print(table)


def _run_status(
    args: argparse.Namespace, settings: ToolSettings, stdout: TextIO, stderr: TextIO
) -> int:
    root_path = _repository_path(args.path, settings)
    index = IndexStorage(settings.store_dir).load_latest_index(str(root_path))
    console = _console(stdout)
    if index is None:
        console.print(
            f"No index found for {root_path}. Run 'tdm index' first.", markup=False
        )
        return 0

    summary = index.summary
    console.rule(str(root_path), style=Style(color="cyan"), characters="-")
    console.print(f"Last indexed: {index.timestamp.isoformat()}", markup=False)
    console.print(f"Files tracked: {len(index.files)}", markup=False)
    for label, paths, style in (
        ("New files", summary.new_files, "green"),
        ("Changed files", summary.changed_files, "yellow"),
        ("Deleted files", summary.deleted_files, "red"),
    ):
        if not paths:
            continue
        console.print(f"{label} ({len(paths)}):", style=style, markup=False)
        for path in paths[:STATUS_LIST_LIMIT]:
            console.print(f"  {path}", markup=False, highlight=False)
        if len(paths) > STATUS_LIST_LIMIT:
            console.print(f"  ... and {len(paths) - STATUS_LIST_LIMIT} more", markup=False)
    if not summary.has_changes:
        console.print("No changes in the last run.", markup=False)
    return 0


def _run_report(
    args: argparse.Namespace, settings: ToolSettings, stdout: TextIO, stderr: TextIO
) -> int:
    root_path = _repository_path(args.path, settings)
    report = AnalysisReportStore(settings.store_dir).load_report(str(root_path))
    if report is None:
        logger.warning(f"No analysis report (repository_path={root_path})")
        stderr.write(f"No analysis found for {root_path}. Run 'tdm index' first.\n")
        return 1

    items = collect_debt_items(report, ArtifactStore(settings.store_dir))
    document = render_html_report(items, root_path.name, report.timestamp)
    output_path = Path(args.output)
    try:
        atomic_write_text(output_path, document)
    except PersistenceError as exc:
        logger.warning(
            f"Failed to write report file (output_path={output_path} error={exc})"
        )
        stderr.write(f"Failed to write report file: {output_path}\n")
        return 1
    item_count = sum(len(entries) for entries in items.values())
    _console(stdout).print(
        f"Report written to {output_path} ({item_count} items in {len(items)} files).",
        markup=False,
    )
    return 0


def _run_show(
    args: argparse.Namespace, settings: ToolSettings, stdout: TextIO, stderr: TextIO
) -> int:
    """Run show command.

    Filters are validated before the stored report is read.

    Args:
        args: Parsed CLI arguments.
        settings: Resolved settings.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code; 2 for an invalid filter, 1 when nothing was analyzed yet.
    """
    try:
        debt_filter = DebtFilter(
            severity=parse_severity_filter(args.severity),
            tag=parse_tag_filter(args.tag),
            include=compile_pattern(args.include),
            exclude=compile_pattern(args.exclude),
        )
        item_id = parse_debt_id(args.item) if args.item else None
    except ValueError as exc:
        logger.warning(f"Invalid show filter (error={exc})")
        stderr.write(f"{exc}\n")
        return 2
    root_path = _repository_path(args.path, settings)
    report = AnalysisReportStore(settings.store_dir).load_report(str(root_path))
    if report is None:
        logger.warning(f"No analysis report (repository_path={root_path})")
        stderr.write(f"No analysis found for {root_path}. Run 'tdm index' first.\n")
        return 1

    artifact_store = ArtifactStore(settings.store_dir)
    if item_id is not None:
        return _write_debt_item(
            report=report,
            artifact_store=artifact_store,
            debt_id=item_id,
            output_format=args.format,
            stdout=stdout,
            stderr=stderr,
        )
    result = query_debt(report, debt_filter)
    if args.format == "json":
        _write_show_json(
            result=result,
            root_path=root_path,
            artifact_store=artifact_store if args.with_body else None,
            stdout=stdout,
        )
    else:
        _write_show_table(result=result, root_path=root_path, stdout=stdout)
    return 0


def _write_show_table(result: DebtQueryResult, root_path: Path, stdout: TextIO) -> None:
    console = _console(stdout)
    console.rule(str(root_path), style=Style(color="cyan"), characters="-")
    console.print(
        f"Files analyzed: {result.files_analyzed} | files with debt: {result.files_with_debt} "
        f"| items shown: {result.filtered_items} of {result.total_items}",
        markup=False,
    )
    if not result.matches:
        console.print("No debt items match the given filters.", markup=False)
        return

    statistics = debt_statistics(result.matches)
    summary = Table(title="Summary", show_header=True, expand=False)
    summary.add_column("group")
    summary.add_column("count", justify="right")
    for severity in reversed(DebtSeverity):
        summary.add_row(
            Text(severity.value, style=SEVERITY_STYLES[severity]),
            str(statistics.by_severity[severity.value]),
        )
    for tag, count in statistics.by_tag.items():
        summary.add_row(Text(tag), str(count))
    console.print(summary)

    items = Table(title="Technical debt", show_header=True, expand=False)
    items.add_column("file")
    items.add_column("id")
    items.add_column("severity")
    items.add_column("tags")
    items.add_column("summary")
    for file_path, file_items in result.matches.items():
        for item in file_items:
            items.add_row(
                Text(file_path),
                Text(item.id),
                Text(item.severity.value, style=SEVERITY_STYLES[item.severity]),
                Text(", ".join(tag.value for tag in item.tags)),
                Text(item.summary),
            )
    console.print(items)


def _write_show_json(
    result: DebtQueryResult,
    root_path: Path,
    artifact_store: ArtifactStore | None,
    stdout: TextIO,
) -> None:
    """Write selected items and their statistics in JSON format.

    Args:
        result: Query outcome.
        root_path: Repository root path.
        artifact_store: Store to read bodies from, or ``None`` to omit them.
        stdout: Standard output stream.
    """
    files: dict[str, list[dict[str, object]]] = {}
    for file_path, file_items in result.matches.items():
        entries = []
        for item in file_items:
            entry = item_to_dict(item)
            if artifact_store is not None:
                entry["body"] = artifact_store.load(item.reference)
            entries.append(entry)
        files[file_path] = entries
    payload = {
        "repository": str(root_path),
        "files_analyzed": result.files_analyzed,
        "files_with_debt": result.files_with_debt,
        "total_items": result.total_items,
        "filtered_items": result.filtered_items,
        "statistics": asdict(debt_statistics(result.matches)),
        "files": files,
    }
    _print_json(_console(stdout), payload)


def _write_debt_item(
    report: AnalysisReport,
    artifact_store: ArtifactStore,
    debt_id: tuple[str, str],
    output_format: str,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    file_path, item_id = debt_id
    item = find_debt_item(report, file_path, item_id)
    if item is None:
        stderr.write(f"Debt item not found: {file_path}:{item_id}\n")
        return 1
    body = artifact_store.load(item.reference)
    console = _console(stdout)
    if output_format == "json":
        _print_json(
            console, {"file_path": file_path, "item": item_to_dict(item), "body": body}
        )
        return 0
    console.rule(f"{file_path}:{item.id}", style=Style(color="cyan"), characters="-")
    console.print(
        f"[{item.severity.value}] {item.summary}",
        style=SEVERITY_STYLES[item.severity],
        markup=False,
        highlight=False,
    )
    console.print(f"Tags: {', '.join(tag.value for tag in item.tags) or '-'}", markup=False)
    console.print(
        body if body is not None else "(artifact missing)", markup=False, highlight=False
    )
    return 0


def _print_json(console: Console, payload: dict[str, object]) -> None:
    console.print(
        json.dumps(payload, indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _run_import(
    args: argparse.Namespace, settings: ToolSettings, stdout: TextIO, stderr: TextIO
) -> int:
    """Run import command.

    Dry run unless ``--apply`` is given; applying asks for confirmation
    unless ``--yes`` is given.

    Args:
        args: Parsed CLI arguments.
        settings: Resolved settings.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    report_file = Path(args.report)
    if not report_file.is_file():
        logger.warning(f"Report file does not exist (path={report_file})")
        stderr.write(f"Report file not found: {report_file}\n")
        return 2
    root_path = _repository_path(args.repo, settings)
    report_store = AnalysisReportStore(settings.store_dir)
    live_report = report_store.load_report(str(root_path))
    if live_report is None:
        stderr.write(f"No analysis found for {root_path}. Run 'tdm index' first.\n")
        return 1
    try:
        state = extract_state_from_file(report_file)
    except ReportStateError as exc:
        logger.warning(f"Report import failed (path={report_file} error={exc})")
        stderr.write(f"{exc}\n")
        return 1

    analysis = reconcile(live_report, state)
    console = _console(stdout)
    _write_import_summary(analysis=analysis, console=console)
    if args.verbose:
        _write_import_details(analysis=analysis, console=console)

    if analysis.total_items_to_remove == 0:
        console.print("No items are marked as hidden or done. Nothing to apply.", markup=False)
        return 0
    if not args.apply:
        console.print("Dry run: no changes saved. Re-run with --apply to persist.", markup=False)
        return 0
    if not args.yes and not Confirm.ask(
        f"Remove {analysis.total_items_to_remove} items from the analysis?",
        console=console,
        default=False,
    ):
        console.print("Import cancelled.", markup=False)
        return 0

    artifact_store = ArtifactStore(settings.store_dir)
    try:
        report_store.save_report(str(root_path), analysis.updated_report)
    except PersistenceError as exc:
        stderr.write(f"Failed to save analysis report: {exc}\n")
        return 1
    deleted = 0
    if args.delete_artifacts:
        deleted = delete_removed_artifacts(analysis, artifact_store)
    logger.info(
        f"Report import applied (repository_path={root_path} "
        f"removed={analysis.total_items_to_remove} artifacts_deleted={deleted})"
    )
    console.print(
        f"Applied: removed {analysis.total_items_to_remove} items "
        f"({deleted} artifacts deleted).",
        markup=False,
    )
    return 0


def _write_import_summary(analysis: ImportAnalysis, console: Console) -> None:
    table = Table(title="Import summary", show_header=True, expand=False)
    table.add_column("metric")
    table.add_column("count", justify="right")
    table.add_row("items to remove", str(analysis.total_items_to_remove))
    table.add_row("items remaining", str(analysis.total_remaining_items))
    table.add_row("files affected", str(len(analysis.changes)))
    table.add_row("files cleared", str(analysis.files_cleared))
    console.print(table)


def _write_import_details(analysis: ImportAnalysis, console: Console) -> None:
    for change in analysis.changes:
        console.rule(change.file_path, style=Style(color="cyan"), characters="-")
        console.print(
            f"{change.original_count} -> {change.remaining_count} items", markup=False
        )
        for item in change.removed_items:
            console.print(
                f"  - {item.id} [{item.severity.value}] {item.summary}",
                style=SEVERITY_STYLES[item.severity],
                markup=False,
                highlight=False,
            )


def _run_remove_debt(
    args: argparse.Namespace, settings: ToolSettings, stdout: TextIO, stderr: TextIO
) -> int:
    try:
        file_path, item_id = parse_debt_id(args.debt_id)
    except ValueError as exc:
        logger.warning(f"Invalid debt id (debt_id={args.debt_id})")
        stderr.write(f"{exc}\n")
        return 2
    root_path = _repository_path(args.repo, settings)
    report_store = AnalysisReportStore(settings.store_dir)
    report = report_store.load_report(str(root_path))
    if report is None:
        stderr.write(f"No analysis found for {root_path}. Run 'tdm index' first.\n")
        return 1

    removal = remove_debt_item(report, ArtifactStore(settings.store_dir), file_path, item_id)
    if not removal.found:
        stderr.write(f"Debt item not found: {file_path}:{item_id}\n")
        return 1
    try:
        report_store.save_report(str(root_path), removal.report)
    except PersistenceError as exc:
        stderr.write(f"Failed to save analysis report: {exc}\n")
        return 1
    _console(stdout).print(f"Removed {file_path}:{removal.removed_item.id}", markup=False)
    return 0


def _run_clean(settings: ToolSettings, stdout: TextIO, stderr: TextIO) -> int:
    console = _console(stdout)
    if not settings.store_dir.exists():
        console.print(f"Nothing to clean: {settings.store_dir} does not exist.", markup=False)
        return 0
    try:
        shutil.rmtree(settings.store_dir)
    except OSError as exc:
        logger.warning(f"Failed to remove state directory (path={settings.store_dir} error={exc})")
        stderr.write(f"Failed to remove {settings.store_dir}: {exc}\n")
        return 1
    console.print(f"Removed {settings.store_dir}", markup=False)
    return 0


def _run_config(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    store = _config_store(args)
    console = _console(stdout)
    if args.config_command == "show":
        values = store.all()
        table = Table(title=str(store.path), show_header=True, expand=False)
        table.add_column("key")
        table.add_column("value")
        table.add_column("source")
        for key in sorted(set(KNOWN_KEYS) | set(values)):
            if key in values:
                table.add_row(key, values[key], "config")
            elif key in DEFAULTS:
                table.add_row(key, DEFAULTS[key], "default")
        console.print(table)
        return 0

    try:
        if args.config_command == "set":
            if args.key not in KNOWN_KEYS:
                stderr.write(f"Warning: unknown configuration key '{args.key}'\n")
            store.set(args.key, args.value)
            console.print(f"{args.key} = {args.value}", markup=False, highlight=False)
            return 0
        if args.config_command == "unset":
            if not store.unset(args.key):
                stderr.write(f"Configuration key not set: {args.key}\n")
                return 1
            console.print(f"Removed {args.key}", markup=False)
            return 0
    except PersistenceError as exc:
        stderr.write(f"Failed to write configuration: {exc}\n")
        return 1

    stderr.write(f"Unsupported config command: {args.config_command}\n")
    return 2


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
