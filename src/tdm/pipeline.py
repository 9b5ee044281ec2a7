# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Incremental analysis of changed files merged with carried-forward history."""

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from tdm.debt_parser import DebtParseError
from tdm.handlers.base import AnalysisHandler, FileAnalysisContext
from tdm.hashing import calculate_hash
from tdm.llm_client import AnalysisGenerationError
from tdm.model import AnalysisReport, FileAnalysisEntry, FileAnalysisHistory
from tdm.report_store import AnalysisReportStore
from tdm.tracing import NullTracer, Tracer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileAnalysisFailure:
    """Represent one file whose analysis failed and will be retried later."""

    file_path: str
    message: str


@dataclass(frozen=True)
class PipelineResult:
    """Represent the outcome of one analysis batch.

    Attributes:
        report: The published report.
        analyzed_files: Paths analyzed successfully in this batch.
        failures: Paths whose analysis failed; their prior entry was kept.
    """

    report: AnalysisReport
    analyzed_files: list[str] = field(default_factory=list)
    failures: list[FileAnalysisFailure] = field(default_factory=list)

    @property
    def failed_files(self) -> list[str]:
        return [failure.file_path for failure in self.failures]


class AnalysisPipeline:
    """Run the handler chain over changed files and publish the merged report."""

    def __init__(
        self,
        handlers: Sequence[AnalysisHandler],
        report_store: AnalysisReportStore,
        tracer: Tracer | None = None,
        max_workers: int = 4,
        progress_batch_size: int = 10,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            handlers: Ordered handlers; each must own a distinct result key.
            report_store: Store used to load the prior report and publish the new one.
            tracer: Span tracer scoped to this pipeline; defaults to a no-op.
            max_workers: Maximum number of files analyzed concurrently.
            progress_batch_size: Emit a progress log line every N files.
            clock: Source of UTC timestamps.

        Raises:
            ValueError: If two handlers share a result key, or a numeric
                argument is not greater than zero.
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        if progress_batch_size <= 0:
            raise ValueError("progress_batch_size must be > 0")
        seen: set[str] = set()
        for handler in handlers:
            if handler.result_key in seen:
                raise ValueError(f"Duplicate handler result key: {handler.result_key}")
            seen.add(handler.result_key)
        self._handlers = list(handlers)
        self._report_store = report_store
        self._tracer = tracer or NullTracer()
        self._max_workers = max_workers
        self._progress_batch_size = progress_batch_size
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    def analyze(
        self,
        changed_files: dict[str, str],
        repository_path: str,
        deleted_files: Iterable[str] = (),
    ) -> PipelineResult:
        """Analyze changed files and publish the merged report.

        Histories of files not in ``changed_files`` are copied forward
        untouched. A file whose analyzer call fails or returns malformed
        output keeps its prior history and is reported as failed. The report
        is published only after every file has been processed.

        Args:
            changed_files: Mapping of path to content for new and changed files.
            repository_path: Repository root path (identity source).
            deleted_files: Paths removed from the repository; not carried forward.

        Returns:
            The published report and per-file outcome.

        Raises:
            ArtifactStoreError: If an artifact cannot be written.
            PersistenceError: If the report cannot be published.
        """
        with self._tracer.span(
            "analysis_batch", repository_path=repository_path, files=len(changed_files)
        ):
            previous_report = self._report_store.load_report(repository_path)
            previous_histories = (
                previous_report.file_histories if previous_report is not None else {}
            )
            removed = set(deleted_files)
            histories: dict[str, FileAnalysisHistory] = {
                path: history
                for path, history in previous_histories.items()
                if path not in changed_files and path not in removed
            }

            analyzed: list[str] = []
            failures: list[FileAnalysisFailure] = []
            for path, outcome in self._run_batch(changed_files, previous_histories):
                prior = previous_histories.get(path)
                if isinstance(outcome, FileAnalysisFailure):
                    failures.append(outcome)
                    if prior is not None:
                        histories[path] = prior
                    continue
                analyzed.append(path)
                histories[path] = FileAnalysisHistory(
                    file_path=path,
                    current=outcome,
                    previous=prior.current if prior is not None else None,
                )

            report = AnalysisReport(
                timestamp=self._clock(),
                file_histories={path: histories[path] for path in sorted(histories)},
            )
            self._report_store.save_report(repository_path, report)

        logger.info(
            f"Analysis batch completed (repository_path={repository_path} "
            f"analyzed={len(analyzed)} failed={len(failures)} carried={len(histories) - len(analyzed)})"
        )
        return PipelineResult(
            report=report, analyzed_files=sorted(analyzed), failures=failures
        )

    def _run_batch(
        self,
        changed_files: dict[str, str],
        previous_histories: dict[str, FileAnalysisHistory],
    ) -> Iterable[tuple[str, FileAnalysisEntry | FileAnalysisFailure]]:
        total = len(changed_files)
        if total == 0:
            return
        completed = 0
        failed = 0
        started_at = time.monotonic()

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=self._max_workers)
        future_to_path: dict[concurrent.futures.Future[FileAnalysisEntry], str] = {}
        try:
            for path, content in changed_files.items():
                prior = previous_histories.get(path)
                future = executor.submit(
                    self._analyze_file,
                    path,
                    content,
                    prior.current if prior is not None else None,
                )
                future_to_path[future] = path

            for future in concurrent.futures.as_completed(future_to_path):
                path = future_to_path[future]
                try:
                    outcome: FileAnalysisEntry | FileAnalysisFailure = future.result()
                except (AnalysisGenerationError, DebtParseError) as exc:
                    failed += 1
                    logger.warning(
                        f"File analysis failed; keeping prior entry (file_path={path} error={exc})"
                    )
                    outcome = FileAnalysisFailure(file_path=path, message=str(exc))
                completed += 1
                if completed % self._progress_batch_size == 0 or completed == total:
                    self._log_progress(completed, total, failed, started_at)
                yield path, outcome
        except BaseException:
            for pending in future_to_path:
                pending.cancel()
            raise
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    def _analyze_file(
        self, path: str, content: str, previous: FileAnalysisEntry | None
    ) -> FileAnalysisEntry:
        context = FileAnalysisContext(
            file_path=path,
            content=content,
            file_hash=calculate_hash(content),
            timestamp=self._clock(),
            previous_timestamp=previous.timestamp if previous is not None else None,
            previous_file_hash=previous.file_hash if previous is not None else None,
        )
        results: dict[str, object] = {}
        with self._tracer.span("analyze_file", file_path=path):
            for handler in self._handlers:
                with self._tracer.span("handler", key=handler.result_key, file_path=path):
                    prior = previous.results.get(handler.result_key) if previous else None
                    results[handler.result_key] = handler.process(
                        replace(context, previous_result=prior)
                    )
        return FileAnalysisEntry(
            timestamp=context.timestamp, file_hash=context.file_hash, results=results
        )

    def _log_progress(
        self, completed: int, total: int, failed: int, started_at: float
    ) -> None:
        """Emit structured progress log line."""
        elapsed = time.monotonic() - started_at
        avg_seconds_per_file = elapsed / completed if completed else 0.0
        eta_seconds = int(round((total - completed) * avg_seconds_per_file))
        percent = 100.0 if total == 0 else (completed / total) * 100.0
        logger.info(
            "analysis_progress completed=%s total=%s failed=%s percent=%.2f eta_seconds=%s",
            completed,
            total,
            failed,
            percent,
            eta_seconds,
        )
