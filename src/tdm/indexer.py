# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Index a repository and analyze what changed since the last run."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from tdm.change_detector import detect_changes
from tdm.flattener import RepositoryFlattener
from tdm.index_store import (
    ChangeSummary,
    FileSnapshot,
    IndexStorage,
    RepositoryIndex,
    compute_snapshot,
)
from tdm.pipeline import AnalysisPipeline, PipelineResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexResult:
    """Represent the outcome of one indexing run.

    Attributes:
        change_summary: New, changed and deleted paths.
        file_summary: Summary block emitted by the flattening tool.
        pipeline_result: Analysis outcome, or ``None`` when nothing was analyzed.
        index_published: Whether a new index was written.
    """

    change_summary: ChangeSummary
    file_summary: str = ""
    pipeline_result: PipelineResult | None = None
    index_published: bool = False

    @property
    def has_changes(self) -> bool:
        return self.change_summary.has_changes


class RepositoryIndexer:
    """Coordinate flattening, change detection, analysis and index publishing."""

    def __init__(
        self,
        flattener: RepositoryFlattener,
        index_storage: IndexStorage,
        pipeline: AnalysisPipeline,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._flattener = flattener
        self._index_storage = index_storage
        self._pipeline = pipeline
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    def index_repository(self, repository_path: str) -> IndexResult:
        """Index a repository and analyze new and changed files.

        Nothing is written when the repository is unchanged. Otherwise the
        analysis report is published first and the index second; files that
        failed analysis keep their previous snapshot in the published index
        so the next run detects and retries them.

        Args:
            repository_path: Repository root path.

        Returns:
            Change summary and analysis outcome.

        Raises:
            FlattenError: If the repository cannot be flattened.
            ArtifactStoreError: If an artifact cannot be written.
            PersistenceError: If the report or index cannot be published.
        """
        flattened = self._flattener.flatten(Path(repository_path))
        previous = self._index_storage.load_latest_index(repository_path)
        current = compute_snapshot(flattened.files, repository_path, self._clock())
        summary = detect_changes(previous, current)
        current = replace(current, summary=summary)
        logger.info(
            f"Change detection completed (repository_path={repository_path} "
            f"total={summary.total_files} new={len(summary.new_files)} "
            f"changed={len(summary.changed_files)} deleted={len(summary.deleted_files)})"
        )
        if not summary.has_changes:
            return IndexResult(change_summary=summary, file_summary=flattened.file_summary)

        to_analyze = {
            path: flattened.files[path]
            for path in [*summary.new_files, *summary.changed_files]
            if path in flattened.files
        }
        pipeline_result = self._pipeline.analyze(
            to_analyze, repository_path, deleted_files=summary.deleted_files
        )

        published = _revert_failed_paths(current, previous, pipeline_result.failed_files)
        self._index_storage.save_index(repository_path, published)
        return IndexResult(
            change_summary=summary,
            file_summary=flattened.file_summary,
            pipeline_result=pipeline_result,
            index_published=True,
        )


def _revert_failed_paths(
    current: RepositoryIndex, previous: RepositoryIndex | None, failed_paths: list[str]
) -> RepositoryIndex:
    if not failed_paths:
        return current
    files: dict[str, FileSnapshot] = dict(current.files)
    for path in failed_paths:
        prior = previous.files.get(path) if previous is not None else None
        if prior is None:
            files.pop(path, None)
        else:
            files[path] = prior
    logger.info(f"Failed files left pending for retry (count={len(failed_paths)})")
    return replace(current, files=files)
