# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Persistence of the latest analysis report per repository."""

import json
import logging
from pathlib import Path

from tdm.fsutil import atomic_write_text
from tdm.hashing import repository_id
from tdm.model import AnalysisReport, report_from_dict, report_to_dict

logger = logging.getLogger(__name__)


class AnalysisReportStore:
    """Read and publish ``analysis_<id>.json`` under the store directory."""

    def __init__(self, store_dir: Path) -> None:
        self._store_dir = store_dir

    def report_path(self, repository_path: str) -> Path:
        return self._store_dir / f"analysis_{repository_id(repository_path)}.json"

    def load_report(self, repository_path: str) -> AnalysisReport | None:
        """Load the latest report.

        A missing file means no previous analysis. An unreadable or corrupt
        file is logged and treated the same way, forcing a full re-analysis.

        Args:
            repository_path: Repository root path.

        Returns:
            The persisted report or ``None``.
        """
        path = self.report_path(repository_path)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return report_from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning(
                f"Ignoring unreadable analysis report (path={path} error={exc})"
            )
            return None

    def save_report(self, repository_path: str, report: AnalysisReport) -> Path:
        """Atomically replace the latest report.

        Raises:
            PersistenceError: If the report cannot be written.
        """
        path = self.report_path(repository_path)
        atomic_write_text(path, json.dumps(report_to_dict(report), indent=2))
        logger.info(
            f"Analysis report published (repository_path={repository_path} "
            f"files={len(report.file_histories)})"
        )
        return path
