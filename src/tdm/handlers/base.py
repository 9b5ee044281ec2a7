# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Handler contract for per-file analysis."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True)
class FileAnalysisContext:
    """Read-only input for one handler on one file.

    Attributes:
        file_path: Repository-relative path.
        content: File content.
        file_hash: Content hash recorded at indexing time.
        timestamp: Start of this file's analysis.
        previous_result: This handler's own payload from the prior
            generation, or ``None``.
        previous_timestamp: When the prior generation was analyzed.
        previous_file_hash: Content hash of the prior generation.
    """

    file_path: str
    content: str
    file_hash: str
    timestamp: datetime
    previous_result: Any = None
    previous_timestamp: datetime | None = None
    previous_file_hash: str | None = None

    @property
    def file_extension(self) -> str:
        name = self.file_path.rsplit("/", 1)[-1]
        if "." not in name.lstrip("."):
            return ""
        return name.rsplit(".", 1)[-1]


class AnalysisHandler(Protocol):
    """Produce the payload for exactly one result key.

    Handlers never see the results bag, only their own prior payload. The pipeline stores whatever
    ``process`` returns under ``result_key``; ``None`` is stored as the
    explicit "analyzed, nothing found" marker.
    """

    result_key: str

    def process(self, context: FileAnalysisContext) -> Any:
        """Analyze one file and return a JSON-native payload."""
