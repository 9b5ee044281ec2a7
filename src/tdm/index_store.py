# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Repository snapshot models and the on-disk index store."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tdm.fsutil import atomic_write_text
from tdm.hashing import calculate_hash, repository_id

logger = logging.getLogger(__name__)

INDEX_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@dataclass(frozen=True)
class FileSnapshot:
    """Represent the indexed state of one file.

    Attributes:
        hash: SHA-256 hex digest of the file content.
        size: Content size in bytes (UTF-8).
        last_modified: Time the snapshot was taken.
    """

    hash: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class ChangeSummary:
    """Represent the difference between two repository snapshots."""

    total_files: int = 0
    new_files: list[str] = field(default_factory=list)
    changed_files: list[str] = field(default_factory=list)
    deleted_files: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_files or self.changed_files or self.deleted_files)


@dataclass(frozen=True)
class RepositoryIndex:
    """Represent one snapshot of a repository."""

    timestamp: datetime
    repository_path: str
    files: dict[str, FileSnapshot]
    summary: ChangeSummary = field(default_factory=ChangeSummary)


@dataclass(frozen=True)
class IndexMetadata:
    """Point at the latest published index file for a repository."""

    repository_path: str
    latest_index_file: str
    last_updated: datetime


def compute_snapshot(
    file_contents: dict[str, str],
    repository_path: str,
    timestamp: datetime | None = None,
) -> RepositoryIndex:
    """Hash every file's content into a fresh repository index.

    Args:
        file_contents: Mapping of repository-relative path to content.
        repository_path: Repository root the contents were read from.
        timestamp: Snapshot time; defaults to now (UTC).

    Returns:
        Index with an empty change summary.
    """
    taken_at = timestamp or datetime.now(tz=timezone.utc)
    files = {
        path: FileSnapshot(
            hash=calculate_hash(content),
            size=len(content.encode("utf-8")),
            last_modified=taken_at,
        )
        for path, content in file_contents.items()
    }
    return RepositoryIndex(
        timestamp=taken_at, repository_path=repository_path, files=files
    )


def index_to_dict(index: RepositoryIndex) -> dict[str, Any]:
    return {
        "timestamp": index.timestamp.isoformat(),
        "repository_path": index.repository_path,
        "files": {
            path: {
                "hash": snapshot.hash,
                "size": snapshot.size,
                "last_modified": snapshot.last_modified.isoformat(),
            }
            for path, snapshot in index.files.items()
        },
        "summary": {
            "total_files": index.summary.total_files,
            "new_files": list(index.summary.new_files),
            "changed_files": list(index.summary.changed_files),
            "deleted_files": list(index.summary.deleted_files),
        },
    }


def index_from_dict(data: dict[str, Any]) -> RepositoryIndex:
    summary_data = data.get("summary") or {}
    return RepositoryIndex(
        timestamp=datetime.fromisoformat(data["timestamp"]),
        repository_path=str(data["repository_path"]),
        files={
            path: FileSnapshot(
                hash=str(item["hash"]),
                size=int(item["size"]),
                last_modified=datetime.fromisoformat(item["last_modified"]),
            )
            for path, item in data["files"].items()
        },
        summary=ChangeSummary(
            total_files=int(summary_data.get("total_files", 0)),
            new_files=list(summary_data.get("new_files", [])),
            changed_files=list(summary_data.get("changed_files", [])),
            deleted_files=list(summary_data.get("deleted_files", [])),
        ),
    )


class IndexStorage:
    """Persist repository indexes under a tool-local store directory.

    Layout per repository identity ``<id>``::

        metadata_<id>.json             -> IndexMetadata
        index_<id>_<timestamp>.json    -> RepositoryIndex
    """

    def __init__(self, store_dir: Path) -> None:
        """Initialize storage.

        Args:
            store_dir: Directory holding all persisted state.
        """
        self._store_dir = store_dir

    @property
    def store_dir(self) -> Path:
        return self._store_dir

    def metadata_path(self, repository_path: str) -> Path:
        return self._store_dir / f"metadata_{repository_id(repository_path)}.json"

    def load_metadata(self, repository_path: str) -> IndexMetadata | None:
        """Load the latest-index pointer for a repository.

        Returns:
            Metadata, or ``None`` when absent or unreadable.
        """
        metadata_path = self.metadata_path(repository_path)
        if not metadata_path.exists():
            return None
        try:
            data = json.loads(metadata_path.read_text(encoding="utf-8"))
            return IndexMetadata(
                repository_path=str(data["repository_path"]),
                latest_index_file=str(data["latest_index_file"]),
                last_updated=datetime.fromisoformat(data["last_updated"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                f"Ignoring unreadable index metadata (path={metadata_path} error={exc})"
            )
            return None

    def load_latest_index(self, repository_path: str) -> RepositoryIndex | None:
        """Load the most recently published index for a repository.

        Corrupt or missing files are treated as "no previous index".

        Args:
            repository_path: Repository root path.

        Returns:
            Latest index or ``None``.
        """
        metadata = self.load_metadata(repository_path)
        if metadata is None or not metadata.latest_index_file:
            return None
        index_path = self._store_dir / metadata.latest_index_file
        if not index_path.exists():
            logger.warning(
                f"Latest index file is missing (path={index_path})"
            )
            return None
        try:
            data = json.loads(index_path.read_text(encoding="utf-8"))
            return index_from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                f"Ignoring unreadable index (path={index_path} error={exc})"
            )
            return None

    def save_index(self, repository_path: str, index: RepositoryIndex) -> Path:
        """Publish a new index and advance the latest pointer.

        The index file is fully written before the metadata pointer is
        replaced, so the pointer never references a partial file.

        Args:
            repository_path: Repository root path.
            index: Index to persist.

        Returns:
            Path of the written index file.

        Raises:
            PersistenceError: If either write fails.
        """
        repo_id = repository_id(repository_path)
        stamp = index.timestamp.strftime(INDEX_TIMESTAMP_FORMAT)
        index_file_name = f"index_{repo_id}_{stamp}.json"
        index_path = self._store_dir / index_file_name
        atomic_write_text(index_path, json.dumps(index_to_dict(index), indent=2))

        metadata = {
            "repository_path": repository_path,
            "latest_index_file": index_file_name,
            "last_updated": index.timestamp.isoformat(),
        }
        atomic_write_text(
            self.metadata_path(repository_path), json.dumps(metadata, indent=2)
        )
        logger.info(
            f"Index published (repository_path={repository_path} file={index_file_name} "
            f"files={len(index.files)})"
        )
        return index_path
