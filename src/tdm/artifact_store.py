# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Content-addressed storage for technical debt write-ups."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from tdm.fsutil import PersistenceError, atomic_write_text
from tdm.hashing import calculate_md5_hash
from tdm.model import ArtifactReference

logger = logging.getLogger(__name__)

ARTIFACT_DIRECTORY = "techdebt"
ARTIFACT_PREFIX = "techdebt"
ARTIFACT_SUFFIX = ".md"


class ArtifactStoreError(RuntimeError):
    """Represent a failure to persist an artifact."""


def normalize_newlines(content: str) -> str:
    """Canonicalize CRLF and CR line endings to LF."""
    return content.replace("\r\n", "\n").replace("\r", "\n")


def artifact_file_name(content_hash: str) -> str:
    return f"{ARTIFACT_PREFIX}_{content_hash}{ARTIFACT_SUFFIX}"


class ArtifactStore:
    """Store artifact bodies once per distinct normalized content.

    File names are a pure function of the content digest, so saving the same
    text twice, from any source file or thread, resolves to the same file.
    Load and delete treat a missing or unreadable file as "not found".
    """

    def __init__(self, store_dir: Path) -> None:
        """Initialize the store.

        Args:
            store_dir: Tool-local state directory; artifacts live in
                ``<store_dir>/techdebt``.
        """
        self._directory = store_dir / ARTIFACT_DIRECTORY

    @property
    def directory(self) -> Path:
        return self._directory

    def save(self, content: str, original_path: str) -> ArtifactReference:
        """Persist content and return its reference.

        Args:
            content: Artifact body.
            original_path: Source file the artifact describes (logging only).

        Returns:
            Reference whose file name and hash depend only on the content.

        Raises:
            ArtifactStoreError: If the artifact cannot be written.
        """
        normalized = normalize_newlines(content)
        content_hash = calculate_md5_hash(normalized)
        file_name = artifact_file_name(content_hash)
        full_path = self._directory / file_name
        if full_path.exists():
            logger.debug(
                f"Artifact already stored (file_name={file_name} original_path={original_path})"
            )
        else:
            try:
                atomic_write_text(full_path, normalized)
            except PersistenceError as exc:
                logger.warning(
                    f"Artifact save failed (file_name={file_name} "
                    f"original_path={original_path} error={exc})"
                )
                raise ArtifactStoreError(str(exc)) from exc
        return ArtifactReference(
            file_name=file_name,
            timestamp=datetime.now(tz=timezone.utc),
            content_hash=content_hash,
        )

    def load(self, reference: ArtifactReference) -> str | None:
        """Load an artifact body.

        Returns:
            The stored text, or ``None`` if it is missing or unreadable.
        """
        full_path = self._directory / reference.file_name
        try:
            return full_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                f"Artifact unreadable; treating as missing (file_name={reference.file_name} error={exc})"
            )
            return None

    def exists(self, reference: ArtifactReference) -> bool:
        return (self._directory / reference.file_name).is_file()

    def delete(self, reference: ArtifactReference) -> bool:
        """Delete an artifact.

        Returns:
            ``True`` if a file was removed, ``False`` if it was absent or
            could not be removed.
        """
        full_path = self._directory / reference.file_name
        try:
            full_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning(
                f"Artifact delete failed; treating as missing (file_name={reference.file_name} error={exc})"
            )
            return False
        return True
