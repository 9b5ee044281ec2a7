# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Content hashing helpers."""

import hashlib
from pathlib import Path


def calculate_hash(content: str) -> str:
    """Return the SHA-256 hex digest of UTF-8 encoded content.

    Used for change detection and repository identity.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def calculate_md5_hash(content: str) -> str:
    """Return the MD5 hex digest of UTF-8 encoded content.

    Used for content-addressed artifact file names only.
    """
    return hashlib.md5(content.encode("utf-8")).hexdigest()  # noqa: S324


def repository_id(repository_path: str | Path) -> str:
    """Derive the 8 character repository identity.

    Args:
        repository_path: Repository path, relative or absolute.

    Returns:
        First 8 hex characters of the SHA-256 of the lower-cased resolved path.
    """
    normalized = str(Path(repository_path).resolve()).lower()
    return calculate_hash(normalized)[:8]
