# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Snapshot comparison."""

from tdm.index_store import ChangeSummary, RepositoryIndex


def detect_changes(
    previous: RepositoryIndex | None, current: RepositoryIndex
) -> ChangeSummary:
    """Classify paths as new, changed or deleted between two snapshots.

    On a cold start (no previous index) every current path is new and
    nothing is changed or deleted. Output lists carry no ordering guarantee.

    Args:
        previous: Prior snapshot, if any.
        current: Fresh snapshot.

    Returns:
        Change summary for ``current``.
    """
    if previous is None:
        return ChangeSummary(
            total_files=len(current.files), new_files=list(current.files)
        )

    new_files: list[str] = []
    changed_files: list[str] = []
    for path, snapshot in current.files.items():
        prior = previous.files.get(path)
        if prior is None:
            new_files.append(path)
        elif prior.hash != snapshot.hash:
            changed_files.append(path)
    deleted_files = [path for path in previous.files if path not in current.files]

    return ChangeSummary(
        total_files=len(current.files),
        new_files=new_files,
        changed_files=changed_files,
        deleted_files=deleted_files,
    )
