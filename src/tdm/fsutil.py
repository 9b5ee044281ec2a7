# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Atomic file publishing for persisted state."""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Represent a failure to publish persisted state."""


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to ``path`` so readers never observe a partial file.

    The content is written to a temporary file in the target directory,
    flushed to disk and renamed over ``path``.

    Args:
        path: Destination file path.
        text: UTF-8 text to write.

    Raises:
        PersistenceError: If the directory cannot be created or the write fails.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        logger.warning(f"Atomic write failed (path={path} error={exc})")
        raise PersistenceError(str(exc)) from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.debug(f"Temporary file already gone (path={tmp_name})")
