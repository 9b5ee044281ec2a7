# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Turn a repository into a ``path -> content`` mapping."""

import html
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import pathspec

logger = logging.getLogger(__name__)

_FILE_PATTERN = re.compile(
    r"<file\s+path=\"([^\"]+)\"[^>]*>(.*?)</file>", re.IGNORECASE | re.DOTALL
)
_SUMMARY_PATTERN = re.compile(
    r"<file_summary>.*?</file_summary>", re.IGNORECASE | re.DOTALL
)

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git/",
    ".tdm/",
    "__pycache__/",
    "node_modules/",
    ".venv/",
    "*.pyc",
)


class FlattenError(RuntimeError):
    """Represent a failure to flatten a repository."""


@dataclass(frozen=True)
class FlattenedRepository:
    """Represent file contents extracted from a repository.

    Attributes:
        files: Repository-relative path to content, in no particular order.
        file_summary: Optional summary block emitted by the flattening tool.
    """

    files: dict[str, str] = field(default_factory=dict)
    file_summary: str = ""


class RepositoryFlattener(Protocol):
    """Define the repository flattening contract."""

    def flatten(self, repository_path: Path) -> FlattenedRepository:
        """Return the textual files of a repository.

        Raises:
            FlattenError: If the repository cannot be read.
        """


def parse_repomix_output(xml_text: str) -> FlattenedRepository:
    """Parse repomix ``--style xml`` output.

    Args:
        xml_text: Raw tool output.

    Returns:
        Files with entity-decoded content, and the ``<file_summary>`` block
        including its tags when present.
    """
    files: dict[str, str] = {}
    for match in _FILE_PATTERN.finditer(xml_text):
        path = html.unescape(match.group(1))
        content = html.unescape(match.group(2))
        if content.startswith("\n"):
            content = content[1:]
        files[path] = content
    summary_match = _SUMMARY_PATTERN.search(xml_text)
    return FlattenedRepository(
        files=files,
        file_summary=summary_match.group(0) if summary_match is not None else "",
    )


class RepomixFlattener:
    """Flatten a repository by running the ``repomix`` CLI."""

    def __init__(self, executable: str = "repomix", timeout_seconds: float = 300.0) -> None:
        self._executable = executable
        self._timeout_seconds = timeout_seconds

    def flatten(self, repository_path: Path) -> FlattenedRepository:
        """Run repomix and parse its XML output.

        Raises:
            FlattenError: If repomix is missing, times out, or exits non-zero.
        """
        resolved = shutil.which(self._executable)
        if resolved is None:
            raise FlattenError(
                f"Failed to run {self._executable}. Make sure it is installed and in PATH."
            )
        try:
            completed = subprocess.run(
                [resolved, "--stdout", "--style", "xml", str(repository_path)],
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self._timeout_seconds,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning(
                f"Repomix invocation failed (repository_path={repository_path} error={exc})"
            )
            raise FlattenError(str(exc)) from exc
        if completed.returncode != 0:
            logger.warning(
                f"Repomix exited with an error (repository_path={repository_path} "
                f"returncode={completed.returncode})"
            )
            raise FlattenError(f"Repomix failed with error: {completed.stderr.strip()}")
        return parse_repomix_output(completed.stdout)


class DirectoryFlattener:
    """Flatten a repository by walking it and honouring ``.gitignore``."""

    def __init__(self, extra_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS) -> None:
        self._extra_patterns = extra_patterns

    def flatten(self, repository_path: Path) -> FlattenedRepository:
        """Read every non-ignored UTF-8 text file under the repository.

        Binary or undecodable files are skipped with a warning.

        Raises:
            FlattenError: If the repository path is not a directory.
        """
        if not repository_path.is_dir():
            raise FlattenError(f"Repository path is not a directory: {repository_path}")
        spec = self._build_spec(repository_path)
        files: dict[str, str] = {}
        for file_path in sorted(repository_path.rglob("*")):
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(repository_path).as_posix()
            if spec.match_file(relative):
                continue
            try:
                files[relative] = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(
                    f"Skipping unreadable file (file_path={relative} error={exc})"
                )
        return FlattenedRepository(files=files)

    def _build_spec(self, repository_path: Path) -> pathspec.GitIgnoreSpec:
        patterns = list(self._extra_patterns)
        gitignore = repository_path / ".gitignore"
        if gitignore.is_file():
            try:
                patterns.extend(gitignore.read_text(encoding="utf-8").splitlines())
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(f"Ignoring unreadable .gitignore (path={gitignore} error={exc})")
        return pathspec.GitIgnoreSpec.from_lines(patterns)
