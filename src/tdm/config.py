# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""User configuration file and resolved runtime settings."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from tdm.fsutil import atomic_write_text

logger = logging.getLogger(__name__)

CONFIG_DIRECTORY_NAME = ".techdebtmaster"
CONFIG_FILE_NAME = "config.json"
DEFAULT_STORE_DIRECTORY = ".tdm"

PROVIDER_KEY = "ai.provider"
URL_KEY = "ai.url"
MODEL_KEY = "ai.model"
TIMEOUT_KEY = "ai.timeout"
WORKERS_KEY = "ai.workers"
DEFAULT_REPOSITORY_KEY = "default.repository"

SUPPORTED_PROVIDERS: tuple[str, ...] = ("ollama", "openai")

DEFAULTS: dict[str, str] = {
    PROVIDER_KEY: "ollama",
    URL_KEY: "http://localhost:11434",
    MODEL_KEY: "qwen2.5-coder:latest",
    TIMEOUT_KEY: "120",
    WORKERS_KEY: "4",
}

KNOWN_KEYS: tuple[str, ...] = (
    PROVIDER_KEY,
    URL_KEY,
    MODEL_KEY,
    TIMEOUT_KEY,
    WORKERS_KEY,
    DEFAULT_REPOSITORY_KEY,
)


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIRECTORY_NAME / CONFIG_FILE_NAME


@dataclass(frozen=True)
class ToolSettings:
    """Resolved settings for one CLI invocation.

    Attributes:
        provider: Analyzer backend name (``ollama`` or ``openai``).
        provider_url: Backend endpoint URL.
        model: Model identifier.
        timeout_seconds: Per-request analyzer timeout.
        max_workers: Files analyzed concurrently.
        store_dir: Tool-local state directory.
        default_repository: Repository used when a command omits its path.
    """

    provider: str
    provider_url: str
    model: str
    timeout_seconds: float
    max_workers: int
    store_dir: Path
    default_repository: str | None = None


class ConfigStore:
    """Persist string key/value settings as a JSON object.

    An unreadable or malformed file is treated as empty.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_path()

    @property
    def path(self) -> Path:
        return self._path

    def all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning(f"Ignoring unreadable configuration (path={self._path} error={exc})")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed configuration (path={self._path})")
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def get(self, key: str) -> str | None:
        return self.all().get(key)

    def set(self, key: str, value: str) -> None:
        """Store one value.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        values = self.all()
        values[key] = value
        self._write(values)

    def unset(self, key: str) -> bool:
        """Remove one key; return whether it was present."""
        values = self.all()
        if key not in values:
            return False
        del values[key]
        self._write(values)
        return True

    def _write(self, values: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self._path, json.dumps(values, indent=2, sort_keys=True))


def resolve_settings(
    store: ConfigStore, overrides: Mapping[str, object | None] | None = None
) -> ToolSettings:
    """Merge defaults, the config file, and command-line overrides.

    Args:
        store: User configuration file.
        overrides: Values from flags keyed like the config file, plus
            ``store_dir``; ``None`` values are ignored.

    Returns:
        Validated settings.

    Raises:
        ValueError: If the provider is unsupported or a numeric value is
            malformed or not greater than zero.
    """
    values: dict[str, object] = dict(DEFAULTS)
    values.update(store.all())
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    provider = str(values[PROVIDER_KEY]).strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported provider '{provider}'. Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    timeout_seconds = _positive(values[TIMEOUT_KEY], TIMEOUT_KEY, float)
    max_workers = int(_positive(values[WORKERS_KEY], WORKERS_KEY, int))
    store_dir = values.get("store_dir") or Path.cwd() / DEFAULT_STORE_DIRECTORY
    default_repository = values.get(DEFAULT_REPOSITORY_KEY)
    return ToolSettings(
        provider=provider,
        provider_url=str(values[URL_KEY]),
        model=str(values[MODEL_KEY]),
        timeout_seconds=float(timeout_seconds),
        max_workers=max_workers,
        store_dir=Path(str(store_dir)),
        default_repository=str(default_repository) if default_repository else None,
    )


def _positive(value: object, key: str, cast: type) -> float:
    try:
        number = cast(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {key}: {value!r}") from exc
    if number <= 0:
        raise ValueError(f"{key} must be > 0")
    return number
