import json
from pathlib import Path

import pytest

from tdm.config import (
    MODEL_KEY,
    PROVIDER_KEY,
    TIMEOUT_KEY,
    WORKERS_KEY,
    ConfigStore,
    resolve_settings,
)


def test_cfg_001_defaults_apply_without_config_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    settings = resolve_settings(ConfigStore(tmp_path / "missing.json"))

    assert settings.provider == "ollama"
    assert settings.provider_url == "http://localhost:11434"
    assert settings.model == "qwen2.5-coder:latest"
    assert settings.timeout_seconds == 120.0
    assert settings.max_workers == 4
    assert settings.store_dir == tmp_path / ".tdm"
    assert settings.default_repository is None


def test_cfg_002_set_get_and_unset_round_trip(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "nested" / "config.json")

    store.set(MODEL_KEY, "llama3")
    store.set("default.repository", "/work/repo")

    assert store.get(MODEL_KEY) == "llama3"
    assert json.loads(store.path.read_text(encoding="utf-8"))[MODEL_KEY] == "llama3"
    assert store.unset(MODEL_KEY) is True
    assert store.unset(MODEL_KEY) is False
    assert store.all() == {"default.repository": "/work/repo"}


def test_cfg_003_overrides_beat_file_values(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "config.json")
    store.set(MODEL_KEY, "from-file")
    store.set(WORKERS_KEY, "8")

    settings = resolve_settings(
        store, {MODEL_KEY: "from-flag", WORKERS_KEY: None, "store_dir": str(tmp_path / "s")}
    )

    assert settings.model == "from-flag"
    assert settings.max_workers == 8
    assert settings.store_dir == tmp_path / "s"


def test_cfg_004_corrupt_config_is_treated_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    assert ConfigStore(path).all() == {}


@pytest.mark.parametrize(
    "overrides",
    [
        {PROVIDER_KEY: "anthropic"},
        {TIMEOUT_KEY: "0"},
        {WORKERS_KEY: "-1"},
        {WORKERS_KEY: "many"},
    ],
)
def test_cfg_005_invalid_values_are_rejected(tmp_path: Path, overrides: dict) -> None:
    with pytest.raises(ValueError):
        resolve_settings(ConfigStore(tmp_path / "config.json"), overrides)
