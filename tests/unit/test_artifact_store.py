from datetime import datetime, timezone
from pathlib import Path

import pytest

from tdm.artifact_store import ArtifactStore, ArtifactStoreError, normalize_newlines
from tdm.hashing import calculate_md5_hash
from tdm.model import ArtifactReference


def test_art_001_save_is_content_addressed(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)

    reference = store.save("body\n", "a.py")

    assert reference.content_hash == calculate_md5_hash("body\n")
    assert reference.file_name == f"techdebt_{reference.content_hash}.md"
    assert (tmp_path / "techdebt" / reference.file_name).read_text(encoding="utf-8") == "body\n"


def test_art_002_line_endings_do_not_change_identity(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)

    first = store.save("a\r\nb\rc\n", "a.py")
    second = store.save("a\nb\nc\n", "b.py")

    assert first.file_name == second.file_name
    assert store.load(first) == "a\nb\nc\n"
    assert len(list((tmp_path / "techdebt").iterdir())) == 1


def test_art_003_saving_existing_content_does_not_rewrite(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    reference = store.save("same", "a.py")
    path = tmp_path / "techdebt" / reference.file_name
    mtime = path.stat().st_mtime_ns

    store.save("same", "b.py")

    assert path.stat().st_mtime_ns == mtime


def test_art_004_missing_artifacts_load_as_none_and_delete_as_false(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    reference = ArtifactReference(
        file_name="techdebt_missing.md",
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        content_hash="missing",
    )

    assert store.load(reference) is None
    assert store.exists(reference) is False
    assert store.delete(reference) is False


def test_art_005_delete_removes_file(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    reference = store.save("gone soon", "a.py")

    assert store.delete(reference) is True
    assert store.exists(reference) is False


def test_art_006_save_failure_raises_artifact_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory", encoding="utf-8")
    store = ArtifactStore(blocker)

    with pytest.raises(ArtifactStoreError):
        store.save("body", "a.py")


def test_art_007_normalize_newlines() -> None:
    assert normalize_newlines("a\r\nb\rc") == "a\nb\nc"
