from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from runtime_class.config import default_config
from runtime_class.sync import PersistError, SyncSession

ARTIFACT = "vite-plugin-tailwind-runtime-class.json"


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _artifact(tmp_path: Path) -> dict[str, object]:
    return json.loads((tmp_path / ARTIFACT).read_text(encoding="utf-8"))


def _scanned_session(tmp_path: Path) -> SyncSession:
    session = SyncSession(default_config(tmp_path))
    session.scan()
    return session


def test_same_change_event_twice_persists_once(tmp_path: Path) -> None:
    session = _scanned_session(tmp_path)
    _write(tmp_path / "src" / "Nav.tsx", "const n = generateRuntimeClass({ default: 'flex' });\n")

    with patch.object(session.store, "persist", wraps=session.store.persist) as persist_mock:
        first = session.update(tmp_path / "src" / "Nav.tsx")
        second = session.update(tmp_path / "src" / "Nav.tsx")

    assert persist_mock.call_count == 1
    assert first.persisted is True
    assert first.outcomes[0].status == "extracted"
    assert second.persisted is False
    assert second.outcomes[0].status == "unchanged"
    assert _artifact(tmp_path) == {"src/Nav.tsx": "flex"}


def test_content_change_is_picked_up(tmp_path: Path) -> None:
    nav = tmp_path / "Nav.tsx"
    _write(nav, "generateRuntimeClass({ default: 'flex' })\n")
    session = _scanned_session(tmp_path)

    _write(nav, "generateRuntimeClass({ default: 'flex', md: 'hidden' })\n")
    result = session.update("Nav.tsx")

    assert result.store_changed is True
    assert _artifact(tmp_path) == {"Nav.tsx": "flex md:hidden"}
    record = session.file_record("Nav.tsx")
    assert record is not None
    assert record.last_result is not None
    assert record.last_result.flattened == "flex md:hidden"


def test_whitespace_only_edit_commits_fingerprint_without_persisting(tmp_path: Path) -> None:
    nav = tmp_path / "Nav.tsx"
    _write(nav, "generateRuntimeClass({ default: 'flex' })\n")
    session = _scanned_session(tmp_path)
    before = session.cache.get("Nav.tsx")

    _write(nav, "\n\ngenerateRuntimeClass({ default: 'flex' })\n")
    result = session.update("Nav.tsx")

    assert result.outcomes[0].status == "extracted"
    assert result.persisted is False
    assert session.cache.get("Nav.tsx") != before


def test_removing_marker_call_drops_entry(tmp_path: Path) -> None:
    nav = tmp_path / "Nav.tsx"
    _write(nav, "generateRuntimeClass({ default: 'flex' })\n")
    session = _scanned_session(tmp_path)

    _write(nav, "export const nav = 'flex';\n")
    result = session.update("Nav.tsx")

    assert result.outcomes[0].status == "no_marker"
    assert result.persisted is True
    assert _artifact(tmp_path) == {}


def test_malformed_edit_keeps_previous_entry_until_fixed(tmp_path: Path) -> None:
    nav = tmp_path / "Nav.tsx"
    _write(nav, "generateRuntimeClass({ default: 'flex' })\n")
    session = _scanned_session(tmp_path)
    good_fingerprint = session.cache.get("Nav.tsx")

    _write(nav, "generateRuntimeClass({ default: 'flex', md: 4 })\n")
    broken = session.update("Nav.tsx")

    assert broken.outcomes[0].status == "malformed_literal"
    assert broken.persisted is False
    assert session.cache.get("Nav.tsx") == good_fingerprint
    assert _artifact(tmp_path) == {"Nav.tsx": "flex"}

    _write(nav, "generateRuntimeClass({ default: 'flex', md: 'grid' })\n")
    fixed = session.update("Nav.tsx")

    assert fixed.persisted is True
    assert _artifact(tmp_path) == {"Nav.tsx": "flex md:grid"}


def test_unlink_event_removes_entry(tmp_path: Path) -> None:
    nav = tmp_path / "Nav.tsx"
    _write(nav, "generateRuntimeClass({ default: 'flex' })\n")
    session = _scanned_session(tmp_path)

    nav.unlink()
    result = session.update("Nav.tsx", kind="unlink")

    assert result.outcomes[0].status == "removed"
    assert result.persisted is True
    assert _artifact(tmp_path) == {}
    assert session.file_record("Nav.tsx") is None


def test_read_failure_does_not_poison_cache(tmp_path: Path) -> None:
    session = _scanned_session(tmp_path)

    failed = session.update("Later.tsx", kind="add")

    assert failed.outcomes[0].status == "read_failure"
    assert session.cache.get("Later.tsx") is None

    _write(tmp_path / "Later.tsx", "generateRuntimeClass({ sm: 'block' })\n")
    recovered = session.update("Later.tsx", kind="add")

    assert recovered.outcomes[0].status == "extracted"
    assert _artifact(tmp_path) == {"Later.tsx": "sm:block"}


def test_ignored_notifications(tmp_path: Path) -> None:
    _write(tmp_path / "node_modules" / "lib" / "x.js", "generateRuntimeClass({ default: 'x' })")
    _write(tmp_path / "styles.css", ".x {}\n")
    session = _scanned_session(tmp_path)

    results = [
        session.update(tmp_path / ARTIFACT),
        session.update("node_modules/lib/x.js"),
        session.update("styles.css"),
        session.update(str(tmp_path.parent / "elsewhere.tsx")),
    ]

    assert [result.outcomes[0].status for result in results] == ["ignored"] * 4
    assert not any(result.persisted for result in results)


def test_unknown_change_kind_is_rejected(tmp_path: Path) -> None:
    session = SyncSession(default_config(tmp_path))

    with pytest.raises(ValueError, match="Unknown change kind"):
        session.update("a.tsx", kind="rename")


def test_persist_failure_is_surfaced_and_reconciled_later(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    nav = tmp_path / "Nav.tsx"
    session = _scanned_session(tmp_path)
    _write(nav, "generateRuntimeClass({ default: 'flex' })\n")

    original_replace = Path.replace
    calls = {"count": 0}

    def flaky_replace(self: Path, target: Path) -> Path:
        calls["count"] += 1
        if calls["count"] == 1:
            raise OSError(28, "No space left on device")
        return original_replace(self, target)

    monkeypatch.setattr(Path, "replace", flaky_replace)

    with pytest.raises(PersistError):
        session.update("Nav.tsx")

    assert _artifact(tmp_path) == {}
    assert session.store.dirty is True
    assert session.snapshot() == {"Nav.tsx": "flex"}

    retry = session.update("Nav.tsx")

    assert retry.outcomes[0].status == "unchanged"
    assert retry.persisted is True
    assert _artifact(tmp_path) == session.snapshot() == {"Nav.tsx": "flex"}


def test_paths_without_file_identity_are_ignored(tmp_path: Path) -> None:
    session = _scanned_session(tmp_path)

    results = [session.update("."), session.update("../escape.tsx"), session.update(" ")]

    assert [result.outcomes[0].status for result in results] == ["ignored"] * 3
    assert [result.outcomes[0].message for result in results] == [
        "Path is the project root itself.",
        "Resolved path escapes project_root.",
        "Path is empty.",
    ]
