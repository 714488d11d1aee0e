"""Tests for fileplugin.plugins.monitor: watch lifecycle and event routing."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
)

from fileplugin.plugins.monitor import ChangeMonitor, _PluginFileHandler
from fileplugin.plugins.paths import PluginPathSet


# ── Helpers ──────────────────────────────────────────────────────────


def _wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.1)
    return False


# ── Event routing ────────────────────────────────────────────────────


class TestPluginFileHandler:
    def test_modified_matching_file_forwarded(self, tmp_path: Path):
        seen: list[str] = []
        handler = _PluginFileHandler(".py", seen.append)
        handler.dispatch(FileModifiedEvent(str(tmp_path / "mod.py")))
        assert seen == [str(tmp_path / "mod.py")]

    def test_extension_match_ignores_case(self, tmp_path: Path):
        seen: list[str] = []
        handler = _PluginFileHandler(".py", seen.append)
        handler.dispatch(FileModifiedEvent(str(tmp_path / "MOD.PY")))
        assert seen == [str(tmp_path / "MOD.PY")]

    def test_other_extension_ignored(self, tmp_path: Path):
        seen: list[str] = []
        handler = _PluginFileHandler(".py", seen.append)
        handler.dispatch(FileModifiedEvent(str(tmp_path / "notes.txt")))
        assert seen == []

    def test_created_event_ignored(self, tmp_path: Path):
        seen: list[str] = []
        handler = _PluginFileHandler(".py", seen.append)
        handler.dispatch(FileCreatedEvent(str(tmp_path / "mod.py")))
        assert seen == []

    def test_directory_event_ignored(self, tmp_path: Path):
        seen: list[str] = []
        handler = _PluginFileHandler(".py", seen.append)
        handler.dispatch(DirModifiedEvent(str(tmp_path / "pkg.py")))
        assert seen == []

    def test_callback_error_logged_not_raised(self, tmp_path: Path, caplog):
        def explode(path: str) -> None:
            raise RuntimeError("callback broke")

        handler = _PluginFileHandler(".py", explode)
        with caplog.at_level(logging.ERROR, logger="fileplugin"):
            handler.dispatch(FileModifiedEvent(str(tmp_path / "mod.py")))

        assert "Watcher callback failed" in caplog.text
        assert "mod.py" in caplog.text

    def test_callback_exit_does_not_escape(self, tmp_path: Path, caplog):
        def leave(path: str) -> None:
            raise SystemExit(2)

        handler = _PluginFileHandler(".py", leave)
        with caplog.at_level(logging.ERROR, logger="fileplugin"):
            handler.dispatch(FileModifiedEvent(str(tmp_path / "mod.py")))

        assert "Watcher callback failed" in caplog.text


# ── Lifecycle ────────────────────────────────────────────────────────


class TestChangeMonitor:
    def test_stop_without_start_is_a_no_op(self):
        monitor = ChangeMonitor(lambda path: None)
        monitor.stop()
        assert monitor.watches == []
        assert not monitor.is_running

    def test_one_watch_per_root_and_extension(self, tmp_path: Path):
        a, b = tmp_path / "a", tmp_path / "b"
        a.mkdir()
        b.mkdir()
        monitor = ChangeMonitor(lambda path: None)
        monitor.start(PluginPathSet([a, b, tmp_path / "missing"]), [".py", ".so", ".pyd"])

        try:
            assert monitor.is_running
            assert len(monitor.watches) == 6
            assert {(w.root, w.extension) for w in monitor.watches} == {
                (str(root), ext) for root in (a, b) for ext in (".py", ".so", ".pyd")
            }
        finally:
            monitor.stop()

        assert monitor.watches == []
        assert not monitor.is_running

    def test_start_twice_keeps_existing_watches(self, tmp_path: Path):
        monitor = ChangeMonitor(lambda path: None)
        paths = PluginPathSet([tmp_path])
        monitor.start(paths, [".py"])
        try:
            monitor.start(paths, [".py", ".so"])
            assert len(monitor.watches) == 1
        finally:
            monitor.stop()

    def test_modified_file_reaches_callback(self, tmp_path: Path):
        """Writing a matching file while watching fires the callback with its path."""
        seen: list[str] = []
        monitor = ChangeMonitor(seen.append)
        monitor.start(PluginPathSet([tmp_path]), [".py"])

        try:
            # Give the observer a moment to spin up
            time.sleep(0.3)
            target = tmp_path / "fresh.py"
            target.write_text("x = 1\n")
            (tmp_path / "ignored.txt").write_text("nope")

            assert _wait_for(lambda: str(target) in seen), f"no event for fresh.py; seen = {seen}"
            assert not any(p.endswith("ignored.txt") for p in seen)
        finally:
            monitor.stop()

    def test_no_events_after_stop(self, tmp_path: Path):
        seen: list[str] = []
        monitor = ChangeMonitor(seen.append)
        monitor.start(PluginPathSet([tmp_path]), [".py"])
        time.sleep(0.3)
        monitor.stop()

        (tmp_path / "late.py").write_text("x = 1\n")
        time.sleep(0.5)
        assert seen == []
