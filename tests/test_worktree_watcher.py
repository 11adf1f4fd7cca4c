"""
Unit tests for hunkedit.watcher

Covers path filtering, debouncing and the observer lifecycle. The
watchdog Observer is mocked for lifecycle tests.
"""

from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import pytest
from watchdog.events import (
    DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent,
)

from hunkedit.watcher import WorktreeEventHandler, WorktreeWatcher


# ---------------------------------------------------------------------------
# WorktreeEventHandler
# ---------------------------------------------------------------------------

@pytest.fixture
def changes():
    return []


@pytest.fixture
def handler(tmp_path, changes):
    return WorktreeEventHandler(str(tmp_path), changes.append, debounce_seconds=0)


class TestWorktreeEventHandler:

    def test_worktree_file_is_reported(self, handler, changes, tmp_path):
        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, "src", "a.py")))
        assert changes == ["src/a.py"]

    def test_directory_events_are_ignored(self, handler, changes, tmp_path):
        handler.on_modified(DirModifiedEvent(os.path.join(tmp_path, "src")))
        assert changes == []

    def test_git_internals_are_ignored(self, handler, changes, tmp_path):
        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, ".git", "objects", "ab")))
        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, ".git", "index.lock")))
        assert changes == []

    def test_git_index_and_head_trigger(self, handler, changes, tmp_path):
        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, ".git", "index")))
        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, ".git", "HEAD")))
        assert changes == [".git/index", ".git/HEAD"]

    def test_own_temp_files_are_ignored(self, handler, changes, tmp_path):
        handler.on_created(FileCreatedEvent(os.path.join(tmp_path, "a.py.hunkedit_tmp")))
        assert changes == []

    def test_paths_outside_root_are_ignored(self, handler, changes, tmp_path):
        handler.on_modified(FileModifiedEvent(os.path.join(os.path.dirname(tmp_path), "x")))
        assert changes == []

    def test_move_reports_both_paths(self, handler, changes, tmp_path):
        handler.on_moved(FileMovedEvent(
            os.path.join(tmp_path, "old.py"), os.path.join(tmp_path, "new.py"),
        ))
        assert changes == ["old.py", "new.py"]

    def test_repeated_events_are_debounced(self, tmp_path, changes):
        handler = WorktreeEventHandler(str(tmp_path), changes.append, debounce_seconds=60)
        path = os.path.join(tmp_path, "a.py")

        handler.on_modified(FileModifiedEvent(path))
        handler.on_modified(FileModifiedEvent(path))
        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, "b.py")))

        assert changes == ["a.py", "b.py"]

    @patch("hunkedit.watcher.time.monotonic")
    def test_expired_debounce_entries_are_dropped(self, mock_clock, tmp_path, changes):
        handler = WorktreeEventHandler(str(tmp_path), changes.append, debounce_seconds=1)

        for tick, name in enumerate(["a.py", "b.py", "c.py"]):
            mock_clock.return_value = tick * 10.0
            handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, name)))

        assert changes == ["a.py", "b.py", "c.py"]
        assert list(handler._last_event) == ["c.py"]

    def test_callback_errors_are_contained(self, tmp_path):
        callback = MagicMock(side_effect=RuntimeError("boom"))
        handler = WorktreeEventHandler(str(tmp_path), callback, debounce_seconds=0)

        handler.on_modified(FileModifiedEvent(os.path.join(tmp_path, "a.py")))  # should not raise
        callback.assert_called_once_with("a.py")


# ---------------------------------------------------------------------------
# WorktreeWatcher lifecycle
# ---------------------------------------------------------------------------

class TestWorktreeWatcher:

    def test_initial_state(self, tmp_path):
        watcher = WorktreeWatcher(str(tmp_path), lambda path: None)
        assert not watcher.is_running

    def test_stop_when_not_started(self, tmp_path):
        """stop() should be safe to call before start()."""
        watcher = WorktreeWatcher(str(tmp_path), lambda path: None)
        watcher.stop()
        assert not watcher.is_running

    @patch("hunkedit.watcher.Observer")
    def test_start_and_stop(self, mock_observer_cls, tmp_path):
        observer = mock_observer_cls.return_value
        watcher = WorktreeWatcher(str(tmp_path), lambda path: None)

        watcher.start()
        watcher.start()  # second start is a no-op

        assert watcher.is_running
        mock_observer_cls.assert_called_once()
        observer.schedule.assert_called_once()
        assert observer.schedule.call_args.kwargs["recursive"] is True
        observer.start.assert_called_once()

        watcher.stop()

        observer.stop.assert_called_once()
        observer.join.assert_called_once()
        assert not watcher.is_running
