"""
Working-tree watcher — signal a status refresh when files change.

Uses watchdog to monitor the repository. Events are debounced per path,
and changes inside ``.git`` only count when they touch the index or HEAD
(staging, commits, checkouts).
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

_GIT_DIR = ".git"
_GIT_TRIGGERS = {"index", "HEAD"}


class WorktreeEventHandler(FileSystemEventHandler):
    """
    Watchdog event handler that forwards relevant changes to a callback.

    Parameters
    ----------
    root:
        Repository root (used to compute relative paths).
    on_change:
        Called with the repository-relative path of each relevant change.
    debounce_seconds:
        Minimum delay between reports for the same path (editors often
        write a file several times per save).
    """

    def __init__(
        self,
        root: str,
        on_change: Callable[[str], None],
        debounce_seconds: float = 0.5,
    ) -> None:
        super().__init__()
        self._root = os.path.abspath(root)
        self._on_change = on_change
        self._debounce = debounce_seconds
        self._last_event: dict[str, float] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Watchdog event dispatch
    # ------------------------------------------------------------------

    def on_modified(self, event) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_created(self, event) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_deleted(self, event) -> None:
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event) -> None:
        if not event.is_directory:
            self._handle(event.src_path)
            self._handle(event.dest_path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _rel_path(self, abs_path: str) -> Optional[str]:
        try:
            rel = os.path.relpath(abs_path, self._root)
        except ValueError:
            return None
        if rel.startswith(".."):
            return None
        return rel.replace(os.sep, "/")

    @staticmethod
    def _should_ignore(rel_path: str) -> bool:
        parts = rel_path.split("/")
        if parts[0] != _GIT_DIR:
            return rel_path.endswith(".hunkedit_tmp")
        return not (len(parts) == 2 and parts[1] in _GIT_TRIGGERS)

    def _is_debounced(self, rel_path: str) -> bool:
        now = time.monotonic()
        with self._lock:
            last = self._last_event.get(rel_path)
            if last is not None and now - last < self._debounce:
                return True
            # drop entries outside the window
            self._last_event = {
                path: seen for path, seen in self._last_event.items()
                if now - seen < self._debounce
            }
            self._last_event[rel_path] = now
        return False

    def _handle(self, abs_path) -> None:
        if isinstance(abs_path, bytes):
            abs_path = os.fsdecode(abs_path)
        rel_path = self._rel_path(abs_path)
        if rel_path is None or self._should_ignore(rel_path):
            return
        if self._is_debounced(rel_path):
            return
        logger.debug("[Watcher] Changed: %s", rel_path)
        try:
            self._on_change(rel_path)
        except Exception as exc:
            logger.warning("[Watcher] Refresh callback failed for %s: %s", rel_path, exc)


class WorktreeWatcher:
    """
    Starts and stops a watchdog observer over the repository.

    Usage::

        watcher = WorktreeWatcher("/path/to/repo", on_change=refresh)
        watcher.start()   # non-blocking, observer runs in its own thread
        watcher.stop()
    """

    def __init__(
        self,
        root: str,
        on_change: Callable[[str], None],
        debounce_seconds: float = 0.5,
    ) -> None:
        self._root = os.path.abspath(root)
        self._handler = WorktreeEventHandler(root, on_change, debounce_seconds)
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, self._root, recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("[Watcher] Watching %s", self._root)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("[Watcher] Stopped")
