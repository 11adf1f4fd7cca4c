"""
Edit session — edit new-side diff lines in place and save them back safely.

States::

    CLOSED --enter--> OPEN --save--> SAVING --> CLOSED
                        |                |
                        +----cancel------+--(conflict / I/O error)--> OPEN

While OPEN the user moves a cursor over the rows of the active diff view
and edits one row's buffer at a time. Moving commits the buffer into the
edit map keyed by absolute file line. Saving is all-or-nothing: every
edited line is checked against a fresh read of the file and the diff
before a single write.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol

from ..diff.loader import DiffKey, DiffProvider, fetch_diff_text
from ..diff.modes import DiffMode, DiffView
from .rows import ViewRow, build_rows, expected_lines, resolve_row

logger = logging.getLogger(__name__)


class FileProvider(Protocol):
    async def read_file(self, file_path: str) -> str: ...

    async def write_file(self, file_path: str, content: str) -> None: ...


class EditState(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    SAVING = "saving"


class EditConflictError(Exception):
    """Raised when edited lines changed on disk during the session."""

    def __init__(self, file_path: str, line_numbers: list[int]) -> None:
        self.file_path = file_path
        self.line_numbers = line_numbers
        shown = ", ".join(str(n) for n in line_numbers)
        super().__init__(
            f"{file_path} changed on line(s) {shown} since editing began. "
            f"Exit and re-enter edit mode to see the latest changes."
        )


@dataclass
class EditOutcome:
    """Result of an edit transition, suitable for a user-facing message."""
    ok: bool
    message: str = ""
    refresh_needed: bool = False
    lines_written: int = 0


def split_file_lines(content: str) -> list[str]:
    return content.split("\n")


def join_file_lines(lines: list[str]) -> str:
    return "\n".join(lines)


@dataclass
class EditSession:
    """State of one open edit session on one file."""
    file_path: str
    key: DiffKey
    view: DiffView
    rows: list[ViewRow]
    baseline_lines: list[str]
    cursor_row: int = 0
    active_buffer: str = ""
    current_line: int | None = None
    edits: dict[int, str] = field(default_factory=dict)

    def baseline_at(self, line_number: int) -> str:
        return self.baseline_lines[line_number - 1]

    def commit_buffer(self) -> None:
        """Fold the active buffer into :attr:`edits` for the current line.

        A buffer equal to the baseline removes any earlier edit, so
        :attr:`edits` only ever holds lines that really differ.
        """
        if self.current_line is None:
            return
        if self.active_buffer != self.baseline_at(self.current_line):
            self.edits[self.current_line] = self.active_buffer
        else:
            self.edits.pop(self.current_line, None)

    def load_row(self, row: int) -> None:
        """Point the cursor at *row* and load its buffer."""
        self.cursor_row = row
        resolved = resolve_row(self.rows, row)
        if resolved is None or resolved[0] > len(self.baseline_lines):
            self.current_line = None
            self.active_buffer = ""
            return
        line_number = resolved[0]
        self.current_line = line_number
        self.active_buffer = self.edits.get(line_number, self.baseline_at(line_number))

    @property
    def is_dirty(self) -> bool:
        if self.edits:
            return True
        return (
            self.current_line is not None
            and self.active_buffer != self.baseline_at(self.current_line)
        )


class EditController:
    """Owns at most one :class:`EditSession` and drives its transitions."""

    def __init__(
        self,
        diff_provider: DiffProvider,
        file_provider: FileProvider,
    ) -> None:
        self._diffs = diff_provider
        self._files = file_provider
        self._session: EditSession | None = None
        self._state = EditState.CLOSED
        self._entering = False
        self._saved_listeners: list[Callable[[str], None]] = []

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def session(self) -> EditSession | None:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._state is not EditState.CLOSED

    def on_saved(self, listener: Callable[[str], None]) -> None:
        """Register *listener* to be called with the file path after a save."""
        self._saved_listeners.append(listener)

    # ------------------------------------------------------------------
    # CLOSED -> OPEN
    # ------------------------------------------------------------------

    async def enter(
        self,
        file_path: str,
        row: int,
        view: DiffView = DiffView.SIDE_BY_SIDE,
        mode: DiffMode = DiffMode.UNSTAGED,
        compare_target: str | None = None,
    ) -> EditOutcome:
        """Open an edit session on *file_path* at diff row *row*.

        Refused (no state change) when a session is already open, the row
        has no new-side line, or the file no longer matches the diff.
        Provider errors propagate.
        """
        if self.is_open or self._entering:
            return EditOutcome(False, "Finish the current edit session first")

        self._entering = True
        try:
            key = DiffKey(file_path, mode, compare_target)
            text = await fetch_diff_text(self._diffs, key)
            rows = build_rows(text, view)
            resolved = resolve_row(rows, row)
            if resolved is None:
                return EditOutcome(False, "Cannot edit this line")

            line_number, expected = resolved
            baseline = split_file_lines(await self._files.read_file(file_path))
            if line_number > len(baseline) or baseline[line_number - 1] != expected:
                logger.info(
                    "[Edit] Refusing entry on %s:%d, diff is stale",
                    file_path, line_number,
                )
                return EditOutcome(
                    False,
                    "File has been modified since diff was generated. "
                    "Refresh to see latest changes.",
                )
        finally:
            self._entering = False

        session = EditSession(
            file_path=file_path,
            key=key,
            view=view,
            rows=rows,
            baseline_lines=baseline,
        )
        session.load_row(row)
        self._session = session
        self._state = EditState.OPEN
        logger.info("[Edit] Opened %s at line %d", file_path, line_number)
        return EditOutcome(True, f"Editing {file_path}:{line_number}")

    # ------------------------------------------------------------------
    # Within OPEN
    # ------------------------------------------------------------------

    def set_buffer(self, text: str) -> None:
        session = self._require_open()
        if session.current_line is None:
            return
        session.active_buffer = text

    def move(self, delta: int) -> None:
        session = self._require_open()
        self.move_to(session.cursor_row + delta)

    def move_to(self, row: int) -> None:
        """Commit the current buffer, then move the cursor to *row* (clamped)."""
        session = self._require_open()
        session.commit_buffer()
        row = min(max(row, 0), max(len(session.rows) - 1, 0))
        session.load_row(row)

    def display_line(self, line_number: int) -> str:
        """Current text of *line_number* including uncommitted edits."""
        session = self._require_open()
        if line_number == session.current_line:
            return session.active_buffer
        return session.edits.get(line_number, session.baseline_at(line_number))

    # ------------------------------------------------------------------
    # OPEN -> SAVING -> CLOSED
    # ------------------------------------------------------------------

    async def save(self) -> EditOutcome:
        """Write every pending edit, or none of them.

        Raises :class:`EditConflictError` if an edited line changed on
        disk; the session stays open with its edits intact. Provider errors
        propagate and likewise leave the session open.
        """
        session = self._require_open()
        session.commit_buffer()

        if not session.edits:
            self._close()
            return EditOutcome(True, "No changes to save")

        self._state = EditState.SAVING
        try:
            fresh_text = await fetch_diff_text(self._diffs, session.key)
            expected = expected_lines(build_rows(fresh_text, session.view))
            current = split_file_lines(await self._files.read_file(session.file_path))

            conflicts = self._find_conflicts(session, current, expected)
            if conflicts:
                logger.warning(
                    "[Edit] Save aborted for %s, conflicting lines: %s",
                    session.file_path, conflicts,
                )
                raise EditConflictError(session.file_path, conflicts)

            if self._session is not session:
                return EditOutcome(False, "Save cancelled")
            lines = list(session.baseline_lines)
            for line_number, content in session.edits.items():
                lines[line_number - 1] = content
            await self._files.write_file(session.file_path, join_file_lines(lines))
        except BaseException:
            if self._session is session:
                self._state = EditState.OPEN
            raise

        written = len(session.edits)
        file_path = session.file_path
        self._close()
        logger.info("[Edit] Saved %d line(s) to %s", written, file_path)
        for listener in self._saved_listeners:
            listener(file_path)
        return EditOutcome(
            True,
            f"Saved changes to {file_path}",
            refresh_needed=True,
            lines_written=written,
        )

    @staticmethod
    def _find_conflicts(
        session: EditSession,
        current: list[str],
        expected: dict[int, str],
    ) -> list[int]:
        conflicts: list[int] = []
        for line_number in sorted(session.edits):
            baseline = session.baseline_at(line_number)
            if line_number > len(current) or current[line_number - 1] != baseline:
                conflicts.append(line_number)
            elif line_number in expected and expected[line_number] != baseline:
                conflicts.append(line_number)
        return conflicts

    # ------------------------------------------------------------------
    # OPEN -> CLOSED
    # ------------------------------------------------------------------

    def cancel(self) -> int:
        """Discard the session; return how many edited lines were dropped."""
        if self._session is None:
            return 0
        self._session.commit_buffer()
        discarded = len(self._session.edits)
        logger.info(
            "[Edit] Cancelled %s, discarded %d edit(s)",
            self._session.file_path, discarded,
        )
        self._close()
        return discarded

    def _close(self) -> None:
        self._session = None
        self._state = EditState.CLOSED

    def _require_open(self) -> EditSession:
        if self._session is None or self._state is not EditState.OPEN:
            raise RuntimeError("No edit session is open")
        return self._session
