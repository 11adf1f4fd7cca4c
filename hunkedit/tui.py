"""
Textual front end — file tree on the left, diff on the right.

The app owns no diff logic of its own: it renders what the tree, the diff
loader and the edit controller hold, and forwards key presses to them.
"""

from __future__ import annotations

import asyncio
import logging

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Footer, Input, Static

from .config import Config
from .diff.loader import DiffKey, DiffLoader, LoadedDiff
from .diff.modes import DiffMode
from .diff.side_by_side import DiffRow, RowKind
from .diff.unified import LineKind
from .editing.rows import resolve_row
from .editing.session import EditConflictError, EditController
from .git_utils import GitError, GitRepository
from .highlight import Highlighter, Token, TokenCache, detect_language
from .tree import ChangeTree
from .viewport import scroll_window
from .watcher import WorktreeWatcher

logger = logging.getLogger(__name__)

_ROW_STYLES = {
    RowKind.ADDED: ("", "on #143314"),
    RowKind.REMOVED: ("on #3a1414", ""),
    RowKind.MODIFIED: ("on #3a1414", "on #143314"),
    RowKind.UNCHANGED: ("", ""),
}
_LINE_STYLES = {
    LineKind.ADD: "on #143314",
    LineKind.REMOVE: "on #3a1414",
    LineKind.HEADER: "bold cyan",
    LineKind.CONTEXT: "",
}
_SELECTED = "on #444444"
_EDITED = "on #2a3f2a"


class HunkEditApp(App):
    """Inspect working-tree changes and edit diff lines in place."""

    CSS = """
    #status-bar {
        dock: top;
        height: 1;
        background: #1a1a2e;
        color: #e9c46a;
        padding: 0 1;
    }
    #files {
        width: 40;
        border: round #444;
        padding: 0 1;
    }
    #files.active, #diff.active {
        border: round #00aaff;
    }
    #diff {
        width: 1fr;
        border: round #444;
        padding: 0 1;
    }
    #edit-input {
        dock: bottom;
        display: none;
    }
    #edit-input.editing {
        display: block;
    }
    """

    AUTO_FOCUS = None

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("tab", "switch_panel", "Switch panel", priority=True),
        Binding("j,down", "move(1)", "Down", show=False),
        Binding("k,up", "move(-1)", "Up", show=False),
        Binding("enter,space", "toggle_folder", "Fold", show=False),
        Binding("t", "toggle_view", "View"),
        Binding("m", "cycle_mode", "Mode"),
        Binding("r", "refresh", "Refresh"),
        Binding("i", "enter_edit", "Edit"),
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Back"),
    ]

    def __init__(
        self,
        repo: GitRepository,
        config: Config | None = None,
        watch: bool | None = None,
    ) -> None:
        super().__init__()
        self.repo = repo
        self.config = config or Config()
        self.mode = self.config.DIFF_MODE
        self.view = self.config.DIFF_VIEW
        self.compare_branch = self.config.COMPARE_BRANCH
        self.tree = ChangeTree()
        self.loader = DiffLoader(repo)
        self.editor = EditController(repo, repo)
        self.highlighter = Highlighter(
            TokenCache(self.config.HIGHLIGHT_CACHE_SIZE), theme=self.config.THEME,
        )
        self.diff: LoadedDiff | None = None
        self.diff_row = 0
        self.panel = "files"
        self.last_message = ""
        self._watch = self.config.WATCH if watch is None else watch
        self._watcher: WorktreeWatcher | None = None
        # set when the worktree changed while an edit session was open
        self._refresh_pending = False
        self._language = "text"
        self.branch = "HEAD"
        self.editor.on_saved(lambda _path: self.loader.invalidate())

    def compose(self) -> ComposeResult:
        yield Static("", id="status-bar")
        with Horizontal():
            yield Static("", id="files", classes="active")
            with Vertical():
                yield Static("", id="diff")
                yield Input(id="edit-input", disabled=True)
        yield Footer()

    async def on_mount(self) -> None:
        if self.mode is DiffMode.BRANCH and not self.compare_branch:
            self.compare_branch = self.repo.default_branch()
        await self.refresh_status()
        if self._watch:
            self._watcher = WorktreeWatcher(
                self.repo.root,
                on_change=lambda _path: self.call_from_thread(self._schedule_refresh),
                debounce_seconds=self.config.WATCH_DEBOUNCE_SECONDS,
            )
            self._watcher.start()

    def on_unmount(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()

    # ------------------------------------------------------------------
    # Data refresh
    # ------------------------------------------------------------------

    def _schedule_refresh(self) -> None:
        if self.editor.is_open:
            self._refresh_pending = True
            return
        self.run_worker(self.refresh_status(), exclusive=True, group="status")

    async def refresh_status(self) -> None:
        self._refresh_pending = False
        self.branch = await asyncio.to_thread(self.repo.current_branch)
        try:
            files = await self.repo.get_changed_files(self.mode, self.compare_branch)
        except GitError as e:
            self.show_message(str(e), error=True)
            files = []
        self.tree.refresh(files)
        self.loader.invalidate()
        await self.load_diff()

    async def load_diff(self) -> None:
        node = self.tree.selected
        if node is None or node.is_folder:
            self.diff = None
            self.render_all()
            return

        key = DiffKey(node.path, self.mode, self.compare_branch)
        previous = self.diff.key if self.diff is not None else None
        try:
            loaded = await self.loader.load(key)
        except GitError as e:
            self.show_message(str(e), error=True)
            return
        if loaded is None:
            # a newer request superseded this one
            return
        if key != previous:
            self.diff_row = 0
            self.highlighter.cache.clear()
            self._language = detect_language(node.path)
        self.diff = loaded
        self.diff_row = min(self.diff_row, max(len(self.rows) - 1, 0))
        self.render_all()

    @property
    def rows(self) -> list:
        if self.editor.session is not None:
            return self.editor.session.rows
        if self.diff is None:
            return []
        return self.diff.view(self.view)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_switch_panel(self) -> None:
        if self.editor.is_open:
            return
        self.panel = "diff" if self.panel == "files" else "files"
        self.query_one("#files").set_class(self.panel == "files", "active")
        self.query_one("#diff").set_class(self.panel == "diff", "active")

    async def action_move(self, delta: int) -> None:
        if self.editor.is_open:
            self.editor.move(delta)
            self.diff_row = self.editor.session.cursor_row
            self._sync_input()
        elif self.panel == "files":
            self.tree.move(delta)
            await self.load_diff()
            return
        else:
            self.diff_row = min(max(self.diff_row + delta, 0), max(len(self.rows) - 1, 0))
        self.render_all()

    async def action_toggle_folder(self) -> None:
        if self.panel != "files" or self.editor.is_open:
            return
        self.tree.toggle()
        await self.load_diff()

    def action_toggle_view(self) -> None:
        if self.editor.is_open:
            return
        self.view = self.view.toggled()
        self.diff_row = 0
        self.render_all()

    async def action_cycle_mode(self) -> None:
        if self.editor.is_open:
            return
        self.mode = self.mode.next()
        if self.mode is DiffMode.BRANCH and not self.compare_branch:
            self.compare_branch = self.repo.default_branch()
        await self.refresh_status()

    async def action_refresh(self) -> None:
        if not self.editor.is_open:
            await self.refresh_status()

    async def action_enter_edit(self) -> None:
        node = self.tree.selected
        if self.editor.is_open or node is None or node.is_folder or self.diff is None:
            return
        try:
            outcome = await self.editor.enter(
                node.path, self.diff_row, self.view, self.mode, self.compare_branch,
            )
        except GitError as e:
            self.show_message(f"Failed to read file: {e}", error=True)
            return
        if not outcome.ok:
            self.show_message(outcome.message, error=True)
            return
        self.panel = "diff"
        self.query_one("#files").set_class(False, "active")
        self.query_one("#diff").set_class(True, "active")
        self.query_one("#edit-input", Input).add_class("editing")
        self._sync_input()
        self.render_all()

    async def action_save(self) -> None:
        if not self.editor.is_open:
            return
        try:
            outcome = await self.editor.save()
        except EditConflictError as e:
            self._refresh_pending = True
            self.show_message(str(e), error=True)
            return
        except GitError as e:
            self.show_message(f"Failed to save: {e}", error=True)
            return
        self._close_editor()
        self.show_message(outcome.message)
        if outcome.refresh_needed or self._refresh_pending:
            await self.refresh_status()
        else:
            self.render_all()

    async def action_cancel(self) -> None:
        if self.editor.is_open:
            discarded = self.editor.cancel()
            self._close_editor()
            if discarded:
                self.show_message(f"Discarded {discarded} edited line(s)")
            if self._refresh_pending:
                await self.refresh_status()
            else:
                self.render_all()
            return
        self.diff_row = 0
        self.panel = "files"
        self.query_one("#files").set_class(True, "active")
        self.query_one("#diff").set_class(False, "active")
        self.render_all()

    @on(Input.Changed, "#edit-input")
    def _on_edit_changed(self, event: Input.Changed) -> None:
        if self.editor.is_open:
            self.editor.set_buffer(event.value)
            self.render_all()

    def _sync_input(self) -> None:
        session = self.editor.session
        edit_input = self.query_one("#edit-input", Input)
        with edit_input.prevent(Input.Changed):
            edit_input.value = session.active_buffer if session else ""
        edit_input.disabled = session is None or session.current_line is None
        if not edit_input.disabled:
            edit_input.focus()

    def _close_editor(self) -> None:
        edit_input = self.query_one("#edit-input", Input)
        edit_input.remove_class("editing")
        with edit_input.prevent(Input.Changed):
            edit_input.value = ""
        edit_input.disabled = True
        self.set_focus(None)

    def show_message(self, message: str, error: bool = False) -> None:
        self.last_message = message
        if error:
            logger.warning("[UI] %s", message)
        self.notify(message, severity="error" if error else "information")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_all(self) -> None:
        self.query_one("#status-bar", Static).update(self._render_status())
        self.query_one("#files", Static).update(self._render_files())
        self.query_one("#diff", Static).update(self._render_diff())

    def _render_status(self) -> Text:
        target = f" vs {self.compare_branch}" if self.mode is DiffMode.BRANCH else ""
        status = f"{self.branch} | {self.mode.value}{target} | {self.view.value}"
        session = self.editor.session
        if session is not None:
            status += f" | EDIT {session.file_path}"
            if session.is_dirty:
                count = len(session.edits) or 1
                status += f" ({count} modified)"
        return Text(status)

    def _render_files(self) -> Text:
        flat = self.tree.flattened
        if not flat:
            return Text("No changes", style="#888888")
        window = self.tree.visible_window(self.config.MAX_VISIBLE_FILES)
        text = Text()
        for index in range(window.start, window.end):
            node = flat[index]
            icon = ("▾ " if node.expanded else "▸ ") if node.is_folder else "  "
            style = node.color.value
            if index == self.tree.selected_index:
                style += " reverse"
            text.append("  " * node.depth + icon + node.name, style=style)
            text.append("\n")
        return text

    def _render_diff(self) -> Text:
        rows = self.rows
        if not rows:
            return Text("No differences", style="#888888")
        window = scroll_window(len(rows), self.diff_row, self.config.MAX_VISIBLE_ROWS)
        text = Text()
        for index in range(window.start, window.end):
            text.append_text(self._render_row(rows, index))
            text.append("\n")
        return text

    def _render_row(self, rows: list, index: int) -> Text:
        row = rows[index]
        selected = index == self.diff_row
        content, edited = self._display_content(rows, index)
        if isinstance(row, DiffRow):
            left_style, right_style = _ROW_STYLES[row.kind]
            line = Text()
            line.append(_number(row.left_line_number) + " ", style="#666666")
            line.append_text(self._tokens(row.left, left_style, width=60))
            line.append(" │ ", style="#444444")
            line.append(_number(row.right_line_number) + ("*" if edited else " "),
                        style="#666666")
            line.append_text(self._tokens(content, _EDITED if edited else right_style))
        else:
            line = Text()
            line.append(
                f"{_number(row.old_line_number)} {_number(row.new_line_number)}"
                + ("*" if edited else " "),
                style="#666666",
            )
            if row.kind is LineKind.HEADER:
                line.append(row.content, style=_LINE_STYLES[row.kind])
            else:
                line.append_text(self._tokens(
                    content, _EDITED if edited else _LINE_STYLES[row.kind],
                ))
        if selected:
            line.stylize(_SELECTED)
        return line

    def _display_content(self, rows: list, index: int) -> tuple[str, bool]:
        row = rows[index]
        content = row.right if isinstance(row, DiffRow) else row.content
        session = self.editor.session
        if session is None:
            return content, False
        resolved = resolve_row(rows, index)
        if resolved is None or resolved[0] > len(session.baseline_lines):
            return content, False
        shown = self.editor.display_line(resolved[0])
        return shown, shown != session.baseline_at(resolved[0])

    def _tokens(self, code: str, background: str, width: int | None = None) -> Text:
        if width is not None:
            code = code[:width].ljust(width)
        tokens: list[Token] = self.highlighter.highlight(code, self._language)
        text = Text()
        for token in tokens:
            text.append(token.text, style=token.style or "")
        if background:
            text.stylize(background)
        return text


def _number(value: int | None) -> str:
    return f"{value:>4}" if value is not None else "    "
