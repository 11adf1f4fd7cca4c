"""Tests for the edit session: entry, navigation, save and cancel."""

import asyncio

import pytest

from hunkedit.diff.modes import DiffMode, DiffView
from hunkedit.editing import (
    EditConflictError, EditController, EditState,
)
from hunkedit.git_utils import GitError

ORIGINAL = "alpha\nbeta\ngamma\ndelta\n"

# Old side had "BETA" on line 2.
DIFF = "\n".join([
    "diff --git a/app.txt b/app.txt",
    "--- a/app.txt",
    "+++ b/app.txt",
    "@@ -1,4 +1,4 @@",
    " alpha",
    "-BETA",
    "+beta",
    " gamma",
    " delta",
]) + "\n"

STALE_MSG = (
    "File has been modified since diff was generated. "
    "Refresh to see latest changes."
)


class FakeRepo:
    """In-memory diff and file provider."""

    def __init__(self):
        self.files = {"app.txt": ORIGINAL}
        self.diffs = {"app.txt": DIFF}
        self.writes = []
        self.write_error = None
        self.gate = None

    async def get_diff(self, file_path, mode, compare_target=None):
        if self.gate is not None:
            await self.gate.wait()
        return self.diffs.get(file_path, "")

    async def read_file(self, file_path):
        return self.files[file_path]

    async def write_file(self, file_path, content):
        if self.write_error is not None:
            raise self.write_error
        self.writes.append((file_path, content))
        self.files[file_path] = content


@pytest.fixture
def repo():
    return FakeRepo()


@pytest.fixture
def controller(repo):
    return EditController(repo, repo)


def _enter(controller, row, view=DiffView.SIDE_BY_SIDE, **kwargs):
    return asyncio.run(controller.enter("app.txt", row, view=view, **kwargs))


class TestEnter:
    def test_enter_on_modified_row(self, controller):
        outcome = _enter(controller, 1)

        assert outcome.ok
        assert outcome.message == "Editing app.txt:2"
        assert controller.state is EditState.OPEN
        assert controller.session.current_line == 2
        assert controller.session.active_buffer == "beta"

    def test_enter_on_unified_context_line(self, controller):
        # row 0 is the @@ header, row 1 is " alpha"
        outcome = _enter(controller, 1, view=DiffView.UNIFIED)

        assert outcome.ok
        assert controller.session.current_line == 1

    def test_removed_line_cannot_be_edited(self, controller):
        outcome = _enter(controller, 2, view=DiffView.UNIFIED)

        assert not outcome.ok
        assert outcome.message == "Cannot edit this line"
        assert controller.state is EditState.CLOSED
        assert controller.session is None

    def test_header_row_cannot_be_edited(self, controller):
        outcome = _enter(controller, 0, view=DiffView.UNIFIED)

        assert outcome.message == "Cannot edit this line"

    def test_out_of_range_row(self, controller):
        outcome = _enter(controller, 99)

        assert outcome.message == "Cannot edit this line"

    def test_stale_diff_refused(self, controller, repo):
        repo.files["app.txt"] = "alpha\nchanged\ngamma\ndelta\n"

        outcome = _enter(controller, 1)

        assert not outcome.ok
        assert outcome.message == STALE_MSG
        assert controller.state is EditState.CLOSED

    def test_line_beyond_end_of_file_is_stale(self, controller, repo):
        repo.files["app.txt"] = "alpha\n"

        outcome = _enter(controller, 3)

        assert outcome.message == STALE_MSG

    def test_branch_mode_without_target(self, controller):
        outcome = _enter(controller, 1, mode=DiffMode.BRANCH)

        assert outcome.message == "Cannot edit this line"

    def test_second_entry_refused_while_open(self, controller):
        _enter(controller, 1)
        outcome = _enter(controller, 2)

        assert not outcome.ok
        assert outcome.message == "Finish the current edit session first"
        assert controller.session.current_line == 2

    def test_concurrent_entry_refused(self, controller, repo):
        async def scenario():
            repo.gate = asyncio.Event()
            first = asyncio.create_task(controller.enter("app.txt", 1))
            await asyncio.sleep(0)
            second = await controller.enter("app.txt", 2)
            repo.gate.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert first.ok
        assert not second.ok
        assert second.message == "Finish the current edit session first"

    def test_provider_error_propagates(self, controller, repo):
        del repo.files["app.txt"]

        with pytest.raises(KeyError):
            _enter(controller, 1)
        assert controller.state is EditState.CLOSED


class TestNavigation:
    def test_moving_commits_the_buffer(self, controller):
        _enter(controller, 1)
        controller.set_buffer("beta!")
        controller.move(1)

        session = controller.session
        assert session.edits == {2: "beta!"}
        assert session.current_line == 3
        assert session.active_buffer == "gamma"

        controller.move(-1)
        assert session.active_buffer == "beta!"

    def test_restoring_baseline_drops_the_edit(self, controller):
        _enter(controller, 1)
        controller.set_buffer("beta!")
        controller.move(1)
        controller.move(-1)
        controller.set_buffer("beta")
        controller.move(1)

        assert controller.session.edits == {}
        assert not controller.session.is_dirty

    def test_move_is_clamped(self, controller):
        _enter(controller, 1)

        controller.move(100)
        assert controller.session.cursor_row == 3
        controller.move(-100)
        assert controller.session.cursor_row == 0

    def test_non_editable_row_has_no_buffer(self, controller):
        _enter(controller, 1, view=DiffView.UNIFIED)
        controller.move(1)  # onto the removed line

        session = controller.session
        assert session.current_line is None
        controller.set_buffer("ignored")
        assert session.active_buffer == ""

    def test_display_line_includes_pending_edits(self, controller):
        _enter(controller, 1)
        controller.set_buffer("typing")

        assert controller.display_line(2) == "typing"
        assert controller.display_line(3) == "gamma"

    def test_operations_need_an_open_session(self, controller):
        with pytest.raises(RuntimeError):
            controller.set_buffer("x")
        with pytest.raises(RuntimeError):
            controller.move(1)


class TestSave:
    def test_no_op_round_trip_writes_nothing(self, controller, repo):
        _enter(controller, 0)
        controller.move(1)
        controller.move(1)
        controller.move(-2)

        outcome = asyncio.run(controller.save())

        assert outcome.ok
        assert outcome.message == "No changes to save"
        assert repo.writes == []
        assert repo.files["app.txt"] == ORIGINAL
        assert controller.state is EditState.CLOSED

    def test_save_writes_only_edited_lines(self, controller, repo):
        saved = []
        controller.on_saved(saved.append)
        _enter(controller, 1)
        controller.set_buffer("BETA")
        controller.move(2)
        controller.set_buffer("DELTA")

        outcome = asyncio.run(controller.save())

        assert outcome.ok
        assert outcome.message == "Saved changes to app.txt"
        assert outcome.refresh_needed
        assert outcome.lines_written == 2
        assert repo.files["app.txt"] == "alpha\nBETA\ngamma\nDELTA\n"
        assert len(repo.writes) == 1
        assert saved == ["app.txt"]
        assert controller.state is EditState.CLOSED

    def test_edits_are_applied_to_the_entry_snapshot(self, controller, repo):
        _enter(controller, 1)
        controller.set_buffer("BETA")
        repo.files["app.txt"] = "alpha\nbeta\ngamma\nexternal\n"

        asyncio.run(controller.save())

        assert repo.files["app.txt"] == "alpha\nBETA\ngamma\ndelta\n"

    def test_conflict_on_disk_aborts_whole_save(self, controller, repo):
        _enter(controller, 1)
        controller.set_buffer("BETA")
        controller.move(1)
        controller.set_buffer("GAMMA")
        repo.files["app.txt"] = "alpha\nsomeone else\ngamma\ndelta\n"

        with pytest.raises(EditConflictError) as exc_info:
            asyncio.run(controller.save())

        assert exc_info.value.line_numbers == [2]
        assert "re-enter edit mode" in str(exc_info.value)
        assert repo.writes == []
        assert controller.state is EditState.OPEN
        assert controller.session.edits == {2: "BETA", 3: "GAMMA"}

    def test_conflict_against_fresh_diff(self, controller, repo):
        _enter(controller, 1)
        controller.set_buffer("BETA")
        repo.diffs["app.txt"] = DIFF.replace("+beta", "+other")

        with pytest.raises(EditConflictError):
            asyncio.run(controller.save())
        assert repo.writes == []

    def test_write_failure_keeps_session_open(self, controller, repo):
        _enter(controller, 1)
        controller.set_buffer("BETA")
        repo.write_error = GitError("disk full")

        with pytest.raises(GitError):
            asyncio.run(controller.save())

        assert controller.state is EditState.OPEN
        assert controller.session.edits == {2: "BETA"}
        assert repo.files["app.txt"] == ORIGINAL

        repo.write_error = None
        outcome = asyncio.run(controller.save())
        assert outcome.ok
        assert repo.files["app.txt"] == "alpha\nBETA\ngamma\ndelta\n"

    def test_cancel_during_save_skips_the_write(self, controller, repo):
        _enter(controller, 1)
        controller.set_buffer("BETA")

        async def scenario():
            repo.gate = asyncio.Event()
            task = asyncio.create_task(controller.save())
            await asyncio.sleep(0)
            assert controller.state is EditState.SAVING
            controller.cancel()
            repo.gate.set()
            return await task

        outcome = asyncio.run(scenario())

        assert not outcome.ok
        assert outcome.message == "Save cancelled"
        assert repo.writes == []
        assert controller.state is EditState.CLOSED


class TestCancel:
    def test_cancel_reports_discarded_edits(self, controller, repo):
        _enter(controller, 1)
        controller.set_buffer("BETA")

        assert controller.cancel() == 1
        assert controller.state is EditState.CLOSED
        assert repo.writes == []

    def test_cancel_without_session(self, controller):
        assert controller.cancel() == 0

    def test_enter_again_after_cancel(self, controller):
        _enter(controller, 1)
        controller.cancel()

        assert _enter(controller, 2).ok
