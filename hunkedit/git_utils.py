"""
Git integration — diff text, file contents and change status for one repo.

All git calls are plain subprocesses; the async methods run them in a
worker thread so the UI loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess

from .diff.modes import DiffMode
from .status import FileStatus, StatusCode

logger = logging.getLogger(__name__)

_CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


class GitError(RuntimeError):
    """A git command, or a file read/write inside the repository, failed."""


def _run_git(
    args: list[str], cwd: str, ok_codes: tuple[int, ...] = (0,),
) -> tuple[bool, str]:
    """Run ``git <args>`` in *cwd* and return ``(success, output)``.

    On success *output* is stdout exactly as git wrote it; on failure it is
    the trimmed stderr (or the OS error).
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            check=False,
        )
    except OSError as e:
        return False, str(e)
    if result.returncode in ok_codes:
        return True, result.stdout.decode("utf-8", errors="replace")
    return False, result.stderr.decode("utf-8", errors="replace").strip()


def parse_porcelain(output: str) -> list[FileStatus]:
    """Parse ``git status --porcelain -z`` output.

    Index status wins over the worktree status; a file counts as staged
    when its index column is set. Rename and copy entries carry their
    source path in the following NUL field, which is skipped.
    """
    files: list[FileStatus] = []
    entries = output.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue
        xy, path = entry[:2], entry[3:]
        index_code, work_code = xy[0], xy[1]
        if index_code in "RC":
            i += 1

        if xy == "??":
            files.append(FileStatus(path, StatusCode.UNTRACKED, staged=False))
        elif xy in _CONFLICT_CODES:
            files.append(FileStatus(path, StatusCode.UNMERGED, staged=False))
        elif index_code not in (" ", "?", "!"):
            files.append(FileStatus(path, _status_code(index_code), staged=True))
        elif work_code != " ":
            files.append(FileStatus(path, _status_code(work_code), staged=False))
    return files


def parse_name_status(output: str) -> list[FileStatus]:
    """Parse ``git diff --name-status -z`` output (branch comparisons)."""
    files: list[FileStatus] = []
    entries = output.split("\0")
    i = 0
    while i + 1 < len(entries):
        status = entries[i]
        path = entries[i + 1]
        i += 2
        if not status:
            continue
        if status[0] in "RC":
            # source path first, destination second
            if i < len(entries):
                path = entries[i]
            i += 1
        files.append(FileStatus(path, _status_code(status[0]), staged=False))
    return files


def _status_code(letter: str) -> StatusCode:
    try:
        return StatusCode(letter)
    except ValueError:
        # type changes and anything unknown show as modifications
        return StatusCode.MODIFIED


class GitRepository:
    """Diff, file and status provider backed by the ``git`` CLI."""

    def __init__(self, root: str = ".") -> None:
        self.root = os.path.abspath(root)

    def _git(self, *args: str, ok_codes: tuple[int, ...] = (0,)) -> str:
        ok, output = _run_git(list(args), self.root, ok_codes)
        if not ok:
            raise GitError(f"git {' '.join(args)} failed: {output}")
        return output

    async def _git_async(self, *args: str, ok_codes: tuple[int, ...] = (0,)) -> str:
        return await asyncio.to_thread(self._git, *args, ok_codes=ok_codes)

    def _abs(self, file_path: str) -> str:
        return os.path.join(self.root, file_path)

    # ------------------------------------------------------------------
    # Repository info
    # ------------------------------------------------------------------

    def is_repo(self) -> bool:
        ok, _ = _run_git(["rev-parse", "--is-inside-work-tree"], self.root)
        return ok

    def current_branch(self) -> str:
        """Name of the checked-out branch, or ``"HEAD"`` when detached."""
        ok, output = _run_git(["rev-parse", "--abbrev-ref", "HEAD"], self.root)
        return output.strip() if ok else "HEAD"

    def branch_exists(self, branch: str) -> bool:
        ok, _ = _run_git(
            ["rev-parse", "--verify", "--quiet", f"{branch}^{{commit}}"], self.root,
        )
        return ok

    def default_branch(self) -> str | None:
        """``main`` if it exists, else ``master``, else None."""
        for candidate in ("main", "master"):
            if self.branch_exists(candidate):
                return candidate
        return None

    # ------------------------------------------------------------------
    # Diff provider
    # ------------------------------------------------------------------

    async def get_diff(
        self, file_path: str, mode: DiffMode, compare_target: str | None = None,
    ) -> str:
        """Raw unified diff for *file_path*; empty string when unchanged.

        Untracked files in unstaged mode are diffed against ``/dev/null`` so
        they show up as pure additions.
        """
        base = ["diff", "--no-color", "--no-ext-diff"]
        if mode is DiffMode.STAGED:
            return await self._git_async(*base, "--cached", "--", file_path)
        if mode is DiffMode.BRANCH:
            if not compare_target:
                return ""
            if not await asyncio.to_thread(self.branch_exists, compare_target):
                raise GitError(
                    f'Branch "{compare_target}" does not exist in "{self.root}"'
                )
            return await self._git_async(*base, compare_target, "--", file_path)

        text = await self._git_async(*base, "--", file_path)
        if not text and await self._is_untracked(file_path):
            text = await self._git_async(
                *base, "--no-index", "--", os.devnull, file_path, ok_codes=(0, 1),
            )
        return text

    async def _is_untracked(self, file_path: str) -> bool:
        if not os.path.isfile(self._abs(file_path)):
            return False
        ok, _ = await asyncio.to_thread(
            _run_git, ["ls-files", "--error-unmatch", "--", file_path], self.root,
        )
        return not ok

    # ------------------------------------------------------------------
    # Change-status provider
    # ------------------------------------------------------------------

    async def get_changed_files(
        self, mode: DiffMode = DiffMode.UNSTAGED, compare_target: str | None = None,
    ) -> list[FileStatus]:
        if mode is DiffMode.BRANCH:
            if not compare_target:
                return []
            output = await self._git_async(
                "diff", "--name-status", "-z", compare_target,
            )
            return parse_name_status(output)
        output = await self._git_async(
            "status", "--porcelain", "-z", "--untracked-files=all",
        )
        files = parse_porcelain(output)
        if mode is DiffMode.STAGED:
            files = [f for f in files if f.staged]
        return files

    # ------------------------------------------------------------------
    # File provider
    # ------------------------------------------------------------------

    async def read_file(self, file_path: str) -> str:
        return await asyncio.to_thread(self._read, file_path)

    async def write_file(self, file_path: str, content: str) -> None:
        await asyncio.to_thread(self._safe_write, file_path, content)

    def _read(self, file_path: str) -> str:
        try:
            # newline="" keeps CRLF endings byte-for-byte
            with open(self._abs(file_path), "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise GitError(f"Cannot read {file_path}: {e}") from e

    def _safe_write(self, file_path: str, content: str) -> None:
        """Write *content* atomically via temp file + rename."""
        abs_path = self._abs(file_path)
        tmp_path = abs_path + ".hunkedit_tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            if os.path.exists(abs_path):
                shutil.copymode(abs_path, tmp_path)
            os.replace(tmp_path, abs_path)
        except OSError as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise GitError(f"Cannot write {file_path}: {e}") from e
        logger.debug("[Git] Wrote %s (%d bytes)", file_path, len(content))
