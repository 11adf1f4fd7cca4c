"""
Diff loader — fetch, parse and cache the diff for the selected file.

The last parsed result is kept together with the key it was built for and
is reused until the key changes. Each request takes a generation number;
a fetch that finishes after a newer request has started is dropped, so a
slow response can never overwrite a newer one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .modes import DiffMode, DiffView
from .side_by_side import DiffRow, pair_side_by_side
from .unified import UnifiedLine, parse_unified_diff

logger = logging.getLogger(__name__)


class DiffProvider(Protocol):
    async def get_diff(
        self, file_path: str, mode: DiffMode, compare_target: str | None = None,
    ) -> str:
        """Raw unified diff for *file_path*; empty string when unchanged."""


@dataclass(frozen=True)
class DiffKey:
    file_path: str
    mode: DiffMode = DiffMode.UNSTAGED
    compare_target: str | None = None


@dataclass
class LoadedDiff:
    """Raw diff text and both parsed views of it."""
    key: DiffKey
    text: str
    lines: list[UnifiedLine] = field(default_factory=list)
    rows: list[DiffRow] = field(default_factory=list)

    @classmethod
    def from_text(cls, key: DiffKey, text: str) -> "LoadedDiff":
        return cls(
            key=key,
            text=text,
            lines=parse_unified_diff(text),
            rows=pair_side_by_side(text),
        )

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    def view(self, view: DiffView) -> list:
        return self.rows if view is DiffView.SIDE_BY_SIDE else self.lines


async def fetch_diff_text(
    provider: DiffProvider, key: DiffKey,
) -> str:
    """Ask *provider* for the diff of *key*; branch mode needs a target."""
    if key.mode is DiffMode.BRANCH and not key.compare_target:
        return ""
    return await provider.get_diff(key.file_path, key.mode, key.compare_target)


class DiffLoader:
    """Cache of the most recent diff, with stale responses discarded."""

    def __init__(self, provider: DiffProvider) -> None:
        self._provider = provider
        self._generation = 0
        self._current: LoadedDiff | None = None

    @property
    def current(self) -> LoadedDiff | None:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    async def load(self, key: DiffKey, force: bool = False) -> LoadedDiff | None:
        """Return the parsed diff for *key*.

        Returns ``None`` when a newer :meth:`load` (or :meth:`invalidate`)
        happened while this one was waiting on the provider. Provider errors
        propagate to the caller.
        """
        self._generation += 1
        generation = self._generation

        if not force and self._current is not None and self._current.key == key:
            return self._current

        text = await fetch_diff_text(self._provider, key)

        if generation != self._generation:
            logger.debug(
                "[DiffLoader] Dropping stale diff for %s (gen %d < %d)",
                key.file_path, generation, self._generation,
            )
            return None

        self._current = LoadedDiff.from_text(key, text)
        logger.debug(
            "[DiffLoader] Loaded %s (%s): %d lines, %d rows",
            key.file_path, key.mode.value,
            len(self._current.lines), len(self._current.rows),
        )
        return self._current

    def invalidate(self) -> None:
        """Forget the cached diff and supersede any in-flight load."""
        self._generation += 1
        self._current = None
