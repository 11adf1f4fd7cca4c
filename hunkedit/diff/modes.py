"""Diff source modes and view modes."""

from __future__ import annotations

import enum


class DiffMode(str, enum.Enum):
    """What the working tree is compared against."""
    UNSTAGED = "unstaged"
    STAGED = "staged"
    BRANCH = "branch"

    def next(self) -> "DiffMode":
        members = list(DiffMode)
        return members[(members.index(self) + 1) % len(members)]


class DiffView(str, enum.Enum):
    UNIFIED = "unified"
    SIDE_BY_SIDE = "side_by_side"

    def toggled(self) -> "DiffView":
        if self is DiffView.UNIFIED:
            return DiffView.SIDE_BY_SIDE
        return DiffView.UNIFIED
