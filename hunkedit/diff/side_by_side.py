"""
Side-by-side pairing — turn each hunk into (old | new) rows.

Consecutive removals are paired with the additions that
immediately follow them, by position only: a removed line and an
unrelated added line at the same run offset show up as one MODIFIED row.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from .hunks import Hunk, split_patches


class RowKind(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"


@dataclass
class DiffRow:
    """One row of the side-by-side view."""
    left: str
    right: str
    left_line_number: int | None
    right_line_number: int | None
    kind: RowKind


def pair_side_by_side(text: str) -> list[DiffRow]:
    """Parse raw unified-diff text into side-by-side :class:`DiffRow` items.

    Every hunk is paired on its own with counters seeded from its header,
    since unified diffs leave gaps between hunks for unchanged regions.
    """
    rows: list[DiffRow] = []
    for patch in split_patches(text):
        for hunk in patch.hunks:
            rows.extend(pair_hunk(hunk))
    return rows


def pair_hunk(hunk: Hunk) -> list[DiffRow]:
    """Pair the body lines of a single hunk."""
    rows: list[DiffRow] = []
    left_line = hunk.header.old_start or 1
    right_line = hunk.header.new_start or 1
    lines = hunk.lines
    i = 0

    while i < len(lines):
        line = lines[i]
        marker = line[:1]

        if marker == "-":
            removals: list[tuple[int, str]] = []
            while i < len(lines) and lines[i].startswith("-"):
                removals.append((left_line, lines[i][1:]))
                left_line += 1
                i += 1
            additions: list[tuple[int, str]] = []
            while i < len(lines) and lines[i].startswith("+"):
                additions.append((right_line, lines[i][1:]))
                right_line += 1
                i += 1
            rows.extend(_pair_runs(removals, additions))
        elif marker == "+":
            rows.append(DiffRow(
                left="", right=line[1:],
                left_line_number=None, right_line_number=right_line,
                kind=RowKind.ADDED,
            ))
            right_line += 1
            i += 1
        else:
            content = line[1:]
            rows.append(DiffRow(
                left=content, right=content,
                left_line_number=left_line, right_line_number=right_line,
                kind=RowKind.UNCHANGED,
            ))
            left_line += 1
            right_line += 1
            i += 1

    return rows


def _pair_runs(
    removals: list[tuple[int, str]],
    additions: list[tuple[int, str]],
) -> list[DiffRow]:
    rows: list[DiffRow] = []
    for k in range(max(len(removals), len(additions))):
        removed = removals[k] if k < len(removals) else None
        added = additions[k] if k < len(additions) else None
        if removed is not None and added is not None:
            rows.append(DiffRow(
                left=removed[1], right=added[1],
                left_line_number=removed[0], right_line_number=added[0],
                kind=RowKind.MODIFIED,
            ))
        elif removed is not None:
            rows.append(DiffRow(
                left=removed[1], right="",
                left_line_number=removed[0], right_line_number=None,
                kind=RowKind.REMOVED,
            ))
        else:
            rows.append(DiffRow(
                left="", right=added[1],
                left_line_number=None, right_line_number=added[0],
                kind=RowKind.ADDED,
            ))
    return rows
