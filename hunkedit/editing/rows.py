"""
Row resolution — map a diff-relative row to an absolute new-file line.
"""

from __future__ import annotations

from typing import Sequence

from ..diff.modes import DiffView
from ..diff.side_by_side import DiffRow, pair_side_by_side
from ..diff.unified import UnifiedLine, parse_unified_diff

ViewRow = UnifiedLine | DiffRow


def build_rows(text: str, view: DiffView) -> list[ViewRow]:
    if view is DiffView.SIDE_BY_SIDE:
        return list(pair_side_by_side(text))
    return list(parse_unified_diff(text))


def resolve_row(rows: Sequence[ViewRow], index: int) -> tuple[int, str] | None:
    """Return ``(line_number, expected_text)`` for row *index*.

    Only rows that exist on the new side resolve: unified ADD/CONTEXT lines
    with a new line number, and side-by-side rows with a right line number.
    """
    if index < 0 or index >= len(rows):
        return None
    row = rows[index]
    if isinstance(row, DiffRow):
        if row.right_line_number is None:
            return None
        return row.right_line_number, row.right
    if row.new_line_number is None:
        return None
    return row.new_line_number, row.content


def expected_lines(rows: Sequence[ViewRow]) -> dict[int, str]:
    """Every new-side line number in *rows* mapped to its diff content."""
    expected: dict[int, str] = {}
    for index in range(len(rows)):
        resolved = resolve_row(rows, index)
        if resolved is not None:
            expected[resolved[0]] = resolved[1]
    return expected
