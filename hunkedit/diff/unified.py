"""
Unified-diff parser — classify each diff line and number it on both sides.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from .hunks import Event, scan

logger = logging.getLogger(__name__)


class LineKind(str, enum.Enum):
    ADD = "add"
    REMOVE = "remove"
    CONTEXT = "context"
    HEADER = "header"


@dataclass
class UnifiedLine:
    """One line of the single-column view, diff marker stripped."""
    content: str
    kind: LineKind
    old_line_number: int | None = None
    new_line_number: int | None = None


def parse_unified_diff(text: str) -> list[UnifiedLine]:
    """Parse raw unified-diff text into numbered :class:`UnifiedLine` items.

    File metadata (``diff --git``, ``index``, rename and mode notices) and
    ``\\ No newline at end of file`` markers are dropped. ``---``/``+++``
    file headers and ``@@`` hunk headers are HEADER lines; a hunk header
    resets both counters.

    The parser never raises: a line it cannot place (a malformed ``@@``
    header, or text outside any hunk) becomes a CONTEXT line with no line
    numbers, and parsing continues.
    """
    result: list[UnifiedLine] = []
    old_line = 0
    new_line = 0

    for item in scan(text):
        line = item.line
        if item.event in (Event.METADATA, Event.NO_NEWLINE):
            continue
        if item.event is Event.FILE_HEADER:
            result.append(UnifiedLine(line, LineKind.HEADER))
        elif item.event is Event.HUNK_HEADER:
            old_line = item.header.old_start
            new_line = item.header.new_start
            result.append(UnifiedLine(line, LineKind.HEADER))
        elif item.event is Event.STRAY:
            logger.debug("[DiffParse] Unplaced line kept as context: %r", line[:80])
            result.append(UnifiedLine(line, LineKind.CONTEXT))
        elif line.startswith("+"):
            result.append(UnifiedLine(
                line[1:], LineKind.ADD, new_line_number=new_line,
            ))
            new_line += 1
        elif line.startswith("-"):
            result.append(UnifiedLine(
                line[1:], LineKind.REMOVE, old_line_number=old_line,
            ))
            old_line += 1
        else:
            result.append(UnifiedLine(
                line[1:], LineKind.CONTEXT,
                old_line_number=old_line, new_line_number=new_line,
            ))
            old_line += 1
            new_line += 1

    return result
