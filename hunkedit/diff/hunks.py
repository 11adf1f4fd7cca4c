"""
Hunk primitives — a single line scanner over raw unified-diff text.

Both diff views consume the events produced here; neither view is derived
from the other.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Iterator

# "@@ -a,b +c,d @@ optional section heading"
HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

# Git metadata lines that precede the first hunk of a file patch.
_METADATA_PREFIXES = (
    "diff --git",
    "index ",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "similarity index",
    "dissimilarity index",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
    "Binary files",
)

NO_NEWLINE_MARKER = "\\"


class Event(enum.Enum):
    METADATA = "metadata"
    FILE_HEADER = "file_header"
    HUNK_HEADER = "hunk_header"
    BODY = "body"
    NO_NEWLINE = "no_newline"
    STRAY = "stray"


@dataclass
class HunkHeader:
    old_start: int
    old_count: int
    new_start: int
    new_count: int


@dataclass
class ScanItem:
    event: Event
    line: str
    header: HunkHeader | None = None


def parse_hunk_header(line: str) -> HunkHeader | None:
    """Parse ``@@ -a,b +c,d @@``; an omitted count means one line."""
    match = HUNK_HEADER.match(line)
    if match is None:
        return None
    old_count = match.group(2)
    new_count = match.group(4)
    return HunkHeader(
        old_start=int(match.group(1)),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(match.group(3)),
        new_count=int(new_count) if new_count is not None else 1,
    )


def split_lines(text: str) -> list[str]:
    """Split diff text on ``\\n``, dropping the empty tail of a final newline."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


_BODY_MARKERS = ("+", "-", " ", "")


def _starts_file_header(lines: list[str], index: int) -> bool:
    """True when ``lines[index]`` is the ``---`` half of a ``---``/``+++`` pair."""
    return (
        lines[index].startswith("---")
        and index + 1 < len(lines)
        and lines[index + 1].startswith("+++")
    )


def scan(text: str) -> Iterator[ScanItem]:
    """Classify every line of *text* by its structural role.

    A hunk runs from its ``@@`` header to the next ``@@`` header, metadata
    line or ``---``/``+++`` file-header pair. The header's line counts are
    advisory: while they are not used up, every line (``---``/``+++``
    included) is a body line; afterwards ``+``/``-``/space lines still are.
    A malformed ``@@`` line, or any other text outside a hunk, is reported
    as STRAY.
    """
    lines = split_lines(text)
    in_hunk = False
    old_left = 0
    new_left = 0

    for index, line in enumerate(lines):
        if line.startswith(NO_NEWLINE_MARKER):
            yield ScanItem(Event.NO_NEWLINE, line)
            continue

        if line.startswith("@@"):
            header = parse_hunk_header(line)
            if header is None:
                in_hunk = False
                old_left = new_left = 0
                yield ScanItem(Event.STRAY, line)
                continue
            in_hunk = True
            old_left = header.old_count
            new_left = header.new_count
            yield ScanItem(Event.HUNK_HEADER, line, header)
            continue

        if in_hunk and (old_left > 0 or new_left > 0):
            marker = line[:1]
            if marker == "+":
                new_left -= 1
            elif marker == "-":
                old_left -= 1
            else:
                old_left -= 1
                new_left -= 1
            yield ScanItem(Event.BODY, line)
            continue

        if line.startswith(_METADATA_PREFIXES):
            in_hunk = False
            yield ScanItem(Event.METADATA, line)
        elif line.startswith(("---", "+++")) and (
            not in_hunk or _starts_file_header(lines, index)
        ):
            in_hunk = False
            yield ScanItem(Event.FILE_HEADER, line)
        elif in_hunk and line[:1] in _BODY_MARKERS:
            # past the header's counts
            yield ScanItem(Event.BODY, line)
        else:
            in_hunk = False
            yield ScanItem(Event.STRAY, line)


@dataclass
class Hunk:
    """One ``@@`` block: its header and raw body lines (markers kept)."""
    header: HunkHeader
    lines: list[str] = field(default_factory=list)


@dataclass
class FilePatch:
    """All hunks belonging to one file section of a diff."""
    hunks: list[Hunk] = field(default_factory=list)


def split_patches(text: str) -> list[FilePatch]:
    """Group raw diff text into file patches, each with its hunks."""
    patches: list[FilePatch] = []
    patch: FilePatch | None = None
    hunk: Hunk | None = None
    # metadata or a file header after a hunk starts the next file
    boundary = True

    for item in scan(text):
        if item.event in (Event.METADATA, Event.FILE_HEADER):
            if not boundary:
                patch = None
                boundary = True
            hunk = None
            continue
        if item.event is Event.HUNK_HEADER:
            if patch is None:
                patch = FilePatch()
                patches.append(patch)
            hunk = Hunk(header=item.header)
            patch.hunks.append(hunk)
            boundary = False
            continue
        if item.event is Event.BODY and hunk is not None:
            hunk.lines.append(item.line)
            continue
        if item.event is Event.STRAY:
            hunk = None

    return patches
