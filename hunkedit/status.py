"""
File status model — git porcelain codes, display colours and severity.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class StatusCode(str, enum.Enum):
    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UNTRACKED = "?"
    UNMERGED = "U"


class StatusColor(str, enum.Enum):
    MODIFIED = "#FFAA00"
    DELETED = "#FF4444"
    UNTRACKED = "#888888"
    ADDED = "#44FF44"
    RENAMED = "#00AAFF"
    UNMERGED = "#FF00FF"
    DEFAULT = "#FFFFFF"

    # Renamed and copied files share a colour.
    COPIED = "#00AAFF"


# Lowest to highest; a folder takes the highest colour among its children.
SEVERITY_ORDER: tuple[StatusColor, ...] = (
    StatusColor.UNTRACKED,
    StatusColor.MODIFIED,
    StatusColor.ADDED,
    StatusColor.RENAMED,
    StatusColor.UNMERGED,
    StatusColor.DELETED,
)

_STATUS_DISPLAY = {
    StatusCode.MODIFIED: ("Modified", StatusColor.MODIFIED),
    StatusCode.ADDED: ("Added", StatusColor.ADDED),
    StatusCode.DELETED: ("Deleted", StatusColor.DELETED),
    StatusCode.RENAMED: ("Renamed", StatusColor.RENAMED),
    StatusCode.COPIED: ("Copied", StatusColor.COPIED),
    StatusCode.UNTRACKED: ("Untracked", StatusColor.UNTRACKED),
    StatusCode.UNMERGED: ("Conflict", StatusColor.UNMERGED),
}


def severity(color: StatusColor) -> int:
    """Rank of *color* in :data:`SEVERITY_ORDER`; -1 for unranked colours."""
    try:
        return SEVERITY_ORDER.index(color)
    except ValueError:
        return -1


def highest_severity(colors) -> StatusColor:
    """Return the most severe colour in *colors*, DEFAULT when empty."""
    result = StatusColor.DEFAULT
    best = -1
    for color in colors:
        rank = severity(color)
        if rank > best:
            best = rank
            result = color
    return result


@dataclass(frozen=True)
class FileStatus:
    """One changed file as reported by the status provider."""
    path: str
    code: StatusCode
    staged: bool = False

    @property
    def color(self) -> StatusColor:
        return _STATUS_DISPLAY[self.code][1]

    @property
    def status_text(self) -> str:
        return _STATUS_DISPLAY[self.code][0]
