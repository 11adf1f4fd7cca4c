"""
hunkedit — inspect and edit version-control changes in the terminal.

Public API for library usage::

    from hunkedit import parse_unified_diff, pair_side_by_side

    rows = pair_side_by_side(diff_text)
"""

from .diff import (
    DiffKey, DiffLoader, DiffMode, DiffRow, DiffView, LineKind, LoadedDiff,
    RowKind, UnifiedLine, pair_side_by_side, parse_unified_diff,
)
from .editing import EditConflictError, EditController, EditOutcome, EditState
from .status import FileStatus, StatusCode, StatusColor
from .tree import (
    ChangeTree, ChangeTreeNode, NodeKind, build_change_tree, flatten_tree,
    preserve_expansion_state, toggle_folder,
)
from .viewport import Window, scroll_window

__all__ = [
    "DiffKey", "DiffLoader", "DiffMode", "DiffRow", "DiffView", "LineKind",
    "LoadedDiff", "RowKind", "UnifiedLine", "pair_side_by_side",
    "parse_unified_diff",
    "EditConflictError", "EditController", "EditOutcome", "EditState",
    "FileStatus", "StatusCode", "StatusColor",
    "ChangeTree", "ChangeTreeNode", "NodeKind", "build_change_tree",
    "flatten_tree", "preserve_expansion_state", "toggle_folder",
    "Window", "scroll_window",
]
