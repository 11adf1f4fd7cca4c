"""Unified-diff parsing into unified and side-by-side views."""

from .modes import DiffMode, DiffView
from .unified import LineKind, UnifiedLine, parse_unified_diff
from .side_by_side import DiffRow, RowKind, pair_side_by_side
from .loader import DiffKey, DiffLoader, DiffProvider, LoadedDiff

__all__ = [
    "DiffMode", "DiffView",
    "LineKind", "UnifiedLine", "parse_unified_diff",
    "DiffRow", "RowKind", "pair_side_by_side",
    "DiffKey", "DiffLoader", "DiffProvider", "LoadedDiff",
]
