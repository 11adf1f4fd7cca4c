"""In-place editing of diff lines with optimistic-concurrency saves."""

from .rows import build_rows, expected_lines, resolve_row
from .session import (
    EditConflictError, EditController, EditOutcome, EditSession, EditState,
    FileProvider,
)

__all__ = [
    "build_rows", "expected_lines", "resolve_row",
    "EditConflictError", "EditController", "EditOutcome", "EditSession",
    "EditState", "FileProvider",
]
