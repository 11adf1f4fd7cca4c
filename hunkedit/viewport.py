"""
Viewport windowing — which slice of a long list is on screen.

Every scrollable list (file tree, unified rows, side-by-side rows) goes
through :func:`scroll_window` so they all scroll the same way.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence, TypeVar

T = TypeVar("T")


class Window(NamedTuple):
    start: int
    end: int

    def slice(self, items: Sequence[T]) -> Sequence[T]:
        return items[self.start:self.end]


def scroll_window(total: int, selected: int, max_visible: int) -> Window:
    """Return the ``[start, end)`` window that keeps *selected* visible.

    The window is centred on the selection where possible and clamped at
    both ends of the list. Lists no longer than *max_visible* are shown
    whole.
    """
    total = max(total, 0)
    max_visible = max(max_visible, 1)
    if total <= max_visible:
        return Window(0, total)

    selected = min(max(selected, 0), total - 1)
    start = max(0, selected - max_visible // 2)
    end = start + max_visible
    if end > total:
        end = total
        start = end - max_visible
    return Window(start, end)
