"""Tests for viewport windowing."""

import pytest

from hunkedit.viewport import Window, scroll_window


class TestScrollWindow:
    def test_short_list_shown_whole(self):
        assert scroll_window(5, 3, 10) == Window(0, 5)

    def test_empty_list(self):
        assert scroll_window(0, 0, 10) == Window(0, 0)

    def test_centred_on_selection(self):
        assert scroll_window(100, 50, 10) == Window(45, 55)

    def test_clamped_at_start(self):
        assert scroll_window(100, 2, 10) == Window(0, 10)

    def test_clamped_at_end(self):
        assert scroll_window(100, 98, 10) == Window(90, 100)

    def test_out_of_range_selection_is_clamped(self):
        assert scroll_window(100, 500, 10) == Window(90, 100)
        assert scroll_window(100, -3, 10) == Window(0, 10)

    def test_non_positive_max_visible(self):
        assert scroll_window(5, 2, 0) == Window(2, 3)

    @pytest.mark.parametrize("total,max_visible", [(7, 3), (30, 10), (31, 10), (12, 1)])
    def test_selection_always_visible(self, total, max_visible):
        for selected in range(total):
            start, end = scroll_window(total, selected, max_visible)
            assert start <= selected < end
            assert end - start == min(total, max_visible)
            assert 0 <= start and end <= total

    def test_slice(self):
        assert Window(1, 3).slice(["a", "b", "c", "d"]) == ["b", "c"]
