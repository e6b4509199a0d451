from __future__ import annotations

import pytest

from storyboard.canvas.paginator import build_pages, grid_columns, paginate
from storyboard.canvas.symbols import ProjectConfig

from tests.factories import make_frame


class TestPaginate:
    def test_default_page_size(self):
        pages = paginate(list(range(20)))
        assert [len(p) for p in pages] == [9, 9, 2]
        assert pages[2] == [18, 19]

    def test_exact_multiple(self):
        assert [len(p) for p in paginate(list(range(6)), 3)] == [3, 3]

    def test_empty(self):
        assert paginate([]) == []

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            paginate([1, 2], 0)


class TestGridColumns:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, 2), (1, 2), (2, 2), (3, 2), (4, 2), (5, 3), (6, 3), (7, 3), (9, 3)],
    )
    def test_columns(self, count, expected):
        assert grid_columns(count) == expected


class TestBuildPages:
    def test_pages_carry_prompt_and_columns(self):
        frames = [make_frame(number=i) for i in range(1, 11)]
        config = ProjectConfig(frame_count=10, duration=20)
        pages = build_pages(frames, config, "en", page_size=9)

        assert [p.index for p in pages] == [1, 2]
        assert [len(p.frames) for p in pages] == [9, 1]
        assert [p.columns for p in pages] == [3, 2]
        assert "SHOT 1 / SC-01" in pages[0].prompt
        assert "SHOT 9 / SC-09" in pages[0].prompt
        assert "SHOT 10 / SC-10" in pages[1].prompt
        assert "SHOT 1 /" not in pages[1].prompt

    def test_timing_follows_position_across_pages(self):
        frames = [make_frame(number=1), make_frame(number=5)]
        pages = build_pages(frames, ProjectConfig(duration=10, frame_count=2), "en", page_size=1)
        assert "SHOT 2 / SC-05 (Time: 5.0-10.0s, Stage: Build" in pages[1].prompt
