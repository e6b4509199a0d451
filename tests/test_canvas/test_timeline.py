from __future__ import annotations

import pytest

from storyboard.canvas.timeline import (
    DEFAULT_TOTAL_DURATION,
    StoryStage,
    calculate_story_structure,
    frame_time_info,
)


class TestStoryStructure:
    def test_fewer_than_four_frames(self):
        structure = calculate_story_structure(2, 10)
        assert structure.stage_frames == {
            StoryStage.SETUP: 1,
            StoryStage.BUILD: 1,
            StoryStage.CLIMAX: 0,
            StoryStage.RESOLUTION: 0,
        }

    def test_remainder_goes_to_early_stages(self):
        structure = calculate_story_structure(10, 30)
        assert [structure.frames_in(s) for s in StoryStage] == [3, 3, 2, 2]
        assert sum(structure.stage_frames.values()) == 10

    def test_default_duration(self):
        assert calculate_story_structure(4).total_duration == DEFAULT_TOTAL_DURATION


class TestFrameTimeInfo:
    def test_even_split(self):
        structure = calculate_story_structure(4, 16)
        infos = [frame_time_info(i, structure) for i in range(structure.total_frames)]
        assert [(i.time_start, i.time_end) for i in infos] == [(0, 4), (4, 8), (8, 12), (12, 16)]
        assert [i.stage for i in infos] == list(StoryStage)

    def test_rounding(self):
        info = frame_time_info(1, calculate_story_structure(3, 10))
        assert info.time_start == pytest.approx(3.33)
        assert info.time_end == pytest.approx(6.67)

    def test_progression_within_stage(self):
        structure = calculate_story_structure(10, 30)
        assert [frame_time_info(i, structure).progression for i in range(3)] == [
            "introduce",
            "establish",
            "begin",
        ]

    def test_index_beyond_structure(self):
        info = frame_time_info(7, calculate_story_structure(4, 16))
        assert info.stage == StoryStage.RESOLUTION
        assert info.time_start == 28
