"""故事结构与时间轴：把总时长分配到各分镜，并划分 铺垫/发展/高潮/结局 四个阶段"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_TOTAL_DURATION = 15.0


class StoryStage(str, Enum):
    SETUP = "setup"
    BUILD = "build"
    CLIMAX = "climax"
    RESOLUTION = "resolution"


STAGE_ORDER: tuple[StoryStage, ...] = tuple(StoryStage)

PROGRESSION_INDICATORS: dict[StoryStage, tuple[str, ...]] = {
    StoryStage.SETUP: ("introduce", "establish", "begin", "start"),
    StoryStage.BUILD: ("develop", "escalate", "intensify", "continue"),
    StoryStage.CLIMAX: ("peak", "accelerate", "climax", "turn"),
    StoryStage.RESOLUTION: ("conclude", "resolve", "end", "finish"),
}


@dataclass(frozen=True)
class StoryStructure:
    total_frames: int
    total_duration: float
    stage_frames: dict[StoryStage, int]

    def frames_in(self, stage: StoryStage) -> int:
        return self.stage_frames.get(stage, 0)


@dataclass(frozen=True)
class FrameTimeInfo:
    index: int
    stage: StoryStage
    time_start: float
    time_end: float
    progression: str


def calculate_story_structure(frame_count: int, duration: float | None = None) -> StoryStructure:
    """按帧数分配阶段。

    少于 4 帧时依次给前几个阶段各 1 帧；否则平均分配，余数优先给靠前的阶段。
    """
    total_duration = duration or DEFAULT_TOTAL_DURATION
    frame_count = max(frame_count, 0)

    if frame_count < 4:
        stage_frames = {stage: 1 if i < frame_count else 0 for i, stage in enumerate(STAGE_ORDER)}
    else:
        per_stage, remainder = divmod(frame_count, 4)
        stage_frames = {
            stage: per_stage + (1 if i < remainder else 0) for i, stage in enumerate(STAGE_ORDER)
        }

    return StoryStructure(
        total_frames=frame_count,
        total_duration=float(total_duration),
        stage_frames=stage_frames,
    )


def _locate(index: int, structure: StoryStructure) -> tuple[StoryStage, int]:
    """返回 (阶段, 在阶段内的序号)"""
    offset = 0
    for stage in STAGE_ORDER:
        count = structure.frames_in(stage)
        if index < offset + count:
            return stage, index - offset
        offset += count
    # 超出分配范围的帧归入结局
    return StoryStage.RESOLUTION, max(index - (offset - structure.frames_in(StoryStage.RESOLUTION)), 0)


def frame_time_info(index: int, structure: StoryStructure) -> FrameTimeInfo:
    stage, position = _locate(index, structure)

    total_frames = max(structure.total_frames, 1)
    per_frame = structure.total_duration / total_frames

    indicators = PROGRESSION_INDICATORS[stage]
    stage_count = max(structure.frames_in(stage), 1)
    indicator_index = min(int(position / stage_count * len(indicators)), len(indicators) - 1)

    return FrameTimeInfo(
        index=index,
        stage=stage,
        time_start=round(index * per_frame, 2),
        time_end=round((index + 1) * per_frame, 2),
        progression=indicators[indicator_index],
    )

