"""分镜指令翻译：把帧内符号的几何配置翻译成中英文镜头指令。

纯函数，无随机性、无外部调用；相同输入总是得到逐字节相同的输出。
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from storyboard.canvas.geometry import (
    area_percent,
    compass_direction,
    intensity_bucket,
    intensity_level,
    position_zone,
)
from storyboard.canvas.labels import (
    ACTION_VERBS,
    ARROW_TRAJECTORIES,
    CAMERA_LABELS,
    COMPASS_LABELS,
    EMOTION_LABELS,
    INTENSITY_ADJECTIVES,
    PROGRESSION_LABELS,
    SPEED_LABELS,
    STAGE_LABELS,
    TRAJECTORY_LABELS,
    label,
    template,
    zone_label,
)
from storyboard.canvas.symbols import (
    ActionIcon,
    CameraIcon,
    DialogueIcon,
    EmotionIcon,
    Frame,
    ProjectConfig,
    ReferenceIcon,
    Symbol,
    SymbolCategory,
    parse_icon,
)
from storyboard.canvas.timeline import StoryStructure, calculate_story_structure, frame_time_info


class DirectiveKind(str, Enum):
    """指令片段类型；定义顺序即执行行中的输出顺序"""

    ACTION = "action"
    SPEED = "speed"
    DIRECTION = "direction"
    CAMERA = "camera"
    DIALOGUE = "dialogue"
    EMOTION = "emotion"
    REFERENCE = "reference"


EXECUTION_ORDER: tuple[DirectiveKind, ...] = tuple(DirectiveKind)


@dataclass(frozen=True)
class Fragment:
    kind: DirectiveKind
    text: str
    symbol_id: str


def _camera(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    icon = parse_icon(symbol.category, symbol.icon)
    if not isinstance(icon, CameraIcon):
        return []
    text = template("camera", language).format(operation=label(CAMERA_LABELS, icon, language))
    return [Fragment(DirectiveKind.CAMERA, text, symbol.id)]


def _speed(symbol: Symbol, language: str) -> Fragment:
    bucket = intensity_bucket(area_percent(symbol.width, symbol.height))
    text = template("speed", language).format(speed=label(SPEED_LABELS, bucket, language))
    return Fragment(DirectiveKind.SPEED, text, symbol.id)


def _action(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    icon = parse_icon(symbol.category, symbol.icon)
    if not isinstance(icon, ActionIcon):
        return []

    zone = zone_label(position_zone(symbol.x, symbol.y), language)
    direction = label(COMPASS_LABELS, compass_direction(symbol.rotation), language)
    verb = label(ACTION_VERBS, icon, language)

    if icon.is_arrow:
        text = template("arrow_action", language).format(
            verb=verb,
            zone=zone,
            direction=direction,
            trajectory=label(TRAJECTORY_LABELS, ARROW_TRAJECTORIES[icon], language),
        )
        return [Fragment(DirectiveKind.ACTION, text, symbol.id), _speed(symbol, language)]

    fragments = [
        Fragment(DirectiveKind.ACTION, template("verb_action", language).format(verb=verb, zone=zone), symbol.id),
        _speed(symbol, language),
    ]
    # 旋转过的动作符号额外给出朝向
    if symbol.rotation:
        facing = template("facing", language).format(direction=direction)
        fragments.append(Fragment(DirectiveKind.DIRECTION, facing, symbol.id))
    return fragments


def _dialogue(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    icon = parse_icon(symbol.category, symbol.icon)
    if not isinstance(icon, DialogueIcon) or not symbol.text:
        return []
    text = template("dialogue", language).format(text=symbol.text)
    return [Fragment(DirectiveKind.DIALOGUE, text, symbol.id)]


def _emotion(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    icon = parse_icon(symbol.category, symbol.icon)
    if not isinstance(icon, EmotionIcon):
        return []
    level = intensity_level(intensity_bucket(area_percent(symbol.width, symbol.height)))
    text = template("emotion", language).format(
        adjective=label(INTENSITY_ADJECTIVES, level, language),
        emotion=label(EMOTION_LABELS, icon, language),
    )
    return [Fragment(DirectiveKind.EMOTION, text, symbol.id)]


def _reference(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    icon = parse_icon(symbol.category, symbol.icon)
    if not isinstance(icon, ReferenceIcon):
        return []
    zone = zone_label(position_zone(symbol.x, symbol.y), language)
    name = "reference_consistent" if config.has_reference else "reference_placement"
    return [Fragment(DirectiveKind.REFERENCE, template(name, language).format(zone=zone), symbol.id)]


def _custom(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    # 自定义图标没有可翻译的语义
    return []


SymbolTranslator = Callable[[Symbol, ProjectConfig, str], list[Fragment]]

_TRANSLATORS: dict[SymbolCategory, SymbolTranslator] = {
    SymbolCategory.CAMERA: _camera,
    SymbolCategory.ACTION: _action,
    SymbolCategory.DIALOGUE: _dialogue,
    SymbolCategory.EMOTION: _emotion,
    SymbolCategory.REFERENCE: _reference,
    SymbolCategory.CUSTOM: _custom,
}

if set(_TRANSLATORS) != set(SymbolCategory):
    raise RuntimeError("every symbol category needs a translator")


def symbol_fragments(symbol: Symbol, config: ProjectConfig, language: str) -> list[Fragment]:
    """单个符号的指令片段；描述文字附加在第一个（主）片段后"""
    fragments = _TRANSLATORS[symbol.category](symbol, config, language)
    if fragments and symbol.description:
        primary = fragments[0]
        suffix = template("description", language).format(text=symbol.description)
        fragments[0] = Fragment(primary.kind, primary.text + suffix, primary.symbol_id)
    return fragments


def frame_fragments(frame: Frame, config: ProjectConfig, language: str) -> list[Fragment]:
    """帧内全部片段，按固定类型顺序排列；同类型内保持符号插入顺序"""
    fragments: list[Fragment] = []
    for symbol in frame.symbols:
        fragments.extend(symbol_fragments(symbol, config, language))
    rank = {kind: i for i, kind in enumerate(EXECUTION_ORDER)}
    return sorted(fragments, key=lambda f: rank[f.kind])


def execution_line(fragments: Sequence[Fragment], language: str) -> str:
    texts = [f.text for f in fragments if f.text]
    if not texts:
        texts = [template("fallback", language)]
    return template("execution", language).format(directives=template("separator", language).join(texts))


def translate(
    frame: Frame,
    config: ProjectConfig,
    language: str = "en",
    *,
    index: int | None = None,
    narrative: str | None = None,
    structure: StoryStructure | None = None,
) -> str:
    """把一帧翻译为镜头指令文本（标题、剧情、执行三行）。

    Args:
        frame: 分镜帧
        config: 项目配置快照
        language: ``en`` 或 ``zh``
        index: 镜头在序列中的位置（从 1 开始），默认取帧编号；时间段与阶段按它计算，帧编号只用于 SC 标签
        narrative: 覆盖帧自带的剧情文字
        structure: 预先计算的故事结构，默认按项目帧数与时长计算
    """
    shot_index = index if index is not None else frame.number
    structure = structure or calculate_story_structure(config.frame_count, config.duration)
    timing = frame_time_info(shot_index - 1, structure)

    header = template("shot_header", language).format(
        index=shot_index,
        number=frame.number,
        start=timing.time_start,
        end=timing.time_end,
        stage=label(STAGE_LABELS, timing.stage, language),
        progression=label(PROGRESSION_LABELS, timing.progression, language),
    )
    text = narrative if narrative is not None else frame.narrative(language)
    lines = [
        header,
        template("script", language).format(text=text),
        execution_line(frame_fragments(frame, config, language), language),
    ]
    return "\n".join(lines)


def build_export_prompt(
    frames: Sequence[Frame], config: ProjectConfig, language: str = "en", *, start: int = 1
) -> str:
    """导出用的完整提示词：全局设定 + 镜头序列。start 为第一帧的镜头序号（分页导出时使用）"""
    lines = [
        template("prompt_title", language),
        "",
        template("global_context", language),
        template("style", language).format(style=config.style_label(language)),
        template("aspect_ratio", language).format(ratio=config.aspect_ratio.value),
        template("duration", language).format(duration=config.duration),
    ]
    if config.has_reference:
        lines.append(template("reference_subject", language))

    lines.extend(["", template("shot_sequence", language), ""])

    structure = calculate_story_structure(config.frame_count, config.duration)
    for position, frame in enumerate(frames, start=start):
        lines.append(translate(frame, config, language, index=position, structure=structure))
        lines.append(template("shot_divider", language))

    return "\n".join(lines)
