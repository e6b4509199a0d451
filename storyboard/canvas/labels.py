"""指令生成使用的中英文对照词表。

所有表都以闭合枚举为键，并在导入时检查是否覆盖了全部成员。
"""
from __future__ import annotations

from enum import Enum
from typing import Mapping, TypeVar

from storyboard.canvas.geometry import Compass, Intensity, IntensityLevel
from storyboard.canvas.symbols import ActionIcon, CameraIcon, EmotionIcon
from storyboard.canvas.timeline import PROGRESSION_INDICATORS, StoryStage

LANGUAGES: tuple[str, ...] = ("en", "zh")

E = TypeVar("E", bound=Enum)
Bilingual = Mapping[str, str]


def _require_complete(table: Mapping[E, Bilingual], enum_cls: type[E]) -> Mapping[E, Bilingual]:
    missing = [m for m in enum_cls if m not in table]
    if missing:
        raise RuntimeError(f"{enum_cls.__name__} label table missing: {missing}")
    for member, labels in table.items():
        absent = [lang for lang in LANGUAGES if lang not in labels]
        if absent:
            raise RuntimeError(f"{enum_cls.__name__}.{member.name} missing languages {absent}")
    return table


class Trajectory(str, Enum):
    LINEAR = "linear"
    PARABOLIC = "parabolic"
    CIRCULAR = "circular"
    WAVE = "wave"


# 箭头图标 → 运动轨迹
ARROW_TRAJECTORIES: dict[ActionIcon, Trajectory] = {
    ActionIcon.ARROW: Trajectory.LINEAR,
    ActionIcon.JUMP_ARROW: Trajectory.PARABOLIC,
    ActionIcon.CIRCLE_ARROW: Trajectory.CIRCULAR,
    ActionIcon.WAVE_ARROW: Trajectory.WAVE,
}

if set(ARROW_TRAJECTORIES) != {icon for icon in ActionIcon if icon.is_arrow}:
    raise RuntimeError("every arrow icon needs a trajectory")


CAMERA_LABELS = _require_complete(
    {
        CameraIcon.ZOOM_IN: {"en": "Zoom In", "zh": "镜头推进"},
        CameraIcon.ZOOM_OUT: {"en": "Zoom Out", "zh": "镜头拉远"},
        CameraIcon.PAN_LEFT: {"en": "Pan Left", "zh": "镜头左摇"},
        CameraIcon.PAN_RIGHT: {"en": "Pan Right", "zh": "镜头右摇"},
        CameraIcon.TILT_UP: {"en": "Tilt Up", "zh": "镜头上仰"},
        CameraIcon.TILT_DOWN: {"en": "Tilt Down", "zh": "镜头下俯"},
        CameraIcon.TRACKING: {"en": "Tracking Shot", "zh": "跟随拍摄"},
        CameraIcon.HITCHCOCK: {"en": "Dolly Zoom", "zh": "希区柯克变焦"},
    },
    CameraIcon,
)

# 动作图标 → 动词短语
ACTION_VERBS = _require_complete(
    {
        ActionIcon.MOVE_FWD: {"en": "Subject walks forward", "zh": "主体向前行走"},
        ActionIcon.JUMP: {"en": "Subject jumps", "zh": "主体跳跃"},
        ActionIcon.TURN: {"en": "Subject turns around", "zh": "主体转身"},
        ActionIcon.FIGHT: {"en": "Subject fights", "zh": "主体打斗"},
        ActionIcon.FALL: {"en": "Subject falls", "zh": "主体跌倒"},
        ActionIcon.ARROW: {"en": "Subject moves", "zh": "主体移动"},
        ActionIcon.JUMP_ARROW: {"en": "Subject leaps", "zh": "主体跃起"},
        ActionIcon.CIRCLE_ARROW: {"en": "Subject circles", "zh": "主体绕行"},
        ActionIcon.WAVE_ARROW: {"en": "Subject weaves", "zh": "主体蛇形移动"},
    },
    ActionIcon,
)

TRAJECTORY_LABELS = _require_complete(
    {
        Trajectory.LINEAR: {"en": "linear", "zh": "直线"},
        Trajectory.PARABOLIC: {"en": "parabolic", "zh": "抛物线"},
        Trajectory.CIRCULAR: {"en": "circular", "zh": "环形"},
        Trajectory.WAVE: {"en": "wave", "zh": "波浪"},
    },
    Trajectory,
)

EMOTION_LABELS = _require_complete(
    {
        EmotionIcon.HAPPY: {"en": "happy", "zh": "开心"},
        EmotionIcon.SAD: {"en": "sad", "zh": "悲伤"},
        EmotionIcon.ANGRY: {"en": "angry", "zh": "愤怒"},
        EmotionIcon.SURPRISED: {"en": "surprised", "zh": "惊讶"},
        EmotionIcon.SCARED: {"en": "scared", "zh": "恐惧"},
        EmotionIcon.CALM: {"en": "calm", "zh": "平静"},
    },
    EmotionIcon,
)

COMPASS_LABELS = _require_complete(
    {
        Compass.N: {"en": "North", "zh": "正上方"},
        Compass.NE: {"en": "Northeast", "zh": "右上方"},
        Compass.E: {"en": "East", "zh": "右方"},
        Compass.SE: {"en": "Southeast", "zh": "右下方"},
        Compass.S: {"en": "South", "zh": "正下方"},
        Compass.SW: {"en": "Southwest", "zh": "左下方"},
        Compass.W: {"en": "West", "zh": "左方"},
        Compass.NW: {"en": "Northwest", "zh": "左上方"},
    },
    Compass,
)

SPEED_LABELS = _require_complete(
    {
        Intensity.SLIGHT: {"en": "extremely slow", "zh": "极慢"},
        Intensity.SLOW: {"en": "slow", "zh": "缓慢"},
        Intensity.MODERATE: {"en": "moderate", "zh": "中速"},
        Intensity.FAST: {"en": "fast", "zh": "快速"},
        Intensity.EXTREMELY_FAST: {"en": "extremely fast", "zh": "极快"},
    },
    Intensity,
)

INTENSITY_ADJECTIVES = _require_complete(
    {
        IntensityLevel.LOW: {"en": "slightly", "zh": "略微"},
        IntensityLevel.MID: {"en": "moderately", "zh": "明显"},
        IntensityLevel.HIGH: {"en": "intensely", "zh": "强烈"},
    },
    IntensityLevel,
)

STAGE_LABELS = _require_complete(
    {
        StoryStage.SETUP: {"en": "Setup", "zh": "铺垫"},
        StoryStage.BUILD: {"en": "Build", "zh": "发展"},
        StoryStage.CLIMAX: {"en": "Climax", "zh": "高潮"},
        StoryStage.RESOLUTION: {"en": "Resolution", "zh": "结局"},
    },
    StoryStage,
)

# 阶段内进展提示词（timeline.PROGRESSION_INDICATORS 的取值）
PROGRESSION_LABELS: dict[str, Bilingual] = {
    "introduce": {"en": "introduce", "zh": "介绍"},
    "establish": {"en": "establish", "zh": "建立"},
    "begin": {"en": "begin", "zh": "开始"},
    "start": {"en": "start", "zh": "启动"},
    "develop": {"en": "develop", "zh": "发展"},
    "escalate": {"en": "escalate", "zh": "升级"},
    "intensify": {"en": "intensify", "zh": "加强"},
    "continue": {"en": "continue", "zh": "继续"},
    "peak": {"en": "peak", "zh": "高峰"},
    "accelerate": {"en": "accelerate", "zh": "加速"},
    "climax": {"en": "climax", "zh": "高潮"},
    "turn": {"en": "turn", "zh": "转折"},
    "conclude": {"en": "conclude", "zh": "结束"},
    "resolve": {"en": "resolve", "zh": "解决"},
    "end": {"en": "end", "zh": "完成"},
    "finish": {"en": "finish", "zh": "收尾"},
}

_missing_progressions = {
    word for words in PROGRESSION_INDICATORS.values() for word in words
} - set(PROGRESSION_LABELS)
if _missing_progressions:
    raise RuntimeError(f"progression label table missing: {sorted(_missing_progressions)}")

# 位置区域（geometry.position_zone 的返回值）
ZONE_LABELS: dict[str, Bilingual] = {
    "Center": {"en": "Center", "zh": "画面中心"},
    "Top-Left": {"en": "Top-Left", "zh": "左上角"},
    "Top-Center": {"en": "Top-Center", "zh": "正上方"},
    "Top-Right": {"en": "Top-Right", "zh": "右上角"},
    "Center-Left": {"en": "Center-Left", "zh": "左侧"},
    "Center-Right": {"en": "Center-Right", "zh": "右侧"},
    "Bottom-Left": {"en": "Bottom-Left", "zh": "左下角"},
    "Bottom-Center": {"en": "Bottom-Center", "zh": "正下方"},
    "Bottom-Right": {"en": "Bottom-Right", "zh": "右下角"},
}

# 句式模板
TEMPLATES: dict[str, Bilingual] = {
    "shot_header": {
        "en": "SHOT {index} / SC-{number:02d} (Time: {start:.1f}-{end:.1f}s, Stage: {stage}, Progression: {progression})",
        "zh": "镜头 {index} / SC-{number:02d}（时间：{start:.1f}-{end:.1f}秒，阶段：{stage}，进展：{progression}）",
    },
    "script": {"en": "SCRIPT: {text}", "zh": "剧情：{text}"},
    "execution": {"en": "EXECUTION: {directives}", "zh": "执行：{directives}"},
    "separator": {"en": "; ", "zh": "；"},
    "arrow_action": {
        "en": "{verb} from {zone} towards {direction}, trajectory: {trajectory}",
        "zh": "{verb}，从{zone}向{direction}，轨迹：{trajectory}",
    },
    "verb_action": {"en": "{verb} at {zone}", "zh": "{verb}（位于{zone}）"},
    "speed": {"en": "Speed: {speed}", "zh": "速度：{speed}"},
    "facing": {"en": "Facing {direction}", "zh": "朝向{direction}"},
    "camera": {"en": "Camera: {operation}", "zh": "运镜：{operation}"},
    "dialogue": {"en": 'Character says: "{text}"', "zh": '角色台词："{text}"'},
    "emotion": {"en": "Emotion: {adjective} {emotion}", "zh": "情绪：{adjective}{emotion}"},
    "reference_consistent": {
        "en": "Keep the subject consistent with the reference image, anchored at {zone}",
        "zh": "保持主体与参考图一致，位于{zone}",
    },
    "reference_placement": {
        "en": "Reference subject placed at {zone}",
        "zh": "参考主体放置于{zone}",
    },
    "description": {"en": " ({text})", "zh": "（{text}）"},
    "fallback": {
        "en": "Keep the composition shown in the frame with natural, subtle motion",
        "zh": "保持画面构图，动作自然细微",
    },
    "prompt_title": {"en": "=== AI VIDEO GENERATION PROMPT ===", "zh": "=== AI 视频生成提示词 ==="},
    "global_context": {"en": "[GLOBAL CONTEXT]", "zh": "[全局设定]"},
    "style": {"en": "Style: {style} Cinematic Video", "zh": "风格：{style} 电影感视频"},
    "aspect_ratio": {"en": "Aspect Ratio: {ratio}", "zh": "画幅比例：{ratio}"},
    "duration": {"en": "Total Duration: {duration:g}s", "zh": "总时长：{duration:g}秒"},
    "reference_subject": {
        "en": "Reference Subject: provided, keep identity consistent across shots",
        "zh": "参考主体：已提供，所有镜头保持形象一致",
    },
    "shot_sequence": {"en": "[SHOT SEQUENCE]", "zh": "[镜头序列]"},
    "shot_divider": {"en": "----------------------------------", "zh": "----------------------------------"},
}


def label(table: Mapping[object, Bilingual], key: object, language: str) -> str:
    entry = table[key]
    return entry.get(language) or entry["en"]


def template(name: str, language: str) -> str:
    entry = TEMPLATES[name]
    return entry.get(language) or entry["en"]


def zone_label(zone: str, language: str) -> str:
    entry = ZONE_LABELS.get(zone)
    if entry is None:
        return zone
    return entry.get(language) or entry["en"]
