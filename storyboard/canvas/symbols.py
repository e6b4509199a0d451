"""符号、分镜帧与项目配置的领域类型"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from storyboard.canvas.geometry import normalize_rotation

DIALOGUE_MAX_CHARS = 15


class SymbolCategory(str, Enum):
    REFERENCE = "Reference"
    CAMERA = "Camera"
    ACTION = "Action"
    DIALOGUE = "Dialogue"
    EMOTION = "Emotion"
    CUSTOM = "Custom"


# 不受“每类仅一个”限制的分类
MULTI_INSTANCE_CATEGORIES = frozenset({SymbolCategory.DIALOGUE, SymbolCategory.CUSTOM})


class ReferenceIcon(str, Enum):
    REF_BOX = "ref-box"


class CameraIcon(str, Enum):
    ZOOM_IN = "zoom-in"
    ZOOM_OUT = "zoom-out"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"
    TILT_UP = "tilt-up"
    TILT_DOWN = "tilt-down"
    TRACKING = "tracking"
    HITCHCOCK = "hitchcock"


class ActionIcon(str, Enum):
    MOVE_FWD = "move-fwd"
    JUMP = "jump"
    TURN = "turn"
    FIGHT = "fight"
    FALL = "fall"
    ARROW = "arrow"
    JUMP_ARROW = "jump-arrow"
    CIRCLE_ARROW = "circle-arrow"
    WAVE_ARROW = "wave-arrow"

    @property
    def is_arrow(self) -> bool:
        return self.value.endswith("arrow")


class DialogueIcon(str, Enum):
    SPEECH_BUBBLE = "speech-bubble"


class EmotionIcon(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    SCARED = "scared"
    CALM = "calm"


# 分类 → 该分类下的闭合图标枚举；Custom 允许任意（上传）图标
CATEGORY_ICONS: dict[SymbolCategory, type[Enum] | None] = {
    SymbolCategory.REFERENCE: ReferenceIcon,
    SymbolCategory.CAMERA: CameraIcon,
    SymbolCategory.ACTION: ActionIcon,
    SymbolCategory.DIALOGUE: DialogueIcon,
    SymbolCategory.EMOTION: EmotionIcon,
    SymbolCategory.CUSTOM: None,
}


def parse_icon(category: SymbolCategory, icon: str) -> Enum | None:
    """把图标字符串解析为对应分类的枚举成员；无法识别时返回 None"""
    enum_cls = CATEGORY_ICONS[category]
    if enum_cls is None:
        return None
    try:
        return enum_cls(icon)
    except ValueError:
        return None


class AspectRatio(str, Enum):
    RATIO_16_9 = "16:9"
    RATIO_4_3 = "4:3"
    RATIO_9_16 = "9:16"
    RATIO_1_1 = "1:1"
    RATIO_21_9 = "21:9"
    RATIO_4_5 = "4:5"
    RATIO_3_2 = "3:2"


class Symbol(BaseModel):
    """画布上的一个符号标注。不可变：任何修改都产生新的值。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    category: SymbolCategory
    name: str
    icon: str
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    text: str | None = Field(default=None, max_length=DIALOGUE_MAX_CHARS)
    description: str | None = None
    is_custom: bool = False

    @field_validator("rotation")
    @classmethod
    def _normalize_rotation(cls, v: float) -> float:
        return normalize_rotation(v)

    @model_validator(mode="after")
    def _text_only_for_dialogue(self) -> "Symbol":
        if self.text is not None and self.category != SymbolCategory.DIALOGUE:
            raise ValueError("text is only allowed on Dialogue symbols")
        return self

    def updated(self, **changes: Any) -> "Symbol":
        """返回应用了 changes 的新符号（重新校验）"""
        data = self.model_dump()
        data.update(changes)
        return Symbol.model_validate(data)


class Frame(BaseModel):
    """一个分镜帧及其有序符号列表"""

    id: str
    number: int = Field(ge=1)
    description: str = ""
    description_zh: str | None = None
    symbols: list[Symbol] = Field(default_factory=list)

    def narrative(self, language: str) -> str:
        if language == "zh" and self.description_zh:
            return self.description_zh
        return self.description


class ProjectConfig(BaseModel):
    """项目级配置快照（只读）"""

    model_config = ConfigDict(frozen=True)

    script: str = ""
    style_name: str = "Anime"
    style_name_zh: str | None = None
    aspect_ratio: AspectRatio = AspectRatio.RATIO_16_9
    duration: float = Field(default=15.0, gt=0)
    frame_count: int = Field(default=1, ge=1)
    reference_image: str | None = None

    @property
    def has_reference(self) -> bool:
        return bool(self.reference_image)

    def style_label(self, language: str) -> str:
        if language == "zh" and self.style_name_zh:
            return self.style_name_zh
        return self.style_name


class DragPayload(BaseModel):
    """符号库拖放到画布时携带的数据"""

    category: SymbolCategory
    name: str = Field(min_length=1)
    icon: str = Field(min_length=1)

    @classmethod
    def parse(cls, raw: Any) -> "DragPayload | None":
        """解析拖放数据；格式错误时返回 None（静默忽略）"""
        if raw is None:
            return None
        try:
            if isinstance(raw, (str, bytes)):
                return cls.model_validate_json(raw)
            return cls.model_validate(raw)
        except ValidationError:
            return None


class LibraryItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: SymbolCategory
    name: str
    icon: str


# 内置符号库（拖放源）
SYMBOL_LIBRARY: dict[SymbolCategory, tuple[LibraryItem, ...]] = {
    SymbolCategory.REFERENCE: (
        LibraryItem(category=SymbolCategory.REFERENCE, name="Reference Box", icon=ReferenceIcon.REF_BOX.value),
    ),
    SymbolCategory.CAMERA: tuple(
        LibraryItem(category=SymbolCategory.CAMERA, name=name, icon=icon.value)
        for name, icon in (
            ("Zoom In", CameraIcon.ZOOM_IN),
            ("Zoom Out", CameraIcon.ZOOM_OUT),
            ("Pan Left", CameraIcon.PAN_LEFT),
            ("Pan Right", CameraIcon.PAN_RIGHT),
            ("Tilt Up", CameraIcon.TILT_UP),
            ("Tilt Down", CameraIcon.TILT_DOWN),
            ("Tracking", CameraIcon.TRACKING),
            ("Hitchcock", CameraIcon.HITCHCOCK),
        )
    ),
    SymbolCategory.ACTION: tuple(
        LibraryItem(category=SymbolCategory.ACTION, name=name, icon=icon.value)
        for name, icon in (
            ("Move Fwd", ActionIcon.MOVE_FWD),
            ("Jump", ActionIcon.JUMP),
            ("Turn", ActionIcon.TURN),
            ("Fight", ActionIcon.FIGHT),
            ("Fall", ActionIcon.FALL),
            ("Arrow", ActionIcon.ARROW),
            ("Jump Arrow", ActionIcon.JUMP_ARROW),
            ("Circle Arrow", ActionIcon.CIRCLE_ARROW),
            ("Wave Arrow", ActionIcon.WAVE_ARROW),
        )
    ),
    SymbolCategory.DIALOGUE: (
        LibraryItem(category=SymbolCategory.DIALOGUE, name="Speech Bubble", icon=DialogueIcon.SPEECH_BUBBLE.value),
    ),
    SymbolCategory.EMOTION: tuple(
        LibraryItem(category=SymbolCategory.EMOTION, name=icon.value.capitalize(), icon=icon.value)
        for icon in EmotionIcon
    ),
}
