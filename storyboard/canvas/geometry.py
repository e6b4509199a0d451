"""画布几何工具：百分比坐标、角度归一化、方位与强度分桶。

画布统一视为 100×100 的百分比空间，所有函数均为纯函数。
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from storyboard.exceptions import InvalidCanvas

ZONE_LOW = 30.0
ZONE_HIGH = 70.0


class Compass(str, Enum):
    """8 方位（0° 指向画面上方，顺时针增加）"""

    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"


class Intensity(str, Enum):
    """面积占比 → 速度/强度 5 级"""

    SLIGHT = "slight"
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"
    EXTREMELY_FAST = "extremely_fast"


class IntensityLevel(str, Enum):
    """情绪等场景使用的 3 级强度"""

    LOW = "low"
    MID = "mid"
    HIGH = "high"


_COMPASS_ORDER: tuple[Compass, ...] = tuple(Compass)

# (上限, 分桶)，按顺序匹配第一个满足 area < 上限 的分桶
_INTENSITY_THRESHOLDS: tuple[tuple[float, Intensity], ...] = (
    (10.0, Intensity.SLIGHT),
    (25.0, Intensity.SLOW),
    (50.0, Intensity.MODERATE),
    (75.0, Intensity.FAST),
)

_INTENSITY_LEVELS: dict[Intensity, IntensityLevel] = {
    Intensity.SLIGHT: IntensityLevel.LOW,
    Intensity.SLOW: IntensityLevel.LOW,
    Intensity.MODERATE: IntensityLevel.MID,
    Intensity.FAST: IntensityLevel.HIGH,
    Intensity.EXTREMELY_FAST: IntensityLevel.HIGH,
}


class CanvasBounds(Protocol):
    """画布包围盒提供者：返回当前渲染尺寸（像素）"""

    def size(self) -> tuple[float, float]: ...


@dataclass(frozen=True)
class FixedCanvas:
    width: float
    height: float

    def size(self) -> tuple[float, float]:
        return self.width, self.height


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def normalize_rotation(degrees: float) -> float:
    """把任意角度归一化到 [0, 360)"""
    result = ((degrees % 360) + 360) % 360
    # 浮点下极小的负数取模会得到 360.0
    if result >= 360:
        return 0.0
    return result


def compass_direction(degrees: float) -> Compass:
    """角度 → 8 方位。与标准角相差不超过 22.5°（含）即归入该方位，平局取靠前的方位。"""
    angle = normalize_rotation(degrees)
    for index, bucket in enumerate(_COMPASS_ORDER):
        canonical = index * 45.0
        diff = abs(angle - canonical)
        diff = min(diff, 360.0 - diff)
        if diff <= 22.5:
            return bucket
    # 归一化之后必然命中某个方位
    raise AssertionError(f"unreachable compass angle: {degrees}")


def area_percent(width: float, height: float) -> float:
    """符号覆盖画布面积的百分比（100×100 单位画布）。

    40×40 的符号覆盖 1600 / 10000 = 16%。
    """
    return (width * height) / 100.0


def intensity_bucket(area: float) -> Intensity:
    for upper, bucket in _INTENSITY_THRESHOLDS:
        if area < upper:
            return bucket
    return Intensity.EXTREMELY_FAST


def intensity_level(bucket: Intensity) -> IntensityLevel:
    return _INTENSITY_LEVELS[bucket]


def position_zone(x: float, y: float) -> str:
    """3×3 粗粒度位置，例如 ``Top-Left``；正中心折叠为 ``Center``"""
    vertical = "Center"
    horizontal = "Center"

    if y < ZONE_LOW:
        vertical = "Top"
    elif y > ZONE_HIGH:
        vertical = "Bottom"

    if x < ZONE_LOW:
        horizontal = "Left"
    elif x > ZONE_HIGH:
        horizontal = "Right"

    if vertical == "Center" and horizontal == "Center":
        return "Center"
    return f"{vertical}-{horizontal}"


def pixels_to_percent(
    dx_px: float, dy_px: float, width_px: float, height_px: float
) -> tuple[float, float]:
    """像素位移 → 画布百分比位移"""
    if width_px <= 0 or height_px <= 0:
        raise InvalidCanvas(width_px, height_px)
    return (dx_px / width_px) * 100.0, (dy_px / height_px) * 100.0
