"""单帧符号存储：保证帧内符号的放置约束"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from storyboard.canvas.geometry import CanvasBounds, clamp_percent
from storyboard.canvas.symbols import (
    DIALOGUE_MAX_CHARS,
    MULTI_INSTANCE_CATEGORIES,
    DragPayload,
    Frame,
    Symbol,
    SymbolCategory,
)
from storyboard.exceptions import (
    CapacityExceeded,
    CategoryConflict,
    DialogueLimitExceeded,
    DuplicateSymbol,
    SymbolNotFound,
    SymbolRejected,
)

if TYPE_CHECKING:
    from storyboard.config import Settings

logger = logging.getLogger(__name__)

FrameListener = Callable[[Frame], None]

# 拖放时的默认尺寸（百分比）
DEFAULT_SYMBOL_WIDTH = 15.0
REFERENCE_SIZE = (30.0, 40.0)


@dataclass(frozen=True)
class CanvasLimits:
    max_symbols: int = 4
    max_dialogue: int | None = 2

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CanvasLimits":
        return cls(
            max_symbols=settings.max_symbols_per_frame,
            max_dialogue=settings.max_dialogue_per_frame,
        )


def new_symbol_id() -> str:
    return f"sym-{uuid.uuid4().hex[:12]}"


class SymbolStore:
    """一个帧的符号集合。

    符号按 id 索引、保留插入顺序；所有写操作都以新的 ``Symbol`` 值替换旧值。
    每次成功修改后以新的帧快照通知订阅者（用于持久化）。
    """

    def __init__(
        self,
        frame: Frame,
        limits: CanvasLimits | None = None,
        id_factory: Callable[[], str] = new_symbol_id,
    ) -> None:
        self._frame = frame.model_copy(update={"symbols": []})
        self._symbols: dict[str, Symbol] = {s.id: s for s in frame.symbols}
        self.limits = limits or CanvasLimits()
        self._id_factory = id_factory
        self._listeners: list[FrameListener] = []

    @property
    def frame_id(self) -> str:
        return self._frame.id

    @property
    def frame(self) -> Frame:
        """当前帧快照"""
        return self._frame.model_copy(update={"symbols": list(self._symbols.values())})

    @property
    def symbols(self) -> list[Symbol]:
        return list(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(list(self._symbols.values()))

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self._symbols

    def get(self, symbol_id: str) -> Symbol | None:
        return self._symbols.get(symbol_id)

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        """注册变更监听，返回取消订阅函数"""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.frame
        for listener in list(self._listeners):
            listener(snapshot)

    def check_can_add(self, symbol: Symbol) -> None:
        """校验放置约束，不满足时抛出 SymbolRejected 子类"""
        if symbol.id in self._symbols:
            raise DuplicateSymbol(symbol.id)

        if len(self._symbols) >= self.limits.max_symbols:
            raise CapacityExceeded(self.limits.max_symbols)

        same_category = sum(1 for s in self._symbols.values() if s.category == symbol.category)
        if symbol.category == SymbolCategory.DIALOGUE:
            limit = self.limits.max_dialogue
            if limit is not None and same_category >= limit:
                raise DialogueLimitExceeded(limit)
        elif symbol.category not in MULTI_INSTANCE_CATEGORIES and same_category > 0:
            raise CategoryConflict(symbol.category.value)

    def add(self, symbol: Symbol) -> Symbol:
        try:
            self.check_can_add(symbol)
        except SymbolRejected as e:
            logger.info(f"Rejected symbol {symbol.id} on frame {self.frame_id}: {e}")
            raise
        self._symbols[symbol.id] = symbol
        self._notify()
        return symbol

    def remove(self, symbol_id: str) -> Symbol | None:
        removed = self._symbols.pop(symbol_id, None)
        if removed is not None:
            self._notify()
        return removed

    def mutate(self, symbol_id: str, patch: Mapping[str, Any]) -> Symbol:
        """对符号做部分更新。不重新检查容量/分类约束。"""
        current = self._symbols.get(symbol_id)
        if current is None:
            raise SymbolNotFound(symbol_id)

        changes = {k: v for k, v in patch.items() if k != "id"}
        text = changes.get("text")
        if isinstance(text, str):
            changes["text"] = text[:DIALOGUE_MAX_CHARS]

        updated = current.updated(**changes)
        self._symbols[symbol_id] = updated
        self._notify()
        return updated

    def build_dropped_symbol(
        self, payload: DragPayload, x_px: float, y_px: float, canvas: CanvasBounds
    ) -> Symbol | None:
        width_px, height_px = canvas.size()
        if width_px <= 0 or height_px <= 0:
            return None

        if payload.category == SymbolCategory.REFERENCE:
            width, height = REFERENCE_SIZE
        else:
            # 保持方形外观：高度百分比按画布宽高比换算
            width = DEFAULT_SYMBOL_WIDTH
            height = DEFAULT_SYMBOL_WIDTH * (width_px / height_px)

        return Symbol(
            id=self._id_factory(),
            category=payload.category,
            name=payload.name,
            icon=payload.icon,
            x=clamp_percent(x_px / width_px * 100.0),
            y=clamp_percent(y_px / height_px * 100.0),
            width=width,
            height=height,
            rotation=0.0,
            is_custom=payload.icon.startswith("data:"),
        )

    def drop(self, raw_payload: Any, x_px: float, y_px: float, canvas: CanvasBounds) -> Symbol | None:
        """处理拖放。无效载荷静默忽略并返回 None；放置约束不满足时抛出异常。"""
        payload = DragPayload.parse(raw_payload)
        if payload is None:
            logger.debug(f"Ignored malformed drop payload on frame {self.frame_id}")
            return None
        symbol = self.build_dropped_symbol(payload, x_px, y_px, canvas)
        if symbol is None:
            logger.debug(f"Ignored drop on zero-size canvas for frame {self.frame_id}")
            return None
        return self.add(symbol)
