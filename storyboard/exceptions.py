"""应用异常定义"""
from __future__ import annotations

from typing import Any


class AppException(Exception):
    """应用异常基类，由全局异常处理器转换为 JSON 响应"""

    code: str = "APP_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class InvalidCanvas(AppException):
    """画布尺寸无效（宽或高不大于 0）"""

    code = "INVALID_CANVAS"

    def __init__(self, width: float, height: float) -> None:
        super().__init__(
            f"Invalid canvas size {width}x{height}",
            details={"width": width, "height": height},
        )


class SymbolRejected(AppException):
    """符号放置被拒绝，帧内容保持不变"""

    code = "SYMBOL_REJECTED"
    status_code = 409


class CapacityExceeded(SymbolRejected):
    code = "CAPACITY_EXCEEDED"

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"A frame can hold at most {limit} symbols",
            details={"limit": limit},
        )


class CategoryConflict(SymbolRejected):
    code = "CATEGORY_CONFLICT"

    def __init__(self, category: str) -> None:
        super().__init__(
            f"Only one {category} symbol is allowed per frame",
            details={"category": category},
        )


class DialogueLimitExceeded(SymbolRejected):
    code = "DIALOGUE_LIMIT_EXCEEDED"

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"A frame can hold at most {limit} dialogue symbols",
            details={"limit": limit},
        )


class DuplicateSymbol(SymbolRejected):
    code = "DUPLICATE_SYMBOL"

    def __init__(self, symbol_id: str) -> None:
        super().__init__(
            f"Symbol {symbol_id} already exists in this frame",
            details={"symbol_id": symbol_id},
        )


class SymbolNotFound(AppException):
    code = "SYMBOL_NOT_FOUND"
    status_code = 404

    def __init__(self, symbol_id: str) -> None:
        super().__init__(f"Symbol {symbol_id} not found", details={"symbol_id": symbol_id})


class InteractionError(AppException):
    """交互状态机被以不合法的顺序驱动（编程错误）"""

    code = "INTERACTION_ERROR"
    status_code = 500


class ProjectNotFound(AppException):
    code = "PROJECT_NOT_FOUND"
    status_code = 404

    def __init__(self, project_id: int) -> None:
        super().__init__(f"Project {project_id} not found", details={"project_id": project_id})


class FrameNotFound(AppException):
    code = "FRAME_NOT_FOUND"
    status_code = 404

    def __init__(self, frame_id: int) -> None:
        super().__init__(f"Frame {frame_id} not found", details={"frame_id": frame_id})


class InvalidSymbol(AppException):
    """符号字段不合法（例如非台词符号带文字）"""

    code = "INVALID_SYMBOL"
    status_code = 422
