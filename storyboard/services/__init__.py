from .canvas_session import CanvasSession
from .frame_service import FrameService
from .task_queue import TaskQueue, TaskQueueRegistry

__all__ = ["CanvasSession", "FrameService", "TaskQueue", "TaskQueueRegistry"]
