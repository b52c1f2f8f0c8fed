"""
Lifecycle subsystem
-------------------

Task tracking, coordinated shutdown and the uvicorn server wrapper.

Handlers are imported from lifecycle.handlers directly; they depend on the
engine and transports, which themselves import this package.

    from lifecycle import ShutdownCoordinator, create_tracked_task
    from lifecycle.handlers import RenderLoopShutdownHandler
"""

from .shutdown_coordinator import ShutdownCoordinator, CRITICAL_CATEGORIES
from .shutdown_protocol import IShutdownHandler
from .task_registry import TaskCategory, TaskInfo, TaskRecord, TaskRegistry, create_tracked_task

__all__ = [
    "ShutdownCoordinator",
    "CRITICAL_CATEGORIES",
    "IShutdownHandler",
    "TaskCategory",
    "TaskInfo",
    "TaskRecord",
    "TaskRegistry",
    "create_tracked_task",
]
