"""
Task Registry
-------------

The long-lived asyncio tasks of the pipeline (API server, render loop) are
created through create_tracked_task(), so shutdown and the telemetry endpoint
can see what is running and what died. Per-client readers are owned by the
IngestionSupervisor instead.

A task that ends with an exception is logged as soon as it finishes; the
ShutdownCoordinator reads failed() to decide whether the process must stop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional
from datetime import datetime, timezone

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


class TaskCategory(Enum):
    """Logical grouping of asynchronous tasks."""
    API = auto()         # uvicorn server
    RENDER = auto()      # the render loop


@dataclass(frozen=True)
class TaskInfo:
    """Metadata captured when the task is created."""
    id: int
    category: TaskCategory
    description: str
    created_at: str          # ISO UTC


@dataclass
class TaskRecord:
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished_at: Optional[str] = None

    @property
    def state(self) -> str:
        if not self.task.done():
            return "running"
        if self.cancelled:
            return "cancelled"
        return "failed" if self.finished_with_error is not None else "done"

    def as_dict(self) -> dict:
        return {
            "id": self.info.id,
            "category": self.info.category.name,
            "description": self.info.description,
            "created_at": self.info.created_at,
            "state": self.state,
            "error": repr(self.finished_with_error) if self.finished_with_error else None,
        }


class TaskRegistry:
    """
    Process-wide registry of tracked tasks.

    Example:
        registry = TaskRegistry.instance()
        registry.in_categories({"RENDER", "API"})
        registry.summary()   # "Tasks: total=3, running=3, failed=0, cancelled=0"
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self) -> None:
        self._records: Dict[asyncio.Task, TaskRecord] = {}
        self._next_id = 1

    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (tests start each case with an empty registry)."""
        cls._instance = None

    # === Registration ===

    def register(self, task: asyncio.Task, category: TaskCategory, description: str) -> int:
        task_id = self._next_id
        self._next_id += 1

        info = TaskInfo(
            id=task_id,
            category=category,
            description=description,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._records[task] = TaskRecord(task=task, info=info)
        task.add_done_callback(self._on_task_done)

        log.debug(f"[Task {task_id}] Registered ({category.name}) - {description}")
        return task_id

    def _on_task_done(self, task: asyncio.Task) -> None:
        record = self._records.get(task)
        if record is None:
            return

        record.finished_at = datetime.now(timezone.utc).isoformat()

        if task.cancelled():
            record.cancelled = True
            log.debug(f"[Task {record.info.id}] Cancelled")
            return

        exc = task.exception()
        if exc is not None:
            record.finished_with_error = exc
            log.error(
                f"[Task {record.info.id}] FAILED: {record.info.description}",
                error=f"{type(exc).__name__}: {exc}",
            )
        else:
            log.debug(f"[Task {record.info.id}] Completed")

    # === Queries ===

    def list_all(self) -> List[TaskRecord]:
        return list(self._records.values())

    def active(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if not r.task.done()]

    def failed(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def cancelled(self) -> List[TaskRecord]:
        return [r for r in self._records.values() if r.cancelled]

    def in_categories(self, names: Iterable[str]) -> List[TaskRecord]:
        """Records whose category name is in `names` (e.g. {"API", "RENDER"})."""
        wanted = set(names)
        return [r for r in self._records.values() if r.info.category.name in wanted]

    def counts(self) -> Dict[str, int]:
        counts = {"total": len(self._records), "running": 0, "done": 0, "failed": 0, "cancelled": 0}
        for record in self._records.values():
            counts[record.state] += 1
        return counts

    def summary(self) -> str:
        counts = self.counts()
        return (
            f"Tasks: total={counts['total']}, running={counts['running']}, "
            f"failed={counts['failed']}, cancelled={counts['cancelled']}"
        )

    def get_tasks_for_shutdown(self, exclude: Optional[List[asyncio.Task]] = None) -> List[asyncio.Task]:
        """Unfinished tasks, minus `exclude`."""
        excluded = set(exclude or ())
        tasks = [t for t in self._records if not t.done() and t not in excluded]
        log.debug(f"Shutdown: {len(tasks)} tasks to cancel")
        return tasks


def create_tracked_task(
    coro,
    *,
    category: TaskCategory,
    description: str,
    loop: Optional[asyncio.AbstractEventLoop] = None
) -> asyncio.Task:
    """Create a task on the running loop and register it in one call."""
    loop = loop or asyncio.get_running_loop()
    task = loop.create_task(coro, name=description)
    TaskRegistry.instance().register(task=task, category=category, description=description)
    return task
