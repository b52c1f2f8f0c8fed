from __future__ import annotations
import asyncio
from typing import List, Optional

from lifecycle.shutdown_protocol import IShutdownHandler
from lifecycle.task_registry import TaskRegistry
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)


class TaskCancellationHandler(IShutdownHandler):
    """
    Shutdown handler for asyncio tasks.

    Cancels and awaits every task still running in the TaskRegistry, except
    the ones passed in `exclude` (typically the task running main()).

    Priority: 10 (last)
    """

    def __init__(self, exclude: Optional[List[asyncio.Task]] = None):
        self.exclude = exclude or []

    @property
    def shutdown_priority(self) -> int:
        return 10

    async def shutdown(self) -> None:
        """Cancel and await all leftover tasks."""
        tasks = TaskRegistry.instance().get_tasks_for_shutdown(exclude=self.exclude)
        if not tasks:
            log.debug("No leftover tasks")
            return

        log.info(f"Cancelling {len(tasks)} leftover task(s)...")
        for task in tasks:
            task.cancel()
            log.debug(f"Cancelled task: {task.get_name()}")

        await asyncio.gather(*tasks, return_exceptions=True)
        log.debug(TaskRegistry.instance().summary())
