"""
Shutdown coordinator that orchestrates graceful shutdown of all components.

Manages signal handlers, shutdown sequencing, and error handling across
multiple shutdown handlers in priority order. It also records whether the
process is stopping because of a failure, which decides the exit code.
"""

import asyncio
import signal
from typing import List, Optional, Set

from lifecycle.task_registry import TaskRegistry
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SHUTDOWN)

# A task in one of these categories ending with an exception stops the process
CRITICAL_CATEGORIES = frozenset({"API", "RENDER"})


class ShutdownCoordinator:
    """
    Coordinates graceful shutdown of multiple components.

    Maintains a list of shutdown handlers and executes them in priority order
    when shutdown is triggered. Handles signal registration, timeout management,
    and error logging.

    Example:
        coordinator = ShutdownCoordinator()
        coordinator.register(LEDShutdownHandler(strip))
        coordinator.register(APIServerShutdownHandler(api_wrapper))

        coordinator.setup_signal_handlers(loop)
        await coordinator.wait_for_shutdown()
        await coordinator.shutdown_all()
        return coordinator.exit_code
    """

    def __init__(self, timeout_per_handler: float = 5.0, total_timeout: float = 15.0):
        """
        Args:
            timeout_per_handler: Timeout for each individual handler (seconds)
            total_timeout: Total timeout for entire shutdown sequence (seconds)
        """
        self._handlers: List = []
        self._shutdown_event = asyncio.Event()
        self._timeout_per_handler = timeout_per_handler
        self._total_timeout = total_timeout
        self._reason: Optional[str] = None
        self._failure: Optional[BaseException] = None

    def register(self, handler) -> None:
        """
        Register a shutdown handler.

        Handler must have:
        - shutdown_priority property (int)
        - async shutdown() method
        """
        if not hasattr(handler, "shutdown_priority"):
            raise ValueError(f"Handler {handler} missing shutdown_priority property")
        if not hasattr(handler, "shutdown"):
            raise ValueError(f"Handler {handler} missing shutdown() method")

        self._handlers.append(handler)
        log.debug(f"Registered shutdown handler: {handler.__class__.__name__}")

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Install SIGINT (Ctrl+C) and SIGTERM handlers that trigger shutdown."""

        def signal_handler(sig: signal.Signals) -> None:
            log.info(f"Signal {sig.name} received → triggering shutdown")
            self.request_shutdown(sig.name)

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

        log.info("Signal handlers installed (SIGINT, SIGTERM)")

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def request_shutdown(self, reason: str, failure: Optional[BaseException] = None) -> None:
        """Trigger shutdown. The first reason wins; a failure is never overwritten."""
        if self._reason is None:
            self._reason = reason
        if failure is not None and self._failure is None:
            self._failure = failure
        self._shutdown_event.set()

    def fail(self, error: BaseException) -> None:
        """Fatal pipeline error reported by a component (ingestion worker callback)."""
        log.error(f"❌ Fatal error: {type(error).__name__}: {error}")
        self.request_shutdown(f"Fatal error: {error}", failure=error)

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def failure(self) -> Optional[BaseException]:
        return self._failure

    @property
    def exit_code(self) -> int:
        """0 for a requested shutdown, 1 when a fatal error stopped the process."""
        return 1 if self._failure is not None else 0

    # ------------------------------------------------------------------
    # Critical task monitoring
    # ------------------------------------------------------------------

    def _critical_tasks(self, categories: Set[str]) -> List[asyncio.Task]:
        return [r.task for r in TaskRegistry.instance().in_categories(categories) if not r.task.done()]

    def _check_critical_task_failures(self, categories: Set[str]) -> bool:
        """Check if any critical task has already failed and trigger shutdown if so."""
        for record in TaskRegistry.instance().in_categories(categories):
            if record.finished_with_error is not None:
                log.error(
                    f"❌ Critical task failed: {record.info.description} "
                    f"(category: {record.info.category.name})"
                )
                self.request_shutdown(
                    f"Task failure: {record.info.description}",
                    failure=record.finished_with_error,
                )
                return True
        return False

    async def _wait_for_signal_or_task(self, critical_tasks: List[asyncio.Task]) -> None:
        """Block until shutdown is requested or one of critical_tasks finishes."""
        shutdown_waiter = asyncio.ensure_future(self._shutdown_event.wait())
        try:
            if critical_tasks:
                await asyncio.wait(
                    set(critical_tasks) | {shutdown_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            else:
                await asyncio.wait({shutdown_waiter}, timeout=0.2)
        finally:
            # Only the waiter: critical tasks are long-lived
            if not shutdown_waiter.done():
                shutdown_waiter.cancel()

    async def wait_for_shutdown(self, categories: Set[str] = CRITICAL_CATEGORIES) -> None:
        """
        Wait for a shutdown request or a critical task failure.

        Monitors:
        1. OS signals (Ctrl+C, SIGTERM)
        2. request_shutdown() / fail() calls
        3. Critical application tasks via TaskRegistry

        A critical task that completes without error does not stop the process.
        """
        while not self._shutdown_event.is_set():
            if self._check_critical_task_failures(categories):
                return
            await self._wait_for_signal_or_task(self._critical_tasks(categories))

        log.debug("Shutdown requested", reason=self._reason)

    # ------------------------------------------------------------------
    # Shutdown sequence
    # ------------------------------------------------------------------

    async def shutdown_all(self) -> None:
        """
        Execute graceful shutdown of all handlers in priority order.

        Handlers are called in descending priority order (highest first).
        Each handler has its own timeout (timeout_per_handler) and the entire
        sequence has a global timeout (total_timeout). A failing handler is
        logged and the sequence continues.
        """
        log.info("🛑 Initiating graceful shutdown sequence...")
        log.info(f"   Reason: {self._reason or 'UNKNOWN'}")

        sorted_handlers = sorted(self._handlers, key=lambda h: h.shutdown_priority, reverse=True)
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        for handler in sorted_handlers:
            handler_name = handler.__class__.__name__

            elapsed = loop.time() - start_time
            if elapsed > self._total_timeout:
                log.error(f"⚠️  Total shutdown timeout exceeded ({elapsed:.1f}s > {self._total_timeout}s)")
                break

            try:
                log.debug(f"Shutting down {handler_name} (priority={handler.shutdown_priority})...")
                await asyncio.wait_for(handler.shutdown(), timeout=self._timeout_per_handler)
                log.debug(f"✓ {handler_name} shutdown complete")

            except asyncio.TimeoutError:
                log.error(f"⚠️  {handler_name} shutdown timeout ({self._timeout_per_handler}s)")

            except Exception as e:
                log.error(f"❌ Error shutting down {handler_name}: {e}", exc_info=True)

        log.info("✓ Shutdown sequence complete", exit_code=self.exit_code)
