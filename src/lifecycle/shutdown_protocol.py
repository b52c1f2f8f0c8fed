"""
Contract between the ShutdownCoordinator and the components it stops.

Priorities used by ledwire (higher runs first):

    100  APIServerShutdownHandler        stop accepting websocket clients
     95  StreamListenerShutdownHandler   stop accepting TCP stream clients
     90  IngestionShutdownHandler        close sockets still open
     80  RenderLoopShutdownHandler       finish the current tick, end the task
     60  LEDShutdownHandler              blank the strip, release the driver
     10  TaskCancellationHandler         cancel whatever is left
"""

from typing import Protocol


class IShutdownHandler(Protocol):
    """One component's part of the shutdown sequence."""

    @property
    def shutdown_priority(self) -> int:
        ...

    async def shutdown(self) -> None:
        """Must return within the coordinator's per-handler timeout."""
        ...
