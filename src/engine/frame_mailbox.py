"""
FrameMailbox - single-slot hand-off between ingestion workers and the render loop.

Not a queue: producers overwrite the slot, the render loop reads and clears
it. If several messages arrive between two reads only the last one is ever
observed (latest-wins); the others are dropped without blocking anybody.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Optional

from models.errors import PipelineError
from models.frame import ChannelMessage
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.INGEST)


class FrameMailbox:
    """
    Overwritable slot holding at most one pending ChannelMessage.

    put() and try_take() never block. take() is only used once by the render
    loop, to wait for the very first message.
    """

    def __init__(self) -> None:
        # Protected by self._lock
        self._lock = threading.Lock()
        self._slot: Optional[ChannelMessage] = None
        self._closed = False
        self._dropped = 0
        self._delivered = 0

        self._available = asyncio.Event()

    def put(self, message: ChannelMessage) -> None:
        """
        Overwrite the slot with message.

        Raises:
            PipelineError: the consumer side has been closed
        """
        with self._lock:
            if self._closed:
                raise PipelineError("Frame mailbox closed: render loop is gone")
            if self._slot is not None:
                self._dropped += 1
            self._slot = message
        self._available.set()

    def try_take(self) -> Optional[ChannelMessage]:
        """
        Read and clear the slot without waiting.

        Returns None when nothing new arrived since the last read.

        Raises:
            PipelineError: the mailbox is closed and empty
        """
        with self._lock:
            message = self._slot
            self._slot = None
            if message is None:
                if self._closed:
                    raise PipelineError("Frame mailbox closed")
                return None
            self._delivered += 1
        self._available.clear()
        return message

    async def take(self) -> ChannelMessage:
        """Wait until a message is available, then read and clear the slot."""
        while True:
            message = self.try_take()
            if message is not None:
                return message
            await self._available.wait()
            self._available.clear()

    def close(self) -> None:
        """Mark the consumer side as gone; later put() calls fail."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._slot = None
        self._available.set()
        log.debug("Frame mailbox closed", dropped=self._dropped, delivered=self._delivered)

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._slot is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        """Messages overwritten before the render loop read them."""
        return self._dropped

    @property
    def delivered(self) -> int:
        return self._delivered
