"""
ConnectionRegistry - connection id generator and live connection counter.

One instance is shared by every transport and ingestion worker of a
pipeline. The counters are advisory telemetry: nothing in rendering depends
on them.
"""

from __future__ import annotations

import threading

from models.frame import ConnectionInfo
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.INGEST)


class ConnectionRegistry:
    """Thread-safe counters for connection bookkeeping."""

    def __init__(self) -> None:
        # Protected by self._lock
        self._lock = threading.Lock()
        self._next_id = 0
        self._open = 0

    def accept(self) -> int:
        """Hand out a fresh connection id and count the connection as open."""
        with self._lock:
            client_id = self._next_id
            self._next_id += 1
            self._open += 1
            return client_id

    def close(self, client_id: int) -> None:
        """Count a connection as closed. The open count never drops below zero."""
        with self._lock:
            if self._open == 0:
                log.warn("close() with no open connections ignored", client=client_id)
                return
            self._open -= 1

    def snapshot(self, client_id: int) -> ConnectionInfo:
        with self._lock:
            return ConnectionInfo(client_id=client_id, open_connections=self._open)

    @property
    def open_connections(self) -> int:
        with self._lock:
            return self._open

    @property
    def total_accepted(self) -> int:
        with self._lock:
            return self._next_id

    def as_dict(self) -> dict:
        with self._lock:
            return {"open_connections": self._open, "total_accepted": self._next_id}
