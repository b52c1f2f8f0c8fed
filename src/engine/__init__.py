"""
Engine package - ingestion-to-render pipeline

- ConnectionRegistry : connection ids and open connection count
- FrameMailbox       : single-slot latest-wins hand-off
- IngestionWorker    : per-connection reader feeding the mailbox
- RenderLoop         : fixed-cadence consumer driving the strip
- LatencyTracker     : bounded render latency statistics
"""

from .connection_registry import ConnectionRegistry
from .frame_mailbox import FrameMailbox
from .latency_tracker import LatencyTracker

__all__ = [
    "ConnectionRegistry",
    "FrameMailbox",
    "LatencyTracker",
]
