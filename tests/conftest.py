import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Set UTF-8 encoding for output (fixes Unicode symbol rendering)
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore

# Add src to path (also configured in pyproject.toml)
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from engine.connection_registry import ConnectionRegistry
from engine.frame_mailbox import FrameMailbox
from engine.ingestion_worker import InboundMessage
from hardware.led.virtual_strip import VirtualStrip
from lifecycle.task_registry import TaskRegistry
from models.color import Color
from models.enums import MessageKind
from models.frame import ChannelMessage, ConnectionInfo, Frame

@pytest.fixture(autouse=True)
def fresh_task_registry():
    """Every test starts with an empty TaskRegistry singleton."""
    TaskRegistry.reset()
    yield
    TaskRegistry.reset()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def mailbox():
    return FrameMailbox()


@pytest.fixture
def strip():
    return VirtualStrip(4)


def build_message(client_id: int, *colors: Color, open_connections: int = 1) -> ChannelMessage:
    return ChannelMessage.single(
        ConnectionInfo(client_id=client_id, open_connections=open_connections),
        Frame.from_colors(colors),
    )


class FakeClock:
    """
    Deterministic monotonic clock.

    sleep() advances time instead of waiting, and ends the loop under test
    after `max_sleeps` calls by flipping `target.running`.
    """

    def __init__(self, push_cost: float = 0.0, max_sleeps: Optional[int] = None):
        self.now = 0.0
        self.push_cost = push_cost
        self.max_sleeps = max_sleeps
        self.sleeps: List[float] = []
        self.target = None

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.max_sleeps is not None and len(self.sleeps) >= self.max_sleeps and self.target is not None:
            self.target.running = False
        await asyncio.sleep(0)


class TimedStrip(VirtualStrip):
    """VirtualStrip whose pushes take `clock.push_cost` seconds of fake time."""

    def __init__(self, pixel_count: int, clock: FakeClock):
        super().__init__(pixel_count)
        self.clock = clock
        self.pushed: List[Frame] = []

    def apply_frame(self, pixels) -> None:
        self.clock.now += self.clock.push_cost
        self.pushed.append(Frame.from_colors(pixels))
        super().apply_frame(pixels)


class FakeSource:
    """Scripted MessageSource: replays messages, then reports CLOSE."""

    def __init__(self, *messages: InboundMessage, peer: str = "127.0.0.1:5000"):
        self._messages = list(messages)
        self._peer = peer
        self.closed_with: Optional[tuple] = None

    @property
    def peer(self) -> str:
        return self._peer

    async def receive(self) -> InboundMessage:
        await asyncio.sleep(0)
        if not self._messages:
            return InboundMessage(MessageKind.CLOSE)
        message = self._messages.pop(0)
        if isinstance(message, BaseException):
            raise message
        return message

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = (code, reason)


# Helpers exposed as fixtures so test modules never import conftest

@pytest.fixture
def make_message():
    return build_message


@pytest.fixture
def fake_clock():
    return FakeClock


@pytest.fixture
def timed_strip():
    return TimedStrip


@pytest.fixture
def fake_source():
    return FakeSource
