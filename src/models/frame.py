"""
Frame models for the ingestion-to-render pipeline.

✔ Frame          - ordered LEDs (position = LED index on the strip)
✔ AnimationClip  - legacy multi-frame payload with its own frame rate
✔ ConnectionInfo - registry snapshot attached to every forwarded message
✔ ChannelMessage - unit handed from an ingestion worker to the render loop

All of them are frozen: a value is created once and ownership moves from
one pipeline stage to the next.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from models.color import Color


# =====================================================================
# Frame
# =====================================================================

@dataclass(frozen=True)
class Frame:
    """
    One display update: an immutable ordered tuple of Colors.
    """

    leds: Tuple[Color, ...] = ()

    @classmethod
    def from_colors(cls, colors: Sequence[Color]) -> "Frame":
        return cls(leds=tuple(colors))

    @property
    def led_count(self) -> int:
        return len(self.leds)

    def led(self, index: int) -> Color:
        return self.leds[index]

    def last_led(self) -> Optional[Color]:
        """Last LED on the strip, or None for an empty frame."""
        return self.leds[-1] if self.leds else None

    def __len__(self) -> int:
        return len(self.leds)

    def __getitem__(self, index):
        return self.leds[index]

    def __iter__(self) -> Iterator[Color]:
        return iter(self.leds)


# =====================================================================
# Legacy clip
# =====================================================================

@dataclass(frozen=True)
class AnimationClip:
    """
    Short animation decoded from the legacy headered payload.

    frames all share the same led_count and are played back at frame_rate.
    """

    frames: Tuple[Frame, ...]
    led_count: int
    frame_rate: int

    @property
    def frame_count(self) -> int:
        return len(self.frames)


# =====================================================================
# Connection bookkeeping
# =====================================================================

@dataclass(frozen=True)
class ConnectionInfo:
    """Registry state at the moment a message was forwarded."""

    client_id: int
    open_connections: int


@dataclass(frozen=True)
class ChannelMessage:
    """
    ConnectionInfo + payload, transferred from IngestionWorker to RenderLoop.

    Canonical messages carry exactly one frame and no frame_rate; legacy clip
    messages carry the whole clip and the clip's frame rate.
    """

    connection: ConnectionInfo
    frames: Tuple[Frame, ...]
    frame_rate: Optional[float] = None

    def __post_init__(self):
        if not self.frames:
            raise ValueError("ChannelMessage requires at least one frame")

    @classmethod
    def single(cls, connection: ConnectionInfo, frame: Frame) -> "ChannelMessage":
        return cls(connection=connection, frames=(frame,))

    @classmethod
    def from_clip(cls, connection: ConnectionInfo, clip: AnimationClip) -> "ChannelMessage":
        return cls(connection=connection, frames=clip.frames, frame_rate=float(clip.frame_rate))

    @property
    def frame(self) -> Frame:
        return self.frames[0]

    @property
    def is_clip(self) -> bool:
        return self.frame_rate is not None
