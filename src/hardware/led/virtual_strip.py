from __future__ import annotations
from typing import Sequence, Tuple
from models.color import Color
from hardware.led.strip_interface import IPhysicalStrip

class VirtualStrip(IPhysicalStrip):
    """In-memory strip: keeps the last pushed pixels, never touches hardware."""

    def __init__(self, pixel_count: int):
        self.pixel_count = pixel_count
        self._buffer: Tuple[Color, ...] = (Color.black(),) * pixel_count
        self.frames_applied = 0

    @property
    def led_count(self) -> int:
        return self.pixel_count

    def get_frame(self) -> Tuple[Color, ...]:
        return self._buffer

    def apply_frame(self, pixels: Sequence[Color]) -> None:
        shown = tuple(pixels[:self.pixel_count])
        self._buffer = shown + (Color.black(),) * (self.pixel_count - len(shown))
        self.frames_applied += 1

    def clear(self) -> None:
        self._buffer = (Color.black(),) * self.pixel_count

    def shutdown(self) -> None:
        self.clear()
