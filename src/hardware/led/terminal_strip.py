"""
TerminalStrip - LED strip emulation on a color-enabled console
================================================================
Each LED becomes one background-colored cell (truecolor escape sequence),
one line per frame. Used for development without hardware.
"""

from __future__ import annotations
import sys
from typing import Optional, Sequence, TextIO

from hardware.led.strip_interface import IPhysicalStrip
from models.color import Color
from models.errors import DeviceError


class TerminalStrip(IPhysicalStrip):

    def __init__(self, pixel_count: int, stream: Optional[TextIO] = None):
        self.pixel_count = pixel_count
        self._stream = stream if stream is not None else sys.stderr

    @property
    def led_count(self) -> int:
        return self.pixel_count

    def apply_frame(self, pixels: Sequence[Color]) -> None:
        line = "".join(c.to_ansi_cell() for c in pixels[:self.pixel_count])
        self._write(line + "\n")

    def clear(self) -> None:
        self._write("\n")

    def shutdown(self) -> None:
        self.clear()

    def _write(self, text: str) -> None:
        try:
            self._stream.write(text)
            self._stream.flush()
        except (OSError, ValueError) as ex:
            # ValueError: stream already closed
            raise DeviceError(f"Terminal output failed: {ex}") from ex
