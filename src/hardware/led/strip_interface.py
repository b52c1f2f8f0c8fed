# hardware/led/strip_interface.py
"""
IPhysicalStrip Protocol
========================
Hardware abstraction for LED strips.
Minimal contract for any driver the render loop can push frames to
(WS281x hardware, terminal emulation, in-memory virtual strip).
"""

from __future__ import annotations
from typing import Protocol, Sequence
from models.color import Color


class IPhysicalStrip(Protocol):
    """
    Protocol defining minimal LED strip interface.

    All implementations must provide:
    - led_count: total pixels
    - apply_frame: atomic push of full frame
    - clear: turn off all LEDs
    - shutdown: release the device

    apply_frame() and clear() raise DeviceError when the device fails; the
    render loop treats that as fatal.
    """

    @property
    def led_count(self) -> int:
        """Total number of addressable pixels."""
        ...

    def apply_frame(self, pixels: Sequence[Color]) -> None:
        """
        Atomic push of entire frame to the device.
        Pixels beyond led_count are ignored, missing ones are blanked.
        """
        ...

    def clear(self) -> None:
        """Turn off all LEDs."""
        ...

    def shutdown(self) -> None:
        """Clear and release the device."""
        ...
