"""
Hardware Layer

Low-level strip drivers only:

- IPhysicalStrip (what the render loop talks to)
- VirtualStrip / TerminalStrip (no hardware needed)
- WS281xStrip (rpi_ws281x, imported lazily by create_strip)

"""
from .led.strip_interface import IPhysicalStrip
from .led.virtual_strip import VirtualStrip
from .led.terminal_strip import TerminalStrip
from .led.strip_factory import create_strip

__all__ = [
    "IPhysicalStrip",
    "VirtualStrip",
    "TerminalStrip",
    "create_strip",
]
