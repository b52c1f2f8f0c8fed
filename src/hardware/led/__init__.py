from .strip_interface import IPhysicalStrip
from .virtual_strip import VirtualStrip
from .terminal_strip import TerminalStrip
from .strip_factory import create_strip, resolve_backend

__all__ = [
    "IPhysicalStrip",
    "VirtualStrip",
    "TerminalStrip",
    "create_strip",
    "resolve_backend",
]
