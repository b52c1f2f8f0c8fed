"""
Models package - Data models for the ledwire pipeline
"""

from .enums import FramingMode, StripBackend, MessageKind, LogLevel, LogCategory
from .color import Color
from .frame import Frame, AnimationClip, ConnectionInfo, ChannelMessage

__all__ = [
    'FramingMode',
    'StripBackend',
    'MessageKind',
    'LogLevel',
    'LogCategory',
    'Color',
    'Frame',
    'AnimationClip',
    'ConnectionInfo',
    'ChannelMessage',
]
