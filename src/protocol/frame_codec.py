"""
Frame codec - bytes <-> Frame translation.

Canonical payload (one binary message = one frame):
  [r0, g0, b0, r1, g1, b1, ...]   len % 3 == 0, no header

Legacy clip payload (only with FramingMode.LEGACY):
  Byte 0: frame_count
  Byte 1: led_count
  Byte 2: frame_rate (frames/second)
  Byte 3..: frame_count * led_count * 3 bytes, frame after frame

Stream framing (raw TCP transport):
  [led_count: u16 big-endian][led_count * 3 bytes] repeated

Everything here is pure and stateless. Malformed input is always reported as
a ProtocolError subclass so the caller can isolate it to one connection.
"""

from __future__ import annotations

import struct
from typing import Union

from models.color import Color
from models.enums import FramingMode
from models.errors import InvalidClipHeader, InvalidFrameLength, ProtocolError
from models.frame import AnimationClip, ChannelMessage, ConnectionInfo, Frame

BYTES_PER_LED = 3
CLIP_HEADER_SIZE = 3
STREAM_PREFIX_SIZE = 2
MAX_STREAM_LEDS = 0xFFFF

_STREAM_PREFIX = struct.Struct(">H")


# =====================================================================
# Canonical frames
# =====================================================================

def decode(data: bytes) -> Frame:
    """
    Decode a canonical payload into a Frame.

    Raises:
        InvalidFrameLength: len(data) is not a multiple of three
    """
    if len(data) % BYTES_PER_LED != 0:
        raise InvalidFrameLength(len(data), "must be a multiple of 3 (r, g, b per LED)")

    # bytes iterate as ints 0-255, so channel values need no further checks
    colors = [
        Color(data[i], data[i + 1], data[i + 2])
        for i in range(0, len(data), BYTES_PER_LED)
    ]
    return Frame.from_colors(colors)


def encode(frame: Frame) -> bytes:
    """Inverse of decode()."""
    out = bytearray()
    for color in frame:
        out.extend(color.to_rgb())
    return bytes(out)


# =====================================================================
# Legacy clips
# =====================================================================

def decode_clip(data: bytes) -> AnimationClip:
    """
    Decode a legacy headered clip.

    Raises:
        InvalidFrameLength: no body after the header, or body size does not
            match frame_count * led_count * 3
        InvalidClipHeader: zero frame count, LED count or frame rate
    """
    if len(data) <= CLIP_HEADER_SIZE:
        raise InvalidFrameLength(
            len(data),
            "must contain a 3 byte header (frame_count, led_count, frame_rate) followed by LED bytes",
        )

    frame_count, led_count, frame_rate = data[0], data[1], data[2]
    for name, value in (("frame_count", frame_count), ("led_count", led_count), ("frame_rate", frame_rate)):
        if value == 0:
            raise InvalidClipHeader(name, value)

    body = data[CLIP_HEADER_SIZE:]
    frame_size = led_count * BYTES_PER_LED
    expected = frame_count * frame_size
    if len(body) != expected:
        raise InvalidFrameLength(len(body), f"header announces {expected} body bytes")

    frames = tuple(
        decode(body[offset:offset + frame_size])
        for offset in range(0, expected, frame_size)
    )
    return AnimationClip(frames=frames, led_count=led_count, frame_rate=frame_rate)


def encode_clip(clip: AnimationClip) -> bytes:
    """Inverse of decode_clip()."""
    header = bytes((clip.frame_count, clip.led_count, clip.frame_rate))
    return header + b"".join(encode(frame) for frame in clip.frames)


# =====================================================================
# Stream framing
# =====================================================================

def parse_led_count(prefix: bytes) -> int:
    """Read the big-endian u16 LED count that precedes each stream message."""
    if len(prefix) != STREAM_PREFIX_SIZE:
        raise InvalidFrameLength(len(prefix), "stream prefix must be exactly 2 bytes")
    return _STREAM_PREFIX.unpack(prefix)[0]


def encode_stream_message(frame: Frame) -> bytes:
    if frame.led_count > MAX_STREAM_LEDS:
        raise ProtocolError(
            code="FRAME_TOO_LONG",
            message=f"Stream messages carry at most {MAX_STREAM_LEDS} LEDs, got {frame.led_count}",
        )
    return _STREAM_PREFIX.pack(frame.led_count) + encode(frame)


# =====================================================================
# Mode-aware codec
# =====================================================================

class FrameCodec:
    """
    Decodes binary messages according to the negotiated FramingMode.

    Example:
        codec = FrameCodec(FramingMode.CANONICAL)
        payload = codec.decode_payload(data)
        msg = codec.to_message(payload, registry.snapshot(client_id))
    """

    def __init__(self, mode: FramingMode = FramingMode.CANONICAL):
        self.mode = mode

    def decode_payload(self, data: bytes) -> Union[Frame, AnimationClip]:
        """Decode one binary message; raises ProtocolError on malformed input."""
        if self.mode is FramingMode.LEGACY:
            return decode_clip(data)
        return decode(data)

    @staticmethod
    def to_message(payload: Union[Frame, AnimationClip], connection: ConnectionInfo) -> ChannelMessage:
        if isinstance(payload, AnimationClip):
            return ChannelMessage.from_clip(connection, payload)
        return ChannelMessage.single(connection, payload)

    def __repr__(self) -> str:
        return f"FrameCodec(mode={self.mode.value})"
