from .frame_codec import (
    FrameCodec,
    decode,
    encode,
    decode_clip,
    encode_clip,
    parse_led_count,
    encode_stream_message,
    STREAM_PREFIX_SIZE,
)

__all__ = [
    "FrameCodec",
    "decode",
    "encode",
    "decode_clip",
    "encode_clip",
    "parse_led_count",
    "encode_stream_message",
    "STREAM_PREFIX_SIZE",
]
