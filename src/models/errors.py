"""
Error taxonomy for the ingestion-to-render pipeline.

Connection-scoped errors (ProtocolError) are recoverable: the offending
connection is closed and nothing else is affected. Everything else here is
fatal for the process.
"""

from typing import Optional


class LedwireError(Exception):
    """Base class for domain-specific errors"""
    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ProtocolError(LedwireError):
    """Malformed binary payload (recoverable, connection-scoped)"""


class InvalidFrameLength(ProtocolError):
    """Payload length does not match the framing rules"""
    def __init__(self, length: int, expected: str):
        super().__init__(
            code="INVALID_FRAME_LENGTH",
            message=f"Invalid frame length {length}: {expected}",
            details={"length": length, "expected": expected},
        )
        self.length = length


class InvalidClipHeader(ProtocolError):
    """Legacy clip header carries an unusable field"""
    def __init__(self, field: str, value: int):
        super().__init__(
            code="INVALID_CLIP_HEADER",
            message=f"Invalid clip header field '{field}': {value}",
            details={"field": field, "value": value},
        )
        self.field = field


class PipelineError(LedwireError):
    """Producer or consumer side of the frame hand-off is gone (fatal)"""
    def __init__(self, message: str):
        super().__init__(code="PIPELINE_BROKEN", message=message)


class DeviceError(LedwireError):
    """Strip driver initialization or render failure (fatal)"""
    def __init__(self, message: str, **details):
        super().__init__(code="DEVICE_ERROR", message=message, details=details)


class BindError(LedwireError):
    """Listener address already in use or invalid (fatal at startup)"""
    def __init__(self, host: str, port: int, reason: str):
        super().__init__(
            code="BIND_ERROR",
            message=f"Failed to listen on {host}:{port}: {reason}",
            details={"host": host, "port": port},
        )


class ConfigError(LedwireError):
    """Configuration value missing or out of range"""
    def __init__(self, key: str, message: str):
        super().__init__(
            code="CONFIG_ERROR",
            message=f"{key}: {message}",
            details={"key": key},
        )
        self.key = key
