"""
Configuration models

Typed, validated view of config.yaml. Built by ConfigManager; everything
downstream receives these frozen dataclasses instead of raw dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from models.enums import FramingMode, LogLevel, StripBackend
from models.errors import ConfigError


COLOR_ORDERS = ("RGB", "RBG", "GRB", "GBR", "BRG", "BGR")


def _check_port(key: str, value: Optional[int]) -> None:
    if value is not None and not 0 <= value <= 65535:
        raise ConfigError(key, f"port out of range: {value}")


HARDWARE_PORT = 80
EMULATION_PORT = 7200


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: Optional[int] = None          # None: 80 on WS281x hardware, 7200 when emulated
    stream_port: Optional[int] = None   # raw TCP transport (disabled when None)

    def __post_init__(self):
        _check_port("server.port", self.port)
        _check_port("server.stream_port", self.stream_port)

    def resolve_port(self, backend: StripBackend) -> int:
        """Configured port, or the default for the resolved strip backend."""
        if self.port is not None:
            return self.port
        return HARDWARE_PORT if backend is StripBackend.WS281X else EMULATION_PORT


@dataclass(frozen=True)
class StripConfig:
    backend: StripBackend = StripBackend.AUTO
    pin: int = 10                 # GPIO 10 = SPI0 MOSI
    led_count: int = 208
    color_order: str = "GRB"
    frequency_hz: int = 800_000
    dma_channel: int = 10
    brightness: int = 255
    invert: bool = False
    channel: int = 0

    def __post_init__(self):
        if self.led_count < 1:
            raise ConfigError("strip.led_count", f"must be positive, got {self.led_count}")
        if not 0 <= self.brightness <= 255:
            raise ConfigError("strip.brightness", f"must be 0-255, got {self.brightness}")
        if self.color_order.upper() not in COLOR_ORDERS:
            raise ConfigError("strip.color_order", f"unsupported color order {self.color_order}")
        if self.channel not in (0, 1):
            raise ConfigError("strip.channel", f"PWM channel must be 0 or 1, got {self.channel}")


@dataclass(frozen=True)
class RenderConfig:
    target_fps: float = 50.0
    latency_window: int = 32
    telemetry_interval: int = 50  # ticks between console telemetry lines (0 = off)

    def __post_init__(self):
        if self.target_fps <= 0:
            raise ConfigError("render.target_fps", f"must be positive, got {self.target_fps}")
        if self.latency_window < 1:
            raise ConfigError("render.latency_window", f"must be >= 1, got {self.latency_window}")
        if self.telemetry_interval < 0:
            raise ConfigError("render.telemetry_interval", "must not be negative")


@dataclass(frozen=True)
class ProtocolConfig:
    mode: FramingMode = FramingMode.CANONICAL


@dataclass(frozen=True)
class LoggingConfig:
    level: LogLevel = LogLevel.INFO
    colors: bool = True


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    strip: StripConfig = field(default_factory=StripConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
