# hardware/led/ws281x_strip.py
"""
WS281xStrip - rpi_ws281x hardware driver
==========================================
Concrete implementation of IPhysicalStrip for WS281x chips.

Features:
- One channel, configurable GPIO pin, fixed LED count
- Color order handled by the driver's strip type (GRB for WS2811/WS2812)
- Each LED written as (r, g, b, 0): the white byte is always zero
- apply_frame() for atomic single-DMA push
- Driver failures surface as DeviceError (fatal for the render loop)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from rpi_ws281x import PixelStrip, Color as WS281xColor, ws

from hardware.led.strip_interface import IPhysicalStrip
from models.color import Color
from models.config import StripConfig
from models.errors import DeviceError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)


# Fourth channel appended to every LED at the driver boundary
WHITE_CHANNEL = 0


@dataclass(frozen=True)
class WS281xConfig:
    """Configuration for WS281x LED strip."""
    gpio_pin: int
    led_count: int
    color_order: str = "GRB"  # WS2811/WS2812 typical
    frequency_hz: int = 800_000
    dma_channel: int = 10
    brightness: int = 255
    invert: bool = False
    channel: int = 0  # PWM channel (0 or 1)

    @classmethod
    def from_strip_config(cls, config: StripConfig) -> "WS281xConfig":
        return cls(
            gpio_pin=config.pin,
            led_count=config.led_count,
            color_order=config.color_order,
            frequency_hz=config.frequency_hz,
            dma_channel=config.dma_channel,
            brightness=config.brightness,
            invert=config.invert,
            channel=config.channel,
        )


def to_driver_color(color: Color) -> int:
    """Pack one LED as the driver's 32-bit (white, red, green, blue) word."""
    r, g, b = color.to_rgb()
    return WS281xColor(r, g, b, WHITE_CHANNEL)


class WS281xStrip(IPhysicalStrip):
    """
    WS281x hardware driver using rpi_ws281x library.

    Raises:
        DeviceError: the driver could not be initialized (wrong pin, no
            permission for /dev/mem, DMA channel busy, ...)
    """

    def __init__(self, config: WS281xConfig) -> None:
        self.config = config

        try:
            self._pixel_strip = PixelStrip(
                config.led_count,
                config.gpio_pin,
                config.frequency_hz,
                config.dma_channel,
                config.invert,
                config.brightness,
                config.channel,
                self._decode_color_order(config.color_order),
            )
            self._pixel_strip.begin()
        except RuntimeError as ex:
            raise DeviceError(
                f"WS281x initialization failed: {ex}",
                gpio=config.gpio_pin,
                dma=config.dma_channel,
            ) from ex

        log.info(
            "WS281xStrip initialized",
            gpio=config.gpio_pin,
            count=config.led_count,
            order=config.color_order,
            dma=config.dma_channel,
            pwm=config.channel,
        )

    # ==================== IPhysicalStrip API ====================

    @property
    def led_count(self) -> int:
        return self.config.led_count

    def apply_frame(self, pixels: Sequence[Color]) -> None:
        """
        Atomic push of full frame to hardware (single DMA transfer).

        - Truncates frames longer than led_count
        - Blanks remaining pixels if frame shorter than led_count
        - Calls show() once at end
        """
        length = min(len(pixels), self.config.led_count)
        black = WS281xColor(0, 0, 0, WHITE_CHANNEL)

        for i in range(length):
            self._pixel_strip.setPixelColor(i, to_driver_color(pixels[i]))
        for i in range(length, self.config.led_count):
            self._pixel_strip.setPixelColor(i, black)

        self._render()

    def clear(self) -> None:
        """Turn off all LEDs (black + show)."""
        self.apply_frame(())

    def shutdown(self) -> None:
        """Graceful shutdown (clear + release the DMA channel)."""
        log.info(f"Shutting down WS281xStrip GPIO {self.config.gpio_pin}")
        try:
            self.clear()
        finally:
            try:
                self._pixel_strip._cleanup()
            except AttributeError:
                # older bindings release the device in __del__ only
                pass

    # ==================== Helpers ====================

    def _render(self) -> None:
        try:
            self._pixel_strip.show()
        except RuntimeError as ex:
            raise DeviceError(f"WS281x render failed: {ex}", gpio=self.config.gpio_pin) from ex

    @staticmethod
    def _decode_color_order(order: str) -> int:
        """Map color order string to rpi_ws281x constant."""
        mapping = {
            "RGB": ws.WS2811_STRIP_RGB,
            "RBG": ws.WS2811_STRIP_RBG,
            "GRB": ws.WS2811_STRIP_GRB,
            "GBR": ws.WS2811_STRIP_GBR,
            "BRG": ws.WS2811_STRIP_BRG,
            "BGR": ws.WS2811_STRIP_BGR,
        }
        return mapping.get(order.upper(), ws.WS2811_STRIP_GRB)
