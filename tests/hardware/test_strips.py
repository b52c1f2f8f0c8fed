import io

import pytest

from hardware.led.strip_factory import create_strip, resolve_backend
from hardware.led.terminal_strip import TerminalStrip
from hardware.led.virtual_strip import VirtualStrip
from models.color import Color
from models.config import StripConfig
from models.enums import StripBackend
from models.errors import DeviceError
from runtime.runtime_info import RuntimeInfo

RED = Color(255, 0, 0)
GREEN = Color(0, 255, 0)
BLACK = Color.black()


# =====================================================================
# VirtualStrip
# =====================================================================

def test_virtual_strip_pads_short_frames():
    strip = VirtualStrip(3)
    strip.apply_frame((RED,))

    assert strip.get_frame() == (RED, BLACK, BLACK)
    assert strip.frames_applied == 1


def test_virtual_strip_truncates_long_frames():
    strip = VirtualStrip(2)
    strip.apply_frame((RED, GREEN, RED, GREEN))

    assert strip.get_frame() == (RED, GREEN)


def test_virtual_strip_shutdown_clears():
    strip = VirtualStrip(2)
    strip.apply_frame((RED, GREEN))
    strip.shutdown()

    assert strip.get_frame() == (BLACK, BLACK)


# =====================================================================
# TerminalStrip
# =====================================================================

def test_terminal_strip_writes_one_cell_per_led():
    out = io.StringIO()
    strip = TerminalStrip(4, stream=out)

    strip.apply_frame((RED, GREEN))

    assert out.getvalue() == "\x1b[48;2;255;0;0m \x1b[0m\x1b[48;2;0;255;0m \x1b[0m\n"


def test_terminal_strip_ignores_extra_leds():
    out = io.StringIO()
    TerminalStrip(1, stream=out).apply_frame((RED, GREEN))

    assert out.getvalue().count("\x1b[48;2") == 1


def test_terminal_strip_closed_stream_is_device_error():
    out = io.StringIO()
    strip = TerminalStrip(1, stream=out)
    out.close()

    with pytest.raises(DeviceError):
        strip.apply_frame((RED,))


# =====================================================================
# Factory
# =====================================================================

def test_factory_virtual_backend():
    strip = create_strip(StripConfig(backend=StripBackend.VIRTUAL, led_count=5))

    assert isinstance(strip, VirtualStrip)
    assert strip.led_count == 5


def test_factory_terminal_backend():
    out = io.StringIO()
    strip = create_strip(StripConfig(backend=StripBackend.TERMINAL, led_count=3), stream=out)

    assert isinstance(strip, TerminalStrip)
    strip.apply_frame((RED,))
    assert out.getvalue().endswith("\n")


def test_auto_backend_off_pi_is_terminal(monkeypatch):
    monkeypatch.setattr(RuntimeInfo, "is_raspberry_pi", classmethod(lambda cls: False))

    assert resolve_backend(StripBackend.AUTO) is StripBackend.TERMINAL


def test_auto_backend_on_pi_with_driver_is_ws281x(monkeypatch):
    monkeypatch.setattr(RuntimeInfo, "is_raspberry_pi", classmethod(lambda cls: True))
    monkeypatch.setattr(RuntimeInfo, "has_ws281x", classmethod(lambda cls: True))

    assert resolve_backend(StripBackend.AUTO) is StripBackend.WS281X


def test_explicit_backend_is_kept():
    assert resolve_backend(StripBackend.VIRTUAL) is StripBackend.VIRTUAL


def test_factory_ws281x_without_driver_is_device_error(monkeypatch):
    import sys

    # None in sys.modules makes the import fail with ImportError
    monkeypatch.setitem(sys.modules, "rpi_ws281x", None)
    monkeypatch.delitem(sys.modules, "hardware.led.ws281x_strip", raising=False)

    with pytest.raises(DeviceError):
        create_strip(StripConfig(backend=StripBackend.WS281X))


def test_is_root_follows_effective_uid(monkeypatch):
    monkeypatch.setattr("os.geteuid", lambda: 0, raising=False)
    assert RuntimeInfo.is_root()

    monkeypatch.setattr("os.geteuid", lambda: 1000, raising=False)
    assert not RuntimeInfo.is_root()
