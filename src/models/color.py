"""
Color model - one LED's channel intensities

Three 8-bit channels, no alpha. The always-zero fourth channel needed by the
WS281x driver is added at the driver boundary (see hardware.led.ws281x_strip).
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Color:
    """
    Immutable RGB color.

    Examples:
        color = Color.from_rgb(255, 0, 0)
        r, g, b = color.to_rgb()
        Color.black() == Color(0, 0, 0)
    """

    red: int
    green: int
    blue: int

    def __post_init__(self):
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} channel out of range (0-255): {value}")

    # === CONSTRUCTORS ===

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> 'Color':
        return cls(r, g, b)

    @classmethod
    def black(cls) -> 'Color':
        """Off (used to blank pixels beyond the frame length)"""
        return cls(0, 0, 0)

    # === RENDERING ===

    def to_rgb(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)

    def to_ansi_cell(self) -> str:
        """Truecolor escape sequence drawing one colored background cell"""
        return f"\x1b[48;2;{self.red};{self.green};{self.blue}m \x1b[0m"

    def __str__(self) -> str:
        return f"RGB({self.red}, {self.green}, {self.blue})"
