from dataclasses import dataclass
from typing import Tuple

from .mathlib import Vec3


def _saturate(v: float) -> int:
    """Clamp a channel value into [0, 255] and truncate to int."""
    if not v > 0:
        return 0
    if v >= 255:
        return 255
    return int(v)


@dataclass(frozen=True)
class Color:
    """
    8-bit RGBA pixel.

    Channels are clamped into [0, 255] on construction, and arithmetic
    saturates instead of wrapping:
      Color(200, 0, 0) + Color(100, 0, 0) == Color(255, 0, 0)
      Color(200, 0, 0) * 2.0 == Color(255, 0, 0)
    Alpha is carried through untouched.
    """
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            object.__setattr__(self, name, _saturate(getattr(self, name)))

    def __add__(self, o: "Color") -> "Color":
        return Color(self.r + o.r, self.g + o.g, self.b + o.b, self.a)

    def __mul__(self, k: float) -> "Color":
        return Color(self.r * k, self.g * k, self.b * k, self.a)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_unit(self) -> Vec3:
        """Channels as a Vec3 scaled into [0, 1] (alpha dropped)."""
        return Vec3(self.r, self.g, self.b) / 255.0

    @staticmethod
    def from_unit(v: Vec3) -> "Color":
        """Clamp a linear [0, 1] RGB triple and truncate it to 8 bits."""
        return Color(v.x * 255, v.y * 255, v.z * 255)


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)
