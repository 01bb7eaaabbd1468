"""Colour palette used by the sinoscope renderer."""

from __future__ import annotations

import math
import struct
from typing import Tuple

RGB = Tuple[int, int, int]

PIXEL_WHITE: RGB = (255, 255, 255)
PIXEL_BLACK: RGB = (0, 0, 0)

_F32 = struct.Struct("f")


def _float32(value: float) -> float:
    """Round a Python float to the nearest single-precision value."""
    return _F32.unpack(_F32.pack(value))[0]


def _c_remainder(dividend: int, divisor: int) -> int:
    """Integer remainder whose sign follows the dividend."""
    rem = abs(dividend) % abs(divisor)
    return -rem if dividend < 0 else rem


def color_interval(max_value: float) -> int:
    """Width of one of the five colour segments spanning 0..max_value."""
    if max_value < 4.0:
        return 1
    return int(_float32(int(max_value) / 4.0))


def color_interval_inverse(max_value: float) -> float:
    """Single-precision reciprocal of color_interval(max_value)."""
    return _float32(1.0 / color_interval(max_value))


def color_value(value: float, interval: int, interval_inverse: float) -> RGB:
    """Map a value to an RGB colour along a blue-cyan-green-yellow-red-magenta ramp.

    NaN maps to black and anything past the last segment to white.
    """
    if interval == 0:
        raise ValueError("colour interval must not be zero")
    if math.isnan(value):
        return PIXEL_BLACK
    if math.isinf(value):
        return PIXEL_WHITE

    rem = _c_remainder(int(value), interval)
    x = int(_float32(_float32(float(rem * 255)) * interval_inverse))
    segment = int(_float32(value * interval_inverse))

    up = x & 0xFF
    down = (255 - x) & 0xFF
    if segment == 0:
        return 0, up, 255
    if segment == 1:
        return 0, 255, down
    if segment == 2:
        return up, 255, 0
    if segment == 3:
        return 255, down, 0
    if segment == 4:
        return 255, 0, up
    return PIXEL_WHITE