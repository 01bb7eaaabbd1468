"""The sinoscope: an animated interference pattern rendered into an RGB buffer."""

from __future__ import annotations

import math
import os
import random
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional

from .color import _float32 as f32
from .color import color_interval, color_interval_inverse, color_value
from .image import Image

BYTES_PER_PIXEL = 3
CHECK_ROUNDS = 10
_TWO_PI = 2 * math.pi
_TIME_WRAP = 2 * math.pi * 1000
_RULE = "=" * 73


class SinoscopeError(Exception):
    """Raised when the sinoscope cannot be advanced, rendered or checked."""


Handler = Callable[["Sinoscope"], None]


class Sinoscope:
    """State of one sinoscope animation and its RGB frame buffer."""

    def __init__(
        self,
        width: int,
        height: int,
        max_value: float = 200.0,
        name: str = "serial",
        handler: Optional[Handler] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("sinoscope dimensions must be positive")
        self.name = name
        self.handler: Handler = handler if handler is not None else render_serial
        self.width = width
        self.height = height
        self.buffer = bytearray(width * height * BYTES_PER_PIXEL)
        self.taylor = 3
        self.interval = color_interval(max_value)
        self.interval_inverse = color_interval_inverse(max_value)
        self.time = 0.0
        self.max_value = f32(max_value)
        self.phase0 = 0.0
        self.phase1 = 0.0
        self.dx = f32(3 * math.pi / width)
        self.dy = f32(3 * math.pi / height)

    @property
    def buffer_size(self) -> int:
        return len(self.buffer)

    def corners(self) -> None:
        """Advance the animation by one step, updating both phases and the time."""
        if self.width == 0:
            raise SinoscopeError("invalid width received")
        if self.height == 0:
            raise SinoscopeError("invalid height received")

        now = self.time
        fact = f32(((self.width * self.height) & 0xFFFFFFFF) * 0.5)
        half = f32(1000000.0 / 2)

        self.phase0 = f32(f32(f32(half * f32(math.sin(f32(now * 0.1)))) + half) / fact)
        self.phase1 = f32(f32(f32(half * f32(math.sin(f32(now * 0.2)))) + half) / fact)
        self.time = f32(self.time + 0.01)

        if self.time > _TIME_WRAP:
            self.time = f32(self.time - _TIME_WRAP)

    def render(self) -> None:
        """Fill the buffer with the current frame using the selected handler."""
        self.handler(self)

    def save_image(self, filename) -> None:
        """Advance one step, render, and write the frame as a PNG file."""
        self.corners()
        self.render()
        data = self.buffer
        pixels = [
            (data[k], data[k + 1], data[k + 2], 255)
            for k in range(0, self.width * self.height * BYTES_PER_PIXEL, BYTES_PER_PIXEL)
        ]
        Image(self.width, self.height, pixels=pixels).save_png(filename)

    def benchmark(self, iterations: int) -> "BenchmarkResult":
        """Advance and render iterations times, print and return the timings."""
        start_times = os.times()
        start = time.monotonic_ns()
        for _ in range(iterations):
            self.corners()
            self.render()
        elapsed_ns = time.monotonic_ns() - start
        end_times = os.times()

        result = BenchmarkResult(
            name=self.name,
            width=self.width,
            height=self.height,
            iterations=iterations,
            user_us=round(abs(end_times.user - start_times.user) * 1e6),
            system_us=round(abs(end_times.system - start_times.system) * 1e6),
            elapsed_us=elapsed_ns // 1000,
        )
        print(result)
        return result


@dataclass(frozen=True)
class BenchmarkResult:
    """Timings of one benchmark run, in microseconds."""

    name: str
    width: int
    height: int
    iterations: int
    user_us: int
    system_us: int
    elapsed_us: int

    def __str__(self) -> str:
        return (
            f"{self.name}\t{self.width:5d}    {self.height:5d}    {self.iterations:8d}  "
            f"{self.user_us:10d}   {self.system_us:10d}    {self.elapsed_us:10d}"
        )


def _pixel(s: Sinoscope, i: int, j: int):
    px = f32(s.dx * j - _TWO_PI)
    py = f32(s.dy * i - _TWO_PI)
    phase0, phase1, now = s.phase0, s.phase1, s.time
    value = 0.0
    for k in range(1, s.taylor + 1, 2):
        value = f32(value + math.sin(f32(f32(f32(px * k) * phase1) + now)) / k)
        value = f32(value + math.cos(f32(f32(py * k) * phase0)) / k)
    value = f32((math.atan(value) - math.atan(-value)) / math.pi)
    value = f32(f32(value + 1) * 100)
    return color_value(value, s.interval, s.interval_inverse)


def _store(s: Sinoscope, i: int, j: int) -> None:
    index = (i + j * s.width) * BYTES_PER_PIXEL
    s.buffer[index:index + BYTES_PER_PIXEL] = bytes(_pixel(s, i, j))


def _render_row(s: Sinoscope, j: int) -> None:
    for i in range(s.width):
        _store(s, i, j)


def render_serial(sinoscope: Sinoscope) -> None:
    """Render the frame one pixel at a time, column by column."""
    for i in range(sinoscope.width):
        for j in range(sinoscope.height):
            _store(sinoscope, i, j)


def render_parallel(sinoscope: Sinoscope) -> None:
    """Render the frame with rows handed out dynamically to a pool of threads."""
    with ThreadPoolExecutor() as pool:
        list(pool.map(lambda j: _render_row(sinoscope, j), range(sinoscope.height)))


def benchmark_all(width: int, height: int, taylor: int, max_value: float,
                  iterations: int) -> List[BenchmarkResult]:
    """Benchmark every renderer on the same settings and print a table."""
    scopes = [
        Sinoscope(width, height, max_value, name="serial", handler=render_serial),
        Sinoscope(width, height, max_value, name="parallel", handler=render_parallel),
    ]
    for scope in scopes:
        scope.taylor = taylor

    print(_RULE)
    print("=========================== benchmark results ===========================")
    print(_RULE)
    print("test    width   height  iterations   user (us)  system (us)  elapsed (us)")
    results = [scope.benchmark(iterations) for scope in scopes]
    print(_RULE)
    return results


def _compare(base: Sinoscope, other: Sinoscope, max_diff: int = 0) -> None:
    if base.buffer_size != other.buffer_size:
        raise SinoscopeError("buffer sizes mismatch")
    base.corners()
    other.corners()
    base.render()
    other.render()
    for index, (expected, actual) in enumerate(zip(base.buffer, other.buffer)):
        if abs(actual - expected) > max_diff:
            raise SinoscopeError(f"[{actual}] differs from [{expected}] at {index}")


def check(width: int, height: int, taylor: int, max_value: float) -> List[float]:
    """Compare the parallel renderer against the serial one at random times.

    Returns the times that were compared; raises SinoscopeError on a mismatch.
    """
    serial = Sinoscope(width, height, max_value, name="serial", handler=render_serial)
    parallel = Sinoscope(width, height, max_value, name="parallel", handler=render_parallel)
    serial.taylor = taylor
    parallel.taylor = taylor

    times = []
    for _ in range(CHECK_ROUNDS):
        moment = f32(random.random() * _TIME_WRAP)
        serial.time = moment
        parallel.time = moment
        _compare(serial, parallel)
        times.append(moment)
    return times