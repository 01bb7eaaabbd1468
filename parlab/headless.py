"""Run the sinoscope without a window, driven by single key presses."""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from .sinoscope import Sinoscope, SinoscopeError, render_parallel, render_serial

try:
    import termios
except ImportError:  # not available on every platform
    termios = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

QUIT_KEY = "q"
FPS_PERIOD = 1.0

_SELECTIONS = {
    "1": ("serial", render_serial),
    "2": ("parallel", render_parallel),
}


def handle_key(sinoscope: Sinoscope, key: str) -> Optional[str]:
    """React to one key press and return the message to show, if any.

    "1" selects the serial renderer, "2" the parallel one and "q" quits.
    """
    if key == QUIT_KEY:
        return "Closing application"
    selection = _SELECTIONS.get(key)
    if selection is None:
        return None
    name, handler = selection
    sinoscope.name = name
    sinoscope.handler = handler
    return f"Selected {name} implementation"


def _terminal_fd(stream: TextIO) -> Optional[int]:
    if termios is None:
        return None
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    return fd if os.isatty(fd) else None


@contextmanager
def _unbuffered_keys(stream: TextIO) -> Iterator[None]:
    """Turn off line buffering and echo on a terminal for the duration."""
    fd = _terminal_fd(stream)
    if fd is None:
        yield
        return
    saved = termios.tcgetattr(fd)
    changed = termios.tcgetattr(fd)
    changed[3] &= ~(termios.ICANON | termios.ECHO)
    termios.tcsetattr(fd, termios.TCSANOW, changed)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, saved)


def run_headless(sinoscope: Sinoscope, stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None) -> int:
    """Render continuously while reporting FPS, until "q" or end of input.

    Returns the number of frames rendered.
    """
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout

    stop = threading.Event()
    count_lock = threading.Lock()
    write_lock = threading.Lock()
    frames = 0
    window = 0
    window_start = time.monotonic()

    def emit(text: str) -> None:
        with write_lock:
            stdout.write(text + "\n")
            stdout.flush()

    def render_loop() -> None:
        nonlocal frames, window
        while True:
            try:
                sinoscope.corners()
            except SinoscopeError as exc:
                logger.error("failed to forward sinoscope: %s", exc)
            try:
                sinoscope.render()
            except (SinoscopeError, ValueError) as exc:
                logger.error("failed to call sinoscope handler `%s`: %s", sinoscope.name, exc)
            with count_lock:
                frames += 1
                window += 1
            if stop.is_set():
                return

    def fps_loop() -> None:
        nonlocal window, window_start
        while True:
            now = time.monotonic()
            elapsed = now - window_start
            with count_lock:
                count = window
                window = 0
            rate = count / elapsed if elapsed > 0 else 0.0
            emit(f"FPS: {rate:2.2f}")
            window_start = now
            if stop.wait(FPS_PERIOD):
                return

    workers = [
        threading.Thread(target=render_loop, name="sinoscope-render"),
        threading.Thread(target=fps_loop, name="sinoscope-fps"),
    ]
    for worker in workers:
        worker.start()

    try:
        with _unbuffered_keys(stdin):
            while True:
                key = stdin.read(1)
                if not key:
                    break
                message = handle_key(sinoscope, key)
                if message:
                    emit(message)
                if key == QUIT_KEY:
                    break
    finally:
        stop.set()
        for worker in workers:
            worker.join()

    return frames