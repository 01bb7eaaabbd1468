"""RGBA images, PNG input/output and numbered image directories."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple

from PIL import Image as _PilImage

logger = logging.getLogger(__name__)

Pixel = Tuple[int, int, int, int]

_BLANK: Pixel = (0, 0, 0, 0)


class ImageError(Exception):
    """Raised when an image cannot be read or written."""


def _as_pixel(value: Sequence[int]) -> Pixel:
    pixel = tuple(int(c) for c in value)
    if len(pixel) != 4 or any(not 0 <= c <= 255 for c in pixel):
        raise ValueError(f"a pixel is four bytes in 0..255, got {value!r}")
    return pixel  # type: ignore[return-value]


@dataclass
class Image:
    """An 8-bit RGBA image stored row by row."""

    width: int
    height: int
    id: int = 0
    pixels: list = field(default=None, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("image dimensions must not be negative")
        count = self.width * self.height
        if self.pixels is None:
            self.pixels = [_BLANK] * count
        else:
            self.pixels = [tuple(p) for p in self.pixels]
            if len(self.pixels) != count:
                raise ValueError(
                    f"expected {count} pixels for a {self.width}x{self.height} image, "
                    f"got {len(self.pixels)}"
                )

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return x + y * self.width

    def get_pixel(self, x: int, y: int) -> Pixel:
        """Return the pixel at column x, row y."""
        return self.pixels[self._index(x, y)]

    def set_pixel(self, x: int, y: int, pixel: Sequence[int]) -> None:
        """Replace the pixel at column x, row y."""
        self.pixels[self._index(x, y)] = _as_pixel(pixel)

    def copy(self) -> "Image":
        """Return an independent copy with the same id."""
        return Image(self.width, self.height, id=self.id, pixels=list(self.pixels))

    @classmethod
    def from_png(cls, filename) -> "Image":
        """Read a PNG file of any colour type into RGBA; missing alpha becomes 255."""
        try:
            with _PilImage.open(filename) as source:
                source.load()
                rgba = source.convert("RGBA")
        except (OSError, ValueError) as exc:
            raise ImageError(f"cannot read {filename}: {exc}") from exc
        width, height = rgba.size
        data = rgba.tobytes()
        pixels = [tuple(data[k:k + 4]) for k in range(0, len(data), 4)]
        return cls(width, height, pixels=pixels)

    def save_png(self, filename) -> None:
        """Write the image as an 8-bit RGBA PNG."""
        if self.width == 0 or self.height == 0:
            raise ImageError("cannot save an empty image")
        data = bytes(c for pixel in self.pixels for c in pixel)
        try:
            _PilImage.frombytes("RGBA", (self.width, self.height), data).save(
                filename, format="PNG"
            )
        except (OSError, ValueError) as exc:
            raise ImageError(f"cannot write {filename}: {exc}") from exc


@dataclass
class ImageDir:
    """A directory of images named 0000.png, 0001.png, ... read in order."""

    input_dir: str = "."
    output_dir: str = "."
    save_prefix: str = ""
    load_current: int = 0
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Make every later load_next return None."""
        self._stop.set()

    def load_next(self) -> Optional[Image]:
        """Load the next numbered image, or return None when there is none left."""
        if self._stop.is_set():
            return None
        path = Path(self.input_dir) / f"{self.load_current:04d}.png"
        if not path.exists():
            if self.load_current == 0:
                logger.error("no image found in directory `%s`", self.input_dir)
            return None
        image = Image.from_png(path)
        image.id = self.load_current
        self.load_current += 1
        return image

    def __iter__(self) -> Iterator[Image]:
        while (image := self.load_next()) is not None:
            yield image

    def save(self, image: Image) -> Path:
        """Save an image as <output_dir>/<prefix>-<id>.png and return the path."""
        path = Path(self.output_dir) / f"{self.save_prefix}-{image.id:04d}.png"
        image.save_png(path)
        return path

    def reset(self, input_dir, output_dir, save_prefix) -> None:
        """Point at new directories and restart numbering from zero."""
        self.input_dir = str(input_dir)
        self.output_dir = str(output_dir)
        self.save_prefix = save_prefix
        self.load_current = 0