"""Image filters; each returns a new image and leaves its input untouched."""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from .image import Image, Pixel

Matrix = Sequence[Sequence[float]]

_SOBEL_X = (1, 0, -1, 2, 0, -2, 1, 0, -1)
_SOBEL_Y = (1, 2, 1, 0, 0, 0, -1, -2, -1)


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // denominator
    return -quotient if numerator < 0 else quotient


def rgb_to_hsv(rgb: Sequence[int]) -> Tuple[int, int, int]:
    """Convert an RGB byte triple to the byte-scaled HSV used by the filters."""
    r, g, b = (int(c) for c in rgb[:3])
    cmin = min(r, g, b)
    cmax = max(r, g, b)
    v = cmax
    if v == 0:
        return 0, 0, 0
    delta = cmax - cmin
    s = (255 * delta) // v
    if s == 0:
        return 0, 0, v
    if cmax == r:
        h = _trunc_div(43 * (g - b), delta)
    elif cmax == g:
        h = 85 + _trunc_div(43 * (b - r), delta)
    else:
        h = 171 + _trunc_div(43 * (r - g), delta)
    return h & 0xFF, s & 0xFF, v


def hsv_to_rgb(hsv: Sequence[int]) -> Tuple[int, int, int]:
    """Convert a byte-scaled HSV triple back to RGB bytes."""
    h, s, v = (int(c) for c in hsv[:3])
    if s == 0:
        return v, v, v
    region = h // 43
    remainder = ((h - region * 43) * 6) & 0xFF
    p = (v * (255 - s)) >> 8
    q = (v * (255 - ((s * remainder) >> 8))) >> 8
    t = (v * (255 - ((s * (255 - remainder)) >> 8))) >> 8
    return {
        0: (v, t, p),
        1: (q, v, p),
        2: (p, v, t),
        3: (p, q, v),
        4: (t, p, v),
    }.get(region, (v, p, q))


def _rows(image: Image) -> Iterator[List[Pixel]]:
    w = image.width
    for j in range(image.height):
        yield image.pixels[j * w:(j + 1) * w]


def _map_pixels(image: Image, transform) -> Image:
    return Image(image.width, image.height, id=image.id,
                 pixels=[transform(p) for p in image.pixels])


def _windows(image: Image) -> Iterator[Tuple[Pixel, List[Pixel]]]:
    """Yield each interior pixel with its 3x3 neighbourhood, top row first."""
    if image.width < 2 or image.height < 2:
        raise ValueError("image must be at least 2x2 for a 3x3 filter")
    w = image.width
    px = image.pixels
    for j in range(1, image.height - 1):
        for i in range(1, w - 1):
            window = [px[(j + dy) * w + i + dx] for dy in (-1, 0, 1) for dx in (-1, 0, 1)]
            yield px[j * w + i], window


def _cropped(image: Image, pixels: List[Pixel]) -> Image:
    return Image(max(image.width - 2, 0), max(image.height - 2, 0), id=image.id, pixels=pixels)


def scale_up(image: Image, factor: int) -> Image:
    """Enlarge by an integer factor, repeating each pixel in a factor x factor block."""
    if factor < 0:
        raise ValueError("scale factor must not be negative")
    pixels: List[Pixel] = []
    for row in _rows(image):
        expanded = [p for p in row for _ in range(factor)]
        pixels.extend(expanded * factor)
    return Image(image.width * factor, image.height * factor, id=image.id, pixels=pixels)


def sobel(image: Image) -> Image:
    """Sobel edge magnitude |Gx| + |Gy| per channel; the result loses a one-pixel border."""
    pixels = []
    for center, window in _windows(image):
        channels = tuple(
            min(
                abs(sum(p[k] * w for p, w in zip(window, _SOBEL_X)))
                + abs(sum(p[k] * w for p, w in zip(window, _SOBEL_Y))),
                255,
            )
            for k in range(3)
        )
        pixels.append(channels + (center[3],))
    return _cropped(image, pixels)


def to_hsv(image: Image) -> Image:
    """Convert every pixel from RGB to HSV, keeping alpha."""
    return _map_pixels(image, lambda p: rgb_to_hsv(p) + (p[3],))


def to_rgb(image: Image) -> Image:
    """Convert every pixel from HSV to RGB, keeping alpha."""
    return _map_pixels(image, lambda p: hsv_to_rgb(p) + (p[3],))


def add_pixel(image: Image, pixel: Sequence[int]) -> Image:
    """Add a colour to every pixel with byte wrap-around, keeping alpha."""
    delta = tuple(int(c) for c in pixel[:3])
    return _map_pixels(
        image, lambda p: tuple((c + d) & 0xFF for c, d in zip(p[:3], delta)) + (p[3],)
    )


def desaturate(image: Image) -> Image:
    """Replace colour by weighted luminance 0.30 R + 0.59 G + 0.11 B."""
    def grey(p: Pixel) -> Pixel:
        value = 0.0
        value += 0.30 * p[0]
        value += 0.59 * p[1]
        value += 0.11 * p[2]
        level = int(value) & 0xFF
        return level, level, level, p[3]

    return _map_pixels(image, grey)


def convolution33(image: Image, matrix: Matrix) -> Image:
    """Apply a 3x3 kernel to RGB; values are clamped to 0..255 and truncated."""
    if len(matrix) != 3 or any(len(row) != 3 for row in matrix):
        raise ValueError("convolution matrix must be 3x3")
    weights = [float(w) for row in matrix for w in row]
    pixels = []
    for center, window in _windows(image):
        channels = tuple(
            int(min(max(sum(p[k] * w for p, w in zip(window, weights)), 0.0), 255.0))
            for k in range(3)
        )
        pixels.append(channels + (center[3],))
    return _cropped(image, pixels)


def edge_identity(image: Image) -> Image:
    return convolution33(image, ((0, 0, 0), (0, 1, 0), (0, 0, 0)))


def edge_detect(image: Image) -> Image:
    return convolution33(image, ((-1, -1, -1), (-1, 8, -1), (-1, -1, -1)))


def sharpen(image: Image) -> Image:
    return convolution33(image, ((0, -2, 0), (-2, 9, -2), (0, -2, 0)))


def box_blur(image: Image) -> Image:
    ninth = 1.0 / 9.0
    return convolution33(image, ((ninth,) * 3,) * 3)


def gaussian_blur(image: Image) -> Image:
    return convolution33(
        image,
        (
            (1.0 / 16.0, 2.0 / 16.0, 1.0 / 16.0),
            (2.0 / 16.0, 4.0 / 16.0, 4.0 / 16.0),
            (1.0 / 16.0, 2.0 / 16.0, 1.0 / 16.0),
        ),
    )


def horizontal_flip(image: Image) -> Image:
    """Mirror left to right."""
    pixels = [p for row in _rows(image) for p in reversed(row)]
    return Image(image.width, image.height, id=image.id, pixels=pixels)


def vertical_flip(image: Image) -> Image:
    """Mirror top to bottom."""
    pixels = [p for row in reversed(list(_rows(image))) for p in row]
    return Image(image.width, image.height, id=image.id, pixels=pixels)