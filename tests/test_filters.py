import pytest

from parlab import filters
from parlab.image import Image


def _uniform(width, height, pixel):
    return Image(width, height, id=5, pixels=[pixel] * (width * height))


def _gradient(width=5, height=4):
    pixels = [((x * 37) % 256, (y * 53) % 256, (x * y * 11) % 256, 100 + x)
              for y in range(height) for x in range(width)]
    return Image(width, height, id=2, pixels=pixels)


def test_rgb_to_hsv_primaries():
    assert filters.rgb_to_hsv((0, 0, 0)) == (0, 0, 0)
    assert filters.rgb_to_hsv((255, 0, 0)) == (0, 255, 255)
    assert filters.rgb_to_hsv((0, 255, 0)) == (85, 255, 255)
    assert filters.rgb_to_hsv((0, 0, 255)) == (171, 255, 255)


@pytest.mark.parametrize("level", [1, 50, 128, 255])
def test_grey_round_trip(level):
    hsv = filters.rgb_to_hsv((level, level, level))
    assert hsv == (0, 0, level)
    assert filters.hsv_to_rgb(hsv) == (level, level, level)


def test_hsv_to_rgb_red():
    assert filters.hsv_to_rgb((0, 255, 255)) == (255, 0, 0)


def test_hsv_values_are_bytes():
    for rgb in [(10, 200, 30), (200, 10, 250), (255, 254, 0), (3, 2, 1)]:
        hsv = filters.rgb_to_hsv(rgb)
        assert all(0 <= c <= 255 for c in hsv)
        assert all(0 <= c <= 255 for c in filters.hsv_to_rgb(hsv))


def test_to_hsv_and_back_keeps_alpha():
    image = _uniform(2, 2, (255, 0, 0, 42))
    hsv = filters.to_hsv(image)
    assert hsv.pixels == [(0, 255, 255, 42)] * 4
    assert filters.to_rgb(hsv).pixels == image.pixels


def test_scale_up():
    image = _gradient(3, 2)
    scaled = filters.scale_up(image, 2)
    assert (scaled.width, scaled.height, scaled.id) == (6, 4, image.id)
    for y in range(scaled.height):
        for x in range(scaled.width):
            assert scaled.get_pixel(x, y) == image.get_pixel(x // 2, y // 2)


def test_scale_up_negative_factor():
    with pytest.raises(ValueError):
        filters.scale_up(_gradient(), -1)


def test_sobel_uniform_image_has_no_edges():
    result = filters.sobel(_uniform(5, 4, (90, 90, 90, 7)))
    assert (result.width, result.height) == (3, 2)
    assert result.pixels == [(0, 0, 0, 7)] * 6


def test_sobel_clamps_strong_edge():
    image = _uniform(3, 3, (0, 0, 0, 255))
    for y in range(3):
        image.set_pixel(0, y, (255, 255, 255, 255))
    assert filters.sobel(image).pixels == [(255, 255, 255, 255)]


def test_sobel_too_small():
    with pytest.raises(ValueError):
        filters.sobel(Image(1, 5))


def test_add_pixel_wraps_and_keeps_alpha():
    image = _uniform(1, 1, (250, 10, 0, 7))
    assert filters.add_pixel(image, (10, 0, 0, 99)).pixels == [(4, 10, 0, 7)]


def test_desaturate():
    result = filters.desaturate(_gradient())
    for before, after in zip(_gradient().pixels, result.pixels):
        assert after[0] == after[1] == after[2]
        assert after[0] <= max(before[:3])
        assert after[3] == before[3]
    assert filters.desaturate(_uniform(1, 1, (0, 0, 0, 1))).pixels == [(0, 0, 0, 1)]


def test_edge_identity_crops_border():
    image = _gradient()
    result = filters.edge_identity(image)
    assert (result.width, result.height) == (image.width - 2, image.height - 2)
    for y in range(result.height):
        for x in range(result.width):
            assert result.get_pixel(x, y) == image.get_pixel(x + 1, y + 1)


def test_edge_detect_uniform_and_clamping():
    assert filters.edge_detect(_uniform(3, 3, (70, 80, 90, 1))).pixels == [(0, 0, 0, 1)]
    bright_center = _uniform(3, 3, (0, 0, 0, 9))
    bright_center.set_pixel(1, 1, (255, 255, 255, 9))
    assert filters.edge_detect(bright_center).pixels == [(255, 255, 255, 9)]
    dark_center = _uniform(3, 3, (255, 255, 255, 9))
    dark_center.set_pixel(1, 1, (0, 0, 0, 9))
    assert filters.edge_detect(dark_center).pixels == [(0, 0, 0, 9)]


def test_sharpen_uniform_is_unchanged():
    assert filters.sharpen(_uniform(4, 4, (12, 34, 56, 78))).pixels == [(12, 34, 56, 78)] * 4


def test_box_blur_close_to_uniform_value():
    result = filters.box_blur(_uniform(3, 3, (100, 0, 200, 5)))
    (r, g, b, a), = result.pixels
    assert 99 <= r <= 100 and g == 0 and 199 <= b <= 200 and a == 5


def test_gaussian_blur_kernel_weights():
    assert filters.gaussian_blur(_uniform(3, 3, (16, 0, 0, 3))).pixels == [(18, 0, 0, 3)]


def test_convolution33_rejects_bad_matrix():
    with pytest.raises(ValueError):
        filters.convolution33(_gradient(), [[1, 0], [0, 1]])


def test_convolution33_negative_weights_clamp_to_zero():
    result = filters.convolution33(_gradient(), [[0, 0, 0], [0, -1, 0], [0, 0, 0]])
    assert all(p[:3] == (0, 0, 0) for p in result.pixels)


def test_horizontal_flip():
    image = _gradient()
    flipped = filters.horizontal_flip(image)
    assert flipped.get_pixel(0, 1) == image.get_pixel(image.width - 1, 1)
    assert filters.horizontal_flip(flipped).pixels == image.pixels


def test_vertical_flip():
    image = _gradient()
    flipped = filters.vertical_flip(image)
    for y in range(image.height):
        assert flipped.get_pixel(2, y) == image.get_pixel(2, image.height - 1 - y)
    assert filters.vertical_flip(flipped).pixels == image.pixels


def test_filters_do_not_modify_input():
    image = _gradient()
    before = list(image.pixels)
    filters.sobel(image)
    filters.desaturate(image)
    filters.horizontal_flip(image)
    assert image.pixels == before