from pathlib import Path

import pytest

from parlab import filters
from parlab.image import Image, ImageDir
from parlab.pipeline import (
    Operation,
    apply_operation,
    pipeline_serial,
    pipeline_stages,
    pipeline_threaded,
)


def _sample(seed: int) -> Image:
    pixels = [
        ((seed * 37 + i * 29) % 256, (seed * 11 + i * 53) % 256, (seed * 71 + i * 17) % 256, 255)
        for i in range(12)
    ]
    return Image(4, 3, pixels=pixels)


def _expected(image: Image) -> Image:
    return filters.sobel(filters.horizontal_flip(filters.desaturate(filters.scale_up(image, 2))))


@pytest.fixture
def dirs(tmp_path):
    source = tmp_path / "in"
    target = tmp_path / "out"
    source.mkdir()
    target.mkdir()
    images = [_sample(seed) for seed in range(3)]
    for index, image in enumerate(images):
        image.save_png(source / f"{index:04d}.png")
    return source, target, images


def _image_dir(source: Path, target: Path, prefix: str) -> ImageDir:
    image_dir = ImageDir()
    image_dir.reset(source, target, prefix)
    return image_dir


def _check_outputs(target: Path, prefix: str, images):
    for index, image in enumerate(images):
        result = Image.from_png(target / f"{prefix}-{index:04d}.png")
        expected = _expected(image)
        assert (result.width, result.height) == (expected.width, expected.height)
        assert result.pixels == expected.pixels


@pytest.mark.parametrize(
    "operation, reference",
    [
        (Operation.SCALE, lambda im: filters.scale_up(im, 2)),
        (Operation.DESATURATE, filters.desaturate),
        (Operation.HOR_FLIP, filters.horizontal_flip),
        (Operation.EDGE_DETECT, filters.sobel),
    ],
)
def test_apply_operation_matches_filter(operation, reference):
    image = _sample(5)
    assert apply_operation(operation, image).pixels == reference(image).pixels


def test_operations_in_enum_order_form_the_pipeline():
    image = _sample(7)
    result = image
    for operation in Operation:
        result = apply_operation(operation, result)
    expected = _expected(image)
    assert (result.width, result.height) == (expected.width, expected.height)
    assert result.pixels == expected.pixels


def test_serial_pipeline_writes_processed_images(dirs, capsys):
    source, target, images = dirs
    saved = pipeline_serial(_image_dir(source, target, "serial"))
    assert saved == len(images)
    assert capsys.readouterr().out == "." * len(images) + "\n"
    _check_outputs(target, "serial", images)


def test_threaded_pipeline_matches_serial_result(dirs):
    source, target, images = dirs
    saved = pipeline_threaded(_image_dir(source, target, "pthread"), workers=2)
    assert saved == len(images)
    _check_outputs(target, "pthread", images)


def test_stage_pipeline_matches_serial_result(dirs):
    source, target, images = dirs
    saved = pipeline_stages(_image_dir(source, target, "tbb"), max_workers=2)
    assert saved == len(images)
    _check_outputs(target, "tbb", images)


def test_stopped_directory_processes_nothing(dirs):
    source, target, _ = dirs
    image_dir = _image_dir(source, target, "serial")
    image_dir.request_stop()
    assert pipeline_serial(image_dir) == 0
    assert list(target.iterdir()) == []


def test_empty_directory_yields_no_output(tmp_path):
    image_dir = _image_dir(tmp_path, tmp_path, "pthread")
    assert pipeline_threaded(image_dir, workers=3) == 0
    assert list(tmp_path.iterdir()) == []


def test_threaded_rejects_zero_workers(tmp_path):
    with pytest.raises(ValueError):
        pipeline_threaded(_image_dir(tmp_path, tmp_path, "pthread"), workers=0)


def test_stages_rejects_zero_workers(tmp_path):
    with pytest.raises(ValueError):
        pipeline_stages(_image_dir(tmp_path, tmp_path, "tbb"), max_workers=0)