"""Image processing pipelines: scale up, desaturate, flip and edge-detect each image."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Iterator, List, Optional

from . import filters
from .boundedqueue import BoundedQueue
from .image import Image, ImageDir, ImageError

logger = logging.getLogger(__name__)

NUM_PARALLEL_PIPELINES = 20
QUEUE_SIZE = 32
MAX_THREAD_COUNT = 96


class Operation(Enum):
    """One step of the pipeline, in the order the steps are applied."""

    SCALE = 0
    DESATURATE = 1
    HOR_FLIP = 2
    EDGE_DETECT = 3


_OPERATIONS = {
    Operation.SCALE: lambda image: filters.scale_up(image, 2),
    Operation.DESATURATE: filters.desaturate,
    Operation.HOR_FLIP: filters.horizontal_flip,
    Operation.EDGE_DETECT: filters.sobel,
}


def apply_operation(operation: Operation, image: Image) -> Image:
    """Apply one pipeline step and return the new image."""
    return _OPERATIONS[operation](image)


def _process(image: Image) -> Image:
    for operation in Operation:
        image = apply_operation(operation, image)
    return image


def _images(image_dir: ImageDir) -> Iterator[Image]:
    """Yield images until the directory runs out, is stopped, or a file fails to load."""
    while True:
        try:
            image = image_dir.load_next()
        except ImageError as exc:
            logger.error("%s", exc)
            return
        if image is None:
            return
        yield image


def _save(image_dir: ImageDir, image: Image) -> bool:
    try:
        image_dir.save(image)
    except ImageError as exc:
        logger.error("%s", exc)
        return False
    return True


def pipeline_serial(image_dir: ImageDir) -> int:
    """Process every image one after another; return how many were saved."""
    saved = 0
    for image in _images(image_dir):
        saved += _save(image_dir, _process(image))
        print(".", end="", flush=True)
    print()
    return saved


def pipeline_threaded(image_dir: ImageDir, workers: int = NUM_PARALLEL_PIPELINES) -> int:
    """Run each step in its own pool of threads linked by bounded queues.

    Returns how many images were saved.
    """
    if workers < 1:
        raise ValueError("at least one worker per step is needed")

    steps = list(Operation)
    queues: List[BoundedQueue[Optional[Image]]] = [
        BoundedQueue(QUEUE_SIZE) for _ in range(len(steps) + 1)
    ]
    saved = 0
    saved_lock = threading.Lock()

    def feed() -> None:
        try:
            for image in _images(image_dir):
                queues[0].push(image)
        finally:
            for _ in range(workers):
                queues[0].push(None)

    def step(operation: Operation, source: BoundedQueue, sink: BoundedQueue) -> None:
        while (image := source.pop()) is not None:
            try:
                result = apply_operation(operation, image)
            except (ValueError, ImageError) as exc:
                logger.error("error in image processing step %s: %s", operation.name, exc)
                continue
            sink.push(result)
        sink.push(None)

    def drain(source: BoundedQueue) -> None:
        nonlocal saved
        while (image := source.pop()) is not None:
            if _save(image_dir, image):
                with saved_lock:
                    saved += 1

    threads = [
        threading.Thread(target=step, args=(operation, queues[k], queues[k + 1]))
        for k, operation in enumerate(steps)
        for _ in range(workers)
    ]
    threads.append(threading.Thread(target=feed))
    threads.extend(threading.Thread(target=drain, args=(queues[-1],)) for _ in range(workers))

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return saved


def pipeline_stages(image_dir: ImageDir, max_workers: int = MAX_THREAD_COUNT) -> int:
    """Load images serially and process them concurrently, at most max_workers in flight.

    Returns how many images were saved.
    """
    if max_workers < 1:
        raise ValueError("at least one worker is needed")

    tokens = threading.BoundedSemaphore(max_workers)
    saved = 0
    saved_lock = threading.Lock()

    def run(image: Image) -> None:
        nonlocal saved
        try:
            result = _process(image)
            if _save(image_dir, result):
                with saved_lock:
                    saved += 1
        except (ValueError, ImageError) as exc:
            logger.error("error while processing image %d: %s", image.id, exc)
        finally:
            tokens.release()

    futures: List[Future] = []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        for image in _images(image_dir):
            tokens.acquire()
            futures.append(pool.submit(run, image))
    for future in futures:
        future.result()
    return saved