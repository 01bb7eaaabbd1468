# parlab

Small tools for experimenting with parallel image processing:

- an RGBA image type with PNG loading and saving (`parlab.image`),
- pixel filters: scaling, Sobel edges, HSV conversion, colour addition,
  desaturation, 3×3 convolutions and flips (`parlab.filters`),
- an image pipeline that runs those filters serially, with worker threads
  connected by bounded queues, or as concurrent stages (`parlab.pipeline`,
  `parlab.boundedqueue`),
- the *sinoscope*, a coloured sine-field renderer with serial and
  thread-parallel implementations, benchmarks and an output check
  (`parlab.sinoscope`, `parlab.color`, `parlab.headless`),
- a source checker that tests whether an OpenMP source and an OpenCL kernel
  use the constructs a lab variant asks for (`parlab.variant_check`).

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Image pipeline

The pipeline reads `0000.png`, `0001.png`, … from an input directory until a
number is missing. Each image is scaled up by two, desaturated, flipped
horizontally and passed through a Sobel filter, then written to the output
directory as `<pipeline>-0000.png`, `<pipeline>-0001.png`, … where
`<pipeline>` is the name of the pipeline chosen.

```
parlab-pipeline --directory images --out results --pipeline pthread
```

Options:

- `--directory PATH` – where to read images (required)
- `--out PATH` – where to write images (defaults to the input directory)
- `--pipeline serial|pthread|tbb` – which pipeline to use (default `serial`):
  `serial` processes images one after another, `pthread` runs each step in its
  own pool of threads linked by bounded queues, `tbb` loads images in order and
  processes them concurrently in a thread pool
- `--quiet` – print nothing
- `--help` – show usage

Press Ctrl+C to stop loading new images; images already loaded are still
processed and saved.

From Python:

```python
from parlab.image import Image, ImageDir
from parlab import filters
from parlab.pipeline import pipeline_serial, pipeline_threaded, pipeline_stages

image = Image.from_png("images/0000.png")
edges = filters.sobel(filters.desaturate(image))
edges.save_png("edges.png")

image_dir = ImageDir()
image_dir.reset("images", "results", "serial")
saved = pipeline_serial(image_dir)   # number of images written
```

`pipeline_threaded(image_dir, workers=20)` and
`pipeline_stages(image_dir, max_workers=96)` also return how many images were
saved. `ImageDir.request_stop()` makes every later `load_next()` return
`None`, and iterating over an `ImageDir` yields its images in order.

Every filter returns a new `Image` and leaves its input untouched.
`filters.convolution33` applies any 3×3 matrix; `edge_identity`,
`edge_detect`, `sharpen`, `box_blur` and `gaussian_blur` are ready-made
kernels. Convolutions and `sobel` drop a one-pixel border, so the result is
two pixels narrower and shorter than the input. `BoundedQueue(size)` is a
thread-safe FIFO whose `push` blocks while full and `pop` blocks while empty.

## Sinoscope

```
parlab-sinoscope --headless --method openmp
parlab-sinoscope --save frame.png --width 800 --height 600
parlab-sinoscope --benchmarks 20
parlab-sinoscope --benchmark mp 20
parlab-sinoscope --check mp
```

Options:

- `--method serial|openmp` – renderer to use (default `serial`); `openmp`
  selects the thread-parallel renderer
- `--width N`, `--height N` – frame size (default 512)
- `--taylor N` – degree of the Taylor polynomial (default 6)
- `--headless` – accepted; the sinoscope always runs headless
- `--save FILE` – render one frame and write it as a PNG
- `--benchmarks N` – benchmark the serial and parallel renderers for N
  iterations and print a table
- `--benchmark serial|mp N` – benchmark one renderer for N iterations
- `--check mp` – compare the parallel renderer with the serial one at ten
  random times
- `--help` – show usage

In headless mode the frame rate is printed every second; press `1` or `2` to
switch between the serial and parallel renderers and `q` to quit.

From Python:

```python
from parlab.sinoscope import Sinoscope, render_parallel, check

scope = Sinoscope(512, 512, max_value=200.0, name="parallel", handler=render_parallel)
scope.taylor = 6
scope.corners()            # advance the animation one step
scope.render()             # fill scope.buffer with RGB bytes
scope.save_image("frame.png")

check(256, 256, 6, 200.0)  # raises SinoscopeError unless both renderers agree exactly
```

`Sinoscope.benchmark(iterations)` prints and returns a `BenchmarkResult` with
user, system and elapsed times in microseconds; `benchmark_all(...)` does this
for both renderers.

## Variant checks

`parlab.variant_check` reads a lab directory and tests that
`source/sinoscope-openmp.c` and `source/kernel/sinoscope.cl` use the OpenMP
construct, schedule and OpenCL work dimensions that a variant (1 to 8)
requires:

```python
from parlab.variant_check import check_directory, VariantError

try:
    check_directory("lab", 4)
except VariantError as error:
    print(error)
```

`check_omp_variant` and `check_ocl_variant` take the requirements from
`variant_requirements(n)` and the source text directly.

## What this package does not do

- There is no graphical viewer: the sinoscope renders into a buffer, saves
  PNG files or runs headless in the terminal.
- There is no GPU renderer; only the serial and thread-parallel ones exist, and
  `--method`, `--benchmark` and `--check` accept only those.
- The variant check reads source text with patterns; it does not parse the
  kernel, so it does not check how kernel arguments are passed, and it does
  not check pipeline sources at all.