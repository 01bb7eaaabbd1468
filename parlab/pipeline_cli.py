"""Command line entry point for the image pipelines."""

from __future__ import annotations

import logging
import os
import signal
import sys
from contextlib import ExitStack, contextmanager, redirect_stderr, redirect_stdout
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .image import ImageDir
from .pipeline import pipeline_serial, pipeline_stages, pipeline_threaded

PROG = "parlab-pipeline"
PIPELINES = ("serial", "pthread", "tbb")

_RUNNERS = {
    "serial": pipeline_serial,
    "pthread": pipeline_threaded,
    "tbb": pipeline_stages,
}


@dataclass
class PipelineOptions:
    """Settings chosen on the command line."""

    input_dir: str
    output_dir: str
    pipeline: str = "serial"
    quiet: bool = False


def _help() -> str:
    return "\n".join(
        [
            f"Usage: {PROG} [OPTION]...",
            "",
            "Options:",
            "  --directory PATH                path to read images",
            "  --out PATH                      path to write images",
            "  --quiet                         don't print anything",
            "  --pipeline [serial|pthread|tbb] pipeline algorithm to use",
        ]
    )


def _fail(message: str) -> None:
    print(f"{PROG}: {message}", file=sys.stderr)
    print(f"Try '{PROG} --help' for more information.", file=sys.stderr)
    raise SystemExit(1)


def parse_args(argv: Optional[Sequence[str]] = None) -> PipelineOptions:
    """Parse options; print a message and raise SystemExit on bad usage or --help."""
    args = iter(sys.argv[1:] if argv is None else argv)
    input_dir: Optional[str] = None
    output_dir: Optional[str] = None
    quiet = False
    chosen: List[str] = []

    for option in args:
        if option in ("--directory", "--out", "--pipeline"):
            value = next(args, None)
            if value is None:
                _fail(f"option '{option}' requires an argument")
            if option == "--directory":
                input_dir = value
            elif option == "--out":
                output_dir = value
            elif value in PIPELINES:
                chosen.append(value)
            else:
                _fail(f"unrecognized argument '{value}' for option `--pipeline`")
        elif option == "--quiet":
            quiet = True
        elif option == "--help":
            print(_help())
            raise SystemExit(0)
        else:
            _fail(f"unrecognized option '{option}'")

    if len(chosen) > 1:
        _fail("zero or one option `--pipeline` must be specified")
    if input_dir is None:
        _fail("option `--directory` must be specified")

    return PipelineOptions(
        input_dir=input_dir,
        output_dir=output_dir or input_dir,
        pipeline=chosen[0] if chosen else "serial",
        quiet=quiet,
    )


@contextmanager
def _log_to_stderr() -> Iterator[None]:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(filename)s@%(lineno)d: %(message)s"))
    package_logger = logging.getLogger("parlab")
    package_logger.addHandler(handler)
    try:
        yield
    finally:
        package_logger.removeHandler(handler)


@contextmanager
def _stop_on_sigint(image_dir: ImageDir) -> Iterator[None]:
    def handler(signum, frame) -> None:
        print("\n\rSIGINT received, stopping pipeline")
        image_dir.request_stop()

    installed = False
    previous = None
    try:
        previous = signal.signal(signal.SIGINT, handler)
        installed = True
    except ValueError:
        pass  # not in the main thread; CTRL+C keeps its default behaviour
    try:
        yield
    finally:
        if installed:
            signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)


def main(argv: Optional[Sequence[str]] = None) -> int:
    options = parse_args(argv)
    image_dir = ImageDir()
    image_dir.reset(options.input_dir, options.output_dir, options.pipeline)
    run = _RUNNERS[options.pipeline]

    with ExitStack() as stack:
        if options.quiet:
            devnull = stack.enter_context(open(os.devnull, "w"))
            stack.enter_context(redirect_stdout(devnull))
            stack.enter_context(redirect_stderr(devnull))
        stack.enter_context(_log_to_stderr())
        stack.enter_context(_stop_on_sigint(image_dir))
        print("Starting image pipeline, press CTRL+C to stop loading images")
        run(image_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())