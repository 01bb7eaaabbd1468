"""Command line entry point for the sinoscope."""

from __future__ import annotations

import logging
import re
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from .headless import run_headless
from .image import ImageError
from .sinoscope import (
    Sinoscope,
    SinoscopeError,
    benchmark_all,
    check,
    render_parallel,
    render_serial,
)

logger = logging.getLogger(__name__)

PROG = "parlab-sinoscope"
MAX_VALUE = 200.0
METHODS = ("serial", "openmp")

_METHOD_RENDERERS = {
    "serial": ("serial", render_serial),
    "openmp": ("parallel", render_parallel),
}
_BENCHMARK_RENDERERS = {
    "serial": ("serial", render_serial),
    "mp": ("parallel", render_parallel),
}

_LONG_MIN = -(2 ** 63)
_LONG_MAX = 2 ** 63 - 1
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class SinoscopeOptions:
    """Settings chosen on the command line."""

    methods: Tuple[str, ...] = ()
    width: int = 512
    height: int = 512
    taylor: int = 6
    headless: bool = False
    save: Optional[str] = None
    benchmarks: Optional[int] = None
    benchmark: Optional[str] = None
    iterations: int = 0
    check: Optional[str] = None


def _help() -> str:
    return "\n".join(
        [
            f"Usage: {PROG} [OPTION]...",
            "",
            "Options:",
            "  --method [serial|openmp]        computation method to use (default: serial)",
            "  --width N                       width of the simulation (default: 512)",
            "  --height N                      height of the simulation (default: 512)",
            "  --taylor N                      degree of the taylor polynomial (default: 6)",
            "  --headless                      run the computation without graphical interface",
            "  --save FILE                     save a frame into a PNG image",
            "  --benchmarks N                  benchmark all implementations for N iterations",
            "  --benchmark VARIANT N           benchmark VARIANT for N iterations",
            "  --check VARIANT                 check VARIANT outputs",
            "  --help                          show this help",
        ]
    )


def _fail(message: str) -> None:
    print(f"{PROG}: {message}", file=sys.stderr)
    print(f"Try '{PROG} --help' for more information.", file=sys.stderr)
    raise SystemExit(1)


def _leading_integer(text: str) -> int:
    """Read the leading decimal integer of text, 0 if there is none, saturating at 64 bits."""
    match = _LEADING_INT.match(text)
    if match is None:
        return 0
    return max(min(int(match.group(1)), _LONG_MAX), _LONG_MIN)


def _strictly_positive(name: str, text: str) -> int:
    value = _leading_integer(text)
    if value in (_LONG_MIN, _LONG_MAX):
        _fail(f"failed to parse '{text}' for argument `{name}`")
    if value <= 0:
        _fail(f"argument `{name}` requires a positive number")
    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> SinoscopeOptions:
    """Parse options; print a message and raise SystemExit on bad usage or --help."""
    args = iter(sys.argv[1:] if argv is None else argv)
    options = SinoscopeOptions()
    methods = []

    def value_for(option: str) -> str:
        value = next(args, None)
        if value is None:
            _fail(f"option '{option}' requires an argument")
        return value

    for option in args:
        if option == "--method":
            value = value_for(option)
            if value not in METHODS:
                _fail(f"unrecognized argument '{value}' for option `--method`")
            methods.append(value)
        elif option in ("--width", "--height", "--taylor"):
            setattr(options, option[2:], _strictly_positive(option, value_for(option)))
        elif option == "--headless":
            options.headless = True
        elif option == "--save":
            options.save = value_for(option)
        elif option == "--benchmarks":
            options.iterations = _strictly_positive(option, value_for(option))
            options.benchmarks = options.iterations
        elif option == "--benchmark":
            variant = next(args, None)
            count = next(args, None)
            if variant is None or count is None:
                _fail(f"option '{option}' requires an argument")
            options.benchmark = variant
            options.iterations = _strictly_positive(option, count)
        elif option == "--check":
            options.check = value_for(option)
        elif option == "--help":
            print(_help())
            raise SystemExit(0)
        else:
            _fail(f"unrecognized option '{option}'")

    options.methods = tuple(methods)
    return options


@contextmanager
def _log_to_stderr() -> Iterator[None]:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(filename)s:%(lineno)d: %(message)s"))
    package_logger = logging.getLogger("parlab")
    package_logger.addHandler(handler)
    try:
        yield
    finally:
        package_logger.removeHandler(handler)


def _abort(message: str) -> None:
    logger.error("%s", message)
    raise SystemExit(1)


def _run(options: SinoscopeOptions) -> int:
    if options.benchmarks is not None:
        try:
            benchmark_all(options.width, options.height, options.taylor, MAX_VALUE,
                          options.benchmarks)
        except SinoscopeError as exc:
            _abort(f"failed to check outputs: {exc}")
        return 0

    if options.benchmark is not None:
        selection = _BENCHMARK_RENDERERS.get(options.benchmark)
        if selection is None:
            print(f"Invalid benchmark: {options.benchmark}", file=sys.stderr)
            raise SystemExit(1)
        name, handler = selection
        scope = Sinoscope(options.width, options.height, MAX_VALUE, name=name, handler=handler)
        scope.taylor = options.taylor
        try:
            scope.benchmark(options.iterations)
        except SinoscopeError as exc:
            _abort(f"failed to check outputs: {exc}")
        return 0

    if options.check is not None:
        if options.check != "mp":
            print(f"Invalid check: {options.check}", file=sys.stderr)
            raise SystemExit(1)
        try:
            check(options.width, options.height, options.taylor, MAX_VALUE)
        except SinoscopeError as exc:
            print(exc)
            _abort("failed to check outputs")
        return 0

    if len(options.methods) > 1:
        _fail("zero or one option `--method` must be specified")
    method = options.methods[0] if options.methods else "serial"
    name, handler = _METHOD_RENDERERS[method]
    scope = Sinoscope(options.width, options.height, MAX_VALUE, name=name, handler=handler)
    scope.taylor = options.taylor

    if options.save is not None:
        try:
            scope.save_image(options.save)
        except (SinoscopeError, ImageError) as exc:
            _abort(f"failed to save image: {exc}")
        return 0

    run_headless(scope)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    options = parse_args(argv)
    with _log_to_stderr():
        return _run(options)


if __name__ == "__main__":
    sys.exit(main())