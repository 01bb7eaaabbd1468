"""Check that the OpenMP and OpenCL sources follow the constructs a lab variant asks for."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path


class VariantError(Exception):
    """Raised when a source does not follow its variant, or cannot be checked."""


class OmpConstruct(Enum):
    PARALLEL_WITH_FOR = auto()
    PARALLEL_WITH_FOR_SIMD = auto()
    PARALLEL_FOR = auto()
    PARALLEL_FOR_SIMD = auto()


class OmpSchedule(Enum):
    STATIC = auto()
    DYNAMIC = auto()
    GUIDED = auto()


class OclParam(Enum):
    INT_STRUCT_FLOAT_STRUCT = auto()
    ONE_BY_ONE = auto()
    STRUCT = auto()
    INT_STRUCT_FLOAT_ONE_BY_ONE = auto()
    FLOAT_STRUCT_INT_ONE_BY_ONE = auto()


class OclDim(Enum):
    ONE_D = auto()
    TWO_D = auto()


@dataclass(frozen=True)
class Requirements:
    """What a variant requires of the OpenMP code and of the OpenCL kernel."""

    omp_construct: OmpConstruct
    omp_schedule: OmpSchedule
    ocl_param: OclParam
    ocl_dim: OclDim


_VARIANTS = {
    1: Requirements(OmpConstruct.PARALLEL_WITH_FOR, OmpSchedule.STATIC,
                    OclParam.INT_STRUCT_FLOAT_STRUCT, OclDim.ONE_D),
    2: Requirements(OmpConstruct.PARALLEL_WITH_FOR, OmpSchedule.DYNAMIC,
                    OclParam.INT_STRUCT_FLOAT_STRUCT, OclDim.TWO_D),
    3: Requirements(OmpConstruct.PARALLEL_WITH_FOR_SIMD, OmpSchedule.STATIC,
                    OclParam.STRUCT, OclDim.ONE_D),
    4: Requirements(OmpConstruct.PARALLEL_WITH_FOR_SIMD, OmpSchedule.DYNAMIC,
                    OclParam.STRUCT, OclDim.TWO_D),
    5: Requirements(OmpConstruct.PARALLEL_FOR, OmpSchedule.STATIC,
                    OclParam.INT_STRUCT_FLOAT_ONE_BY_ONE, OclDim.ONE_D),
    6: Requirements(OmpConstruct.PARALLEL_FOR, OmpSchedule.DYNAMIC,
                    OclParam.INT_STRUCT_FLOAT_ONE_BY_ONE, OclDim.TWO_D),
    7: Requirements(OmpConstruct.PARALLEL_FOR_SIMD, OmpSchedule.STATIC,
                    OclParam.FLOAT_STRUCT_INT_ONE_BY_ONE, OclDim.ONE_D),
    8: Requirements(OmpConstruct.PARALLEL_FOR_SIMD, OmpSchedule.DYNAMIC,
                    OclParam.FLOAT_STRUCT_INT_ONE_BY_ONE, OclDim.TWO_D),
}

_OMP_CONSTRUCT = re.compile(r"(#pragma omp|\[\[omp) (.+)")
_OCL_DIM = re.compile(r"get_global_id\((.+)\);")


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise VariantError("Failed assertion, " + message)


def variant_requirements(variant: int) -> Requirements:
    """Return the requirements of a variant numbered 1 to 8."""
    try:
        return _VARIANTS[variant]
    except KeyError:
        raise VariantError("Unexpected variant number") from None


def check_omp_variant(requirements: Requirements, source: str) -> None:
    """Check the OpenMP pragmas in source text; raise VariantError if they do not fit."""
    pragmas = [match.group(0) for match in _OMP_CONSTRUCT.finditer(source)]

    def seen(word: str) -> bool:
        return any(word in pragma for pragma in pragmas)

    has_simd = seen("simd")
    has_parallel = seen("parallel")
    has_parallel_for = seen("parallel for")
    has_dynamic = seen("dynamic")
    has_static = seen("static")
    has_guided = seen("has_guided")

    construct = requirements.omp_construct
    if construct is OmpConstruct.PARALLEL_WITH_FOR:
        _require(not has_simd and not has_parallel_for and has_parallel,
                 "omp parallel attendu")
    elif construct is OmpConstruct.PARALLEL_WITH_FOR_SIMD:
        _require(has_simd and not has_parallel_for and has_parallel,
                 "omp parallel attendu, avec for SIMD")
    elif construct is OmpConstruct.PARALLEL_FOR:
        _require(not has_simd and has_parallel_for and has_parallel,
                 "omp parallel for attendu")
    else:
        _require(has_simd and has_parallel_for and has_parallel,
                 "omp parallel for attendu, avec for SIMD")

    schedule = requirements.omp_schedule
    if schedule is OmpSchedule.DYNAMIC:
        _require(has_dynamic, "ordonnancement dynamique attendu")
    elif schedule is OmpSchedule.GUIDED:
        _require(has_dynamic, "ordonnancement guidé attendu")
    else:
        _require(has_static or (not has_dynamic and not has_guided),
                 "ordonnancement statique attendu")


def check_ocl_variant(requirements: Requirements, source: str) -> None:
    """Check the work dimensions used by an OpenCL kernel's source text."""
    dims = [match.group(1) for match in _OCL_DIM.finditer(source)]
    different = any(dim != dims[0] for dim in dims)

    if requirements.ocl_dim is OclDim.ONE_D:
        _require(not different, "OpenCL: le calcul doit s'effectuer en une dimension")
    else:
        _require(different, "OpenCL: le calcul doit s'effectuer en deux dimensions")


def _load(path: Path) -> str:
    try:
        return path.read_text()
    except OSError:
        raise VariantError(f"assertVariant() : Could not open file {path}") from None


def check_directory(directory, variant: int) -> Requirements:
    """Check a lab directory against a variant and return the requirements it met."""
    requirements = variant_requirements(variant)
    root = Path(directory)
    check_omp_variant(requirements, _load(root / "source" / "sinoscope-openmp.c"))
    check_ocl_variant(requirements, _load(root / "source" / "kernel" / "sinoscope.cl"))
    return requirements