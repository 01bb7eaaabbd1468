import pytest

from parlab.variant_check import (
    OclDim,
    OclParam,
    OmpConstruct,
    OmpSchedule,
    Requirements,
    VariantError,
    check_directory,
    check_ocl_variant,
    check_omp_variant,
    variant_requirements,
)

OMP_PARALLEL_DYNAMIC = """
int f(void) {
\t#pragma omp parallel
\t#pragma omp for schedule(dynamic)
\tfor (int j = 0; j < 10; j++) {}
}
"""

OMP_PARALLEL_FOR_STATIC = "#pragma omp parallel for schedule(static)\nfor(;;){}\n"

OMP_PARALLEL_FOR_SIMD = "#pragma omp parallel for simd schedule(dynamic)\n"

KERNEL_2D = """
__kernel void sinoscope_kernel(__global unsigned char *buf) {
    int i = get_global_id(0);
    int j = get_global_id(1);
}
"""

KERNEL_1D = """
__kernel void sinoscope_kernel(__global unsigned char *buf) {
    int i = get_global_id(0);
}
"""


def test_variant_two_requirements():
    assert variant_requirements(2) == Requirements(
        OmpConstruct.PARALLEL_WITH_FOR, OmpSchedule.DYNAMIC,
        OclParam.INT_STRUCT_FLOAT_STRUCT, OclDim.TWO_D,
    )


def test_variant_seven_requirements():
    req = variant_requirements(7)
    assert req.omp_construct is OmpConstruct.PARALLEL_FOR_SIMD
    assert req.omp_schedule is OmpSchedule.STATIC
    assert req.ocl_param is OclParam.FLOAT_STRUCT_INT_ONE_BY_ONE
    assert req.ocl_dim is OclDim.ONE_D


@pytest.mark.parametrize("variant", [0, 9, 100])
def test_unknown_variant(variant):
    with pytest.raises(VariantError, match="Unexpected variant number"):
        variant_requirements(variant)


def test_odd_variants_are_static_one_dimension():
    for variant in (1, 3, 5, 7):
        req = variant_requirements(variant)
        assert req.omp_schedule is OmpSchedule.STATIC
        assert req.ocl_dim is OclDim.ONE_D


def test_parallel_with_dynamic_for_passes_variant_two():
    assert check_omp_variant(variant_requirements(2), OMP_PARALLEL_DYNAMIC) is None


def test_dynamic_schedule_fails_static_variant():
    with pytest.raises(VariantError, match="ordonnancement statique attendu"):
        check_omp_variant(variant_requirements(1), OMP_PARALLEL_DYNAMIC)


def test_parallel_for_required():
    with pytest.raises(VariantError, match="omp parallel for attendu"):
        check_omp_variant(variant_requirements(6), OMP_PARALLEL_DYNAMIC)


def test_parallel_for_static_passes_variant_five():
    assert check_omp_variant(variant_requirements(5), OMP_PARALLEL_FOR_STATIC) is None


def test_parallel_for_rejected_where_separate_for_is_expected():
    with pytest.raises(VariantError, match="omp parallel attendu"):
        check_omp_variant(variant_requirements(1), OMP_PARALLEL_FOR_STATIC)


def test_simd_variant():
    assert check_omp_variant(variant_requirements(8), OMP_PARALLEL_FOR_SIMD) is None
    with pytest.raises(VariantError, match="SIMD"):
        check_omp_variant(variant_requirements(7), OMP_PARALLEL_FOR_STATIC)


def test_no_pragma_fails():
    with pytest.raises(VariantError):
        check_omp_variant(variant_requirements(2), "int main(void) { return 0; }\n")


def test_two_dimensional_kernel():
    assert check_ocl_variant(variant_requirements(2), KERNEL_2D) is None
    with pytest.raises(VariantError, match="une dimension"):
        check_ocl_variant(variant_requirements(1), KERNEL_2D)


def test_one_dimensional_kernel():
    assert check_ocl_variant(variant_requirements(1), KERNEL_1D) is None
    with pytest.raises(VariantError, match="deux dimensions"):
        check_ocl_variant(variant_requirements(2), KERNEL_1D)


def _lab(tmp_path, omp, kernel):
    (tmp_path / "source" / "kernel").mkdir(parents=True)
    (tmp_path / "source" / "sinoscope-openmp.c").write_text(omp)
    (tmp_path / "source" / "kernel" / "sinoscope.cl").write_text(kernel)
    return tmp_path


def test_check_directory_passes(tmp_path):
    lab = _lab(tmp_path, OMP_PARALLEL_DYNAMIC, KERNEL_2D)
    assert check_directory(lab, 2) == variant_requirements(2)


def test_check_directory_fails_on_kernel(tmp_path):
    lab = _lab(tmp_path, OMP_PARALLEL_DYNAMIC, KERNEL_1D)
    with pytest.raises(VariantError, match="deux dimensions"):
        check_directory(lab, 2)


def test_check_directory_missing_file(tmp_path):
    with pytest.raises(VariantError, match="Could not open file"):
        check_directory(tmp_path, 2)