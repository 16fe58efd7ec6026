"""Tests for the copy-on-write Transform handle and its dispatch."""

import copy
import gc
import logging
import threading

import hypothesis
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_transformkit import (
    InternalInconsistencyError,
    InvalidArgumentError,
    ScaleTransform,
    Transform,
    TransformEnum,
    TranslationTransform,
    UnsupportedError,
    dispatch,
)
from jax_transformkit.kernels import AffineKernel, CompositeKernel, IdentityKernel

hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)

EXPECTED_PARAMETER_COUNTS = {
    (TransformEnum.IDENTITY, 2): 0,
    (TransformEnum.IDENTITY, 3): 0,
    (TransformEnum.TRANSLATION, 2): 2,
    (TransformEnum.TRANSLATION, 3): 3,
    (TransformEnum.SCALE, 2): 2,
    (TransformEnum.SCALE, 3): 3,
    (TransformEnum.SCALE_LOGARITHMIC, 2): 2,
    (TransformEnum.SCALE_LOGARITHMIC, 3): 3,
    (TransformEnum.EULER, 2): 3,
    (TransformEnum.EULER, 3): 6,
    (TransformEnum.SIMILARITY, 2): 4,
    (TransformEnum.SIMILARITY, 3): 7,
    (TransformEnum.QUATERNION_RIGID, 3): 7,
    (TransformEnum.VERSOR, 3): 3,
    (TransformEnum.VERSOR_RIGID, 3): 6,
    (TransformEnum.AFFINE, 2): 6,
    (TransformEnum.AFFINE, 3): 12,
    (TransformEnum.COMPOSITE, 2): 0,
    (TransformEnum.COMPOSITE, 3): 0,
}

TABLE_KINDS = [k for k in TransformEnum if k != TransformEnum.DISPLACEMENT_FIELD]


@pytest.mark.parametrize("kind,dimension", sorted(EXPECTED_PARAMETER_COUNTS))
def test_parameter_vector_length(kind, dimension):
    """Every supported (kind, dimension) pair has the expected number of parameters."""
    t = Transform(dimension, kind)
    assert t.dimension == dimension
    assert t.kind == kind
    assert len(t.get_parameters()) == EXPECTED_PARAMETER_COUNTS[(kind, dimension)]
    assert t.number_of_parameters == EXPECTED_PARAMETER_COUNTS[(kind, dimension)]


@pytest.mark.parametrize("kind,dimension", sorted(EXPECTED_PARAMETER_COUNTS))
def test_fresh_transforms_are_identity(kind, dimension):
    """Newly constructed transforms map points to themselves."""
    t = Transform(dimension, kind)
    point = (1.5, -2.0, 0.25)[:dimension]
    np.testing.assert_allclose(t.transform_point(point), point, atol=1e-12)


@pytest.mark.parametrize("dimension", [np.int64(2), np.int32(3), np.uint8(3)])
def test_numpy_integer_dimensions_accepted(dimension):
    t = Transform(dimension, TransformEnum.EULER)
    assert t.dimension == int(dimension)
    assert type(t.dimension) is int


def test_default_is_3d_identity():
    t = Transform()
    assert t.dimension == 3
    assert t.kind == TransformEnum.IDENTITY


@pytest.mark.parametrize("kind", list(TransformEnum))
@pytest.mark.parametrize("dimension", [0, 1, 4, 2.0, True])
def test_invalid_dimension_rejected(kind, dimension):
    """Dimensions other than 2 and 3 are refused for every kind."""
    with pytest.raises(InvalidArgumentError):
        Transform(dimension, kind)


@pytest.mark.parametrize("kind", [
    TransformEnum.QUATERNION_RIGID, TransformEnum.VERSOR, TransformEnum.VERSOR_RIGID,
])
def test_three_d_only_kinds_rejected_in_2d(kind):
    with pytest.raises(InvalidArgumentError, match="only works for 3D"):
        Transform(2, kind)


def test_displacement_field_not_in_table():
    """Displacement fields need an image and cannot be built from the kind alone."""
    with pytest.raises(InvalidArgumentError):
        Transform(3, TransformEnum.DISPLACEMENT_FIELD)


def test_unknown_kind_falls_back_to_identity(caplog):
    """An unrecognized kind produces an identity transform and a warning."""
    caplog.set_level(logging.WARNING)
    t = Transform(2, 99)
    assert t.kind == TransformEnum.IDENTITY
    assert t.dimension == 2
    assert "Unrecognized transform kind" in caplog.text


def test_kind_accepts_plain_integers():
    assert Transform(3, int(TransformEnum.AFFINE)).kind == TransformEnum.AFFINE


def test_composite_is_never_empty():
    """A fresh composite holds one identity and can be queried and applied."""
    t = Transform(3, TransformEnum.COMPOSITE)
    assert t.get_parameters() == ()
    assert t.get_fixed_parameters() == ()
    assert t.transform_point((1.0, 2.0, 3.0)) == (1.0, 2.0, 3.0)

    kernel = t._backend.kernel
    assert kernel.number_of_transforms == 1
    assert kernel.get_nth_transform(0).kind == TransformEnum.IDENTITY


def test_shallow_copy_shares_backend():
    """Right after a copy both handles report the shared count and equal parameters."""
    a = Transform(3, TransformEnum.AFFINE)
    a.set_parameters([2.0, 0, 0, 0, 2.0, 0, 0, 0, 2.0, 1.0, 2.0, 3.0])
    b = a.copy()

    assert a.get_reference_count() == 2
    assert b.get_reference_count() == 2
    assert a.get_parameters() == b.get_parameters()
    assert a._backend.kernel is b._backend.kernel


def test_copy_module_protocol():
    a = Transform(2, TransformEnum.EULER)
    b = copy.copy(a)
    assert a.get_reference_count() == 2

    c = copy.deepcopy(a)
    assert c.get_reference_count() == 1
    assert c._backend.kernel is not a._backend.kernel
    assert c.get_parameters() == a.get_parameters()


def test_reference_count_drops_when_copy_is_released():
    a = Transform(3, TransformEnum.EULER)
    b = a.copy()
    assert a.get_reference_count() == 2
    del b
    assert a.get_reference_count() == 1


def test_copy_on_write_isolates_writer():
    """Mutating a copy leaves the original untouched, and vice versa."""
    a = Transform(3, TransformEnum.EULER)
    b = a.copy()

    b.set_parameters([0.1, 0.2, 0.3, 1.0, 2.0, 3.0])
    assert a.get_parameters() == (0.0,) * 6
    np.testing.assert_allclose(b.get_parameters(), [0.1, 0.2, 0.3, 1.0, 2.0, 3.0])
    assert a.get_reference_count() == 1
    assert b.get_reference_count() == 1

    a.set_fixed_parameters([1.0, 1.0, 1.0])
    assert b.get_fixed_parameters() == (0.0, 0.0, 0.0, 0.0)
    assert a.get_fixed_parameters() == (1.0, 1.0, 1.0, 0.0)


def test_unique_handle_is_written_in_place():
    a = Transform(2, TransformEnum.TRANSLATION)
    kernel = a._backend.kernel
    a.set_parameters([1.0, 2.0])
    assert a._backend.kernel is kernel


@given(st.lists(st.floats(min_value=-10.0, max_value=10.0, allow_nan=False), min_size=12, max_size=12))
@settings(deadline=None)
def test_copy_on_write_property(parameters):
    """No aliasing after divergent mutation of an affine and its copy."""
    a = Transform(3, TransformEnum.AFFINE)
    original = a.get_parameters()
    b = a.copy()
    b.set_parameters(parameters)

    assert a.get_parameters() == original
    np.testing.assert_allclose(b.get_parameters(), parameters)


@pytest.mark.parametrize("kind,dimension", sorted(EXPECTED_PARAMETER_COUNTS))
def test_wrong_parameter_length_rejected(kind, dimension):
    t = Transform(dimension, kind)
    n = len(t.get_parameters())
    with pytest.raises(InvalidArgumentError):
        t.set_parameters([0.5] * (n + 1))


@pytest.mark.parametrize("kind,dimension", sorted(EXPECTED_PARAMETER_COUNTS))
def test_transform_point_dimension_checked(kind, dimension):
    """Points must have exactly `dimension` components."""
    t = Transform(dimension, kind)
    with pytest.raises(InvalidArgumentError):
        t.transform_point([1.0] * (dimension + 1))
    with pytest.raises(InvalidArgumentError):
        t.transform_point([1.0] * (dimension - 1))


def test_transform_point_rejects_nested_input():
    t = Transform(2, TransformEnum.AFFINE)
    with pytest.raises(InvalidArgumentError):
        t.transform_point([[1.0, 2.0]])


def test_euler_3d_about_center():
    """Quarter turn about z around (1, 1, 0)."""
    t = Transform(3, TransformEnum.EULER)
    t.set_fixed_parameters([1.0, 1.0, 0.0])
    t.set_parameters([0.0, 0.0, np.pi / 2, 0.0, 0.0, 0.0])
    np.testing.assert_allclose(t.transform_point((2.0, 1.0, 0.0)), (1.0, 2.0, 0.0), atol=1e-12)


def test_quaternion_rigid_point():
    s = np.sin(np.pi / 4)
    t = Transform(3, TransformEnum.QUATERNION_RIGID)
    t.set_parameters([0.0, 0.0, s, s, 1.0, 0.0, 0.0])
    np.testing.assert_allclose(t.transform_point((1.0, 0.0, 0.0)), (1.0, 1.0, 0.0), atol=1e-12)


def test_scale_logarithmic_point():
    t = Transform(2, TransformEnum.SCALE_LOGARITHMIC)
    t.set_parameters([np.log(2.0), np.log(3.0)])
    np.testing.assert_allclose(t.transform_point((1.0, 1.0)), (2.0, 3.0), atol=1e-12)


def test_add_transform_to_composite_applies_most_recent_first():
    """Composite transforms apply their queue back to front."""
    c = Transform(3, TransformEnum.COMPOSITE)
    c.add_transform(TranslationTransform(3, offset=(1.0, 0.0, 0.0)))
    c.add_transform(ScaleTransform(3, scale=(2.0, 2.0, 2.0)))

    np.testing.assert_allclose(c.transform_point((1.0, 1.0, 1.0)), (3.0, 2.0, 2.0))
    # only the most recently added transform is optimizable
    assert c.get_parameters() == (2.0, 2.0, 2.0)
    kernel = c._backend.kernel
    flags = [kernel.get_nth_transform_to_optimize(i) for i in range(kernel.number_of_transforms)]
    assert flags == [False, False, True]


def test_add_transform_copies_the_added_transform():
    c = Transform(2, TransformEnum.COMPOSITE)
    offset = TranslationTransform(2, offset=(1.0, 1.0))
    c.add_transform(offset)
    offset.set_offset((5.0, 5.0))
    assert c.transform_point((0.0, 0.0)) == (1.0, 1.0)


def test_add_transform_promotes_identity():
    """Adding to an identity changes backend identity to a composite."""
    t = Transform(3)
    before = t._backend
    t.add_transform(TranslationTransform(3, offset=(1.0, 2.0, 3.0)))

    assert t._backend is not before
    assert t.kind == TransformEnum.COMPOSITE
    assert t.transform_point((0.0, 0.0, 0.0)) == (1.0, 2.0, 3.0)
    assert t.get_reference_count() == 1


def test_add_transform_copy_on_write():
    """Adding to a shared composite leaves the other handle's chain alone."""
    a = Transform(2, TransformEnum.COMPOSITE)
    b = a.copy()
    b.add_transform(TranslationTransform(2, offset=(1.0, 0.0)))
    assert a.transform_point((0.0, 0.0)) == (0.0, 0.0)
    assert b.transform_point((0.0, 0.0)) == (1.0, 0.0)


def test_add_transform_unsupported_on_plain_kinds():
    t = Transform(3, TransformEnum.EULER)
    with pytest.raises(UnsupportedError):
        t.add_transform(Transform(3, TransformEnum.TRANSLATION))


def test_add_transform_dimension_mismatch():
    t = Transform(3, TransformEnum.COMPOSITE)
    with pytest.raises(InvalidArgumentError):
        t.add_transform(Transform(2, TransformEnum.TRANSLATION))


def test_to_string_describes_kernel():
    t = Transform(3, TransformEnum.EULER)
    t.set_parameters([0.0, 0.0, 0.0, 1.0, 2.0, 3.0])
    text = str(t)
    assert text.startswith("jax_transformkit.Transform")
    assert "Euler3DTransform_double_3_3" in text
    assert "Dimension: 3" in text
    assert "Translation: [1, 2, 3]" in text
    assert "Matrix:" in text


def test_composite_to_string_lists_sub_transforms():
    c = Transform(2, TransformEnum.COMPOSITE)
    c.add_transform(TranslationTransform(2))
    text = c.to_string()
    assert "CompositeTransform_double_2_2" in text
    assert "IdentityTransform_double_2_2" in text
    assert "TranslationTransform_double_2_2" in text


def test_adopt_non_composite_is_internal_error():
    with pytest.raises(InternalInconsistencyError):
        dispatch.adopt_composite(AffineKernel(3), 3)


def test_adopt_composite_sets_optimize_flags():
    composite = CompositeKernel(2)
    composite.add_transform(IdentityKernel(2))
    composite.add_transform(AffineKernel(2))
    backend = dispatch.adopt_composite(composite, 2)
    assert backend.get_parameters() == (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
    assert not composite.get_nth_transform_to_optimize(0)
    assert composite.get_nth_transform_to_optimize(1)


def test_wrap_loaded_unsupported_dimensions():
    with pytest.raises(UnsupportedError, match="InputSpaceDimension: 3"):
        dispatch.check_space_dimensions(3, 2, "AffineTransform_double_3_2")


def test_wrap_loaded_warns_and_keeps_first(caplog):
    """Several loose kernels are reduced to the first one, with a warning."""
    first, second = AffineKernel(2), AffineKernel(2)
    first.set_parameters([1.0, 0.0, 0.0, 1.0, 5.0, 6.0])
    caplog.set_level(logging.WARNING)
    backend = dispatch.wrap_loaded([first, second], source="two kernels")

    assert backend.kind == TransformEnum.COMPOSITE
    assert backend.kernel.number_of_transforms == 1
    assert backend.get_parameters() == (1.0, 0.0, 0.0, 1.0, 5.0, 6.0)
    assert "more than one transform" in caplog.text


def test_wrap_loaded_strict_rejects_several_kernels():
    with pytest.raises(InvalidArgumentError):
        dispatch.wrap_loaded([AffineKernel(2), AffineKernel(2)], strict=True)


def test_wrap_loaded_adopts_composite():
    composite = CompositeKernel(3)
    composite.add_transform(AffineKernel(3))
    composite.add_transform(IdentityKernel(3))
    backend = dispatch.wrap_loaded([composite], strict=True)
    assert backend.kernel is composite
    assert [composite.get_nth_transform_to_optimize(i) for i in range(2)] == [False, True]


def test_wrap_loaded_requires_a_kernel():
    with pytest.raises(InvalidArgumentError, match="contains no transform"):
        dispatch.wrap_loaded([], source="empty.tfm")


def test_concurrent_writers_each_get_a_private_copy():
    """Threads writing to copies of one handle never share or lose a write."""
    base = Transform(3, TransformEnum.TRANSLATION)
    copies = [base.copy() for _ in range(8)]
    assert base.get_reference_count() == 9
    barrier = threading.Barrier(len(copies))

    def write(i, t):
        barrier.wait()
        t.set_parameters([float(i), 0.0, 0.0])

    threads = [threading.Thread(target=write, args=(i, t)) for i, t in enumerate(copies)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    gc.collect()

    for i, t in enumerate(copies):
        assert t.get_parameters() == (float(i), 0.0, 0.0)
        assert t.get_reference_count() == 1
    assert len({id(t._backend.kernel) for t in copies + [base]}) == len(copies) + 1
    assert base.get_parameters() == (0.0, 0.0, 0.0)
    assert base.get_reference_count() == 1
