"""Tests for displacement-field transforms built from images."""

import numpy as np
import pytest

from jax_transformkit import Image, InvalidArgumentError, PixelIDValueEnum, Transform, TransformEnum


def _constant_field(size, displacement):
    field = np.zeros(tuple(size) + (len(size),), dtype=np.float64)
    field[...] = displacement
    return field


def test_rejects_scalar_image():
    image = Image(np.zeros((4, 4), dtype=np.float64))
    with pytest.raises(InvalidArgumentError):
        Transform.from_displacement_field(image)
    assert not image.is_empty()


def test_rejects_wrong_component_count():
    image = Image(np.zeros((4, 4, 3), dtype=np.float64), is_vector=True)
    with pytest.raises(InvalidArgumentError):
        Transform.from_displacement_field(image)


def test_rejects_single_precision_vectors():
    image = Image(np.zeros((4, 4, 2), dtype=np.float32), is_vector=True)
    assert image.pixel_id == PixelIDValueEnum.VECTOR_FLOAT32
    with pytest.raises(InvalidArgumentError):
        Transform.from_displacement_field(image)


def test_adopts_buffer_and_empties_image():
    image = Image(_constant_field((4, 4), (0.5, -1.0)), is_vector=True)
    assert image.pixel_id == PixelIDValueEnum.VECTOR_FLOAT64
    assert image.number_of_components_per_pixel == 2

    t = Transform.from_displacement_field(image)

    assert image.is_empty()
    assert t.kind == TransformEnum.DISPLACEMENT_FIELD
    assert t.dimension == 2
    assert len(t.get_parameters()) == 4 * 4 * 2
    assert t.get_fixed_parameters() == (4.0, 4.0, 0.0, 0.0, 1.0, 1.0, 1.0, 0.0, 0.0, 1.0)


def test_constant_field_inside_and_outside():
    image = Image(_constant_field((4, 4), (0.5, -1.0)), is_vector=True)
    t = Transform.from_displacement_field(image)
    np.testing.assert_allclose(t.transform_point((1.5, 1.5)), (2.0, 0.5))
    # zero displacement outside the buffer
    assert t.transform_point((10.0, 10.0)) == (10.0, 10.0)


def test_linear_interpolation_3d_with_spacing():
    """Displacement grows linearly along x; sampling between pixels interpolates."""
    field = np.zeros((3, 2, 2, 3), dtype=np.float64)
    for i in range(3):
        field[i, ..., 0] = float(i)
    image = Image(field, is_vector=True, spacing=(2.0, 1.0, 1.0), origin=(10.0, 0.0, 0.0))
    t = Transform.from_displacement_field(image)

    # physical x = 13 is continuous index 1.5
    np.testing.assert_allclose(t.transform_point((13.0, 0.5, 0.5)), (14.5, 0.5, 0.5))


def test_displacement_copy_on_write():
    image = Image(_constant_field((3, 3), (1.0, 1.0)), is_vector=True)
    a = Transform.from_displacement_field(image)
    b = a.copy()
    b.set_parameters(np.zeros(18))
    assert a.transform_point((1.0, 1.0)) == (2.0, 2.0)
    assert b.transform_point((1.0, 1.0)) == (1.0, 1.0)


def test_fixed_parameters_resize_field():
    image = Image(_constant_field((3, 3), (1.0, 1.0)), is_vector=True)
    t = Transform.from_displacement_field(image)
    t.set_fixed_parameters([5, 2, 0.0, 0.0, 1.0, 1.0, 1.0, 0.0, 0.0, 1.0])
    assert len(t.get_parameters()) == 5 * 2 * 2
    assert t.transform_point((1.0, 1.0)) == (1.0, 1.0)


def test_image_validation():
    with pytest.raises(InvalidArgumentError):
        Image(np.zeros(5))
    with pytest.raises(InvalidArgumentError):
        Image(np.zeros((2, 2), dtype=np.complex128))
    empty = Image()
    assert empty.is_empty()
    assert empty.dimension == 3
