"""Tests for the rotation and homogeneous math modules."""

import hypothesis
import jax
import jax.numpy as jnp
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

import jax_transformkit  # noqa: F401  (enables float64)
from jax_transformkit.transforms import homogeneous, rotation

# Use hypothesis profile for CI
hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)


def test_from_quaternion_identity():
    """Identity quaternion gives the identity matrix."""
    matrix = rotation.from_quaternion(jnp.array([1.0, 0.0, 0.0, 0.0]))
    np.testing.assert_allclose(matrix, jnp.eye(3), rtol=1e-12, atol=1e-12)


def test_from_quaternion_90_about_y():
    """90° about Y."""
    quat = jnp.array([np.sqrt(0.5), 0.0, np.sqrt(0.5), 0.0])
    matrix = rotation.from_quaternion(quat)
    expected = jnp.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0]])
    np.testing.assert_allclose(matrix, expected, rtol=1e-12, atol=1e-12)


def test_rotation_2d_quarter_turn():
    """A quarter turn maps the x axis to the y axis."""
    R = rotation.rotation_2d(jnp.pi / 2)
    np.testing.assert_allclose(R @ jnp.array([1.0, 0.0]), [0.0, 1.0], atol=1e-12)


def test_euler_3d_single_axis():
    """With two zero angles the Euler matrix is a plain axis rotation."""
    Rz = rotation.euler_3d(0.0, 0.0, jnp.pi / 2)
    np.testing.assert_allclose(Rz @ jnp.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)

    Rx = rotation.euler_3d(jnp.pi / 2, 0.0, 0.0)
    np.testing.assert_allclose(Rx @ jnp.array([0.0, 1.0, 0.0]), [0.0, 0.0, 1.0], atol=1e-12)


def test_euler_3d_composition_order():
    """ZXY and ZYX orders differ once two axes are involved."""
    ax, ay = 0.3, 0.4
    zxy = rotation.euler_3d(ax, ay, 0.0)
    zyx = rotation.euler_3d(ax, ay, 0.0, compute_zyx=True)

    np.testing.assert_allclose(zxy, rotation.euler_3d(ax, 0.0, 0.0) @ rotation.euler_3d(0.0, ay, 0.0),
                               atol=1e-12)
    np.testing.assert_allclose(zyx, rotation.euler_3d(0.0, ay, 0.0) @ rotation.euler_3d(ax, 0.0, 0.0),
                               atol=1e-12)
    assert not np.allclose(zxy, zyx)


@given(
    st.floats(min_value=-1.2, max_value=1.2),
    st.floats(min_value=-1.2, max_value=1.2),
    st.floats(min_value=-3.0, max_value=3.0),
    st.booleans(),
)
@settings(deadline=None)
def test_euler_angles_roundtrip(ax, ay, az, zyx):
    """Angles recovered from an Euler matrix rebuild the same matrix."""
    R = rotation.euler_3d(ax, ay, az, compute_zyx=zyx)
    angles = rotation.angles_from_euler_3d(R, compute_zyx=zyx)
    R2 = rotation.euler_3d(*angles, compute_zyx=zyx)
    np.testing.assert_allclose(R, R2, rtol=1e-9, atol=1e-9)


def test_versor_matches_axis_angle():
    """A versor built from axis/angle rotates like the quaternion it encodes."""
    versor = rotation.axis_angle_to_versor(jnp.array([0.0, 0.0, 2.0]), jnp.pi / 2)
    np.testing.assert_allclose(versor, [0.0, 0.0, np.sin(np.pi / 4)], atol=1e-12)

    R = rotation.from_versor(versor)
    np.testing.assert_allclose(R @ jnp.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)


def test_normalize_versor_only_shrinks_long_versors():
    """Versors inside the unit ball are untouched, longer ones are normalized."""
    short = jnp.array([0.1, 0.2, 0.3])
    np.testing.assert_allclose(rotation.normalize_versor(short), short)

    long = jnp.array([2.0, 0.0, 0.0])
    np.testing.assert_allclose(rotation.normalize_versor(long), [1.0, 0.0, 0.0])


@given(st.integers(min_value=0, max_value=100))
@settings(deadline=None)
def test_rotation_matrices_are_orthonormal(seed):
    """Versor rotations are orthonormal with determinant one."""
    key = jax.random.PRNGKey(seed)
    versor = jax.random.uniform(key, (3,), minval=-0.5, maxval=0.5)
    R = rotation.from_versor(versor)
    np.testing.assert_allclose(R @ R.T, jnp.eye(3), rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(jnp.linalg.det(R), 1.0, rtol=1e-9)


def test_offset_keeps_center_fixed():
    """x -> M x + offset leaves the center in place when there is no translation."""
    M = rotation.euler_3d(0.1, 0.2, 0.3)
    center = jnp.array([1.0, -2.0, 3.0])
    offset = homogeneous.compute_offset(M, center, jnp.zeros(3))
    np.testing.assert_allclose(homogeneous.apply(M, offset, center), center, atol=1e-12)


def test_from_matrix_and_offset_2d():
    """Homogeneous matrix layout in 2D."""
    M = jnp.array([[1.0, 2.0], [3.0, 4.0]])
    T = homogeneous.from_matrix_and_offset(M, jnp.array([5.0, 6.0]))
    expected = jnp.array([[1.0, 2.0, 5.0], [3.0, 4.0, 6.0], [0.0, 0.0, 1.0]])
    np.testing.assert_allclose(T, expected)
