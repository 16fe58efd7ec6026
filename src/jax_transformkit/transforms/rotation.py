"""Rotation matrix construction in JAX.

All functions are pure and operate on float64 JAX arrays. Quaternions are
in (w, x, y, z) order; versors are the vector part (x, y, z) of a unit
quaternion with non-negative scalar part.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def rotation_2d(angle: Array) -> Array:
    """
    Counter-clockwise 2D rotation.

    Args:
        angle: scalar angle in radians

    Returns:
        (2, 2) rotation matrix
    """
    c, s = jnp.cos(angle), jnp.sin(angle)
    return jnp.array([[c, -s], [s, c]])


def euler_3d(angle_x: Array, angle_y: Array, angle_z: Array, compute_zyx: bool = False) -> Array:
    """
    Rotation matrix from Euler angles.

    The default composition is Rz @ Rx @ Ry; with ``compute_zyx`` it is
    Rz @ Ry @ Rx.

    Args:
        angle_x, angle_y, angle_z: angles in radians
        compute_zyx: select the Z-Y-X composition order

    Returns:
        (3, 3) rotation matrix
    """
    cx, sx = jnp.cos(angle_x), jnp.sin(angle_x)
    cy, sy = jnp.cos(angle_y), jnp.sin(angle_y)
    cz, sz = jnp.cos(angle_z), jnp.sin(angle_z)

    Rx = jnp.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    Ry = jnp.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    Rz = jnp.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])

    if compute_zyx:
        return Rz @ Ry @ Rx
    return Rz @ Rx @ Ry


def angles_from_euler_3d(R: Array, compute_zyx: bool = False) -> Array:
    """
    Recover (angle_x, angle_y, angle_z) from a matrix built by ``euler_3d``.

    Args:
        R: (3, 3) rotation matrix
        compute_zyx: composition order the matrix was built with

    Returns:
        (3,) array of angles in radians
    """
    if compute_zyx:
        angle_y = -jnp.arcsin(jnp.clip(R[2, 0], -1.0, 1.0))
        angle_x = jnp.arctan2(R[2, 1], R[2, 2])
        angle_z = jnp.arctan2(R[1, 0], R[0, 0])
    else:
        angle_x = jnp.arcsin(jnp.clip(R[2, 1], -1.0, 1.0))
        angle_y = jnp.arctan2(-R[2, 0], R[2, 2])
        angle_z = jnp.arctan2(-R[0, 1], R[1, 1])
    return jnp.stack([angle_x, angle_y, angle_z])


def from_quaternion(quaternion: Array) -> Array:
    """
    Convert a quaternion to a rotation matrix.

    Args:
        quaternion: (4,) quaternion in (w, x, y, z) format

    Returns:
        (3, 3) rotation matrix
    """
    # Normalize quaternion for numerical stability
    quaternion = quaternion / jnp.linalg.norm(quaternion, axis=-1, keepdims=True)

    w, x, y, z = jnp.moveaxis(quaternion, -1, 0)

    xx, yy, zz = x*x, y*y, z*z
    wx, wy, wz = w*x, w*y, w*z
    xy, xz, yz = x*y, x*z, y*z

    return jnp.stack([
        jnp.stack([1 - 2*(yy + zz), 2*(xy - wz), 2*(xz + wy)], axis=-1),
        jnp.stack([2*(xy + wz), 1 - 2*(xx + zz), 2*(yz - wx)], axis=-1),
        jnp.stack([2*(xz - wy), 2*(yz + wx), 1 - 2*(xx + yy)], axis=-1)
    ], axis=-2)


def normalize_versor(versor: Array) -> Array:
    """Scale a versor whose norm exceeds one back onto the unit sphere."""
    norm = jnp.linalg.norm(versor)
    return jnp.where(norm > 1.0, versor / jnp.maximum(norm, 1.0), versor)


def versor_to_quaternion(versor: Array) -> Array:
    """
    Complete a versor (x, y, z) into a unit quaternion (w, x, y, z).

    Args:
        versor: (3,) vector part, norm <= 1

    Returns:
        (4,) quaternion with w >= 0
    """
    w = jnp.sqrt(jnp.maximum(1.0 - jnp.sum(versor * versor), 0.0))
    return jnp.concatenate([w[None], versor])


def from_versor(versor: Array) -> Array:
    """
    Rotation matrix of a versor.

    Args:
        versor: (3,) vector part of a unit quaternion

    Returns:
        (3, 3) rotation matrix
    """
    return from_quaternion(versor_to_quaternion(normalize_versor(versor)))


def axis_angle_to_versor(axis: Array, angle: Array) -> Array:
    """
    Versor of a rotation by ``angle`` radians about ``axis``.

    Args:
        axis: (3,) rotation axis, need not be normalized
        angle: scalar angle in radians

    Returns:
        (3,) versor
    """
    axis = axis / jnp.linalg.norm(axis)
    return axis * jnp.sin(angle / 2.0)
