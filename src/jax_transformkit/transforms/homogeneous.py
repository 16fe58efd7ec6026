"""Matrix-offset transform algebra in JAX.

A matrix-offset transform maps x -> M (x - c) + c + t, which is stored in
its reduced form x -> M x + offset. Dimension-agnostic: D is 2 or 3.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def compute_offset(matrix: Array, center: Array, translation: Array) -> Array:
    """
    Offset of the reduced form for a transform rotating about ``center``.

    Args:
        matrix: (D, D) linear part
        center: (D,) fixed point of the linear part
        translation: (D,) translation applied after the linear part

    Returns:
        (D,) offset = t + c - M c
    """
    return translation + center - matrix @ center


def from_matrix_and_offset(matrix: Array, offset: Array) -> Array:
    """
    Construct a homogeneous matrix.

    Args:
        matrix: (D, D) linear part
        offset: (D,) offset

    Returns:
        (D+1, D+1) homogeneous transformation matrix
    """
    dim = matrix.shape[-1]
    T = jnp.zeros((dim + 1, dim + 1), dtype=matrix.dtype)
    T = T.at[:dim, :dim].set(matrix)
    T = T.at[:dim, dim].set(offset)
    T = T.at[dim, dim].set(1.0)
    return T


@jax.jit
def apply(matrix: Array, offset: Array, point: Array) -> Array:
    """
    Apply a matrix-offset transform to a point.

    Args:
        matrix: (D, D) linear part
        offset: (D,) offset
        point: (D,) point

    Returns:
        (D,) transformed point
    """
    return jnp.einsum("ij,j->i", matrix, point) + offset
