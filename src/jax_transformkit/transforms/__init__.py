"""
JAX math backing the transform kernels.

- rotation: 2D rotations, Euler angles, quaternions and versors
- homogeneous: matrix-offset algebra and point application

All functions are pure and operate on JAX arrays.
"""

from . import homogeneous
from . import rotation

__all__ = [
    "homogeneous",
    "rotation",
]
