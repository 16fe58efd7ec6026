"""Minimal N-dimensional image container.

Only what the displacement-field path needs: a pixel buffer, its pixel
layout tag and the physical grid (origin, spacing, direction) it lives on.
"""

from typing import Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np
from flax import struct
from jax import Array

from ..errors import InvalidArgumentError
from .kinds import PixelIDValueEnum

_SCALAR_PIXEL_IDS = {
    np.dtype(np.uint8): PixelIDValueEnum.UINT8,
    np.dtype(np.int16): PixelIDValueEnum.INT16,
    np.dtype(np.int32): PixelIDValueEnum.INT32,
    np.dtype(np.float32): PixelIDValueEnum.FLOAT32,
    np.dtype(np.float64): PixelIDValueEnum.FLOAT64,
}

_VECTOR_PIXEL_IDS = {
    np.dtype(np.uint8): PixelIDValueEnum.VECTOR_UINT8,
    np.dtype(np.float32): PixelIDValueEnum.VECTOR_FLOAT32,
    np.dtype(np.float64): PixelIDValueEnum.VECTOR_FLOAT64,
}


@struct.dataclass
class ImageGeometry:
    """Physical grid of an image.

    Attributes:
        size: Number of pixels along each axis (x first). Static field.
        origin: (D,) physical position of index 0.
        spacing: (D,) pixel spacing.
        direction: (D, D) direction cosines, columns are the index axes.
    """
    size: Tuple[int, ...] = struct.field(pytree_node=False)
    origin: Array
    spacing: Array
    direction: Array

    @classmethod
    def create(cls, size: Sequence[int],
               origin: Optional[Sequence[float]] = None,
               spacing: Optional[Sequence[float]] = None,
               direction: Optional[Sequence[float]] = None) -> "ImageGeometry":
        size = tuple(int(s) for s in size)
        dim = len(size)
        origin = jnp.zeros(dim) if origin is None else jnp.asarray(origin, dtype=jnp.float64)
        spacing = jnp.ones(dim) if spacing is None else jnp.asarray(spacing, dtype=jnp.float64)
        if direction is None:
            direction = jnp.eye(dim)
        else:
            direction = jnp.asarray(direction, dtype=jnp.float64).reshape(dim, dim)
        if origin.shape != (dim,) or spacing.shape != (dim,):
            raise InvalidArgumentError(
                f"origin and spacing must have {dim} components, "
                f"got {origin.shape[0]} and {spacing.shape[0]}"
            )
        return cls(size=size, origin=origin, spacing=spacing, direction=direction)

    @property
    def dimension(self) -> int:
        return len(self.size)

    def physical_to_continuous_index(self, point: Array) -> Array:
        """Map a physical point (D,) to a continuous index (D,)."""
        index_to_physical = self.direction * self.spacing[None, :]
        return jnp.linalg.solve(index_to_physical, point - self.origin)


class Image:
    """A 2D or 3D image with scalar or vector pixels.

    The array is indexed (x, y[, z]) for scalar images and
    (x, y[, z], component) for vector images. ``Image()`` is an empty
    placeholder.
    """

    def __init__(self, array=None, is_vector: bool = False,
                 spacing: Optional[Sequence[float]] = None,
                 origin: Optional[Sequence[float]] = None,
                 direction: Optional[Sequence[float]] = None):
        if array is None:
            self._set_empty()
            return

        array = np.asarray(array)
        spatial_shape = array.shape[:-1] if is_vector else array.shape
        if len(spatial_shape) not in (2, 3):
            raise InvalidArgumentError(
                f"Images must be 2D or 3D, got array of shape {array.shape}"
                f"{' (vector)' if is_vector else ''}"
            )

        table = _VECTOR_PIXEL_IDS if is_vector else _SCALAR_PIXEL_IDS
        try:
            self._pixel_id = table[array.dtype]
        except KeyError:
            raise InvalidArgumentError(
                f"Unsupported {'vector ' if is_vector else ''}pixel type {array.dtype}"
            )

        self._buffer = jnp.asarray(array)
        self._geometry = ImageGeometry.create(spatial_shape, origin, spacing, direction)

    def _set_empty(self):
        self._pixel_id = PixelIDValueEnum.UINT8
        self._buffer = jnp.zeros((0, 0, 0), dtype=jnp.uint8)
        self._geometry = ImageGeometry.create((0, 0, 0))

    def _release_buffer(self) -> Tuple[Array, ImageGeometry]:
        """Hand the pixel buffer over to a new owner and leave this image empty."""
        buffer, geometry = self._buffer, self._geometry
        self._set_empty()
        return buffer, geometry

    @property
    def pixel_id(self) -> PixelIDValueEnum:
        return self._pixel_id

    @property
    def dimension(self) -> int:
        return self._geometry.dimension

    @property
    def size(self) -> Tuple[int, ...]:
        return self._geometry.size

    @property
    def number_of_components_per_pixel(self) -> int:
        if self._pixel_id.is_vector:
            return int(self._buffer.shape[-1])
        return 1

    def is_empty(self) -> bool:
        return self._buffer.size == 0

    def __repr__(self):
        return (f"Image(size={self.size}, pixel_id={self._pixel_id.name}, "
                f"components={self.number_of_components_per_pixel})")
