"""Dense displacement-field kernel: x -> x + d(x)."""

from typing import List, Optional, Sequence

import jax.numpy as jnp
from jax.scipy import ndimage

from ..core.image import ImageGeometry
from ..core.kinds import TransformEnum
from ..errors import InvalidArgumentError
from .base import Array, Kernel, as_vector, format_vector


class DisplacementFieldKernel(Kernel):
    """Displacement vectors sampled on a regular physical grid.

    The field array is indexed (x, y[, z], component). Displacements are
    linearly interpolated and zero outside the buffer.

    Parameters: the field values, flattened row-major.
    Fixed parameters: size, origin, spacing and direction (row-major).
    """

    kind = TransformEnum.DISPLACEMENT_FIELD
    class_base_name = "DisplacementFieldTransform"

    def __init__(self, dimension: int, field: Optional[Array] = None,
                 geometry: Optional[ImageGeometry] = None):
        super().__init__(dimension)
        if geometry is None:
            geometry = ImageGeometry.create((0,) * dimension)
        if field is None:
            field = jnp.zeros(geometry.size + (dimension,))
        if geometry.dimension != dimension or field.shape != geometry.size + (dimension,):
            raise InvalidArgumentError(
                f"Displacement field of shape {field.shape} does not match a "
                f"{dimension}D grid of size {geometry.size}"
            )
        self._field = jnp.asarray(field, dtype=jnp.float64)
        self._geometry = geometry

    def get_displacement_field(self) -> Array:
        return self._field

    @property
    def geometry(self) -> ImageGeometry:
        return self._geometry

    def get_parameters(self) -> Array:
        return self._field.reshape(-1)

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = as_vector(parameters, self._field.size, f"{self.name_of_class} parameters")
        self._field = p.reshape(self._field.shape)

    def get_fixed_parameters(self) -> Array:
        g = self._geometry
        return jnp.concatenate([
            jnp.asarray(g.size, dtype=jnp.float64), g.origin, g.spacing, g.direction.ravel()
        ])

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        """Redefine the grid; the field is reallocated with zero displacement."""
        dim = self._dimension
        p = as_vector(parameters, dim * (dim + 3), f"{self.name_of_class} fixed parameters")
        size = tuple(int(round(float(v))) for v in p[:dim])
        self._geometry = ImageGeometry.create(
            size,
            origin=p[dim:2 * dim],
            spacing=p[2 * dim:3 * dim],
            direction=p[3 * dim:],
        )
        self._field = jnp.zeros(size + (dim,))

    def transform_point(self, point: Array) -> Array:
        if self._field.size == 0:
            return point
        index = self._geometry.physical_to_continuous_index(point)
        upper = jnp.asarray(self._geometry.size, dtype=jnp.float64) - 1.0
        inside = jnp.all((index >= 0.0) & (index <= upper))
        coordinates = [index[i][None] for i in range(self._dimension)]
        displacement = jnp.stack([
            ndimage.map_coordinates(self._field[..., c], coordinates, order=1, mode="nearest")[0]
            for c in range(self._dimension)
        ])
        return point + jnp.where(inside, displacement, 0.0)

    def _describe_state(self) -> List[str]:
        g = self._geometry
        return [
            f"Size: {list(g.size)}",
            f"Origin: {format_vector(g.origin)}",
            f"Spacing: {format_vector(g.spacing)}",
        ]

    def describe(self, indent: int = 0) -> str:
        # the full field is too large to be useful in a dump
        pad = " " * indent
        lines = [
            f"{pad}{self.name_of_class}",
            f"{pad}  Dimension: {self._dimension}",
            f"{pad}  NumberOfParameters: {int(self._field.size)}",
        ]
        lines.extend(f"{pad}  {line}" for line in self._describe_state())
        return "\n".join(lines)
