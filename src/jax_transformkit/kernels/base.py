"""Abstract kernel: one concrete geometric transform of one dimension.

Kernels are the numerical layer the Transform facade delegates to. They are
mutable objects (parameters are set in place) holding immutable JAX arrays,
so ``clone`` only has to copy references.
"""

import abc
import copy
from typing import List, Sequence

import jax
import jax.numpy as jnp
import numpy as np

from ..core.kinds import TransformEnum
from ..errors import InvalidArgumentError

Array = jax.Array


def as_vector(values: Sequence[float], length: int, what: str) -> Array:
    """Convert ``values`` to a float64 vector of exactly ``length`` entries."""
    vector = jnp.asarray(values, dtype=jnp.float64)
    if vector.ndim != 1 or vector.shape[0] != length:
        got = vector.shape[0] if vector.ndim == 1 else vector.shape
        raise InvalidArgumentError(f"{what} must have {length} components, got {got}")
    return vector


def format_vector(values) -> str:
    return "[" + ", ".join(f"{float(v):.17g}" for v in np.asarray(values).ravel()) + "]"


class Kernel(abc.ABC):
    """A transform of fixed kind and dimension with a flat parameter vector."""

    kind: TransformEnum
    class_base_name: str

    def __init__(self, dimension: int):
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def input_space_dimension(self) -> int:
        return self._dimension

    @property
    def output_space_dimension(self) -> int:
        return self._dimension

    @property
    def name_of_class(self) -> str:
        """Class identity used by the file factory, e.g. ``AffineTransform_double_3_3``."""
        return f"{self.class_base_name}_double_{self._dimension}_{self._dimension}"

    @property
    def number_of_parameters(self) -> int:
        return int(self.get_parameters().shape[0])

    @abc.abstractmethod
    def get_parameters(self) -> Array:
        ...

    @abc.abstractmethod
    def set_parameters(self, parameters: Sequence[float]) -> None:
        ...

    def get_fixed_parameters(self) -> Array:
        return jnp.zeros(0)

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        as_vector(parameters, 0, f"{self.name_of_class} fixed parameters")

    @abc.abstractmethod
    def transform_point(self, point: Array) -> Array:
        ...

    def clone(self) -> "Kernel":
        return copy.copy(self)

    def describe(self, indent: int = 0) -> str:
        """Human readable dump of the kernel state."""
        pad = " " * indent
        lines = [
            f"{pad}{self.name_of_class}",
            f"{pad}  Dimension: {self._dimension}",
            f"{pad}  Parameters: {format_vector(self.get_parameters())}",
            f"{pad}  FixedParameters: {format_vector(self.get_fixed_parameters())}",
        ]
        lines.extend(f"{pad}  {line}" for line in self._describe_state())
        return "\n".join(lines)

    def _describe_state(self) -> List[str]:
        return []


class IdentityKernel(Kernel):
    """Maps every point to itself. No parameters."""

    kind = TransformEnum.IDENTITY
    class_base_name = "IdentityTransform"

    def get_parameters(self) -> Array:
        return jnp.zeros(0)

    def set_parameters(self, parameters: Sequence[float]) -> None:
        as_vector(parameters, 0, f"{self.name_of_class} parameters")

    def transform_point(self, point: Array) -> Array:
        return point
