"""Composite kernel: an ordered queue of sub-transforms applied in sequence."""

from typing import List, Sequence

import jax.numpy as jnp

from ..core.kinds import TransformEnum
from ..errors import InvalidArgumentError
from .base import Array, Kernel, as_vector


class CompositeKernel(Kernel):
    """Queue of kernels applied back to front.

    The most recently added transform is applied first. Only sub-transforms
    flagged "to optimize" contribute to the (fixed) parameter vectors, which
    concatenate them from the back of the queue to the front.
    """

    kind = TransformEnum.COMPOSITE
    class_base_name = "CompositeTransform"

    def __init__(self, dimension: int):
        super().__init__(dimension)
        self._queue: List[Kernel] = []
        self._optimize: List[bool] = []

    # Queue management
    def add_transform(self, kernel: Kernel) -> None:
        if kernel.dimension != self._dimension:
            raise InvalidArgumentError(
                f"Cannot add {kernel.name_of_class} to a {self._dimension}D composite transform"
            )
        self._queue.append(kernel)
        self._optimize.append(True)

    def is_transform_queue_empty(self) -> bool:
        return not self._queue

    @property
    def number_of_transforms(self) -> int:
        return len(self._queue)

    def get_nth_transform(self, n: int) -> Kernel:
        return self._queue[n]

    def get_nth_transform_to_optimize(self, n: int) -> bool:
        return self._optimize[n]

    def set_all_transforms_to_optimize_off(self) -> None:
        self._optimize = [False] * len(self._queue)

    def set_only_most_recent_transform_to_optimize_on(self) -> None:
        self.set_all_transforms_to_optimize_off()
        if self._optimize:
            self._optimize[-1] = True

    def _active(self) -> List[Kernel]:
        return [k for k, flag in zip(reversed(self._queue), reversed(self._optimize)) if flag]

    # Parameters
    def get_parameters(self) -> Array:
        parts = [k.get_parameters() for k in self._active()]
        return jnp.concatenate(parts) if parts else jnp.zeros(0)

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = as_vector(parameters, self.number_of_parameters, f"{self.name_of_class} parameters")
        start = 0
        for kernel in self._active():
            n = kernel.number_of_parameters
            kernel.set_parameters(p[start:start + n])
            start += n

    def get_fixed_parameters(self) -> Array:
        parts = [k.get_fixed_parameters() for k in self._active()]
        return jnp.concatenate(parts) if parts else jnp.zeros(0)

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        active = self._active()
        expected = sum(int(k.get_fixed_parameters().shape[0]) for k in active)
        p = as_vector(parameters, expected, f"{self.name_of_class} fixed parameters")
        start = 0
        for kernel in active:
            n = int(kernel.get_fixed_parameters().shape[0])
            kernel.set_fixed_parameters(p[start:start + n])
            start += n

    def transform_point(self, point: Array) -> Array:
        for kernel in reversed(self._queue):
            point = kernel.transform_point(point)
        return point

    def clone(self) -> "CompositeKernel":
        other = CompositeKernel(self._dimension)
        other._queue = [k.clone() for k in self._queue]
        other._optimize = list(self._optimize)
        return other

    def _describe_state(self) -> List[str]:
        lines = [f"NumberOfTransforms: {len(self._queue)}"]
        for i, (kernel, flag) in enumerate(zip(self._queue, self._optimize)):
            lines.append(f"Transform {i} (optimize: {flag}):")
            lines.append(kernel.describe(indent=2))
        return lines
