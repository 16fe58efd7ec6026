"""Type-erased backend: one kernel plus the count of handles sharing it.

Every Transform handle owns exactly one Backend object. Handles that share a
kernel own distinct Backend objects pointing at the same kernel and the same
``_SharedCount``; the count drops when a Backend object is garbage collected.
"""

import logging
import threading
import weakref
from typing import Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np

from .core.kinds import TransformEnum
from .errors import InvalidArgumentError, UnsupportedError
from .kernels import CompositeKernel, Kernel

LOG = logging.getLogger(__name__)


class _SharedCount:
    """Number of live Backend objects referencing one kernel."""

    def __init__(self):
        self.count = 1
        self.lock = threading.RLock()

    def incref(self):
        with self.lock:
            self.count += 1

    def decref(self):
        with self.lock:
            self.count -= 1


def _as_tuple(values) -> Tuple[float, ...]:
    return tuple(float(v) for v in np.asarray(values).ravel())


class Backend:
    """Uniform interface over a kernel of any kind and dimension."""

    def __init__(self, kernel: Kernel, shared: Optional[_SharedCount] = None):
        if shared is None:
            shared = _SharedCount()
        else:
            shared.incref()
        self._kernel = kernel
        self._shared = shared
        weakref.finalize(self, shared.decref)

    @property
    def kernel(self) -> Kernel:
        return self._kernel

    @property
    def kind(self) -> TransformEnum:
        return self._kernel.kind

    @property
    def lock(self) -> threading.RLock:
        return self._shared.lock

    def get_input_dimension(self) -> int:
        return self._kernel.input_space_dimension

    def get_reference_count(self) -> int:
        return self._shared.count

    def get_parameters(self) -> Tuple[float, ...]:
        return _as_tuple(self._kernel.get_parameters())

    def set_parameters(self, parameters: Sequence[float]) -> None:
        self._kernel.set_parameters(parameters)

    def get_fixed_parameters(self) -> Tuple[float, ...]:
        return _as_tuple(self._kernel.get_fixed_parameters())

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        self._kernel.set_fixed_parameters(parameters)

    def transform_point(self, point: Sequence[float]) -> Tuple[float, ...]:
        p = np.asarray(point, dtype=np.float64)
        dim = self.get_input_dimension()
        if p.ndim != 1 or p.shape[0] != dim:
            raise InvalidArgumentError(
                f"point must have {dim} components for a {dim}D "
                f"{self._kernel.name_of_class}, got {p.shape[0] if p.ndim == 1 else p.shape}"
            )
        return _as_tuple(self._kernel.transform_point(jnp.asarray(p)))

    def to_string(self) -> str:
        return self._kernel.describe()

    def shallow_copy(self) -> "Backend":
        """A new Backend sharing this kernel; the shared count goes up by one."""
        return Backend(self._kernel, self._shared)

    def deep_copy(self) -> "Backend":
        """A new Backend owning an independent clone of the kernel."""
        return Backend(self._kernel.clone())

    def add_transform(self, other: "Backend") -> "Backend":
        """Append ``other`` to this composite.

        Returns ``self`` when the kernel accepted the transform in place, or a
        new Backend when an identity had to be promoted to a composite.
        """
        dim = self.get_input_dimension()
        if other.get_input_dimension() != dim:
            raise InvalidArgumentError(
                f"Cannot add a {other.get_input_dimension()}D transform to a {dim}D transform"
            )
        added = other.kernel.clone()

        if self.kind == TransformEnum.COMPOSITE:
            self._kernel.add_transform(added)
            self._kernel.set_only_most_recent_transform_to_optimize_on()
            return self

        if self.kind == TransformEnum.IDENTITY:
            composite = CompositeKernel(dim)
            composite.add_transform(self._kernel.clone())
            composite.add_transform(added)
            composite.set_only_most_recent_transform_to_optimize_on()
            LOG.debug("Promoted %s to %s", self._kernel.name_of_class, composite.name_of_class)
            return Backend(composite)

        raise UnsupportedError(
            f"AddTransform is only supported by composite transforms, not {self._kernel.name_of_class}"
        )
