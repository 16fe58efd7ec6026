"""Transform: value-semantic, copy-on-write handle over a backend."""

import logging
from typing import Sequence, Tuple

from . import dispatch
from .backend import Backend
from .core.image import Image
from .core.kinds import TransformEnum
from .errors import InvalidArgumentError

LOG = logging.getLogger(__name__)


class Transform:
    """A spatial transform of any supported kind in 2D or 3D.

    Copies made with ``copy()`` (or ``copy.copy``) share the underlying
    kernel until one of them is modified, at which point the modified copy
    gets a private clone first. Handles sharing a kernel never observe each
    other's writes.

    Args:
        dimension: 2 or 3.
        kind: the transform kind, identity by default.
    """

    def __init__(self, dimension: int = 3, kind: TransformEnum = TransformEnum.IDENTITY):
        self._set_backend(dispatch.create_backend(kind, dimension))

    # Alternate constructors
    @classmethod
    def _from_backend(cls, backend: Backend) -> "Transform":
        obj = cls.__new__(cls)
        obj._set_backend(backend)
        return obj

    @classmethod
    def from_displacement_field(cls, image: Image) -> "Transform":
        """Build a displacement-field transform that takes over ``image``'s buffer.

        The image must hold float64 vectors with one component per dimension.
        It is left empty afterwards.
        """
        return cls._from_backend(dispatch.backend_from_displacement_field(image))

    # Backend management
    def _set_backend(self, backend: Backend) -> None:
        self._backend = backend
        self._on_backend_changed()

    def _on_backend_changed(self) -> None:
        """Called after every change of backend identity."""

    def _make_unique_for_write(self) -> None:
        backend = self._backend
        with backend.lock:
            if backend.get_reference_count() <= 1:
                return
            unique = backend.deep_copy()
        LOG.debug("Copy-on-write: cloned shared %s", backend.kernel.name_of_class)
        self._set_backend(unique)

    # Copies
    def copy(self) -> "Transform":
        """Shallow copy sharing this transform's kernel until either is modified."""
        return type(self)._from_backend(self._backend.shallow_copy())

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return type(self)._from_backend(self._backend.deep_copy())

    # Introspection
    @property
    def dimension(self) -> int:
        return self._backend.get_input_dimension()

    @property
    def kind(self) -> TransformEnum:
        return self._backend.kind

    @property
    def number_of_parameters(self) -> int:
        return self._backend.kernel.number_of_parameters

    def get_reference_count(self) -> int:
        """Number of handles currently sharing this transform's kernel."""
        return self._backend.get_reference_count()

    # Parameters
    def get_parameters(self) -> Tuple[float, ...]:
        return self._backend.get_parameters()

    def set_parameters(self, parameters: Sequence[float]) -> "Transform":
        self._make_unique_for_write()
        self._backend.set_parameters(parameters)
        return self

    def get_fixed_parameters(self) -> Tuple[float, ...]:
        return self._backend.get_fixed_parameters()

    def set_fixed_parameters(self, parameters: Sequence[float]) -> "Transform":
        self._make_unique_for_write()
        self._backend.set_fixed_parameters(parameters)
        return self

    # Operations
    def transform_point(self, point: Sequence[float]) -> Tuple[float, ...]:
        return self._backend.transform_point(point)

    def add_transform(self, other: "Transform") -> "Transform":
        """Append ``other`` to this composite; an identity is promoted to a composite.

        ``other`` is copied, later changes to it do not affect this transform.
        """
        if not isinstance(other, Transform):
            raise InvalidArgumentError(f"Expected a Transform, got {type(other).__name__}")
        self._make_unique_for_write()
        backend = self._backend.add_transform(other._backend)
        if backend is not self._backend:
            self._set_backend(backend)
        return self

    def to_string(self) -> str:
        return f"{__package__}.Transform\n{self._backend.to_string()}"

    def write(self, path) -> None:
        """Write this transform to ``path``, see ``write_transform``."""
        from .io import write_transform
        write_transform(self, path)

    def __str__(self):
        return self.to_string()

    def __repr__(self):
        return f"{type(self).__name__}(<{self._backend.kernel.name_of_class}>)"
