"""Kind-specific transforms with named accessors.

Each facade keeps a table of accessor slots bound to the kernel currently
held by its backend. The table is rebuilt every time the backend changes
identity (copy-on-write clone, promotion, ``from_transform``), so a slot
never refers to a kernel the facade no longer owns. When the kernel is not
of the facade's kind every slot raises UnsupportedError.
"""

import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .core.kinds import TransformEnum
from .errors import UnsupportedError
from .transform import Transform

LOG = logging.getLogger(__name__)


def _as_tuple(values) -> Tuple[float, ...]:
    return tuple(float(v) for v in np.asarray(values).ravel())


def _unbound(facade: str, accessor: str, held: str) -> Callable:
    def call(*args, **kwargs):
        raise UnsupportedError(f"{facade}.{accessor} is not available for a {held}")
    return call


class _BoundAccessorTransform(Transform):
    """Transform whose named accessors forward to bound kernel methods."""

    _kernel_kind: TransformEnum
    _kernel_dimensions: Tuple[int, ...] = (2, 3)
    _accessors: Tuple[str, ...] = ()

    _slots: Dict[str, Callable]

    @classmethod
    def from_transform(cls, other: Transform):
        """View ``other`` through this facade, sharing its kernel.

        If ``other`` is not of this facade's kind the named accessors raise
        UnsupportedError; the generic Transform operations keep working.
        """
        return cls._from_backend(other._backend.shallow_copy())

    def _on_backend_changed(self) -> None:
        kernel = self._backend.kernel
        if kernel.kind == self._kernel_kind and kernel.dimension in self._kernel_dimensions:
            self._slots = {name: getattr(kernel, name) for name in self._accessors}
            return
        LOG.debug("%s holds a %s, accessors unbound", type(self).__name__, kernel.name_of_class)
        self._slots = {
            name: _unbound(type(self).__name__, name, kernel.name_of_class)
            for name in self._accessors
        }

    def _get(self, accessor: str, *args):
        return self._slots[accessor](*args)

    def _set(self, accessor: str, *args):
        # the clone (if any) rebinds the slots before we look one up
        self._make_unique_for_write()
        self._slots[accessor](*args)
        return self


class _CenterAccessors:
    def get_center(self) -> Tuple[float, ...]:
        return _as_tuple(self._get("get_center"))

    def set_center(self, center: Sequence[float]):
        return self._set("set_center", center)


class _TranslationAccessors:
    def get_translation(self) -> Tuple[float, ...]:
        return _as_tuple(self._get("get_translation"))

    def set_translation(self, translation: Sequence[float]):
        return self._set("set_translation", translation)


class _MatrixAccessors:
    def get_matrix(self) -> Tuple[float, ...]:
        """Linear part, flattened row-major."""
        return _as_tuple(self._get("get_matrix"))


class _VersorAccessors:
    def get_versor(self) -> Tuple[float, ...]:
        """Rotation as a unit quaternion (x, y, z, w)."""
        return _as_tuple(self._get("get_versor"))

    def set_rotation(self, versor_or_axis: Sequence[float], angle: Optional[float] = None):
        """Set the rotation from a versor (x, y, z, w), or from an axis and an angle."""
        return self._set("set_rotation", versor_or_axis, angle)


class TranslationTransform(_BoundAccessorTransform):
    """Pure translation in 2D or 3D."""

    _kernel_kind = TransformEnum.TRANSLATION
    _accessors = ("get_offset", "set_offset")

    def __init__(self, dimension: int = 3, offset: Optional[Sequence[float]] = None):
        super().__init__(dimension, TransformEnum.TRANSLATION)
        if offset is not None:
            self.set_offset(offset)

    def get_offset(self) -> Tuple[float, ...]:
        return _as_tuple(self._get("get_offset"))

    def set_offset(self, offset: Sequence[float]):
        return self._set("set_offset", offset)


class ScaleTransform(_CenterAccessors, _MatrixAccessors, _BoundAccessorTransform):
    """Axis-aligned scaling about a center."""

    _kernel_kind = TransformEnum.SCALE
    _accessors = ("get_center", "set_center", "get_matrix", "get_scale", "set_scale")

    def __init__(self, dimension: int = 3, scale: Optional[Sequence[float]] = None,
                 center: Optional[Sequence[float]] = None):
        super().__init__(dimension, TransformEnum.SCALE)
        if scale is not None:
            self.set_scale(scale)
        if center is not None:
            self.set_center(center)

    def get_scale(self) -> Tuple[float, ...]:
        return _as_tuple(self._get("get_scale"))

    def set_scale(self, scale: Sequence[float]):
        return self._set("set_scale", scale)


class Euler2DTransform(_CenterAccessors, _TranslationAccessors, _MatrixAccessors,
                       _BoundAccessorTransform):
    """2D rigid transform: rotation by an angle about a center, then translation."""

    _kernel_kind = TransformEnum.EULER
    _kernel_dimensions = (2,)
    _accessors = ("get_center", "set_center", "get_translation", "set_translation",
                  "get_matrix", "get_angle", "set_angle")

    def __init__(self, center: Sequence[float] = (0.0, 0.0), angle: float = 0.0,
                 translation: Sequence[float] = (0.0, 0.0)):
        super().__init__(2, TransformEnum.EULER)
        self.set_center(center)
        self.set_angle(angle)
        self.set_translation(translation)

    def get_angle(self) -> float:
        return self._get("get_angle")

    def set_angle(self, angle: float):
        return self._set("set_angle", angle)


class Similarity2DTransform(_CenterAccessors, _TranslationAccessors, _MatrixAccessors,
                            _BoundAccessorTransform):
    """2D rigid transform with an isotropic scale."""

    _kernel_kind = TransformEnum.SIMILARITY
    _kernel_dimensions = (2,)
    _accessors = ("get_center", "set_center", "get_translation", "set_translation",
                  "get_matrix", "get_angle", "set_angle", "get_scale", "set_scale")

    def __init__(self, scale: float = 1.0, angle: float = 0.0,
                 translation: Sequence[float] = (0.0, 0.0),
                 center: Sequence[float] = (0.0, 0.0)):
        super().__init__(2, TransformEnum.SIMILARITY)
        self.set_center(center)
        self.set_scale(scale)
        self.set_angle(angle)
        self.set_translation(translation)

    def get_angle(self) -> float:
        return self._get("get_angle")

    def set_angle(self, angle: float):
        return self._set("set_angle", angle)

    def get_scale(self) -> float:
        return self._get("get_scale")

    def set_scale(self, scale: float):
        return self._set("set_scale", scale)


class Euler3DTransform(_CenterAccessors, _TranslationAccessors, _MatrixAccessors,
                       _BoundAccessorTransform):
    """3D rigid transform parameterized by three Euler angles.

    Args:
        center: fixed point of the rotation.
        angle_x, angle_y, angle_z: rotation angles in radians.
        translation: applied after the rotation.
    """

    _kernel_kind = TransformEnum.EULER
    _kernel_dimensions = (3,)
    _accessors = ("get_center", "set_center", "get_translation", "set_translation",
                  "get_matrix", "set_matrix", "set_rotation",
                  "get_angle_x", "get_angle_y", "get_angle_z",
                  "get_compute_zyx", "set_compute_zyx")

    def __init__(self, center: Sequence[float] = (0.0, 0.0, 0.0),
                 angle_x: float = 0.0, angle_y: float = 0.0, angle_z: float = 0.0,
                 translation: Sequence[float] = (0.0, 0.0, 0.0)):
        super().__init__(3, TransformEnum.EULER)
        self.set_center(center)
        self.set_rotation(angle_x, angle_y, angle_z)
        self.set_translation(translation)

    def get_angle_x(self) -> float:
        return self._get("get_angle_x")

    def get_angle_y(self) -> float:
        return self._get("get_angle_y")

    def get_angle_z(self) -> float:
        return self._get("get_angle_z")

    def set_rotation(self, angle_x: float, angle_y: float, angle_z: float):
        return self._set("set_rotation", angle_x, angle_y, angle_z)

    def get_compute_zyx(self) -> bool:
        return self._get("get_compute_zyx")

    def set_compute_zyx(self, flag: bool):
        return self._set("set_compute_zyx", flag)

    def set_matrix(self, matrix: Sequence[float]):
        """Set the angles from an orthogonal 3x3 matrix (nested or flattened row-major)."""
        return self._set("set_matrix", matrix)


class VersorTransform(_CenterAccessors, _VersorAccessors, _MatrixAccessors,
                      _BoundAccessorTransform):
    """3D rotation about a center, parameterized by a versor."""

    _kernel_kind = TransformEnum.VERSOR
    _kernel_dimensions = (3,)
    _accessors = ("get_center", "set_center", "get_matrix", "get_versor", "set_rotation")

    def __init__(self, versor: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
                 center: Sequence[float] = (0.0, 0.0, 0.0)):
        super().__init__(3, TransformEnum.VERSOR)
        self.set_center(center)
        self.set_rotation(versor)


class VersorRigid3DTransform(_CenterAccessors, _TranslationAccessors, _VersorAccessors,
                             _MatrixAccessors, _BoundAccessorTransform):
    """3D rigid transform: versor rotation about a center, then translation."""

    _kernel_kind = TransformEnum.VERSOR_RIGID
    _kernel_dimensions = (3,)
    _accessors = ("get_center", "set_center", "get_translation", "set_translation",
                  "get_matrix", "get_versor", "set_rotation")

    def __init__(self, versor: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
                 translation: Sequence[float] = (0.0, 0.0, 0.0),
                 center: Sequence[float] = (0.0, 0.0, 0.0)):
        super().__init__(3, TransformEnum.VERSOR_RIGID)
        self.set_center(center)
        self.set_rotation(versor)
        self.set_translation(translation)


class Similarity3DTransform(_CenterAccessors, _TranslationAccessors, _VersorAccessors,
                            _MatrixAccessors, _BoundAccessorTransform):
    """3D versor rigid transform with an isotropic scale."""

    _kernel_kind = TransformEnum.SIMILARITY
    _kernel_dimensions = (3,)
    _accessors = ("get_center", "set_center", "get_translation", "set_translation",
                  "get_matrix", "get_versor", "set_rotation", "get_scale", "set_scale")

    def __init__(self, scale: float = 1.0, versor: Sequence[float] = (0.0, 0.0, 0.0, 1.0),
                 translation: Sequence[float] = (0.0, 0.0, 0.0),
                 center: Sequence[float] = (0.0, 0.0, 0.0)):
        super().__init__(3, TransformEnum.SIMILARITY)
        self.set_center(center)
        self.set_scale(scale)
        self.set_rotation(versor)
        self.set_translation(translation)

    def get_scale(self) -> float:
        return self._get("get_scale")

    def set_scale(self, scale: float):
        return self._set("set_scale", scale)


class AffineTransform(_CenterAccessors, _TranslationAccessors, _MatrixAccessors,
                      _BoundAccessorTransform):
    """General linear map about a center plus translation, in 2D or 3D."""

    _kernel_kind = TransformEnum.AFFINE
    _accessors = ("get_center", "set_center", "get_translation", "set_translation",
                  "get_matrix", "set_matrix")

    def __init__(self, dimension: int = 3, matrix: Optional[Sequence[float]] = None,
                 translation: Optional[Sequence[float]] = None,
                 center: Optional[Sequence[float]] = None):
        super().__init__(dimension, TransformEnum.AFFINE)
        if matrix is not None:
            self.set_matrix(matrix)
        if translation is not None:
            self.set_translation(translation)
        if center is not None:
            self.set_center(center)

    def set_matrix(self, matrix: Sequence[float]):
        """Set the linear part, nested or flattened row-major."""
        return self._set("set_matrix", matrix)
