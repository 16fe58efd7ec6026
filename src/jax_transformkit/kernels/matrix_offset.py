"""Kernels of the matrix-offset family: x -> M (x - c) + c + t."""

from typing import List, Optional, Sequence

import jax.numpy as jnp
import numpy as np

from ..core.kinds import TransformEnum
from ..errors import InvalidArgumentError
from ..transforms import homogeneous, rotation
from .base import Array, Kernel, as_vector, format_vector


class MatrixOffsetKernel(Kernel):
    """Shared state and point mapping for linear-plus-offset transforms.

    Subclasses provide the linear part through ``get_matrix`` and decide
    which pieces of state make up the parameter vector. The center is the
    fixed parameter vector.
    """

    def __init__(self, dimension: int):
        super().__init__(dimension)
        self._center = jnp.zeros(dimension)
        self._translation = jnp.zeros(dimension)

    def get_matrix(self) -> Array:
        return jnp.eye(self._dimension)

    def get_offset(self) -> Array:
        return homogeneous.compute_offset(self.get_matrix(), self._center, self._translation)

    def get_center(self) -> Array:
        return self._center

    def set_center(self, center: Sequence[float]) -> None:
        self._center = as_vector(center, self._dimension, "center")

    def get_translation(self) -> Array:
        return self._translation

    def set_translation(self, translation: Sequence[float]) -> None:
        self._translation = as_vector(translation, self._dimension, "translation")

    def get_fixed_parameters(self) -> Array:
        return self._center

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        self._center = as_vector(parameters, self._dimension, f"{self.name_of_class} fixed parameters")

    def transform_point(self, point: Array) -> Array:
        return homogeneous.apply(self.get_matrix(), self.get_offset(), point)

    def _describe_state(self) -> List[str]:
        T = np.asarray(homogeneous.from_matrix_and_offset(self.get_matrix(), self.get_offset()))
        lines = ["Matrix:"]
        lines.extend("  " + " ".join(f"{v:.17g}" for v in row) for row in T[:-1, :-1])
        lines.append(f"Offset: {format_vector(T[:-1, -1])}")
        lines.append(f"Center: {format_vector(self._center)}")
        lines.append(f"Translation: {format_vector(self._translation)}")
        return lines

    def _params(self, parameters: Sequence[float]) -> Array:
        return as_vector(parameters, self.number_of_parameters, f"{self.name_of_class} parameters")


class TranslationKernel(MatrixOffsetKernel):
    """Pure translation. Parameters: the offset. No fixed parameters."""

    kind = TransformEnum.TRANSLATION
    class_base_name = "TranslationTransform"

    def get_parameters(self) -> Array:
        return self._translation

    def set_parameters(self, parameters: Sequence[float]) -> None:
        self._translation = self._params(parameters)

    def get_fixed_parameters(self) -> Array:
        return jnp.zeros(0)

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        as_vector(parameters, 0, f"{self.name_of_class} fixed parameters")

    def get_offset(self) -> Array:
        return self._translation

    def set_offset(self, offset: Sequence[float]) -> None:
        self.set_translation(offset)


class ScaleKernel(MatrixOffsetKernel):
    """Axis-aligned scaling about the center. Parameters: one factor per axis."""

    kind = TransformEnum.SCALE
    class_base_name = "ScaleTransform"

    def __init__(self, dimension: int):
        super().__init__(dimension)
        self._scale = jnp.ones(dimension)

    def get_matrix(self) -> Array:
        return jnp.diag(self._scale)

    def get_scale(self) -> Array:
        return self._scale

    def set_scale(self, scale: Sequence[float]) -> None:
        self._scale = as_vector(scale, self._dimension, "scale")

    def get_parameters(self) -> Array:
        return self._scale

    def set_parameters(self, parameters: Sequence[float]) -> None:
        self._scale = self._params(parameters)


class ScaleLogarithmicKernel(ScaleKernel):
    """Scaling parameterized by the natural logarithm of each factor."""

    kind = TransformEnum.SCALE_LOGARITHMIC
    class_base_name = "ScaleLogarithmicTransform"

    def get_parameters(self) -> Array:
        return jnp.log(self._scale)

    def set_parameters(self, parameters: Sequence[float]) -> None:
        self._scale = jnp.exp(self._params(parameters))


class Euler2DKernel(MatrixOffsetKernel):
    """2D rigid transform. Parameters: (angle, tx, ty)."""

    kind = TransformEnum.EULER
    class_base_name = "Euler2DTransform"

    def __init__(self, dimension: int = 2):
        super().__init__(2)
        self._angle = jnp.asarray(0.0)

    def get_matrix(self) -> Array:
        return rotation.rotation_2d(self._angle)

    def get_angle(self) -> float:
        return float(self._angle)

    def set_angle(self, angle: float) -> None:
        self._angle = jnp.asarray(float(angle))

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._angle[None], self._translation])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        self._angle = p[0]
        self._translation = p[1:3]


class Similarity2DKernel(Euler2DKernel):
    """2D rigid transform with isotropic scale. Parameters: (scale, angle, tx, ty)."""

    kind = TransformEnum.SIMILARITY
    class_base_name = "Similarity2DTransform"

    def __init__(self, dimension: int = 2):
        super().__init__(2)
        self._scale = jnp.asarray(1.0)

    def get_matrix(self) -> Array:
        return self._scale * rotation.rotation_2d(self._angle)

    def get_scale(self) -> float:
        return float(self._scale)

    def set_scale(self, scale: float) -> None:
        self._scale = jnp.asarray(float(scale))

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._scale[None], self._angle[None], self._translation])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        self._scale = p[0]
        self._angle = p[1]
        self._translation = p[2:4]


class Euler3DKernel(MatrixOffsetKernel):
    """3D rigid transform from Euler angles.

    Parameters: (angle_x, angle_y, angle_z, tx, ty, tz). Fixed parameters:
    the center followed by the ComputeZYX flag (0 or 1); a center alone is
    also accepted.
    """

    kind = TransformEnum.EULER
    class_base_name = "Euler3DTransform"

    def __init__(self, dimension: int = 3):
        super().__init__(3)
        self._angles = jnp.zeros(3)
        self._compute_zyx = False

    def get_matrix(self) -> Array:
        ax, ay, az = self._angles
        return rotation.euler_3d(ax, ay, az, self._compute_zyx)

    def set_matrix(self, matrix: Sequence[Sequence[float]]) -> None:
        M = as_vector(jnp.ravel(jnp.asarray(matrix, dtype=jnp.float64)), 9, "matrix").reshape(3, 3)
        if not np.allclose(np.asarray(M @ M.T), np.eye(3), atol=1e-10):
            raise InvalidArgumentError("Attempting to set a non-orthogonal rotation matrix")
        self._angles = rotation.angles_from_euler_3d(M, self._compute_zyx)

    def set_rotation(self, angle_x: float, angle_y: float, angle_z: float) -> None:
        self._angles = jnp.asarray([angle_x, angle_y, angle_z], dtype=jnp.float64)

    def get_angle_x(self) -> float:
        return float(self._angles[0])

    def get_angle_y(self) -> float:
        return float(self._angles[1])

    def get_angle_z(self) -> float:
        return float(self._angles[2])

    def get_compute_zyx(self) -> bool:
        return self._compute_zyx

    def set_compute_zyx(self, flag: bool) -> None:
        self._compute_zyx = bool(flag)

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._angles, self._translation])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        self._angles = p[:3]
        self._translation = p[3:]

    def get_fixed_parameters(self) -> Array:
        return jnp.concatenate([self._center, jnp.asarray([1.0 if self._compute_zyx else 0.0])])

    def set_fixed_parameters(self, parameters: Sequence[float]) -> None:
        p = jnp.asarray(parameters, dtype=jnp.float64)
        if p.ndim == 1 and p.shape[0] == 4:
            self._compute_zyx = bool(p[3] != 0.0)
            p = p[:3]
        self._center = as_vector(p, 3, f"{self.name_of_class} fixed parameters")


class VersorKernel(MatrixOffsetKernel):
    """3D rotation about the center. Parameters: the versor (x, y, z)."""

    kind = TransformEnum.VERSOR
    class_base_name = "VersorTransform"

    def __init__(self, dimension: int = 3):
        super().__init__(3)
        self._versor = jnp.zeros(3)

    def get_matrix(self) -> Array:
        return rotation.from_versor(self._versor)

    def get_versor(self) -> Array:
        """Unit quaternion of the rotation, in (x, y, z, w) order."""
        q = rotation.versor_to_quaternion(self._versor)
        return jnp.concatenate([q[1:], q[:1]])

    def set_rotation(self, versor_or_axis: Sequence[float], angle: Optional[float] = None) -> None:
        """Set the rotation from a versor (x, y, z, w) or from an axis and angle."""
        if angle is not None:
            axis = as_vector(versor_or_axis, 3, "rotation axis")
            self._versor = rotation.axis_angle_to_versor(axis, jnp.asarray(float(angle)))
            return
        q = as_vector(versor_or_axis, 4, "versor")
        q = q / jnp.linalg.norm(q)
        # keep the scalar part non-negative so the vector part alone is enough
        q = jnp.where(q[3] < 0, -q, q)
        self._versor = q[:3]

    def get_parameters(self) -> Array:
        return self._versor

    def set_parameters(self, parameters: Sequence[float]) -> None:
        self._versor = rotation.normalize_versor(self._params(parameters))


class VersorRigid3DKernel(VersorKernel):
    """3D rigid transform. Parameters: (versor xyz, tx, ty, tz)."""

    kind = TransformEnum.VERSOR_RIGID
    class_base_name = "VersorRigid3DTransform"

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._versor, self._translation])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        self._versor = rotation.normalize_versor(p[:3])
        self._translation = p[3:6]


class Similarity3DKernel(VersorRigid3DKernel):
    """3D rigid transform with isotropic scale. Parameters: (versor xyz, t xyz, scale)."""

    kind = TransformEnum.SIMILARITY
    class_base_name = "Similarity3DTransform"

    def __init__(self, dimension: int = 3):
        super().__init__(3)
        self._scale = jnp.asarray(1.0)

    def get_matrix(self) -> Array:
        return self._scale * rotation.from_versor(self._versor)

    def get_scale(self) -> float:
        return float(self._scale)

    def set_scale(self, scale: float) -> None:
        self._scale = jnp.asarray(float(scale))

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._versor, self._translation, self._scale[None]])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        self._versor = rotation.normalize_versor(p[:3])
        self._translation = p[3:6]
        self._scale = p[6]


class QuaternionRigidKernel(MatrixOffsetKernel):
    """3D rigid transform. Parameters: (qx, qy, qz, qw, tx, ty, tz)."""

    kind = TransformEnum.QUATERNION_RIGID
    class_base_name = "QuaternionRigidTransform"

    def __init__(self, dimension: int = 3):
        super().__init__(3)
        self._quaternion = jnp.asarray([0.0, 0.0, 0.0, 1.0])

    def get_matrix(self) -> Array:
        x, y, z, w = self._quaternion
        return rotation.from_quaternion(jnp.stack([w, x, y, z]))

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._quaternion, self._translation])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        if float(jnp.linalg.norm(p[:4])) == 0.0:
            raise InvalidArgumentError("QuaternionRigidTransform quaternion must be non-zero")
        self._quaternion = p[:4]
        self._translation = p[4:]


class AffineKernel(MatrixOffsetKernel):
    """General linear map plus translation.

    Parameters: the matrix in row-major order followed by the translation.
    """

    kind = TransformEnum.AFFINE
    class_base_name = "AffineTransform"

    def __init__(self, dimension: int):
        super().__init__(dimension)
        self._matrix = jnp.eye(dimension)

    def get_matrix(self) -> Array:
        return self._matrix

    def set_matrix(self, matrix: Sequence[float]) -> None:
        dim = self._dimension
        self._matrix = as_vector(jnp.ravel(jnp.asarray(matrix, dtype=jnp.float64)),
                                 dim * dim, "matrix").reshape(dim, dim)

    def get_parameters(self) -> Array:
        return jnp.concatenate([self._matrix.ravel(), self._translation])

    def set_parameters(self, parameters: Sequence[float]) -> None:
        p = self._params(parameters)
        dim = self._dimension
        self._matrix = p[:dim * dim].reshape(dim, dim)
        self._translation = p[dim * dim:]


class MatrixOffsetBaseKernel(AffineKernel):
    """Generic matrix-offset transform as found in files written by other tools."""

    class_base_name = "MatrixOffsetTransformBase"
