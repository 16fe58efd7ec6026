"""
JAX Transformkit: value-semantic spatial transforms for image registration.

This library provides copy-on-write Transform handles over 2D and 3D
identity, translation, scale, rigid, similarity, affine, composite and
displacement-field transforms, with kind-specific accessors and transform
file input/output, all backed by JAX.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import core
from . import kernels
from . import transforms
from .core import Image, PixelIDValueEnum, TransformEnum
from .dispatch import register_default_transforms
from .errors import (
    InternalInconsistencyError,
    InvalidArgumentError,
    TransformError,
    UnsupportedError,
)
from .facades import (
    AffineTransform,
    Euler2DTransform,
    Euler3DTransform,
    ScaleTransform,
    Similarity2DTransform,
    Similarity3DTransform,
    TranslationTransform,
    VersorRigid3DTransform,
    VersorTransform,
)
from .io import read_transform, write_transform
from .transform import Transform

__version__ = "0.1.0"
__all__ = [
    "core",
    "kernels",
    "transforms",
    "Transform",
    "TransformEnum",
    "Image",
    "PixelIDValueEnum",
    "TranslationTransform",
    "ScaleTransform",
    "Euler2DTransform",
    "Euler3DTransform",
    "Similarity2DTransform",
    "Similarity3DTransform",
    "VersorTransform",
    "VersorRigid3DTransform",
    "AffineTransform",
    "read_transform",
    "write_transform",
    "register_default_transforms",
    "TransformError",
    "InvalidArgumentError",
    "UnsupportedError",
    "InternalInconsistencyError",
]
