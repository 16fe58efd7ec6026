"""
Geometric transform kernels.

One mutable kernel class per transform kind, each with a flat parameter
vector, a fixed-parameter vector, point mapping, cloning and a printable
state dump. The Transform facade never touches these directly outside of
the dispatch and backend modules.
"""

from .base import IdentityKernel, Kernel
from .composite import CompositeKernel
from .displacement import DisplacementFieldKernel
from .matrix_offset import (
    AffineKernel,
    Euler2DKernel,
    Euler3DKernel,
    MatrixOffsetBaseKernel,
    MatrixOffsetKernel,
    QuaternionRigidKernel,
    ScaleKernel,
    ScaleLogarithmicKernel,
    Similarity2DKernel,
    Similarity3DKernel,
    TranslationKernel,
    VersorKernel,
    VersorRigid3DKernel,
)

__all__ = [
    "Kernel",
    "IdentityKernel",
    "MatrixOffsetKernel",
    "TranslationKernel",
    "ScaleKernel",
    "ScaleLogarithmicKernel",
    "Euler2DKernel",
    "Euler3DKernel",
    "Similarity2DKernel",
    "Similarity3DKernel",
    "QuaternionRigidKernel",
    "VersorKernel",
    "VersorRigid3DKernel",
    "AffineKernel",
    "MatrixOffsetBaseKernel",
    "CompositeKernel",
    "DisplacementFieldKernel",
]
