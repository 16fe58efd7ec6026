"""Transform file input/output.

This module provides functions for reading transforms from and writing
transforms to disk through SimpleITK, in any format it supports (``.tfm``,
``.txt``, ``.h5``, ``.hdf5``, ``.mat``, ...).
"""

from .conversion import kernel_from_sitk, kernel_to_sitk
from .transform_io import read_transform, write_transform

__all__ = ["read_transform", "write_transform", "kernel_from_sitk", "kernel_to_sitk"]
