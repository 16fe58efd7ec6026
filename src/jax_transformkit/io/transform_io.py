"""Reading and writing Transform objects with SimpleITK's transform IO.

The file format follows from the path's suffix, as SimpleITK decides it.
SimpleITK also reduces a file to a single transform: a leading composite
absorbs the transforms after it, otherwise only the first transform is kept
and SimpleITK reports the rest as a warning.
"""

import logging
from pathlib import Path
from typing import Union

import SimpleITK as sitk

from .. import dispatch
from ..errors import InvalidArgumentError, UnsupportedError
from ..transform import Transform
from .conversion import kernel_from_sitk, kernel_to_sitk

LOG = logging.getLogger(__name__)

# SimpleITK's message for files holding a transform of unsupported dimensions
_UNSUPPORTED_DIMENSIONS = "Unable to transform with InputSpaceDimension"


def read_transform(path: Union[str, Path]) -> Transform:
    """Load the transform stored in ``path``.

    The result always wraps a composite transform: a composite in the file is
    loaded as is, any other transform is placed in a new composite.

    Args:
        path: file to read.

    Returns:
        Transform: the loaded transform.

    Raises:
        InvalidArgumentError: the file cannot be read as a transform file.
        UnsupportedError: the file holds a transform kind or dimension that
            has no kernel.
    """
    try:
        tx = sitk.ReadTransform(str(path))
    except RuntimeError as exc:
        if _UNSUPPORTED_DIMENSIONS in str(exc):
            raise UnsupportedError(f"{path}: {exc}") from exc
        raise InvalidArgumentError(f"Unable to read transform file {path}: {exc}") from exc

    LOG.debug("Read %s transform from %s", tx.GetName(), path)
    backend = dispatch.wrap_loaded([kernel_from_sitk(tx)], source=str(path))
    return Transform._from_backend(backend)


def write_transform(transform: Transform, path: Union[str, Path]) -> None:
    """Write ``transform`` to ``path``, overwriting any existing file."""
    tx = kernel_to_sitk(transform._backend.kernel)
    try:
        sitk.WriteTransform(tx, str(path))
    except RuntimeError as exc:
        raise InvalidArgumentError(f"Unable to write transform file {path}: {exc}") from exc
