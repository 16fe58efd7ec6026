"""Conversion between kernels and SimpleITK transform objects.

SimpleITK transforms use the same parameter conventions as the kernels, so
most kinds convert by copying the parameter and fixed-parameter vectors.
Composites are converted sub-transform by sub-transform, and displacement
fields go through a vector image because SimpleITK stores their buffer
x-fastest while kernels index the field x-first.
"""

import numpy as np
import SimpleITK as sitk

from .. import dispatch
from ..core.image import ImageGeometry
from ..core.kinds import TransformEnum
from ..kernels import CompositeKernel, DisplacementFieldKernel, Kernel

_SITK_KINDS = {
    TransformEnum.IDENTITY: sitk.sitkIdentity,
    TransformEnum.TRANSLATION: sitk.sitkTranslation,
    TransformEnum.SCALE: sitk.sitkScale,
    TransformEnum.SCALE_LOGARITHMIC: sitk.sitkScaleLogarithmic,
    TransformEnum.EULER: sitk.sitkEuler,
    TransformEnum.SIMILARITY: sitk.sitkSimilarity,
    TransformEnum.QUATERNION_RIGID: sitk.sitkQuaternionRigid,
    TransformEnum.VERSOR: sitk.sitkVersor,
    TransformEnum.VERSOR_RIGID: sitk.sitkVersorRigid,
    TransformEnum.AFFINE: sitk.sitkAffine,
}


def _floats(values):
    return tuple(float(v) for v in np.asarray(values).ravel())


def _swap_spatial_axes(array: np.ndarray, dimension: int) -> np.ndarray:
    # (x, y[, z], c) <-> (z, y, x, c); the permutation is its own inverse
    axes = tuple(reversed(range(dimension))) + (dimension,)
    return np.ascontiguousarray(np.transpose(array, axes))


def _field_to_image(kernel: DisplacementFieldKernel) -> sitk.Image:
    dim = kernel.dimension
    g = kernel.geometry
    field = np.asarray(kernel.get_displacement_field(), dtype=np.float64)
    image = sitk.GetImageFromArray(_swap_spatial_axes(field, dim), isVector=True)
    image.SetOrigin(_floats(g.origin))
    image.SetSpacing(_floats(g.spacing))
    image.SetDirection(_floats(g.direction))
    return image


def _field_from_transform(tx: sitk.Transform) -> DisplacementFieldKernel:
    image = sitk.DisplacementFieldTransform(tx).GetDisplacementField()
    dim = image.GetDimension()
    field = _swap_spatial_axes(sitk.GetArrayFromImage(image), dim)
    geometry = ImageGeometry.create(
        image.GetSize(),
        origin=image.GetOrigin(),
        spacing=image.GetSpacing(),
        direction=image.GetDirection(),
    )
    return DisplacementFieldKernel(dim, field, geometry)


def _append(composite: sitk.CompositeTransform, kernel: Kernel) -> None:
    # nested composites are spliced in place, which maps points identically
    if kernel.kind == TransformEnum.COMPOSITE:
        for n in range(kernel.number_of_transforms):
            _append(composite, kernel.get_nth_transform(n))
    else:
        composite.AddTransform(kernel_to_sitk(kernel))


def kernel_to_sitk(kernel: Kernel) -> sitk.Transform:
    """Build the SimpleITK transform equivalent to ``kernel``."""
    dim = kernel.dimension
    if kernel.kind == TransformEnum.COMPOSITE:
        composite = sitk.CompositeTransform(dim)
        _append(composite, kernel)
        return composite
    if kernel.kind == TransformEnum.DISPLACEMENT_FIELD:
        return sitk.DisplacementFieldTransform(_field_to_image(kernel))

    tx = sitk.Transform(dim, _SITK_KINDS[kernel.kind])
    fixed = _floats(kernel.get_fixed_parameters())
    if fixed:
        tx.SetFixedParameters(fixed)
    parameters = _floats(kernel.get_parameters())
    if parameters:
        tx.SetParameters(parameters)
    return tx


def kernel_from_sitk(tx: sitk.Transform) -> Kernel:
    """Build the kernel equivalent to a SimpleITK transform.

    The kernel class is looked up from the transform's class name and
    dimension, so transforms without a kernel (e.g. B-splines) raise
    UnsupportedError.
    """
    dim = tx.GetDimension()
    kernel = dispatch.create_kernel_by_name(f"{tx.GetName()}_double_{dim}_{dim}")

    if isinstance(kernel, CompositeKernel):
        composite = sitk.CompositeTransform(tx)
        for n in range(composite.GetNumberOfTransforms()):
            kernel.add_transform(kernel_from_sitk(composite.GetNthTransform(n)))
        return kernel
    if isinstance(kernel, DisplacementFieldKernel):
        return _field_from_transform(tx)

    # fixed parameters first: they may resize the parameter vector
    kernel.set_fixed_parameters(tx.GetFixedParameters())
    kernel.set_parameters(tx.GetParameters())
    return kernel
