"""Mapping from runtime (kind, dimension) selections to kernels and backends.

Forward dispatch builds a fresh backend for a TransformEnum and a dimension.
Reverse dispatch wraps kernels obtained elsewhere (transform files) into a
composite backend. Transform class names are resolved through a factory that
is populated explicitly by ``register_default_transforms``.
"""

import logging
import numbers
import re
import threading
from typing import Callable, Dict, Iterable, Sequence, Tuple

from .backend import Backend
from .core.image import Image
from .core.kinds import THREE_D_ONLY, PixelIDValueEnum, TransformEnum
from .errors import InternalInconsistencyError, InvalidArgumentError, UnsupportedError
from .kernels import (
    AffineKernel,
    CompositeKernel,
    DisplacementFieldKernel,
    Euler2DKernel,
    Euler3DKernel,
    IdentityKernel,
    Kernel,
    MatrixOffsetBaseKernel,
    QuaternionRigidKernel,
    ScaleKernel,
    ScaleLogarithmicKernel,
    Similarity2DKernel,
    Similarity3DKernel,
    TranslationKernel,
    VersorKernel,
    VersorRigid3DKernel,
)

LOG = logging.getLogger(__name__)

SUPPORTED_DIMENSIONS = (2, 3)

# (kind, dimension) -> kernel class. Composite and displacement field are
# built by their own paths below.
_KERNEL_TABLE: Dict[Tuple[TransformEnum, int], Callable[[int], Kernel]] = {}
for _dim in SUPPORTED_DIMENSIONS:
    _KERNEL_TABLE[(TransformEnum.IDENTITY, _dim)] = IdentityKernel
    _KERNEL_TABLE[(TransformEnum.TRANSLATION, _dim)] = TranslationKernel
    _KERNEL_TABLE[(TransformEnum.SCALE, _dim)] = ScaleKernel
    _KERNEL_TABLE[(TransformEnum.SCALE_LOGARITHMIC, _dim)] = ScaleLogarithmicKernel
    _KERNEL_TABLE[(TransformEnum.AFFINE, _dim)] = AffineKernel
_KERNEL_TABLE[(TransformEnum.EULER, 2)] = Euler2DKernel
_KERNEL_TABLE[(TransformEnum.EULER, 3)] = Euler3DKernel
_KERNEL_TABLE[(TransformEnum.SIMILARITY, 2)] = Similarity2DKernel
_KERNEL_TABLE[(TransformEnum.SIMILARITY, 3)] = Similarity3DKernel
_KERNEL_TABLE[(TransformEnum.QUATERNION_RIGID, 3)] = QuaternionRigidKernel
_KERNEL_TABLE[(TransformEnum.VERSOR, 3)] = VersorKernel
_KERNEL_TABLE[(TransformEnum.VERSOR_RIGID, 3)] = VersorRigid3DKernel


def _check_dimension(dimension) -> int:
    if isinstance(dimension, bool) or not isinstance(dimension, numbers.Integral) \
            or dimension not in SUPPORTED_DIMENSIONS:
        raise InvalidArgumentError(f"Invalid dimension for transform: {dimension!r}, expected 2 or 3")
    return int(dimension)


def _resolve_kind(kind) -> TransformEnum:
    try:
        return TransformEnum(kind)
    except ValueError:
        LOG.warning("Unrecognized transform kind %r, using an identity transform", kind)
        return TransformEnum.IDENTITY


def create_backend(kind, dimension: int) -> Backend:
    """Build a fresh backend for ``kind`` in ``dimension`` (2 or 3)."""
    dimension = _check_dimension(dimension)
    kind = _resolve_kind(kind)

    if kind == TransformEnum.DISPLACEMENT_FIELD:
        raise InvalidArgumentError(
            "DISPLACEMENT_FIELD transforms are constructed from a displacement image"
        )
    if kind in THREE_D_ONLY and dimension != 3:
        raise InvalidArgumentError(f"A {kind.name} transform only works for 3D!")
    if kind == TransformEnum.COMPOSITE:
        return build_composite(dimension)

    return Backend(_KERNEL_TABLE[(kind, dimension)](dimension))


def _configure_optimize_flags(composite: CompositeKernel) -> None:
    composite.set_all_transforms_to_optimize_off()
    composite.set_only_most_recent_transform_to_optimize_on()


def build_composite(dimension: int, kernels: Iterable[Kernel] = ()) -> Backend:
    """New composite holding ``kernels``; an identity is inserted if none are given."""
    composite = CompositeKernel(dimension)
    for kernel in kernels:
        composite.add_transform(kernel)
    if composite.is_transform_queue_empty():
        composite.add_transform(IdentityKernel(dimension))
    _configure_optimize_flags(composite)
    return Backend(composite)


def adopt_composite(kernel: Kernel, dimension: int) -> Backend:
    """Wrap an existing, already populated composite kernel."""
    if kernel.kind != TransformEnum.COMPOSITE or kernel.dimension != dimension:
        raise InternalInconsistencyError(
            f"Unexpectedly unable to convert {kernel.name_of_class} to "
            f"CompositeTransform_double_{dimension}_{dimension}"
        )
    _configure_optimize_flags(kernel)
    return Backend(kernel)


def backend_from_displacement_field(image: Image) -> Backend:
    """Build a displacement-field backend that takes over the buffer of ``image``.

    The image must hold 64-bit float vectors with one component per
    dimension. On success ``image`` is left empty.
    """
    dimension = image.dimension
    if image.pixel_id != PixelIDValueEnum.VECTOR_FLOAT64:
        raise InvalidArgumentError(
            f"Displacement field images must have VECTOR_FLOAT64 pixels, got {image.pixel_id.name}"
        )
    if dimension not in SUPPORTED_DIMENSIONS or image.number_of_components_per_pixel != dimension:
        raise InvalidArgumentError(
            f"Displacement field image of dimension {dimension} must have {dimension} "
            f"components per pixel, got {image.number_of_components_per_pixel}"
        )
    field, geometry = image._release_buffer()
    return Backend(DisplacementFieldKernel(dimension, field, geometry))


def check_space_dimensions(input_dimension: int, output_dimension: int, class_name: str) -> int:
    """Return the dimension of a supported square transform or raise UnsupportedError."""
    if input_dimension == output_dimension and input_dimension in SUPPORTED_DIMENSIONS:
        return input_dimension
    raise UnsupportedError(
        f"Unable to transform with InputSpaceDimension: {input_dimension} and "
        f"OutputSpaceDimension: {output_dimension}. "
        f"Transform of type {class_name} is not supported."
    )


def wrap_loaded(kernels: Sequence[Kernel], source: str = "", strict: bool = False) -> Backend:
    """Reduce the kernels read from ``source`` to a single composite backend.

    A leading composite is adopted as is. Otherwise the first kernel is placed
    in a new single-element composite; any further kernels are dropped with a
    warning, or rejected when ``strict`` is set.
    """
    if not kernels:
        raise InvalidArgumentError(f"Read transform file {source!r}, but it contains no transform")

    first = kernels[0]
    dimension = check_space_dimensions(
        first.input_space_dimension, first.output_space_dimension, first.name_of_class
    )

    if first.kind == TransformEnum.COMPOSITE:
        return adopt_composite(first, dimension)

    if len(kernels) != 1:
        if strict:
            raise InvalidArgumentError(
                f"{source!r} holds {len(kernels)} transforms that are not in a composite"
            )
        LOG.warning(
            "There is more than one transform in %s! Only using the first transform.", source
        )

    return build_composite(dimension, [first])


# Kernel factory keyed by class name, e.g. "Euler3DTransform_double_3_3".
_FACTORY: Dict[str, Callable[[], Kernel]] = {}
_FACTORY_LOCK = threading.Lock()
_DEFAULTS_REGISTERED = False

_CLASS_NAME = re.compile(r"^(?P<base>[A-Za-z0-9]+)_(?P<precision>double|float)_(?P<input>\d+)_(?P<output>\d+)$")


def register_transform(class_name: str, constructor: Callable[[], Kernel]) -> None:
    """Make ``class_name`` constructible by ``create_kernel_by_name``."""
    with _FACTORY_LOCK:
        _FACTORY[class_name] = constructor


def _constructor(kernel_cls, dimension: int) -> Callable[[], Kernel]:
    return lambda: kernel_cls(dimension)


def register_default_transforms() -> None:
    """Register every built-in kernel. Safe to call any number of times."""
    global _DEFAULTS_REGISTERED
    if _DEFAULTS_REGISTERED:
        return

    extra = [CompositeKernel, DisplacementFieldKernel, MatrixOffsetBaseKernel]
    for (kind, dimension), kernel_cls in _KERNEL_TABLE.items():
        name = f"{kernel_cls.class_base_name}_double_{dimension}_{dimension}"
        register_transform(name, _constructor(kernel_cls, dimension))
    for dimension in SUPPORTED_DIMENSIONS:
        for kernel_cls in extra:
            name = f"{kernel_cls.class_base_name}_double_{dimension}_{dimension}"
            register_transform(name, _constructor(kernel_cls, dimension))

    _DEFAULTS_REGISTERED = True
    LOG.debug("Registered %d transform classes", len(_FACTORY))


def create_kernel_by_name(class_name: str) -> Kernel:
    """Instantiate the kernel registered for ``class_name``.

    Single precision names resolve to their double precision kernel.
    """
    register_default_transforms()

    match = _CLASS_NAME.match(class_name)
    if match is None:
        raise UnsupportedError(f"Unrecognized transform class name {class_name!r}")
    input_dimension, output_dimension = int(match["input"]), int(match["output"])
    check_space_dimensions(input_dimension, output_dimension, class_name)

    key = f"{match['base']}_double_{input_dimension}_{output_dimension}"
    try:
        constructor = _FACTORY[key]
    except KeyError:
        raise UnsupportedError(f"Transform type {class_name} is not supported")
    return constructor()
