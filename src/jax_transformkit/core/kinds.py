"""Runtime tags selecting transform kinds and pixel layouts."""

from enum import IntEnum


class TransformEnum(IntEnum):
    """Transform kinds understood by the dispatch table."""
    IDENTITY = 0
    TRANSLATION = 1
    SCALE = 2
    SCALE_LOGARITHMIC = 3
    EULER = 4
    SIMILARITY = 5
    QUATERNION_RIGID = 6
    VERSOR = 7
    VERSOR_RIGID = 8
    AFFINE = 9
    COMPOSITE = 10
    DISPLACEMENT_FIELD = 11


# Kinds that only exist in 3D.
THREE_D_ONLY = frozenset({
    TransformEnum.QUATERNION_RIGID,
    TransformEnum.VERSOR,
    TransformEnum.VERSOR_RIGID,
})


class PixelIDValueEnum(IntEnum):
    """Pixel layouts an Image can hold."""
    UINT8 = 1
    INT16 = 2
    INT32 = 3
    FLOAT32 = 8
    FLOAT64 = 9
    VECTOR_UINT8 = 13
    VECTOR_FLOAT32 = 20
    VECTOR_FLOAT64 = 21

    @property
    def is_vector(self) -> bool:
        return self.name.startswith("VECTOR_")
