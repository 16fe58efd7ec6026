"""Core data structures: kind tags and the image container."""

from .image import Image, ImageGeometry
from .kinds import PixelIDValueEnum, TransformEnum

__all__ = ["Image", "ImageGeometry", "PixelIDValueEnum", "TransformEnum"]
