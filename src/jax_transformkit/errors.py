"""Exceptions raised by the transform facade layer."""


class TransformError(Exception):
    """Base class for all errors raised by jax_transformkit."""


class InvalidArgumentError(TransformError, ValueError):
    """Malformed caller input: bad dimension, vector length or pixel layout."""


class UnsupportedError(TransformError, NotImplementedError):
    """Operation is not meaningful for the transform kind currently held."""


class InternalInconsistencyError(TransformError, RuntimeError):
    """A dispatch step that should succeed by construction failed."""
