"""Exception hierarchy for protofaker.

All exceptions derive from ProtoFakerError so callers can catch everything
the generator raises at one boundary.
"""


class ProtoFakerError(Exception):
    """Base exception for all protofaker errors."""


class ConstructionError(ProtoFakerError, TypeError):
    """The target type is not a protobuf message class.

    Raised when a generator is bound to something that cannot produce an
    empty message instance.
    """


class ResolutionError(ProtoFakerError):
    """The concrete class of a nested message field could not be determined.

    The generator recovers from this per field by leaving the field unset.
    """


class SchemaLoadError(ProtoFakerError):
    """A schema could not be loaded.

    Raised when protoc is missing or fails, when a descriptor set cannot be
    parsed, or when the requested message does not exist in it.
    """


class MaxDepthExceeded(ResolutionError):
    """Nested generation reached the configured maximum depth.

    Expected for self-referential schemas; the innermost field is left unset.
    """
