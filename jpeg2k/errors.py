"""Exceptions raised by jpeg2k.

Every failure of the decode pipeline is reported with one of these; nothing
is silently degraded.
"""


class Jpeg2kError(Exception):
    """Base class of all jpeg2k errors."""
    pass


class DecodeError(Jpeg2kError):
    """The codestream could not be turned into a decoded image."""
    pass


class InvalidCodestreamError(DecodeError):
    """The magic bytes or the header could not be parsed."""
    pass


class UnsupportedFeatureError(DecodeError):
    """The stream uses something for which no component data can be
    produced.
    """
    pass


class DecodeIOError(DecodeError, OSError):
    """Reading the input file failed."""
    pass


class StrictModeWarningError(DecodeError):
    """Strict mode is on and the decoder reported a non-fatal anomaly.

    Attributes
    ----------
    warnings : list
        Messages reported by the decoder.
    """
    def __init__(self, msg, warnings=()):
        super().__init__(msg)
        self.warnings = list(warnings)


class NormalizationError(Jpeg2kError):
    """The decoded components cannot be normalized."""
    pass


class InvalidPrecisionError(NormalizationError):
    """Component precision is outside of [1, 16]."""
    pass


class ComponentCountMismatchError(NormalizationError):
    """The color space needs more components than the decoder reported."""
    pass


class DimensionMismatchError(NormalizationError):
    """Component dimensions are inconsistent with their role."""
    pass


class AccessError(Jpeg2kError):
    """Misuse of a decoded image handle."""
    pass


class IndexOutOfRangeError(AccessError, IndexError):
    """Invalid component index."""
    pass


class ReleasedImageError(AccessError):
    """The decoded image has already been released."""
    pass
