"""Exception types raised by the RTP packet and codec modules."""


class RTPError(Exception):
    """Base class for every error raised by this package."""

    default_message = "rtp error"

    def __init__(self, detail=None):
        message = self.default_message if detail is None else f"{self.default_message}: {detail}"
        super().__init__(message)


class HeaderSizeInsufficientError(RTPError):
    default_message = "RTP header size insufficient"


class HeaderExtensionSizeError(RTPError):
    default_message = "RTP header size insufficient for extension"


class TooSmallError(RTPError):
    default_message = "buffer too small"


class ExtensionsNotEnabledError(RTPError):
    default_message = "h.Extension not enabled"


class ExtensionNotFoundError(RTPError, LookupError):
    default_message = "extension not found"


class OneByteExtensionIDError(RTPError, ValueError):
    default_message = (
        "header extension id must be between 1 and 14 for RFC 5285 one byte extensions"
    )


class OneByteExtensionSizeError(RTPError, ValueError):
    default_message = (
        "header extension payload must be 16bytes or less for RFC 5285 one byte extensions"
    )


class TwoByteExtensionIDError(RTPError, ValueError):
    default_message = (
        "header extension id must be between 1 and 255 for RFC 5285 two byte extensions"
    )


class TwoByteExtensionSizeError(RTPError, ValueError):
    default_message = (
        "header extension payload must be 255bytes or less for RFC 5285 two byte extensions"
    )


class RawExtensionIDError(RTPError, ValueError):
    default_message = "header extension id must be 0 for non-RFC 5285 extensions"


class InvalidPaddingError(RTPError):
    default_message = "invalid RTP padding"


class ShortBufferError(RTPError):
    default_message = "short buffer"


class PlayoutDelayValueError(RTPError, ValueError):
    default_message = "invalid playout delay value"


class NilPacketError(RTPError):
    default_message = "invalid nil packet"


class ShortPacketError(RTPError):
    default_message = "packet is not large enough"


class TooManyPDiffError(RTPError):
    default_message = "too many PDiff"


class TooManySpatialLayersError(RTPError):
    default_message = "too many spatial layers"


class H265CorruptedPacketError(RTPError):
    default_message = "corrupted h265 packet"


class InvalidH265PacketTypeError(RTPError):
    default_message = "invalid h265 packet type"