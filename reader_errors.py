"""Failure types raised by detectors and readers."""


class ReaderError(ValueError):
    """A reader or detector could not produce a result for this image."""


class NotFoundError(ReaderError):
    """No matching pattern, geometry or symbol in this image."""


class ChecksumError(ReaderError):
    """A symbol was located but failed its integrity check."""


class FormatError(ReaderError):
    """A symbol was located but is structurally malformed."""


class SizeExceededError(ReaderError):
    """Rectangle expansion ran off the image. Never leaves rect_detect."""
