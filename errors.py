class DownscaleError(Exception):
    """Base class for every failure the downscaler reports to its caller."""


class InvalidRequest(DownscaleError, ValueError):
    """Output size, lambda, or source image cannot describe a reduction."""


class UnsupportedScale(DownscaleError, ValueError):
    """The requested output is larger than the source on some axis."""


class UnreadableSource(DownscaleError, OSError):
    """The input file could not be decoded as an image."""
