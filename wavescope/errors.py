class WavescopeError(Exception):
    """Base class for errors raised by wavescope."""


class ConfigurationError(WavescopeError, ValueError):
    """Invalid configuration value (bad range, colour, or FFT size)."""


class DecodeError(WavescopeError):
    """The audio asset could not be decoded."""


class EncodeError(WavescopeError):
    """The video encoder could not be started or did not finish cleanly."""
