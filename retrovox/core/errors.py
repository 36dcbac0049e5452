"""
Error taxonomy for the audio core.
DSP stages never raise for in-range numeric input (they clamp); only decoding,
configuration lookups and sink-facing operations fail.
"""


class RetroVoxError(Exception):
    """Base class for every error raised by the audio core."""


class DecodeError(RetroVoxError):
    """Malformed base64 or PCM16 payload. Not recoverable locally."""


class SinkError(RetroVoxError):
    """Audio device/context failure. Reported once; the core never retries."""


class ConfigError(RetroVoxError):
    """Unknown preset, pack, kind, mood or tempo, or an invalid override."""
