"""
Process-wide defaults. Environment overrides are read once at import.
"""
import os
from dataclasses import dataclass
from typing import Dict

from retrovox.core.errors import ConfigError

# Default rate for synthesized UI sounds and music when the host does not say otherwise
SAMPLE_RATE = int(os.environ.get("RETROVOX_SAMPLE_RATE", "44100"))

# External TTS contract: little-endian PCM16, mono, 24 kHz
TTS_SAMPLE_RATE = 24000
TTS_CHANNELS = 1

# Output rates the service renders at; each one gets its own sound cache
SUPPORTED_SAMPLE_RATES = frozenset({8000, 11025, 16000, 22050, 24000, 32000, 44100, 48000, SAMPLE_RATE})

MAX_CHANNELS = 8
MAX_RENDER_BEATS = 256

# Streaming bit-crusher block (frames)
BLOCK_SIZE = 2048

DEFAULT_PLAYBACK_RATE = 1.1
DEFAULT_BIT_LEVELS = 64

LOG_LEVEL = os.environ.get("RETROVOX_LOG_LEVEL", "INFO").upper()

DEV = os.environ.get("ENV", "development").lower() in ("development", "dev", "test")


# -----------------------------------------------------------------------------
# Live playback qualities (bit-crusher levels + sink time scale)
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class PlaybackQuality:
    id: str
    name: str
    description: str
    bit_levels: int  # 0 = bypass
    playback_rate: float


PLAYBACK_QUALITIES: Dict[str, PlaybackQuality] = {
    "extreme-lofi": PlaybackQuality(
        "extreme-lofi", "Extreme Lo-Fi", "4-bit audio (16 levels) - Most distorted", 16, 1.2
    ),
    "default": PlaybackQuality(
        "default", "Authentic 8-bit", "6-bit audio (64 levels) - Original sound", 64, 1.1
    ),
    "high-quality": PlaybackQuality(
        "high-quality", "High Quality", "8-bit audio (256 levels) - Clearer sound", 256, 1.0
    ),
    "modern": PlaybackQuality(
        "modern", "Modern Quality", "No bit-crushing - Clean audio", 0, 1.0
    ),
}

DEFAULT_PLAYBACK_QUALITY = "default"


def get_playback_quality(quality_id: str) -> PlaybackQuality:
    try:
        return PLAYBACK_QUALITIES[quality_id]
    except KeyError:
        raise ConfigError(f"Unknown playback quality: {quality_id!r}") from None
