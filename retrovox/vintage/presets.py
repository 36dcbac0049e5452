"""
Authenticity presets for the vintage speech pipeline.

Reference hardware (1991): First Byte Monologue speech engine through the
SBTalker driver on an 8-bit Sound Blaster ISA card, typically 11.025 kHz mono.
"""
import dataclasses
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

from retrovox.config import DEFAULT_PLAYBACK_RATE
from retrovox.core.errors import ConfigError

# Quantization at or above this many levels is treated as lossless
LOSSLESS_LEVELS = 65536
# Band edges at or beyond these are treated as "no band limit"
FULL_BAND_LOW = 0.0
FULL_BAND_HIGH = 20000.0


class AuthenticityLevel(str, Enum):
    Modern = "modern"
    SubtleVintage = "subtle"
    Authentic = "authentic"
    UltraAuthentic = "ultra"

    @classmethod
    def parse(cls, value: Union["AuthenticityLevel", str]) -> "AuthenticityLevel":
        """Accept an enum member, its value ('authentic') or its name ('Authentic')."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for level in cls:
                if value == level.value or value == level.name:
                    return level
        raise ConfigError(f"Unknown authenticity level: {value!r}")


@dataclass(frozen=True)
class ProcessingConfig:
    level: AuthenticityLevel
    target_sample_rate: int
    quantization_levels: int  # 256 = 8-bit, 65536 = 16-bit
    low_cutoff: float  # Hz, high-pass edge
    high_cutoff: float  # Hz, low-pass edge
    prosody_reduction: float  # 0 = none, 1 = completely flat
    pitch_variance_reduction: float
    volume_variance_reduction: float
    inject_artifacts: bool
    aliasing_amount: float  # 0.2 subtle, 0.5 heavy
    pre_echo_amount: float  # 0.1 typical
    playback_rate: float = DEFAULT_PLAYBACK_RATE

    def with_overrides(self, **overrides) -> "ProcessingConfig":
        """Copy with selected fields replaced. Unknown fields raise ConfigError."""
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown ProcessingConfig fields: {unknown}")
        if "level" in overrides:
            overrides["level"] = AuthenticityLevel.parse(overrides["level"])
        if overrides.get("quantization_levels", self.quantization_levels) < 2:
            raise ConfigError("quantization_levels must be >= 2")
        if overrides.get("target_sample_rate", self.target_sample_rate) <= 0:
            raise ConfigError("target_sample_rate must be positive")
        return dataclasses.replace(self, **overrides)

    @property
    def quantizes(self) -> bool:
        return self.quantization_levels < LOSSLESS_LEVELS

    @property
    def band_limited(self) -> bool:
        return self.low_cutoff > FULL_BAND_LOW or self.high_cutoff < FULL_BAND_HIGH


AUTHENTICITY_PRESETS: Dict[AuthenticityLevel, ProcessingConfig] = {
    AuthenticityLevel.Modern: ProcessingConfig(
        level=AuthenticityLevel.Modern,
        target_sample_rate=24000,
        quantization_levels=65536,
        low_cutoff=0,
        high_cutoff=20000,
        prosody_reduction=0.0,
        pitch_variance_reduction=0.0,
        volume_variance_reduction=0.0,
        inject_artifacts=False,
        aliasing_amount=0.0,
        pre_echo_amount=0.0,
    ),
    AuthenticityLevel.SubtleVintage: ProcessingConfig(
        level=AuthenticityLevel.SubtleVintage,
        target_sample_rate=22050,
        quantization_levels=65536,
        low_cutoff=200,
        high_cutoff=8000,
        prosody_reduction=0.2,
        pitch_variance_reduction=0.15,
        volume_variance_reduction=0.1,
        inject_artifacts=False,
        aliasing_amount=0.0,
        pre_echo_amount=0.0,
    ),
    AuthenticityLevel.Authentic: ProcessingConfig(
        level=AuthenticityLevel.Authentic,
        target_sample_rate=11025,
        quantization_levels=256,
        low_cutoff=300,
        high_cutoff=5000,
        prosody_reduction=0.5,
        pitch_variance_reduction=0.4,
        volume_variance_reduction=0.3,
        inject_artifacts=False,  # opt-in via with_overrides
        aliasing_amount=0.05,
        pre_echo_amount=0.03,
    ),
    AuthenticityLevel.UltraAuthentic: ProcessingConfig(
        level=AuthenticityLevel.UltraAuthentic,
        target_sample_rate=11025,
        quantization_levels=256,
        low_cutoff=300,
        high_cutoff=5000,
        prosody_reduction=0.75,
        pitch_variance_reduction=0.65,
        volume_variance_reduction=0.5,
        inject_artifacts=True,
        aliasing_amount=0.12,
        pre_echo_amount=0.08,
    ),
}


def get_preset_config(level: Union[AuthenticityLevel, str]) -> ProcessingConfig:
    return AUTHENTICITY_PRESETS[AuthenticityLevel.parse(level)]


def describe_level(level: Union[AuthenticityLevel, str]) -> str:
    """User-facing one-liner for a level."""
    level = AuthenticityLevel.parse(level)
    return {
        AuthenticityLevel.Modern: "Modern Quality (24 kHz, 16-bit, natural prosody)",
        AuthenticityLevel.SubtleVintage: "Subtle Vintage (22 kHz, light retro processing)",
        AuthenticityLevel.Authentic: "Authentic 1991 (11 kHz, 8-bit, recommended)",
        AuthenticityLevel.UltraAuthentic: "Ultra Authentic (maximum vintage processing)",
    }[level]


def level_specs(level: Union[AuthenticityLevel, str]) -> str:
    """Technical summary, e.g. '11.0 kHz, 8-bit, 300-5000 Hz'."""
    config = get_preset_config(level)
    bit_depth = int(round(math.log2(config.quantization_levels)))
    return (
        f"{config.target_sample_rate / 1000:.1f} kHz, {bit_depth}-bit, "
        f"{config.low_cutoff:g}-{config.high_cutoff:g} Hz"
    )
