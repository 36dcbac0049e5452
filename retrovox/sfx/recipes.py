"""
Sound effect kinds, sound packs, and the synthesis recipe for each kind.
A pack re-voices every tonal recipe (waveform + pitch); noise recipes are
shared across packs.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from retrovox.core.errors import ConfigError


class SoundEffectKind(str, Enum):
    Keypress = "keypress"
    MessageSend = "message-send"
    MessageReceive = "message-receive"
    Error = "error"
    Success = "success"
    Notification = "notification"
    BootStart = "boot-start"
    BootComplete = "boot-complete"
    DiskAccess = "disk-access"

    @classmethod
    def parse(cls, value: Union["SoundEffectKind", str]) -> "SoundEffectKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for kind in cls:
                if value == kind.value or value == kind.name:
                    return kind
        raise ConfigError(f"Unknown sound effect kind: {value!r}")


# Settings flag gating each kind (besides the global UI-sounds flag)
KEYBOARD_CLICKS = "keyboard_clicks_enabled"
SYSTEM_BEEPS = "system_beeps_enabled"
BOOT_SOUNDS = "boot_sounds_enabled"

CATEGORY_FLAGS: Dict[SoundEffectKind, Optional[str]] = {
    SoundEffectKind.Keypress: KEYBOARD_CLICKS,
    SoundEffectKind.MessageSend: SYSTEM_BEEPS,
    SoundEffectKind.MessageReceive: SYSTEM_BEEPS,
    SoundEffectKind.Error: SYSTEM_BEEPS,
    SoundEffectKind.Success: SYSTEM_BEEPS,
    SoundEffectKind.Notification: SYSTEM_BEEPS,
    SoundEffectKind.BootStart: BOOT_SOUNDS,
    SoundEffectKind.BootComplete: BOOT_SOUNDS,
    SoundEffectKind.DiskAccess: None,
}


# -----------------------------------------------------------------------------
# Sound packs
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SoundPack:
    id: str
    name: str
    description: str
    waveform: str
    pitch: float = 1.0


SOUND_PACKS: Dict[str, SoundPack] = {
    "dos-pc": SoundPack("dos-pc", "DOS PC", "PC speaker square waves", "square"),
    "apple-ii": SoundPack("apple-ii", "Apple II", "1-bit speaker, a little lower", "square", 0.9),
    "commodore-64": SoundPack("commodore-64", "Commodore 64", "SID triangle voice", "triangle"),
    "modern-synth": SoundPack("modern-synth", "Modern Synth", "Clean sine tones", "sine"),
}

DEFAULT_SOUND_PACK = "dos-pc"


def get_sound_pack(pack_id: str) -> SoundPack:
    try:
        return SOUND_PACKS[pack_id]
    except (KeyError, TypeError):
        raise ConfigError(f"Unknown sound pack: {pack_id!r}") from None


# -----------------------------------------------------------------------------
# Recipes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SoundRecipe:
    """
    waveform: tonal layer (square|triangle|sine|noise)
    frequencies: equal-length steps; a single entry is a steady tone
    sweep_to: end frequency of a single-step sweep
    sustain: hold full level (buzz) instead of decaying
    noise_mix: share of a uniform-noise texture layer
    clicks: click onset times (s); replaces the tonal layer entirely
    """
    waveform: str
    duration: float
    frequencies: Tuple[float, ...] = ()
    sweep_to: Optional[float] = None
    attack_s: float = 0.01
    floor: float = 0.01
    sustain: bool = False
    noise_mix: float = 0.0
    clicks: Tuple[float, ...] = ()
    gain: float = 0.3


_SUCCESS = SoundRecipe("square", 0.15, frequencies=(800.0,))
_NOTIFICATION = SoundRecipe("square", 0.1, frequencies=(1000.0,))

BASE_RECIPES: Dict[SoundEffectKind, SoundRecipe] = {
    # mechanical key: short downward chirp with a noise texture
    SoundEffectKind.Keypress: SoundRecipe(
        "square", 0.05, frequencies=(1200.0,), sweep_to=900.0, attack_s=0.001, noise_mix=0.3, gain=0.6,
    ),
    SoundEffectKind.MessageSend: _SUCCESS,
    SoundEffectKind.MessageReceive: _NOTIFICATION,
    # low buzz, sustained
    SoundEffectKind.Error: SoundRecipe("square", 0.3, frequencies=(300.0,), sustain=True),
    SoundEffectKind.Success: _SUCCESS,
    SoundEffectKind.Notification: _NOTIFICATION,
    # ascending boot chime
    SoundEffectKind.BootStart: SoundRecipe("square", 0.8, frequencies=(400.0, 600.0, 800.0, 1200.0)),
    SoundEffectKind.BootComplete: SoundRecipe("square", 0.4, frequencies=(800.0, 1200.0)),
    # floppy seek: irregular clicks
    SoundEffectKind.DiskAccess: SoundRecipe(
        "noise", 0.6, clicks=(0.05, 0.12, 0.15, 0.25, 0.35, 0.42, 0.48, 0.55), gain=0.4,
    ),
}


def recipe_for(kind: SoundEffectKind, pack: SoundPack) -> SoundRecipe:
    """The kind's recipe re-voiced for a pack."""
    base = BASE_RECIPES[SoundEffectKind.parse(kind)]
    if base.waveform == "noise":
        return base
    return replace(
        base,
        waveform=pack.waveform,
        frequencies=tuple(f * pack.pitch for f in base.frequencies),
        sweep_to=None if base.sweep_to is None else base.sweep_to * pack.pitch,
    )
