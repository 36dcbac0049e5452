"""
Procedural retro UI sound effects: packs, recipes, synthesis, cache, manager.
"""
from retrovox.sfx.cache import SoundCache
from retrovox.sfx.generator import SoundGenerator, render_tone
from retrovox.sfx.manager import SoundEffectsManager
from retrovox.sfx.recipes import SOUND_PACKS, SoundEffectKind, SoundPack, get_sound_pack
from retrovox.sfx.settings import SoundSettings

__all__ = [
    "SOUND_PACKS",
    "SoundCache",
    "SoundEffectKind",
    "SoundEffectsManager",
    "SoundGenerator",
    "SoundPack",
    "SoundSettings",
    "get_sound_pack",
    "render_tone",
]
