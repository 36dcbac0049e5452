"""
SoundEffectsManager: the host-facing UI sound API.

Every play path is gated by settings, synthesizes on first use (cached per
pack), resumes a suspended sink, and routes source -> gain -> destination.
Nodes are released once their sound ends.
"""
import asyncio
import dataclasses
import logging
from typing import Any, Mapping, Optional, Union

from retrovox.core.errors import SinkError
from retrovox.core.params import clamp01
from retrovox.core.types import SampleBuffer
from retrovox.playback.effector import play_until_ended
from retrovox.playback.sink import AudioSink, GainNode, SourceNode, chain, ensure_running
from retrovox.sfx.cache import SoundCache
from retrovox.sfx.generator import AMBIENCE_DURATION_S, SoundGenerator
from retrovox.sfx.recipes import CATEGORY_FLAGS, SoundEffectKind, get_sound_pack
from retrovox.sfx.settings import SoundSettings

logger = logging.getLogger(__name__)

AMBIENCE_KEY = "ambience"

# (delay from the first beep in seconds, volume)
EASTER_EGG_BEEPS = ((0.0, 0.8), (0.2, 0.6), (0.4, 1.0))
EASTER_EGG_KEYWORD = "beep"


class SoundEffectsManager:
    def __init__(
        self,
        sink: AudioSink,
        settings: Union[SoundSettings, Mapping[str, Any], None] = None,
        generator: Optional[SoundGenerator] = None,
        cache: Optional[SoundCache] = None,
        ambience_duration_s: float = AMBIENCE_DURATION_S,
    ):
        self.sink = sink
        if settings is None or isinstance(settings, SoundSettings):
            self._settings = settings or SoundSettings()
        else:
            self._settings = SoundSettings.from_dict(settings)
        self._generator = generator or SoundGenerator()
        self._cache = cache or SoundCache()
        self._ambience_duration_s = ambience_duration_s
        self._ambience_source: Optional[SourceNode] = None
        self._ambience_gain: Optional[GainNode] = None

    async def initialize(self) -> None:
        """Resume the sink; start ambience if it is enabled."""
        ensure_running(self.sink)
        if self._settings.ambience_enabled:
            await self.start_ambience()
        logger.info("Sound effects ready (pack=%s)", self._settings.selected_sound_pack)

    # ------------------------------------------------------------------
    # One-shots
    # ------------------------------------------------------------------

    def is_enabled(self, kind: SoundEffectKind) -> bool:
        if not self._settings.ui_sounds_enabled:
            return False
        flag = CATEGORY_FLAGS[SoundEffectKind.parse(kind)]
        return flag is None or bool(getattr(self._settings, flag))

    def get_buffer(self, kind: SoundEffectKind) -> SampleBuffer:
        kind = SoundEffectKind.parse(kind)
        pack = get_sound_pack(self._settings.selected_sound_pack)
        sample_rate = self.sink.sample_rate
        return self._cache.get_or_create(
            (kind.value, pack.id),
            lambda: self._generator.synthesize(kind, pack, sample_rate),
        )

    async def play_sound(self, kind: Union[SoundEffectKind, str], volume: float = 1.0) -> None:
        """
        Play one effect at ui_volume * volume (each clamped to [0, 1]).
        Disabled categories are silent no-ops. Resolves when the sound ends.
        """
        kind = SoundEffectKind.parse(kind)
        if not self.is_enabled(kind):
            logger.debug("Skipping %s: disabled by settings", kind.value)
            return

        buffer = self.get_buffer(kind)
        ensure_running(self.sink)
        gain_value = clamp01(self._settings.ui_volume) * clamp01(volume)

        source = self.sink.create_source(buffer)
        gain = self.sink.create_gain(gain_value)
        logger.debug("Playing %s at gain %.2f", kind.value, gain_value)
        await play_until_ended(self.sink, source, [gain])

    async def play_easter_egg(self, keyword: str) -> None:
        """Three notification beeps, 200 ms apart, for the magic keyword."""
        if EASTER_EGG_KEYWORD not in (keyword or "").lower():
            logger.debug("No easter egg for %r", keyword)
            return
        logger.info("Easter egg triggered")

        async def _beep(delay: float, volume: float) -> None:
            if delay:
                await asyncio.sleep(delay)
            await self.play_sound(SoundEffectKind.Notification, volume)

        await asyncio.gather(*(_beep(delay, volume) for delay, volume in EASTER_EGG_BEEPS))

    # ------------------------------------------------------------------
    # Ambience
    # ------------------------------------------------------------------

    @property
    def ambience_playing(self) -> bool:
        return self._ambience_source is not None

    async def start_ambience(self) -> None:
        """Loop the ambience bed. No-op if disabled or already playing."""
        if not self._settings.ambience_enabled or self._ambience_source is not None:
            return

        pack = get_sound_pack(self._settings.selected_sound_pack)
        sample_rate = self.sink.sample_rate
        buffer = self._cache.get_or_create(
            (AMBIENCE_KEY, pack.id),
            lambda: self._generator.synthesize_ambience(pack, sample_rate, self._ambience_duration_s),
        )
        ensure_running(self.sink)

        source = self.sink.create_source(buffer, loop=True)
        gain = self.sink.create_gain(clamp01(self._settings.ambience_volume))
        try:
            chain(self.sink, source, gain)
            self.sink.start(source)
        except SinkError:
            self.sink.disconnect(source)
            self.sink.disconnect(gain)
            raise
        self._ambience_source, self._ambience_gain = source, gain
        logger.info("Ambience started (pack=%s)", pack.id)

    def stop_ambience(self) -> None:
        """Stop and release the ambience nodes. No-op if not playing."""
        if self._ambience_source is None:
            return
        self.sink.stop(self._ambience_source)
        self.sink.disconnect(self._ambience_source)
        self.sink.disconnect(self._ambience_gain)
        self._ambience_source = self._ambience_gain = None
        logger.info("Ambience stopped")

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> SoundSettings:
        return dataclasses.replace(self._settings)

    async def update_settings(self, partial: Mapping[str, Any]) -> SoundSettings:
        """
        Merge a partial update. Toggling ambience starts/stops it; a new
        ambience volume applies to the playing loop immediately. A pack change
        takes effect on the next synthesis (cache is keyed by pack).
        """
        previous = self._settings
        self._settings = previous.merged(partial)

        if self._settings.ambience_enabled and not previous.ambience_enabled:
            await self.start_ambience()
        elif previous.ambience_enabled and not self._settings.ambience_enabled:
            self.stop_ambience()
        elif self._ambience_source is not None and self._settings.selected_sound_pack != previous.selected_sound_pack:
            self.stop_ambience()
            await self.start_ambience()

        if self._ambience_gain is not None:
            self._ambience_gain.gain = clamp01(self._settings.ambience_volume)
        return self.get_settings()

    def dispose(self) -> None:
        self.stop_ambience()
        self._cache.clear()
        logger.info("Sound effects disposed")
