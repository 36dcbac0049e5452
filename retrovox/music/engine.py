"""
Procedural chiptune sequencer.

A single periodic timer (60/bpm s) calls tick(), which voices the notes of the
current beat and advances the 16-beat loop. Notes are synthesized on demand
(frequency and mood vary) with the same tone primitive as the UI effects and
routed note -> voice gain (lead/bass/arp) -> master gain -> destination.
"""
import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Set, Union

from retrovox.config import SAMPLE_RATE
from retrovox.core.params import clamp_if_bounds, merge_partial
from retrovox.core.types import SampleBuffer
from retrovox.music.scales import (
    PATTERN_LENGTH,
    NoteEvent,
    beat_interval,
    notes_for_beat,
    scale_for_mood,
    tempo_bpm,
)
from retrovox.music.scheduler import ManualScheduler, Scheduler, TimerHandle
from retrovox.playback.offline import OfflineSink
from retrovox.playback.sink import STATE_RUNNING, AudioSink, GainNode, SourceNode, ensure_running
from retrovox.sfx.generator import render_tone

logger = logging.getLogger(__name__)

# music sits well under speech
MASTER_SCALE = 0.3
VOICE_GAINS: Dict[str, float] = {
    "lead": 0.4,
    "bass": 0.6,
    "arp": 0.3,
}


@dataclass
class MusicSettings:
    enabled: bool = False
    volume: float = 50  # 0-100
    mood: str = "auto"  # auto|happy|sad|neutral|tense
    tempo: str = "normal"  # slow|normal|fast

    def validate(self) -> "MusicSettings":
        scale_for_mood(self.mood)
        tempo_bpm(self.tempo)
        return self

    def merged(self, partial: Optional[Mapping[str, Any]]) -> "MusicSettings":
        return merge_partial(self, partial).validate()


@dataclass(frozen=True)
class MusicState:
    current_beat: int
    is_playing: bool
    settings: MusicSettings


def master_gain_for(volume: float) -> float:
    return clamp_if_bounds(volume, 0.0, 100.0) / 100.0 * MASTER_SCALE


class MusicEngine:
    def __init__(
        self,
        sink: AudioSink,
        scheduler: Scheduler,
        settings: Union[MusicSettings, Mapping[str, Any], None] = None,
        generator=render_tone,
    ):
        self.sink = sink
        self.scheduler = scheduler
        if settings is None or isinstance(settings, MusicSettings):
            self._settings = (settings or MusicSettings()).validate()
        else:
            self._settings = MusicSettings().merged(settings)
        self._render_tone = generator

        self._master: Optional[GainNode] = None
        self._voices: Dict[str, GainNode] = {}
        self._timer: Optional[TimerHandle] = None
        self._sounding: Set[SourceNode] = set()
        self._tick_lock = threading.Lock()

        self.current_beat = 0
        self.is_playing = False

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def _ensure_graph(self) -> None:
        if self._master is not None:
            return
        self._master = self.sink.create_gain(master_gain_for(self._settings.volume))
        self.sink.connect(self._master, self.sink.destination)
        for voice, gain in VOICE_GAINS.items():
            node = self.sink.create_gain(gain)
            self.sink.connect(node, self._master)
            self._voices[voice] = node
        logger.debug("Music graph built")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin the beat loop from beat 0. No-op while playing."""
        if self.is_playing:
            return
        ensure_running(self.sink)
        self._ensure_graph()
        self.current_beat = 0
        self.is_playing = True
        self._arm_timer()
        logger.info("Music started (%s, %d bpm)", self._settings.mood, tempo_bpm(self._settings.tempo))

    def stop(self) -> None:
        """Cancel the beat timer and cut sounding notes. No-op while stopped."""
        if not self.is_playing:
            return
        self.is_playing = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for source in list(self._sounding):
            self.sink.stop(source)
        logger.info("Music stopped")

    def _arm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self.scheduler.call_every(beat_interval(self._settings.tempo), self.tick)

    def tick(self) -> None:
        """Play the current beat, then advance. Overlapping calls are dropped."""
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Dropped overlapping beat %d", self.current_beat)
            return
        try:
            if not self.is_playing:
                return
            scale = scale_for_mood(self._settings.mood)
            for event in notes_for_beat(self.current_beat, scale):
                self._play_note(event)
            self.current_beat = (self.current_beat + 1) % PATTERN_LENGTH
        finally:
            self._tick_lock.release()

    def _play_note(self, event: NoteEvent) -> None:
        sample_rate = self.sink.sample_rate
        tone = self._render_tone(event.frequency, event.duration, event.waveform, sample_rate)
        source = self.sink.create_source(SampleBuffer.mono(tone, sample_rate))
        self.sink.connect(source, self._voices[event.voice])
        self._sounding.add(source)

        def _release() -> None:
            self._sounding.discard(source)
            self.sink.disconnect(source)

        self.sink.on_ended(source, _release)
        self.sink.start(source)

    # ------------------------------------------------------------------
    # Settings / state
    # ------------------------------------------------------------------

    def get_settings(self) -> MusicSettings:
        return dataclasses.replace(self._settings)

    @property
    def state(self) -> MusicState:
        return MusicState(self.current_beat, self.is_playing, self.get_settings())

    def update_settings(self, partial: Mapping[str, Any]) -> MusicSettings:
        """
        Merge a partial update. Volume applies at once; `enabled` starts or
        stops playback; a tempo change while playing replaces the timer.
        Mood takes effect on the next beat.
        """
        previous = self._settings
        self._settings = previous.merged(partial)

        if self._master is not None:
            self._master.gain = master_gain_for(self._settings.volume)

        if partial and "enabled" in partial:
            if self._settings.enabled and not self.is_playing:
                self.start()
            elif not self._settings.enabled and self.is_playing:
                self.stop()

        if self.is_playing and self._settings.tempo != previous.tempo:
            self._arm_timer()
            logger.debug("Tempo -> %s", self._settings.tempo)
        return self.get_settings()

    def destroy(self) -> None:
        """Stop and release the graph. Safe to call repeatedly."""
        self.stop()
        if self._master is None:
            return
        for node in self._voices.values():
            self.sink.disconnect(node)
        self.sink.disconnect(self._master)
        self._voices = {}
        self._master = None
        logger.info("Music engine destroyed")


def render_offline(
    settings: Union[MusicSettings, Mapping[str, Any], None] = None,
    beats: int = PATTERN_LENGTH,
    sample_rate: int = SAMPLE_RATE,
    tail_s: float = 0.5,
) -> SampleBuffer:
    """
    Render `beats` beats of music to a buffer, faster than real time, by
    driving the engine with a fake clock against an offline sink.
    """
    sink = OfflineSink(sample_rate, state=STATE_RUNNING)
    scheduler = ManualScheduler()
    engine = MusicEngine(sink, scheduler, settings)
    interval = beat_interval(engine.get_settings().tempo)

    engine.start()
    for _ in range(max(0, int(beats))):
        scheduler.advance(interval)
        sink.render(interval)
    # let the last notes ring out
    if tail_s > 0:
        sink.render(tail_s)
    engine.destroy()
    return sink.tape()
