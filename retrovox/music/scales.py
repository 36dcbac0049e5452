"""
Scales, tempi and the 16-beat chiptune pattern.
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple

from retrovox.core.errors import ConfigError

# ── Scales (semitone intervals from root) ──────────────────────────────
PENTATONIC_MAJOR: Tuple[int, ...] = (0, 2, 4, 7, 9)
NATURAL_MINOR: Tuple[int, ...] = (0, 2, 3, 5, 7, 8, 10)

# Mood -> scale
MOOD_SCALES: Dict[str, Tuple[int, ...]] = {
    "auto": PENTATONIC_MAJOR,
    "happy": PENTATONIC_MAJOR,
    "neutral": PENTATONIC_MAJOR,
    "sad": NATURAL_MINOR,
    "tense": NATURAL_MINOR,
}

TEMPO_BPM: Dict[str, int] = {
    "slow": 100,
    "normal": 120,
    "fast": 150,
}

BASE_FREQ = 261.63  # C4

BEATS_PER_BAR = 4
PATTERN_LENGTH = 16  # 4 bars

# ── Pattern ────────────────────────────────────────────────────────────
BASS_PATTERN = (0, 0, 4, 0)  # scale degree per bar
LEAD_PATTERNS = (
    (0, 2, 4, 2),
    (4, 2, 0, 1),
    (0, 4, 2, 4),
    (4, 3, 2, 0),
)
ARP_DEGREES = (0, 2, 4)

# voice: (octave, waveform, duration_s)
VOICES: Dict[str, Tuple[int, str, float]] = {
    "bass": (-1, "square", 0.3),
    "lead": (1, "square", 0.2),
    "arp": (0, "triangle", 0.1),
}


@dataclass(frozen=True)
class NoteEvent:
    voice: str
    frequency: float
    duration: float
    waveform: str


def scale_for_mood(mood: str) -> Tuple[int, ...]:
    try:
        return MOOD_SCALES[mood]
    except KeyError:
        raise ConfigError(f"Unknown mood: {mood!r} (expected one of {sorted(MOOD_SCALES)})") from None


def tempo_bpm(tempo: str) -> int:
    try:
        return TEMPO_BPM[tempo]
    except KeyError:
        raise ConfigError(f"Unknown tempo: {tempo!r} (expected one of {sorted(TEMPO_BPM)})") from None


def beat_interval(tempo: str) -> float:
    """Seconds per beat."""
    return 60.0 / tempo_bpm(tempo)


def note_frequency(note: int, octave: int = 0) -> float:
    """261.63 * 2^(note/12 + octave)."""
    return BASE_FREQ * 2.0 ** (note / 12.0 + octave)


def _event(voice: str, degree: int, scale: Tuple[int, ...]) -> NoteEvent:
    octave, waveform, duration = VOICES[voice]
    semitone = scale[degree % len(scale)]
    return NoteEvent(voice, note_frequency(semitone, octave), duration, waveform)


def notes_for_beat(current_beat: int, scale: Tuple[int, ...]) -> List[NoteEvent]:
    """
    Notes sounding on one beat of the 16-beat loop.
    bass on beats 0 and 2 of each bar, lead on every beat, arp on odd beats.
    """
    beat = current_beat % BEATS_PER_BAR
    bar = (current_beat // BEATS_PER_BAR) % len(LEAD_PATTERNS)

    events = []
    if beat % 2 == 0:
        events.append(_event("bass", BASS_PATTERN[bar], scale))
    events.append(_event("lead", LEAD_PATTERNS[bar][beat], scale))
    if beat % 2 == 1:
        events.append(_event("arp", ARP_DEGREES[(beat + bar) % len(ARP_DEGREES)], scale))
    return events
