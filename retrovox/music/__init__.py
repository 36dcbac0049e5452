"""
Beat-scheduled procedural chiptune music.
"""
from retrovox.music.engine import MusicEngine, MusicSettings, MusicState, render_offline
from retrovox.music.scales import NoteEvent, note_frequency, notes_for_beat
from retrovox.music.scheduler import AsyncioScheduler, ManualScheduler, Scheduler, TimerHandle

__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "MusicEngine",
    "MusicSettings",
    "MusicState",
    "NoteEvent",
    "Scheduler",
    "TimerHandle",
    "note_frequency",
    "notes_for_beat",
    "render_offline",
]
