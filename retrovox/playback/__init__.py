"""
Audio sink contract, offline renderer, and the live bit-crush playback path.
"""
from retrovox.playback.effector import PlaybackEffector, play, play_until_ended, play_with_quality
from retrovox.playback.offline import OfflineSink
from retrovox.playback.sink import (
    STATE_CLOSED,
    STATE_RUNNING,
    STATE_SUSPENDED,
    AudioSink,
    chain,
    ensure_running,
)

__all__ = [
    "AudioSink",
    "OfflineSink",
    "PlaybackEffector",
    "STATE_CLOSED",
    "STATE_RUNNING",
    "STATE_SUSPENDED",
    "chain",
    "ensure_running",
    "play",
    "play_until_ended",
    "play_with_quality",
]
