"""
Live TTS playback path: streaming bit-crusher + sink-side playback rate.

source(playback_rate) -> bit-crusher processor (2048-frame blocks) -> destination
bit_levels == 0 bypasses the crusher entirely.
playback_rate is a time scale applied by the sink (pitch and duration change
together), not a resample. The default 1.1 gives the quick, slightly raised
voice of period speech engines.
"""
import asyncio
import logging
from typing import Sequence

from retrovox.config import (
    BLOCK_SIZE,
    DEFAULT_BIT_LEVELS,
    DEFAULT_PLAYBACK_RATE,
    get_playback_quality,
)
from retrovox.core.types import SampleBuffer
from retrovox.dsp.quantize import BitCrusher
from retrovox.playback.sink import AudioNode, AudioSink, SourceNode, chain, ensure_running

logger = logging.getLogger(__name__)


async def play_until_ended(sink: AudioSink, source: SourceNode, nodes: Sequence[AudioNode] = ()) -> None:
    """
    Wire source -> nodes -> destination, start the source and wait for the sink
    to report it ended. The source and every node in `nodes` are disconnected
    when playback ends or when wiring, start or playback fails. Cancelling the
    awaiting task stops the source first.
    """
    loop = asyncio.get_running_loop()
    ended = loop.create_future()

    def _resolve() -> None:
        if not ended.done():
            ended.set_result(None)

    def _on_ended() -> None:
        # sinks may report from their own audio thread
        loop.call_soon_threadsafe(_resolve)

    sink.on_ended(source, _on_ended)
    try:
        chain(sink, source, *nodes)
        sink.start(source)
        await ended
    except asyncio.CancelledError:
        sink.stop(source)
        raise
    finally:
        sink.disconnect(source)
        for node in nodes:
            sink.disconnect(node)


async def play(
    buffer: SampleBuffer,
    sink: AudioSink,
    bit_levels: int = DEFAULT_BIT_LEVELS,
    playback_rate: float = DEFAULT_PLAYBACK_RATE,
    block_size: int = BLOCK_SIZE,
) -> None:
    """
    Play a buffer through the streaming bit-crusher. Resolves when the sink
    reports completion. A zero-frame buffer is a no-op.
    """
    if buffer.frame_count == 0:
        return
    crusher = BitCrusher(bit_levels)
    ensure_running(sink)

    source = sink.create_source(buffer, playback_rate=playback_rate)
    nodes = []
    if bit_levels > 0:
        nodes.append(sink.create_processor(crusher, block_size=block_size))

    logger.debug(
        "playback: %d frames @ %d Hz, levels=%d, rate=%.2f",
        buffer.frame_count, buffer.sample_rate, bit_levels, playback_rate,
    )
    await play_until_ended(sink, source, nodes)


async def play_with_quality(buffer: SampleBuffer, sink: AudioSink, quality_id: str) -> None:
    """play() with one of the named playback qualities (see config.PLAYBACK_QUALITIES)."""
    quality = get_playback_quality(quality_id)
    await play(buffer, sink, bit_levels=quality.bit_levels, playback_rate=quality.playback_rate)


class PlaybackEffector:
    """Binds bit-crusher levels and playback rate for repeated live playback."""

    def __init__(
        self,
        bit_levels: int = DEFAULT_BIT_LEVELS,
        playback_rate: float = DEFAULT_PLAYBACK_RATE,
        block_size: int = BLOCK_SIZE,
    ):
        BitCrusher(bit_levels)
        self.bit_levels = bit_levels
        self.playback_rate = playback_rate
        self.block_size = block_size

    @classmethod
    def from_quality(cls, quality_id: str) -> "PlaybackEffector":
        quality = get_playback_quality(quality_id)
        return cls(quality.bit_levels, quality.playback_rate)

    async def play(self, buffer: SampleBuffer, sink: AudioSink) -> None:
        await play(buffer, sink, self.bit_levels, self.playback_rate, self.block_size)
