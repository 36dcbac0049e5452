"""
Tests for retrovox/playback/effector: live bit-crushed playback through a sink.
Run from project root: python -m pytest tests/test_effector.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import asyncio
from unittest.mock import patch

import pytest
import torch

from retrovox.core.errors import ConfigError, SinkError
from retrovox.core.types import SampleBuffer
from retrovox.dsp.oscillators import Oscillator
from retrovox.playback import STATE_RUNNING, OfflineSink, PlaybackEffector, play, play_with_quality

SR = 8000


def _sine(seconds: float = 0.2) -> SampleBuffer:
    return SampleBuffer.mono(0.8 * Oscillator.sine(440, seconds, SR), SR)


def _play_and_render(coro, sink: OfflineSink, seconds: float) -> None:
    async def run():
        task = asyncio.create_task(coro)
        await asyncio.sleep(0)
        sink.render(seconds)
        await task

    asyncio.run(run())


def test_bit_crushed_playback_has_at_most_levels_values():
    sink = OfflineSink(SR)
    _play_and_render(play(_sine(), sink, bit_levels=16, playback_rate=1.0), sink, 0.25)
    tape = sink.tape()
    assert torch.unique(tape.samples).numel() <= 16
    assert float(tape.samples.abs().max()) > 0.5


def test_bypass_at_unit_rate_is_exact():
    buffer = _sine()
    sink = OfflineSink(SR)
    _play_and_render(play(buffer, sink, bit_levels=0, playback_rate=1.0), sink, 0.2)
    torch.testing.assert_close(sink.tape().samples, buffer.samples)


def test_playback_rate_shortens_output():
    sink = OfflineSink(SR)
    _play_and_render(play(_sine(0.22), sink, bit_levels=0, playback_rate=1.1), sink, 0.3)
    samples = sink.tape().samples[0]
    nonzero = torch.nonzero(samples).flatten()
    assert int(nonzero[-1]) < 1600


def test_suspended_sink_is_resumed_once():
    sink = OfflineSink(SR)
    assert sink.state != STATE_RUNNING
    _play_and_render(play(_sine(), sink), sink, 0.25)
    assert sink.state == STATE_RUNNING
    assert sink.resume_count == 1


def test_nodes_released_after_playback():
    sink = OfflineSink(SR)
    _play_and_render(play(_sine(), sink, bit_levels=64), sink, 0.25)
    assert sink.node_count() == 0
    assert sink.active_sources() == []


def test_cancellation_stops_source_and_releases_nodes():
    sink = OfflineSink(SR, state=STATE_RUNNING)

    async def run():
        task = asyncio.create_task(play(_sine(1.0), sink, bit_levels=64))
        await asyncio.sleep(0)
        sink.render(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert sink.active_sources() == []
    assert sink.node_count() == 0


def test_failed_wiring_releases_nodes():
    sink = OfflineSink(SR, state=STATE_RUNNING)
    with patch.object(sink, "connect", side_effect=SinkError("device lost")):
        with pytest.raises(SinkError):
            asyncio.run(play(_sine(), sink, bit_levels=64))
    assert sink.node_count() == 0
    assert sink.active_sources() == []


def test_failed_start_releases_nodes():
    sink = OfflineSink(SR, state=STATE_RUNNING)
    with patch.object(sink, "start", side_effect=SinkError("device lost")):
        with pytest.raises(SinkError):
            asyncio.run(play(_sine(), sink, bit_levels=16))
    assert sink.node_count() == 0


def test_zero_frame_buffer_is_a_no_op():
    sink = OfflineSink(SR)
    asyncio.run(play(SampleBuffer.empty(1, SR), sink))
    assert sink.resume_count == 0
    assert sink.node_count() == 0


def test_single_level_rejected_before_touching_sink():
    sink = OfflineSink(SR)
    with pytest.raises(ConfigError):
        asyncio.run(play(_sine(), sink, bit_levels=1))
    assert sink.node_count() == 0


def test_unknown_quality_rejected():
    sink = OfflineSink(SR)
    with pytest.raises(ConfigError):
        asyncio.run(play_with_quality(_sine(), sink, "cassette"))


def test_effector_from_quality():
    effector = PlaybackEffector.from_quality("extreme-lofi")
    assert effector.bit_levels == 16
    assert effector.playback_rate == 1.2

    sink = OfflineSink(SR)
    _play_and_render(effector.play(_sine(), sink), sink, 0.25)
    assert torch.unique(sink.tape().samples).numel() <= 16


def test_effector_rejects_bad_levels():
    with pytest.raises(ConfigError):
        PlaybackEffector(bit_levels=1)
