"""
OfflineSink: an AudioSink that renders its graph into an in-memory tape.
Used as the injectable fake in tests and as the renderer behind the service
and CLI. Time only moves when render() is called.
"""
import itertools
import math
from typing import Callable, Dict, List, Optional

import torch

from retrovox.config import BLOCK_SIZE, SAMPLE_RATE
from retrovox.core.errors import SinkError
from retrovox.core.types import SampleBuffer
from retrovox.dsp.quantize import iter_blocks
from retrovox.dsp.resample import linear_positions, read_linear
from retrovox.playback.sink import (
    STATE_CLOSED,
    STATE_RUNNING,
    STATE_SUSPENDED,
    AudioNode,
    BlockFn,
    DestinationNode,
    GainNode,
    ProcessorNode,
    SourceNode,
)


class OfflineSink:
    def __init__(self, sample_rate: int = SAMPLE_RATE, channels: int = 1, state: str = STATE_SUSPENDED):
        self.sample_rate = int(sample_rate)
        self.channels = channels
        self._state = state
        self._ids = itertools.count()
        self.destination = DestinationNode(next(self._ids))
        self._nodes: Dict[int, AudioNode] = {}
        self._edges: Dict[int, AudioNode] = {}
        self._active: List[SourceNode] = []
        self._callbacks: Dict[int, List[Callable[[], None]]] = {}
        self._tape: List[torch.Tensor] = []
        self._frame = 0
        self.resume_count = 0

    # ------------------------------------------------------------------
    # Context state
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def current_time(self) -> float:
        return self._frame / self.sample_rate

    def _check_open(self) -> None:
        if self._state == STATE_CLOSED:
            raise SinkError("Audio sink is closed")

    def resume(self) -> None:
        self._check_open()
        self._state = STATE_RUNNING
        self.resume_count += 1

    def suspend(self) -> None:
        self._check_open()
        self._state = STATE_SUSPENDED

    def close(self) -> None:
        if self._state == STATE_CLOSED:
            return
        for source in list(self._active):
            self.stop(source)
        self._nodes.clear()
        self._edges.clear()
        self._state = STATE_CLOSED

    # ------------------------------------------------------------------
    # Graph construction
    # ------------------------------------------------------------------

    def _register(self, node: AudioNode) -> AudioNode:
        self._nodes[node.node_id] = node
        return node

    def create_buffer(self, channels: int, frames: int, sample_rate: int) -> SampleBuffer:
        self._check_open()
        return SampleBuffer(torch.zeros(channels, frames), sample_rate)

    def create_source(self, buffer: SampleBuffer, playback_rate: float = 1.0, loop: bool = False) -> SourceNode:
        self._check_open()
        if playback_rate <= 0:
            raise SinkError(f"playback_rate must be positive, got {playback_rate}")
        return self._register(SourceNode(next(self._ids), buffer, playback_rate, loop))

    def create_gain(self, gain: float = 1.0) -> GainNode:
        self._check_open()
        return self._register(GainNode(next(self._ids), gain))

    def create_processor(self, process: BlockFn, block_size: int = BLOCK_SIZE) -> ProcessorNode:
        self._check_open()
        return self._register(ProcessorNode(next(self._ids), process, block_size))

    def connect(self, a: AudioNode, b: AudioNode) -> AudioNode:
        self._check_open()
        if a.node_id not in self._nodes:
            raise SinkError(f"Cannot connect released node {a!r}")
        if b is not self.destination and b.node_id not in self._nodes:
            raise SinkError(f"Cannot connect to released node {b!r}")
        self._edges[a.node_id] = b
        return b

    def disconnect(self, node: AudioNode) -> None:
        """Drop the node's edges (both directions) and release it. Idempotent."""
        if node is self.destination:
            return
        self._edges.pop(node.node_id, None)
        for src_id in [k for k, v in self._edges.items() if v is node]:
            del self._edges[src_id]
        self._nodes.pop(node.node_id, None)

    # ------------------------------------------------------------------
    # Source lifecycle
    # ------------------------------------------------------------------

    def start(self, source: SourceNode, when: float = 0.0) -> None:
        self._check_open()
        if source.started:
            raise SinkError(f"{source!r} was already started")
        source.started = True
        source.start_frame = self._frame + max(0, int(round(when * self.sample_rate)))
        self._active.append(source)

    def stop(self, source: SourceNode) -> None:
        if source.started and not source.ended:
            self._finish(source)

    def on_ended(self, source: SourceNode, callback: Callable[[], None]) -> None:
        if source.ended:
            callback()
            return
        self._callbacks.setdefault(source.node_id, []).append(callback)

    def _finish(self, source: SourceNode) -> None:
        source.ended = True
        if source in self._active:
            self._active.remove(source)
        for callback in self._callbacks.pop(source.node_id, []):
            callback()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _route(self, source: SourceNode, audio: torch.Tensor) -> Optional[torch.Tensor]:
        """Push audio along the source's path. None if it never reaches the destination."""
        node = self._edges.get(source.node_id)
        seen = set()
        while node is not self.destination:
            if node is None or node.node_id in seen:
                return None
            seen.add(node.node_id)
            if isinstance(node, GainNode):
                audio = audio * node.gain
            elif isinstance(node, ProcessorNode):
                audio = torch.cat([node.process(block) for block in iter_blocks(audio, node.block_size)], dim=-1)
            node = self._edges.get(node.node_id)
        return audio

    def _match_channels(self, audio: torch.Tensor) -> torch.Tensor:
        if audio.shape[0] == self.channels:
            return audio
        if audio.shape[0] == 1:
            return audio.expand(self.channels, -1)
        if self.channels == 1:
            return audio.mean(dim=0, keepdim=True)
        return audio[: self.channels]

    def render(self, seconds: float) -> SampleBuffer:
        """
        Render the next `seconds` of output. Sources that finish inside the
        span fire their on_ended callbacks after it is mixed.
        While suspended nothing advances and silence is returned.
        """
        self._check_open()
        n = max(0, int(round(seconds * self.sample_rate)))
        out = torch.zeros(self.channels, n)
        if self._state != STATE_RUNNING:
            return SampleBuffer(out, self.sample_rate)

        finished: List[SourceNode] = []
        for source in list(self._active):
            offset = max(0, source.start_frame - self._frame)
            if offset >= n:
                continue
            count = n - offset
            src = source.buffer
            step = source.playback_rate * src.sample_rate / self.sample_rate

            if not source.loop:
                remaining = max(0, math.ceil((src.frame_count - source.position) / step))
                if remaining <= count:
                    count = remaining
                    finished.append(source)
            if count == 0:
                continue

            positions = source.position + linear_positions(count, step)
            audio = read_linear(src.samples, positions, loop=source.loop)
            source.position += count * step
            if source.loop and src.frame_count:
                source.position %= src.frame_count

            routed = self._route(source, audio)
            if routed is not None:
                out[:, offset:offset + count] += self._match_channels(routed)

        self._frame += n
        self._tape.append(out)
        for source in finished:
            self._finish(source)
        return SampleBuffer(out, self.sample_rate)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def tape(self) -> SampleBuffer:
        if not self._tape:
            return SampleBuffer(torch.zeros(self.channels, 0), self.sample_rate)
        return SampleBuffer(torch.cat(self._tape, dim=-1), self.sample_rate)

    def active_sources(self) -> List[SourceNode]:
        return list(self._active)

    def node_count(self) -> int:
        """Live (unreleased) nodes, excluding the destination."""
        return len(self._nodes)
