"""
Audio sink contract and node vocabulary.

The sink (audio device/context) is a single process-wide resource owned by
the host and injected everywhere; nothing in the core creates or locates one.
Graph: source -> [gain | processor]* -> destination.
"""
from typing import Callable, Optional, Protocol

import torch

from retrovox.core.types import SampleBuffer

STATE_RUNNING = "running"
STATE_SUSPENDED = "suspended"
STATE_CLOSED = "closed"

BlockFn = Callable[[torch.Tensor], torch.Tensor]


class AudioNode:
    kind = "node"

    def __init__(self, node_id: int):
        self.node_id = node_id

    def __repr__(self) -> str:
        return f"<{type(self).__name__} #{self.node_id}>"


class DestinationNode(AudioNode):
    kind = "destination"


class SourceNode(AudioNode):
    """Plays a SampleBuffer once (or looped) at a linear time scale."""
    kind = "source"

    def __init__(self, node_id: int, buffer: SampleBuffer, playback_rate: float = 1.0, loop: bool = False):
        super().__init__(node_id)
        self.buffer = buffer
        self.playback_rate = float(playback_rate)
        self.loop = loop
        self.started = False
        self.ended = False
        self.start_frame = 0
        self.position = 0.0  # read head, in buffer frames


class GainNode(AudioNode):
    """Linear gain; `gain` may be changed while audio flows through it."""
    kind = "gain"

    def __init__(self, node_id: int, gain: float = 1.0):
        super().__init__(node_id)
        self.gain = float(gain)


class ProcessorNode(AudioNode):
    """Runs a block function over (channels, <=block_size) chunks."""
    kind = "processor"

    def __init__(self, node_id: int, process: BlockFn, block_size: int):
        super().__init__(node_id)
        self.process = process
        self.block_size = block_size


class AudioSink(Protocol):
    """
    Minimal output contract. Implementations raise SinkError on device or
    context failure; the core reports it once and never retries.
    """
    sample_rate: int
    destination: AudioNode

    @property
    def state(self) -> str: ...

    def resume(self) -> None: ...

    def suspend(self) -> None: ...

    def create_buffer(self, channels: int, frames: int, sample_rate: int) -> SampleBuffer: ...

    def create_source(self, buffer: SampleBuffer, playback_rate: float = 1.0, loop: bool = False) -> SourceNode: ...

    def create_gain(self, gain: float = 1.0) -> GainNode: ...

    def create_processor(self, process: BlockFn, block_size: int = ...) -> ProcessorNode: ...

    def connect(self, a: AudioNode, b: AudioNode) -> AudioNode: ...

    def disconnect(self, node: AudioNode) -> None: ...

    def start(self, source: SourceNode, when: float = 0.0) -> None: ...

    def stop(self, source: SourceNode) -> None: ...

    def on_ended(self, source: SourceNode, callback: Callable[[], None]) -> None: ...


def ensure_running(sink: AudioSink) -> None:
    """A suspended (autoplay-locked) sink is resumed transparently; not an error."""
    if sink.state == STATE_SUSPENDED:
        sink.resume()


def chain(sink: AudioSink, *nodes: AudioNode, destination: Optional[AudioNode] = None) -> None:
    """connect(n0, n1), connect(n1, n2), ... and finally into destination."""
    path = list(nodes) + [destination if destination is not None else sink.destination]
    for a, b in zip(path, path[1:]):
        sink.connect(a, b)
