from dataclasses import dataclass
from typing import List

import torch


@dataclass(frozen=True)
class SampleBuffer:
    """
    Multi-channel float audio. samples has shape (channels, frames), float32.
    Treated as immutable: transforms return a new buffer via with_samples().
    """
    samples: torch.Tensor
    sample_rate: int

    def __post_init__(self):
        samples = self.samples
        if samples.dim() == 1:
            samples = samples.unsqueeze(0)
        if samples.dim() != 2:
            raise ValueError(f"samples must be (channels, frames), got shape {tuple(samples.shape)}")
        if samples.dtype != torch.float32:
            samples = samples.to(torch.float32)
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def empty(cls, channels: int = 1, sample_rate: int = 24000) -> "SampleBuffer":
        return cls(torch.zeros(channels, 0), sample_rate)

    @classmethod
    def mono(cls, samples: torch.Tensor, sample_rate: int) -> "SampleBuffer":
        return cls(samples.reshape(1, -1), sample_rate)

    @property
    def num_channels(self) -> int:
        return self.samples.shape[0]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[-1]

    @property
    def duration_s(self) -> float:
        return self.frame_count / self.sample_rate

    @property
    def channels(self) -> List[torch.Tensor]:
        return [self.samples[c] for c in range(self.num_channels)]

    def channel(self, index: int) -> torch.Tensor:
        return self.samples[index]

    def with_samples(self, samples: torch.Tensor, sample_rate: int = None) -> "SampleBuffer":
        """New buffer sharing nothing mutable with this one."""
        rate = self.sample_rate if sample_rate is None else sample_rate
        return SampleBuffer(samples.clone(), rate)

    def clamped(self) -> "SampleBuffer":
        return SampleBuffer(torch.clamp(self.samples, -1.0, 1.0), self.sample_rate)
