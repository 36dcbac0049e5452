"""
Amplitude quantization (bit-depth reduction).

Input is held to [-1, 1]; step = 2 / (levels - 1); k = round_half_up(x / step);
output clamp(k * step, -1, 1). Full scale maps to 1.0 and a full-range signal
takes exactly `levels` values (256 -> 8-bit, 65536 -> effectively lossless).
Quantizing twice is the same as quantizing once.
"""
from typing import Iterator

import torch

from retrovox.config import BLOCK_SIZE
from retrovox.core.errors import ConfigError


def quantization_step(levels: int) -> float:
    if levels < 2:
        raise ConfigError(f"Quantization needs at least 2 levels, got {levels}")
    return 2.0 / (levels - 1)


def quantize(samples: torch.Tensor, levels: int) -> torch.Tensor:
    """Map each sample to one of `levels` discrete steps in [-1, 1]."""
    quantization_step(levels)
    # x / step as x * (levels - 1) / 2 in float64 keeps full scale exactly on a half step
    half_span = (levels - 1) / 2.0
    x = torch.clamp(samples, -1.0, 1.0).double()
    k = torch.floor(x * half_span + 0.5)
    return torch.clamp(k / half_span, -1.0, 1.0).to(samples.dtype)


def iter_blocks(samples: torch.Tensor, block_size: int = BLOCK_SIZE) -> Iterator[torch.Tensor]:
    """Yield consecutive (..., <=block_size) slices along the time axis."""
    n = samples.shape[-1]
    for start in range(0, n, block_size):
        yield samples[..., start:start + block_size]


class BitCrusher:
    """
    Streaming quantizer for the live playback path: called once per block.
    levels == 0 passes blocks through untouched.
    """

    def __init__(self, levels: int):
        if levels != 0:
            quantization_step(levels)
        self.levels = levels

    def __call__(self, block: torch.Tensor) -> torch.Tensor:
        if self.levels == 0:
            return block.clone()
        return quantize(block, self.levels)


def quantize_blocks(samples: torch.Tensor, levels: int, block_size: int = BLOCK_SIZE) -> torch.Tensor:
    """Apply BitCrusher block by block; same result as quantize() on the whole signal."""
    if samples.shape[-1] == 0:
        return samples.clone()
    crusher = BitCrusher(levels)
    return torch.cat([crusher(block) for block in iter_blocks(samples, block_size)], dim=-1)
