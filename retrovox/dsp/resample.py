"""
Primitive rate conversion: linear interpolation only, no polyphase/sinc
filtering, like the DACs being emulated. Callers low-pass first.
"""
import math

import torch


def resampled_length(frames: int, source_rate: int, target_rate: int) -> int:
    return int(math.ceil(frames * target_rate / source_rate))


def linear_positions(count: int, step: float) -> torch.Tensor:
    """Fractional read positions 0, step, 2*step, ... (float64 to keep long buffers exact)."""
    return torch.arange(count, dtype=torch.float64) * step


def read_linear(samples: torch.Tensor, positions: torch.Tensor, loop: bool = False) -> torch.Tensor:
    """
    Read (channels, frames) at fractional positions with linear interpolation.
    y = x[floor] * (1 - frac) + x[floor + 1] * frac
    Positions past the end read as silence unless loop is set.
    """
    channels, n = samples.shape
    if n == 0 or positions.numel() == 0:
        return torch.zeros(channels, positions.numel())

    if loop:
        positions = torch.remainder(positions, n)
    idx_floor = torch.floor(positions).long()
    frac = (positions - idx_floor).to(torch.float32)

    if loop:
        idx_ceil = (idx_floor + 1) % n
        valid = torch.ones_like(idx_floor, dtype=torch.bool)
    else:
        valid = idx_floor < n
        # last frame holds; beyond the end is silence
        idx_ceil = torch.clamp(idx_floor + 1, max=n - 1)
    safe_floor = torch.clamp(idx_floor, 0, n - 1)

    out = samples[:, safe_floor] * (1.0 - frac) + samples[:, idx_ceil] * frac
    return out * valid.to(out.dtype)


def resample_linear(samples: torch.Tensor, source_rate: int, target_rate: int) -> torch.Tensor:
    """
    Resample (channels, frames) to target_rate.
    New frame count = ceil(frames * target / source).
    """
    if source_rate == target_rate:
        return samples.clone()
    n_out = resampled_length(samples.shape[-1], source_rate, target_rate)
    positions = linear_positions(n_out, source_rate / target_rate)
    # ceil() can ask for a position a hair past the last frame; hold it
    positions = torch.clamp(positions, max=max(0, samples.shape[-1] - 1))
    return read_linear(samples, positions)
