"""
Local dynamic-range flattening ("prosody reduction").
Pulls each sample's short-window loudness toward a fraction of the global RMS,
so intonation and volume swings shrink without hard limiting.
"""
import torch

PROSODY_WINDOW_S = 0.05


def local_rms(samples: torch.Tensor, window: int) -> torch.Tensor:
    """
    RMS over [i - window, i + window) for every sample i, per channel.
    Prefix sums keep it O(n) regardless of window size.
    """
    channels, n = samples.shape
    if n == 0:
        return samples.clone()
    sq = samples.to(torch.float64) ** 2
    csum = torch.cat([torch.zeros(channels, 1, dtype=torch.float64), torch.cumsum(sq, dim=-1)], dim=-1)

    idx = torch.arange(n)
    start = torch.clamp(idx - window, min=0)
    end = torch.clamp(idx + window, max=n)
    count = (end - start).clamp(min=1).to(torch.float64)
    energy = (csum[:, end] - csum[:, start]).clamp(min=0.0)
    return torch.sqrt(energy / count).to(torch.float32)


def reduce_prosody(samples: torch.Tensor, sample_rate: int, volume_variance_reduction: float) -> torch.Tensor:
    """
    target = global_rms * (1 - vvr * 0.5)
    gain   = (target / local) * cf + (1 - cf)   with cf = 1 - vvr   (gain = 1 where local == 0)
    Output is clamped to [-1, 1].
    """
    if samples.shape[-1] == 0:
        return samples.clone()
    window = int(sample_rate * PROSODY_WINDOW_S)

    global_rms = torch.sqrt(torch.mean(samples.to(torch.float64) ** 2, dim=-1, keepdim=True)).to(torch.float32)
    target = global_rms * (1.0 - volume_variance_reduction * 0.5)
    local = local_rms(samples, window)

    compression = 1.0 - volume_variance_reduction
    safe_local = torch.where(local > 0, local, torch.ones_like(local))
    gain = torch.where(
        local > 0,
        (target / safe_local) * compression + (1.0 - compression),
        torch.ones_like(local),
    )
    return torch.clamp(samples * gain, -1.0, 1.0)
