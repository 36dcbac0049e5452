"""
Vintage degradation pipeline: modern TTS audio -> 1991 Sound Blaster speech.

Stage order is fixed; the low-pass must run before the rate drops:
    1. prosody reduction
    2. anti-alias low-pass      (only when the rate drops)
    3. linear resample          (only when the rate drops)
    4. quantize                 (levels < 65536)
    5. band-pass                (low > 0 or high < 20 kHz)
    6. artifact injection       (inject_artifacts; the only stochastic stage)
    7. DAC output re-quantize   (levels < 65536)
Modern returns the input untouched.

Stage 7 is an addition to the classic six-stage chain. Artifact injection
leaves samples off the quantization grid; re-quantizing puts them back so the
output never holds more than `quantization_levels` values, at the cost of
Ultra sounding slightly different from a six-stage render.
"""
import logging
from typing import Optional

import torch

from retrovox.core.types import SampleBuffer
from retrovox.dsp.dynamics import reduce_prosody
from retrovox.dsp.filters import Filter
from retrovox.dsp.quantize import quantize
from retrovox.dsp.resample import resample_linear
from retrovox.vintage.presets import AuthenticityLevel, ProcessingConfig

logger = logging.getLogger(__name__)


def inject_artifacts(
    samples: torch.Tensor,
    aliasing_amount: float,
    pre_echo_amount: float,
    rng: torch.Generator,
) -> torch.Tensor:
    """
    Pre-echo (DAC reconstruction smear) from the previous *input* sample, then
    signal-correlated noise standing in for digital aliasing. Clamped.
    """
    out = samples.clone()
    if pre_echo_amount > 0 and samples.shape[-1] > 1:
        out[..., 1:] = out[..., 1:] + samples[..., :-1] * (pre_echo_amount * 0.5)
    if aliasing_amount > 0:
        u = torch.rand(out.shape, generator=rng)
        out = out + (u - 0.5) * torch.abs(out) * aliasing_amount
    return torch.clamp(out, -1.0, 1.0)


def _default_rng() -> torch.Generator:
    rng = torch.Generator()
    rng.seed()
    return rng


def process(
    buffer: SampleBuffer,
    config: ProcessingConfig,
    rng: Optional[torch.Generator] = None,
) -> SampleBuffer:
    """
    Run the vintage pipeline. Pure: returns a new buffer, never mutates input.
    Pass a seeded torch.Generator for reproducible artifact injection.
    """
    if config.level == AuthenticityLevel.Modern or buffer.frame_count == 0:
        return buffer.with_samples(buffer.samples)

    x = buffer.samples
    rate = buffer.sample_rate

    # 1. Prosody reduction
    if config.prosody_reduction > 0:
        x = reduce_prosody(x, rate, config.volume_variance_reduction)

    # 2-3. Anti-alias then downsample
    if config.target_sample_rate < rate:
        x = Filter.anti_alias(x, rate, config.target_sample_rate, config.high_cutoff)
        x = resample_linear(x, rate, config.target_sample_rate)
        rate = config.target_sample_rate

    # 4. Quantize
    if config.quantizes:
        x = quantize(x, config.quantization_levels)

    # 5. Band-pass (period hardware frequency response)
    if config.band_limited:
        x = Filter.bandpass(x, rate, config.low_cutoff, config.high_cutoff)

    # 6. Artifacts
    if config.inject_artifacts:
        x = inject_artifacts(
            x,
            config.aliasing_amount,
            config.pre_echo_amount,
            rng if rng is not None else _default_rng(),
        )

    # 7. The card plays back at its own bit depth
    if config.quantizes:
        x = quantize(x, config.quantization_levels)

    logger.debug(
        "vintage %s: %d frames @ %d Hz -> %d frames @ %d Hz",
        config.level.value, buffer.frame_count, buffer.sample_rate, x.shape[-1], rate,
    )
    return SampleBuffer(torch.clamp(x, -1.0, 1.0), rate)


class VintageProcessor:
    """
    Convenience wrapper binding a config (and optionally a generator).
    Holds no audio state; process() is safe to call from worker threads
    with independent buffers.
    """

    def __init__(self, config: ProcessingConfig, rng: Optional[torch.Generator] = None):
        self.config = config
        self.rng = rng

    def process(self, buffer: SampleBuffer, rng: Optional[torch.Generator] = None) -> SampleBuffer:
        return process(buffer, self.config, rng if rng is not None else self.rng)
