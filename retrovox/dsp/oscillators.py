"""
Oscillator generators with phase reset on trigger.
Every note/effect starts at phase 0 so cached and re-synthesized buffers match.
"""

from typing import Optional, Union

import torch
import numpy as np

from retrovox.dsp.noise import Noise

Frequency = Union[float, torch.Tensor]

WAVEFORMS = ("sine", "square", "triangle", "saw", "noise")


def time_axis(duration: float, sample_rate: int) -> torch.Tensor:
    """Sample times t[i] = i / sample_rate for int(duration * sample_rate) samples."""
    n = max(0, int(duration * sample_rate))
    return torch.arange(n, dtype=torch.float32) / sample_rate


class Oscillator:
    @staticmethod
    def sine(frequency: Frequency, duration: float, sample_rate: int, phase: float = 0.0) -> torch.Tensor:
        """
        Generates a sine wave starting at phase 0.

        Args:
            frequency: Frequency (Hz) - scalar, or tensor (one value per sample) for sweeps
            duration: Duration in seconds
            sample_rate: Sample rate
            phase: Initial phase offset (radians)
        """
        t = time_axis(duration, sample_rate)
        return torch.sin(2 * np.pi * frequency * t + phase)

    @staticmethod
    def triangle(frequency: Frequency, duration: float, sample_rate: int, phase: float = 0.0) -> torch.Tensor:
        """Generates a triangle wave starting at its trough."""
        t = time_axis(duration, sample_rate)
        # 2 * abs(2 * (t * freq - floor(t * freq + 0.5))) - 1
        x = frequency * t + phase / (2 * np.pi)
        return 2 * torch.abs(2 * (x - torch.floor(x + 0.5))) - 1

    @staticmethod
    def saw(frequency: Frequency, duration: float, sample_rate: int, phase: float = 0.0) -> torch.Tensor:
        """Generates a sawtooth wave."""
        t = time_axis(duration, sample_rate)
        x = frequency * t + phase / (2 * np.pi)
        return 2 * (x - torch.floor(x + 0.5))

    @staticmethod
    def square(frequency: Frequency, duration: float, sample_rate: int, phase: float = 0.0) -> torch.Tensor:
        """Generates a square wave (PC-speaker style, +/-1)."""
        t = time_axis(duration, sample_rate)
        wave = torch.sign(torch.sin(2 * np.pi * frequency * t + phase))
        # sign(0) is 0 at the phase-reset sample; start high like a speaker cone push
        wave[wave == 0] = 1.0
        return wave

    @staticmethod
    def generate(
        waveform: str,
        frequency: Frequency,
        duration: float,
        sample_rate: int,
        generator: Optional[torch.Generator] = None,
    ) -> torch.Tensor:
        """Dispatch by waveform name. 'noise' ignores frequency."""
        if waveform == "sine":
            return Oscillator.sine(frequency, duration, sample_rate)
        if waveform == "square":
            return Oscillator.square(frequency, duration, sample_rate)
        if waveform == "triangle":
            return Oscillator.triangle(frequency, duration, sample_rate)
        if waveform == "saw":
            return Oscillator.saw(frequency, duration, sample_rate)
        if waveform == "noise":
            return Noise.uniform(duration, sample_rate, generator=generator)
        raise ValueError(f"Unknown waveform: {waveform!r} (expected one of {WAVEFORMS})")
