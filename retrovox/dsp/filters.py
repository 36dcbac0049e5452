"""
Audio filters using torchaudio biquad implementations (RBJ cookbook, the same
family a Web Audio BiquadFilterNode uses). All filters are IIR.
Inputs are (..., time) tensors; every channel is filtered independently.
"""

import torch
import torchaudio.functional as F

# Butterworth Q for a 2nd-order section (maximally flat passband)
BUTTERWORTH_Q = 0.7071


def _below_nyquist(freq: float, sample_rate: int) -> float:
    return max(1.0, min(float(freq), sample_rate / 2 - 1))


class Filter:
    @staticmethod
    def lowpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = BUTTERWORTH_Q) -> torch.Tensor:
        """Apply a LowPass Biquad filter. Cutoff is held below Nyquist."""
        if waveform.shape[-1] == 0:
            return waveform.clone()
        return F.lowpass_biquad(waveform, sample_rate, _below_nyquist(cutoff_freq, sample_rate), q)

    @staticmethod
    def highpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = BUTTERWORTH_Q) -> torch.Tensor:
        """Apply a HighPass Biquad filter. Cutoff is held below Nyquist."""
        if waveform.shape[-1] == 0:
            return waveform.clone()
        return F.highpass_biquad(waveform, sample_rate, _below_nyquist(cutoff_freq, sample_rate), q)

    @staticmethod
    def bandpass(
        waveform: torch.Tensor,
        sample_rate: int,
        low_cutoff: float,
        high_cutoff: float,
        q: float = BUTTERWORTH_Q,
    ) -> torch.Tensor:
        """
        High-pass at low_cutoff then low-pass at high_cutoff, each a biquad.
        Emulates the narrow response of period hardware (e.g. 300 Hz - 5 kHz).
        low_cutoff <= 0 skips the high-pass.
        """
        out = waveform
        if low_cutoff > 0:
            out = Filter.highpass(out, sample_rate, low_cutoff, q)
        return Filter.lowpass(out, sample_rate, high_cutoff, q)

    @staticmethod
    def anti_alias(waveform: torch.Tensor, sample_rate: int, target_rate: int, high_cutoff: float) -> torch.Tensor:
        """
        Low-pass ahead of a rate reduction: cutoff = min(0.9 * target Nyquist, high_cutoff).
        """
        cutoff = min(0.9 * target_rate / 2.0, high_cutoff)
        return Filter.lowpass(waveform, sample_rate, cutoff, BUTTERWORTH_Q)
