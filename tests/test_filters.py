"""
Tests for the rate/band shaping DSP: biquad filters, linear resampling,
prosody reduction.
Run from project root: python -m pytest tests/test_filters.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import math

import torch

from retrovox.dsp.dynamics import local_rms, reduce_prosody
from retrovox.dsp.filters import Filter
from retrovox.dsp.oscillators import Oscillator
from retrovox.dsp.resample import read_linear, resample_linear, resampled_length


def _rms(x: torch.Tensor) -> float:
    return float(torch.sqrt(torch.mean(x ** 2)))


def _tone(freq: float, sr: int, seconds: float = 0.5, amp: float = 0.5) -> torch.Tensor:
    return (amp * Oscillator.sine(freq, seconds, sr)).unsqueeze(0)


# -----------------------------------------------------------------------------
# Band-pass
# -----------------------------------------------------------------------------

def test_bandpass_attenuates_above_high_cutoff():
    """10 kHz through a 300-5000 Hz band-pass is well below a tone at the band centre."""
    sr = 44100
    centre = math.sqrt(300 * 5000)  # ~1225 Hz
    settle = 2000
    inside = Filter.bandpass(_tone(centre, sr), sr, 300, 5000)[..., settle:]
    outside = Filter.bandpass(_tone(10000, sr), sr, 300, 5000)[..., settle:]
    assert _rms(outside) < 0.35 * _rms(inside)


def test_bandpass_attenuates_below_low_cutoff():
    sr = 44100
    settle = 4000
    inside = Filter.bandpass(_tone(1225, sr), sr, 300, 5000)[..., settle:]
    rumble = Filter.bandpass(_tone(60, sr), sr, 300, 5000)[..., settle:]
    assert _rms(rumble) < 0.1 * _rms(inside)


def test_bandpass_zero_low_cutoff_is_lowpass_only():
    sr = 44100
    x = _tone(100, sr)
    torch.testing.assert_close(Filter.bandpass(x, sr, 0, 5000), Filter.lowpass(x, sr, 5000))


def test_filters_preserve_shape_and_handle_empty():
    sr = 11025
    x = torch.zeros(2, 300)
    assert Filter.lowpass(x, sr, 20000).shape == (2, 300)  # cutoff held below Nyquist
    assert Filter.highpass(torch.zeros(1, 0), sr, 300).shape == (1, 0)


# -----------------------------------------------------------------------------
# Anti-alias + resample
# -----------------------------------------------------------------------------

def test_anti_alias_suppresses_foldback():
    """A 10 kHz tone (folds to ~1 kHz at 11.025 kHz) ends up far quieter than a real 1 kHz tone."""
    sr, target = 44100, 11025

    def downsample(x):
        return resample_linear(Filter.anti_alias(x, sr, target, 5000), sr, target)

    alias = downsample(_tone(10000, sr))[..., 500:]
    real = downsample(_tone(1000, sr))[..., 500:]
    assert _rms(alias) < 0.5 * _rms(real)


def test_resampled_length_is_ceiling():
    assert resampled_length(24000, 24000, 11025) == 11025
    assert resampled_length(441, 44100, 11025) == 111
    assert resample_linear(torch.zeros(1, 441), 44100, 11025).shape == (1, 111)


def test_exact_decimation_picks_every_nth_sample():
    x = torch.arange(8, dtype=torch.float32).unsqueeze(0)
    torch.testing.assert_close(resample_linear(x, 2, 1), torch.tensor([[0.0, 2.0, 4.0, 6.0]]))


def test_linear_interpolation_between_frames():
    x = torch.tensor([[0.0, 1.0, 3.0]])
    out = read_linear(x, torch.tensor([0.5, 1.5, 1.25], dtype=torch.float64))
    torch.testing.assert_close(out, torch.tensor([[0.5, 2.0, 1.5]]))


def test_read_linear_past_end_is_silent_unless_looping():
    x = torch.tensor([[1.0, 2.0]])
    positions = torch.tensor([2.0, 3.0], dtype=torch.float64)
    torch.testing.assert_close(read_linear(x, positions), torch.zeros(1, 2))
    torch.testing.assert_close(read_linear(x, positions, loop=True), torch.tensor([[1.0, 2.0]]))


def test_same_rate_resample_is_a_copy():
    x = torch.rand(1, 100)
    out = resample_linear(x, 24000, 24000)
    torch.testing.assert_close(out, x)
    assert out.data_ptr() != x.data_ptr()


# -----------------------------------------------------------------------------
# Prosody reduction
# -----------------------------------------------------------------------------

def test_local_rms_of_constant_is_constant():
    x = torch.full((1, 1000), 0.5)
    torch.testing.assert_close(local_rms(x, 50), torch.full((1, 1000), 0.5))


def test_prosody_on_constant_signal_matches_formula():
    vvr = 0.3
    x = torch.full((1, 2400), 0.5)
    out = reduce_prosody(x, 24000, vvr)
    target = 0.5 * (1 - vvr * 0.5)
    cf = 1 - vvr
    expected = 0.5 * ((target / 0.5) * cf + (1 - cf))
    torch.testing.assert_close(out, torch.full_like(x, expected), atol=1e-5, rtol=0)


def test_prosody_shrinks_loudness_swings():
    sr = 24000
    loud = 0.8 * Oscillator.sine(220, 0.5, sr)
    quiet = 0.1 * Oscillator.sine(220, 0.5, sr)
    x = torch.cat([loud, quiet]).unsqueeze(0)
    out = reduce_prosody(x, sr, 0.5)

    half = loud.shape[-1]
    before = _rms(x[..., :half]) / _rms(x[..., half:])
    after = _rms(out[..., 2000:half - 2000]) / _rms(out[..., half + 2000:-2000])
    assert after < before / 2


def test_prosody_leaves_silence_silent():
    x = torch.zeros(1, 1000)
    torch.testing.assert_close(reduce_prosody(x, 24000, 0.5), x)
