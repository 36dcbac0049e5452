"""
Tests for retrovox/qc: metrics and pass/fail checks on processed audio.
Run from project root: python -m pytest tests/test_qc.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import torch

from retrovox.core.types import SampleBuffer
from retrovox.dsp.oscillators import Oscillator
from retrovox.qc import analyze, band_energy_ratio, distinct_levels, dominant_frequency, peak_dbfs, rms
from retrovox.vintage import get_preset_config, process


def _sine(freq=440.0, sr=24000, seconds=1.0, amp=0.5) -> SampleBuffer:
    return SampleBuffer.mono(amp * Oscillator.sine(freq, seconds, sr), sr)


def test_processed_authentic_passes():
    config = get_preset_config("authentic")
    out = process(_sine(), config)
    result = analyze(out, config)
    assert result["status"] == "PASS", result
    assert result["level"] == "authentic"
    assert result["metrics"]["distinct_levels"] <= 256
    assert result["metrics"]["out_of_band_ratio"] < 0.25


def test_too_many_levels_fails():
    result = analyze(_sine(sr=11025), "authentic")
    assert result["status"] == "FAIL"
    assert any("distinct levels" in f for f in result["failures"])


def test_wrong_rate_fails():
    config = get_preset_config("authentic")
    out = process(_sine(), config)
    result = analyze(SampleBuffer(out.samples, 24000), config)
    assert any("Sample rate" in f for f in result["failures"])


def test_modern_keeps_input_rate():
    buffer = _sine(sr=44100, seconds=0.2)
    result = analyze(process(buffer, get_preset_config("modern")), "modern")
    assert result["status"] == "PASS"


def test_clipping_fails():
    buffer = SampleBuffer(torch.tensor([[0.0, 1.5, -0.2]]), 24000)
    result = analyze(buffer)
    assert result["status"] == "FAIL"
    assert result["level"] == "default"


def test_silence_warns():
    result = analyze(SampleBuffer(torch.zeros(1, 1000), 24000))
    assert result["status"] == "WARN"
    assert result["failures"] == []


def test_metrics():
    buffer = _sine(1000, sr=8000, amp=0.5)
    assert dominant_frequency(buffer, 8000) == pytest.approx(1000.0, abs=2.0)
    assert rms(buffer) == pytest.approx(0.5 / 2 ** 0.5, rel=1e-3)
    assert peak_dbfs(buffer) == pytest.approx(-6.02, abs=0.05)
    assert distinct_levels(SampleBuffer(torch.tensor([[0.0, 0.5, 0.5, -0.5]]), 8000)) == 3


def test_band_energy_ratio_sees_high_tone():
    sr = 22050
    low = _sine(1000, sr=sr).samples
    high = _sine(9000, sr=sr).samples
    assert band_energy_ratio(low, sr, 5000, 11025, 300, 5000) < 0.01
    assert band_energy_ratio(high, sr, 5000, 11025, 300, 5000) > 10.0
