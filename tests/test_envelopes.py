"""
Unit tests for retrovox/dsp/envelopes: helpers, note envelope, ADSR.
Run from project root: python -m pytest tests/test_envelopes.py -v
Or: python tests/test_envelopes.py
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch
from retrovox.dsp.envelopes import (
    db_to_lin,
    ms_to_s,
    clamp01,
    ADSR,
    Envelope,
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def test_db_to_lin():
    assert db_to_lin(0.0) == 1.0
    assert abs(db_to_lin(-6.0) - 0.5) < 0.01
    assert abs(db_to_lin(6.0) - 2.0) < 0.01


def test_ms_to_s():
    assert ms_to_s(0) == 0.0
    assert ms_to_s(1000) == 1.0
    assert ms_to_s(50) == 0.05


def test_clamp01():
    assert clamp01(0.5) == 0.5
    assert clamp01(-0.1) == 0.0
    assert clamp01(1.5) == 1.0
    out = clamp01(torch.tensor([-0.2, 0.5, 1.2]))
    assert out.tolist() == [0.0, 0.5, 1.0]


# -----------------------------------------------------------------------------
# Note envelope: linear attack, exponential decay to the floor
# -----------------------------------------------------------------------------

def test_attack_decay_shape():
    sr = 44100
    env = Envelope.attack_decay(0.2, sr, attack_s=0.01, floor=0.01)
    n_attack = int(0.01 * sr)
    assert env.shape == (int(0.2 * sr),)
    assert float(env[0]) == 0.0
    # attack is a straight line
    assert abs(float(env[n_attack // 2]) - 0.5) < 0.01
    # decay starts at full level and lands on the floor
    assert abs(float(env[n_attack]) - 1.0) < 1e-6
    assert abs(float(env[-1]) - 0.01) < 1e-4


def test_attack_decay_is_monotonic_after_peak():
    env = Envelope.attack_decay(0.1, 24000)
    peak = int(torch.argmax(env))
    assert torch.all(env[peak + 1:] <= env[peak:-1])


def test_attack_decay_empty_duration():
    assert Envelope.attack_decay(0.0, 44100).shape == (0,)


# -----------------------------------------------------------------------------
# ADSR: length, sustain, release, no NaN/Inf
# -----------------------------------------------------------------------------

def test_adsr_correct_length():
    """Envelope length must equal int(duration_s * sample_rate)."""
    sr = 48000
    env = ADSR(sr, attack_s=0.01, decay_s=0.1, sustain_level=0.5, release_s=0.2).render(0.5)
    assert env.shape == (int(0.5 * sr),)


def test_adsr_holds_sustain_until_gate():
    sr = 10000
    env = ADSR(sr, attack_s=0.01, decay_s=0.0, sustain_level=0.7, release_s=0.05).render(0.3, gate_s=0.2)
    torch.testing.assert_close(env[200:2000], torch.full((1800,), 0.7))
    assert float(env[-1]) < 0.7 * 0.1


def test_adsr_release_approaches_zero_by_default():
    env = ADSR(44100, attack_s=0.0, decay_s=0.0, sustain_level=1.0, release_s=0.02).render(0.3)
    assert float(env[-1]) < 0.1


def test_adsr_zero_segments_no_nan_inf():
    sr = 48000
    env = ADSR(sr, attack_s=0.0, decay_s=0.0, sustain_level=1.0, release_s=0.0).render(0.1)
    assert env.shape[0] == int(0.1 * sr)
    assert not torch.isnan(env).any() and not torch.isinf(env).any()


def test_envelope_exponential_decay_length():
    env = Envelope.exponential_decay(0.5, 48000, 0.1)
    assert env.shape[0] == int(0.5 * 48000)
    assert not torch.isnan(env).any() and not torch.isinf(env).any()


if __name__ == "__main__":
    test_db_to_lin()
    test_ms_to_s()
    test_clamp01()
    test_attack_decay_shape()
    test_attack_decay_is_monotonic_after_peak()
    test_attack_decay_empty_duration()
    test_adsr_correct_length()
    test_adsr_holds_sustain_until_gate()
    test_adsr_release_approaches_zero_by_default()
    test_adsr_zero_segments_no_nan_inf()
    test_envelope_exponential_decay_length()
    print("All envelope tests passed.")
