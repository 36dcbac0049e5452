"""
Tests for retrovox/dsp/mixer and postchain: layer gain/mute, stems, padding,
boundary fades and safety clamp.
Run from project root: python -m pytest tests/test_mixer.py -v
Or: python tests/test_mixer.py
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch
from retrovox.dsp.mixer import LayerSpec, LayerMixer
from retrovox.dsp.postchain import PostChain


# -----------------------------------------------------------------------------
# Gain / mute
# -----------------------------------------------------------------------------

def test_unity_gain_unchanged():
    mixer = LayerMixer()
    sig = torch.ones(100)
    mixer.add("a", sig)
    master, stems = mixer.mix()
    assert master.shape == (100,)
    torch.testing.assert_close(master, sig)


def test_linear_gain_scales_layer():
    mixer = LayerMixer()
    mixer.add("tone", torch.ones(100), gain=0.7)
    mixer.add("noise", torch.ones(100), gain=0.3)
    master, _ = mixer.mix()
    torch.testing.assert_close(master, torch.ones(100))


def test_mute_zeroes_layer():
    mixer = LayerMixer()
    mixer.add("a", torch.ones(100), mute=True)
    mixer.add("b", torch.ones(100) * 0.5)
    master, _ = mixer.mix()
    torch.testing.assert_close(master, torch.ones(100) * 0.5)


def test_shorter_layers_are_zero_padded():
    mixer = LayerMixer()
    mixer.add("long", torch.ones(100))
    mixer.add("short", torch.ones(40))
    master, _ = mixer.mix()
    assert master.shape == (100,)
    assert float(master[0]) == 2.0
    assert float(master[-1]) == 1.0


def test_empty_mixer_gives_empty_master():
    master, stems = LayerMixer().mix()
    assert master.shape == (0,)
    assert stems == {}


# -----------------------------------------------------------------------------
# Optional stems
# -----------------------------------------------------------------------------

def test_stems_returned_on_request():
    mixer = LayerMixer()
    mixer.add("layer_a", torch.ones(100))
    mixer.add("layer_b", torch.ones(100) * 2.0)
    master, stems = mixer.mix(stems=True)
    assert set(stems) == {"layer_a", "layer_b"}
    torch.testing.assert_close(master, stems["layer_a"] + stems["layer_b"])


def test_no_stems_by_default():
    mixer = LayerMixer()
    mixer.add("a", torch.ones(50))
    _, stems = mixer.mix()
    assert stems == {}
    assert len(mixer) == 1


def test_layer_spec_defaults():
    spec = LayerSpec("hum")
    assert spec.gain == 1.0
    assert spec.mute is False


# -----------------------------------------------------------------------------
# PostChain
# -----------------------------------------------------------------------------

def test_postchain_fades_and_clamps():
    sr = 44100
    out = PostChain.process(torch.ones(4410) * 1.5, sr)
    assert float(out[0]) == 0.0
    assert float(out[-1]) == 0.0
    assert float(out.max()) <= 1.0


def test_postchain_loopable_skips_fades():
    out = PostChain.process(torch.ones(1000) * 0.5, 44100, loopable=True)
    torch.testing.assert_close(out, torch.ones(1000) * 0.5)


if __name__ == "__main__":
    test_unity_gain_unchanged()
    test_linear_gain_scales_layer()
    test_mute_zeroes_layer()
    test_shorter_layers_are_zero_padded()
    test_empty_mixer_gives_empty_master()
    test_stems_returned_on_request()
    test_no_stems_by_default()
    test_layer_spec_defaults()
    test_postchain_fades_and_clamps()
    test_postchain_loopable_skips_fades()
    print("All mixer tests passed.")
