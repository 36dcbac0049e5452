"""
Tests for retrovox/dsp/quantize: grid size, bounds, idempotence, streaming blocks.
Run from project root: python -m pytest tests/test_quantize.py -v
"""
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import torch

from retrovox.core.errors import ConfigError
from retrovox.dsp.quantize import BitCrusher, iter_blocks, quantization_step, quantize, quantize_blocks


def _ramp(n: int = 20000) -> torch.Tensor:
    return torch.linspace(-1.0, 1.0, n).unsqueeze(0)


@pytest.mark.parametrize("levels", [2, 16, 64, 256])
def test_full_range_uses_exactly_levels_values(levels):
    out = quantize(_ramp(), levels)
    assert torch.unique(out).numel() == levels


@pytest.mark.parametrize("levels", [2, 16, 256])
def test_out_of_range_input_adds_no_extra_values(levels):
    x = torch.linspace(-1.5, 1.5, 20000).unsqueeze(0)
    assert torch.unique(quantize(x, levels)).numel() == levels


@pytest.mark.parametrize("levels", [2, 16, 64, 256, 65536])
def test_full_scale_maps_to_one(levels):
    assert float(quantize(torch.ones(1, 1), levels)) == 1.0


def test_two_levels_keeps_full_scale():
    out = quantize(torch.tensor([[-1.0, -0.3, 0.6, 1.0, 1.2]]), 2)
    assert out.tolist() == [[0.0, 0.0, 0.0, 1.0, 1.0]]


@pytest.mark.parametrize("levels", [16, 256, 65536])
def test_output_within_unit_range(levels):
    x = torch.linspace(-1.5, 1.5, 5000).unsqueeze(0)
    out = quantize(x, levels)
    assert float(out.max()) <= 1.0
    assert float(out.min()) >= -1.0


@pytest.mark.parametrize("levels", [4, 64, 256])
def test_quantize_is_idempotent(levels):
    gen = torch.Generator().manual_seed(7)
    x = torch.rand(1, 4096, generator=gen) * 2 - 1
    once = quantize(x, levels)
    twice = quantize(once, levels)
    torch.testing.assert_close(once, twice, rtol=0, atol=0)


def test_values_sit_on_the_step_grid():
    levels = 256
    step = quantization_step(levels)
    out = quantize(torch.linspace(-0.99, 0.99, 20000).unsqueeze(0), levels)
    k = out / step
    torch.testing.assert_close(k, torch.round(k), atol=1e-4, rtol=0)


def test_zero_maps_to_zero():
    assert float(quantize(torch.zeros(1, 4), 256).abs().max()) == 0.0


def test_too_few_levels_rejected():
    with pytest.raises(ConfigError):
        quantize(torch.zeros(1, 4), 1)


# -----------------------------------------------------------------------------
# Streaming bit-crusher
# -----------------------------------------------------------------------------

def test_iter_blocks_covers_signal():
    x = torch.arange(5000, dtype=torch.float32).unsqueeze(0)
    blocks = list(iter_blocks(x, 2048))
    assert [b.shape[-1] for b in blocks] == [2048, 2048, 904]
    torch.testing.assert_close(torch.cat(blocks, dim=-1), x)


def test_blockwise_matches_whole_signal():
    gen = torch.Generator().manual_seed(1)
    x = torch.rand(1, 10000, generator=gen) * 2 - 1
    torch.testing.assert_close(quantize_blocks(x, 64, 2048), quantize(x, 64), rtol=0, atol=0)


def test_bitcrusher_zero_levels_passes_through():
    block = torch.linspace(-0.3, 0.3, 100).unsqueeze(0)
    out = BitCrusher(0)(block)
    torch.testing.assert_close(out, block)
    assert out is not block


def test_bitcrusher_rejects_single_level():
    with pytest.raises(ConfigError):
        BitCrusher(1)
