import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import torch
from retrovox.dsp.oscillators import Oscillator, WAVEFORMS
from retrovox.qc import dominant_frequency


class TestOscillators(unittest.TestCase):
    def setUp(self):
        self.sr = 44100
        self.freq = 440.0  # A4
        self.duration = 0.1  # 100ms

    def test_sine_shape_and_range(self):
        wave = Oscillator.sine(self.freq, self.duration, self.sr)
        self.assertEqual(len(wave), int(self.duration * self.sr))
        self.assertTrue(torch.max(wave) <= 1.0001)
        self.assertTrue(torch.min(wave) >= -1.0001)

    def test_triangle_range(self):
        wave = Oscillator.triangle(self.freq, self.duration, self.sr)
        self.assertTrue(torch.max(wave) <= 1.0001)
        self.assertTrue(torch.min(wave) >= -1.0001)

    def test_square_is_two_level_and_starts_high(self):
        wave = Oscillator.square(self.freq, self.duration, self.sr)
        self.assertEqual(set(torch.unique(wave).tolist()), {-1.0, 1.0})
        self.assertEqual(float(wave[0]), 1.0)

    def test_phase_reset(self):
        # every trigger starts at phase 0
        self.assertEqual(float(Oscillator.sine(self.freq, self.duration, self.sr)[0]), 0.0)

    def test_pitch(self):
        for waveform in ("sine", "square", "triangle"):
            wave = Oscillator.generate(waveform, 1000.0, 0.5, self.sr)
            self.assertAlmostEqual(dominant_frequency(wave, self.sr), 1000.0, delta=5.0)

    def test_frequency_sweep_accepts_tensor(self):
        n = int(self.duration * self.sr)
        sweep = torch.linspace(1200.0, 900.0, n)
        wave = Oscillator.generate("square", sweep, self.duration, self.sr)
        self.assertEqual(wave.shape, (n,))

    def test_noise_uses_generator(self):
        g1 = torch.Generator().manual_seed(3)
        g2 = torch.Generator().manual_seed(3)
        a = Oscillator.generate("noise", 0.0, self.duration, self.sr, generator=g1)
        b = Oscillator.generate("noise", 0.0, self.duration, self.sr, generator=g2)
        self.assertTrue(torch.equal(a, b))
        self.assertTrue(torch.all(a >= -1.0) and torch.all(a < 1.0))

    def test_unknown_waveform(self):
        self.assertNotIn("pulse", WAVEFORMS)
        with self.assertRaises(ValueError):
            Oscillator.generate("pulse", 440.0, self.duration, self.sr)

    def test_determinism(self):
        wave1 = Oscillator.sine(self.freq, self.duration, self.sr)
        wave2 = Oscillator.sine(self.freq, self.duration, self.sr)
        self.assertTrue(torch.allclose(wave1, wave2))


if __name__ == '__main__':
    unittest.main()
