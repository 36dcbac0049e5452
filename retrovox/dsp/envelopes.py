import torch
import numpy as np
from typing import Union, Optional


# -----------------------------------------------------------------------------
# Helpers (reusable across envelopes, effects and music)
# -----------------------------------------------------------------------------

def db_to_lin(db: float) -> float:
    """Convert decibels to linear gain. 0 dB -> 1.0."""
    return 10.0 ** (db / 20.0)


def ms_to_s(ms: float) -> float:
    """Convert milliseconds to seconds."""
    return ms / 1000.0


def clamp01(x: Union[float, torch.Tensor]) -> Union[float, torch.Tensor]:
    """Clamp value(s) to [0, 1]. Accepts scalar or tensor."""
    if isinstance(x, torch.Tensor):
        return torch.clamp(x, 0.0, 1.0)
    return max(0.0, min(1.0, float(x)))


# -----------------------------------------------------------------------------
# One-shot envelopes
# -----------------------------------------------------------------------------

class Envelope:
    @staticmethod
    def exponential_decay(duration: float, sample_rate: int, decay_time: float) -> torch.Tensor:
        """
        Generates an exponential decay envelope.
        y(t) = e^(-t / decay_time)
        """
        num_samples = max(0, int(duration * sample_rate))
        t = torch.arange(num_samples, dtype=torch.float32) / sample_rate
        return torch.exp(-t / (decay_time + 1e-6))

    @staticmethod
    def attack_decay(
        duration: float,
        sample_rate: int,
        attack_s: float = 0.01,
        floor: float = 0.01,
    ) -> torch.Tensor:
        """
        Note envelope: linear ramp 0 -> 1 over attack_s, then an exponential
        ramp 1 -> floor reaching floor at the last sample.
        Matches a linear-then-exponential gain automation on a note.
        """
        n = max(0, int(duration * sample_rate))
        env = torch.zeros(n)
        if n == 0:
            return env

        n_attack = min(n, max(0, int(attack_s * sample_rate)))
        if n_attack > 0:
            env[:n_attack] = torch.arange(n_attack, dtype=torch.float32) / n_attack

        n_decay = n - n_attack
        if n_decay > 0:
            floor = float(np.clip(floor, 1e-6, 1.0))
            # v(k) = floor ** (k / (n_decay - 1)), k = 0..n_decay-1
            frac = torch.arange(n_decay, dtype=torch.float32) / max(1, n_decay - 1)
            env[n_attack:] = torch.pow(torch.tensor(floor), frac)
        return env


class ADSR:
    """
    Sample-accurate ADSR envelope for offline one-shot rendering.
    Linear attack to peak, exponential decay to sustain, sustain until the gate
    closes, exponential release toward 0. Past the release: zeros.
    """

    def __init__(
        self,
        sample_rate: int,
        attack_s: float,
        decay_s: float,
        sustain_level: float,
        release_s: float,
    ):
        self.sample_rate = sample_rate
        self.attack_s = max(0.0, float(attack_s))
        self.decay_s = max(0.0, float(decay_s))
        self.sustain_level = float(clamp01(sustain_level))
        self.release_s = max(0.0, float(release_s))

    def render(self, duration_s: float, gate_s: Optional[float] = None) -> torch.Tensor:
        """
        Envelope of length int(duration_s * sample_rate).
        gate_s: when the release starts; None means the release runs off the
        end of the buffer (gate = duration_s - release_s).
        """
        sr = self.sample_rate
        n = max(0, int(duration_s * sr))
        env = torch.zeros(n)
        if n == 0:
            return env

        if gate_s is None:
            gate_s = max(0.0, duration_s - self.release_s)

        n_attack = min(n, int(self.attack_s * sr))
        n_decay_end = min(n, n_attack + int(self.decay_s * sr))
        n_gate = min(n, max(n_attack, int(gate_s * sr)))
        n_release_end = min(n, n_gate + int(self.release_s * sr))

        # ---- Attack: 0 -> 1 ----
        if n_attack > 0:
            env[:n_attack] = torch.arange(n_attack, dtype=torch.float32) / n_attack

        # ---- Decay: 1 -> sustain ----
        decay_len = n_decay_end - n_attack
        if decay_len > 0:
            t = torch.arange(decay_len, dtype=torch.float32) / sr
            tau = self.decay_s / 3.0
            env[n_attack:n_decay_end] = self.sustain_level + (1.0 - self.sustain_level) * torch.exp(-t / tau)
        else:
            n_decay_end = n_attack

        # ---- Sustain until gate ----
        if n_gate > n_decay_end:
            env[n_decay_end:n_gate] = self.sustain_level

        # ---- Release: level at gate -> 0 ----
        release_len = n_release_end - n_gate
        if release_len > 0:
            level_at_gate = float(env[n_gate - 1].item()) if n_gate > 0 else 0.0
            t = torch.arange(release_len, dtype=torch.float32) / sr
            tau = self.release_s / 3.0
            env[n_gate:n_release_end] = level_at_gate * torch.exp(-t / tau)

        return env
