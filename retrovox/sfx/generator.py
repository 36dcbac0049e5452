"""
Procedural synthesis of UI sound effects and the looping ambience bed.
Every effect is oscillator * envelope (+ optional noise/click layers), mixed
with LayerMixer and finished by PostChain. Noise is drawn from a generator
seeded per (kind, pack), so a buffer is reproducible byte-for-byte.
"""
import logging
import zlib
from typing import Optional

import torch

from retrovox.core.types import SampleBuffer
from retrovox.dsp.envelopes import ADSR, Envelope
from retrovox.dsp.filters import Filter
from retrovox.dsp.mixer import LayerMixer
from retrovox.dsp.noise import Noise
from retrovox.dsp.oscillators import Oscillator, time_axis
from retrovox.dsp.postchain import PostChain
from retrovox.sfx.recipes import SoundEffectKind, SoundPack, SoundRecipe, get_sound_pack, recipe_for

logger = logging.getLogger(__name__)

AMBIENCE_DURATION_S = 60.0

# ambience layer levels
HUM_60HZ = 0.05
HUM_120HZ = 0.02
FAN_CUTOFF_HZ = 400.0
FAN_LEVEL = 0.03
DISK_PULSE_LEVEL = 0.15

# disk-access click shape
CLICK_HALF_WIDTH_S = 0.01
CLICK_DECAY_S = 0.002


def seed_for(*parts: str) -> int:
    """Stable 32-bit seed (Python's hash() is salted per process)."""
    return zlib.crc32("/".join(parts).encode("utf-8"))


def _generator(seed: int) -> torch.Generator:
    gen = torch.Generator()
    gen.manual_seed(seed)
    return gen


def render_tone(
    frequency: float,
    duration: float,
    waveform: str,
    sample_rate: int,
    attack_s: float = 0.01,
    floor: float = 0.01,
    generator: Optional[torch.Generator] = None,
) -> torch.Tensor:
    """One enveloped note: oscillator (phase 0) * linear attack / exponential decay."""
    tone = Oscillator.generate(waveform, frequency, duration, sample_rate, generator=generator)
    env = Envelope.attack_decay(duration, sample_rate, attack_s=attack_s, floor=floor)
    return tone * env


class SoundGenerator:
    def synthesize(self, kind: SoundEffectKind, pack: SoundPack, sample_rate: int) -> SampleBuffer:
        """Render the mono buffer for `kind` voiced by `pack`."""
        kind = SoundEffectKind.parse(kind)
        if isinstance(pack, str):
            pack = get_sound_pack(pack)
        recipe = recipe_for(kind, pack)
        gen = _generator(seed_for(kind.value, pack.id))

        mixer = LayerMixer()
        if recipe.clicks:
            mixer.add("clicks", self._clicks(recipe, sample_rate, gen))
        else:
            tone = self._tone(recipe, sample_rate, gen)
            mixer.add("tone", tone, gain=1.0 - recipe.noise_mix)
            if recipe.noise_mix > 0:
                n = tone.shape[-1]
                env = Envelope.attack_decay(n / sample_rate, sample_rate, recipe.attack_s, recipe.floor)
                noise = Noise.uniform(n / sample_rate, sample_rate, generator=gen)
                mixer.add("noise", noise[:n] * env[:n], gain=recipe.noise_mix)

        master, _ = mixer.mix()
        out = PostChain.process(master * recipe.gain, sample_rate)
        logger.debug("synthesized %s/%s: %d samples @ %d Hz", kind.value, pack.id, out.shape[-1], sample_rate)
        return SampleBuffer.mono(out, sample_rate)

    @staticmethod
    def _tone(recipe: SoundRecipe, sample_rate: int, gen: torch.Generator) -> torch.Tensor:
        step_s = recipe.duration / max(1, len(recipe.frequencies))
        steps = []
        for freq in recipe.frequencies:
            if recipe.sweep_to is not None and len(recipe.frequencies) == 1:
                n = time_axis(step_s, sample_rate).shape[-1]
                freq = torch.linspace(freq, recipe.sweep_to, n)
            osc = Oscillator.generate(recipe.waveform, freq, step_s, sample_rate, generator=gen)
            if recipe.sustain:
                env = ADSR(sample_rate, recipe.attack_s, 0.0, 1.0, 0.02).render(step_s)
            else:
                env = Envelope.attack_decay(step_s, sample_rate, recipe.attack_s, recipe.floor)
            steps.append(osc * env)
        if not steps:
            return torch.zeros(0)
        return torch.cat(steps)

    @staticmethod
    def _clicks(recipe: SoundRecipe, sample_rate: int, gen: torch.Generator) -> torch.Tensor:
        t = time_axis(recipe.duration, sample_rate)
        grain = torch.rand(t.shape[-1], generator=gen) * 0.5 + 0.5
        out = torch.zeros_like(t)
        for onset in recipe.clicks:
            dist = torch.abs(t - onset)
            out = out + torch.where(dist < CLICK_HALF_WIDTH_S, torch.exp(-dist / CLICK_DECAY_S), torch.zeros_like(t))
        return torch.clamp(out, max=1.0) * grain

    def synthesize_ambience(
        self, pack: SoundPack, sample_rate: int, duration_s: float = AMBIENCE_DURATION_S
    ) -> SampleBuffer:
        """
        Loopable background bed: mains hum (60/120 Hz), lowpassed fan noise,
        and sparse disk-activity pulses. No boundary fades (played on loop).
        """
        if isinstance(pack, str):
            pack = get_sound_pack(pack)
        gen = _generator(seed_for("ambience", pack.id))
        t = time_axis(duration_s, sample_rate)

        hum = HUM_60HZ * Oscillator.sine(60.0, duration_s, sample_rate) + HUM_120HZ * Oscillator.sine(
            120.0, duration_s, sample_rate
        )

        fan = Filter.lowpass(Noise.uniform(duration_s, sample_rate, generator=gen), sample_rate, FAN_CUTOFF_HZ)
        fan = fan / (fan.abs().max() + 1e-9)

        # pulses land where a slow sine crests; each decays within its second
        gate = torch.sin(t * 2.0) > 0.98
        pulse = torch.rand(t.shape[-1], generator=gen) * torch.exp(-torch.remainder(t, 1.0) / 0.1)
        disk = torch.where(gate, pulse, torch.zeros_like(t))

        mixer = LayerMixer()
        mixer.add("hum", hum)
        mixer.add("fan", fan, gain=FAN_LEVEL)
        mixer.add("disk", disk, gain=DISK_PULSE_LEVEL)
        master, _ = mixer.mix()

        out = PostChain.process(master, sample_rate, loopable=True)
        logger.debug("synthesized ambience/%s: %.1f s @ %d Hz", pack.id, duration_s, sample_rate)
        return SampleBuffer.mono(out, sample_rate)
