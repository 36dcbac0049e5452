"""
Shared post-processing for synthesized effects: boundary fades and safety clamp.
Deterministic; no randomness.
"""
import torch

# Boundary fades keep cached one-shots click-free when re-triggered
FADE_IN_MS = 0.5
FADE_OUT_MS = 2.0

SAFETY_CLAMP = 1.0


class PostChain:
    """
    fades -> safety clamp. Loopable material (ambience) skips the fades so the
    loop seam stays continuous.
    """

    @staticmethod
    def _boundary_fades(buffer: torch.Tensor, sample_rate: int) -> torch.Tensor:
        """Apply 0.5 ms fade-in, 2 ms fade-out. Linear ramps."""
        n = buffer.shape[-1]
        if n == 0:
            return buffer.clone()
        out = buffer.clone()
        n_in = min(n, max(1, int(FADE_IN_MS * 1e-3 * sample_rate)))
        n_out = min(n, max(1, int(FADE_OUT_MS * 1e-3 * sample_rate)))
        out[..., :n_in] = out[..., :n_in] * torch.linspace(0.0, 1.0, n_in, dtype=buffer.dtype)
        out[..., -n_out:] = out[..., -n_out:] * torch.linspace(1.0, 0.0, n_out, dtype=buffer.dtype)
        return out

    @staticmethod
    def _safety_clamp(buffer: torch.Tensor) -> torch.Tensor:
        return torch.clamp(buffer, -SAFETY_CLAMP, SAFETY_CLAMP)

    @classmethod
    def process(cls, buffer: torch.Tensor, sample_rate: int, loopable: bool = False) -> torch.Tensor:
        x = buffer.float()
        if not loopable:
            x = cls._boundary_fades(x, sample_rate)
        return cls._safety_clamp(x)
