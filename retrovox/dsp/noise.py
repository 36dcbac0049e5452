from typing import Optional

import torch


class Noise:
    @staticmethod
    def white(duration: float, sample_rate: int, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        """Generates white noise (Gaussian distribution)."""
        num_samples = max(0, int(duration * sample_rate))
        return torch.randn(num_samples, generator=generator)

    @staticmethod
    def uniform(duration: float, sample_rate: int, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        """Generates white noise uniformly distributed in [-1, 1)."""
        num_samples = max(0, int(duration * sample_rate))
        return torch.rand(num_samples, generator=generator) * 2.0 - 1.0
