"""
Per-layer offline mix with linear gain and mute.
Used to assemble procedural effects from tone/noise/click layers.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import torch


# -----------------------------------------------------------------------------
# Layer spec
# -----------------------------------------------------------------------------

@dataclass
class LayerSpec:
    """Gain (linear) and mute for one layer."""
    name: str
    gain: float = 1.0
    mute: bool = False


# -----------------------------------------------------------------------------
# Layer mixer
# -----------------------------------------------------------------------------

class LayerMixer:
    """
    Sum 1-D layers after per-layer gain/mute. Shorter layers are zero-padded
    to the longest one.
    """

    def __init__(self):
        self._layers: Dict[str, Tuple[torch.Tensor, LayerSpec]] = {}

    def add(self, name: str, audio: torch.Tensor, gain: float = 1.0, mute: bool = False) -> None:
        """Register a layer. Same name overwrites."""
        self._layers[name] = (audio.reshape(-1), LayerSpec(name, gain, mute))

    def __len__(self) -> int:
        return len(self._layers)

    def mix(self, stems: bool = False) -> Tuple[torch.Tensor, Dict[str, torch.Tensor]]:
        """
        Returns (master, stems_dict). stems_dict is filled only when stems=True.
        """
        out_stems: Dict[str, torch.Tensor] = {}
        if not self._layers:
            return torch.zeros(0, dtype=torch.float32), out_stems

        ref_len = max(audio.shape[-1] for audio, _ in self._layers.values())
        master: Optional[torch.Tensor] = None

        for name, (audio, spec) in self._layers.items():
            if audio.shape[-1] < ref_len:
                audio = torch.nn.functional.pad(audio, (0, ref_len - audio.shape[-1]))

            contribution = torch.zeros_like(audio) if spec.mute else audio * spec.gain
            master = contribution.clone() if master is None else master + contribution

            if stems:
                out_stems[name] = contribution.clone()

        return master, out_stems
