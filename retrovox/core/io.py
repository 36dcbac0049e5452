import io
from typing import Union

import numpy as np
import soundfile as sf
import torch

from retrovox.core.types import SampleBuffer

Audio = Union[SampleBuffer, torch.Tensor, np.ndarray]


def _to_frames(waveform: Audio) -> np.ndarray:
    """soundfile wants (frames, channels); SampleBuffer is (channels, frames)."""
    if isinstance(waveform, SampleBuffer):
        data = waveform.samples.detach().cpu().numpy().T
    elif isinstance(waveform, torch.Tensor):
        data = waveform.detach().cpu().numpy()
        if data.ndim == 2:
            data = data.T
    else:
        data = waveform
    return np.clip(data, -1.0, 1.0)


class AudioIO:
    @staticmethod
    def save_wav(waveform: Audio, sample_rate: int, path, normalize: bool = False, subtype: str = "PCM_16"):
        """Saves audio to a WAV file (path or file-like)."""
        if isinstance(waveform, SampleBuffer):
            sample_rate = waveform.sample_rate
        data = _to_frames(waveform)

        if normalize:
            peak = np.max(np.abs(data)) if data.size else 0.0
            if peak > 0:
                data = data / peak

        sf.write(path, data, sample_rate, subtype=subtype, format="WAV")

    @staticmethod
    def to_bytes(waveform: Audio, sample_rate: int, format: str = "WAV") -> bytes:
        """Returns audio file as bytes (for API responses and ZIP export)."""
        if isinstance(waveform, SampleBuffer):
            sample_rate = waveform.sample_rate
        buffer = io.BytesIO()
        sf.write(buffer, _to_frames(waveform), sample_rate, format=format)
        return buffer.getvalue()

    @staticmethod
    def load_wav(path) -> SampleBuffer:
        """Reads a WAV/FLAC file into a SampleBuffer."""
        data, sample_rate = sf.read(path, dtype="float32", always_2d=True)
        return SampleBuffer(torch.from_numpy(np.ascontiguousarray(data.T)), sample_rate)
