"""
Base64 PCM16 boundary with the external TTS collaborator.
Payload is little-endian signed 16-bit, interleaved by channel.
"""
import base64
import binascii

import numpy as np
import torch

from retrovox.config import TTS_CHANNELS, TTS_SAMPLE_RATE
from retrovox.core.errors import DecodeError
from retrovox.core.types import SampleBuffer

PCM16_SCALE = 32768.0


def decode(data: str) -> bytes:
    """
    Decode a base64 string to raw bytes. ASCII whitespace is ignored.
    Any other non-alphabet character or bad padding raises DecodeError.
    """
    if not isinstance(data, str):
        raise DecodeError(f"Expected base64 text, got {type(data).__name__}")
    compact = "".join(data.split())
    if not compact:
        return b""
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e


def decode_audio(data: bytes, sample_rate: int, channels: int) -> SampleBuffer:
    """
    Interpret bytes as interleaved PCM16 and deinterleave into a SampleBuffer.
    Each sample = int16 / 32768. Empty input yields a zero-frame buffer.
    """
    if channels < 1:
        raise DecodeError(f"Channel count must be >= 1, got {channels}")
    if not data:
        return SampleBuffer.empty(channels, sample_rate)
    if len(data) % 2:
        raise DecodeError(f"PCM16 payload has odd byte count ({len(data)})")

    pcm = np.frombuffer(data, dtype="<i2")
    if pcm.size % channels:
        raise DecodeError(
            f"{pcm.size} samples do not divide into {channels} channels"
        )
    frames = pcm.reshape(-1, channels).T.astype(np.float32) / PCM16_SCALE
    return SampleBuffer(torch.from_numpy(np.ascontiguousarray(frames)), sample_rate)


def decode_base64_audio(
    data: str,
    sample_rate: int = TTS_SAMPLE_RATE,
    channels: int = TTS_CHANNELS,
) -> SampleBuffer:
    """decode() then decode_audio() with the TTS defaults (24 kHz mono)."""
    return decode_audio(decode(data), sample_rate, channels)


def encode_pcm16(buffer: SampleBuffer) -> str:
    """Inverse of decode_base64_audio: clamp, scale by 32768, saturate to int16, interleave."""
    scaled = torch.round(torch.clamp(buffer.samples, -1.0, 1.0) * PCM16_SCALE)
    scaled = torch.clamp(scaled, -32768, 32767)
    interleaved = scaled.T.contiguous().numpy().astype("<i2")
    return base64.b64encode(interleaved.tobytes()).decode("ascii")
