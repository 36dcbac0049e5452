"""
Quality Control analysis for processed speech and synthesized effects.
Checks the properties the vintage pipeline promises: no clipping, output at
the target rate, energy inside the band, and at most L distinct sample values.
"""
from typing import Dict, Optional, Union

import numpy as np
import torch

from retrovox.core.types import SampleBuffer
from retrovox.qc.thresholds import QC_THRESHOLDS
from retrovox.vintage.presets import AuthenticityLevel, ProcessingConfig, get_preset_config


def _db(x: float) -> float:
    """Convert linear to dB."""
    if x <= 0:
        return -np.inf
    return 20.0 * np.log10(abs(x))


def _mono(audio: Union[SampleBuffer, torch.Tensor]) -> torch.Tensor:
    samples = audio.samples if isinstance(audio, SampleBuffer) else audio
    if samples.dim() > 1:
        samples = samples.mean(dim=0)
    return samples.reshape(-1).float()


def band_energy(audio: torch.Tensor, sample_rate: int, low_hz: float, high_hz: float) -> float:
    """Compute energy in frequency band using FFT magnitude."""
    audio = _mono(audio)
    n = audio.shape[-1]
    if n < 2:
        return 0.0

    n_fft = 2 ** int(np.ceil(np.log2(n)))
    magnitude = torch.abs(torch.fft.rfft(audio, n=n_fft))
    freqs = torch.fft.rfftfreq(n_fft, 1.0 / sample_rate)

    mask = (freqs >= low_hz) & (freqs <= high_hz)
    return float(torch.sum(magnitude[mask] ** 2))


def band_energy_ratio(
    audio: torch.Tensor,
    sample_rate: int,
    band_low: float,
    band_high: float,
    ref_low: float,
    ref_high: float,
) -> float:
    """Compute energy ratio: band / reference_band."""
    band = band_energy(audio, sample_rate, band_low, band_high)
    ref = band_energy(audio, sample_rate, ref_low, ref_high)
    if ref < 1e-12:
        return 0.0
    return float(band / ref)


def dominant_frequency(audio: torch.Tensor, sample_rate: int) -> float:
    """Frequency (Hz) of the strongest FFT bin, DC excluded."""
    audio = _mono(audio)
    n = audio.shape[-1]
    if n < 2:
        return 0.0
    magnitude = torch.abs(torch.fft.rfft(audio))
    magnitude[0] = 0.0
    return float(torch.argmax(magnitude)) * sample_rate / n


def rms(audio: torch.Tensor) -> float:
    audio = _mono(audio)
    if audio.shape[-1] == 0:
        return 0.0
    return float(torch.sqrt(torch.mean(audio ** 2)))


def peak_dbfs(audio: torch.Tensor) -> float:
    audio = _mono(audio)
    if audio.shape[-1] == 0:
        return -np.inf
    return _db(float(torch.max(torch.abs(audio))))


def distinct_levels(audio: Union[SampleBuffer, torch.Tensor]) -> int:
    """Number of distinct sample values across all channels."""
    samples = audio.samples if isinstance(audio, SampleBuffer) else audio
    return int(torch.unique(samples).numel())


def analyze(
    buffer: SampleBuffer,
    level: Optional[Union[AuthenticityLevel, str, ProcessingConfig]] = None,
) -> Dict:
    """
    Analyze a buffer for QC issues.

    Args:
        buffer: Audio to check
        level: Authenticity level (or a full ProcessingConfig) the buffer was
            processed with; None runs only the generic checks.

    Returns:
        Dict with metrics and pass/fail flags
    """
    config = None
    if isinstance(level, ProcessingConfig):
        config = level
    elif level is not None:
        config = get_preset_config(level)
    key = config.level.value if config is not None else "default"
    thresholds = QC_THRESHOLDS.get(key, QC_THRESHOLDS["default"])

    sr = buffer.sample_rate
    peak = peak_dbfs(buffer)
    level_rms = rms(buffer)
    metrics = {
        "duration_s": buffer.duration_s,
        "sample_rate": sr,
        "peak_dbfs": peak,
        "rms_dbfs": _db(level_rms),
        "rms_linear": level_rms,
        "dominant_hz": dominant_frequency(buffer, sr),
        "distinct_levels": distinct_levels(buffer),
    }

    failures = []
    warnings = []

    if buffer.frame_count == 0:
        warnings.append("Empty buffer")
    else:
        peak_min = thresholds.get("peak_dbfs_min", -60.0)
        peak_max = thresholds.get("peak_dbfs_max", 0.0)
        if peak < peak_min:
            warnings.append(f"Peak too low: {peak:.2f} dBFS < {peak_min:.2f} dBFS")
        elif peak > peak_max:
            failures.append(f"Peak too high (clipping): {peak:.2f} dBFS > {peak_max:.2f} dBFS")

    if config is not None:
        # modern is a pass-through and keeps the input rate
        if config.level is not AuthenticityLevel.Modern and sr != config.target_sample_rate:
            failures.append(f"Sample rate {sr} Hz != target {config.target_sample_rate} Hz")

        if config.quantizes and metrics["distinct_levels"] > config.quantization_levels:
            failures.append(
                f"Too many distinct levels: {metrics['distinct_levels']} > {config.quantization_levels}"
            )

        if config.band_limited and buffer.frame_count:
            nyquist = sr / 2.0
            ratio = band_energy_ratio(
                buffer, sr, min(config.high_cutoff, nyquist), nyquist, config.low_cutoff, config.high_cutoff
            )
            metrics["out_of_band_ratio"] = ratio
            ratio_max = thresholds.get("out_of_band_ratio_max", 0.25)
            if ratio > ratio_max:
                warnings.append(f"Out-of-band energy high: {ratio:.4f} > {ratio_max:.4f}")

    # Overall status
    if failures:
        status = "FAIL"
    elif warnings:
        status = "WARN"
    else:
        status = "PASS"

    return {
        "level": key,
        "status": status,
        "metrics": metrics,
        "failures": failures,
        "warnings": warnings,
    }
